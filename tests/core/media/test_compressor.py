import io
from unittest.mock import patch

import pytest
from PIL import Image

from core.media.compressor import SizeEnvelopeCompressor
from core.models.errors import CompressionFailedError


def open_result(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


class TestSizeEnvelopeCompressor:
    def test_large_photo_fits_envelope(self, large_gradient_jpeg) -> None:
        result = SizeEnvelopeCompressor().compress(large_gradient_jpeg)

        assert result.width <= 1920
        assert result.height <= 1920
        assert result.size <= 750 * 1024
        assert result.content_type == "image/jpeg"

    def test_resize_preserves_aspect_ratio(self, large_gradient_jpeg) -> None:
        result = SizeEnvelopeCompressor().compress(large_gradient_jpeg)

        assert (result.width, result.height) == (1920, 1440)

    def test_incompressible_image_reaches_floor_or_target(self, noisy_png) -> None:
        result = SizeEnvelopeCompressor().compress(noisy_png)

        assert result.within_target or result.quality == pytest.approx(0.3)
        assert result.quality >= 0.3

    def test_quality_steps_down_in_tenths_until_floor(self, noisy_png) -> None:
        result = SizeEnvelopeCompressor().compress(noisy_png, target_bytes=1)

        # 0.8, 0.7, 0.6, 0.5, 0.4, 0.3
        assert result.iterations == 6
        assert result.quality == pytest.approx(0.3)
        assert result.within_target is False

    def test_small_image_encoded_once_at_start_quality(self, make_image) -> None:
        result = SizeEnvelopeCompressor().compress(make_image(size=(64, 48)))

        assert result.iterations == 1
        assert result.quality == pytest.approx(0.8)
        assert result.within_target is True
        assert (result.width, result.height) == (64, 48)

    def test_output_is_jpeg(self, make_image) -> None:
        result = SizeEnvelopeCompressor().compress(make_image(image_format="PNG"))

        assert result.data.startswith(b"\xff\xd8\xff")
        assert open_result(result.data).format == "JPEG"

    def test_transparency_is_flattened_onto_white(self, make_image) -> None:
        source = make_image(image_format="PNG", mode="RGBA", color=(0, 0, 0, 0))

        image = open_result(SizeEnvelopeCompressor().compress(source).data)

        assert image.mode == "RGB"
        assert all(channel > 240 for channel in image.getpixel((10, 10)))

    def test_palette_image_is_converted(self, make_image) -> None:
        source = make_image(image_format="GIF", mode="P", color=3)

        assert open_result(SizeEnvelopeCompressor().compress(source).data).mode == "RGB"

    def test_exif_orientation_applied_before_resize(self) -> None:
        exif = Image.Exif()
        exif[0x0112] = 6  # rotated 90 degrees clockwise
        buffer = io.BytesIO()
        Image.new("RGB", (40, 20), (10, 120, 200)).save(buffer, format="JPEG", exif=exif)

        result = SizeEnvelopeCompressor().compress(buffer.getvalue())

        assert (result.width, result.height) == (20, 40)

    def test_custom_envelope(self, make_image) -> None:
        result = SizeEnvelopeCompressor().compress(
            make_image(size=(1000, 500)),
            max_width=200,
            max_height=200,
        )

        assert (result.width, result.height) == (200, 100)

    def test_undecodable_bytes_raise(self) -> None:
        with pytest.raises(CompressionFailedError):
            SizeEnvelopeCompressor().compress(b"definitely not an image")

    def test_empty_bytes_raise(self) -> None:
        with pytest.raises(CompressionFailedError):
            SizeEnvelopeCompressor().compress(b"")

    def test_encode_failure_after_first_attempt_keeps_best_result(self, make_image) -> None:
        with patch.object(
            SizeEnvelopeCompressor,
            "_encode",
            side_effect=[b"\xff\xd8\xff" + b"x" * 2000, OSError("encoder crashed")],
        ):
            result = SizeEnvelopeCompressor().compress(make_image(), target_bytes=100)

        assert result.size == 2003
        assert result.quality == pytest.approx(0.8)
        assert result.within_target is False

    def test_encode_failure_on_first_attempt_raises(self, make_image) -> None:
        with patch.object(SizeEnvelopeCompressor, "_encode", side_effect=OSError("encoder crashed")):
            with pytest.raises(CompressionFailedError):
                SizeEnvelopeCompressor().compress(make_image())

    def test_rejects_non_positive_step(self) -> None:
        with pytest.raises(ValueError):
            SizeEnvelopeCompressor(quality_step=0)
