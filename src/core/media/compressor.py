"""Adaptive image compression into a size envelope.

Images are resized to fit the maximum dimensions and re-encoded as JPEG,
lowering quality step by step until the output fits the byte target or the
quality floor is reached. Every attempt encodes from the decoded source
pixels, never from a previous attempt's output, so artifacts do not compound.
"""

import io

from aws_lambda_powertools import Logger
from PIL import Image, ImageOps, UnidentifiedImageError

from core.models.errors import CompressionFailedError
from core.models.gallery import CompressionResult
from core.utils.constants import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    MIN_QUALITY,
    OUTPUT_IMAGE_FORMAT,
    OUTPUT_IMAGE_MIME_TYPE,
    QUALITY_STEP,
    START_QUALITY,
    TARGET_IMAGE_BYTES,
)

logger = Logger(UTC=True)

_DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError)


def _to_percent(quality: float) -> int:
    return int(round(quality * 100))


class SizeEnvelopeCompressor:
    """Fits images into a maximum size and pixel envelope."""

    def __init__(self, *, quality_step: float = QUALITY_STEP) -> None:
        self._step = _to_percent(quality_step)
        if self._step <= 0:
            raise ValueError("quality_step must be positive")

    def compress(
        self,
        source: bytes,
        *,
        max_width: int = MAX_IMAGE_WIDTH,
        max_height: int = MAX_IMAGE_HEIGHT,
        target_bytes: int = TARGET_IMAGE_BYTES,
        min_quality: float = MIN_QUALITY,
        start_quality: float = START_QUALITY,
    ) -> CompressionResult:
        """Compress an image until it fits ``target_bytes`` or hits the quality floor.

        Args:
            source: Encoded image bytes in any format Pillow can decode
            max_width: Maximum output width in pixels
            max_height: Maximum output height in pixels
            target_bytes: Desired maximum output size
            min_quality: Quality floor (0-1); output above target is accepted here
            start_quality: Initial quality (0-1)

        Returns:
            The last encoding produced. ``within_target`` is False when the
            floor was reached before the target.

        Raises:
            CompressionFailedError: If the source cannot be decoded, or no
                encoding attempt succeeded
        """
        image = self._prepare(source, max_width=max_width, max_height=max_height)

        quality = _to_percent(start_quality)
        floor = min(_to_percent(min_quality), quality)
        best: CompressionResult | None = None
        iterations = 0

        while True:
            try:
                data = self._encode(image, quality)
            except (OSError, ValueError) as exc:
                if best is None:
                    raise CompressionFailedError(
                        message="Unable to encode image",
                        details={"quality": quality / 100},
                    ) from exc

                logger.warning(
                    "Re-encoding failed, keeping best intermediate result",
                    extra={"quality": quality / 100, "size": best.size},
                )
                return best

            iterations += 1
            best = CompressionResult(
                data=data,
                size=len(data),
                width=image.width,
                height=image.height,
                quality=quality / 100,
                content_type=OUTPUT_IMAGE_MIME_TYPE,
                iterations=iterations,
                within_target=len(data) <= target_bytes,
            )

            if best.within_target or quality <= floor:
                break

            quality = max(quality - self._step, floor)

        logger.info(
            "Image compressed",
            extra={
                "original_size": len(source),
                "compressed_size": best.size,
                "quality": f"{best.quality:.2f}",
                "iterations": iterations,
                "dimensions": f"{best.width}x{best.height}",
            },
        )
        return best

    @staticmethod
    def _prepare(source: bytes, *, max_width: int, max_height: int) -> Image.Image:
        """Decode, orient, flatten to RGB and downscale the source image."""
        if not source:
            raise CompressionFailedError(message="Image data is empty")

        try:
            image = Image.open(io.BytesIO(source))
            # JPEG only: decode at a reduced scale that still covers the envelope
            image.draft("RGB", (max_width, max_height))
            image.load()
            image = ImageOps.exif_transpose(image)

            if image.mode in ("RGBA", "LA", "P"):
                rgba = image.convert("RGBA")
                background = Image.new("RGB", rgba.size, (255, 255, 255))
                background.paste(rgba, mask=rgba.getchannel("A"))
                image = background
            elif image.mode != "RGB":
                image = image.convert("RGB")

            image.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
            return image

        except _DECODE_ERRORS as exc:
            logger.warning("Unable to decode image", extra={"error": str(exc)})
            raise CompressionFailedError(
                message="Unable to decode image",
                details={"size": len(source)},
            ) from exc

    @staticmethod
    def _encode(image: Image.Image, quality: int) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format=OUTPUT_IMAGE_FORMAT, quality=quality, optimize=True)
        return buffer.getvalue()
