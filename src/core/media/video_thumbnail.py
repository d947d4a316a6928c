"""
Video thumbnail derivation.

Extracts a single frame with FFmpeg (via subprocess), then scales it with
Pillow and encodes it as JPEG. Thumbnails are optional: when FFmpeg is not
installed, times out, or the video has no decodable frame, extraction
returns None and the gallery item is stored without one.
"""

import io
import shutil
import subprocess
import tempfile
from pathlib import Path

from aws_lambda_powertools import Logger
from PIL import Image, UnidentifiedImageError

from core.utils.constants import (
    FFMPEG_TIMEOUT_SECONDS,
    OUTPUT_IMAGE_FORMAT,
    THUMBNAIL_MAX_SIZE,
    THUMBNAIL_QUALITY,
    THUMBNAIL_SEEK_SECONDS,
)

logger = Logger(UTC=True)


class VideoThumbnailExtractor:
    """Derives a JPEG thumbnail from raw video bytes."""

    def __init__(
        self,
        *,
        ffmpeg_binary: str = "ffmpeg",
        timeout: int = FFMPEG_TIMEOUT_SECONDS,
    ) -> None:
        self._ffmpeg = ffmpeg_binary
        self._timeout = timeout

    def is_available(self) -> bool:
        return shutil.which(self._ffmpeg) is not None

    def extract(self, video_data: bytes) -> bytes | None:
        """Return JPEG thumbnail bytes, or None when no frame could be derived."""
        if not video_data:
            return None

        if not self.is_available():
            logger.warning("FFmpeg not available, skipping video thumbnail")
            return None

        try:
            with tempfile.TemporaryDirectory() as temp_dir:
                thumbnail = self._extract_in(Path(temp_dir), video_data)
        except OSError as exc:
            logger.warning("Scratch space unavailable for thumbnail", extra={"error": str(exc)})
            return None

        if thumbnail is not None:
            return thumbnail

        logger.warning("No frame could be extracted for thumbnail")
        return None

    def _extract_in(self, temp_path: Path, video_data: bytes) -> bytes | None:
        video_path = temp_path / "source.video"
        video_path.write_bytes(video_data)

        # Later positions first; short clips fall back to the first frame
        for seek_pos in THUMBNAIL_SEEK_SECONDS:
            frame_path = temp_path / f"frame_{seek_pos:.2f}.png"
            if not self._extract_frame(video_path, frame_path, seek_pos):
                continue

            thumbnail = self._encode_thumbnail(frame_path)
            if thumbnail is not None:
                return thumbnail

        return None

    def _extract_frame(self, video_path: Path, frame_path: Path, seek_pos: float) -> bool:
        cmd = [
            self._ffmpeg,
            "-y",
            "-ss",
            str(seek_pos),
            "-i",
            str(video_path),
            "-vframes",
            "1",
            "-f",
            "image2",
            str(frame_path),
        ]

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning(
                "FFmpeg timed out extracting frame",
                extra={"seek_pos": seek_pos, "timeout": self._timeout},
            )
            return False
        except OSError as exc:
            logger.warning("FFmpeg could not be executed", extra={"error": str(exc)})
            return False

        if result.returncode != 0 or not frame_path.exists():
            logger.debug(
                "FFmpeg produced no frame",
                extra={
                    "seek_pos": seek_pos,
                    "returncode": result.returncode,
                    "stderr": result.stderr.decode("utf-8", errors="replace")[-500:],
                },
            )
            return False

        return True

    @staticmethod
    def _encode_thumbnail(frame_path: Path) -> bytes | None:
        try:
            with Image.open(frame_path) as frame:
                image = frame.convert("RGB")
                image.thumbnail(THUMBNAIL_MAX_SIZE, Image.Resampling.LANCZOS)

                buffer = io.BytesIO()
                image.save(buffer, format=OUTPUT_IMAGE_FORMAT, quality=THUMBNAIL_QUALITY)
                return buffer.getvalue()

        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            logger.warning("Extracted frame is unreadable", extra={"error": str(exc)})
            return None
