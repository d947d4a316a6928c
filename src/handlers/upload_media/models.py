"""Pydantic models for gallery media upload request/response."""

import base64
import binascii

from aws_lambda_powertools import Logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.models.gallery import GalleryItem, IngestMetadata, MediaKind
from core.utils.constants import MAX_UPLOAD_SIZE

logger = Logger(UTC=True)


class MediaUploadRequest(BaseModel):
    """Validation model for media upload request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    file: str = Field(..., description="Base64 encoded photo or video")
    media_kind: MediaKind = Field(MediaKind.IMAGE, description="image or video")
    title: str | None = Field(None, max_length=255, description="Display title")
    featured: bool = Field(False, description="Show first in the gallery")
    uploaded_by: str | None = Field(None, max_length=128, description="Uploader identity")

    @field_validator("file")
    @classmethod
    def validate_file(cls, value: str) -> str:
        """
        Validate base64 file:
        - must not be empty
        - must decode correctly
        - must not exceed MAX_UPLOAD_SIZE
        """
        if not value:
            raise ValueError("file must not be empty")

        try:
            file_data = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error(f"File validation error: Invalid base64 - {e}")
            raise ValueError("Invalid base64 encoded file") from e

        if not file_data:
            logger.error("File validation error: Decoded file is empty")
            raise ValueError("Decoded file is empty")

        if len(file_data) > MAX_UPLOAD_SIZE:
            logger.error("File size validation error: File size exceeds limit")
            raise ValueError(
                f"File size exceeds {MAX_UPLOAD_SIZE // (1024 * 1024)}MB limit"
            )

        return value

    def decoded_file(self) -> bytes:
        return base64.b64decode(self.file)

    def ingest_metadata(self) -> IngestMetadata:
        return IngestMetadata(
            title=self.title or None,
            featured=self.featured,
            uploaded_by=self.uploaded_by or None,
        )


class MediaUploadResponse(BaseModel):
    """Response model for successful media upload."""

    item: GalleryItem = Field(..., description="Created gallery item")
    message: str = Field(..., description="Success message")
