"""Shared gallery item models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr

from core.utils.constants import MEDIA_KIND_IMAGE, MEDIA_KIND_VIDEO


class MediaKind(str, Enum):
    """Kind of media a gallery item holds."""

    IMAGE = MEDIA_KIND_IMAGE
    VIDEO = MEDIA_KIND_VIDEO


class GalleryItem(BaseModel):
    """Gallery item as recorded in the ledger."""

    item_id: StrictStr = Field(..., description="Ledger-generated identifier")
    media_kind: MediaKind = Field(..., description="image or video")
    title: StrictStr | None = Field(None, description="Optional display title")

    primary_object_ref: StrictStr = Field(..., description="Public URL of the stored object")
    thumbnail_object_ref: StrictStr | None = Field(
        None,
        description="Public URL of the derived thumbnail (videos only)",
    )

    featured: StrictBool = Field(False, description="Shown first in the gallery")
    active: StrictBool = Field(True, description="False once soft-deleted")
    order_index: StrictInt = Field(0, description="Manual ordering position")
    uploaded_by: StrictStr | None = Field(None, description="Uploader identity")

    content_type: StrictStr | None = Field(None, description="MIME type of the stored object")
    file_size: StrictInt | None = Field(None, description="Stored object size in bytes")

    created_at: StrictStr = Field(..., description="ISO-8601 creation timestamp (UTC)")
    updated_at: StrictStr = Field(..., description="ISO-8601 last update timestamp (UTC)")


class NewGalleryItem(BaseModel):
    """Row content handed to the ledger; id and timestamps are assigned there."""

    media_kind: MediaKind
    title: StrictStr | None = None
    primary_object_ref: StrictStr
    thumbnail_object_ref: StrictStr | None = None
    featured: StrictBool = False
    order_index: StrictInt = 0
    uploaded_by: StrictStr | None = None
    content_type: StrictStr | None = None
    file_size: StrictInt | None = None


class IngestMetadata(BaseModel):
    """Caller-supplied metadata for a new gallery item."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: StrictStr | None = Field(None, max_length=255)
    featured: StrictBool = False
    uploaded_by: StrictStr | None = None


class GalleryItemPatch(BaseModel):
    """Editable fields of a gallery item.

    Only fields explicitly set by the caller are applied.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: StrictStr | None = Field(None, max_length=255)
    featured: StrictBool | None = None
    order_index: StrictInt | None = Field(None, ge=0)

    def changes(self) -> dict[str, object]:
        """Return the fields the caller set, dropping unset ones."""
        changes = self.model_dump(exclude_unset=True)
        # featured/order_index cannot be cleared, only title can
        return {
            key: value
            for key, value in changes.items()
            if value is not None or key == "title"
        }


class CompressionResult(BaseModel):
    """Outcome of fitting an image into the size envelope."""

    data: bytes
    size: StrictInt
    width: StrictInt
    height: StrictInt
    quality: float
    content_type: StrictStr
    iterations: StrictInt
    within_target: StrictBool
