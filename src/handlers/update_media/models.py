"""Pydantic models for update media request/response."""

from pydantic import BaseModel, ConfigDict, Field

from core.models.gallery import GalleryItem, GalleryItemPatch


class UpdateMediaRequest(BaseModel):
    """Validation model for update media request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    item_id: str = Field(..., min_length=1, description="Gallery item ID to edit")
    patch: GalleryItemPatch = Field(default_factory=GalleryItemPatch)


class UpdateMediaResponse(BaseModel):
    """Response model for a successful edit."""

    item: GalleryItem
    message: str = Field(..., description="Success message")
