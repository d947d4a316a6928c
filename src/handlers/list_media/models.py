"""
Pydantic models for list media request and response.
"""

from pydantic import BaseModel, ConfigDict, Field

from core.models.gallery import GalleryItem, MediaKind


class ListMediaRequest(BaseModel):
    """Validation model for list media API."""

    model_config = ConfigDict(str_strip_whitespace=True)

    media_kind: MediaKind | None = Field(
        None,
        description="Only return items of this kind",
    )


class ListMediaResponse(BaseModel):
    """Response model for the public gallery listing."""

    items: list[GalleryItem] = Field(default_factory=list)
    total_count: int = Field(..., ge=0)
