"""Pydantic models for delete media request/response."""

from pydantic import BaseModel, ConfigDict, Field


class DeleteMediaRequest(BaseModel):
    """Validation model for delete media request."""

    model_config = ConfigDict(str_strip_whitespace=True)
    item_id: str = Field(
        ...,
        min_length=1,
        description="Gallery item ID to delete",
    )


class DeleteMediaResponse(BaseModel):
    """Response model for successful media deletion."""

    item_id: str = Field(..., description="Retired gallery item ID")
    message: str = Field(..., description="Success message")
    deleted_at: str = Field(..., description="Retirement timestamp")
    removed_keys: list[str] = Field(default_factory=list, description="Objects deleted from storage")
