"""Tagged result types returned by the gallery services.

Every caller-facing operation returns either ``Success[T]`` or ``Failure``,
discriminated by ``status``. Failures carry an ``ErrorKind`` so callers can
branch without inspecting exception classes.
"""

from enum import Enum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field, StrictInt, StrictStr

from core.models.errors import (
    CompressionFailedError,
    GalleryServiceError,
    LedgerError,
    LedgerWriteFailedError,
    NotFoundError,
    ObjectStoreError,
    QuotaExceededError,
    StorageNotConfiguredError,
    UploadFailedError,
    ValidationError,
)
from core.models.gallery import MediaKind
from core.utils.constants import (
    ERROR_CODE_COMPRESSION_FAILED,
    ERROR_CODE_INTERNAL_ERROR,
    ERROR_CODE_LEDGER_WRITE_FAILED,
    ERROR_CODE_QUOTA_EXCEEDED,
    ERROR_CODE_RESOURCE_NOT_FOUND,
    ERROR_CODE_STORAGE_NOT_CONFIGURED,
    ERROR_CODE_UPLOAD_FAILED,
    ERROR_CODE_VALIDATION_FAILED,
)

ValueT = TypeVar("ValueT")


class ErrorKind(str, Enum):
    """Typed failure kinds surfaced to callers."""

    STORAGE_NOT_CONFIGURED = ERROR_CODE_STORAGE_NOT_CONFIGURED
    QUOTA_EXCEEDED = ERROR_CODE_QUOTA_EXCEEDED
    COMPRESSION_FAILED = ERROR_CODE_COMPRESSION_FAILED
    UPLOAD_FAILED = ERROR_CODE_UPLOAD_FAILED
    LEDGER_WRITE_FAILED = ERROR_CODE_LEDGER_WRITE_FAILED
    NOT_FOUND = ERROR_CODE_RESOURCE_NOT_FOUND
    VALIDATION_FAILED = ERROR_CODE_VALIDATION_FAILED
    INTERNAL_ERROR = ERROR_CODE_INTERNAL_ERROR


# Checked in order; subclasses must precede their bases.
_ERROR_KINDS: tuple[tuple[type[GalleryServiceError], ErrorKind], ...] = (
    (StorageNotConfiguredError, ErrorKind.STORAGE_NOT_CONFIGURED),
    (QuotaExceededError, ErrorKind.QUOTA_EXCEEDED),
    (CompressionFailedError, ErrorKind.COMPRESSION_FAILED),
    (UploadFailedError, ErrorKind.UPLOAD_FAILED),
    (ObjectStoreError, ErrorKind.UPLOAD_FAILED),
    (LedgerWriteFailedError, ErrorKind.LEDGER_WRITE_FAILED),
    (NotFoundError, ErrorKind.NOT_FOUND),
    (ValidationError, ErrorKind.VALIDATION_FAILED),
    (LedgerError, ErrorKind.INTERNAL_ERROR),
)


def error_kind_for(exc: GalleryServiceError) -> ErrorKind:
    """Map a domain exception onto its caller-facing error kind."""
    for error_type, kind in _ERROR_KINDS:
        if isinstance(exc, error_type):
            return kind

    return ErrorKind.INTERNAL_ERROR


class ErrorDetail(BaseModel):
    """Failure payload."""

    kind: ErrorKind
    message: StrictStr
    error_code: StrictStr
    details: dict[str, Any] = Field(default_factory=dict)


class Success(BaseModel, Generic[ValueT]):
    """Successful outcome wrapping the operation's value."""

    status: Literal["success"] = "success"
    value: ValueT

    @property
    def ok(self) -> bool:
        return True


class Failure(BaseModel):
    """Failed outcome wrapping a typed error."""

    status: Literal["error"] = "error"
    error: ErrorDetail

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: GalleryServiceError) -> "Failure":
        return cls(
            error=ErrorDetail(
                kind=error_kind_for(exc),
                message=exc.message,
                error_code=exc.error_code,
                details=exc.details,
            )
        )


class Allowed(BaseModel):
    """Quota gate admitted a new item."""

    status: Literal["allowed"] = "allowed"
    media_kind: MediaKind
    current_count: StrictInt
    limit: StrictInt


class Rejected(BaseModel):
    """Quota gate refused a new item because the kind is full."""

    status: Literal["rejected"] = "rejected"
    media_kind: MediaKind
    current_count: StrictInt
    limit: StrictInt


class Retired(BaseModel):
    """Outcome of a successful logical deletion."""

    item_id: StrictStr
    retired_at: StrictStr
    removed_keys: list[StrictStr] = Field(default_factory=list)
    failed_keys: list[StrictStr] = Field(default_factory=list)
