"""Custom exception classes for the gallery ingestion service."""

from typing import Any

from core.utils.constants import (
    ERROR_CODE_COMPRESSION_FAILED,
    ERROR_CODE_LEDGER,
    ERROR_CODE_LEDGER_WRITE_FAILED,
    ERROR_CODE_OBJECT_KEY_CONFLICT,
    ERROR_CODE_OBJECT_STORE,
    ERROR_CODE_QUOTA_EXCEEDED,
    ERROR_CODE_RESOURCE_NOT_FOUND,
    ERROR_CODE_STORAGE_NOT_CONFIGURED,
    ERROR_CODE_UPLOAD_FAILED,
    ERROR_CODE_VALIDATION_FAILED,
)


class GalleryServiceError(Exception):
    """
    Base exception for all gallery service errors.

    All custom errors must inherit from this class.
    Callers must explicitly provide a message and error code.
    Optional contextual information can be supplied via `details`.
    """

    message: str
    error_code: str
    details: dict[str, Any]

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(self.message)


class ValidationError(GalleryServiceError):
    """Raised when request validation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class NotFoundError(GalleryServiceError):
    """Raised when a gallery item does not exist or is already retired."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_RESOURCE_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class StorageNotConfiguredError(GalleryServiceError):
    """Raised when the gallery bucket does not exist.

    This is a deployment error. It is never retried and its message is
    surfaced verbatim to the operator.
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_STORAGE_NOT_CONFIGURED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class QuotaExceededError(GalleryServiceError):
    """Raised when a media kind has reached its active item ceiling."""

    current: int
    limit: int

    def __init__(
        self,
        *,
        current: int,
        limit: int,
        message: str | None = None,
        error_code: str = ERROR_CODE_QUOTA_EXCEEDED,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.current = current
        self.limit = limit
        super().__init__(
            message=message or f"Maximum {limit} items allowed in gallery",
            error_code=error_code,
            details={"current": current, "limit": limit, **(details or {})},
        )


class CompressionFailedError(GalleryServiceError):
    """Raised when an image cannot be decoded or re-encoded."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_COMPRESSION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class UploadFailedError(GalleryServiceError):
    """Raised when the object store rejects or fails an upload."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_UPLOAD_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ObjectKeyConflictError(UploadFailedError):
    """Raised when an upload would overwrite an existing object."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_OBJECT_KEY_CONFLICT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class LedgerWriteFailedError(GalleryServiceError):
    """Raised when the ledger row cannot be written after a stored upload."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_LEDGER_WRITE_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ObjectStoreError(GalleryServiceError):
    """Raised when an object store operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_OBJECT_STORE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class LedgerError(GalleryServiceError):
    """Raised when a DynamoDB ledger operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_LEDGER,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
