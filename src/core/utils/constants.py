"""Global constants used throughout the application.

This module centralizes all magic numbers, string literals, and configuration
values that are used across multiple modules. Using constants prevents hardcoding
values and makes it easy to change them globally.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================


# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"

# Pipeline Errors
ERROR_CODE_STORAGE_NOT_CONFIGURED = "STORAGE_NOT_CONFIGURED"
ERROR_CODE_QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
ERROR_CODE_COMPRESSION_FAILED = "COMPRESSION_FAILED"
ERROR_CODE_UPLOAD_FAILED = "UPLOAD_FAILED"
ERROR_CODE_LEDGER_WRITE_FAILED = "LEDGER_WRITE_FAILED"

# Not Found Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"

# Object Store Errors
ERROR_CODE_OBJECT_STORE = "OBJECT_STORE_ERROR"
ERROR_CODE_OBJECT_KEY_CONFLICT = "OBJECT_KEY_CONFLICT"
ERROR_CODE_PUBLIC_REF_FAILED = "PUBLIC_REF_FAILED"
ERROR_CODE_OBJECT_DELETE_FAILED = "OBJECT_DELETE_FAILED"
ERROR_CODE_OBJECT_LIST_FAILED = "OBJECT_LIST_FAILED"

# Ledger / DynamoDB Errors
ERROR_CODE_LEDGER = "LEDGER_ERROR"
ERROR_CODE_LEDGER_COUNT_FAILED = "LEDGER_COUNT_FAILED"
ERROR_CODE_LEDGER_FETCH_FAILED = "LEDGER_FETCH_FAILED"
ERROR_CODE_LEDGER_UPDATE_FAILED = "LEDGER_UPDATE_FAILED"
ERROR_CODE_LEDGER_DELETE_FAILED = "LEDGER_DELETE_FAILED"
ERROR_CODE_LEDGER_LIST_FAILED = "LEDGER_LIST_FAILED"
ERROR_CODE_LEDGER_INVALID_FORMAT = "LEDGER_INVALID_FORMAT"

# Internal / Unexpected
ERROR_CODE_INTERNAL_ERROR = "INTERNAL_ERROR"


# ============================================================================
# Media Kinds and Quotas
# ============================================================================

MEDIA_KIND_IMAGE = "image"
MEDIA_KIND_VIDEO = "video"

MAX_ACTIVE_IMAGES = 20
MAX_ACTIVE_VIDEOS = 10

QUOTA_LIMITS: Final[dict[str, int]] = {
    MEDIA_KIND_IMAGE: MAX_ACTIVE_IMAGES,
    MEDIA_KIND_VIDEO: MAX_ACTIVE_VIDEOS,
}


# ============================================================================
# Compression Envelope
# ============================================================================

MAX_IMAGE_WIDTH = 1920
MAX_IMAGE_HEIGHT = 1920
TARGET_IMAGE_BYTES = 500 * 1024  # 500KB after compression
START_QUALITY = 0.8
MIN_QUALITY = 0.3
QUALITY_STEP = 0.1
IMAGE_SIZE_TOLERANCE = 1.5  # warn (never fail) above target * tolerance

OUTPUT_IMAGE_FORMAT = "JPEG"
OUTPUT_IMAGE_MIME_TYPE = "image/jpeg"

SOFT_MAX_VIDEO_BYTES = 10 * 1024 * 1024  # 10MB, logged only

THUMBNAIL_MAX_SIZE = (640, 640)
THUMBNAIL_QUALITY = 80
THUMBNAIL_SEEK_SECONDS = (1.0, 0.0)
FFMPEG_TIMEOUT_SECONDS = 30


# ============================================================================
# Upload Constraints
# ============================================================================

# API Gateway payload ceiling (base64 inflates by ~4/3)
MAX_UPLOAD_SIZE = 7 * 1024 * 1024

MIME_TYPE_EXTENSION_MAP: Final[dict[str, str]] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/heic": "heic",
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/webm": "webm",
}

IMAGE_MIME_TYPES: Final[frozenset[str]] = frozenset(
    mime for mime in MIME_TYPE_EXTENSION_MAP if mime.startswith("image/")
)

VIDEO_MIME_TYPES: Final[frozenset[str]] = frozenset(
    mime for mime in MIME_TYPE_EXTENSION_MAP if mime.startswith("video/")
)

DEFAULT_VIDEO_MIME_TYPE = "video/mp4"


# ============================================================================
# Object Keys
# ============================================================================

GALLERY_KEY_PREFIX = "gallery"
KIND_DIRECTORIES: Final[dict[str, str]] = {
    MEDIA_KIND_IMAGE: "images",
    MEDIA_KIND_VIDEO: "videos",
}
KIND_KEY_PREFIXES: Final[dict[str, str]] = {
    MEDIA_KIND_IMAGE: "img",
    MEDIA_KIND_VIDEO: "video",
}
THUMBNAIL_KEY_PREFIX = "thumb"
KEY_TOKEN_LENGTH = 7
KEY_TOKEN_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


# ============================================================================
# Ledger Layout
# ============================================================================

LEDGER_RECORD_GALLERY_ITEM = "gallery_item"
LEDGER_RECORD_COUNTER = "quota_counter"
LEDGER_COUNTER_ID_PREFIX = "counter#"
LEDGER_ACTIVE_INDEX = "active-index"
LEDGER_ACTIVE_MARKER = "ACTIVE"


# ============================================================================
# Maintenance
# ============================================================================

DEFAULT_ORPHAN_GRACE_HOURS = 24
STORAGE_BUDGET_BYTES = 500 * 1024 * 1024  # 500MB
STORAGE_WARNING_RATIO = 0.7
STORAGE_CRITICAL_RATIO = 0.9


# ============================================================================
# API Gateway Configuration
# ============================================================================

CORS_ORIGIN = "*"
CORS_METHODS = "GET,POST,PATCH,DELETE,OPTIONS"
CORS_HEADERS = "Content-Type,Authorization,X-Api-Key"
DEFAULT_CONTENT_TYPE = "application/json"


# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"
ENV_GALLERY_S3_BUCKET_NAME = "GALLERY_S3_BUCKET_NAME"
ENV_GALLERY_TABLE_NAME = "GALLERY_TABLE_NAME"
ENV_GALLERY_PUBLIC_BASE_URL = "GALLERY_PUBLIC_BASE_URL"
ENV_GALLERY_VIDEO_UPLOADS_ENABLED = "GALLERY_VIDEO_UPLOADS_ENABLED"
ENV_GALLERY_ORPHAN_GRACE_HOURS = "GALLERY_ORPHAN_GRACE_HOURS"
DEFAULT_AWS_REGION = "us-east-1"

# ============================================================================
# Helper Functions
# ============================================================================


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted file size string
    """
    size: float = float(size_bytes)

    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0

    return f"{size:.1f} TB"
