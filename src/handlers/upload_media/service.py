"""Business logic for gallery media ingestion.

This module turns a raw photo or video into an active gallery item:
quota check, compression (images), upload, public reference, ledger insert.
The ledger row is written last, so an item becomes visible only once its
object is stored. Failures after the upload leave the object behind for the
orphan reconciler rather than attempting inline cleanup.
"""

import asyncio
import os
from collections.abc import Callable
from pathlib import Path

from aws_lambda_powertools import Logger

from core.infrastructure.aws.dynamodb_gallery_ledger import DynamoDBGalleryLedger
from core.infrastructure.aws.s3_object_store import S3ObjectStore
from core.media.compressor import SizeEnvelopeCompressor
from core.media.video_thumbnail import VideoThumbnailExtractor
from core.models.errors import (
    CompressionFailedError,
    GalleryServiceError,
    LedgerError,
    LedgerWriteFailedError,
    QuotaExceededError,
    StorageNotConfiguredError,
    UploadFailedError,
    ValidationError,
)
from core.models.gallery import GalleryItem, IngestMetadata, MediaKind, NewGalleryItem
from core.models.results import Failure, Rejected, Success
from core.repositories.gallery_ledger import GalleryLedger
from core.repositories.object_store import ObjectStore
from core.services.quota_gate import QuotaGate
from core.utils.constants import (
    IMAGE_MIME_TYPES,
    IMAGE_SIZE_TOLERANCE,
    OUTPUT_IMAGE_MIME_TYPE,
    SOFT_MAX_VIDEO_BYTES,
    TARGET_IMAGE_BYTES,
    VIDEO_MIME_TYPES,
    format_file_size,
)
from core.utils.keys import ObjectKeyAllocator
from core.utils.mime import detect_mime_type

logger = Logger(UTC=True)

ProgressCallback = Callable[[int, str], None]
MediaSource = bytes | str | os.PathLike[str]


class IngestionPipeline:
    """Application service responsible for media ingestion.

    This service orchestrates:
    - Storage pre-flight and quota admission
    - Image compression into the size envelope
    - Object upload and public reference resolution
    - Ledger insertion (the point of visibility)

    It holds no per-request state; one instance can serve concurrent ingests.
    """

    def __init__(
        self,
        *,
        store: ObjectStore | None = None,
        ledger: GalleryLedger | None = None,
        compressor: SizeEnvelopeCompressor | None = None,
        allocator: ObjectKeyAllocator | None = None,
        thumbnails: VideoThumbnailExtractor | None = None,
        quota_gate: QuotaGate | None = None,
    ) -> None:
        """Initialize the pipeline; AWS-backed defaults are used for omitted collaborators."""
        self.store = store or S3ObjectStore()
        self.ledger = ledger or DynamoDBGalleryLedger()
        self.compressor = compressor or SizeEnvelopeCompressor()
        self.allocator = allocator or ObjectKeyAllocator()
        self.thumbnails = thumbnails or VideoThumbnailExtractor()
        self.quota_gate = quota_gate or QuotaGate(self.ledger)

    async def ingest(
        self,
        media_kind: MediaKind | str,
        source: MediaSource,
        metadata: IngestMetadata | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> Success[GalleryItem] | Failure:
        """Ingest one photo or video into the gallery.

        Args:
            media_kind: ``image`` or ``video``
            source: Raw bytes, or a path to a local file
            metadata: Title, featured flag and uploader
            on_progress: Optional ``(percent, label)`` callback

        Returns:
            ``Success`` wrapping the stored item, or ``Failure`` with a typed
            error. No ledger row exists after a failure.
        """
        try:
            item = await self._run(media_kind, source, metadata or IngestMetadata(), on_progress)
        except GalleryServiceError as exc:
            logger.warning(
                "Media ingestion failed",
                extra={"error_code": exc.error_code, "error": exc.message},
            )
            return Failure.from_exception(exc)

        return Success[GalleryItem](value=item)

    async def _run(
        self,
        media_kind: MediaKind | str,
        source: MediaSource,
        metadata: IngestMetadata,
        on_progress: ProgressCallback | None,
    ) -> GalleryItem:
        try:
            kind = MediaKind(media_kind)
        except ValueError as exc:
            raise ValidationError(
                message="Unsupported media kind",
                details={"media_kind": str(media_kind)},
            ) from exc

        logger.debug("Starting media ingestion", extra={"media_kind": kind.value})

        # Step 1: Storage must exist before anything else is attempted
        if not await asyncio.to_thread(self.store.bucket_exists):
            raise StorageNotConfiguredError(
                message="Storage bucket not found. Please create the gallery bucket before uploading.",
            )

        # Step 2: Advisory quota check, before any expensive work
        admission = await self.quota_gate.admit(kind)
        if isinstance(admission, Rejected):
            raise QuotaExceededError(current=admission.current_count, limit=admission.limit)

        # Step 3: Prepare the bytes to store
        if kind is MediaKind.IMAGE:
            _report(on_progress, 10, "compressing")
            raw = await _read_source(source)
            data, content_type = await self._prepare_image(raw)
            _report(on_progress, 30, "compressed")
            _report(on_progress, 40, "reading")
        else:
            _report(on_progress, 10, "reading")
            data = await _read_source(source)
            content_type = _video_content_type(data)

        # Step 4: Upload under a fresh key
        _report(on_progress, 50, "preparing upload")
        key = self.allocator.allocate(kind, content_type)

        _report(on_progress, 60, "uploading")
        await asyncio.to_thread(self.store.put, key=key, data=data, content_type=content_type)

        try:
            primary_ref = await asyncio.to_thread(self.store.get_public_ref, key=key)
        except GalleryServiceError as exc:
            _log_orphan(key, reason=exc.error_code)
            raise UploadFailedError(
                message="Failed to get media URL",
                details={"key": key},
            ) from exc

        stored_keys = [key]
        thumbnail_ref = None
        if kind is MediaKind.VIDEO:
            thumbnail = await self._store_thumbnail(data)
            if thumbnail is not None:
                thumbnail_key, thumbnail_ref = thumbnail
                stored_keys.append(thumbnail_key)

        # Step 5: Record the item; this makes it visible
        _report(on_progress, 90, "finalizing")
        new_item = NewGalleryItem(
            media_kind=kind,
            title=metadata.title,
            primary_object_ref=primary_ref,
            thumbnail_object_ref=thumbnail_ref,
            featured=metadata.featured,
            uploaded_by=metadata.uploaded_by,
            content_type=content_type,
            file_size=len(data),
        )

        try:
            item = await asyncio.to_thread(
                self.ledger.insert,
                item=new_item,
                limit=self.quota_gate.limit_for(kind),
            )
        except QuotaExceededError:
            # Another upload took the last slot between admission and insert
            _log_orphan(*stored_keys, reason="quota")
            raise
        except LedgerError as exc:
            _log_orphan(*stored_keys, reason=exc.error_code)
            raise LedgerWriteFailedError(
                message="Unable to save gallery item",
                details={"key": key},
            ) from exc

        _report(on_progress, 100, "complete")
        logger.info(
            "Media ingested successfully",
            extra={
                "item_id": item.item_id,
                "media_kind": kind.value,
                "key": key,
                "size": format_file_size(len(data)),
            },
        )
        return item

    async def _prepare_image(self, raw: bytes) -> tuple[bytes, str]:
        """Compress an image, falling back to the raw bytes when they are a known image format."""
        try:
            result = await asyncio.to_thread(self.compressor.compress, raw)
        except CompressionFailedError:
            fallback_type = _detect(raw)
            if fallback_type not in IMAGE_MIME_TYPES:
                raise

            logger.warning(
                "Compression failed, uploading original image",
                extra={"content_type": fallback_type, "size": len(raw)},
            )
            return raw, fallback_type

        if result.size > TARGET_IMAGE_BYTES * IMAGE_SIZE_TOLERANCE:
            logger.warning(
                "Compressed image exceeds size envelope",
                extra={
                    "size": format_file_size(result.size),
                    "target": format_file_size(TARGET_IMAGE_BYTES),
                    "quality": result.quality,
                },
            )

        return result.data, OUTPUT_IMAGE_MIME_TYPE

    async def _store_thumbnail(self, video: bytes) -> tuple[str, str] | None:
        """Derive and upload a video thumbnail, returning its key and public ref.

        Any failure just omits the thumbnail.
        """
        thumbnail = await asyncio.to_thread(self.thumbnails.extract, video)
        if thumbnail is None:
            return None

        key = self.allocator.allocate_thumbnail()
        try:
            await asyncio.to_thread(
                self.store.put, key=key, data=thumbnail, content_type=OUTPUT_IMAGE_MIME_TYPE
            )
            ref = await asyncio.to_thread(self.store.get_public_ref, key=key)
        except GalleryServiceError as exc:
            logger.warning(
                "Thumbnail upload failed, continuing without thumbnail",
                extra={"key": key, "error": exc.message},
            )
            return None

        return key, ref


def _report(on_progress: ProgressCallback | None, percent: int, label: str) -> None:
    if on_progress is None:
        return

    try:
        on_progress(percent, label)
    except Exception:
        logger.exception("Progress callback failed", extra={"percent": percent, "label": label})


async def _read_source(source: MediaSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    else:
        try:
            data = await asyncio.to_thread(Path(source).read_bytes)
        except OSError as exc:
            raise ValidationError(
                message="Unable to read media source",
                details={"source": str(source)},
            ) from exc

    if not data:
        raise ValidationError(message="Media source is empty")

    return data


def _detect(data: bytes) -> str | None:
    try:
        return detect_mime_type(data)
    except ValueError:
        return None


def _video_content_type(data: bytes) -> str:
    content_type = _detect(data)
    if content_type not in VIDEO_MIME_TYPES:
        raise ValidationError(
            message="Unsupported video format",
            details={"detected": content_type},
        )

    if len(data) > SOFT_MAX_VIDEO_BYTES:
        logger.warning(
            "Video exceeds recommended size",
            extra={
                "size": format_file_size(len(data)),
                "recommended": format_file_size(SOFT_MAX_VIDEO_BYTES),
            },
        )

    return content_type


def _log_orphan(*keys: str, reason: str) -> None:
    for key in keys:
        logger.error(
            "Uploaded object not recorded, left for reconciliation",
            extra={"key": key, "reason": reason},
        )
