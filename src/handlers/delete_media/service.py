"""Business logic for gallery item retirement.

Retiring is a logical delete: the ledger flips the row inactive, which is
the authoritative step. Physical object deletion follows as best-effort
cleanup; objects that survive it are picked up by the orphan reconciler.
"""

import asyncio

from aws_lambda_powertools import Logger

from core.infrastructure.aws.dynamodb_gallery_ledger import DynamoDBGalleryLedger
from core.infrastructure.aws.s3_object_store import S3ObjectStore
from core.models.errors import GalleryServiceError, NotFoundError
from core.models.gallery import GalleryItem
from core.models.results import Failure, Retired, Success
from core.repositories.gallery_ledger import GalleryLedger
from core.repositories.object_store import ObjectStore
from core.utils.time import utc_now_iso

logger = Logger(UTC=True)


class RetentionManager:
    """Application service responsible for retiring gallery items.

    This service orchestrates:
    - Validation that the item exists and is active
    - Soft deletion in the ledger
    - Best-effort removal of the stored objects
    """

    def __init__(
        self,
        *,
        store: ObjectStore | None = None,
        ledger: GalleryLedger | None = None,
    ) -> None:
        """Initialize the retention manager with required infrastructure dependencies."""
        self.store = store or S3ObjectStore()
        self.ledger = ledger or DynamoDBGalleryLedger()

    async def retire(self, item_id: str) -> Success[Retired] | Failure:
        """Retire an item and clean up its objects.

        Returns:
            ``Success`` wrapping a ``Retired`` summary, or ``Failure`` with
            ``NOT_FOUND`` when the item is missing or already retired
        """
        try:
            retired = await self._retire(item_id)
        except GalleryServiceError as exc:
            logger.warning(
                "Gallery item retirement failed",
                extra={"item_id": item_id, "error_code": exc.error_code},
            )
            return Failure.from_exception(exc)

        return Success[Retired](value=retired)

    async def _retire(self, item_id: str) -> Retired:
        logger.debug("Starting gallery item retirement", extra={"item_id": item_id})

        # Step 1: Confirm the item exists and is still active
        item = await asyncio.to_thread(self.ledger.fetch, item_id=item_id)
        if item is None or not item.active:
            logger.warning("Gallery item not found", extra={"item_id": item_id})
            raise NotFoundError(
                message="Gallery item not found",
                details={"item_id": item_id},
            )

        # Step 2: Soft delete (authoritative); a concurrent retire raises NotFoundError
        await asyncio.to_thread(self.ledger.soft_delete, item_id=item_id)
        retired_at = utc_now_iso()

        # Step 3: Best-effort physical cleanup, never rolled back
        removed: list[str] = []
        failed: list[str] = []

        for key in self._object_keys(item):
            try:
                await asyncio.to_thread(self.store.delete, key=key)
                removed.append(key)
            except GalleryServiceError as exc:
                logger.warning(
                    "Failed to delete stored object, leaving it for reconciliation",
                    extra={"item_id": item_id, "key": key, "error": exc.message},
                )
                failed.append(key)

        logger.info(
            "Gallery item retired",
            extra={"item_id": item_id, "removed": len(removed), "failed": len(failed)},
        )

        return Retired(
            item_id=item_id,
            retired_at=retired_at,
            removed_keys=removed,
            failed_keys=failed,
        )

    def _object_keys(self, item: GalleryItem) -> list[str]:
        keys: list[str] = []

        for ref in (item.primary_object_ref, item.thumbnail_object_ref):
            if not ref:
                continue

            key = self.store.key_from_ref(ref)
            if key is None:
                logger.warning(
                    "Could not derive object key from reference",
                    extra={"item_id": item.item_id, "ref": ref},
                )
                continue

            if key not in keys:
                keys.append(key)

        return keys
