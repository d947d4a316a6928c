"""Business logic for editing gallery items.

Edits are pure ledger mutations of the display fields. Object references
are never touched, and retired items cannot be edited.
"""

import asyncio

from aws_lambda_powertools import Logger

from core.infrastructure.aws.dynamodb_gallery_ledger import DynamoDBGalleryLedger
from core.models.errors import GalleryServiceError, NotFoundError
from core.models.gallery import GalleryItem, GalleryItemPatch
from core.models.results import Failure, Success
from core.repositories.gallery_ledger import GalleryLedger

logger = Logger(UTC=True)


class UpdateService:
    """Application service responsible for editing gallery items."""

    def __init__(self, *, ledger: GalleryLedger | None = None) -> None:
        self.ledger = ledger or DynamoDBGalleryLedger()

    async def update(self, item_id: str, patch: GalleryItemPatch) -> Success[GalleryItem] | Failure:
        """Apply ``patch`` to an active item.

        An empty patch returns the current item unchanged.
        """
        try:
            item = await self._update(item_id, patch)
        except GalleryServiceError as exc:
            logger.warning(
                "Gallery item update failed",
                extra={"item_id": item_id, "error_code": exc.error_code},
            )
            return Failure.from_exception(exc)

        return Success[GalleryItem](value=item)

    async def _update(self, item_id: str, patch: GalleryItemPatch) -> GalleryItem:
        changes = patch.changes()

        if not changes:
            item = await asyncio.to_thread(self.ledger.fetch, item_id=item_id)
            if item is None or not item.active:
                raise NotFoundError(
                    message="Gallery item not found",
                    details={"item_id": item_id},
                )
            return item

        return await asyncio.to_thread(self.ledger.update, item_id=item_id, changes=changes)
