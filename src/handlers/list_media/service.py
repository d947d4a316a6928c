"""
Business logic for listing active gallery items.
"""

import asyncio

from aws_lambda_powertools import Logger

from core.infrastructure.aws.dynamodb_gallery_ledger import DynamoDBGalleryLedger
from core.models.errors import GalleryServiceError
from core.models.gallery import GalleryItem, MediaKind
from core.models.results import Failure, Success
from core.repositories.gallery_ledger import GalleryLedger

logger = Logger(UTC=True)


class ListService:
    """Application service responsible for listing the public gallery.

    Ordering is featured first, then ``order_index`` ascending, then newest
    first. Retired items are never returned.
    """

    def __init__(self, *, ledger: GalleryLedger | None = None) -> None:
        """Initialize list service with required dependencies."""
        self.ledger = ledger or DynamoDBGalleryLedger()

    async def list_active(
        self,
        media_kind: MediaKind | None = None,
    ) -> Success[list[GalleryItem]] | Failure:
        try:
            items = await asyncio.to_thread(self.ledger.list_active, media_kind=media_kind)
        except GalleryServiceError as exc:
            logger.exception("Failed to list gallery items")
            return Failure.from_exception(exc)

        logger.info(
            "Gallery items listed successfully",
            extra={
                "count": len(items),
                "media_kind": media_kind.value if media_kind else None,
            },
        )
        return Success[list[GalleryItem]](value=items)
