"""Abstract contract for gallery item persistence."""

from abc import ABC, abstractmethod
from typing import Any

from core.models.gallery import GalleryItem, MediaKind, NewGalleryItem


class GalleryLedger(ABC):
    """Contract for recording gallery items and their lifecycle.

    The ledger is the single source of truth for which items are active.
    Implementations could be DynamoDB, PostgreSQL, etc.
    """

    @abstractmethod
    def count_active(self, *, media_kind: MediaKind) -> int:
        """Count active items of a kind.

        Raises:
            LedgerError: If the count cannot be read
        """

    @abstractmethod
    def insert(self, *, item: NewGalleryItem, limit: int) -> GalleryItem:
        """Insert a new active item, enforcing the kind's ceiling.

        The ledger assigns ``item_id``, ``created_at`` and ``updated_at``.

        Args:
            item: Row content; the object references must already exist
            limit: Maximum active items of ``item.media_kind``

        Returns:
            The stored item

        Raises:
            QuotaExceededError: If the kind is already at ``limit``
            LedgerError: If the write fails
        """

    @abstractmethod
    def fetch(self, *, item_id: str) -> GalleryItem | None:
        """Fetch an item regardless of its active flag.

        Raises:
            LedgerError: If the fetch fails
        """

    @abstractmethod
    def soft_delete(self, *, item_id: str) -> None:
        """Mark an active item inactive and release its quota slot.

        Raises:
            NotFoundError: If the item is missing or already inactive
            LedgerError: If the write fails
        """

    @abstractmethod
    def update(self, *, item_id: str, changes: dict[str, Any]) -> GalleryItem:
        """Apply editor changes (title, featured, order_index) to an active item.

        Raises:
            NotFoundError: If the item is missing or inactive
            LedgerError: If the write fails
        """

    @abstractmethod
    def list_active(self, *, media_kind: MediaKind | None = None) -> list[GalleryItem]:
        """List active items ordered featured first, then order_index, then newest.

        Raises:
            LedgerError: If the query fails
        """
