"""Per-kind capacity check performed before any expensive ingest work."""

import asyncio

from aws_lambda_powertools import Logger

from core.models.gallery import MediaKind
from core.models.results import Allowed, Rejected
from core.repositories.gallery_ledger import GalleryLedger
from core.utils.constants import QUOTA_LIMITS

logger = Logger(UTC=True)


class QuotaGate:
    """Admits or rejects a new item based on the kind's active count.

    The check is advisory: the ledger enforces the ceiling again when the
    row is inserted.
    """

    def __init__(self, ledger: GalleryLedger, *, limits: dict[str, int] | None = None) -> None:
        self._ledger = ledger
        self._limits = dict(limits or QUOTA_LIMITS)

    def limit_for(self, media_kind: MediaKind) -> int:
        return self._limits[MediaKind(media_kind).value]

    async def admit(self, media_kind: MediaKind) -> Allowed | Rejected:
        """Compare the active count of ``media_kind`` against its ceiling.

        Raises:
            LedgerError: If the count cannot be read
        """
        kind = MediaKind(media_kind)
        limit = self.limit_for(kind)
        current = await asyncio.to_thread(self._ledger.count_active, media_kind=kind)

        if current >= limit:
            logger.info(
                "Quota gate rejected upload",
                extra={"media_kind": kind.value, "current": current, "limit": limit},
            )
            return Rejected(media_kind=kind, current_count=current, limit=limit)

        return Allowed(media_kind=kind, current_count=current, limit=limit)
