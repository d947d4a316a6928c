"""Orphan object reconciliation and storage usage reporting.

Uploads precede ledger inserts, and physical deletion after a retire is
best-effort, so the bucket can hold objects that no active gallery row
references. The sweep here removes them once they are older than a grace
period, which keeps in-flight uploads (stored but not yet recorded) safe.
"""

from datetime import datetime, timedelta, timezone
from typing import Literal

from aws_lambda_powertools import Logger
from pydantic import BaseModel, Field

from core.models.errors import ObjectStoreError
from core.models.gallery import MediaKind
from core.repositories.gallery_ledger import GalleryLedger
from core.repositories.object_store import ObjectStore, StoredObject
from core.utils.constants import (
    DEFAULT_ORPHAN_GRACE_HOURS,
    GALLERY_KEY_PREFIX,
    KIND_DIRECTORIES,
    STORAGE_BUDGET_BYTES,
    STORAGE_CRITICAL_RATIO,
    STORAGE_WARNING_RATIO,
    format_file_size,
)

logger = Logger(UTC=True)

StorageStatus = Literal["healthy", "warning", "critical"]


class StorageUsage(BaseModel):
    """Byte and object totals under the gallery prefix."""

    object_count: int
    total_bytes: int
    budget_bytes: int
    usage_ratio: float
    status: StorageStatus
    bytes_by_kind: dict[str, int] = Field(default_factory=dict)


class ReconciliationReport(BaseModel):
    """Outcome of one orphan sweep."""

    scanned: int
    referenced: int
    orphaned: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    skipped_recent: list[str] = Field(default_factory=list)
    dry_run: bool = False
    usage: StorageUsage


def storage_status(
    ratio: float,
    *,
    warning_ratio: float = STORAGE_WARNING_RATIO,
    critical_ratio: float = STORAGE_CRITICAL_RATIO,
) -> StorageStatus:
    if ratio >= critical_ratio:
        return "critical"
    if ratio >= warning_ratio:
        return "warning"
    return "healthy"


def summarize_usage(
    objects: list[StoredObject],
    *,
    budget_bytes: int = STORAGE_BUDGET_BYTES,
) -> StorageUsage:
    """Aggregate object sizes and grade them against the storage budget."""
    total = sum(obj.size for obj in objects)
    by_kind: dict[str, int] = {kind.value: 0 for kind in MediaKind}

    for obj in objects:
        for kind, directory in KIND_DIRECTORIES.items():
            if obj.key.startswith(f"{GALLERY_KEY_PREFIX}/{directory}/"):
                by_kind[kind] += obj.size
                break

    ratio = total / budget_bytes if budget_bytes > 0 else 0.0
    return StorageUsage(
        object_count=len(objects),
        total_bytes=total,
        budget_bytes=budget_bytes,
        usage_ratio=round(ratio, 4),
        status=storage_status(ratio),
        bytes_by_kind=by_kind,
    )


class OrphanReconciler:
    """Removes stored objects that no active gallery item references."""

    def __init__(
        self,
        *,
        store: ObjectStore,
        ledger: GalleryLedger,
        budget_bytes: int = STORAGE_BUDGET_BYTES,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._budget_bytes = budget_bytes

    def referenced_keys(self) -> set[str]:
        """Object keys referenced by active rows (primary and thumbnail)."""
        keys: set[str] = set()

        for item in self._ledger.list_active():
            for ref in (item.primary_object_ref, item.thumbnail_object_ref):
                if not ref:
                    continue
                key = self._store.key_from_ref(ref)
                if key:
                    keys.add(key)

        return keys

    def sweep(
        self,
        *,
        grace_period: timedelta = timedelta(hours=DEFAULT_ORPHAN_GRACE_HOURS),
        dry_run: bool = False,
        now: datetime | None = None,
    ) -> ReconciliationReport:
        """Delete unreferenced objects older than ``grace_period``.

        The listing is taken before the ledger read, so an object uploaded
        and recorded in between is never mistaken for an orphan.

        Raises:
            ObjectStoreError: If the bucket cannot be listed
            LedgerError: If active rows cannot be read
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - grace_period

        objects = self._store.list_objects(prefix=f"{GALLERY_KEY_PREFIX}/")
        referenced = self.referenced_keys()

        report = ReconciliationReport(
            scanned=len(objects),
            referenced=sum(1 for obj in objects if obj.key in referenced),
            dry_run=dry_run,
            usage=summarize_usage(objects, budget_bytes=self._budget_bytes),
        )

        for obj in objects:
            if obj.key in referenced:
                continue

            if obj.last_modified > cutoff:
                report.skipped_recent.append(obj.key)
                continue

            report.orphaned.append(obj.key)
            if dry_run:
                continue

            try:
                self._store.delete(key=obj.key)
                report.removed.append(obj.key)
            except ObjectStoreError as exc:
                logger.warning(
                    "Failed to remove orphan object",
                    extra={"key": obj.key, "error": exc.message},
                )
                report.failed.append(obj.key)

        logger.info(
            "Orphan sweep finished",
            extra={
                "scanned": report.scanned,
                "orphaned": len(report.orphaned),
                "removed": len(report.removed),
                "failed": len(report.failed),
                "dry_run": dry_run,
                "storage_used": format_file_size(report.usage.total_bytes),
                "storage_status": report.usage.status,
            },
        )

        if report.usage.status != "healthy":
            logger.warning(
                "Gallery storage above threshold",
                extra={
                    "usage_ratio": report.usage.usage_ratio,
                    "status": report.usage.status,
                },
            )

        return report
