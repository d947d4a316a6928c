"""
Scheduled Lambda handler that removes orphaned gallery objects.

Triggered by an EventBridge schedule. The event may override the sweep:
{
    "dry_run": true,        # report orphans without deleting
    "grace_hours": 48       # minimum object age before removal
}
"""

import os
from datetime import timedelta
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.infrastructure.aws.dynamodb_gallery_ledger import DynamoDBGalleryLedger
from core.infrastructure.aws.s3_object_store import S3ObjectStore
from core.services.reconciliation import OrphanReconciler
from core.utils.constants import DEFAULT_ORPHAN_GRACE_HOURS, ENV_GALLERY_ORPHAN_GRACE_HOURS

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


def grace_period_from(event: dict[str, Any]) -> timedelta:
    """Resolve the grace period: event override, then environment, then default."""
    raw = event.get("grace_hours")
    if raw is None:
        raw = os.getenv(ENV_GALLERY_ORPHAN_GRACE_HOURS, DEFAULT_ORPHAN_GRACE_HOURS)

    hours = float(raw)
    if hours < 0:
        raise ValueError("grace_hours must not be negative")

    return timedelta(hours=hours)


@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Run one orphan sweep and return its report."""
    event = event or {}
    dry_run = bool(event.get("dry_run", False))
    grace_period = grace_period_from(event)

    logger.info(
        "Starting orphan reconciliation",
        extra={
            "dry_run": dry_run,
            "grace_hours": grace_period.total_seconds() / 3600,
            "request_id": getattr(context, "aws_request_id", None),
        },
    )

    reconciler = OrphanReconciler(store=S3ObjectStore(), ledger=DynamoDBGalleryLedger())
    report = reconciler.sweep(grace_period=grace_period, dry_run=dry_run)

    metrics.add_metric(name="OrphanObjectsRemoved", unit=MetricUnit.Count, value=len(report.removed))

    return report.model_dump(mode="json")
