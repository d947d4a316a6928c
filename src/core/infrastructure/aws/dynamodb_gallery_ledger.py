"""DynamoDB-backed implementation of GalleryLedger.

Table layout (partition key ``item_id``):

- Gallery rows: ``record_type = "gallery_item"``. Active rows carry
  ``active_marker = "ACTIVE"``, which feeds the sparse ``active-index`` GSI
  (hash ``active_marker``, range ``created_at``); retiring a row removes it.
- Quota counters: one row per media kind, ``item_id = "counter#<kind>"``,
  holding ``active_count``.

Inserts and soft deletes update the row and its kind's counter in a single
transaction, so the active-item ceiling holds under concurrent uploads.
"""

import uuid
from decimal import Decimal
from typing import Any

from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter, DynamoDBAdapterProtocol
from core.models.errors import LedgerError, NotFoundError, QuotaExceededError
from core.models.gallery import GalleryItem, MediaKind, NewGalleryItem
from core.repositories.gallery_ledger import GalleryLedger
from core.utils.constants import (
    ERROR_CODE_LEDGER_COUNT_FAILED,
    ERROR_CODE_LEDGER_DELETE_FAILED,
    ERROR_CODE_LEDGER_FETCH_FAILED,
    ERROR_CODE_LEDGER_INVALID_FORMAT,
    ERROR_CODE_LEDGER_LIST_FAILED,
    ERROR_CODE_LEDGER_UPDATE_FAILED,
    ERROR_CODE_LEDGER_WRITE_FAILED,
    LEDGER_ACTIVE_INDEX,
    LEDGER_ACTIVE_MARKER,
    LEDGER_COUNTER_ID_PREFIX,
    LEDGER_RECORD_COUNTER,
    LEDGER_RECORD_GALLERY_ITEM,
)
from core.utils.time import utc_now_iso

Row = dict[str, Any]

logger = Logger(UTC=True)

EDITABLE_FIELDS = frozenset({"title", "featured", "order_index"})


def _counter_key(media_kind: MediaKind) -> dict[str, str]:
    return {"item_id": f"{LEDGER_COUNTER_ID_PREFIX}{MediaKind(media_kind).value}"}


def _cancellation_codes(exc: ClientError) -> list[str | None]:
    """Per-operation failure codes of a cancelled transaction."""
    reasons = exc.response.get("CancellationReasons")
    if isinstance(reasons, list):
        return [reason.get("Code") for reason in reasons]

    # Some endpoints only report the reasons in the message:
    # "... cancellation reasons for specific reasons [ConditionalCheckFailed, None]"
    message = exc.response.get("Error", {}).get("Message", "")
    if "[" not in message:
        return []
    raw = message.rsplit("[", 1)[1].rstrip("]")
    return [None if part.strip() == "None" else part.strip() for part in raw.split(",")]


def _to_item(row: Row) -> GalleryItem:
    """Convert a raw DynamoDB row (Decimals, extra attributes) into a GalleryItem."""
    values = {
        key: int(value) if isinstance(value, Decimal) else value
        for key, value in row.items()
        if key in GalleryItem.model_fields
    }
    return GalleryItem.model_validate(values)


class DynamoDBGalleryLedger(GalleryLedger):
    """DynamoDB-backed gallery ledger with error handling.

    All boto3 errors are caught and translated into
    domain-specific errors with stable semantics.
    """

    def __init__(self, adapter: DynamoDBAdapterProtocol | None = None) -> None:
        """Initialize with DynamoDB adapter."""
        self._db: DynamoDBAdapterProtocol = adapter or DynamoDBAdapter()

    @staticmethod
    def generate_item_id() -> str:
        """Generate a unique gallery item identifier."""
        return f"gal_{uuid.uuid4().hex}"

    def count_active(self, *, media_kind: MediaKind) -> int:
        """Read the kind's active counter (strongly consistent)."""
        try:
            response = self._db.get_item(key=_counter_key(media_kind), consistent_read=True)
            counter = response.get("Item") or {}
            return max(int(counter.get("active_count", 0)), 0)

        except ClientError as exc:
            logger.error("DynamoDB counter read failed", extra={"media_kind": str(media_kind)})
            raise LedgerError(
                message="Unable to count gallery items",
                error_code=ERROR_CODE_LEDGER_COUNT_FAILED,
                details={"media_kind": MediaKind(media_kind).value},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error counting gallery items")
            raise LedgerError(
                message="Unable to count gallery items",
                error_code=ERROR_CODE_LEDGER_COUNT_FAILED,
                details={"media_kind": MediaKind(media_kind).value},
            ) from exc

    def insert(self, *, item: NewGalleryItem, limit: int) -> GalleryItem:
        """Insert an active row and claim a quota slot atomically."""
        timestamp = utc_now_iso()
        stored = GalleryItem(
            item_id=self.generate_item_id(),
            active=True,
            created_at=timestamp,
            updated_at=timestamp,
            **item.model_dump(),
        )

        row: Row = stored.model_dump(mode="json")
        row["record_type"] = LEDGER_RECORD_GALLERY_ITEM
        row["active_marker"] = LEDGER_ACTIVE_MARKER

        logger.debug(
            "Inserting gallery item",
            extra={"item_id": stored.item_id, "media_kind": stored.media_kind.value},
        )

        try:
            self._db.transact_write_items(
                transact_items=[
                    {
                        "Update": {
                            "TableName": self._db.table_name,
                            "Key": _counter_key(stored.media_kind),
                            "UpdateExpression": "SET record_type = :counter ADD active_count :one",
                            "ConditionExpression": (
                                "attribute_not_exists(active_count) OR active_count < :limit"
                            ),
                            "ExpressionAttributeValues": {
                                ":counter": LEDGER_RECORD_COUNTER,
                                ":one": 1,
                                ":limit": limit,
                            },
                        }
                    },
                    {
                        "Put": {
                            "TableName": self._db.table_name,
                            "Item": row,
                            "ConditionExpression": "attribute_not_exists(item_id)",
                        }
                    },
                ]
            )

        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            reasons = _cancellation_codes(exc) if code == "TransactionCanceledException" else []

            if reasons and reasons[0] == "ConditionalCheckFailed":
                current = self.count_active(media_kind=stored.media_kind)
                logger.warning(
                    "Gallery quota reached at insert",
                    extra={"media_kind": stored.media_kind.value, "current": current, "limit": limit},
                )
                raise QuotaExceededError(current=current, limit=limit) from exc

            logger.error("DynamoDB insert transaction failed", extra={"item_id": stored.item_id})
            raise LedgerError(
                message="Unable to save gallery item at this time",
                error_code=ERROR_CODE_LEDGER_WRITE_FAILED,
                details={"item_id": stored.item_id, "cause": code},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error inserting gallery item")
            raise LedgerError(
                message="Unable to save gallery item at this time",
                error_code=ERROR_CODE_LEDGER_WRITE_FAILED,
                details={"item_id": stored.item_id},
            ) from exc

        logger.info(
            "Gallery item created",
            extra={"item_id": stored.item_id, "media_kind": stored.media_kind.value},
        )
        return stored

    def fetch(self, *, item_id: str) -> GalleryItem | None:
        """Fetch a single row, active or not."""
        logger.debug("Fetching gallery item", extra={"item_id": item_id})

        try:
            response = self._db.get_item(key={"item_id": item_id}, consistent_read=True)
            row = response.get("Item")

            if row is None or row.get("record_type") != LEDGER_RECORD_GALLERY_ITEM:
                return None

            return _to_item(row)

        except ClientError as exc:
            logger.error("DynamoDB get_item failed", extra={"item_id": item_id})
            raise LedgerError(
                message="Unable to retrieve gallery item",
                error_code=ERROR_CODE_LEDGER_FETCH_FAILED,
                details={"item_id": item_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error fetching gallery item")
            raise LedgerError(
                message="Unable to retrieve gallery item",
                error_code=ERROR_CODE_LEDGER_INVALID_FORMAT,
                details={"item_id": item_id},
            ) from exc

    def soft_delete(self, *, item_id: str) -> None:
        """Flip ``active`` off and release the quota slot in one transaction."""
        item = self.fetch(item_id=item_id)
        if item is None or not item.active:
            raise NotFoundError(message="Gallery item not found", details={"item_id": item_id})

        try:
            self._db.transact_write_items(
                transact_items=[
                    {
                        "Update": {
                            "TableName": self._db.table_name,
                            "Key": {"item_id": item_id},
                            "UpdateExpression": (
                                "SET active = :inactive, updated_at = :now REMOVE active_marker"
                            ),
                            "ConditionExpression": "active = :active",
                            "ExpressionAttributeValues": {
                                ":inactive": False,
                                ":active": True,
                                ":now": utc_now_iso(),
                            },
                        }
                    },
                    {
                        "Update": {
                            "TableName": self._db.table_name,
                            "Key": _counter_key(item.media_kind),
                            "UpdateExpression": "ADD active_count :minus_one",
                            "ExpressionAttributeValues": {":minus_one": -1},
                        }
                    },
                ]
            )

        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            reasons = _cancellation_codes(exc) if code == "TransactionCanceledException" else []

            if reasons and reasons[0] == "ConditionalCheckFailed":
                # Retired concurrently between fetch and write
                raise NotFoundError(
                    message="Gallery item not found",
                    details={"item_id": item_id},
                ) from exc

            logger.error("DynamoDB soft delete failed", extra={"item_id": item_id})
            raise LedgerError(
                message="Unable to delete gallery item",
                error_code=ERROR_CODE_LEDGER_DELETE_FAILED,
                details={"item_id": item_id, "cause": code},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error soft deleting gallery item")
            raise LedgerError(
                message="Unable to delete gallery item",
                error_code=ERROR_CODE_LEDGER_DELETE_FAILED,
                details={"item_id": item_id},
            ) from exc

        logger.info("Gallery item retired", extra={"item_id": item_id})

    def update(self, *, item_id: str, changes: dict[str, Any]) -> GalleryItem:
        """Apply editor changes to an active row and return the stored result."""
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields are not editable: {', '.join(sorted(unknown))}")

        fields = {**changes, "updated_at": utc_now_iso()}
        names = {f"#{name}": name for name in fields}
        values: dict[str, Any] = {f":{name}": value for name, value in fields.items()}
        values[":active"] = True

        try:
            response = self._db.update_item(
                Key={"item_id": item_id},
                UpdateExpression="SET " + ", ".join(f"#{name} = :{name}" for name in fields),
                ConditionExpression="active = :active",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )

        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise NotFoundError(
                    message="Gallery item not found",
                    details={"item_id": item_id},
                ) from exc

            logger.error("DynamoDB update_item failed", extra={"item_id": item_id})
            raise LedgerError(
                message="Unable to update gallery item",
                error_code=ERROR_CODE_LEDGER_UPDATE_FAILED,
                details={"item_id": item_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error updating gallery item")
            raise LedgerError(
                message="Unable to update gallery item",
                error_code=ERROR_CODE_LEDGER_UPDATE_FAILED,
                details={"item_id": item_id},
            ) from exc

        logger.info(
            "Gallery item updated",
            extra={"item_id": item_id, "fields": sorted(changes)},
        )
        return _to_item(response["Attributes"])

    def list_active(self, *, media_kind: MediaKind | None = None) -> list[GalleryItem]:
        """Query the sparse active index and apply the gallery ordering.

        NOTE:
        - The index returns newest first; featured/order_index ordering is
          applied in memory (the gallery holds at most a few dozen rows).
        """
        query_kwargs: dict[str, Any] = {
            "IndexName": LEDGER_ACTIVE_INDEX,
            "KeyConditionExpression": Key("active_marker").eq(LEDGER_ACTIVE_MARKER),
            "ScanIndexForward": False,
        }

        if media_kind is not None:
            query_kwargs["FilterExpression"] = Attr("media_kind").eq(MediaKind(media_kind).value)

        rows: list[Row] = []
        last_evaluated_key: dict[str, Any] | None = None

        try:
            while True:
                if last_evaluated_key:
                    query_kwargs["ExclusiveStartKey"] = last_evaluated_key

                response = self._db.query(**query_kwargs)
                page_rows = response.get("Items", [])

                if not isinstance(page_rows, list):
                    raise LedgerError(
                        message="Invalid query response from DynamoDB",
                        error_code=ERROR_CODE_LEDGER_LIST_FAILED,
                    )

                rows.extend(page_rows)

                last_evaluated_key = response.get("LastEvaluatedKey")
                if not last_evaluated_key:
                    break

        except LedgerError:
            raise

        except ClientError as exc:
            logger.error("DynamoDB query failed", extra={"index": LEDGER_ACTIVE_INDEX})
            raise LedgerError(
                message="Unable to list gallery items",
                error_code=ERROR_CODE_LEDGER_LIST_FAILED,
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error listing gallery items")
            raise LedgerError(
                message="Unable to list gallery items",
                error_code=ERROR_CODE_LEDGER_LIST_FAILED,
            ) from exc

        items: list[GalleryItem] = []
        for row in rows:
            try:
                item = _to_item(row)
            except ValueError as exc:
                logger.warning(
                    "Skipping malformed gallery row",
                    extra={"item_id": row.get("item_id"), "error": str(exc)},
                )
                continue
            if item.active:
                items.append(item)

        # Stable sorts: newest first, then featured first, then manual order
        items.sort(key=lambda entry: entry.created_at, reverse=True)
        items.sort(key=lambda entry: (not entry.featured, entry.order_index))

        logger.info("Active gallery items listed", extra={"count": len(items)})
        return items
