"""Tests for the DynamoDB-backed GalleryLedger."""

from collections.abc import Callable
from typing import Any

import pytest
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter
from core.infrastructure.aws.dynamodb_gallery_ledger import DynamoDBGalleryLedger
from core.models.errors import LedgerError, NotFoundError, QuotaExceededError
from core.models.gallery import MediaKind, NewGalleryItem


def new_item(media_kind: MediaKind = MediaKind.IMAGE, **fields: Any) -> NewGalleryItem:
    name = fields.pop("name", "img-1-abcdefg.jpg")
    return NewGalleryItem(
        media_kind=media_kind,
        primary_object_ref=f"https://cdn.example.test/gallery/{name}",
        content_type="image/jpeg",
        file_size=1234,
        **fields,
    )


@pytest.fixture
def ledger(dynamodb_table) -> DynamoDBGalleryLedger:
    return DynamoDBGalleryLedger(DynamoDBAdapter())


class DummyAdapter:
    """Minimal DynamoDBAdapter stub."""

    get_item: Callable[..., dict[str, Any]]
    update_item: Callable[..., dict[str, Any]]
    query: Callable[..., dict[str, Any]]
    transact_write_items: Callable[..., dict[str, Any]]

    def __init__(self) -> None:
        self.table_name = "gallery-items-test"
        self.get_item = lambda **_: {}
        self.update_item = lambda **_: {}
        self.query = lambda **_: {"Items": []}
        self.transact_write_items = lambda **_: {}


def raise_client_error(code: str, **response: Any) -> Callable[..., Any]:
    def _raise(**_: Any) -> Any:
        raise ClientError({"Error": {"Code": code, "Message": code}, **response}, "Operation")

    return _raise


class TestInsertAndCount:
    def test_insert_assigns_id_and_timestamps(self, ledger) -> None:
        item = ledger.insert(item=new_item(title="Sports Day"), limit=20)

        assert item.item_id.startswith("gal_")
        assert item.active is True
        assert item.created_at == item.updated_at
        assert item.title == "Sports Day"

    def test_insert_is_readable(self, ledger) -> None:
        item = ledger.insert(item=new_item(), limit=20)

        fetched = ledger.fetch(item_id=item.item_id)

        assert fetched == item

    def test_count_starts_at_zero(self, ledger) -> None:
        assert ledger.count_active(media_kind=MediaKind.IMAGE) == 0

    def test_counter_tracks_inserts_per_kind(self, ledger, dynamodb_get_item) -> None:
        ledger.insert(item=new_item(), limit=20)
        ledger.insert(item=new_item(), limit=20)
        ledger.insert(item=new_item(MediaKind.VIDEO), limit=10)

        assert ledger.count_active(media_kind=MediaKind.IMAGE) == 2
        assert ledger.count_active(media_kind=MediaKind.VIDEO) == 1
        assert dynamodb_get_item("counter#image")["record_type"] == "quota_counter"

    def test_insert_beyond_limit_is_rejected(self, ledger) -> None:
        for _ in range(3):
            ledger.insert(item=new_item(), limit=3)

        with pytest.raises(QuotaExceededError) as exc:
            ledger.insert(item=new_item(), limit=3)

        assert (exc.value.current, exc.value.limit) == (3, 3)
        assert ledger.count_active(media_kind=MediaKind.IMAGE) == 3
        assert len(ledger.list_active()) == 3

    def test_other_kind_is_not_affected_by_full_quota(self, ledger) -> None:
        ledger.insert(item=new_item(), limit=1)

        ledger.insert(item=new_item(MediaKind.VIDEO), limit=1)

        assert ledger.count_active(media_kind=MediaKind.VIDEO) == 1

    def test_counter_row_is_not_a_gallery_item(self, ledger) -> None:
        ledger.insert(item=new_item(), limit=20)

        assert ledger.fetch(item_id="counter#image") is None

    def test_insert_transaction_error_is_ledger_error(self) -> None:
        adapter = DummyAdapter()
        adapter.transact_write_items = raise_client_error("InternalServerError")

        with pytest.raises(LedgerError) as exc:
            DynamoDBGalleryLedger(adapter).insert(item=new_item(), limit=20)

        assert exc.value.error_code == "LEDGER_WRITE_FAILED"

    def test_cancellation_parsed_from_message(self) -> None:
        adapter = DummyAdapter()

        def cancelled(**_: Any) -> Any:
            raise ClientError(
                {
                    "Error": {
                        "Code": "TransactionCanceledException",
                        "Message": "Transaction cancelled, please refer cancellation reasons "
                        "for specific reasons [ConditionalCheckFailed, None]",
                    }
                },
                "TransactWriteItems",
            )

        adapter.transact_write_items = cancelled
        adapter.get_item = lambda **_: {"Item": {"item_id": "counter#image", "active_count": 20}}

        with pytest.raises(QuotaExceededError) as exc:
            DynamoDBGalleryLedger(adapter).insert(item=new_item(), limit=20)

        assert exc.value.current == 20

    def test_count_failure_is_ledger_error(self) -> None:
        adapter = DummyAdapter()
        adapter.get_item = raise_client_error("ProvisionedThroughputExceededException")

        with pytest.raises(LedgerError) as exc:
            DynamoDBGalleryLedger(adapter).count_active(media_kind=MediaKind.IMAGE)

        assert exc.value.error_code == "LEDGER_COUNT_FAILED"


class TestSoftDelete:
    def test_soft_delete_releases_quota_slot(self, ledger) -> None:
        item = ledger.insert(item=new_item(), limit=1)

        ledger.soft_delete(item_id=item.item_id)

        assert ledger.count_active(media_kind=MediaKind.IMAGE) == 0
        ledger.insert(item=new_item(), limit=1)

    def test_row_is_kept_inactive(self, ledger, dynamodb_get_item) -> None:
        item = ledger.insert(item=new_item(), limit=20)

        ledger.soft_delete(item_id=item.item_id)

        row = dynamodb_get_item(item.item_id)
        assert row["active"] is False
        assert "active_marker" not in row
        assert ledger.fetch(item_id=item.item_id).active is False

    def test_second_soft_delete_is_not_found_and_counts_once(self, ledger) -> None:
        first = ledger.insert(item=new_item(), limit=20)
        ledger.insert(item=new_item(), limit=20)

        ledger.soft_delete(item_id=first.item_id)
        with pytest.raises(NotFoundError):
            ledger.soft_delete(item_id=first.item_id)

        assert ledger.count_active(media_kind=MediaKind.IMAGE) == 1

    def test_missing_item(self, ledger) -> None:
        with pytest.raises(NotFoundError):
            ledger.soft_delete(item_id="gal_missing")

    def test_concurrent_retire_surfaces_as_not_found(self) -> None:
        adapter = DummyAdapter()
        adapter.get_item = lambda **_: {
            "Item": {
                "item_id": "gal_1",
                "record_type": "gallery_item",
                "media_kind": "image",
                "primary_object_ref": "https://cdn.example.test/a.jpg",
                "active": True,
                "featured": False,
                "order_index": 0,
                "created_at": "2024-01-01T00:00:00+00:00",
                "updated_at": "2024-01-01T00:00:00+00:00",
            }
        }
        adapter.transact_write_items = raise_client_error(
            "TransactionCanceledException",
            CancellationReasons=[{"Code": "ConditionalCheckFailed"}, {"Code": "None"}],
        )

        with pytest.raises(NotFoundError):
            DynamoDBGalleryLedger(adapter).soft_delete(item_id="gal_1")


class TestUpdate:
    def test_update_fields(self, ledger) -> None:
        item = ledger.insert(item=new_item(title="Old"), limit=20)

        updated = ledger.update(
            item_id=item.item_id,
            changes={"title": "New", "featured": True, "order_index": 4},
        )

        assert updated.title == "New"
        assert updated.featured is True
        assert updated.order_index == 4
        assert updated.primary_object_ref == item.primary_object_ref
        assert updated.updated_at >= item.updated_at

    def test_title_can_be_cleared(self, ledger) -> None:
        item = ledger.insert(item=new_item(title="Old"), limit=20)

        assert ledger.update(item_id=item.item_id, changes={"title": None}).title is None

    def test_retired_item_cannot_be_updated(self, ledger) -> None:
        item = ledger.insert(item=new_item(), limit=20)
        ledger.soft_delete(item_id=item.item_id)

        with pytest.raises(NotFoundError):
            ledger.update(item_id=item.item_id, changes={"featured": True})

    def test_missing_item_cannot_be_updated(self, ledger) -> None:
        with pytest.raises(NotFoundError):
            ledger.update(item_id="gal_missing", changes={"featured": True})

    def test_object_refs_are_not_editable(self, ledger) -> None:
        with pytest.raises(ValueError):
            ledger.update(item_id="gal_1", changes={"primary_object_ref": "https://x"})


class TestListActive:
    def test_ordering_featured_then_order_then_newest(self, ledger) -> None:
        a = ledger.insert(item=new_item(name="a.jpg", order_index=1), limit=20)
        b = ledger.insert(item=new_item(name="b.jpg", order_index=0), limit=20)
        c = ledger.insert(item=new_item(name="c.jpg", order_index=5, featured=True), limit=20)
        d = ledger.insert(item=new_item(name="d.jpg", order_index=0), limit=20)

        ids = [item.item_id for item in ledger.list_active()]

        # d is newer than b at the same order_index
        assert ids == [c.item_id, d.item_id, b.item_id, a.item_id]

    def test_retired_items_are_excluded(self, ledger) -> None:
        kept = ledger.insert(item=new_item(), limit=20)
        gone = ledger.insert(item=new_item(), limit=20)

        ledger.soft_delete(item_id=gone.item_id)

        assert [item.item_id for item in ledger.list_active()] == [kept.item_id]

    def test_filter_by_media_kind(self, ledger) -> None:
        ledger.insert(item=new_item(), limit=20)
        video = ledger.insert(item=new_item(MediaKind.VIDEO), limit=10)

        items = ledger.list_active(media_kind=MediaKind.VIDEO)

        assert [item.item_id for item in items] == [video.item_id]

    def test_counters_are_never_listed(self, ledger) -> None:
        ledger.insert(item=new_item(), limit=20)

        assert all(item.item_id.startswith("gal_") for item in ledger.list_active())

    def test_paginates_query(self) -> None:
        row = {
            "record_type": "gallery_item",
            "media_kind": "image",
            "primary_object_ref": "https://cdn.example.test/a.jpg",
            "active": True,
            "featured": False,
            "order_index": 0,
            "updated_at": "2024-01-01T00:00:00+00:00",
        }
        pages = iter(
            [
                {"Items": [{**row, "item_id": "gal_1", "created_at": "2024-01-01"}], "LastEvaluatedKey": {"k": 1}},
                {"Items": [{**row, "item_id": "gal_2", "created_at": "2024-01-02"}]},
            ]
        )
        adapter = DummyAdapter()
        adapter.query = lambda **_: next(pages)

        items = DynamoDBGalleryLedger(adapter).list_active()

        assert [item.item_id for item in items] == ["gal_2", "gal_1"]

    def test_malformed_rows_are_skipped(self) -> None:
        adapter = DummyAdapter()
        adapter.query = lambda **_: {"Items": [{"item_id": "gal_broken", "active": True}]}

        assert DynamoDBGalleryLedger(adapter).list_active() == []

    def test_query_failure_is_ledger_error(self) -> None:
        adapter = DummyAdapter()
        adapter.query = raise_client_error("InternalServerError")

        with pytest.raises(LedgerError) as exc:
            DynamoDBGalleryLedger(adapter).list_active()

        assert exc.value.error_code == "LEDGER_LIST_FAILED"
