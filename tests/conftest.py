"""
Pytest configuration and fixtures for gallery service tests.
Provides AWS mocking, DynamoDB and S3 fixtures with proper cleanup,
in-memory collaborators, and generated test media.
"""

import io
import os
from collections.abc import Callable
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("GALLERY_S3_BUCKET_NAME", "gallery-media-test")
os.environ.setdefault("GALLERY_TABLE_NAME", "gallery-items-test")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "gallery-test")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "GalleryTest")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")

import boto3  # noqa: E402
import pytest  # noqa: E402
from botocore.exceptions import ClientError  # noqa: E402
from moto import mock_aws  # noqa: E402
from PIL import Image  # noqa: E402

from core.models.errors import NotFoundError, ObjectKeyConflictError, QuotaExceededError  # noqa: E402
from core.models.gallery import GalleryItem, MediaKind, NewGalleryItem  # noqa: E402
from core.repositories.gallery_ledger import GalleryLedger  # noqa: E402
from core.repositories.object_store import ObjectStore, StoredObject  # noqa: E402
from core.utils.time import utc_now_iso  # noqa: E402

PUBLIC_BASE_URL = "https://cdn.example.test/gallery-media-test"


# ============================================================================
# AWS (moto)
# ============================================================================


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


def _create_gallery_table(dynamodb_resource):
    """Helper to create the gallery table with its sparse active index."""
    return dynamodb_resource.create_table(
        TableName=os.getenv("GALLERY_TABLE_NAME"),
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "item_id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "item_id", "AttributeType": "S"},
            {"AttributeName": "active_marker", "AttributeType": "S"},
            {"AttributeName": "created_at", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": "active-index",
                "KeySchema": [
                    {"AttributeName": "active_marker", "KeyType": "HASH"},
                    {"AttributeName": "created_at", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    )


@pytest.fixture(scope="function")
def dynamodb_table(dynamodb_resource):
    """
    Create the gallery table for testing.

    moto discards the table when the mock context exits.
    """
    table = _create_gallery_table(dynamodb_resource)
    table.wait_until_exists()
    return table


@pytest.fixture
def dynamodb_get_item(dynamodb_table) -> Callable[[str], dict[str, Any] | None]:
    """
    Helper to read a raw row from DynamoDB.

    Usage:
        row = dynamodb_get_item("counter#image")
    """

    def _get(item_id: str) -> dict[str, Any] | None:
        response: dict[str, Any] = dynamodb_table.get_item(
            Key={"item_id": item_id}, ConsistentRead=True
        )
        return response.get("Item")

    return _get


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    """S3 client for bucket operations."""
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_bucket(s3_client):
    """Create the gallery bucket; moto discards it when the mock context exits."""
    bucket_name = os.getenv("GALLERY_S3_BUCKET_NAME")

    try:
        s3_client.create_bucket(Bucket=bucket_name)
    except ClientError as e:
        if e.response["Error"]["Code"] != "BucketAlreadyOwnedByYou":
            raise

    return s3_client


@pytest.fixture
def s3_put_object(s3_bucket) -> Callable[..., dict[str, Any]]:
    """
    Helper to upload an object to S3.

    Usage:
        s3_put_object("gallery/images/img-1-abc.jpg", data, "image/jpeg")
    """

    def _put(key: str, body: bytes = b"data", content_type: str = "application/octet-stream"):
        return s3_bucket.put_object(
            Bucket=os.getenv("GALLERY_S3_BUCKET_NAME"),
            Key=key,
            Body=body,
            ContentType=content_type,
        )

    return _put


@pytest.fixture
def s3_keys(s3_bucket) -> Callable[[], list[str]]:
    """Helper listing every key in the gallery bucket."""

    def _keys() -> list[str]:
        response = s3_bucket.list_objects_v2(Bucket=os.getenv("GALLERY_S3_BUCKET_NAME"))
        return [obj["Key"] for obj in response.get("Contents", [])]

    return _keys


# ============================================================================
# In-memory collaborators
# ============================================================================


class InMemoryObjectStore(ObjectStore):
    """Dict-backed ObjectStore recording every call."""

    def __init__(self, *, bucket_present: bool = True) -> None:
        self.bucket_present = bucket_present
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.modified: dict[str, datetime] = {}
        self.calls: list[tuple[str, str | None]] = []

    def bucket_exists(self) -> bool:
        self.calls.append(("bucket_exists", None))
        return self.bucket_present

    def put(self, *, key: str, data: bytes, content_type: str) -> None:
        self.calls.append(("put", key))
        if key in self.objects:
            raise ObjectKeyConflictError(message="An object already exists under this key")
        self.objects[key] = (data, content_type)
        self.modified[key] = datetime.now(timezone.utc)

    def get_public_ref(self, *, key: str) -> str:
        self.calls.append(("get_public_ref", key))
        return f"{PUBLIC_BASE_URL}/{key}"

    def delete(self, *, key: str) -> None:
        self.calls.append(("delete", key))
        self.objects.pop(key, None)
        self.modified.pop(key, None)

    def list_objects(self, *, prefix: str) -> list[StoredObject]:
        return [
            StoredObject(key=key, size=len(data), last_modified=self.modified[key])
            for key, (data, _) in sorted(self.objects.items())
            if key.startswith(prefix)
        ]

    def key_from_ref(self, ref: str) -> str | None:
        base = f"{PUBLIC_BASE_URL}/"
        return ref[len(base):] if ref.startswith(base) else None

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)


class InMemoryLedger(GalleryLedger):
    """Dict-backed GalleryLedger enforcing the same ceiling as DynamoDB."""

    def __init__(self) -> None:
        self.rows: dict[str, GalleryItem] = {}
        self._sequence = 0

    def count_active(self, *, media_kind: MediaKind) -> int:
        return sum(1 for row in self.rows.values() if row.active and row.media_kind == media_kind)

    def insert(self, *, item: NewGalleryItem, limit: int) -> GalleryItem:
        current = self.count_active(media_kind=item.media_kind)
        if current >= limit:
            raise QuotaExceededError(current=current, limit=limit)

        self._sequence += 1
        timestamp = f"2024-01-01T00:00:{self._sequence:02d}+00:00"
        stored = GalleryItem(
            item_id=f"gal_{self._sequence:04d}",
            active=True,
            created_at=timestamp,
            updated_at=timestamp,
            **item.model_dump(),
        )
        self.rows[stored.item_id] = stored
        return stored

    def fetch(self, *, item_id: str) -> GalleryItem | None:
        return self.rows.get(item_id)

    def soft_delete(self, *, item_id: str) -> None:
        row = self.rows.get(item_id)
        if row is None or not row.active:
            raise NotFoundError(message="Gallery item not found", details={"item_id": item_id})
        self.rows[item_id] = row.model_copy(update={"active": False, "updated_at": utc_now_iso()})

    def update(self, *, item_id: str, changes: dict[str, Any]) -> GalleryItem:
        row = self.rows.get(item_id)
        if row is None or not row.active:
            raise NotFoundError(message="Gallery item not found", details={"item_id": item_id})
        updated = row.model_copy(update={**changes, "updated_at": utc_now_iso()})
        self.rows[item_id] = updated
        return updated

    def list_active(self, *, media_kind: MediaKind | None = None) -> list[GalleryItem]:
        items = [
            row
            for row in self.rows.values()
            if row.active and (media_kind is None or row.media_kind == media_kind)
        ]
        items.sort(key=lambda row: row.created_at, reverse=True)
        items.sort(key=lambda row: (not row.featured, row.order_index))
        return items


class RecordingCompressor:
    """Stand-in compressor; passes real work through when given one."""

    def __init__(self, delegate: Any = None) -> None:
        self.delegate = delegate
        self.calls = 0

    def compress(self, source: bytes, **kwargs: Any):
        self.calls += 1
        return self.delegate.compress(source, **kwargs)


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def recording_compressor() -> Callable[[Any], RecordingCompressor]:
    return RecordingCompressor


@pytest.fixture
def make_item(ledger) -> Callable[..., GalleryItem]:
    """
    Helper inserting an active item straight into the in-memory ledger.

    Usage:
        item = make_item(media_kind=MediaKind.VIDEO, featured=True)
    """

    def _make(
        *,
        media_kind: MediaKind = MediaKind.IMAGE,
        key: str | None = None,
        thumbnail_key: str | None = None,
        **fields: Any,
    ) -> GalleryItem:
        key = key or f"gallery/images/img-{len(ledger.rows)}-abcdefg.jpg"
        return ledger.insert(
            item=NewGalleryItem(
                media_kind=media_kind,
                primary_object_ref=f"{PUBLIC_BASE_URL}/{key}",
                thumbnail_object_ref=f"{PUBLIC_BASE_URL}/{thumbnail_key}" if thumbnail_key else None,
                **fields,
            ),
            limit=1000,
        )

    return _make


# ============================================================================
# Media samples
# ============================================================================


def _encode(image: Image.Image, image_format: str, **params: Any) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=image_format, **params)
    return buffer.getvalue()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """
    Helper generating an encoded image in memory.

    Usage:
        data = make_image(size=(4000, 3000), image_format="PNG", mode="RGBA")
    """

    def _make(
        *,
        size: tuple[int, int] = (64, 48),
        image_format: str = "JPEG",
        mode: str = "RGB",
        color: Any = (200, 40, 40),
        **params: Any,
    ) -> bytes:
        return _encode(Image.new(mode, size, color), image_format, **params)

    return _make


@pytest.fixture
def large_gradient_jpeg() -> bytes:
    """4000x3000 smooth gradient photo (well above the pixel envelope)."""
    gradient = Image.linear_gradient("L").resize((4000, 3000)).convert("RGB")
    return _encode(gradient, "JPEG", quality=95)


@pytest.fixture
def noisy_png() -> bytes:
    """Incompressible random-noise image."""
    return _encode(Image.frombytes("RGB", (1600, 1600), os.urandom(1600 * 1600 * 3)), "PNG")


@pytest.fixture
def sample_mp4() -> bytes:
    """Bytes carrying an ISO base media (mp4) signature."""
    return b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00isomiso2" + b"\x00" * 64


@pytest.fixture
def sample_png() -> bytes:
    """Sample binary image data (1x1 PNG)."""
    import base64

    png_base64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
    return base64.b64decode(png_base64)


# ============================================================================
# Lambda
# ============================================================================


@pytest.fixture
def lambda_context():
    return SimpleNamespace(
        aws_request_id="test-request-id",
        function_name="test-function",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:000000000000:function:test",
        log_group_name="/aws/lambda/test-function",
        log_stream_name="2024/01/01/[$LATEST]test",
    )
