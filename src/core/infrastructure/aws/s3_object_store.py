"""S3-backed implementation of ObjectStore."""

from urllib.parse import unquote, urlsplit

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from core.infrastructure.adapters.s3_adapter import S3Adapter, S3AdapterProtocol
from core.models.errors import (
    ObjectKeyConflictError,
    ObjectStoreError,
    UploadFailedError,
)
from core.repositories.object_store import ObjectStore, StoredObject
from core.utils.constants import (
    ERROR_CODE_OBJECT_DELETE_FAILED,
    ERROR_CODE_OBJECT_LIST_FAILED,
    ERROR_CODE_PUBLIC_REF_FAILED,
)

logger = Logger(UTC=True)

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound", "NoSuchBucket"})


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStore(ObjectStore):
    """Gallery object storage backed by Amazon S3."""

    def __init__(self, adapter: S3AdapterProtocol | None = None) -> None:
        """Create storage using the provided S3 adapter."""
        self._s3: S3AdapterProtocol = adapter or S3Adapter()

    def bucket_exists(self) -> bool:
        """Return whether the configured bucket exists."""
        try:
            self._s3.head_bucket()
            return True

        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                logger.error("Gallery bucket not found", extra={"bucket": self._s3.bucket})
                return False

            logger.error("S3 head_bucket failed", extra={"bucket": self._s3.bucket})
            raise ObjectStoreError(
                message="Failed to access storage",
                details={"bucket": self._s3.bucket},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error checking bucket")
            raise ObjectStoreError(
                message="Failed to access storage",
                details={"bucket": self._s3.bucket},
            ) from exc

    def put(self, *, key: str, data: bytes, content_type: str) -> None:
        """Upload bytes under a fresh key; an existing object is a conflict."""
        logger.debug(
            "Uploading object",
            extra={"key": key, "size": len(data), "content_type": content_type},
        )

        if self._exists(key):
            logger.error("Object key already in use", extra={"key": key})
            raise ObjectKeyConflictError(
                message="An object already exists under this key",
                details={"key": key},
            )

        try:
            self._s3.put_object(
                key=key,
                body=data,
                content_type=content_type,
                if_none_match=True,
            )
            logger.info("Object uploaded successfully", extra={"key": key})

        except ClientError as exc:
            logger.error("S3 upload failed", extra={"key": key})

            if _error_code(exc) in ("PreconditionFailed", "412"):
                raise ObjectKeyConflictError(
                    message="An object already exists under this key",
                    details={"key": key},
                ) from exc

            raise UploadFailedError(
                message="Unable to upload media at this time",
                details={"key": key, "cause": _error_code(exc)},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error uploading object")
            raise UploadFailedError(
                message="Unable to upload media at this time",
                details={"key": key, "cause": type(exc).__name__},
            ) from exc

    def get_public_ref(self, *, key: str) -> str:
        """Return the public URL of an object that is confirmed to exist."""
        if not self._exists(key):
            raise ObjectStoreError(
                message="Failed to get media URL",
                error_code=ERROR_CODE_PUBLIC_REF_FAILED,
                details={"key": key},
            )

        return f"{self._s3.public_base_url}/{key}"

    def delete(self, *, key: str) -> None:
        """Delete an object from S3."""
        logger.debug("Deleting object", extra={"key": key})

        try:
            self._s3.delete_object(key=key)
            logger.info("Object deleted successfully", extra={"key": key})

        except ClientError as exc:
            logger.error("S3 deletion failed", extra={"key": key})
            raise ObjectStoreError(
                message="Unable to delete media at this time",
                error_code=ERROR_CODE_OBJECT_DELETE_FAILED,
                details={"key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error deleting object")
            raise ObjectStoreError(
                message="Unable to delete media at this time",
                error_code=ERROR_CODE_OBJECT_DELETE_FAILED,
                details={"key": key},
            ) from exc

    def list_objects(self, *, prefix: str) -> list[StoredObject]:
        """List every object under a prefix."""
        try:
            return [
                StoredObject(
                    key=entry["Key"],
                    size=int(entry.get("Size", 0)),
                    last_modified=entry["LastModified"],
                )
                for entry in self._s3.iter_objects(prefix=prefix)
            ]

        except ClientError as exc:
            logger.error("S3 listing failed", extra={"prefix": prefix})
            raise ObjectStoreError(
                message="Unable to list stored media",
                error_code=ERROR_CODE_OBJECT_LIST_FAILED,
                details={"prefix": prefix},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error listing objects")
            raise ObjectStoreError(
                message="Unable to list stored media",
                error_code=ERROR_CODE_OBJECT_LIST_FAILED,
                details={"prefix": prefix},
            ) from exc

    def key_from_ref(self, ref: str) -> str | None:
        """Derive the object key from a public URL.

        References built by this store start with the public base URL.
        Older references are matched on the ``/<bucket>/`` path segment.
        """
        if not ref:
            return None

        base = f"{self._s3.public_base_url}/"
        if ref.startswith(base):
            key = ref[len(base):]
        else:
            path = urlsplit(ref).path
            marker = f"/{self._s3.bucket}/"
            if marker not in path:
                return None
            key = path.split(marker, 1)[1]

        key = unquote(key.split("?", 1)[0].split("#", 1)[0])
        return key or None

    def _exists(self, key: str) -> bool:
        try:
            self._s3.head_object(key=key)
            return True

        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return False

            logger.error("S3 head_object failed", extra={"key": key})
            raise UploadFailedError(
                message="Unable to verify stored media",
                details={"key": key, "cause": _error_code(exc)},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error checking object")
            raise UploadFailedError(
                message="Unable to verify stored media",
                details={"key": key, "cause": type(exc).__name__},
            ) from exc
