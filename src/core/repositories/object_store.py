"""Abstract contract for gallery object storage."""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, StrictInt, StrictStr


class StoredObject(BaseModel):
    """Listing entry for an object in the store."""

    key: StrictStr
    size: StrictInt
    last_modified: datetime


class ObjectStore(ABC):
    """Contract for storing gallery media objects.

    Implementations could be S3, GCS, local disk, etc.
    Services depend on this interface, not the implementation.
    """

    @abstractmethod
    def bucket_exists(self) -> bool:
        """Return whether the configured bucket exists.

        Raises:
            ObjectStoreError: If existence cannot be determined
        """

    @abstractmethod
    def put(self, *, key: str, data: bytes, content_type: str) -> None:
        """Store an object under a new key. Never overwrites.

        Args:
            key: Storage key from ObjectKeyAllocator
            data: Binary content
            content_type: MIME type (e.g., 'image/jpeg')

        Raises:
            ObjectKeyConflictError: If an object already exists under the key
            UploadFailedError: If the upload fails
        """

    @abstractmethod
    def get_public_ref(self, *, key: str) -> str:
        """Return the public URL of a stored object.

        Raises:
            ObjectStoreError: If the object has no resolvable reference
        """

    @abstractmethod
    def delete(self, *, key: str) -> None:
        """Delete an object by key.

        Raises:
            ObjectStoreError: If deletion fails
        """

    @abstractmethod
    def list_objects(self, *, prefix: str) -> list[StoredObject]:
        """List every object under a key prefix.

        Raises:
            ObjectStoreError: If listing fails
        """

    @abstractmethod
    def key_from_ref(self, ref: str) -> str | None:
        """Derive the storage key from a public reference, or None if foreign."""
