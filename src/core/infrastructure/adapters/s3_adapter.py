"""Thin adapter for interacting with Amazon S3."""

from collections.abc import Iterator, Mapping
import os
from typing import Any, Protocol

import boto3

from core.utils.constants import (
    DEFAULT_AWS_REGION,
    ENV_AWS_ENDPOINT_URL,
    ENV_AWS_REGION,
    ENV_GALLERY_PUBLIC_BASE_URL,
    ENV_GALLERY_S3_BUCKET_NAME,
)


class _Boto3S3Client(Protocol):
    """Internal typing for boto3 S3 client (AWS-facing only)."""

    def head_bucket(self, *, Bucket: str) -> Any: ...

    def head_object(self, *, Bucket: str, Key: str) -> Mapping[str, Any]: ...

    def put_object(self, **kwargs: Any) -> Any: ...

    def delete_object(self, *, Bucket: str, Key: str) -> Any: ...

    def get_paginator(self, operation_name: str) -> Any: ...


class S3AdapterProtocol(Protocol):
    """Minimal S3 adapter protocol (repository-facing)."""

    @property
    def bucket(self) -> str: ...

    @property
    def public_base_url(self) -> str: ...

    def head_bucket(self) -> None: ...

    def head_object(self, *, key: str) -> Mapping[str, Any]: ...

    def put_object(
        self,
        *,
        key: str,
        body: bytes,
        content_type: str,
        if_none_match: bool = False,
    ) -> None: ...

    def delete_object(self, *, key: str) -> None: ...

    def iter_objects(self, *, prefix: str) -> Iterator[Mapping[str, Any]]: ...


class S3Adapter:
    """Low-level S3 operations (mechanical, no error handling).

    This adapter:
    - Wraps boto3 S3 client
    - Does NOT handle errors (lets them bubble up)
    - Domain implementations catch and translate errors
    """

    def __init__(self) -> None:
        """Create S3 client from environment configuration."""
        bucket_name = os.getenv(ENV_GALLERY_S3_BUCKET_NAME)
        if not bucket_name:
            raise RuntimeError(f"{ENV_GALLERY_S3_BUCKET_NAME} environment variable is not set")

        self._bucket = bucket_name
        self._endpoint_url = os.getenv(ENV_AWS_ENDPOINT_URL)
        self._region = os.getenv(ENV_AWS_REGION) or DEFAULT_AWS_REGION
        self._public_base_url = os.getenv(ENV_GALLERY_PUBLIC_BASE_URL)
        self._client: _Boto3S3Client = boto3.client(
            "s3",
            endpoint_url=self._endpoint_url,
            region_name=self._region,
        )

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def public_base_url(self) -> str:
        """Base URL that public object references are built from (no trailing slash)."""
        if self._public_base_url:
            return self._public_base_url.rstrip("/")

        if self._endpoint_url:
            # path-style, as served by LocalStack
            return f"{self._endpoint_url.rstrip('/')}/{self._bucket}"

        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com"

    def head_bucket(self) -> None:
        """Check the bucket exists and is reachable.
        Raises boto3 exceptions - caught by domain implementation.
        """
        self._client.head_bucket(Bucket=self._bucket)

    def head_object(self, *, key: str) -> Mapping[str, Any]:
        """Fetch object headers.
        Raises boto3 exceptions - caught by domain implementation.
        """
        return self._client.head_object(Bucket=self._bucket, Key=key)

    def put_object(
        self,
        *,
        key: str,
        body: bytes,
        content_type: str,
        if_none_match: bool = False,
    ) -> None:
        """Store object in S3.
        Raises boto3 exceptions - caught by domain implementation.
        """
        kwargs: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }

        if if_none_match:
            kwargs["IfNoneMatch"] = "*"

        self._client.put_object(**kwargs)

    def delete_object(self, *, key: str) -> None:
        """Delete object from S3.
        Raises boto3 exceptions - caught by domain implementation.
        """
        self._client.delete_object(
            Bucket=self._bucket,
            Key=key,
        )

    def iter_objects(self, *, prefix: str) -> Iterator[Mapping[str, Any]]:
        """Yield every object summary under a prefix, across pages.
        Raises boto3 exceptions - caught by domain implementation.
        """
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
            yield from page.get("Contents", [])
