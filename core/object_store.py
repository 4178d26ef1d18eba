"""
Object Store Gateway

Issues time-limited pre-signed URLs for a single S3 bucket:
- write grants (PUT) for fresh, randomly named probe images
- read grants (GET) for previously stored images

Also enumerates bucket contents for the bulk indexing script.

Usage:
    from core.object_store import get_object_store
    store = get_object_store()
    grant = store.create_upload_grant()
    url = store.create_download_url(grant.key)
"""

import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.config import get_aws_config, get_search_config
from core.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

# 16 random bytes -> 32 hex characters
OBJECT_KEY_BYTES = 16


@dataclass
class UploadGrant:
    """A pre-signed PUT URL and the object key it writes to."""

    upload_url: str
    key: str
    expires_in: int


def generate_object_key(extension: str = ".jpeg") -> str:
    """
    Generate an unpredictable object key.

    Returns:
        32 lowercase hex characters followed by ``extension``,
        e.g. "9f86d081884c7d659a2feaa0c55ad015.jpeg".
    """
    return secrets.token_hex(OBJECT_KEY_BYTES) + extension


class ObjectStore(ABC):
    """Abstract gateway to the bucket holding probe and reference images."""

    @abstractmethod
    def create_upload_grant(self) -> UploadGrant:
        """Generate a new object key and a short-lived write URL for it."""

    @abstractmethod
    def create_download_url(self, key: str) -> str:
        """Generate a read URL for an existing object."""

    @abstractmethod
    def list_keys(self) -> Iterator[str]:
        """Yield every object key in the bucket."""


class S3ObjectStore(ObjectStore):
    """
    ObjectStore backed by an S3 bucket.

    Pre-signing is a local signing operation, so grants are cheap and can be
    issued from multiple threads against the same boto3 client.
    """

    def __init__(
        self,
        bucket_name: str,
        region: Optional[str] = None,
        upload_expiry_sec: int = 60,
        download_expiry_sec: int = 3600,
        extension: str = ".jpeg",
        content_type: str = "image/jpeg",
        client: Any = None,
    ):
        if not bucket_name:
            raise ValueError("bucket_name is required for S3 storage")
        self.bucket_name = bucket_name
        self.region = region
        self.upload_expiry_sec = upload_expiry_sec
        self.download_expiry_sec = download_expiry_sec
        self.extension = extension
        self.content_type = content_type
        self.client = client or boto3.client("s3", region_name=region)

    @classmethod
    def from_config(cls) -> "S3ObjectStore":
        aws_config = get_aws_config()
        search_config = get_search_config()
        return cls(
            bucket_name=aws_config["bucket_name"],
            region=aws_config.get("region"),
            upload_expiry_sec=int(search_config.get("upload_url_expiry_sec", 60)),
            download_expiry_sec=int(search_config.get("download_url_expiry_sec", 3600)),
            extension=search_config.get("image_extension", ".jpeg"),
            content_type=search_config.get("content_type", "image/jpeg"),
        )

    def create_upload_grant(self) -> UploadGrant:
        key = generate_object_key(self.extension)
        params: Dict[str, Any] = {
            "Bucket": self.bucket_name,
            "Key": key,
            "ContentType": self.content_type,
        }
        try:
            upload_url = self.client.generate_presigned_url(
                "put_object",
                Params=params,
                ExpiresIn=self.upload_expiry_sec,
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamServiceError(
                "Error generating upload URL",
                detail=f"put_object presign failed for {key}: {e}",
            ) from e

        logger.debug(f"Issued upload grant for {key} ({self.upload_expiry_sec}s)")
        return UploadGrant(upload_url=upload_url, key=key, expires_in=self.upload_expiry_sec)

    def create_download_url(self, key: str) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=self.download_expiry_sec,
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamServiceError(
                detail=f"get_object presign failed for {key}: {e}",
            ) from e

    def list_keys(self) -> Iterator[str]:
        paginator = self.client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self.bucket_name):
                for obj in page.get("Contents", []):
                    yield obj["Key"]
        except (BotoCoreError, ClientError) as e:
            raise UpstreamServiceError(
                detail=f"Listing bucket {self.bucket_name} failed: {e}",
            ) from e


# Global gateway instance
_object_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    """Get or create the global object store gateway."""
    global _object_store
    if _object_store is None:
        _object_store = S3ObjectStore.from_config()
    return _object_store
