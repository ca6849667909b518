"""S3-compatible object store backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional
from urllib.parse import unquote

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from .base import AssetInfo, BackendKind
from .errors import StorageBackendError, StorageTimeoutError

if TYPE_CHECKING:
    from config import Settings

logger = logging.getLogger("api.storage")

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
CACHE_CONTROL = "public, max-age=31536000, immutable"


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def build_client(settings: "Settings"):
    """Create a boto3 S3 client with explicit timeouts."""
    return boto3.client(
        "s3",
        endpoint_url=settings.s3_endpoint,
        region_name=settings.s3_region,
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret_key,
        config=Config(
            connect_timeout=settings.s3_timeout_secs,
            read_timeout=settings.s3_timeout_secs,
            retries={"max_attempts": settings.s3_max_attempts, "mode": "standard"},
        ),
    )


class S3Backend:
    """Store public-read objects in a bucket under caller-chosen keys."""

    kind = BackendKind.CLOUD

    def __init__(
        self,
        bucket: str,
        public_base_url: str,
        client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.client = client

    @classmethod
    def from_settings(cls, settings: "Settings", client: Any | None = None) -> "S3Backend":
        return cls(
            bucket=settings.s3_bucket,
            public_base_url=settings.cloud_public_base_url,
            client=client or build_client(settings),
        )

    def url(self, object_key: str) -> str:
        return f"{self.public_base_url}/{object_key}"

    def owns(self, url: str) -> bool:
        return url.startswith(self.public_base_url + "/")

    def key_for(self, url: str) -> Optional[str]:
        if not self.owns(url):
            return None
        key = unquote(url[len(self.public_base_url) + 1 :].split("?", 1)[0])
        return key or None

    def put(self, object_key: str, data: bytes, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
                CacheControl=CACHE_CONTROL,
            )
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            raise StorageTimeoutError(
                f"Timed out uploading {object_key}", backend=self.kind.value
            ) from exc
        except (ClientError, BotoCoreError) as exc:
            raise StorageBackendError(
                f"Upload failed for {object_key}: {exc}", backend=self.kind.value
            ) from exc
        url = self.url(object_key)
        logger.info("stored s3://%s/%s (%d bytes)", self.bucket, object_key, len(data))
        return url

    def delete(self, url: str) -> None:
        key = self.key_for(url)
        if key is None:
            logger.info("ignoring delete for url outside bucket: %s", url)
            return
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in NOT_FOUND_CODES:
                logger.info("object already absent: s3://%s/%s", self.bucket, key)
                return
            raise StorageBackendError(
                f"Delete failed for {key}: {exc}", backend=self.kind.value
            ) from exc
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            raise StorageTimeoutError(
                f"Timed out deleting {key}", backend=self.kind.value
            ) from exc
        except BotoCoreError as exc:
            raise StorageBackendError(
                f"Delete failed for {key}: {exc}", backend=self.kind.value
            ) from exc
        logger.info("deleted s3://%s/%s", self.bucket, key)

    def exists(self, url: str) -> Optional[AssetInfo]:
        key = self.key_for(url)
        if key is None:
            return None
        try:
            head = self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) not in NOT_FOUND_CODES:
                logger.warning("head_object failed for %s: %s", key, exc)
            return None
        except BotoCoreError as exc:
            logger.warning("head_object failed for %s: %s", key, exc)
            return None
        return AssetInfo(
            size=head.get("ContentLength"),
            uploaded_at=head.get("LastModified"),
        )


__all__ = ["S3Backend", "build_client"]
