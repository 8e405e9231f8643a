"""S3 blob storage for report images.

boto3 clients are thread safe but blocking, so every call runs in a worker
thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from dgisback.errors import ObjectStoreError

if TYPE_CHECKING:
    from dgisback.config import AppConfig

LOGGER = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def create_s3_client(config: AppConfig) -> Any:
    """Create a boto3 S3 client from the application configuration.

    Path-style addressing keeps S3-compatible endpoints (MinIO) working.
    """
    return boto3.client(
        "s3",
        endpoint_url=config.s3_endpoint_url,
        aws_access_key_id=config.s3_access_key,
        aws_secret_access_key=config.s3_secret_key,
        region_name=config.s3_region,
        config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


class ObjectStore:
    """Upload, download and delete blobs in an S3 bucket."""

    def __init__(self, s3_client: Any, default_bucket: str) -> None:
        """Create the store.

        :param s3_client: A boto3 S3 client
        :param default_bucket: Bucket used when a call passes none
        """
        self.s3_client = s3_client
        self.default_bucket = default_bucket

    def _bucket(self, bucket: str | None) -> str:
        return bucket or self.default_bucket

    async def exists(self, key: str, bucket: str | None = None) -> bool:
        """Check whether a key exists in the bucket."""
        try:
            await asyncio.to_thread(
                self.s3_client.head_object,
                Bucket=self._bucket(bucket),
                Key=key,
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                return False
            msg = f"failed to check {key}"
            raise ObjectStoreError(msg) from e
        except BotoCoreError as e:
            msg = f"failed to check {key}"
            raise ObjectStoreError(msg) from e
        return True

    async def upload(
        self,
        key: str,
        content: bytes,
        content_type: str,
        bucket: str | None = None,
    ) -> None:
        """Store a blob, replacing any existing blob under the same key."""
        bucket = self._bucket(bucket)
        if await self.exists(key, bucket):
            await self.delete(key, bucket)

        try:
            await asyncio.to_thread(
                self.s3_client.put_object,
                Bucket=bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            msg = f"failed to upload {key}"
            raise ObjectStoreError(msg) from e
        LOGGER.info("Uploaded %s to bucket %s", key, bucket)

    async def download(self, key: str, bucket: str | None = None) -> bytes:
        """Return the full content of a blob."""
        try:
            response = await asyncio.to_thread(
                self.s3_client.get_object,
                Bucket=self._bucket(bucket),
                Key=key,
            )
            body = response["Body"]
            try:
                return await asyncio.to_thread(body.read)
            finally:
                body.close()
        except (BotoCoreError, ClientError) as e:
            msg = f"failed to download {key}"
            raise ObjectStoreError(msg) from e

    async def delete(self, key: str, bucket: str | None = None) -> None:
        try:
            await asyncio.to_thread(
                self.s3_client.delete_object,
                Bucket=self._bucket(bucket),
                Key=key,
            )
        except (BotoCoreError, ClientError) as e:
            msg = f"failed to delete {key}"
            raise ObjectStoreError(msg) from e
