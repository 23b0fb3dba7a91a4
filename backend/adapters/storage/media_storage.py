"""
Media storage adapters for local and S3 storage.

Files uploaded to the media library are written under a date-based key
(``media/YYYY/MM/<name>_<timestamp><ext>``) and served either by the app
itself (``/uploads``) or from S3.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

import aiofiles
import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a file cannot be stored."""


def sanitize_filename(filename: str) -> str:
    """
    Strip path components and unsafe characters, and add a timestamp suffix.

    Args:
        filename: Original client-supplied filename

    Returns:
        Filename safe for the filesystem and unique enough to avoid collisions
    """
    filename = os.path.basename(filename or "upload")
    for char in ("/", "\\", "..", "\0", "\n", "\r", "\t", " "):
        filename = filename.replace(char, "_")

    name, ext = os.path.splitext(filename)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    return f"{name or 'upload'}_{timestamp}{ext.lower()}"


def _date_prefix() -> str:
    now = datetime.now()
    return f"media/{now.year}/{now.month:02d}"


class StorageAdapter(ABC):
    """Abstract base class for storage adapters."""

    @abstractmethod
    async def save(self, data: bytes, filename: str, content_type: str) -> str:
        """
        Store file data.

        Returns:
            Storage key of the saved file
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a stored file. Returns False when nothing was deleted."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """URL clients use to fetch the file."""


class LocalStorageAdapter(StorageAdapter):
    """
    Local filesystem storage adapter.

    Structure: <base_path>/media/YYYY/MM/filename.ext, served at /uploads.
    """

    def __init__(self, base_path: Optional[str] = None, base_url: Optional[str] = None):
        self.base_path = Path(base_path or settings.storage_local_path)
        self.base_url = (base_url or settings.app_url).rstrip("/")

    async def save(self, data: bytes, filename: str, content_type: str) -> str:
        key = f"{_date_prefix()}/{sanitize_filename(filename)}"
        file_path = self.base_path / key
        file_path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(file_path, "wb") as f:
            await f.write(data)

        logger.info("Saved media to local storage: %s (%d bytes)", key, len(data))
        return key

    async def delete(self, key: str) -> bool:
        file_path = (self.base_path / key).resolve()
        if self.base_path.resolve() not in file_path.parents:
            logger.warning("Refusing to delete outside storage root: %s", key)
            return False
        if not file_path.exists():
            logger.warning("Media not found for deletion: %s", key)
            return False

        file_path.unlink()
        logger.info("Deleted media from local storage: %s", key)
        return True

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/uploads/{key}"


class S3StorageAdapter(StorageAdapter):
    """
    AWS S3 storage adapter.

    boto3 is synchronous, so calls run in a worker thread.
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket or settings.s3_bucket
        self.region = region or settings.s3_region
        access_key = access_key or settings.s3_access_key
        secret_key = secret_key or settings.s3_secret_key

        if client is not None:
            self.s3_client = client
        elif access_key and secret_key:
            self.s3_client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
            )
        else:
            # Default credential chain (IAM role, env vars, ...)
            self.s3_client = boto3.client("s3", region_name=self.region)

        logger.info("S3 storage adapter initialized for bucket: %s", self.bucket)

    async def save(self, data: bytes, filename: str, content_type: str) -> str:
        if not self.bucket:
            raise StorageError("S3 bucket not configured.")

        key = f"{_date_prefix()}/{sanitize_filename(filename)}"
        try:
            await asyncio.to_thread(
                self.s3_client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except NoCredentialsError as e:
            logger.error("AWS credentials not found")
            raise StorageError("AWS credentials not configured") from e
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload failed: %s", e)
            raise StorageError(f"Failed to upload to S3: {e}") from e

        logger.info("Uploaded media to S3: %s", key)
        return key

    async def delete(self, key: str) -> bool:
        if not self.bucket:
            logger.warning("S3 not configured, cannot delete %s", key)
            return False
        try:
            await asyncio.to_thread(self.s3_client.delete_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to delete from S3: %s", e)
            return False

        logger.info("Deleted media from S3: %s", key)
        return True

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region or 'us-east-1'}.amazonaws.com/{key}"


def get_storage_adapter() -> StorageAdapter:
    """Build the adapter selected by ``STORAGE_TYPE``."""
    if settings.storage_type == "s3":
        logger.info("Using S3 storage adapter")
        return S3StorageAdapter()

    logger.info("Using local storage adapter")
    return LocalStorageAdapter()


_storage_adapter: Optional[StorageAdapter] = None


def storage_adapter() -> StorageAdapter:
    """FastAPI dependency returning the process-wide storage adapter."""
    global _storage_adapter
    if _storage_adapter is None:
        _storage_adapter = get_storage_adapter()
    return _storage_adapter
