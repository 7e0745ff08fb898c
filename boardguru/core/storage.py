"""
Object storage for uploaded board documents.
S3-compatible backend via boto3, plus an in-memory client used when no
bucket is configured (local development and tests).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from boardguru.config import settings
from boardguru.core.exceptions import StorageException

logger = logging.getLogger(__name__)


class StorageClient(Protocol):
    """Operations the asset service needs from object storage."""

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        ...

    def presign_get(self, path: str, expires_in: int = 3600, download_name: Optional[str] = None) -> str:
        ...

    def delete(self, path: str) -> None:
        ...


@dataclass
class InMemoryStorageClient:
    """Keeps uploaded objects in a dict."""

    base_url: str = "https://storage.boardguru.test"
    stored_objects: Dict[str, bytes] = field(default_factory=dict)
    content_types: Dict[str, str] = field(default_factory=dict)

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        self.stored_objects[path] = data
        self.content_types[path] = content_type

    def presign_get(self, path: str, expires_in: int = 3600, download_name: Optional[str] = None) -> str:
        if path not in self.stored_objects:
            raise StorageException(f"Object not found: {path}")
        url = f"{self.base_url}/{path}?op=get&expires={expires_in}"
        if download_name:
            url += f"&download={download_name}"
        return url

    def delete(self, path: str) -> None:
        self.stored_objects.pop(path, None)
        self.content_types.pop(path, None)


@dataclass
class S3StorageClient:
    """S3-compatible storage client."""

    bucket: str
    region: str
    endpoint: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None

    def __post_init__(self):
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=Config(signature_version="s3v4"),
        )

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload to {self.bucket}/{path} failed: {str(e)}")
            raise StorageException(f"Failed to upload file: {str(e)}")

    def presign_get(self, path: str, expires_in: int = 3600, download_name: Optional[str] = None) -> str:
        params = {"Bucket": self.bucket, "Key": path}
        if download_name:
            params["ResponseContentDisposition"] = f'attachment; filename="{download_name}"'
        try:
            return self._client.generate_presigned_url(
                ClientMethod="get_object",
                Params=params,
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Signing URL for {path} failed: {str(e)}")
            raise StorageException(f"Failed to create download URL: {str(e)}")

    def delete(self, path: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=path)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Delete of {path} failed: {str(e)}")
            raise StorageException(f"Failed to delete file: {str(e)}")


_storage_client: Optional[StorageClient] = None


def get_storage_client() -> StorageClient:
    """Return the process-wide storage client, chosen from settings."""
    global _storage_client
    if _storage_client is None:
        if settings.STORAGE_BUCKET:
            _storage_client = S3StorageClient(
                bucket=settings.STORAGE_BUCKET,
                region=settings.STORAGE_REGION,
                endpoint=settings.STORAGE_ENDPOINT,
                access_key_id=settings.STORAGE_ACCESS_KEY_ID,
                secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY,
            )
            logger.info(f"Using S3 storage bucket: {settings.STORAGE_BUCKET}")
        else:
            _storage_client = InMemoryStorageClient()
            logger.warning("STORAGE_BUCKET not set; uploads are kept in memory")
    return _storage_client
