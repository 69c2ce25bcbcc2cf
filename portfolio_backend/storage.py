"""
Object storage abstraction for S3-compatible buckets and in-memory testing.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from portfolio_backend.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredAsset:
    storage_id: str
    url: str


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload(
        self, local_path: str, folder: str, desired_id: Optional[str] = None
    ) -> StoredAsset:
        ...

    def delete(self, storage_id: str) -> None:
        ...

    def close(self) -> None:
        ...


def _object_key(local_path: str, folder: str, desired_id: Optional[str]) -> str:
    """
    ``folder/<desired_id>_<suffix><ext>``. Desired ids only have second
    resolution, so a random suffix keeps every upload on its own key.
    """
    _, ext = os.path.splitext(local_path)
    suffix = uuid.uuid4().hex
    name = f"{desired_id}_{suffix[:12]}" if desired_id else suffix
    return f"{folder.strip('/')}/{name}{ext.lower()}"


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = field(default_factory=dict)
    uploads: list = field(default_factory=list)
    deletes: list = field(default_factory=list)
    fail_uploads: bool = False
    fail_deletes: bool = False

    def upload(
        self, local_path: str, folder: str, desired_id: Optional[str] = None
    ) -> StoredAsset:
        if self.fail_uploads:
            raise StorageError("Upload rejected", RuntimeError("simulated failure"))
        key = _object_key(local_path, folder, desired_id)
        with open(local_path, "rb") as f:
            self.stored_objects[key] = f.read()
        self.uploads.append(key)
        return StoredAsset(storage_id=key, url=f"{self.base_url}/{key}")

    def delete(self, storage_id: str) -> None:
        if self.fail_deletes:
            raise StorageError("Delete rejected", RuntimeError("simulated failure"))
        self.deletes.append(storage_id)
        self.stored_objects.pop(storage_id, None)

    def close(self) -> None:
        pass


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client. Every call is bounded by the configured
    connect/read timeouts and retried with botocore's standard retry mode.
    """

    bucket: str
    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    public_base_url: str = ""
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    max_attempts: int = 3

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            retries={"max_attempts": self.max_attempts, "mode": "standard"},
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}/{key}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"

    @staticmethod
    def _check_response(response: dict, action: str, key: str) -> None:
        # Some S3-compatible services report failures in a 2xx-shaped body.
        status = (response or {}).get("ResponseMetadata", {}).get("HTTPStatusCode")
        error = (response or {}).get("Error")
        if error or (status is not None and status >= 300):
            raise StorageError(
                f"Failed to {action} {key}",
                RuntimeError(str(error or f"HTTP {status}")),
            )

    def upload(
        self, local_path: str, folder: str, desired_id: Optional[str] = None
    ) -> StoredAsset:
        key = _object_key(local_path, folder, desired_id)
        content_type = mimetypes.guess_type(local_path)[0] or "application/octet-stream"
        try:
            with open(local_path, "rb") as body:
                response = self._client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except (BotoCoreError, ClientError, OSError) as exc:
            logger.error("Upload of %s failed: %s", key, exc)
            raise StorageError(f"Failed to upload {key}", exc) from exc
        self._check_response(response, "upload", key)
        return StoredAsset(storage_id=key, url=self.public_url(key))

    def delete(self, storage_id: str) -> None:
        try:
            response = self._client.delete_object(Bucket=self.bucket, Key=storage_id)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Delete of %s failed: %s", storage_id, exc)
            raise StorageError(f"Failed to delete {storage_id}", exc) from exc
        self._check_response(response, "delete", storage_id)

    def close(self) -> None:
        self._client.close()
