"""
Asset lifecycle helpers sitting between controllers and the storage client.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from typing import Iterable, Optional

from starlette.datastructures import UploadFile

from portfolio_backend.db import DocumentStore
from portfolio_backend.errors import StorageError
from portfolio_backend.schemas import Asset
from portfolio_backend.storage import StorageClient

logger = logging.getLogger(__name__)

ORPHANED_ASSETS = "orphaned_assets"


def timestamp_id(prefix: str, now: Optional[datetime] = None) -> str:
    """``Skill_Image_19-10-2026_02-30-45_PM`` style desired ids."""
    now = now or datetime.now(timezone.utc)
    return f"{prefix}_{now.strftime('%d-%m-%Y_%I-%M-%S_%p')}"


class AssetManager:
    """Uploads, releases and compensates remote assets for one request."""

    def __init__(self, storage: StorageClient, store: DocumentStore, root_folder: str):
        self.storage = storage
        self.store = store
        self.root_folder = root_folder.strip("/")

    def _folder(self, folder: str) -> str:
        return f"{self.root_folder}/{folder}" if self.root_folder else folder

    def upload(self, upload: UploadFile, folder: str, prefix: str) -> Asset:
        _, ext = os.path.splitext(upload.filename or "")
        tmp = tempfile.NamedTemporaryFile(suffix=ext, delete=False)
        try:
            with tmp:
                upload.file.seek(0)
                shutil.copyfileobj(upload.file, tmp)
            stored = self.storage.upload(
                tmp.name, self._folder(folder), desired_id=timestamp_id(prefix)
            )
        except StorageError:
            raise
        except Exception as exc:
            logger.error("Upload to %s failed: %s", folder, exc)
            raise StorageError(f"Failed to upload {upload.filename}", exc) from exc
        finally:
            os.unlink(tmp.name)
        if not stored.storage_id or not stored.url:
            raise StorageError(f"Storage returned an incomplete asset for {upload.filename}")
        return Asset(storage_id=stored.storage_id, url=stored.url)

    def release(self, asset: Asset) -> None:
        """Delete a remote asset, surfacing any failure as ``StorageError``."""
        try:
            self.storage.delete(asset.storage_id)
        except StorageError:
            raise
        except Exception as exc:
            logger.error("Delete of %s failed: %s", asset.storage_id, exc)
            raise StorageError(f"Failed to delete {asset.storage_id}", exc) from exc

    def discard(self, assets: Iterable[Asset], reason: str) -> None:
        """
        Best-effort delete of assets no document will reference. Failures
        are logged and recorded for the orphan cleanup job, never raised,
        so the original error reaches the client.
        """
        for asset in assets:
            try:
                self.release(asset)
            except StorageError as exc:
                self.record_orphan(asset, reason, exc)

    def record_orphan(self, asset: Asset, reason: str, exc: BaseException) -> None:
        logger.error(
            "Orphaned asset %s (%s): %s", asset.storage_id, reason, exc
        )
        try:
            self.store.insert(
                ORPHANED_ASSETS,
                {"storageId": asset.storage_id, "url": asset.url, "reason": reason},
            )
        except Exception:
            logger.exception("Could not record orphaned asset %s", asset.storage_id)


def sweep_orphans(
    store: DocumentStore, storage: StorageClient, limit: Optional[int] = None
) -> tuple[int, int]:
    """
    Retry deletes recorded by ``AssetManager.record_orphan``. A record is
    removed once its object is gone; failures stay for the next run.
    Returns ``(deleted, failed)``.
    """
    deleted = failed = 0
    records = store.find(ORPHANED_ASSETS, sort=("createdAt", 1))
    for record in records[:limit] if limit else records:
        try:
            storage.delete(record["storageId"])
        except Exception as exc:
            logger.warning("Orphan %s still not deleted: %s", record["storageId"], exc)
            failed += 1
            continue
        store.delete(ORPHANED_ASSETS, record["_id"])
        deleted += 1
    return deleted, failed
