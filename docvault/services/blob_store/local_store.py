from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path, PurePosixPath

from docvault.app.core.paths import resolve_repo_path
from docvault.services.blob_store.base import BlobStore
from docvault.services.documents.errors import ObjectNotFound, StorageUnavailable

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """
    Blob store on the local filesystem: one directory per bucket under `root`.

    Writes go to a sibling temp file first and are moved into place with
    `os.replace`, so readers never observe a partially written object.
    """

    def __init__(self, root: str | Path):
        self.root = resolve_repo_path(root)

    def _bucket_dir(self, bucket: str) -> Path:
        name = (bucket or "").strip()
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise StorageUnavailable(f"invalid bucket name: {bucket!r}")
        return self.root / name

    def _object_path(self, bucket: str, key: str) -> Path:
        parts = PurePosixPath((key or "").replace("\\", "/")).parts
        if not parts or any(p in ("..", "/") for p in parts):
            raise ObjectNotFound(f"invalid object key: {key!r}")
        return self._bucket_dir(bucket).joinpath(*parts)

    def ensure_bucket(self, bucket: str) -> None:
        path = self._bucket_dir(bucket)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"cannot create bucket {bucket}: {e}") from e
        logger.info("Blob bucket ready: %s", path)

    def put(self, bucket: str, key: str, data: bytes, size: int, content_type: str) -> None:
        if size != len(data):
            raise StorageUnavailable(f"size mismatch for {key}: declared {size}, got {len(data)}")
        path = self._object_path(bucket, key)
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.part")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StorageUnavailable(f"failed to write {bucket}/{key}: {e}") from e
        logger.debug("Stored %s/%s (%s bytes, %s)", bucket, key, size, content_type)

    def get(self, bucket: str, key: str) -> bytes:
        path = self._object_path(bucket, key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise ObjectNotFound(f"object not found: {bucket}/{key}") from e
        except OSError as e:
            raise StorageUnavailable(f"failed to read {bucket}/{key}: {e}") from e

    def remove(self, bucket: str, key: str) -> None:
        path = self._object_path(bucket, key)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise ObjectNotFound(f"object not found: {bucket}/{key}") from e
        except OSError as e:
            raise StorageUnavailable(f"failed to remove {bucket}/{key}: {e}") from e
