from __future__ import annotations

import logging
import time
import urllib.parse
import uuid
from dataclasses import dataclass
from typing import List

from docvault.services.blob_store.base import BlobStore
from docvault.services.catalog.store import CatalogStore
from docvault.services.documents.errors import (
    ObjectNotFound,
    RecordNotFound,
    StorageUnavailable,
    UnrecognizedType,
    UploadTooLarge,
    VersionCommitFailed,
)
from docvault.services.documents.file_sniffer import build_logical_name, sniff
from docvault.services.documents.models import (
    DeleteResult,
    DocumentBytes,
    DocumentRecord,
    PreviewImage,
    UploadResult,
)
from docvault.services.documents.version_ledger import VersionLedger
from docvault.services.preview.dispatcher import PreviewDispatcher

logger = logging.getLogger(__name__)


def content_disposition(filename: str) -> str:
    try:
        filename.encode("ascii")
        return f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        ascii_filename = filename.encode("ascii", "replace").decode("ascii")
        encoded_filename = urllib.parse.quote(filename)
        return f"attachment; filename=\"{ascii_filename}\"; filename*=UTF-8''{encoded_filename}"


def _storage_key(logical_name: str, doc_id: str, extension: str) -> str:
    stem = logical_name[: -len(extension)] if extension and logical_name.endswith(extension) else logical_name
    return f"{stem}/{doc_id}{extension}"


@dataclass
class DocumentManager:
    """Upload, listing, preview, download and deletion of versioned documents."""

    catalog: CatalogStore
    blob_store: BlobStore
    ledger: VersionLedger
    dispatcher: PreviewDispatcher
    bucket: str = "documents"
    max_file_size: int = 50 * 1024 * 1024

    # -------------------- Upload --------------------

    def upload(self, content: bytes, declared_filename: str | None) -> UploadResult:
        if content is None or len(content) == 0:
            raise UnrecognizedType("Empty upload")
        if len(content) > self.max_file_size:
            raise UploadTooLarge(f"File exceeds the {self.max_file_size} byte limit")

        detected = sniff(content, declared_filename)
        logical_name = build_logical_name(declared_filename, detected.extension)
        doc_id = uuid.uuid4().hex
        storage_key = _storage_key(logical_name, doc_id, detected.extension)

        draft = DocumentRecord(
            doc_id=doc_id,
            logical_name=logical_name,
            storage_key=storage_key,
            version=0,
            size_bytes=len(content),
            mime_type=detected.mime_type,
            extension=detected.extension,
            is_current=True,
            created_at_ms=int(time.time() * 1000),
        )

        self.blob_store.put(self.bucket, storage_key, content, len(content), detected.mime_type)
        try:
            record, slot = self.ledger.assign_and_commit(draft)
        except VersionCommitFailed:
            logger.warning(
                "Orphan blob left behind after failed commit: bucket=%s key=%s",
                self.bucket,
                storage_key,
            )
            raise

        logger.info(
            "Uploaded %s as %s v%s (%s, %s bytes)",
            declared_filename,
            record.logical_name,
            record.version,
            record.mime_type,
            record.size_bytes,
        )
        return UploadResult(record=record, total_versions=slot.prior_count + 1)

    # -------------------- Listing --------------------

    def list_documents(self) -> List[DocumentRecord]:
        return self.catalog.find()

    def list_versions(self, logical_name: str) -> List[DocumentRecord]:
        return self.catalog.find(logical_name)

    def get_record(self, doc_id: str) -> DocumentRecord:
        record = self.catalog.find_by_id(doc_id)
        if record is None:
            raise RecordNotFound(f"Document not found: {doc_id}")
        return record

    # -------------------- Preview / download --------------------

    def get_preview(self, doc_id: str) -> PreviewImage:
        record = self.get_record(doc_id)
        content = None
        load_error = None
        try:
            content = self.blob_store.get(self.bucket, record.storage_key)
        except (ObjectNotFound, StorageUnavailable) as e:
            logger.error("Failed to load blob for %s (%s): %s", doc_id, record.storage_key, e)
            load_error = e
        return self.dispatcher.render(content, record.mime_type, record.logical_name, load_error=load_error)

    def get_raw_file(self, doc_id: str) -> DocumentBytes:
        record = self.get_record(doc_id)
        content = self.blob_store.get(self.bucket, record.storage_key)
        return DocumentBytes(filename=record.logical_name, content=content, mime_type=record.mime_type)

    # -------------------- Delete --------------------

    def delete_version(self, doc_id: str) -> DeleteResult:
        record = self.get_record(doc_id)
        promoted = self.ledger.retire(record)

        blob_removed = True
        try:
            self.blob_store.remove(self.bucket, record.storage_key)
        except (ObjectNotFound, StorageUnavailable) as e:
            blob_removed = False
            logger.warning("Record %s deleted but blob %s was not removed: %s", doc_id, record.storage_key, e)

        logger.info("Deleted %s v%s (doc_id=%s)", record.logical_name, record.version, doc_id)
        return DeleteResult(
            ok=True,
            doc_id=doc_id,
            blob_removed=blob_removed,
            promoted_doc_id=promoted.doc_id if promoted else None,
        )
