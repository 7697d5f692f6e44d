from __future__ import annotations

import logging
import sqlite3
import threading
import zlib
from dataclasses import replace
from typing import Optional

from docvault.services.catalog.store import CatalogStore
from docvault.services.documents.errors import CatalogUnavailable, VersionCommitFailed
from docvault.services.documents.models import DocumentRecord, VersionSlot

logger = logging.getLogger(__name__)

LOCK_STRIPES = 64


class VersionLedger:
    """
    Version numbering and "current" bookkeeping for records sharing a logical name.

    Numbers come from a per-name high-water mark kept in the catalog, so a
    number is never handed out twice, even after the top version is deleted.
    For a group that never had a version deleted this equals `count + 1`.
    """

    def __init__(self, catalog: CatalogStore, *, lock_stripes: int = LOCK_STRIPES):
        self._catalog = catalog
        # Fixed pool: names hash onto a stripe, so memory does not grow with the number of names.
        self._locks = tuple(threading.Lock() for _ in range(max(1, lock_stripes)))

    def _lock_for(self, logical_name: str) -> threading.Lock:
        return self._locks[zlib.crc32(logical_name.encode("utf-8")) % len(self._locks)]

    def next_version(self, logical_name: str, *, conn=None) -> VersionSlot:
        existing = self._catalog.find(logical_name, conn=conn)
        highest = max(
            self._catalog.last_version(logical_name, conn=conn),
            max((r.version for r in existing), default=0),
        )
        return VersionSlot(version=highest + 1, prior_count=len(existing))

    def commit(self, record: DocumentRecord, *, conn=None) -> DocumentRecord:
        """Demote every record of the logical name, then insert `record` as current."""
        current = replace(record, is_current=True)
        try:
            if conn is not None:
                self._write(current, conn)
            else:
                with self._catalog.transaction() as tx:
                    self._write(current, tx)
        except (sqlite3.Error, CatalogUnavailable) as e:
            raise VersionCommitFailed(f"version commit failed for {record.logical_name}: {e}") from e
        return current

    def _write(self, record: DocumentRecord, conn) -> None:
        demoted = self._catalog.update_many(logical_name=record.logical_name, is_current=False, conn=conn)
        self._catalog.insert(record, conn=conn)
        self._catalog.raise_last_version(record.logical_name, record.version, conn=conn)
        logger.debug(
            "Committed %s v%s (demoted %s prior record(s))",
            record.logical_name,
            record.version,
            demoted,
        )

    def assign_and_commit(self, draft: DocumentRecord) -> tuple[DocumentRecord, VersionSlot]:
        """
        Assign the next version to `draft` and commit it as current.

        Serialized per logical name in-process, and run inside one catalog write
        transaction so concurrent writers in other processes cannot interleave.
        """
        with self._lock_for(draft.logical_name):
            try:
                with self._catalog.transaction() as tx:
                    slot = self.next_version(draft.logical_name, conn=tx)
                    record = replace(draft, version=slot.version, is_current=True)
                    self._write(record, tx)
            except (sqlite3.Error, CatalogUnavailable) as e:
                raise VersionCommitFailed(f"version commit failed for {draft.logical_name}: {e}") from e
        logger.info(
            "Version %s committed for %s (doc_id=%s, prior=%s)",
            slot.version,
            record.logical_name,
            record.doc_id,
            slot.prior_count,
        )
        return record, slot

    def retire(self, record: DocumentRecord) -> Optional[DocumentRecord]:
        """
        Delete `record` from the catalog.

        Whether it is current is read again inside the transaction, since the
        caller's copy may predate a concurrent promotion. When it was current,
        the highest remaining version becomes current. Returns the promoted
        record, if any. Deleting a middle version leaves a gap.
        """
        with self._lock_for(record.logical_name):
            try:
                with self._catalog.transaction() as tx:
                    stored = self._catalog.find_by_id(record.doc_id, conn=tx)
                    if stored is None or not self._catalog.delete_by_id(record.doc_id, conn=tx):
                        logger.info("Record %s already removed", record.doc_id)
                        return None
                    if not stored.is_current:
                        return None
                    remaining = self._catalog.find(stored.logical_name, conn=tx)
                    if not remaining:
                        return None
                    successor = remaining[0]
                    self._catalog.update_many(
                        logical_name=stored.logical_name,
                        is_current=True,
                        doc_id=successor.doc_id,
                        conn=tx,
                    )
            except sqlite3.Error as e:
                raise CatalogUnavailable(f"failed to delete {record.doc_id}: {e}") from e
        logger.info("Promoted %s v%s to current", successor.logical_name, successor.version)
        return replace(successor, is_current=True)
