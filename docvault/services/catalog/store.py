from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol

from docvault.database.paths import resolve_catalog_db_path
from docvault.database.sqlite import connect_sqlite
from docvault.services.documents.errors import CatalogUnavailable
from docvault.services.documents.models import DocumentRecord

logger = logging.getLogger(__name__)

_COLUMNS = (
    "doc_id, logical_name, storage_key, version, size_bytes, mime_type, extension, is_current, created_at_ms"
)


class CatalogStore(Protocol):
    def find(self, logical_name: str | None = None, *, newest_first: bool = True, conn=None) -> List[DocumentRecord]: ...

    def find_by_id(self, doc_id: str, *, conn=None) -> Optional[DocumentRecord]: ...

    def insert(self, record: DocumentRecord, *, conn=None) -> None: ...

    def update_many(self, *, logical_name: str, is_current: bool, doc_id: str | None = None, conn=None) -> int: ...

    def delete_by_id(self, doc_id: str, *, conn=None) -> bool: ...

    def last_version(self, logical_name: str, *, conn=None) -> int: ...

    def raise_last_version(self, logical_name: str, version: int, *, conn=None) -> None: ...

    def transaction(self): ...


def _row_to_record(row) -> DocumentRecord:
    return DocumentRecord(
        doc_id=row["doc_id"],
        logical_name=row["logical_name"],
        storage_key=row["storage_key"],
        version=int(row["version"]),
        size_bytes=int(row["size_bytes"]),
        mime_type=row["mime_type"],
        extension=row["extension"] or "",
        is_current=bool(row["is_current"]),
        created_at_ms=int(row["created_at_ms"]),
    )


class SqliteCatalogStore:
    """
    Document catalog backed by the `documents` table.

    Every public method accepts an optional `conn` so the version ledger can run
    several statements inside one `transaction()`. Without it, each call opens,
    commits and closes its own connection.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = resolve_catalog_db_path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        try:
            return connect_sqlite(self.db_path)
        except sqlite3.Error as e:
            raise CatalogUnavailable(f"catalog unavailable: {e}") from e

    @contextmanager
    def _use(self, conn: sqlite3.Connection | None) -> Iterator[sqlite3.Connection]:
        if conn is not None:
            yield conn
            return
        own = self._get_connection()
        try:
            yield own
            own.commit()
        except sqlite3.Error as e:
            own.rollback()
            raise CatalogUnavailable(f"catalog operation failed: {e}") from e
        finally:
            own.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Exclusive write transaction (BEGIN IMMEDIATE).

        Readers inside the block see a snapshot no other writer can change until
        commit, which makes read-then-write sequences safe across processes.
        """
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def find(
        self,
        logical_name: str | None = None,
        *,
        newest_first: bool = True,
        conn: sqlite3.Connection | None = None,
    ) -> List[DocumentRecord]:
        query = f"SELECT {_COLUMNS} FROM documents"
        params: list = []
        if logical_name is not None:
            query += " WHERE logical_name = ?"
            params.append(logical_name)
            query += " ORDER BY version DESC" if newest_first else " ORDER BY version ASC"
        else:
            query += " ORDER BY created_at_ms DESC, version DESC" if newest_first else " ORDER BY created_at_ms ASC"

        with self._use(conn) as c:
            rows = c.execute(query, params).fetchall()
        return [_row_to_record(row) for row in rows]

    def find_by_id(self, doc_id: str, *, conn: sqlite3.Connection | None = None) -> Optional[DocumentRecord]:
        with self._use(conn) as c:
            row = c.execute(f"SELECT {_COLUMNS} FROM documents WHERE doc_id = ?", (doc_id,)).fetchone()
        return _row_to_record(row) if row else None

    def insert(self, record: DocumentRecord, *, conn: sqlite3.Connection | None = None) -> None:
        logger.debug(
            "[Catalog] insert doc_id=%s logical_name=%s version=%s",
            record.doc_id,
            record.logical_name,
            record.version,
        )
        with self._use(conn) as c:
            c.execute(
                f"""
                INSERT INTO documents ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.doc_id,
                    record.logical_name,
                    record.storage_key,
                    record.version,
                    record.size_bytes,
                    record.mime_type,
                    record.extension,
                    1 if record.is_current else 0,
                    record.created_at_ms,
                ),
            )

    def update_many(
        self,
        *,
        logical_name: str,
        is_current: bool,
        doc_id: str | None = None,
        conn: sqlite3.Connection | None = None,
    ) -> int:
        query = "UPDATE documents SET is_current = ? WHERE logical_name = ?"
        params: list = [1 if is_current else 0, logical_name]
        if doc_id is not None:
            query += " AND doc_id = ?"
            params.append(doc_id)
        with self._use(conn) as c:
            cur = c.execute(query, params)
            return int(cur.rowcount or 0)

    def delete_by_id(self, doc_id: str, *, conn: sqlite3.Connection | None = None) -> bool:
        with self._use(conn) as c:
            cur = c.execute("DELETE FROM documents WHERE doc_id = ?", (doc_id,))
            return (cur.rowcount or 0) > 0

    def last_version(self, logical_name: str, *, conn: sqlite3.Connection | None = None) -> int:
        """Highest version ever assigned to `logical_name`, deleted versions included."""
        with self._use(conn) as c:
            row = c.execute(
                "SELECT last_version FROM version_counters WHERE logical_name = ?",
                (logical_name,),
            ).fetchone()
        return int(row["last_version"]) if row else 0

    def raise_last_version(self, logical_name: str, version: int, *, conn: sqlite3.Connection | None = None) -> None:
        with self._use(conn) as c:
            c.execute(
                """
                INSERT INTO version_counters (logical_name, last_version) VALUES (?, ?)
                ON CONFLICT(logical_name) DO UPDATE SET last_version = MAX(last_version, excluded.last_version)
                """,
                (logical_name, int(version)),
            )
