from __future__ import annotations

import sqlite3

from .helpers import add_column_if_missing, table_exists


def ensure_documents_table(conn: sqlite3.Connection) -> None:
    if not table_exists(conn, "documents"):
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                doc_id TEXT PRIMARY KEY,
                logical_name TEXT NOT NULL,
                storage_key TEXT NOT NULL UNIQUE,
                version INTEGER NOT NULL CHECK (version >= 1),
                size_bytes INTEGER NOT NULL,
                mime_type TEXT NOT NULL,
                extension TEXT NOT NULL DEFAULT '',
                is_current INTEGER NOT NULL DEFAULT 1,
                created_at_ms INTEGER NOT NULL
            )
            """
        )
    add_column_if_missing(conn, "documents", "extension TEXT NOT NULL DEFAULT ''")

    conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(created_at_ms)")
    conn.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS uq_documents_name_version ON documents(logical_name, version)"
    )
    # At most one current record per logical name.
    conn.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS uq_documents_current ON documents(logical_name) WHERE is_current = 1"
    )

    # High-water mark per logical name; survives deletion of the top version.
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS version_counters (
            logical_name TEXT PRIMARY KEY,
            last_version INTEGER NOT NULL CHECK (last_version >= 0)
        )
        """
    )
    conn.execute(
        """
        INSERT OR IGNORE INTO version_counters (logical_name, last_version)
        SELECT logical_name, MAX(version) FROM documents GROUP BY logical_name
        """
    )
