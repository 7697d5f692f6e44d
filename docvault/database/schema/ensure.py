from __future__ import annotations

from pathlib import Path

from docvault.database.sqlite import connect_sqlite

from .documents import ensure_documents_table


def ensure_schema(db_path: str | Path) -> None:
    """
    Ensure the catalog schema exists and apply additive schema changes.

    Safe to call repeatedly; no-op when schema already exists.
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = connect_sqlite(db_path)
    try:
        ensure_documents_table(conn)
        conn.commit()
    finally:
        conn.close()
