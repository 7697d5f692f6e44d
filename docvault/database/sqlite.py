from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import Any, Iterable

_TRANSIENT_OPEN_ERRORS = ("unable to open database file", "database is locked")

_DEFAULT_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA busy_timeout = 5000",
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
)


def connect_sqlite(
    db_path: str | Path,
    *,
    timeout_s: float = 30.0,
    row_factory: Any = sqlite3.Row,
    pragmas: Iterable[str] | None = None,
    attempts: int = 5,
) -> sqlite3.Connection:
    """
    Open the catalog database with the project's defaults.

    Opening is retried with exponential backoff (0.1s, 0.2s, 0.4s, ...) when sqlite
    reports the file as locked or briefly unavailable; other errors raise at once.
    Pragmas are applied best-effort.
    """
    last_err: sqlite3.OperationalError | None = None
    conn: sqlite3.Connection | None = None
    for attempt in range(max(1, attempts)):
        try:
            conn = sqlite3.connect(str(db_path), timeout=timeout_s, check_same_thread=False)
            break
        except sqlite3.OperationalError as e:
            last_err = e
            if not any(marker in str(e).lower() for marker in _TRANSIENT_OPEN_ERRORS):
                raise
            time.sleep(0.1 * (2**attempt))
    if conn is None:
        assert last_err is not None
        raise last_err

    conn.row_factory = row_factory
    for stmt in pragmas if pragmas is not None else _DEFAULT_PRAGMAS:
        try:
            conn.execute(stmt)
        except sqlite3.OperationalError:
            continue
    return conn
