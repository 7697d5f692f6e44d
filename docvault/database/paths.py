from __future__ import annotations

from pathlib import Path

from docvault.app.core.config import settings
from docvault.app.core.paths import resolve_repo_path


def resolve_catalog_db_path(db_path: str | Path | None = None) -> Path:
    """
    Resolve catalog.db path consistently across runtime + CLI.

    - When db_path is relative, it's resolved relative to repo root (the parent of `docvault/`).
    """
    raw = db_path if db_path is not None else settings.DATABASE_PATH
    return resolve_repo_path(raw)
