from __future__ import annotations

from pathlib import Path


def package_root() -> Path:
    # docvault/app/core/paths.py -> docvault
    return Path(__file__).resolve().parents[2]


def repo_root() -> Path:
    return package_root().parent


def resolve_repo_path(path: str | Path) -> Path:
    """
    Resolve a path relative to the repository root (the parent of `docvault/`).

    Used for runtime configuration paths such as:
    - settings.DATABASE_PATH (default: data/catalog.db)
    - settings.UPLOAD_DIR (default: data/blobs)
    - settings.LOG_FILE
    """
    p = Path(path)
    if p.is_absolute():
        return p
    return repo_root() / p
