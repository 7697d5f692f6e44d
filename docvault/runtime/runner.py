from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from docvault.app.core.config import settings
from docvault.app.core.logging_setup import configure_logging
from docvault.app.core.paths import repo_root, resolve_repo_path
from docvault.database.paths import resolve_catalog_db_path
from docvault.database.schema.ensure import ensure_schema
from docvault.services.office_to_pdf import find_soffice
from docvault.services.pdf_to_png import find_pdftoppm

logger = logging.getLogger(__name__)


def resolved_paths(*, db_path: str | Path | None = None) -> dict[str, Path]:
    return {
        "repo_root": repo_root(),
        "catalog_db": resolve_catalog_db_path(db_path),
        "blob_dir": resolve_repo_path(settings.UPLOAD_DIR),
    }


def ensure_database(*, db_path: str | Path | None = None) -> Path:
    path = resolve_catalog_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    ensure_schema(str(path))
    return path


def ensure_storage() -> None:
    from docvault.app.dependencies import create_blob_store

    store = create_blob_store()
    store.ensure_bucket(settings.BLOB_BUCKET)


def print_paths(*, db_path: str | Path | None = None) -> None:
    paths = resolved_paths(db_path=db_path)
    print("[PATHS]")
    print(f"- repo root:  {paths['repo_root']}")
    print(f"- catalog db: {paths['catalog_db']}")
    if settings.BLOB_BACKEND == "s3":
        print(f"- blobs:      s3 {settings.S3_ENDPOINT_URL or '(aws default)'} bucket={settings.BLOB_BUCKET}")
    else:
        print(f"- blobs:      {paths['blob_dir'] / settings.BLOB_BUCKET}")


def check_tools() -> bool:
    """Report which external converters are reachable. Returns True when all are."""
    tools = {
        "pdftoppm": find_pdftoppm(settings.PDFTOPPM_PATH),
        "soffice": find_soffice(settings.SOFFICE_PATH),
    }
    for name, path in tools.items():
        if path:
            print(f"[OK] {name}: {path}")
        else:
            print(f"[MISSING] {name}: previews that need it will show an error placeholder")
    return all(tools.values())


def run_server(*, host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    import uvicorn

    uvicorn.run(
        "docvault.app.main:app",
        host=host or settings.HOST,
        port=port or settings.PORT,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


def main(argv: list[str] | None = None) -> None:
    configure_logging()

    # `python -m docvault.runtime.runner` with no arguments starts the server.
    if argv is None and len(sys.argv) == 1:
        run_server()
        return

    parser = argparse.ArgumentParser(description="docvault document store")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="start the HTTP service")
    p_run.add_argument("--host", default=None)
    p_run.add_argument("--port", type=int, default=None)
    p_run.add_argument("--reload", action="store_true", help="development auto-reload")

    p_init = sub.add_parser("init-db", help="create the catalog schema and the blob bucket")
    p_init.add_argument(
        "--db-path",
        default=None,
        help="catalog path (relative paths resolve against the repo root; default settings.DATABASE_PATH)",
    )

    sub.add_parser("check-tools", help="report whether pdftoppm and soffice are available")

    p_paths = sub.add_parser("paths", help="print the resolved data locations")
    p_paths.add_argument("--db-path", default=None)

    args = parser.parse_args(argv)

    if args.cmd == "run":
        run_server(host=args.host, port=args.port, reload=bool(args.reload))
        return

    if args.cmd == "init-db":
        ensure_database(db_path=args.db_path)
        ensure_storage()
        print("[OK] catalog schema and bucket ready")
        print_paths(db_path=args.db_path)
        return

    if args.cmd == "check-tools":
        if not check_tools():
            raise SystemExit(1)
        return

    if args.cmd == "paths":
        print_paths(db_path=args.db_path)
        return

    raise SystemExit(2)


if __name__ == "__main__":
    main()
