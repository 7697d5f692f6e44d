from __future__ import annotations

import logging
from dataclasses import dataclass

from docvault.app.core.config import settings
from docvault.app.core.paths import resolve_repo_path
from docvault.database.paths import resolve_catalog_db_path
from docvault.database.schema.ensure import ensure_schema
from docvault.services.blob_store import BlobStore, LocalBlobStore
from docvault.services.catalog.store import SqliteCatalogStore
from docvault.services.documents.document_manager import DocumentManager
from docvault.services.documents.version_ledger import VersionLedger
from docvault.services.office_to_pdf import SofficeConverter
from docvault.services.pdf_to_png import PdftoppmRasterizer
from docvault.services.preview.dispatcher import PreviewDispatcher

logger = logging.getLogger(__name__)


@dataclass
class AppDependencies:
    catalog: SqliteCatalogStore
    blob_store: BlobStore
    ledger: VersionLedger
    dispatcher: PreviewDispatcher
    manager: DocumentManager


def create_blob_store() -> BlobStore:
    if settings.BLOB_BACKEND == "s3":
        from docvault.services.blob_store.s3_store import S3BlobStore

        return S3BlobStore(
            endpoint_url=settings.S3_ENDPOINT_URL,
            access_key=settings.S3_ACCESS_KEY,
            secret_key=settings.S3_SECRET_KEY,
            region=settings.S3_REGION,
        )
    return LocalBlobStore(resolve_repo_path(settings.UPLOAD_DIR))


def create_dispatcher() -> PreviewDispatcher:
    return PreviewDispatcher(
        rasterizer=PdftoppmRasterizer(
            executable=settings.PDFTOPPM_PATH,
            dpi=settings.PDF_RENDER_DPI,
            timeout_s=settings.PREVIEW_TIMEOUT_S,
        ),
        converter=SofficeConverter(executable=settings.SOFFICE_PATH, timeout_s=settings.PREVIEW_TIMEOUT_S),
        max_edge=settings.PREVIEW_MAX_EDGE,
        render_timeout_s=settings.PREVIEW_RENDER_DEADLINE_S,
    )


def create_dependencies(db_path: str | None = None, *, blob_store: BlobStore | None = None) -> AppDependencies:
    db_path = resolve_catalog_db_path(db_path)
    ensure_schema(str(db_path))

    catalog = SqliteCatalogStore(db_path=str(db_path))
    blob_store = blob_store or create_blob_store()
    blob_store.ensure_bucket(settings.BLOB_BUCKET)
    ledger = VersionLedger(catalog)
    dispatcher = create_dispatcher()

    logger.info("Catalog at %s, blob backend %s, bucket %s", db_path, settings.BLOB_BACKEND, settings.BLOB_BUCKET)
    return AppDependencies(
        catalog=catalog,
        blob_store=blob_store,
        ledger=ledger,
        dispatcher=dispatcher,
        manager=DocumentManager(
            catalog=catalog,
            blob_store=blob_store,
            ledger=ledger,
            dispatcher=dispatcher,
            bucket=settings.BLOB_BUCKET,
            max_file_size=settings.MAX_FILE_SIZE,
        ),
    )
