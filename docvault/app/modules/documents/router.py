from __future__ import annotations

import logging

from fastapi import APIRouter, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from docvault.app.core.deps import DepsDep
from docvault.services.documents.document_manager import content_disposition
from docvault.services.documents.errors import RecordNotFound

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/files/upload", status_code=201)
async def upload_file(deps: DepsDep, file: UploadFile = File(...)):
    """
    Store an upload as the next version of its logical name.

    The logical name is the declared filename with its extension replaced by
    the one matching the detected content type.
    """
    content = await file.read()
    result = await run_in_threadpool(deps.manager.upload, content, file.filename)
    payload = result.record.to_dict()
    payload["upload_status"] = "success"
    payload["version_info"] = {
        "current": result.record.version,
        "total": result.total_versions,
    }
    return payload


@router.get("/files")
def list_files(deps: DepsDep):
    return [r.to_dict() for r in deps.manager.list_documents()]


@router.get("/files/versions/{logical_name}")
def list_file_versions(logical_name: str, deps: DepsDep):
    versions = deps.manager.list_versions(logical_name)
    if not versions:
        raise RecordNotFound(f"No versions found for {logical_name}")
    return {
        "logical_name": logical_name,
        "total_versions": len(versions),
        "versions": [r.to_dict() for r in versions],
    }


@router.get("/files/{doc_id}")
def download_file(doc_id: str, deps: DepsDep):
    doc = deps.manager.get_raw_file(doc_id)
    return Response(
        content=doc.content,
        media_type=doc.mime_type or "application/octet-stream",
        headers={"Content-Disposition": content_disposition(doc.filename)},
    )


@router.delete("/files/{doc_id}")
def delete_file(doc_id: str, deps: DepsDep):
    result = deps.manager.delete_version(doc_id)
    return {
        "message": "File version deleted",
        "doc_id": result.doc_id,
        "blob_removed": result.blob_removed,
        "promoted_doc_id": result.promoted_doc_id,
    }
