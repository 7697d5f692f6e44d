from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response

from docvault.app.core.deps import DepsDep

router = APIRouter()


@router.get("/file/preview/{doc_id}")
def preview_file(doc_id: str, deps: DepsDep):
    """
    PNG preview of a stored version.

    Unknown ids are 404. Anything that goes wrong while rendering an existing
    record still answers 200 with a placeholder image; `X-Preview-State` tells
    the two apart.
    """
    preview = deps.manager.get_preview(doc_id)
    return Response(
        content=preview.content,
        media_type=preview.media_type,
        headers={
            "Cache-Control": "no-store",
            "X-Preview-State": preview.state.value,
        },
    )
