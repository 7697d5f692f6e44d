from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docvault.services.documents.errors import DocumentError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DocumentError)
    async def _document_error_handler(request: Request, exc: DocumentError):
        status_code = getattr(exc, "status_code", 500)
        if status_code >= 500:
            logger.error("%s %s failed: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
        else:
            logger.info("%s %s rejected: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc) or type(exc).__name__, "error": type(exc).__name__},
        )
