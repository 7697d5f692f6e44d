from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docvault.app.core.config import settings
from docvault.app.core.errors import register_exception_handlers
from docvault.app.core.logging_setup import configure_logging
from docvault.app.core.request_id import RequestIdMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from docvault.app.dependencies import create_dependencies

    if getattr(app.state, "deps", None) is None:
        app.state.deps = create_dependencies()
    logger.info("Dependencies initialized")

    yield

    logger.info("Shutting down...")
    app.state.deps.dispatcher.close()


def create_app(deps=None) -> FastAPI:
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Versioned document store with PNG previews",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.deps = deps

    app.add_middleware(RequestIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    from docvault.app.modules.documents.router import router as documents_router
    from docvault.app.modules.preview.router import router as preview_router

    app.include_router(documents_router, prefix="/api", tags=["Documents"])
    app.include_router(preview_router, prefix="/api", tags=["Preview"])

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": settings.APP_NAME}

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    return app


app = create_app()
