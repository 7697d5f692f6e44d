from __future__ import annotations

import concurrent.futures
import logging
from typing import Optional

from docvault.services.documents.errors import TimeoutExceeded
from docvault.services.documents.models import PreviewImage, PreviewState
from docvault.services.office_to_pdf import OFFICE_SUFFIXES, DocumentConverter
from docvault.services.pdf_to_png import PageRasterizer
from docvault.services.preview.image_backend import ImageBackend
from docvault.services.preview.office_backend import OfficeBackend
from docvault.services.preview.pdf_backend import PdfBackend
from docvault.services.preview.placeholder import (
    render_error_placeholder,
    render_unsupported_placeholder,
    unsupported_message,
)
from docvault.services.preview.text_backend import TextBackend

logger = logging.getLogger(__name__)

PDF_TYPES = frozenset({"application/pdf"})
OFFICE_TYPES = frozenset(OFFICE_SUFFIXES)
TEXT_TYPES = frozenset({"text/plain", "text/csv", "application/json"})

_FAMILY_LABELS = {
    "image": "image",
    "pdf": "PDF",
    "office": "document",
    "text": "text",
}


def classify(mime_type: str | None) -> Optional[str]:
    """Map a stored MIME type to a backend family, or None when nothing can render it."""
    mt = (mime_type or "").strip().lower()
    if mt.startswith("image/"):
        return "image"
    if mt in PDF_TYPES:
        return "pdf"
    if mt in OFFICE_TYPES:
        return "office"
    if mt in TEXT_TYPES:
        return "text"
    return None


class PreviewDispatcher:
    """
    Routes a document to the backend for its type and always returns a PNG.

    Backend failures of any kind end in an error placeholder; types without a
    backend end in an "unsupported" placeholder. With `render_timeout_s` set,
    backends run on a worker pool and a render that outlives the deadline is
    abandoned and answered with an error placeholder; its thread finishes in
    the background.
    """

    def __init__(
        self,
        *,
        rasterizer: PageRasterizer,
        converter: DocumentConverter,
        max_edge: int = 800,
        render_timeout_s: float | None = None,
        render_workers: int = 4,
    ):
        self.render_timeout_s = render_timeout_s
        self._pool = (
            concurrent.futures.ThreadPoolExecutor(max_workers=max(1, render_workers), thread_name_prefix="preview")
            if render_timeout_s is not None
            else None
        )
        self._image = ImageBackend(max_edge=max_edge)
        self._pdf = PdfBackend(rasterizer, max_edge=max_edge)
        self._office = OfficeBackend(converter, self._pdf)
        self._text = TextBackend()

    def _transition(self, state: PreviewState, filename: str | None, detail: str = "") -> None:
        logger.debug("preview %s: %s %s", filename, state.value, detail)

    def _run_backend(self, family: str, content: bytes, mime_type: str) -> bytes:
        if family == "image":
            return self._image.render(content)
        if family == "pdf":
            return self._pdf.render(content)
        if family == "office":
            return self._office.render(content, mime_type)
        return self._text.render(content)

    def _run_with_deadline(self, family: str, content: bytes, mime_type: str) -> bytes:
        if self._pool is None:
            return self._run_backend(family, content, mime_type)
        future = self._pool.submit(self._run_backend, family, content, mime_type)
        try:
            return future.result(timeout=self.render_timeout_s)
        except concurrent.futures.TimeoutError as e:
            future.cancel()
            raise TimeoutExceeded(f"{family} preview exceeded {self.render_timeout_s}s") from e

    def close(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)

    def _error(self, message: str) -> PreviewImage:
        return PreviewImage(
            content=render_error_placeholder(message),
            state=PreviewState.FALLBACK,
            message=message,
        )

    def render(
        self,
        content: bytes | None,
        mime_type: str | None,
        filename: str | None = None,
        *,
        load_error: BaseException | None = None,
    ) -> PreviewImage:
        self._transition(PreviewState.RECEIVED, filename, mime_type or "")
        if load_error is not None or content is None:
            logger.warning("Preview source unavailable for %s: %s", filename, load_error)
            return self._error("Failed to load document for preview")

        family = classify(mime_type)
        self._transition(PreviewState.CLASSIFIED, filename, family or "unsupported")
        if family is None:
            message = unsupported_message(filename, mime_type)
            self._transition(PreviewState.FALLBACK, filename, message)
            return PreviewImage(
                content=render_unsupported_placeholder(message),
                state=PreviewState.FALLBACK,
                message=message,
            )

        self._transition(PreviewState.RENDERING, filename, family)
        try:
            png = self._run_with_deadline(family, content, mime_type or "")
        except Exception as e:
            label = _FAMILY_LABELS[family]
            logger.error("Failed to generate %s preview for %s: %s", label, filename, e)
            self._transition(PreviewState.FALLBACK, filename, type(e).__name__)
            return self._error(f"Failed to generate {label} preview")

        self._transition(PreviewState.RENDERED, filename, f"{len(png)} bytes")
        return PreviewImage(content=png, state=PreviewState.RENDERED)
