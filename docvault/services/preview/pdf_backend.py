from __future__ import annotations

import io
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from docvault.services.documents.errors import EmptyBuffer, UnsupportedDocument
from docvault.services.pdf_to_png import PageRasterizer
from docvault.services.preview.image_backend import fit_within

logger = logging.getLogger(__name__)


def count_pages(data: bytes) -> int:
    try:
        return len(PdfReader(io.BytesIO(data)).pages)
    except PdfReadError as e:
        raise UnsupportedDocument(f"unreadable PDF: {e}") from e
    except (ValueError, KeyError, TypeError, AttributeError, OSError) as e:
        # pypdf surfaces some malformed object streams as plain errors.
        raise UnsupportedDocument(f"unreadable PDF: {e}") from e


class PdfBackend:
    """First page of a PDF, rasterized by an external tool, bounded like images."""

    def __init__(self, rasterizer: PageRasterizer, *, max_edge: int = 800):
        self._rasterizer = rasterizer
        self.max_edge = max_edge

    def render(self, data: bytes) -> bytes:
        if not data:
            raise EmptyBuffer("Empty PDF buffer received")
        pages = count_pages(data)
        if pages == 0:
            raise UnsupportedDocument("PDF has no pages")
        logger.debug("Rasterizing page 1 of %s", pages)
        png = self._rasterizer.rasterize(data)
        return fit_within(png, self.max_edge, self.max_edge)
