from __future__ import annotations

from docvault.services.documents.errors import ConversionFailed, EmptyBuffer, PreviewError
from docvault.services.office_to_pdf import OFFICE_SUFFIXES, DocumentConverter
from docvault.services.preview.pdf_backend import PdfBackend


class OfficeBackend:
    """Office document -> PDF (external converter) -> PDF backend."""

    def __init__(self, converter: DocumentConverter, pdf_backend: PdfBackend):
        self._converter = converter
        self._pdf_backend = pdf_backend

    def render(self, data: bytes, mime_type: str) -> bytes:
        if not data:
            raise EmptyBuffer("Empty office document buffer received")
        suffix = OFFICE_SUFFIXES.get(mime_type, "")
        try:
            pdf_bytes = self._converter.convert_to_pdf(data, suffix=suffix)
        except PreviewError:
            raise
        except Exception as e:
            raise ConversionFailed(f"office conversion failed: {e}") from e
        return self._pdf_backend.render(pdf_bytes)
