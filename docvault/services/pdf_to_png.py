from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Protocol

from docvault.services.documents.errors import ConversionFailed
from docvault.services.preview.process import run_tool
from docvault.services.preview.workspace import TempWorkspace

logger = logging.getLogger(__name__)


class PageRasterizer(Protocol):
    def rasterize(self, pdf_bytes: bytes) -> bytes:
        """Render the first page of a PDF to PNG bytes."""
        ...


def find_pdftoppm(configured: str | None = None) -> str | None:
    return configured or shutil.which("pdftoppm")


class PdftoppmRasterizer:
    """Poppler's `pdftoppm`, one page per call, inside a private temp workspace."""

    def __init__(self, *, executable: str | None = None, dpi: int = 100, timeout_s: float = 60.0):
        self._executable = executable
        self.dpi = dpi
        self.timeout_s = timeout_s

    def _ensure_available(self) -> str:
        exe = find_pdftoppm(self._executable)
        if not exe:
            raise ConversionFailed("pdftoppm not found (poppler-utils is required for PDF preview)")
        return exe

    def render_page(self, pdf_path: Path, page_index: int, out_prefix: Path) -> Path:
        """
        Render page `page_index` (0-based) of `pdf_path` to `<out_prefix>.png`.

        `-singlefile` keeps the output name free of pdftoppm's zero-padded page suffix.
        """
        page = page_index + 1
        cmd = [
            self._ensure_available(),
            "-png",
            "-f",
            str(page),
            "-l",
            str(page),
            "-r",
            str(self.dpi),
            "-singlefile",
            str(pdf_path),
            str(out_prefix),
        ]
        result = run_tool(cmd, timeout_s=self.timeout_s, cwd=pdf_path.parent)
        if result.returncode != 0:
            raise ConversionFailed(
                f"pdftoppm failed ({result.returncode}): {result.stderr.strip() or result.stdout.strip()}"
            )

        out_path = out_prefix.with_name(f"{out_prefix.name}.png")
        if not out_path.is_file() or out_path.stat().st_size == 0:
            raise ConversionFailed("pdftoppm did not produce a PNG output")
        return out_path

    def rasterize(self, pdf_bytes: bytes) -> bytes:
        with TempWorkspace(prefix="docvault_pdf") as workdir:
            pdf_path = workdir / "input.pdf"
            pdf_path.write_bytes(pdf_bytes)
            png_path = self.render_page(pdf_path, 0, workdir / "preview")
            return png_path.read_bytes()
