from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Protocol

from docvault.services.documents.errors import ConversionFailed
from docvault.services.preview.process import run_tool
from docvault.services.preview.workspace import TempWorkspace

logger = logging.getLogger(__name__)


OFFICE_SUFFIXES = {
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "application/vnd.ms-excel": ".xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
    "application/vnd.ms-powerpoint": ".ppt",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": ".pptx",
}


class DocumentConverter(Protocol):
    def convert_to_pdf(self, content: bytes, *, suffix: str) -> bytes: ...


def find_soffice(configured: str | None = None) -> str | None:
    return configured or shutil.which("soffice") or shutil.which("libreoffice")


class SofficeConverter:
    """
    Office -> PDF using LibreOffice (soffice) headless mode.

    Supports .doc/.docx/.xls/.xlsx/.ppt/.pptx (depending on installed LO components).
    Each call gets its own workspace and LibreOffice profile, so parallel
    conversions do not contend for the shared user installation lock.
    """

    def __init__(self, *, executable: str | None = None, timeout_s: float = 60.0):
        self._executable = executable
        self.timeout_s = timeout_s

    def ensure_available(self) -> str:
        exe = find_soffice(self._executable)
        if not exe:
            raise ConversionFailed("soffice not found (LibreOffice is required for office -> pdf preview)")
        return exe

    def _run_convert(self, input_path: Path, outdir: Path, profile_dir: Path) -> Path:
        cmd = [
            self.ensure_available(),
            f"-env:UserInstallation={profile_dir.as_uri()}",
            "--headless",
            "--nologo",
            "--nofirststartwizard",
            "--norestore",
            "--convert-to",
            "pdf",
            "--outdir",
            str(outdir),
            str(input_path),
        ]
        result = run_tool(cmd, timeout_s=self.timeout_s, cwd=outdir)
        if result.returncode != 0:
            raise ConversionFailed(f"soffice convert failed: {result.stderr.strip() or result.stdout.strip()}")

        pdf_path = outdir / f"{input_path.stem}.pdf"
        if not pdf_path.is_file():
            candidates = sorted(outdir.glob("*.pdf"))
            if not candidates:
                raise ConversionFailed("soffice did not produce a PDF output")
            pdf_path = candidates[0]
        return pdf_path

    def convert_to_pdf(self, content: bytes, *, suffix: str) -> bytes:
        with TempWorkspace(prefix="docvault_office") as workdir:
            outdir = workdir / "out"
            outdir.mkdir()
            src = workdir / f"input{suffix.lower()}"
            src.write_bytes(content)
            pdf_path = self._run_convert(src, outdir, workdir / "profile")
            data = pdf_path.read_bytes()
        if not data:
            raise ConversionFailed("soffice produced an empty PDF")
        logger.debug("soffice converted %s bytes (%s) to %s bytes of PDF", len(content), suffix, len(data))
        return data
