"""
Content-based type detection for uploads.

The declared filename only contributes the base name (and, for text content,
picks between plain/CSV); the stored MIME type and extension always come from
the bytes themselves.
"""
from __future__ import annotations

import io
import json
import re
import zipfile
from pathlib import PureWindowsPath

import filetype

from docvault.services.documents.errors import UnrecognizedType
from docvault.services.documents.models import SniffResult

_TEXT_SAMPLE_BYTES = 64 * 1024

_PLAIN_TEXT_EXTENSIONS = {".txt", ".md", ".log", ".ini"}

_OOXML_PREFIXES = (
    ("word/", "application/vnd.openxmlformats-officedocument.wordprocessingml.document", ".docx"),
    ("xl/", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", ".xlsx"),
    ("ppt/", "application/vnd.openxmlformats-officedocument.presentationml.presentation", ".pptx"),
)

_UNSAFE_NAME_CHARS = re.compile(r"[\x00-\x1f<>:\"|?*]")


def _refine_zip(content: bytes) -> SniffResult | None:
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            names = zf.namelist()
    except zipfile.BadZipFile:
        return None
    for prefix, mime, ext in _OOXML_PREFIXES:
        if any(n.startswith(prefix) for n in names):
            return SniffResult(mime_type=mime, extension=ext)
    return None


def _sniff_text(content: bytes, declared_ext: str) -> SniffResult | None:
    sample = content[:_TEXT_SAMPLE_BYTES]
    if b"\x00" in sample:
        return None
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        return None

    stripped = text.lstrip("\ufeff").strip()
    if stripped[:1] in ("{", "["):
        try:
            json.loads(stripped)
            return SniffResult(mime_type="application/json", extension=".json")
        except ValueError:
            pass

    if declared_ext == ".csv":
        return SniffResult(mime_type="text/csv", extension=".csv")
    if declared_ext in _PLAIN_TEXT_EXTENSIONS:
        return SniffResult(mime_type="text/plain", extension=declared_ext)
    return SniffResult(mime_type="text/plain", extension=".txt")


def declared_extension(declared_filename: str | None) -> str:
    return PureWindowsPath(declared_filename or "").suffix.lower()


def sniff(content: bytes, declared_filename: str | None = None) -> SniffResult:
    """Detect the true MIME type and canonical extension of an upload."""
    if not content:
        raise UnrecognizedType("Unrecognized file type: empty upload")

    kind = filetype.guess(content)
    if kind is not None:
        result = SniffResult(mime_type=kind.mime, extension=f".{kind.extension}")
        if kind.mime == "application/zip":
            result = _refine_zip(content) or result
        return result

    text = _sniff_text(content, declared_extension(declared_filename))
    if text is not None:
        return text

    raise UnrecognizedType("Unrecognized file type")


def build_logical_name(declared_filename: str | None, extension: str) -> str:
    """
    Base name of the declared filename (directories dropped) + the detected extension.

    A mismatching declared extension is replaced: `photo.jpg` holding PNG bytes
    becomes `photo.png`.
    """
    # PureWindowsPath splits on both "/" and "\".
    name = PureWindowsPath((declared_filename or "").strip()).name
    stem = name[: -len(PureWindowsPath(name).suffix)] if PureWindowsPath(name).suffix else name
    stem = _UNSAFE_NAME_CHARS.sub("_", stem).strip().strip(".")
    if not stem:
        stem = "document"
    return f"{stem}{extension.lower()}"
