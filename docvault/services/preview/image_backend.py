from __future__ import annotations

import io

from PIL import Image, UnidentifiedImageError

from docvault.services.documents.errors import EmptyBuffer, UnsupportedDocument

_PNG_SAFE_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I"}


def fit_within(data: bytes, max_width: int = 800, max_height: int = 800) -> bytes:
    """
    Decode an image, shrink it to fit `max_width` x `max_height` keeping its
    aspect ratio, and re-encode as PNG. Smaller images keep their size.
    """
    if not data:
        raise EmptyBuffer("Empty file buffer received")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            frame = img.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise UnsupportedDocument(f"cannot decode image: {e}") from e

    if frame.mode not in _PNG_SAFE_MODES:
        frame = frame.convert("RGBA")
    # thumbnail() only ever shrinks.
    frame.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)

    buf = io.BytesIO()
    frame.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


class ImageBackend:
    def __init__(self, *, max_edge: int = 800):
        self.max_edge = max_edge

    def render(self, data: bytes) -> bytes:
        return fit_within(data, self.max_edge, self.max_edge)
