from __future__ import annotations

from docvault.services.preview.svg import load_font, render_svg, svg_document, text_element, text_width

ERROR_SIZE = (600, 300)
ERROR_BACKGROUND = "#ffc8c8"
ERROR_TEXT = "red"

UNSUPPORTED_BACKGROUND = "#f0f0f0"
UNSUPPORTED_TEXT = "gray"
UNSUPPORTED_MARGIN = 24
UNSUPPORTED_MIN_WIDTH = 240
UNSUPPORTED_MAX_WIDTH = 800
UNSUPPORTED_HEIGHT = 80

FONT_FAMILY = "Arial, sans-serif"
FONT_SIZE = 16


def build_error_svg(message: str) -> str:
    width, height = ERROR_SIZE
    body = [
        text_element(
            message,
            x="50%",
            y="50%",
            font_size=FONT_SIZE,
            font_family=FONT_FAMILY,
            fill=ERROR_TEXT,
            text_anchor="middle",
            dominant_baseline="middle",
        )
    ]
    return svg_document(width, height, ERROR_BACKGROUND, body)


def build_unsupported_svg(message: str) -> str:
    font = load_font(FONT_FAMILY, FONT_SIZE)
    width = text_width(message, font) + 2 * UNSUPPORTED_MARGIN
    width = max(UNSUPPORTED_MIN_WIDTH, min(UNSUPPORTED_MAX_WIDTH, width))
    body = [
        text_element(
            message,
            x=UNSUPPORTED_MARGIN,
            y="50%",
            font_size=FONT_SIZE,
            font_family=FONT_FAMILY,
            fill=UNSUPPORTED_TEXT,
            dominant_baseline="middle",
        )
    ]
    return svg_document(width, UNSUPPORTED_HEIGHT, UNSUPPORTED_BACKGROUND, body)


def render_error_placeholder(message: str) -> bytes:
    return render_svg(build_error_svg(message))


def render_unsupported_placeholder(message: str) -> bytes:
    return render_svg(build_unsupported_svg(message))


def unsupported_message(filename: str | None, mime_type: str | None = None) -> str:
    name = filename or ""
    ext = name.rsplit(".", 1)[-1].upper() if "." in name else ""
    if not ext and mime_type:
        ext = mime_type.split("/")[-1].upper()
    return f"No preview available for {ext or 'this type of'} files"
