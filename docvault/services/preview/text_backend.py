from __future__ import annotations

from docvault.services.preview.svg import render_svg, svg_document, text_element

MAX_CHARS = 2000
CANVAS_WIDTH = 800
MAX_HEIGHT = 600
MARGIN = 20
LINE_HEIGHT = 24
FONT_SIZE = 16
FONT_FAMILY = "monospace"


def build_text_svg(data: bytes) -> str:
    text = data.decode("utf-8", errors="replace")[:MAX_CHARS]
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    height = min(MAX_HEIGHT, MARGIN * 2 + len(lines) * LINE_HEIGHT)

    body = []
    for i, line in enumerate(lines):
        y = MARGIN + i * LINE_HEIGHT
        if y > height:
            break
        body.append(
            text_element(
                line.expandtabs(4),
                x=MARGIN,
                y=y,
                font_size=FONT_SIZE,
                font_family=FONT_FAMILY,
                preserve_space=True,
            )
        )
    return svg_document(CANVAS_WIDTH, height, "white", body)


class TextBackend:
    """Plain text, CSV and JSON as a monospace snapshot of the first lines."""

    def render(self, data: bytes) -> bytes:
        return render_svg(build_text_svg(data))
