"""
Small SVG subset used for synthesized previews.

Placeholders and text previews are first composed as an SVG descriptor (so the
markup can be inspected and all user text is escaped), then rasterized here
with Pillow. Supported: the root `<svg width height>`, `<rect>` and `<text>`
with `x`, `y` (absolute or %), `fill`, `font-size`, `font-family`,
`text-anchor` and `dominant-baseline`.
"""
from __future__ import annotations

import html
import io
import re
import xml.etree.ElementTree as ET
from functools import lru_cache

from PIL import Image, ImageColor, ImageDraw, ImageFont

SVG_NS = "http://www.w3.org/2000/svg"
_XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"

# Characters XML 1.0 does not allow, even escaped.
_XML_INVALID = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")

_MONO_FONTS = ("DejaVuSansMono.ttf", "LiberationMono-Regular.ttf", "cour.ttf")
_SANS_FONTS = ("DejaVuSans.ttf", "LiberationSans-Regular.ttf", "arial.ttf")


def escape_text(text: str) -> str:
    """Escape `<`, `>` and `&` and drop characters that cannot appear in XML."""
    return html.escape(_XML_INVALID.sub("", text or ""), quote=False)


def _escape_attr(value) -> str:
    return html.escape(str(value), quote=True)


def text_element(
    content: str,
    *,
    x,
    y,
    font_size: int,
    font_family: str,
    fill: str = "black",
    text_anchor: str = "start",
    dominant_baseline: str = "auto",
    preserve_space: bool = False,
) -> str:
    space = ' xml:space="preserve"' if preserve_space else ""
    return (
        f'<text x="{_escape_attr(x)}" y="{_escape_attr(y)}" font-family="{_escape_attr(font_family)}" '
        f'font-size="{int(font_size)}" fill="{_escape_attr(fill)}" text-anchor="{_escape_attr(text_anchor)}" '
        f'dominant-baseline="{_escape_attr(dominant_baseline)}"{space}>{escape_text(content)}</text>'
    )


def svg_document(width: int, height: int, background: str, body: list[str]) -> str:
    return (
        f'<svg xmlns="{SVG_NS}" width="{int(width)}" height="{int(height)}">'
        f'<rect width="100%" height="100%" fill="{_escape_attr(background)}"/>'
        + "".join(body)
        + "</svg>"
    )


@lru_cache(maxsize=32)
def load_font(family: str, size: int):
    candidates = _MONO_FONTS if "mono" in (family or "").lower() else _SANS_FONTS
    for name in candidates:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def text_width(text: str, font) -> int:
    left, _, right, _ = font.getbbox(text or " ")
    return int(right - left)


def _length(value: str | None, reference: int, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    raw = value.strip()
    if raw.endswith("%"):
        return reference * float(raw[:-1]) / 100.0
    if raw.endswith("px"):
        raw = raw[:-2]
    return float(raw)


def _color(value: str | None, default: str):
    return ImageColor.getrgb(value or default)


def _local(tag: str) -> str:
    return tag.split("}")[-1]


def _draw_rect(draw: ImageDraw.ImageDraw, el: ET.Element, width: int, height: int) -> None:
    x = _length(el.get("x"), width)
    y = _length(el.get("y"), height)
    w = _length(el.get("width"), width)
    h = _length(el.get("height"), height)
    if w <= 0 or h <= 0:
        return
    draw.rectangle([x, y, x + w - 1, y + h - 1], fill=_color(el.get("fill"), "black"))


def _draw_text(draw: ImageDraw.ImageDraw, el: ET.Element, width: int, height: int) -> None:
    content = "".join(el.itertext())
    if el.get(_XML_SPACE) != "preserve":
        content = " ".join(content.split())
    if not content:
        return

    font = load_font(el.get("font-family", "sans-serif"), int(float(el.get("font-size", "16"))))
    x = _length(el.get("x"), width)
    y = _length(el.get("y"), height)
    left, top, right, bottom = draw.textbbox((0, 0), content, font=font)

    anchor = el.get("text-anchor", "start")
    if anchor == "middle":
        x -= (left + right) / 2
    elif anchor == "end":
        x -= right

    baseline = el.get("dominant-baseline", "auto")
    if baseline in ("middle", "central"):
        y -= (top + bottom) / 2
    else:
        ascent = font.getmetrics()[0] if hasattr(font, "getmetrics") else bottom
        y -= ascent

    draw.text((x, y), content, font=font, fill=_color(el.get("fill"), "black"))


def render_svg(svg: str) -> bytes:
    """Rasterize an SVG descriptor built by this module to PNG bytes."""
    root = ET.fromstring(svg)
    if _local(root.tag) != "svg":
        raise ValueError("not an svg document")
    width = int(_length(root.get("width"), 0, default=0))
    height = int(_length(root.get("height"), 0, default=0))
    if width <= 0 or height <= 0:
        raise ValueError(f"invalid svg canvas {width}x{height}")

    img = Image.new("RGBA", (width, height), (255, 255, 255, 0))
    draw = ImageDraw.Draw(img)
    for el in root:
        tag = _local(el.tag)
        if tag == "rect":
            _draw_rect(draw, el, width, height)
        elif tag == "text":
            _draw_text(draw, el, width, height)

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
