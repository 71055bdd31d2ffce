"""Vector backend: serialize a layout as a self-contained SVG in module units."""

import base64
import re
from dataclasses import dataclass

import svgwrite

from dotqr.geometry import (
    VECTOR_BG_PADDING,
    VECTOR_BG_RADIUS,
    VECTOR_CAPTION_BAND,
    VECTOR_CAPTION_GAP,
    VECTOR_FONT_SIZE,
    VECTOR_TEXT_WIDTH_RATIO,
)
from dotqr.layout import Layout, Surface
from dotqr.logging import audit, get_logger, trace
from dotqr.primitives import Circle, EmbeddedImage, Primitive, RoundedRect, TextRun
from dotqr.style import color_to_hex
from dotqr.urlwrap import char_count_measure

log = get_logger("vector")

FONT_FAMILY = "Arial, sans-serif"
_TEXT_ANCHORS = {"middle": "middle", "start": "start", "end": "end"}

# ElementTree leaves quotes literal in text nodes
_TEXT_NODE = re.compile(r"(<text\b[^>]*>)([^<]*)(</text>)")
_QUOTE_ENTITIES = {"\"": "&quot;", "'": "&apos;"}


@dataclass(frozen=True)
class VectorDocument:
    """SVG markup plus its declared width/height."""

    markup: str
    width: float
    height: float

    @property
    def aspect_ratio(self) -> float:
        return self.height / self.width

    def to_bytes(self) -> bytes:
        return self.markup.encode("utf-8")


def vector_surface() -> Surface:
    """Module-unit surface; captions wrap on an estimated character count."""
    return Surface(
        name="vector",
        scale=1.0,
        snap_to_pixels=False,
        caption_gap=VECTOR_CAPTION_GAP,
        caption_band=VECTOR_CAPTION_BAND,
        font_size=VECTOR_FONT_SIZE,
        text_width_ratio=VECTOR_TEXT_WIDTH_RATIO,
        bg_padding=VECTOR_BG_PADDING,
        bg_radius=VECTOR_BG_RADIUS,
        measure=char_count_measure,
        estimate_chars=True,
    )


def _n(value: float) -> str:
    return f"{value:.2f}"


def _dim(value: float) -> str:
    return f"{value:g}"


def data_uri(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def escape_text_quotes(markup: str) -> str:
    """Entity-encode quotes inside <text> content of serialized SVG markup."""
    def _sub(m: re.Match) -> str:
        body = "".join(_QUOTE_ENTITIES.get(ch, ch) for ch in m.group(2))
        return m.group(1) + body + m.group(3)
    return _TEXT_NODE.sub(_sub, markup)


# ---------------------------------------------------------------------------
# Primitive → element
# ---------------------------------------------------------------------------

def _element(dwg: svgwrite.Drawing, prim: Primitive):
    if isinstance(prim, Circle):
        return dwg.circle(center=(_n(prim.cx), _n(prim.cy)), r=_n(prim.r),
                          fill=color_to_hex(prim.color))
    if isinstance(prim, RoundedRect):
        rect = dwg.rect(insert=(_n(prim.x), _n(prim.y)), size=(_n(prim.width), _n(prim.height)),
                        fill=color_to_hex(prim.color))
        if prim.radius > 0:
            rect["rx"] = _n(prim.radius)
            rect["ry"] = _n(prim.radius)
        return rect
    if isinstance(prim, EmbeddedImage):
        # Inline bytes keep the document self-contained
        image = dwg.image(href=data_uri(prim.logo.mime_type, prim.logo.data),
                          insert=(_n(prim.x), _n(prim.y)), size=(_n(prim.width), _n(prim.height)))
        image.fit(horiz="center", vert="middle", scale="meet")
        return image
    if isinstance(prim, TextRun):
        return dwg.text(prim.text, insert=(_n(prim.x), _n(prim.y)),
                        font_family=FONT_FAMILY, font_size=_n(prim.font_size),
                        font_weight="bold" if prim.bold else "normal",
                        fill=color_to_hex(prim.color),
                        text_anchor=_TEXT_ANCHORS[prim.anchor])
    raise TypeError(f"Unsupported primitive: {type(prim).__name__}")


@trace
def render_vector(layout: Layout) -> VectorDocument:
    """Serialize *layout* (laid out on the vector surface) to SVG.

    Width, height and viewBox all equal the module-unit canvas, so the
    document scales without re-layout. Caption text has all five XML
    special characters escaped.
    """
    w, h = layout.width, layout.height
    dwg = svgwrite.Drawing(
        size=(_dim(w), _dim(h)),
        viewBox=f"0 0 {_dim(w)} {_dim(h)}",
        profile="full",
        debug=False,
    )
    dwg.add(dwg.rect(insert=(0, 0), size=(_dim(w), _dim(h)), fill="white"))
    for prim in layout.primitives:
        dwg.add(_element(dwg, prim))

    markup = escape_text_quotes(dwg.tostring())
    audit("vector.rendered", logger=log,
          size=f"{_dim(w)}x{_dim(h)}", primitives=len(layout.primitives), chars=len(markup))
    return VectorDocument(markup=markup, width=w, height=h)
