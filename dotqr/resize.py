"""Derive output resolutions from a canonical rendering.

Raster copies are resampled with Lanczos. SVG copies get new width/height/
viewBox attributes and a uniform ``scale()`` transform on every top-level
element; the layout is never re-run. Canonical renderings are only read.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass

from PIL import Image

from dotqr.logging import audit, get_logger, trace
from dotqr.raster import RasterRendering
from dotqr.vector import VectorDocument, escape_text_quotes

log = get_logger("resize")

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
EV_NS = "http://www.w3.org/2001/xml-events"

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)
ET.register_namespace("ev", EV_NS)

DEFS_TAG = f"{{{SVG_NS}}}defs"

Rendering = RasterRendering | VectorDocument


@dataclass(frozen=True)
class DerivedArtifact:
    """One resized copy of a canonical rendering."""

    resolution: int
    width: int
    height: int
    rendering: Rendering

    @property
    def kind(self) -> str:
        return "vector" if isinstance(self.rendering, VectorDocument) else "raster"


def _parse_length(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value.strip().removesuffix("px"))
    except ValueError:
        return None


def target_height(width: int, aspect_ratio: float) -> int:
    return max(1, round(width * aspect_ratio))


# ---------------------------------------------------------------------------
# Aspect ratios
# ---------------------------------------------------------------------------

def raster_aspect_ratio(rendering: RasterRendering) -> float:
    return rendering.height / rendering.width


def svg_aspect_ratio(markup: str, fallback: float) -> float:
    """height/width declared on the SVG root, or *fallback* if unreadable."""
    try:
        root = ET.fromstring(markup)
    except ET.ParseError as e:
        log.warning("SVG could not be parsed for aspect ratio, using fallback %.4f: %s", fallback, e)
        return fallback
    width = _parse_length(root.get("width"))
    height = _parse_length(root.get("height"))
    if width is None or height is None or width <= 0:
        audit("resize.aspect_fallback", logger=log, width=root.get("width"), height=root.get("height"))
        return fallback
    return height / width


# ---------------------------------------------------------------------------
# Scaling
# ---------------------------------------------------------------------------

@trace
def resize_raster(rendering: RasterRendering, width: int, height: int) -> RasterRendering:
    """High-quality resampled copy; the source image is left untouched."""
    resized = rendering.image.resize((width, height), Image.LANCZOS)
    return RasterRendering(image=resized, width=width, height=height)


def _compose_scale(existing: str | None, sx: float, sy: float) -> str:
    scale = f"scale({sx:.6f}, {sy:.6f})"
    return f"{existing} {scale}" if existing else scale


@trace
def resize_svg(document: VectorDocument, width: int, height: int) -> VectorDocument:
    """Rewrite the SVG to *width* x *height* pixels.

    On any parse failure the original document is returned unchanged.
    """
    try:
        root = ET.fromstring(document.markup)
    except ET.ParseError as e:
        log.warning("SVG resize skipped, document could not be parsed: %s", e)
        return document

    orig_w = _parse_length(root.get("width")) or width
    orig_h = _parse_length(root.get("height")) or height
    sx = width / orig_w
    sy = height / orig_h

    root.set("width", str(width))
    root.set("height", str(height))
    root.set("viewBox", f"0 0 {width} {height}")

    # Children inherit their parent's transform, so only top-level
    # elements are scaled; <defs> is not drawn.
    for element in root:
        if element.tag == DEFS_TAG:
            continue
        element.set("transform", _compose_scale(element.get("transform"), sx, sy))

    markup = escape_text_quotes(ET.tostring(root, encoding="unicode"))
    return VectorDocument(markup=markup, width=width, height=height)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

@trace
def derive_resolutions(
    canonical: Rendering,
    resolutions: list[int] | tuple[int, ...],
    fallback_aspect_ratio: float | None = None,
) -> list[DerivedArtifact]:
    """Produce one independent copy of *canonical* per requested width.

    Args:
        canonical: Raster rendering or SVG document.
        resolutions: Target widths in pixels.
        fallback_aspect_ratio: Used for SVG when the document's own size
            cannot be read (normally the raster ratio).

    Returns:
        ``DerivedArtifact`` list in the order of *resolutions*.
    """
    if isinstance(canonical, RasterRendering):
        aspect = raster_aspect_ratio(canonical)
        resize = resize_raster
    elif isinstance(canonical, VectorDocument):
        fallback = fallback_aspect_ratio if fallback_aspect_ratio is not None else canonical.aspect_ratio
        aspect = svg_aspect_ratio(canonical.markup, fallback)
        resize = resize_svg
    else:
        raise TypeError(f"Unsupported rendering: {type(canonical).__name__}")

    derived = []
    for width in resolutions:
        height = target_height(width, aspect)
        derived.append(DerivedArtifact(
            resolution=width, width=width, height=height,
            rendering=resize(canonical, width, height),
        ))

    audit("resize.derived", logger=log,
          kind=type(canonical).__name__, aspect=round(aspect, 4),
          resolutions=list(resolutions))
    return derived
