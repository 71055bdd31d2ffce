"""Raster backend: draw a layout onto an opaque white Pillow canvas.

Pillow's shape drawing is not anti-aliased, so the canvas is drawn at
``supersample`` times the target size and downscaled with Lanczos.
"""

import functools
from dataclasses import dataclass

from PIL import Image, ImageDraw, ImageFont

from dotqr.geometry import (
    RASTER_BG_PADDING,
    RASTER_CAPTION_BAND,
    RASTER_CAPTION_GAP,
    RASTER_FONT_MAX,
    RASTER_FONT_MIN,
    RASTER_FONT_SCALE,
    RASTER_TEXT_WIDTH_RATIO,
)
from dotqr.layout import Layout, Surface
from dotqr.logging import audit, get_logger, trace
from dotqr.primitives import Circle, EmbeddedImage, Primitive, RoundedRect, TextRun
from dotqr.style import WHITE, StyleConfig, clamp

log = get_logger("raster")

SUPERSAMPLE = 4

# Bold sans faces tried in order; Pillow's bundled font is the last resort.
BOLD_FONT_CANDIDATES = (
    "DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "LiberationSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "Arial Bold.ttf",
    "arialbd.ttf",
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
)


@dataclass(frozen=True)
class RasterRendering:
    """A pixel buffer plus its size. Treat ``image`` as read-only."""

    image: Image.Image
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.height / self.width


# ---------------------------------------------------------------------------
# Fonts & surface
# ---------------------------------------------------------------------------

@functools.lru_cache(maxsize=32)
def load_bold_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Bold caption font at *size* pixels."""
    for name in BOLD_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    log.warning("No bold TrueType font found; using Pillow's default font")
    return ImageFont.load_default(size=size)


def caption_font_size(pixels_per_module: int) -> float:
    return clamp(pixels_per_module * RASTER_FONT_SCALE, RASTER_FONT_MIN, RASTER_FONT_MAX)


def raster_surface(style: StyleConfig) -> Surface:
    """Pixel surface for *style*: one module is ``pixels_per_module`` pixels."""
    ppm = style.pixels_per_module
    font_size = caption_font_size(ppm)
    font = load_bold_font(round(font_size))
    return Surface(
        name="raster",
        scale=ppm,
        snap_to_pixels=True,
        caption_gap=RASTER_CAPTION_GAP * ppm,
        caption_band=RASTER_CAPTION_BAND * ppm,
        font_size=font_size,
        text_width_ratio=RASTER_TEXT_WIDTH_RATIO,
        bg_padding=RASTER_BG_PADDING * ppm,
        measure=font.getlength,
    )


# ---------------------------------------------------------------------------
# Primitive drawing
# ---------------------------------------------------------------------------

def _draw_circle(draw: ImageDraw.ImageDraw, c: Circle, k: int) -> None:
    draw.ellipse(
        [(c.cx - c.r) * k, (c.cy - c.r) * k, (c.cx + c.r) * k - 1, (c.cy + c.r) * k - 1],
        fill=c.color,
    )


def _draw_rounded_rect(draw: ImageDraw.ImageDraw, r: RoundedRect, k: int) -> None:
    x0, y0, x1, y1 = (v * k for v in r.box)
    box = [x0, y0, x1 - 1, y1 - 1]
    if r.radius <= 0:
        draw.rectangle(box, fill=r.color)
    else:
        draw.rounded_rectangle(box, radius=r.radius * k, fill=r.color)


def _draw_image(canvas: Image.Image, img: EmbeddedImage, k: int) -> None:
    logo = img.logo.open_image()
    if logo is None:
        return
    w, h = max(1, round(img.width * k)), max(1, round(img.height * k))
    logo = logo.resize((w, h), Image.LANCZOS)
    canvas.paste(logo, (round(img.x * k), round(img.y * k)), logo)


def _draw_text(draw: ImageDraw.ImageDraw, t: TextRun, k: int) -> None:
    font = load_bold_font(round(t.font_size * k))
    anchor = {"middle": "ms", "start": "ls", "end": "rs"}[t.anchor]
    draw.text((t.x * k, t.y * k), t.text, fill=t.color, font=font, anchor=anchor)


def _draw_primitive(canvas: Image.Image, draw: ImageDraw.ImageDraw, prim: Primitive, k: int) -> None:
    if isinstance(prim, Circle):
        _draw_circle(draw, prim, k)
    elif isinstance(prim, RoundedRect):
        _draw_rounded_rect(draw, prim, k)
    elif isinstance(prim, EmbeddedImage):
        _draw_image(canvas, prim, k)
    elif isinstance(prim, TextRun):
        _draw_text(draw, prim, k)
    else:
        raise TypeError(f"Unsupported primitive: {type(prim).__name__}")


@trace
def render_raster(layout: Layout, supersample: int = SUPERSAMPLE) -> RasterRendering:
    """Draw *layout* (laid out on a raster surface) in order onto white.

    Args:
        layout: Layout in pixel units.
        supersample: Drawing scale before the final Lanczos downscale.
    """
    width, height = round(layout.width), round(layout.height)
    k = max(1, supersample)

    canvas = Image.new("RGB", (width * k, height * k), WHITE)
    draw = ImageDraw.Draw(canvas)
    for prim in layout.primitives:
        _draw_primitive(canvas, draw, prim, k)

    image = canvas.resize((width, height), Image.LANCZOS) if k > 1 else canvas
    audit("raster.rendered", logger=log,
          size=f"{width}x{height}", primitives=len(layout.primitives), supersample=k)
    return RasterRendering(image=image, width=width, height=height)
