"""Layout engine: map a module matrix and a style to an ordered primitive list.

The same routine serves both backends. A :class:`Surface` states the unit
scale (pixels per module for raster, 1 for vector) and the caption metrics
of the backend; every other measurement comes from :mod:`dotqr.geometry`.
Draw order is dots, eye markers, logo, caption: later primitives cover
earlier ones.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from dotqr.assets import LogoAsset
from dotqr.encoder import QRMatrix
from dotqr.geometry import (
    BORDER_MODULES,
    CAPTION_BG_LEFT_RATIO,
    CAPTION_BG_WIDTH_RATIO,
    CAPTION_LINE_HEIGHT,
    EYE_MID_INSET,
    EYE_MID_SIZE,
    EYE_OUTER_RADIUS_RATIO,
    EYE_OUTER_SIZE,
    EYE_PUPIL_INSET,
    EYE_PUPIL_SIZE,
    LOGO_CORNER_RATIO,
    LOGO_SIZE_RATIO,
    finder_origins,
    in_finder_zone,
)
from dotqr.logging import audit, get_logger, trace
from dotqr.primitives import Circle, EmbeddedImage, Primitive, RoundedRect, TextRun
from dotqr.style import WHITE, StyleConfig, dot_factor
from dotqr.urlwrap import char_count_measure, estimated_chars_per_line, wrap_url

log = get_logger("layout")


@dataclass(frozen=True)
class Surface:
    """Unit system and caption metrics of one backend."""

    name: str
    scale: float
    snap_to_pixels: bool
    caption_gap: float
    caption_band: float
    font_size: float
    text_width_ratio: float
    bg_padding: float
    bg_radius: float = 0.0
    measure: Callable[[str], float] = field(default=char_count_measure, compare=False)
    estimate_chars: bool = False

    @property
    def line_height(self) -> float:
        return self.font_size * CAPTION_LINE_HEIGHT

    def wrap_limit(self, max_width: float) -> float:
        """Width limit handed to the wrapper, in the unit ``measure`` returns."""
        if self.estimate_chars:
            return estimated_chars_per_line(max_width, self.font_size)
        return max_width


@dataclass(frozen=True)
class Layout:
    primitives: tuple[Primitive, ...]
    width: float
    height: float
    qr_extent: float
    surface: str
    caption_lines: tuple[str, ...] = ()

    @property
    def aspect_ratio(self) -> float:
        return self.height / self.width


# ---------------------------------------------------------------------------
# Pieces
# ---------------------------------------------------------------------------

def _dot_radius(factor: float, surface: Surface) -> float:
    if surface.snap_to_pixels:
        ppm = int(surface.scale)
        diameter = max(1, min(int(ppm * factor), ppm - 1))
        return diameter / 2
    return 0.5 * factor * surface.scale


def _dots(matrix: QRMatrix, style: StyleConfig, surface: Surface) -> list[Circle]:
    n = matrix.size
    s = surface.scale
    dots = []
    for y in range(n):
        for x in range(n):
            if in_finder_zone(x, y, n) or not matrix.module_at(x, y):
                continue
            factor = dot_factor(style.dot_size_factor, style.dot_size_variance, style.seed, y * n + x)
            dots.append(Circle(
                cx=(BORDER_MODULES + x + 0.5) * s,
                cy=(BORDER_MODULES + y + 0.5) * s,
                r=_dot_radius(factor, surface),
                color=style.module_color,
            ))
    return dots


def _eye(left: float, top: float, style: StyleConfig, s: float) -> list[RoundedRect]:
    mid = EYE_MID_INSET * s
    pupil = EYE_PUPIL_INSET * s
    return [
        RoundedRect(left, top, EYE_OUTER_SIZE * s, EYE_OUTER_SIZE * s,
                    EYE_OUTER_RADIUS_RATIO * s, style.eye_frame_color),
        RoundedRect(left + mid, top + mid, EYE_MID_SIZE * s, EYE_MID_SIZE * s,
                    style.eye_mid_radius * s, WHITE),
        RoundedRect(left + pupil, top + pupil, EYE_PUPIL_SIZE * s, EYE_PUPIL_SIZE * s,
                    style.eye_pupil_radius * s, style.eye_frame_color),
    ]


def _eyes(matrix: QRMatrix, style: StyleConfig, surface: Surface) -> list[RoundedRect]:
    s = surface.scale
    rects = []
    for ox, oy in finder_origins(matrix.size):
        rects.extend(_eye((BORDER_MODULES + ox) * s, (BORDER_MODULES + oy) * s, style, s))
    return rects


def _logo(logo: LogoAsset, qr_extent: float, surface: Surface) -> list[Primitive]:
    size = qr_extent * LOGO_SIZE_RATIO
    if surface.snap_to_pixels:
        size = float(int(size))
    offset = (qr_extent - size) / 2
    return [
        RoundedRect(offset, offset, size, size, size * LOGO_CORNER_RATIO, WHITE),
        EmbeddedImage(offset, offset, size, size, logo),
    ]


def _caption(text: str, qr_extent: float, surface: Surface) -> tuple[list[Primitive], list[str]]:
    top = qr_extent + surface.caption_gap
    area = surface.caption_band
    pad = surface.bg_padding

    background = RoundedRect(
        qr_extent * CAPTION_BG_LEFT_RATIO, top - pad,
        qr_extent * CAPTION_BG_WIDTH_RATIO, area,
        surface.bg_radius, WHITE,
    )

    max_width = qr_extent * surface.text_width_ratio
    lines = wrap_url(text, surface.measure, surface.wrap_limit(max_width))
    center_x = qr_extent / 2
    fs = surface.font_size

    runs: list[Primitive] = []
    if len(lines) > 1:
        y = top + (area - len(lines) * surface.line_height) / 2 + fs
        for line in lines:
            runs.append(TextRun(center_x, y, line, fs))
            y += surface.line_height
    else:
        runs.append(TextRun(center_x, top + area / 2 + fs / 3, text, fs))

    return [background, *runs], lines


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

@trace
def layout(
    matrix: QRMatrix | list[list[bool]],
    style: StyleConfig,
    surface: Surface,
    caption: str = "",
    logo: LogoAsset | None = None,
) -> Layout:
    """Build the primitive list for one surface.

    Args:
        matrix: Module matrix without quiet zone (``QRMatrix`` or rows of bools).
        style: Resolved style.
        surface: Unit system and caption metrics of the target backend.
        caption: Text shown below the code; empty for none.
        logo: Loaded logo, or None.

    Raises:
        ValueError: If the matrix is empty or not square.
    """
    if not isinstance(matrix, QRMatrix):
        matrix = QRMatrix.from_rows(matrix)
    if not matrix.is_square():
        raise ValueError(f"QR matrix must be square and non-empty (got {matrix.size} rows)")

    total_modules = matrix.size + 2 * BORDER_MODULES
    qr_extent = total_modules * surface.scale

    primitives: list[Primitive] = []
    dots = _dots(matrix, style, surface)
    primitives.extend(dots)
    primitives.extend(_eyes(matrix, style, surface))
    if logo is not None:
        primitives.extend(_logo(logo, qr_extent, surface))

    height = qr_extent
    lines: list[str] = []
    if caption:
        caption_prims, lines = _caption(caption, qr_extent, surface)
        primitives.extend(caption_prims)
        height += surface.caption_gap + surface.caption_band

    audit("layout.built", logger=log,
          surface=surface.name, modules=matrix.size, dots=len(dots),
          logo=logo is not None, caption_lines=len(lines),
          canvas=f"{qr_extent:g}x{height:g}")

    return Layout(
        primitives=tuple(primitives),
        width=qr_extent,
        height=height,
        qr_extent=qr_extent,
        surface=surface.name,
        caption_lines=tuple(lines),
    )
