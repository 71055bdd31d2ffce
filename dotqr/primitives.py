"""Drawing primitives emitted by the layout engine.

Coordinates are in the unit of the surface they were laid out for: pixels
for raster output, QR modules for vector output.
"""

from dataclasses import dataclass

from dotqr.assets import LogoAsset
from dotqr.style import BLACK, RGB


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float
    color: RGB


@dataclass(frozen=True)
class RoundedRect:
    x: float
    y: float
    width: float
    height: float
    radius: float
    color: RGB

    @property
    def box(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class EmbeddedImage:
    x: float
    y: float
    width: float
    height: float
    logo: LogoAsset


@dataclass(frozen=True)
class TextRun:
    """One caption line; (x, y) is the baseline anchor point."""

    x: float
    y: float
    text: str
    font_size: float
    anchor: str = "middle"
    color: RGB = BLACK
    bold: bool = True


Primitive = Circle | RoundedRect | EmbeddedImage | TextRun
