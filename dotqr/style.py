"""Style configuration: colours, dot sizing and the deterministic dot-size jitter."""

import hashlib
from dataclasses import dataclass

from dotqr.geometry import (
    DEFAULT_DOT_SIZE_FACTOR,
    DEFAULT_PIXELS_PER_MODULE,
    EYE_MID_RADIUS_RATIO,
    EYE_PUPIL_RADIUS_RATIO,
    JITTER_BUCKETS,
    MAX_DOT_SIZE_FACTOR,
    MAX_DOT_SIZE_VARIANCE,
    MIN_DOT_SIZE_FACTOR,
)
from dotqr.logging import audit, get_logger

log = get_logger("style")

RGB = tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)

NAMED_COLORS: dict[str, RGB] = {
    "black": BLACK,
    "white": WHITE,
    "navy": (0x1A, 0x1A, 0x2E),
    "darkgreen": (0x0D, 0x3D, 0x2E),
    "blue": (0x00, 0x00, 0xFF),
    "red": (0xFF, 0x00, 0x00),
    "green": (0x00, 0x80, 0x00),
    "yellow": (0xFF, 0xFF, 0x00),
    "cyan": (0x00, 0xFF, 0xFF),
    "magenta": (0xFF, 0x00, 0xFF),
    "gray": (0x80, 0x80, 0x80),
    "grey": (0x80, 0x80, 0x80),
}

_HEX_DIGITS = frozenset("0123456789abcdef")


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def parse_color(value: str | None) -> RGB:
    """Parse a colour name or a 6-digit hex value (``#`` optional).

    Anything else resolves to black.
    """
    if not value or not value.strip():
        return BLACK
    c = value.strip().lower()
    if c in NAMED_COLORS:
        return NAMED_COLORS[c]

    digits = c[1:] if c.startswith("#") else c
    if len(digits) == 6 and set(digits) <= _HEX_DIGITS:
        return tuple(int(digits[i : i + 2], 16) for i in (0, 2, 4))

    audit("style.color_fallback", logger=log, value=value, resolved="black")
    return BLACK


def color_to_hex(rgb: RGB) -> str:
    return "#{:02X}{:02X}{:02X}".format(*rgb)


@dataclass(frozen=True)
class StyleConfig:
    """Fully resolved drawing style.

    Build it with :func:`resolve_style`; the layout engine assumes every
    ratio is already clamped.
    """

    module_color: RGB = BLACK
    eye_frame_color: RGB = BLACK
    pixels_per_module: int = DEFAULT_PIXELS_PER_MODULE
    dot_size_factor: float = DEFAULT_DOT_SIZE_FACTOR
    dot_size_variance: float = 0.0
    batch_seed: int | None = None
    eye_mid_radius: float = EYE_MID_RADIUS_RATIO
    eye_pupil_radius: float = EYE_PUPIL_RADIUS_RATIO
    logo_path: str | None = None

    @property
    def seed(self) -> int:
        return self.batch_seed if self.batch_seed is not None else 0


def resolve_style(
    module_color: str | RGB | None = "black",
    eye_frame_color: str | RGB | None = "black",
    pixels_per_module: int | None = DEFAULT_PIXELS_PER_MODULE,
    dot_size_factor: float | None = DEFAULT_DOT_SIZE_FACTOR,
    dot_size_variance: float | None = 0.0,
    batch_seed: int | None = None,
    eye_mid_radius: float | None = None,
    eye_pupil_radius: float | None = None,
    logo_path: str | None = None,
) -> StyleConfig:
    """Turn raw user-facing style values into a clamped :class:`StyleConfig`.

    - non-positive pixels-per-module falls back to 30
    - non-positive dot factor falls back to 0.75, then clamps to [0.65, 0.82]
    - variance clamps to [0, 0.04]
    - eye ratios fall back to 0.8 / 0.6 unless a positive value is given
    """
    ppm = int(pixels_per_module) if pixels_per_module and pixels_per_module > 0 else DEFAULT_PIXELS_PER_MODULE
    factor = dot_size_factor if dot_size_factor and dot_size_factor > 0 else DEFAULT_DOT_SIZE_FACTOR
    variance = dot_size_variance or 0.0

    def _color(c):
        return tuple(c) if isinstance(c, tuple) else parse_color(c)

    return StyleConfig(
        module_color=_color(module_color),
        eye_frame_color=_color(eye_frame_color),
        pixels_per_module=ppm,
        dot_size_factor=clamp(factor, MIN_DOT_SIZE_FACTOR, MAX_DOT_SIZE_FACTOR),
        dot_size_variance=clamp(variance, 0.0, MAX_DOT_SIZE_VARIANCE),
        batch_seed=batch_seed,
        eye_mid_radius=eye_mid_radius if eye_mid_radius and eye_mid_radius > 0 else EYE_MID_RADIUS_RATIO,
        eye_pupil_radius=eye_pupil_radius if eye_pupil_radius and eye_pupil_radius > 0 else EYE_PUPIL_RADIUS_RATIO,
        logo_path=logo_path or None,
    )


# ---------------------------------------------------------------------------
# Deterministic dot-size jitter
# ---------------------------------------------------------------------------

def jitter_offset(seed: int, module_index: int) -> float:
    """Stable value in [-0.5, 0.5) derived from (seed, module_index).

    Uses BLAKE2b rather than ``hash()`` so results survive process restarts
    and PYTHONHASHSEED.
    """
    digest = hashlib.blake2b(f"{seed}:{module_index}".encode("ascii"), digest_size=8).digest()
    bucket = int.from_bytes(digest, "big") % JITTER_BUCKETS
    return bucket / JITTER_BUCKETS - 0.5


def dot_factor(base: float, variance: float, seed: int, module_index: int) -> float:
    """Per-module dot-size factor, always within [0.65, 0.82]."""
    if variance <= 0:
        return base
    factor = base + jitter_offset(seed, module_index) * 2 * variance
    return clamp(factor, MIN_DOT_SIZE_FACTOR, MAX_DOT_SIZE_FACTOR)
