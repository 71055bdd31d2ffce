"""Fixed proportions of the dot style, in QR modules unless stated otherwise."""

# Quiet zone around the symbol
BORDER_MODULES = 4

# Finder patterns (top-left, top-right, bottom-left)
FINDER_SIZE = 7

# Eye markers: three concentric rounded squares
EYE_OUTER_SIZE = 7
EYE_MID_INSET = 1
EYE_MID_SIZE = 5
EYE_PUPIL_INSET = 2
EYE_PUPIL_SIZE = 3
EYE_OUTER_RADIUS_RATIO = 1.0
EYE_MID_RADIUS_RATIO = 0.8
EYE_PUPIL_RADIUS_RATIO = 0.6

# Data dots
DEFAULT_PIXELS_PER_MODULE = 30
DEFAULT_DOT_SIZE_FACTOR = 0.75
MIN_DOT_SIZE_FACTOR = 0.65
MAX_DOT_SIZE_FACTOR = 0.82
MAX_DOT_SIZE_VARIANCE = 0.04
JITTER_BUCKETS = 10000

# Centre logo: fraction of the QR body (quiet zone included); keeps the
# code readable at ECC level H.
LOGO_SIZE_RATIO = 0.22
LOGO_CORNER_RATIO = 0.2

# Caption, shared by both backends
CAPTION_LINE_HEIGHT = 1.4
CAPTION_BG_LEFT_RATIO = 0.05
CAPTION_BG_WIDTH_RATIO = 0.9

# Caption, raster (multiples of pixels-per-module / font pixels)
RASTER_CAPTION_GAP = 3
RASTER_CAPTION_BAND = 7
RASTER_FONT_SCALE = 2.0
RASTER_FONT_MIN = 30.0
RASTER_FONT_MAX = 60.0
RASTER_TEXT_WIDTH_RATIO = 0.9
RASTER_BG_PADDING = 0.5

# Caption, vector (module units)
VECTOR_CAPTION_GAP = 3.0
VECTOR_CAPTION_BAND = 6.0
VECTOR_FONT_SIZE = 1.2
VECTOR_TEXT_WIDTH_RATIO = 0.85
VECTOR_BG_PADDING = 0.5
VECTOR_BG_RADIUS = 0.3
VECTOR_CHAR_WIDTH = 0.6

# Output set
DEFAULT_RESOLUTIONS = (240, 360, 480)
OUTPUT_FORMATS = ("jpeg", "png", "svg")


def finder_origins(size: int) -> list[tuple[int, int]]:
    """(x, y) module origin of each finder zone: TL, TR, BL."""
    far = size - FINDER_SIZE
    return [(0, 0), (far, 0), (0, far)]


def in_finder_zone(x: int, y: int, size: int) -> bool:
    """True when module (x, y) lies in one of the three 7x7 finder blocks."""
    far = size - FINDER_SIZE
    if x < FINDER_SIZE and y < FINDER_SIZE:
        return True
    if x >= far and y < FINDER_SIZE:
        return True
    return x < FINDER_SIZE and y >= far
