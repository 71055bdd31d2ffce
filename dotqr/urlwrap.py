"""Greedy line breaking for URL captions.

Lines only break at ``/`` boundaries; a segment is never split, so a single
segment wider than the limit still occupies one (overlong) line.
"""

from collections.abc import Callable

from dotqr.geometry import VECTOR_CHAR_WIDTH

Measure = Callable[[str], float]

PROTOCOL_SEPARATOR = "://"
PATH_SEPARATOR = "/"


def _segments(text: str) -> list[str]:
    return [s for s in text.split(PATH_SEPARATOR) if s]


def wrap_url(url: str, measure: Measure, max_width: float) -> list[str]:
    """Break *url* into lines no wider than *max_width* where possible.

    Args:
        url: Text to wrap, usually a short URL.
        measure: Width of a string in the caller's unit (font metrics for
            raster, character count for vector).
        max_width: Width limit in the same unit.

    Returns:
        Ordered lines; empty for an empty string.
    """
    if not url:
        return []
    if measure(url) <= max_width:
        return [url]

    lines: list[str] = []
    protocol_at = url.find(PROTOCOL_SEPARATOR)

    if protocol_at > 0:
        host_end = url.find(PATH_SEPARATOR, protocol_at + len(PROTOCOL_SEPARATOR))
        if host_end < 0:
            # scheme://host only: nothing to break on
            return [url]

        current = url[:host_end]
        for part in _segments(url[host_end + 1:]):
            candidate = current + PATH_SEPARATOR + part
            if current and measure(candidate) > max_width:
                lines.append(current)
                current = PATH_SEPARATOR + part
            else:
                current = candidate
    else:
        current = ""
        for part in _segments(url):
            candidate = current + PATH_SEPARATOR + part if current else part
            if current and measure(candidate) > max_width:
                lines.append(current)
                current = part
            else:
                current = candidate

    if current:
        lines.append(current)
    return lines


def char_count_measure(text: str) -> float:
    """Width estimate used where no font metrics exist: one unit per character."""
    return float(len(text))


def estimated_chars_per_line(max_width: float, font_size: float) -> float:
    """How many average characters fit in *max_width* at *font_size*."""
    return max_width / (font_size * VECTOR_CHAR_WIDTH)
