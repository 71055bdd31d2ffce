"""Logo assets: locate a logo file and load it for both backends."""

import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from dotqr.logging import audit, get_logger, trace

log = get_logger("assets")

# Directory the application ships from; logos are looked up relative to it.
APP_BASE_DIR = Path(__file__).resolve().parent.parent
LOGO_DIR_NAME = "Logos"
PARENT_SEARCH_DEPTH = 3

_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
}


@dataclass(frozen=True)
class LogoAsset:
    """Raw logo file contents; the vector backend embeds these bytes inline."""

    path: str
    data: bytes
    mime_type: str

    def open_image(self) -> Image.Image | None:
        """Decode to an RGBA image, or None when the bytes are not an image."""
        try:
            with Image.open(io.BytesIO(self.data)) as img:
                return img.convert("RGBA")
        except (UnidentifiedImageError, OSError) as e:
            log.warning("Logo %s could not be decoded: %s", self.path, e)
            return None


def _candidate_paths(logo_path: str, base_dir: Path, cwd: Path) -> list[Path]:
    name = Path(logo_path).name
    candidates = [base_dir / logo_path]
    search_dir = base_dir
    for _ in range(PARENT_SEARCH_DEPTH + 1):
        candidates.append(search_dir / LOGO_DIR_NAME / name)
        search_dir = search_dir.parent
    candidates.append(cwd / logo_path)
    candidates.append(cwd / LOGO_DIR_NAME / name)
    return candidates


@trace
def resolve_logo_path(
    logo_path: str | None,
    base_dir: str | Path | None = None,
    cwd: str | Path | None = None,
) -> str | None:
    """Find an existing logo file; first match wins.

    Order: absolute path; relative to *base_dir*; ``Logos/<name>`` under
    *base_dir* and up to three of its parents; relative to *cwd*;
    ``Logos/<name>`` under *cwd*.

    Returns:
        Absolute path string, or None when nothing matches.
    """
    if not logo_path:
        return None

    given = Path(logo_path)
    if given.is_absolute() and given.is_file():
        return str(given)

    base = Path(base_dir) if base_dir is not None else APP_BASE_DIR
    here = Path(cwd) if cwd is not None else Path.cwd()
    for candidate in _candidate_paths(logo_path, base, here):
        if candidate.is_file():
            resolved = str(candidate.resolve())
            audit("logo.resolved", logger=log, requested=logo_path, path=resolved)
            return resolved

    audit("logo.missing", logger=log, requested=logo_path)
    return None


@trace
def load_logo(path: str | None) -> LogoAsset | None:
    """Read a resolved logo file. Missing or unreadable files yield None."""
    if not path:
        return None
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as e:
        log.warning("Logo %s could not be read: %s", path, e)
        return None
    mime = _MIME_TYPES.get(p.suffix.lower(), "image/png")
    audit("logo.loaded", logger=log, path=path, bytes=len(data), mime=mime)
    return LogoAsset(path=str(p), data=data, mime_type=mime)
