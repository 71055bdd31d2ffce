from __future__ import annotations

import io
import logging
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from dotqr.assets import LogoAsset
from dotqr.encoder import QRMatrix
from dotqr.style import StyleConfig, resolve_style


def _png_bytes(color=(0, 0, 255), size=(16, 16)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", size, color + (255,)).save(buf, format="PNG")
    return buf.getvalue()


def _full_matrix(n: int) -> QRMatrix:
    return QRMatrix.from_rows([[True] * n for _ in range(n)])


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    return _png_bytes


@pytest.fixture
def full_matrix() -> Callable[[int], QRMatrix]:
    """Factory for matrices with every module on."""
    return _full_matrix


@pytest.fixture
def matrix21() -> QRMatrix:
    return _full_matrix(21)


@pytest.fixture
def matrix25() -> QRMatrix:
    return _full_matrix(25)


@pytest.fixture
def style() -> StyleConfig:
    return resolve_style()


@pytest.fixture
def small_style() -> StyleConfig:
    # 10 px per module keeps raster tests fast
    return resolve_style(pixels_per_module=10)


@pytest.fixture
def logo_asset() -> LogoAsset:
    return LogoAsset(path="logo.png", data=_png_bytes(), mime_type="image/png")


@pytest.fixture
def logo_file(tmp_path: Path) -> Path:
    path = tmp_path / "logo.png"
    path.write_bytes(_png_bytes())
    return path


@pytest.fixture(autouse=True)
def _reset_dotqr_logging():
    # CLI tests install stream handlers bound to the captured stderr
    yield
    root = logging.getLogger("dotqr")
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
