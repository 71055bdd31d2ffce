from __future__ import annotations

import pytest

from dotqr.assets import LogoAsset
from dotqr.layout import Layout, layout
from dotqr.raster import caption_font_size, raster_surface, render_raster
from dotqr.style import resolve_style


def _render(matrix, style, **kwargs):
    return render_raster(layout(matrix, style, raster_surface(style), **kwargs))


def _dark(px) -> bool:
    return sum(px) < 200


def _light(px) -> bool:
    return sum(px) > 600


def test_canvas_size_and_quiet_zone(matrix21, small_style) -> None:
    result = _render(matrix21, small_style)
    assert (result.width, result.height) == (290, 290)
    assert result.image.size == (290, 290)
    assert result.image.mode == "RGB"
    assert _light(result.image.getpixel((0, 0)))
    assert _light(result.image.getpixel((289, 289)))


def test_eye_rings(matrix21, small_style) -> None:
    img = _render(matrix21, small_style).image
    assert _dark(img.getpixel((75, 44)))   # outer frame
    assert _light(img.getpixel((75, 55)))  # white middle ring
    assert _dark(img.getpixel((75, 75)))   # pupil


def test_colors_are_applied(matrix21) -> None:
    style = resolve_style(module_color="red", eye_frame_color="blue", pixels_per_module=10)
    img = _render(matrix21, style).image

    r, g, b = img.getpixel((115, 45))
    assert r > 200 and g < 80 and b < 80
    r, g, b = img.getpixel((75, 75))
    assert b > 200 and r < 80 and g < 80


def test_dots_leave_gaps_between_modules(matrix21, small_style) -> None:
    img = _render(matrix21, small_style).image
    assert _dark(img.getpixel((115, 45)))
    assert sum(img.getpixel((120, 45))) > 450


def test_edges_are_antialiased(matrix21, small_style) -> None:
    img = _render(matrix21, small_style).image
    grays = {px for _, px in img.getcolors(maxcolors=290 * 290)}
    assert any(30 < px[0] < 225 for px in grays)


def test_logo_is_drawn_in_center(matrix21, small_style, logo_asset) -> None:
    img = _render(matrix21, small_style, logo=logo_asset).image
    r, g, b = img.getpixel((145, 145))
    assert b > 200 and r < 80 and g < 80


def test_undecodable_logo_is_skipped(matrix21, small_style) -> None:
    broken = LogoAsset(path="broken.png", data=b"not an image", mime_type="image/png")
    img = _render(matrix21, small_style, logo=broken).image
    # white logo background still covers the centre
    assert _light(img.getpixel((145, 145)))


def test_caption_band_contains_text(matrix21, small_style) -> None:
    result = _render(matrix21, small_style, caption="https://x.io")
    assert (result.width, result.height) == (290, 390)

    band = result.image.crop((0, 320, 290, 390)).convert("L")
    lo, hi = band.getextrema()
    assert lo < 100
    assert hi > 240


@pytest.mark.parametrize("ppm, expected", [(10, 30.0), (20, 40.0), (30, 60.0), (50, 60.0)])
def test_caption_font_size(ppm: int, expected: float) -> None:
    assert caption_font_size(ppm) == expected


def test_unknown_primitive_is_rejected() -> None:
    bogus = Layout(primitives=("bogus",), width=10, height=10, qr_extent=10, surface="raster")
    with pytest.raises(TypeError):
        render_raster(bogus)
