from __future__ import annotations

import pytest

from dotqr.layout import layout
from dotqr.primitives import Circle, EmbeddedImage, RoundedRect, TextRun
from dotqr.raster import raster_surface
from dotqr.style import WHITE, resolve_style
from dotqr.vector import vector_surface


def _module_of(circle: Circle, scale: float) -> tuple[int, int]:
    return int(circle.cx / scale - 4.5 + 1e-6), int(circle.cy / scale - 4.5 + 1e-6)


def test_no_dots_in_finder_zones(matrix25, style) -> None:
    result = layout(matrix25, style, vector_surface())
    dots = [p for p in result.primitives if isinstance(p, Circle)]

    assert len(dots) == 25 * 25 - 3 * 49
    for dot in dots:
        x, y = _module_of(dot, 1.0)
        assert not (x < 7 and y < 7)
        assert not (x >= 18 and y < 7)
        assert not (x < 7 and y >= 18)


def test_three_eyes_of_concentric_squares(matrix25, style) -> None:
    result = layout(matrix25, style, vector_surface())
    rects = [p for p in result.primitives if isinstance(p, RoundedRect)]
    assert len(rects) == 9

    outer, mid, pupil = rects[:3]
    assert (outer.x, outer.y, outer.width, outer.radius) == (4, 4, 7, 1.0)
    assert (mid.x, mid.y, mid.width, mid.color) == (5, 5, 5, WHITE)
    assert mid.radius == pytest.approx(0.8)
    assert (pupil.x, pupil.y, pupil.width) == (6, 6, 3)
    assert pupil.radius == pytest.approx(0.6)

    origins = {(r.x, r.y) for r in rects[::3]}
    assert origins == {(4, 4), (22, 4), (4, 22)}


def test_custom_eye_ratios_are_used(matrix25) -> None:
    style = resolve_style(eye_mid_radius=0.5, eye_pupil_radius=0.25)
    rects = [p for p in layout(matrix25, style, vector_surface()).primitives if isinstance(p, RoundedRect)]
    assert rects[1].radius == pytest.approx(0.5)
    assert rects[2].radius == pytest.approx(0.25)


def test_canvas_size_without_caption(matrix21, style) -> None:
    result = layout(matrix21, style, vector_surface())
    assert (result.width, result.height) == (29, 29)
    assert not any(isinstance(p, TextRun) for p in result.primitives)


def test_vector_caption_band(matrix25, style) -> None:
    result = layout(matrix25, style, vector_surface(), caption="https://x.io")
    assert result.width == 33
    assert result.height == 33 + 3 + 6

    texts = [p for p in result.primitives if isinstance(p, TextRun)]
    assert len(texts) == 1
    assert texts[0].text == "https://x.io"
    assert texts[0].x == pytest.approx(16.5)
    assert texts[0].y == pytest.approx(36 + 3 + 0.4)
    assert texts[0].font_size == pytest.approx(1.2)
    assert texts[0].bold


def test_vector_caption_wraps_long_url(matrix21, style) -> None:
    url = "https://www.example.com/some/really/long/path/with/segments"
    result = layout(matrix21, style, vector_surface(), caption=url)
    texts = [p for p in result.primitives if isinstance(p, TextRun)]

    assert len(texts) > 1
    assert texts[0].text.startswith("https://www.example.com")
    assert all(t.text.startswith("/") for t in texts[1:])
    ys = [t.y for t in texts]
    assert ys == sorted(ys)
    assert ys[1] - ys[0] == pytest.approx(1.2 * 1.4)


def test_raster_caption_band(matrix21, small_style) -> None:
    result = layout(matrix21, small_style, raster_surface(small_style), caption="https://x.io")
    assert result.width == 290
    assert result.height == 290 + 30 + 70

    background = [p for p in result.primitives if isinstance(p, RoundedRect)][-1]
    assert background.x == pytest.approx(290 * 0.05)
    assert background.width == pytest.approx(290 * 0.9)
    assert background.color == WHITE


def test_raster_dot_diameter_snaps_to_pixels(matrix21, small_style) -> None:
    result = layout(matrix21, small_style, raster_surface(small_style))
    dots = [p for p in result.primitives if isinstance(p, Circle)]
    assert {d.r for d in dots} == {3.5}
    assert dots[0].cx == pytest.approx((4 + 7 + 0.5) * 10)


def test_logo_is_centered_and_sized(matrix21, style, logo_asset) -> None:
    result = layout(matrix21, style, vector_surface(), logo=logo_asset)

    background, image = result.primitives[-2:]
    assert isinstance(background, RoundedRect)
    assert isinstance(image, EmbeddedImage)
    size = 29 * 0.22
    assert image.width == pytest.approx(size)
    assert image.x == pytest.approx((29 - size) / 2)
    assert background.radius == pytest.approx(size * 0.2)


def test_draw_order(matrix21, style, logo_asset) -> None:
    result = layout(matrix21, style, vector_surface(), caption="https://x.io", logo=logo_asset)
    kinds = [type(p).__name__ for p in result.primitives]

    first_rect = kinds.index("RoundedRect")
    assert set(kinds[:first_rect]) == {"Circle"}
    assert kinds.index("EmbeddedImage") > first_rect
    assert kinds[-1] == "TextRun"


def test_jitter_is_shared_across_surfaces(matrix21) -> None:
    style = resolve_style(dot_size_variance=0.04, batch_seed=7, pixels_per_module=100)
    vec = [p.r for p in layout(matrix21, style, vector_surface()).primitives if isinstance(p, Circle)]
    again = [p.r for p in layout(matrix21, style, vector_surface()).primitives if isinstance(p, Circle)]
    ras = [p.r for p in layout(matrix21, style, raster_surface(style)).primitives if isinstance(p, Circle)]

    assert vec == again
    assert len(set(vec)) > 1
    for v, r in zip(vec, ras):
        assert int(v * 2 * 100) / 2 == r
        assert 0.325 <= v <= 0.41


def test_plain_row_lists_are_accepted(style) -> None:
    rows = [[True] * 21 for _ in range(21)]
    assert layout(rows, style, vector_surface()).width == 29


@pytest.mark.parametrize("rows", [[], [[True, False], [True]], [[True] * 3] * 2])
def test_non_square_matrix_is_rejected(rows, style) -> None:
    with pytest.raises(ValueError):
        layout(rows, style, vector_surface())
