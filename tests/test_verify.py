from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

pytest.importorskip("cv2", exc_type=ImportError)
pytest.importorskip("pyzbar.pyzbar", exc_type=ImportError)

from dotqr.cli import main  # noqa: E402
from dotqr.encoder import encode  # noqa: E402
from dotqr.layout import layout  # noqa: E402
from dotqr.raster import raster_surface, render_raster  # noqa: E402
from dotqr.style import resolve_style  # noqa: E402
from dotqr.verify import DECODERS, scan_ok, verify  # noqa: E402

URL = "https://x.io/abc"


@pytest.fixture(scope="module")
def rendered():
    style = resolve_style(pixels_per_module=12)
    return render_raster(layout(encode(URL), style, raster_surface(style), caption=URL))


def test_rendered_code_scans(rendered) -> None:
    results = verify(rendered, expected_data=URL)
    assert len(results) == len(DECODERS)
    assert scan_ok(results)
    for r in results:
        if r.success:
            assert r.decoded_data == URL


def test_mismatch_is_a_failure(rendered) -> None:
    results = verify(rendered.image, expected_data="https://other.example")
    assert not scan_ok(results)
    assert any("mismatch" in (r.error or "") for r in results)


def test_blank_image_fails() -> None:
    results = verify(Image.new("RGB", (200, 200), (255, 255, 255)))
    assert not scan_ok(results)
    assert all(r.error for r in results)


def test_any_decoder_passing_passes_the_scan() -> None:
    from dotqr.verify import ScanResult

    assert scan_ok([ScanResult(True, "a", URL), ScanResult(False, "b", error="x")])
    assert not scan_ok([ScanResult(False, "a", error="x"), ScanResult(False, "b", error="y")])


@pytest.fixture
def one_decoder_reads(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(DECODERS, "pyzbar/zbar", lambda image: URL)
    monkeypatch.setitem(DECODERS, "opencv", lambda image: None)


def test_verify_command_uses_same_rule_as_generate(
    one_decoder_reads, rendered, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    image_path = tmp_path / "qr.png"
    rendered.image.save(image_path)

    with pytest.raises(SystemExit) as exc:
        main(["verify", str(image_path), "--expected", URL])
    assert exc.value.code == 0
    assert "Scan: PASS" in capsys.readouterr().out

    main(["generate", URL, "--qr-id", "v", "-o", str(tmp_path / "out"), "--ppm", "10", "--verify"])
    assert "Scan: PASS" in capsys.readouterr().out
