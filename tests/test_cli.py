from __future__ import annotations

import json
import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest
from PIL import Image

from dotqr.cli import build_parser, build_request, main


def test_generate_writes_all_formats(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "out"
    main(["generate", "https://x.io", "--qr-id", "cli1", "-o", str(out), "--ppm", "10"])

    for fmt in ("jpeg", "png", "svg"):
        assert sorted(p.name for p in (out / fmt).iterdir()) == [
            f"cli1_240.{fmt}", f"cli1_360.{fmt}", f"cli1_480.{fmt}",
        ]
    assert "Generated 9 files for cli1" in capsys.readouterr().out


def test_generate_custom_resolutions(tmp_path: Path) -> None:
    out = tmp_path / "out"
    main(["generate", "https://x.io", "--qr-id", "r", "-o", str(out), "--ppm", "10", "--resolutions", "64,128"])
    assert sorted(p.name for p in (out / "png").iterdir()) == ["r_128.png", "r_64.png"]


def test_generate_without_id_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["generate", "https://x.io", "-o", str(tmp_path)])
    assert exc.value.code == 2


def test_bad_resolution_list_is_rejected() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["generate", "https://x.io", "--resolutions", "240,abc"])


def test_config_file_with_flag_overrides(tmp_path: Path) -> None:
    config = tmp_path / "request.json"
    config.write_text(json.dumps({
        "qrId": "from-config",
        "shortUrl": "https://config.example",
        "moduleColor": "red",
        "pixelsPerModule": 12,
    }))
    args = build_parser().parse_args(["generate", "--config", str(config), "--ppm", "8", "--seed", "3"])
    request = build_request(args)

    assert request.qr_id == "from-config"
    assert request.short_url == "https://config.example"
    assert request.module_color == "red"
    assert request.pixels_per_module == 8
    assert request.batch_seed == 3


def test_render_svg(tmp_path: Path) -> None:
    out = tmp_path / "qr.svg"
    main(["render", "https://x.io", "-o", str(out), "--module-color", "navy"])

    root = ET.fromstring(out.read_text())
    assert root.get("viewBox") == "0 0 33 42"
    assert any(el.get("fill") == "#1A1A2E" for el in root.iter())


def test_render_png_without_caption(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "qr.png"
    main(["render", "https://x.io", "-o", str(out), "--ppm", "10", "--no-caption"])
    assert Image.open(out).size == (330, 330)


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert "usage: dotqr" in capsys.readouterr().out


@pytest.fixture
def without_scanners(monkeypatch: pytest.MonkeyPatch) -> None:
    # A None entry makes the import raise, as a missing libzbar does
    monkeypatch.setitem(sys.modules, "dotqr.verify", None)


def test_generate_verify_reports_unavailable_scanner(
    without_scanners, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    out = tmp_path / "out"
    main(["generate", "https://x.io", "--qr-id", "v", "-o", str(out), "--ppm", "10", "--verify"])

    assert len(list((out / "png").iterdir())) == 3
    assert "Scan: UNAVAILABLE" in capsys.readouterr().out


def test_verify_without_scanner_exits(without_scanners, tmp_path: Path, png_bytes) -> None:
    image = tmp_path / "qr.png"
    image.write_bytes(png_bytes())

    with pytest.raises(SystemExit) as exc:
        main(["verify", str(image)])
    assert exc.value.code == 2
