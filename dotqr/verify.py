"""Scan verification: decode a rendered raster with ZBar and OpenCV."""

import time
from collections.abc import Callable
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode
from pyzbar.pyzbar_error import PyZbarError

from dotqr.logging import audit, get_logger, trace
from dotqr.raster import RasterRendering

log = get_logger("verify")


@dataclass
class ScanResult:
    """Outcome of one decoder on one image."""
    success: bool
    decoder: str
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    error: str | None = None


def _decode_zbar(image: Image.Image) -> str | None:
    results = pyzbar_decode(image.convert("L"))
    if not results:
        return None
    return results[0].data.decode("utf-8", errors="replace")


def _decode_opencv(image: Image.Image) -> str | None:
    gray = cv2.cvtColor(np.array(image.convert("RGB")), cv2.COLOR_RGB2GRAY)
    data, _, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    return data or None


DECODERS: dict[str, Callable[[Image.Image], str | None]] = {
    "pyzbar/zbar": _decode_zbar,
    "opencv": _decode_opencv,
}


@trace
def scan(image: Image.Image, decoder: str) -> ScanResult:
    """Run one named decoder; decoder failures become failed results."""
    start = time.perf_counter()
    try:
        data = DECODERS[decoder](image)
    except (cv2.error, PyZbarError, ValueError, OSError) as e:
        elapsed = (time.perf_counter() - start) * 1000
        audit("scan.error", logger=log, decoder=decoder, error=str(e), time_ms=round(elapsed, 1))
        return ScanResult(success=False, decoder=decoder, decode_time_ms=elapsed, error=str(e))

    elapsed = (time.perf_counter() - start) * 1000
    if data is None:
        result = ScanResult(success=False, decoder=decoder, decode_time_ms=elapsed,
                            error="No QR code detected")
    else:
        result = ScanResult(success=True, decoder=decoder, decoded_data=data, decode_time_ms=elapsed)
    audit("scan.verified", logger=log, decoder=decoder, success=result.success,
          time_ms=round(elapsed, 1), data=(data or "")[:80])
    return result


@trace
def verify(image: Image.Image | RasterRendering, expected_data: str | None = None) -> list[ScanResult]:
    """Run every decoder on *image*.

    Args:
        image: Pillow image or canonical raster rendering.
        expected_data: When given, a decode that differs counts as a failure.

    Returns:
        One ``ScanResult`` per decoder.
    """
    if isinstance(image, RasterRendering):
        image = image.image

    results = []
    for name in DECODERS:
        result = scan(image, name)
        if result.success and expected_data is not None and result.decoded_data != expected_data:
            result.success = False
            result.error = f"Data mismatch: got '{result.decoded_data}', expected '{expected_data}'"
        results.append(result)
    return results


def scan_ok(results: list[ScanResult]) -> bool:
    """A scan passes when at least one decoder read it (and matched, if expected)."""
    return any(r.success for r in results)
