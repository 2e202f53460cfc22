"""Scan-verify rendered QR codes with real decoders (ZBar via pyzbar, OpenCV)."""

import time
from dataclasses import dataclass

import numpy as np
from PIL import Image

from qrcanvas.artifact import RasterArtifact
from qrcanvas.errors import InvalidInputError
from qrcanvas.logging import audit, get_logger, trace

log = get_logger("verify")

# Decoders read the symbol more reliably with some white around it than with
# the renderer's thin margin.
SCAN_PADDING = 16


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = ""
    error: str | None = None


def _prepare(image: Image.Image) -> Image.Image:
    img = image.convert("RGB")
    padded = Image.new("RGB", (img.width + 2 * SCAN_PADDING, img.height + 2 * SCAN_PADDING), (255, 255, 255))
    padded.paste(img, (SCAN_PADDING, SCAN_PADDING))
    return padded


def _finish(decoder: str, start: float, data: str | None = None, error: str | None = None) -> ScanResult:
    elapsed = (time.perf_counter() - start) * 1000
    if data:
        audit("scan.verified", logger=log, decoder=decoder, success=True, time_ms=round(elapsed, 1), data=data[:80])
        return ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed, decoder=decoder)
    error = error or "No QR code detected"
    audit("scan.verified", logger=log, decoder=decoder, success=False, time_ms=round(elapsed, 1), error=error)
    return ScanResult(success=False, decode_time_ms=elapsed, decoder=decoder, error=error)


@trace
def scan_pyzbar(image: Image.Image) -> ScanResult:
    """Scan with pyzbar (wraps ZBar). A missing libzbar is reported, not raised."""
    start = time.perf_counter()
    try:
        from pyzbar.pyzbar import decode as pyzbar_decode

        results = pyzbar_decode(_prepare(image))
    except Exception as e:
        audit("scan.error", logger=log, decoder="pyzbar/zbar", error=str(e))
        return _finish("pyzbar/zbar", start, error=str(e))
    data = results[0].data.decode("utf-8", errors="replace") if results else None
    return _finish("pyzbar/zbar", start, data=data)


@trace
def scan_opencv(image: Image.Image) -> ScanResult:
    """Scan with OpenCV's built-in QR detector."""
    start = time.perf_counter()
    try:
        import cv2

        arr = np.array(_prepare(image))
        gray = cv2.cvtColor(arr, cv2.COLOR_RGB2GRAY)
        data, _points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except Exception as e:
        audit("scan.error", logger=log, decoder="opencv", error=str(e))
        return _finish("opencv", start, error=str(e))
    return _finish("opencv", start, data=data or None)


SCANNERS = (scan_pyzbar, scan_opencv)


@trace
def verify(image: Image.Image, expected_data: str | None = None) -> list[ScanResult]:
    """Run every decoder on *image*; a decode that differs from *expected_data* counts as a failure."""
    results = []
    for scanner in SCANNERS:
        result = scanner(image)
        if result.success and expected_data is not None and result.decoded_data != expected_data:
            result.success = False
            result.error = f"Data mismatch: got '{result.decoded_data}', expected '{expected_data}'"
        results.append(result)
    return results


def verify_artifact(artifact, expected_data: str | None = None) -> list[ScanResult]:
    """Scan a rendered artifact. Only raster artifacts can be scanned."""
    if not isinstance(artifact, RasterArtifact):
        raise InvalidInputError("Only PNG artifacts can be scan-verified")
    return verify(artifact.pixels, expected_data=expected_data)
