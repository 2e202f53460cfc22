"""
Shared fixtures for the qrcanvas test suite.

Provides small deterministic module grids, a stub encoder so rendering tests
do not depend on a QR library's mask selection, and logo image bytes.
"""

import io
import logging

import pytest
from PIL import Image

from qrcanvas.config import RenderConfig
from qrcanvas.encoder import MatrixGrid


class StubEncoder:
    """Encoder returning a fixed grid; records every call."""

    name = "stub"

    def __init__(self, grid=None, on_encode=None):
        self.grid = grid
        self.on_encode = on_encode
        self.calls = []

    def encode(self, text, ecc="M"):
        self.calls.append((text, ecc))
        if self.on_encode is not None:
            self.on_encode(text)
        return self.grid


def make_checkerboard(n: int) -> MatrixGrid:
    return MatrixGrid([[(r + c) % 2 == 0 for c in range(n)] for r in range(n)])


def png_bytes(size=(40, 40), color=(255, 0, 0, 255), mode="RGBA", fmt="PNG") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def checkerboard():
    return make_checkerboard(5)


@pytest.fixture
def full_grid():
    """21x21 grid with every module dark."""
    return MatrixGrid([[True] * 21 for _ in range(21)])


@pytest.fixture
def symbol_grid():
    """21x21 grid with the three finder patterns and a diagonal, like a real version-1 symbol."""
    n = 21
    rows = [[False] * n for _ in range(n)]
    for top, left in ((0, 0), (0, n - 7), (n - 7, 0)):
        for r in range(7):
            for c in range(7):
                ring = max(abs(r - 3), abs(c - 3))
                rows[top + r][left + c] = ring != 2
    for i in range(8, n - 8):
        rows[i][i] = True
        rows[6][i] = i % 2 == 0
    return MatrixGrid(rows)


@pytest.fixture
def png_config():
    return RenderConfig(size=200, format="png")


@pytest.fixture
def svg_config():
    return RenderConfig(size=200, format="svg")


@pytest.fixture
def logo_png():
    return png_bytes()


@pytest.fixture
def broken_logo():
    return b"\x89PNG\r\n\x1a\n this is not really a png"


@pytest.fixture(autouse=True)
def reset_qrcanvas_logging():
    """setup_logging() installs handlers on the qrcanvas logger; drop them after each test."""
    yield
    logger = logging.getLogger("qrcanvas")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
