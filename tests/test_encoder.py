"""
Tests for the encoder adapters and MatrixGrid.
"""

import pytest

from qrcanvas.encoder import MatrixGrid, ModuleGrid, QrcodeEncoder, SegnoEncoder, get_encoder
from qrcanvas.errors import EncodingUnavailableError, InvalidInputError


def finder_ok(grid, top, left) -> bool:
    """7x7 finder: dark outer ring, light inner ring, dark 3x3 core."""
    for r in range(7):
        for c in range(7):
            ring = max(abs(r - 3), abs(c - 3))
            if grid.is_dark(top + r, left + c) != (ring != 2):
                return False
    return True


class TestMatrixGrid:
    """Test cases for MatrixGrid."""

    def test_basic(self):
        grid = MatrixGrid([[1, 0], [0, 1]])

        assert grid.module_count == 2
        assert grid.is_dark(0, 0) is True
        assert grid.is_dark(0, 1) is False
        assert grid.dark_count() == 2
        assert isinstance(grid, ModuleGrid)

    def test_equality(self):
        assert MatrixGrid([[True]]) == MatrixGrid([[1]])
        assert MatrixGrid([[True]]) != MatrixGrid([[False]])

    @pytest.mark.parametrize("rows", [[], [[True, False]], [[True], [True, False]]])
    def test_rejects_bad_shapes(self, rows):
        with pytest.raises(InvalidInputError):
            MatrixGrid(rows)


@pytest.mark.parametrize("encoder_cls", [QrcodeEncoder, SegnoEncoder])
class TestEncoders:
    """Both backends produce standard symbols without a quiet zone."""

    def test_version_one_symbol(self, encoder_cls):
        grid = encoder_cls().encode("hello", "M")

        assert grid.module_count == 21
        assert finder_ok(grid, 0, 0)
        assert finder_ok(grid, 0, 14)
        assert finder_ok(grid, 14, 0)

    def test_higher_ecc_never_shrinks_symbol(self, encoder_cls):
        text = "https://example.com/some/longer/path?with=query"
        low = encoder_cls().encode(text, "L")
        high = encoder_cls().encode(text, "H")

        assert high.module_count >= low.module_count

    def test_lowercase_ecc(self, encoder_cls):
        assert encoder_cls().encode("hello", "q").module_count >= 21

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_text(self, encoder_cls, text):
        with pytest.raises(InvalidInputError):
            encoder_cls().encode(text)

    def test_bad_ecc(self, encoder_cls):
        with pytest.raises(InvalidInputError):
            encoder_cls().encode("hello", "X")

    def test_data_too_long(self, encoder_cls):
        with pytest.raises(EncodingUnavailableError):
            encoder_cls().encode("x" * 5000, "H")


class TestGetEncoder:
    def test_by_name(self):
        assert isinstance(get_encoder("qrcode"), QrcodeEncoder)
        assert isinstance(get_encoder("SEGNO"), SegnoEncoder)

    def test_unknown(self):
        with pytest.raises(InvalidInputError):
            get_encoder("zxing")
