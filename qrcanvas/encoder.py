"""Encoder adapters: turn text + ECC level into a read-only module grid.

The rendering core only ever walks a grid through ``module_count`` and
``is_dark(row, col)``; symbol construction is delegated to ``qrcode``
(default) or ``segno``.
"""

from typing import Protocol, Sequence, runtime_checkable

import qrcode
import qrcode.constants
import qrcode.exceptions
import segno

from qrcanvas.config import DEFAULT_ECC, ECC_LEVELS
from qrcanvas.errors import EncodingUnavailableError, InvalidInputError
from qrcanvas.logging import audit, get_logger, trace

log = get_logger("encoder")

QRCODE_ECC = {
    "L": qrcode.constants.ERROR_CORRECT_L,  # 7%
    "M": qrcode.constants.ERROR_CORRECT_M,  # 15%
    "Q": qrcode.constants.ERROR_CORRECT_Q,  # 25%
    "H": qrcode.constants.ERROR_CORRECT_H,  # 30%
}


@runtime_checkable
class ModuleGrid(Protocol):
    """Square boolean module matrix produced by an encoder."""

    @property
    def module_count(self) -> int: ...

    def is_dark(self, row: int, col: int) -> bool: ...


class Encoder(Protocol):
    name: str

    def encode(self, text: str, ecc: str = DEFAULT_ECC) -> ModuleGrid: ...


class MatrixGrid:
    """Immutable in-memory grid built from boolean rows (True = dark)."""

    __slots__ = ("_rows",)

    def __init__(self, rows: Sequence[Sequence[bool]]):
        rows = tuple(tuple(bool(cell) for cell in row) for row in rows)
        if not rows:
            raise InvalidInputError("Module grid is empty")
        n = len(rows)
        if any(len(row) != n for row in rows):
            raise InvalidInputError(f"Module grid must be square ({n} rows)")
        self._rows = rows

    @property
    def module_count(self) -> int:
        return len(self._rows)

    def is_dark(self, row: int, col: int) -> bool:
        return self._rows[row][col]

    def dark_count(self) -> int:
        return sum(sum(row) for row in self._rows)

    def __eq__(self, other):
        if not isinstance(other, MatrixGrid):
            return NotImplemented
        return self._rows == other._rows

    def __hash__(self):
        return hash(self._rows)

    def __repr__(self):
        n = self.module_count
        return f"MatrixGrid({n}x{n})"


def _check_request(text: str, ecc: str) -> str:
    if text is None or not str(text).strip():
        raise InvalidInputError("Please enter a URL or text to encode")
    level = str(ecc).upper()
    if level not in ECC_LEVELS:
        raise InvalidInputError(f"Error correction must be one of {', '.join(ECC_LEVELS)}, got {ecc!r}")
    return level


class QrcodeEncoder:
    """Encoder backed by the ``qrcode`` library (auto version, no quiet zone)."""

    name = "qrcode"

    @trace
    def encode(self, text: str, ecc: str = DEFAULT_ECC) -> MatrixGrid:
        level = _check_request(text, ecc)
        qr = qrcode.QRCode(
            version=None,
            error_correction=QRCODE_ECC[level],
            box_size=1,
            border=0,
        )
        try:
            qr.add_data(text)
            qr.make(fit=True)
        except (qrcode.exceptions.DataOverflowError, ValueError) as e:
            raise EncodingUnavailableError(f"qrcode could not encode the input: {e}") from e

        grid = MatrixGrid(qr.modules)
        audit("qr.encoded", logger=log, encoder=self.name, data=text[:80],
              version=qr.version, ecc=level, size=f"{grid.module_count}x{grid.module_count}")
        return grid


class SegnoEncoder:
    """Encoder backed by ``segno``; the requested ECC level is kept as-is."""

    name = "segno"

    @trace
    def encode(self, text: str, ecc: str = DEFAULT_ECC) -> MatrixGrid:
        level = _check_request(text, ecc)
        try:
            qr = segno.make_qr(text, error=level.lower(), boost_error=False)
        except (segno.DataOverflowError, ValueError) as e:
            raise EncodingUnavailableError(f"segno could not encode the input: {e}") from e

        grid = MatrixGrid([[bool(cell) for cell in row] for row in qr.matrix])
        audit("qr.encoded", logger=log, encoder=self.name, data=text[:80],
              version=qr.version, ecc=level, size=f"{grid.module_count}x{grid.module_count}")
        return grid


ENCODERS = {
    QrcodeEncoder.name: QrcodeEncoder,
    SegnoEncoder.name: SegnoEncoder,
}


def get_encoder(name: str = "qrcode") -> Encoder:
    """Return an encoder instance by backend name ('qrcode' or 'segno')."""
    try:
        return ENCODERS[name.lower()]()
    except KeyError:
        raise InvalidInputError(f"Unknown encoder {name!r}; choose from {', '.join(ENCODERS)}") from None
