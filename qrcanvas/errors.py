"""Error taxonomy for the rendering core.

Geometry and encoding errors abort a render. Logo decode errors are caught by
the generator and downgraded to a warning. Export failures belong to the
caller that asked for the export.
"""


class QRCanvasError(Exception):
    """Base class for all qrcanvas errors."""


class InvalidInputError(QRCanvasError, ValueError):
    """Malformed render input: non-positive size or module count, bad color, etc."""


class EncodingUnavailableError(QRCanvasError):
    """The encoder produced no module grid."""


class LogoDecodeError(QRCanvasError):
    """The logo image could not be loaded or decoded."""


class ExportFailure(QRCanvasError):
    """Writing or converting a finished artifact failed."""
