"""Render configuration: target size, error correction, output format and colors."""

import re
from dataclasses import dataclass
from enum import Enum

from qrcanvas.errors import InvalidInputError

ECC_LEVELS = ("L", "M", "Q", "H")

DEFAULT_SIZE = 256
DEFAULT_ECC = "M"
DEFAULT_FOREGROUND = "#000000"
DEFAULT_BACKGROUND = "#FFFFFF"

_HEX_COLOR = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")


class OutputFormat(Enum):
    PNG = "png"  # raster
    SVG = "svg"  # vector

    @property
    def mime_type(self) -> str:
        return "image/png" if self is OutputFormat.PNG else "image/svg+xml"

    @classmethod
    def parse(cls, value: "str | OutputFormat") -> "OutputFormat":
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        # the form used to offer raster/vector as well as the extensions
        aliases = {"raster": "png", "vector": "svg"}
        try:
            return cls(aliases.get(name, name))
        except ValueError:
            raise InvalidInputError(f"Unknown output format: {value!r}") from None


def normalize_hex_color(color: str) -> str:
    """Normalize '#RGB' / 'RRGGBB' / '#rrggbb' to '#RRGGBB'."""
    match = _HEX_COLOR.match(str(color).strip())
    if not match:
        raise InvalidInputError(f"Invalid hex color: {color!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return "#" + digits.upper()


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Parse a hex colour string to an RGB tuple."""
    s = normalize_hex_color(color)[1:]
    return tuple(int(s[i : i + 2], 16) for i in (0, 2, 4))


@dataclass(frozen=True)
class RenderConfig:
    """Everything a renderer needs besides the module grid.

    Colors are normalized to '#RRGGBB' on construction, so renderers can use
    them verbatim in both Pillow and SVG output.
    """

    size: int = DEFAULT_SIZE
    ecc: str = DEFAULT_ECC
    format: OutputFormat = OutputFormat.PNG
    foreground: str = DEFAULT_FOREGROUND
    background: str = DEFAULT_BACKGROUND

    def __post_init__(self):
        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise InvalidInputError(f"Target size must be an integer, got {self.size!r}")
        if self.size <= 0:
            raise InvalidInputError(f"Target size must be positive, got {self.size}")
        ecc = str(self.ecc).upper()
        if ecc not in ECC_LEVELS:
            raise InvalidInputError(f"Error correction must be one of {', '.join(ECC_LEVELS)}, got {self.ecc!r}")
        # frozen dataclass: normalized values go through object.__setattr__
        object.__setattr__(self, "ecc", ecc)
        object.__setattr__(self, "format", OutputFormat.parse(self.format))
        object.__setattr__(self, "foreground", normalize_hex_color(self.foreground))
        object.__setattr__(self, "background", normalize_hex_color(self.background))

    @property
    def foreground_rgb(self) -> tuple[int, int, int]:
        return hex_to_rgb(self.foreground)

    @property
    def background_rgb(self) -> tuple[int, int, int]:
        return hex_to_rgb(self.background)

    @classmethod
    def from_options(cls, options: dict) -> "RenderConfig":
        """Build a config from loosely typed options (CLI namespace dict or JSON body).

        Missing or None values fall back to the defaults.
        """
        size = options.get("size")
        if size is None:
            size = DEFAULT_SIZE
        elif not isinstance(size, int) or isinstance(size, bool):
            try:
                size = int(str(size).strip())
            except ValueError:
                raise InvalidInputError(f"Target size must be an integer, got {size!r}") from None

        def pick(key, default):
            value = options.get(key)
            return default if value is None else value

        return cls(
            size=size,
            ecc=pick("ecc", DEFAULT_ECC),
            format=pick("format", OutputFormat.PNG),
            foreground=pick("foreground", DEFAULT_FOREGROUND),
            background=pick("background", DEFAULT_BACKGROUND),
        )
