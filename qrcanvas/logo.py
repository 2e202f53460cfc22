"""Logo overlay: load logo uploads, decode them, and composite them onto artifacts.

Both compositor variants use the same :class:`~qrcanvas.geometry.LogoPlacement`:
a white backing plate inflated by ``padding`` on every side, then the logo
scaled to ``logo_size x logo_size`` in the centre of the canvas. The plate is
always pure white, whatever the QR colors are, so the logo stays legible.
Modules under the plate are simply covered.
"""

import base64
import binascii
import io
import mimetypes
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote_to_bytes

from PIL import Image, ImageDraw, UnidentifiedImageError

from qrcanvas.artifact import RasterArtifact, VectorArtifact
from qrcanvas.errors import InvalidInputError, LogoDecodeError
from qrcanvas.geometry import LogoPlacement, logo_placement, round_half_up
from qrcanvas.logging import audit, get_logger, trace
from qrcanvas.raster import fill_rect
from qrcanvas.vector import SVG_NS, format_number

log = get_logger("logo")

PLATE_COLOR = "#FFFFFF"
ALLOWED_LOGO_TYPES = ("image/png", "image/jpeg")
MAX_LOGO_BYTES = 2 * 1024 * 1024
DECODABLE_FORMATS = ("PNG", "JPEG")

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?),(?P<payload>.*)$", re.DOTALL)


# ---------------------------------------------------------------------------
# Logo sources
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LogoSource:
    """Raw, not yet decoded logo bytes plus what the uploader told us about them."""

    data: bytes
    mime_type: str | None = None
    name: str | None = None

    def validate(self) -> "LogoSource":
        """Apply the upload rules: PNG or JPEG only, at most MAX_LOGO_BYTES."""
        if self.mime_type is not None and self.mime_type not in ALLOWED_LOGO_TYPES:
            raise InvalidInputError(f"Please upload a PNG or JPEG image (got {self.mime_type}).")
        if len(self.data) > MAX_LOGO_BYTES:
            raise InvalidInputError(
                f"Logo file must be smaller than {MAX_LOGO_BYTES // (1024 * 1024)}MB "
                f"({len(self.data)} bytes given)."
            )
        return self

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str | None = None, name: str | None = None) -> "LogoSource":
        if mime_type == "image/jpg":
            mime_type = "image/jpeg"
        return cls(data=bytes(data), mime_type=mime_type, name=name).validate()

    @classmethod
    def from_path(cls, path: str | Path) -> "LogoSource":
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise LogoDecodeError(f"Error reading logo file {path}: {e}") from e
        return cls.from_bytes(data, mime_type=mime_type, name=path.name)

    @classmethod
    def from_data_url(cls, url: str, name: str | None = None) -> "LogoSource":
        match = _DATA_URL.match(url.strip())
        if not match:
            raise InvalidInputError("Logo must be a data: URL")
        payload = match.group("payload")
        try:
            if ";base64" in match.group("params"):
                data = base64.b64decode(payload, validate=True)
            else:
                data = unquote_to_bytes(payload)
        except (binascii.Error, ValueError) as e:
            raise InvalidInputError(f"Error reading logo data URL: {e}") from e
        return cls.from_bytes(data, mime_type=match.group("mime"), name=name)


def _as_source(logo) -> LogoSource:
    if isinstance(logo, LogoSource):
        return logo
    if isinstance(logo, (bytes, bytearray)):
        return LogoSource.from_bytes(logo)
    if isinstance(logo, str) and logo.startswith("data:"):
        return LogoSource.from_data_url(logo)
    if isinstance(logo, (str, Path)):
        return LogoSource.from_path(logo)
    raise InvalidInputError(f"Unsupported logo value: {type(logo).__name__}")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DecodedLogo:
    image: Image.Image
    mime_type: str
    data: bytes

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64," + base64.b64encode(self.data).decode("ascii")


class LogoDecoder(Protocol):
    def decode(self, source: LogoSource) -> DecodedLogo: ...


class PilLogoDecoder:
    """Decode logo bytes with Pillow. Any failure surfaces as LogoDecodeError."""

    @trace
    def decode(self, source: LogoSource) -> DecodedLogo:
        try:
            img = Image.open(io.BytesIO(source.data))
            img.load()
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            label = source.name or f"{len(source.data)} bytes"
            raise LogoDecodeError(f"Could not decode logo ({label}): {e}") from e
        if img.format not in DECODABLE_FORMATS:
            label = source.name or f"{len(source.data)} bytes"
            raise LogoDecodeError(f"Logo ({label}) is {img.format}, expected PNG or JPEG")

        mime_type = Image.MIME.get(img.format or "", source.mime_type or "image/png")
        audit("logo.decoded", logger=log, name=source.name, format=img.format,
              mode=img.mode, size=f"{img.size[0]}x{img.size[1]}")
        return DecodedLogo(image=img, mime_type=mime_type, data=source.data)


DEFAULT_DECODER = PilLogoDecoder()


def _placement(target_size: int) -> LogoPlacement:
    placement = logo_placement(target_size)
    if placement.logo_size < 1:
        raise InvalidInputError(f"Target size {target_size}px is too small for a logo")
    return placement


# ---------------------------------------------------------------------------
# Raster variant
# ---------------------------------------------------------------------------

@trace
def overlay_logo_raster(
    image: Image.Image,
    logo,
    target_size: int,
    decoder: LogoDecoder | None = None,
) -> Image.Image:
    """Paint the white plate and the scaled logo onto a copy of *image*.

    The logo is decoded first, so a LogoDecodeError leaves nothing half drawn.
    Transparency comes only from the logo's own alpha channel.
    """
    if image.size != (target_size, target_size):
        raise InvalidInputError(f"Image is {image.size[0]}x{image.size[1]}, expected {target_size}x{target_size}")
    placement = _placement(target_size)
    decoded = (decoder or DEFAULT_DECODER).decode(_as_source(logo))

    result = image.convert("RGB")
    draw = ImageDraw.Draw(result)
    plate_x = round_half_up(placement.plate_x)
    plate_y = round_half_up(placement.plate_y)
    fill_rect(draw, plate_x, plate_y, placement.plate_size, placement.plate_size, PLATE_COLOR)

    size = placement.logo_size
    logo_rgba = decoded.image.convert("RGBA").resize((size, size), Image.LANCZOS)
    result.paste(logo_rgba, (round_half_up(placement.logo_x), round_half_up(placement.logo_y)), logo_rgba)

    audit("logo.composited", logger=log, variant="raster", qr_size=target_size,
          logo_size=size, padding=placement.padding,
          plate=f"{plate_x},{plate_y}+{placement.plate_size}")
    return result


# ---------------------------------------------------------------------------
# Vector variant
# ---------------------------------------------------------------------------

@trace
def overlay_logo_vector(
    markup: str,
    logo,
    target_size: int,
    decoder: LogoDecoder | None = None,
) -> str:
    """Append a white plate rect and an inline-data <image> to an SVG document.

    Both elements go after every module rect (document order is paint order)
    and carry the exact placement numbers, fractional offsets included.
    """
    placement = _placement(target_size)
    decoded = (decoder or DEFAULT_DECODER).decode(_as_source(logo))

    ET.register_namespace("", SVG_NS)
    try:
        root = ET.fromstring(markup)
    except ET.ParseError as e:
        raise InvalidInputError(f"Not a parseable SVG document: {e}") from e

    plate_size = format_number(placement.plate_size)
    ET.SubElement(root, f"{{{SVG_NS}}}rect", {
        "x": format_number(placement.plate_x),
        "y": format_number(placement.plate_y),
        "width": plate_size,
        "height": plate_size,
        "fill": PLATE_COLOR,
    })
    logo_size = format_number(placement.logo_size)
    ET.SubElement(root, f"{{{SVG_NS}}}image", {
        "href": decoded.data_url,
        "x": format_number(placement.logo_x),
        "y": format_number(placement.logo_y),
        "width": logo_size,
        "height": logo_size,
    })

    audit("logo.composited", logger=log, variant="vector", qr_size=target_size,
          logo_size=placement.logo_size, padding=placement.padding, mime=decoded.mime_type)
    return ET.tostring(root, encoding="unicode")


def overlay_logo(artifact, logo, decoder: LogoDecoder | None = None):
    """Apply the compositor variant matching the artifact's format; returns a new artifact."""
    if isinstance(artifact, RasterArtifact):
        return RasterArtifact(overlay_logo_raster(artifact.pixels, logo, artifact.size, decoder))
    if isinstance(artifact, VectorArtifact):
        return VectorArtifact(
            markup=overlay_logo_vector(artifact.markup, logo, artifact.size, decoder),
            size=artifact.size,
        )
    raise InvalidInputError(f"Unsupported artifact: {type(artifact).__name__}")
