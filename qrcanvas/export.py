"""Export finished artifacts: files, data URLs and clipboard text payloads."""

import base64
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from qrcanvas.config import OutputFormat
from qrcanvas.errors import ExportFailure
from qrcanvas.logging import audit, get_logger, trace

log = get_logger("export")


def default_filename(fmt: OutputFormat | str, now: datetime | None = None) -> str:
    """``qr-2026-10-18T09-52-00.png`` style name, timestamp in UTC."""
    fmt = OutputFormat.parse(fmt)
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return f"qr-{now.strftime('%Y-%m-%dT%H-%M-%S')}.{fmt.value}"


@trace
def save_artifact(artifact, destination: str | Path) -> Path:
    """Write *artifact* to disk.

    A directory destination gets a timestamped default filename; any other
    path is used as given (parent directories are created).

    Raises:
        ExportFailure: the artifact could not be serialized or written.
    """
    dest = Path(destination)
    if dest.is_dir():
        dest = dest / default_filename(artifact.format)
    try:
        payload = artifact.to_bytes()
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(payload)
    except (OSError, ValueError) as e:
        raise ExportFailure(f"Failed to write QR code to {dest}: {e}") from e

    audit("artifact.saved", logger=log, path=str(dest), format=artifact.format.value, bytes=len(payload))
    return dest


def to_data_url(artifact) -> str:
    """``data:<mime>;base64,...`` encoding of the artifact."""
    try:
        payload = artifact.to_bytes()
    except (OSError, ValueError) as e:
        raise ExportFailure(f"Failed to encode QR code: {e}") from e
    return f"data:{artifact.mime_type};base64," + base64.b64encode(payload).decode("ascii")


def clipboard_payload(artifact) -> str:
    """Text to put on a clipboard: SVG markup as-is, PNG as a data URL."""
    if artifact.format is OutputFormat.SVG:
        return artifact.markup
    return to_data_url(artifact)


class Exporter(Protocol):
    def export(self, artifact): ...


class FileExporter:
    """Write every exported artifact to *destination* (file path or directory)."""

    def __init__(self, destination: str | Path):
        self.destination = Path(destination)

    def export(self, artifact) -> Path:
        return save_artifact(artifact, self.destination)


class ClipboardExporter:
    """Produce the clipboard text for an artifact; the last payload is kept on ``text``."""

    def __init__(self):
        self.text: str | None = None

    def export(self, artifact) -> str:
        self.text = clipboard_payload(artifact)
        audit("artifact.copied", logger=log, format=artifact.format.value, chars=len(self.text))
        return self.text
