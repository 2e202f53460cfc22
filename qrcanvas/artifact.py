"""Render artifacts and the single "current artifact" slot."""

import io
import threading
from dataclasses import dataclass, field

from PIL import Image

from qrcanvas.config import OutputFormat
from qrcanvas.logging import audit, get_logger

log = get_logger("artifact")


@dataclass(frozen=True)
class RasterArtifact:
    """PNG-bound pixel buffer. Treat ``pixels`` as read-only; ``image`` hands out a copy."""

    pixels: Image.Image = field(repr=False)
    format: OutputFormat = field(default=OutputFormat.PNG, init=False)

    @property
    def image(self) -> Image.Image:
        return self.pixels.copy()

    @property
    def size(self) -> int:
        return self.pixels.size[0]

    @property
    def mime_type(self) -> str:
        return self.format.mime_type

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.pixels.save(buf, format="PNG")
        return buf.getvalue()


@dataclass(frozen=True)
class VectorArtifact:
    """Serialized SVG document."""

    markup: str
    size: int
    format: OutputFormat = field(default=OutputFormat.SVG, init=False)

    @property
    def mime_type(self) -> str:
        return self.format.mime_type

    def to_bytes(self) -> bytes:
        return self.markup.encode("utf-8")


Artifact = RasterArtifact | VectorArtifact


class ArtifactSlot:
    """Holds the latest finished artifact.

    Every generate call takes a ticket with :meth:`begin`; a completion only
    lands in the slot if no newer generation has started since, so a slow,
    stale render can never overwrite a fresher one. Thread-safe.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generation = 0
        self._committed_generation = 0
        self._current: Artifact | None = None

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def commit(self, ticket: int, artifact: Artifact) -> bool:
        """Store *artifact* if *ticket* is still the latest generation."""
        with self._lock:
            if ticket != self._generation:
                audit("slot.stale_dropped", logger=log, ticket=ticket, latest=self._generation)
                return False
            self._current = artifact
            self._committed_generation = ticket
        audit("slot.committed", logger=log, generation=ticket, format=artifact.format.value)
        return True

    @property
    def current(self) -> Artifact | None:
        with self._lock:
            return self._current

    @property
    def generation(self) -> int:
        """Generation of the artifact currently held (0 when empty)."""
        with self._lock:
            return self._committed_generation

    def clear(self):
        with self._lock:
            self._current = None
            self._committed_generation = 0
