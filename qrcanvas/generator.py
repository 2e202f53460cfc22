"""QR generation pipeline: encode, plan + render, overlay the logo, commit the artifact.

Ordering within one call is fixed: rendering finishes before the logo overlay
starts, the overlay finishes before the artifact is committed to the slot,
and only a committed artifact is handed to the exporter. Geometry and
encoding errors abort the call; a logo that fails to decode only produces a
warning and the plain QR artifact is delivered.
"""

from dataclasses import dataclass, field

from qrcanvas.artifact import Artifact, ArtifactSlot
from qrcanvas.config import OutputFormat, RenderConfig
from qrcanvas.encoder import Encoder, QrcodeEncoder
from qrcanvas.errors import EncodingUnavailableError, LogoDecodeError
from qrcanvas.export import Exporter
from qrcanvas.logging import audit, get_logger, trace
from qrcanvas.logo import DEFAULT_DECODER, LogoDecoder, overlay_logo
from qrcanvas.raster import render_raster
from qrcanvas.vector import render_vector_artifact

log = get_logger("generator")

RENDERERS = {
    OutputFormat.PNG: render_raster,
    OutputFormat.SVG: render_vector_artifact,
}


@dataclass
class GenerateResult:
    """Outcome of one generate call.

    ``committed`` is False when a newer generate call started before this one
    finished; the artifact is still valid but is not the slot's current one
    and is not handed to the exporter. ``exported`` holds what the exporter
    returned (a path, a clipboard payload), or None.
    """

    artifact: Artifact
    generation: int
    committed: bool
    warnings: list[str] = field(default_factory=list)
    exported: object = None

    @property
    def ok(self) -> bool:
        return not self.warnings


def render(grid, config: RenderConfig) -> Artifact:
    """Render *grid* in the format the config asks for."""
    if grid is None:
        raise EncodingUnavailableError("No module grid: the encoder did not produce a symbol")
    return RENDERERS[config.format](grid, config)


class QRGenerator:
    """Generate QR artifacts with injected capabilities.

    Args:
        encoder: Turns text + ECC into a module grid (default: qrcode backend).
        decoder: Decodes logo bytes (default: Pillow).
        slot: Holds the latest committed artifact; shared by every call made
              through this generator.
        exporter: Optional export step run on every committed artifact.
    """

    def __init__(
        self,
        encoder: Encoder | None = None,
        decoder: LogoDecoder | None = None,
        slot: ArtifactSlot | None = None,
        exporter: Exporter | None = None,
    ):
        self.encoder = encoder or QrcodeEncoder()
        self.decoder = decoder or DEFAULT_DECODER
        self.slot = slot or ArtifactSlot()
        self.exporter = exporter

    @property
    def current(self) -> Artifact | None:
        return self.slot.current

    @trace
    def generate(self, text: str, config: RenderConfig, logo=None) -> GenerateResult:
        """Encode *text*, render it per *config*, and overlay *logo* if given.

        Raises:
            InvalidInputError: empty text or unusable geometry.
            EncodingUnavailableError: the encoder could not produce a grid.
            ExportFailure: the exporter failed; the artifact is still committed.
        """
        ticket = self.slot.begin()

        grid = self.encoder.encode(text, config.ecc)
        if grid is None:
            raise EncodingUnavailableError(f"Encoder {getattr(self.encoder, 'name', '?')} returned no grid")
        artifact = render(grid, config)

        warnings: list[str] = []
        if logo is not None:
            try:
                artifact = overlay_logo(artifact, logo, self.decoder)
            except LogoDecodeError as e:
                log.warning("Failed to embed logo, delivering QR without it: %s", e)
                warnings.append(f"Logo skipped: {e}")

        committed = self.slot.commit(ticket, artifact)
        exported = self.exporter.export(artifact) if committed and self.exporter is not None else None
        audit("qr.generated", logger=log,
              data=text[:80], format=config.format.value, size=config.size, ecc=config.ecc,
              modules=grid.module_count, logo=logo is not None, warnings=len(warnings),
              generation=ticket, committed=committed)
        return GenerateResult(artifact=artifact, generation=ticket, committed=committed,
                              warnings=warnings, exported=exported)
