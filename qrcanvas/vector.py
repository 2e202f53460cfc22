"""Vector renderer: emit a module grid as a standalone SVG document."""

from qrcanvas.artifact import VectorArtifact
from qrcanvas.config import RenderConfig
from qrcanvas.geometry import dark_rects, plan_for_grid
from qrcanvas.logging import audit, get_logger, trace

log = get_logger("vector")

SVG_NS = "http://www.w3.org/2000/svg"


def format_number(value: float) -> str:
    """SVG attribute number: integers without a trailing '.0'."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


@trace
def render_vector(grid, config: RenderConfig) -> str:
    """Render *grid* as SVG markup using the exact planner rectangles.

    The document has a ``0 0 S S`` viewBox, one full-canvas background rect,
    then one filled rect per dark module in row-major order.
    """
    geometry = plan_for_grid(grid, config.size)
    size = config.size
    fg = config.foreground

    parts = [
        (
            f'<svg xmlns="{SVG_NS}" width="{size}" height="{size}" '
            f'viewBox="0 0 {size} {size}" role="img" aria-label="Generated QR code">'
        ),
        f'<rect width="100%" height="100%" fill="{config.background}"/>',
    ]
    count = 0
    for rect in dark_rects(grid, geometry):
        if rect.is_empty:
            continue
        parts.append(
            f'<rect x="{rect.x}" y="{rect.y}" width="{rect.width}" height="{rect.height}" fill="{fg}"/>'
        )
        count += 1
    parts.append("</svg>")

    audit("vector.rendered", logger=log,
          size=f"{size}x{size}", modules=geometry.module_count,
          margin=geometry.margin, dark=count, fg=fg, bg=config.background)
    return "".join(parts)


def render_vector_artifact(grid, config: RenderConfig) -> VectorArtifact:
    return VectorArtifact(markup=render_vector(grid, config), size=config.size)
