"""Raster renderer: paint a module grid onto a target_size x target_size RGB canvas."""

from PIL import Image, ImageDraw

from qrcanvas.artifact import RasterArtifact
from qrcanvas.config import RenderConfig
from qrcanvas.geometry import dark_rects, plan_for_grid
from qrcanvas.logging import audit, get_logger, trace

log = get_logger("raster")


def fill_rect(draw: ImageDraw.ImageDraw, x: int, y: int, width: int, height: int, color) -> None:
    """Fill a solid, axis-aligned block; Pillow's rectangle end point is inclusive."""
    if width <= 0 or height <= 0:
        return
    draw.rectangle([x, y, x + width - 1, y + height - 1], fill=color)


@trace
def render_raster(grid, config: RenderConfig) -> RasterArtifact:
    """Render *grid* as a PNG-ready pixel buffer.

    1. Fill the whole canvas with the background color.
    2. Fill every dark module's planner rectangle with the foreground color.

    Raises:
        EncodingUnavailableError: *grid* is None.
        InvalidInputError: the planner rejected the grid/size combination.
    """
    geometry = plan_for_grid(grid, config.size)

    img = Image.new("RGB", (config.size, config.size), config.background_rgb)
    draw = ImageDraw.Draw(img)
    fg = config.foreground_rgb

    painted = 0
    for rect in dark_rects(grid, geometry):
        if rect.is_empty:
            continue
        fill_rect(draw, rect.x, rect.y, rect.width, rect.height, fg)
        painted += 1

    audit("raster.rendered", logger=log,
          size=f"{config.size}x{config.size}", modules=geometry.module_count,
          margin=geometry.margin, pitch=round(geometry.pitch, 4), dark=painted,
          fg=config.foreground, bg=config.background)
    return RasterArtifact(img)
