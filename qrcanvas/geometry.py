"""Geometry planner shared by the raster and vector renderers.

Maps an abstract N x N module grid onto integer pixel rectangles inside a
square canvas of ``target_size`` pixels:

    margin = max(4, floor(target_size * 0.05))
    pitch  = (target_size - 2 * margin) / N

Every rectangle edge is rounded independently from the same continuous
``margin + k * pitch`` function (left/top edges rounded half-up, right/bottom
edges rounded up), so neighbouring modules never leave a seam between them.
Both renderers draw exactly these rectangles, which is what keeps PNG and SVG
output visually identical.

The logo placement lives here too since it is derived from the target size
alone and must be the same numbers for both compositor variants.
"""

import math
from dataclasses import dataclass
from typing import Iterator

from qrcanvas.errors import EncodingUnavailableError, InvalidInputError

MIN_MARGIN = 4
MARGIN_RATIO = 0.05
LOGO_RATIO = 0.2
LOGO_PADDING_RATIO = 0.1


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return math.floor(value + 0.5)


def margin_for(target_size: int) -> int:
    return max(MIN_MARGIN, math.floor(target_size * MARGIN_RATIO))


@dataclass(frozen=True)
class ModuleRect:
    """Integer pixel rectangle for one dark module."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class GeometryPlan:
    module_count: int
    target_size: int
    margin: int
    pitch: float

    def _edge(self, index: int) -> float:
        return self.margin + index * self.pitch

    def rect_for(self, row: int, col: int) -> ModuleRect:
        n = self.module_count
        if not (0 <= row < n and 0 <= col < n):
            raise InvalidInputError(f"Module ({row}, {col}) is outside the {n}x{n} grid")
        x = round_half_up(self._edge(col))
        y = round_half_up(self._edge(row))
        return ModuleRect(
            x=x,
            y=y,
            width=math.ceil(self._edge(col + 1)) - x,
            height=math.ceil(self._edge(row + 1)) - y,
        )

    @property
    def drawable_size(self) -> int:
        return self.target_size - 2 * self.margin


def plan(module_count: int, target_size: int) -> GeometryPlan:
    """Compute the margin, pitch and rectangle mapping for a grid.

    Raises:
        InvalidInputError: non-positive module count or target size, or a
            target size too small to leave any drawable area inside the margin.
    """
    if module_count <= 0:
        raise InvalidInputError(f"Module count must be positive, got {module_count}")
    if target_size <= 0:
        raise InvalidInputError(f"Target size must be positive, got {target_size}")

    margin = margin_for(target_size)
    if 2 * margin >= target_size:
        raise InvalidInputError(
            f"Target size {target_size}px leaves no drawable area inside a {margin}px margin"
        )
    return GeometryPlan(
        module_count=module_count,
        target_size=target_size,
        margin=margin,
        pitch=(target_size - 2 * margin) / module_count,
    )


def dark_rects(grid, geometry: GeometryPlan) -> Iterator[ModuleRect]:
    """Yield the rectangle of every dark module in row-major order."""
    if grid is None:
        raise EncodingUnavailableError("No module grid: the encoder did not produce a symbol")
    n = grid.module_count
    if n != geometry.module_count:
        raise InvalidInputError(f"Plan was computed for {geometry.module_count} modules, grid has {n}")
    for row in range(n):
        for col in range(n):
            if grid.is_dark(row, col):
                yield geometry.rect_for(row, col)


def plan_for_grid(grid, target_size: int) -> GeometryPlan:
    if grid is None:
        raise EncodingUnavailableError("No module grid: the encoder did not produce a symbol")
    return plan(grid.module_count, target_size)


# ---------------------------------------------------------------------------
# Logo placement
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LogoPlacement:
    """Centred logo box and its white backing plate.

    ``logo_x``/``logo_y`` are ``(target_size - logo_size) / 2`` and can be
    fractional (x.5) for odd sizes; the vector path keeps the exact value and
    the raster path snaps with :func:`round_half_up`.
    """

    target_size: int
    logo_size: int
    padding: int
    logo_x: float
    logo_y: float

    @property
    def plate_x(self) -> float:
        return self.logo_x - self.padding

    @property
    def plate_y(self) -> float:
        return self.logo_y - self.padding

    @property
    def plate_size(self) -> int:
        return self.logo_size + 2 * self.padding


def logo_placement(target_size: int) -> LogoPlacement:
    if target_size <= 0:
        raise InvalidInputError(f"Target size must be positive, got {target_size}")
    logo_size = math.floor(target_size * LOGO_RATIO)
    offset = (target_size - logo_size) / 2
    return LogoPlacement(
        target_size=target_size,
        logo_size=logo_size,
        padding=math.floor(logo_size * LOGO_PADDING_RATIO),
        logo_x=offset,
        logo_y=offset,
    )
