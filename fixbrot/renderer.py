"""Rendering primitives for fixed-point Mandelbrot frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from .complex import Complex
from .fixed import Fix2x61
from .generator import ZoomPath, ZoomPlanner
from .grid import SIX_NEIGHBOURS, Grid


@dataclass(frozen=True)
class RenderParameters:
    """Parameters that describe a render of the Mandelbrot set."""

    power: int
    centre: Complex
    radius: Fix2x61
    floor: int
    workers: int = 1
    neighbours: Sequence[tuple[int, int]] = SIX_NEIGHBOURS

    @property
    def size(self) -> int:
        return 1 << self.power

    def planner(self) -> ZoomPlanner:
        return ZoomPlanner(floor=self.floor, workers=self.workers, neighbours=self.neighbours)


@dataclass(frozen=True)
class SamplingMetadata:
    """Metadata describing the sampling grid for a rendered frame."""

    x_min: float
    y_min: float
    x_step: float
    y_step: float
    x_res: int
    y_res: int

    @classmethod
    def from_grid(cls, grid: Grid) -> SamplingMetadata:
        radius = np.float64(float(grid.radius))
        step = radius * np.float64(2.0) ** (1 - grid.power)
        x_min = np.float64(float(grid.centre.r)) - radius + step / 2.0
        y_min = np.float64(float(grid.centre.i)) - radius + step / 2.0
        return cls(
            x_min=float(x_min),
            y_min=float(y_min),
            x_step=float(step),
            y_step=float(step),
            x_res=grid.size,
            y_res=grid.size,
        )


@dataclass(frozen=True)
class RenderResult:
    """Container for the per-cell output of a refined grid."""

    iterations: np.ndarray
    escaped: np.ndarray
    metadata: SamplingMetadata
    grid: Optional[Grid] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_grid(cls, grid: Grid) -> RenderResult:
        return cls(
            iterations=grid.iteration_counts(),
            escaped=grid.escaped_mask(),
            metadata=SamplingMetadata.from_grid(grid),
            grid=grid,
        )

    @property
    def deepest(self) -> int:
        if not self.escaped.any():
            return 0
        return int(self.iterations[self.escaped].max())


def render_frame(params: RenderParameters) -> RenderResult:
    """Sample and refine a single grid."""

    grid = Grid.create(params.power, params.centre, params.radius)
    return RenderResult.from_grid(params.planner().refine(grid))


def render_path(params: RenderParameters, path: ZoomPath) -> list[RenderResult]:
    """Render the starting grid followed by one frame per quadrant of ``path``."""

    grid = Grid.create(params.power, params.centre, params.radius)
    return [RenderResult.from_grid(frame) for frame in params.planner().frames(grid, path)]
