"""Utilities for managing quadrant zoom sequences."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

from .grid import SIX_NEIGHBOURS, Grid, Quad


@dataclass(frozen=True)
class ZoomPath:
    """An ordered sequence of quadrants, each halving the radius."""

    quads: tuple[Quad, ...] = ()

    @classmethod
    def parse(cls, text: str) -> ZoomPath:
        """Parse a comma separated list of quadrant numbers, e.g. ``"1,4,2"``."""

        if not text.strip():
            return cls()
        quads = []
        for index, element in enumerate(text.split(",")):
            try:
                value = int(element)
            except ValueError as exc:
                raise ValueError(
                    f"element {index} is {element!r} but should be a number from 1 to 4"
                ) from exc
            if not 1 <= value <= 4:
                raise ValueError(f"element {index} is out of range (1-4): {value}")
            quads.append(Quad(value))
        return cls(tuple(quads))

    def __iter__(self) -> Iterator[Quad]:
        return iter(self.quads)

    def __len__(self) -> int:
        return len(self.quads)

    def __str__(self) -> str:
        return ",".join(str(int(quad)) for quad in self.quads)


@dataclass(frozen=True)
class ZoomPlanner:
    """Refine grids along a zoom path with fixed refinement settings."""

    floor: int
    workers: int = 1
    neighbours: Sequence[tuple[int, int]] = SIX_NEIGHBOURS

    def refine(self, grid: Grid) -> Grid:
        grid.iterate_as_required(self.floor, workers=self.workers, neighbours=self.neighbours)
        return grid

    def update_after_frame(self, grid: Grid, quad: Quad) -> Grid:
        return self.refine(grid.subset(quad))

    def frames(self, grid: Grid, path: ZoomPath) -> Iterator[Grid]:
        """Yield the refined starting grid, then one refined grid per quadrant."""

        grid = self.refine(grid)
        yield grid
        for quad in path:
            grid = self.update_after_frame(grid, quad)
            yield grid
