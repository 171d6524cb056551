"""Square sampling grids with adaptive refinement and quadrant zoom."""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from enum import IntEnum
from typing import Iterator, Optional, Sequence
import logging

import numpy as np

from .complex import Complex
from .errors import Overflow, SamplingOverflow
from .fixed import Fix2x61
from .point import Point

logger = logging.getLogger(__name__)

MAX_POWER = 61

Offsets = Sequence[tuple[int, int]]

# (row, column) offsets marked as candidates around an escaped cell. The
# vertical neighbours are left out of the default set.
SIX_NEIGHBOURS: tuple[tuple[int, int], ...] = (
    (-1, -1),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 1),
)
EIGHT_NEIGHBOURS: tuple[tuple[int, int], ...] = SIX_NEIGHBOURS + ((-1, 0), (1, 0))

_BLOCK = EIGHT_NEIGHBOURS + ((0, 0),)


class Quad(IntEnum):
    """Quadrant selectors, numbered as on the command line.

    Row 0 holds the smallest imaginary part, so "top" decreases both axes.
    """

    TOP_LEFT = 1
    TOP_RIGHT = 2
    BOTTOM_LEFT = 3
    BOTTOM_RIGHT = 4

    @property
    def row_half(self) -> int:
        return 0 if self in (Quad.TOP_LEFT, Quad.TOP_RIGHT) else 1

    @property
    def column_half(self) -> int:
        return 0 if self in (Quad.TOP_LEFT, Quad.BOTTOM_LEFT) else 1


def shift_mask(mask: np.ndarray, row_offset: int, column_offset: int) -> np.ndarray:
    """Move ``mask`` by the given offsets, dropping cells that fall off the edge."""

    rows, columns = mask.shape
    shifted = np.zeros_like(mask)
    src_rows = slice(max(0, -row_offset), rows - max(0, row_offset))
    dst_rows = slice(max(0, row_offset), rows - max(0, -row_offset))
    src_cols = slice(max(0, -column_offset), columns - max(0, column_offset))
    dst_cols = slice(max(0, column_offset), columns - max(0, -column_offset))
    shifted[dst_rows, dst_cols] = mask[src_rows, src_cols]
    return shifted


def spread_mask(mask: np.ndarray, offsets: Offsets) -> np.ndarray:
    spread = np.zeros_like(mask)
    for row_offset, column_offset in offsets:
        spread |= shift_mask(mask, row_offset, column_offset)
    return spread


def _axis(start: Fix2x61, step: Fix2x61, size: int, *, rows: bool) -> list[Fix2x61]:
    coords = [start]
    for index in range(1, size):
        try:
            coords.append(coords[-1] + step)
        except Overflow as exc:
            if rows:
                raise SamplingOverflow(exc.op, row=index) from exc
            raise SamplingOverflow(exc.op, column=index) from exc
    return coords


def _advance_slice(points: Sequence[Point], target: int) -> None:
    for point in points:
        point.iterate_to_n(target)


class Grid:
    """A ``2**power`` square of :class:`Point` samples stored row-major.

    ``centre``, ``radius`` and ``power`` are fixed for the grid's lifetime;
    refinement only touches the points, and :meth:`subset` builds a new grid.
    """

    def __init__(self, points: list[Point], power: int, centre: Complex, radius: Fix2x61) -> None:
        size = 1 << power
        if len(points) != size * size:
            raise ValueError(f"expected {size * size} points, got {len(points)}")
        self._points = points
        self.power = power
        self.size = size
        self.centre = centre
        self.radius = radius

    @classmethod
    def create(
        cls,
        power: int,
        centre: Optional[Complex] = None,
        radius: Optional[Fix2x61] = None,
    ) -> Grid:
        """Sample the square ``centre +/- radius`` at the middle of each cell.

        Border cells start as candidates. Raises :class:`SamplingOverflow`
        when a sample coordinate falls outside (-4, 4) or the cell spacing
        is too small to represent.
        """

        if not 2 <= power <= MAX_POWER:
            raise ValueError(f"power must be between 2 and {MAX_POWER}, got {power}")
        centre = Complex.zero() if centre is None else centre
        radius = Fix2x61.two() if radius is None else radius
        if radius.raw <= 0:
            raise ValueError(f"radius must be positive, got {radius!r}")

        size = 1 << power
        try:
            half = (radius * Fix2x61.power_of_two(-power)).truncate()
            step = (radius * Fix2x61.power_of_two(1 - power)).truncate()
        except Overflow as exc:
            raise SamplingOverflow(exc.op) from exc
        # Below 2**-61 every cell would share one location.
        if half.raw == 0 or step.raw == 0:
            raise SamplingOverflow("Grid.create.spacing")
        try:
            column_start = (centre.r - radius) + half
        except Overflow as exc:
            raise SamplingOverflow(exc.op, column=0) from exc
        try:
            row_start = (centre.i - radius) + half
        except Overflow as exc:
            raise SamplingOverflow(exc.op, row=0) from exc

        columns = _axis(column_start, step, size, rows=False)
        rows = _axis(row_start, step, size, rows=True)
        points = [Point(Complex(r, i)) for i in rows for r in columns]

        grid = cls(points, power, centre, radius)
        border = np.zeros((size, size), dtype=bool)
        border[0, :] = border[-1, :] = True
        border[:, 0] = border[:, -1] = True
        grid.mark_candidates(border)
        logger.debug("Sampled %dx%d grid at %r radius %r", size, size, centre, radius)
        return grid

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, position: tuple[int, int]) -> Point:
        row, column = position
        return self._points[row * self.size + column]

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def cells(self) -> Iterator[tuple[bool, int]]:
        """Yield ``(escaped, iterations)`` for each cell in row-major order."""

        for point in self._points:
            yield point.escaped, point.iterations

    def escaped_mask(self) -> np.ndarray:
        flat = np.fromiter((p.escaped for p in self._points), dtype=bool, count=len(self._points))
        return flat.reshape(self.size, self.size)

    def candidate_mask(self) -> np.ndarray:
        flat = np.fromiter((p.candidate for p in self._points), dtype=bool, count=len(self._points))
        return flat.reshape(self.size, self.size)

    def iteration_counts(self) -> np.ndarray:
        flat = np.fromiter((p.iterations for p in self._points), dtype=np.int64, count=len(self._points))
        return flat.reshape(self.size, self.size)

    def luma_buffer(self) -> bytes:
        return bytes((p.iterations % 255) + 1 if p.escaped else 0 for p in self._points)

    def mark_candidates(self, mask: np.ndarray) -> int:
        """Set ``candidate`` on every cell selected by ``mask``; return how many were new."""

        fresh = np.flatnonzero(mask & ~self.candidate_mask())
        for index in fresh:
            self._points[index].candidate = True
        return len(fresh)

    def iterate_to(self, n: int) -> Grid:
        """Iterate every cell, candidate or not, up to ``n`` iterations."""

        for point in self._points:
            point.iterate_n(n - point.iterations)
        return self

    def advance(self, target: int, executor: Optional[Executor] = None, workers: int = 1) -> None:
        """Bring every candidate up to ``target`` iterations.

        Cells are independent, so the buffer is split into ``workers``
        contiguous slices run on ``executor``. Returns once all slices finish.
        """

        if executor is None or workers <= 1:
            _advance_slice(self._points, target)
            return
        chunk = -(-len(self._points) // workers)
        slices = [self._points[start:start + chunk] for start in range(0, len(self._points), chunk)]
        for _ in executor.map(_advance_slice, slices, [target] * len(slices)):
            pass

    def propagate(self, neighbours: Offsets = SIX_NEIGHBOURS) -> int:
        """Mark the neighbours of escaped cells as candidates; return how many were new."""

        return self.mark_candidates(spread_mask(self.escaped_mask(), neighbours))

    def deepest_escape(self) -> int:
        return max((p.iterations for p in self._points if p.escaped), default=0)

    def iterate_as_required(
        self,
        floor: int,
        workers: int = 1,
        neighbours: Offsets = SIX_NEIGHBOURS,
    ) -> int:
        """Refine the grid until the escape frontier stops moving.

        Each round iterates the candidates to ``max(floor, 2 * deepest)``
        where ``deepest`` is the largest escape count seen so far, then marks
        the neighbours of escaped cells. The loop stops once a round adds no
        candidates and the target would not grow. Returns the number of
        rounds run.
        """

        if floor < 1:
            raise ValueError(f"floor must be at least 1, got {floor}")
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        target = 0
        deepest = 0
        added = 0
        rounds = 0
        try:
            while True:
                next_target = max(floor, 2 * deepest)
                if rounds and not added and next_target <= target:
                    break
                target = max(target, next_target)
                rounds += 1
                self.advance(target, executor, workers)
                added = self.propagate(neighbours)
                deepest = self.deepest_escape()
                logger.debug(
                    "Round %d: target %d iterations, %d new candidates, deepest escape %d",
                    rounds, target, added, deepest,
                )
        finally:
            if executor is not None:
                executor.shutdown()
        logger.info("Saw maximum %d iterations after %d rounds", deepest, rounds)
        return rounds

    def subset(self, quad: Quad) -> Grid:
        """Zoom into ``quad``: half the radius, same resolution.

        Escaped cells in the matching quarter of this grid seed the child's
        candidates, each covering its 2x2 block of children and their
        immediate neighbours.
        """

        quad = Quad(quad)
        try:
            radius = (self.radius * Fix2x61.power_of_two(-1)).truncate()
            if radius.raw == 0:
                raise Overflow("Grid.subset.radius")
            r = self.centre.r + radius if quad.column_half else self.centre.r - radius
            i = self.centre.i + radius if quad.row_half else self.centre.i - radius
        except Overflow as exc:
            raise SamplingOverflow(exc.op) from exc
        child = Grid.create(self.power, Complex(r, i), radius)

        half = self.size // 2
        row0 = quad.row_half * half
        col0 = quad.column_half * half
        quarter = self.escaped_mask()[row0:row0 + half, col0:col0 + half]
        blocks = quarter.repeat(2, axis=0).repeat(2, axis=1)
        seeded = child.mark_candidates(spread_mask(blocks, _BLOCK))
        logger.debug("Zoomed into %s, seeded %d candidates", quad.name, seeded)
        return child
