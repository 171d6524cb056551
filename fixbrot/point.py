"""Per-pixel escape-time state."""

from __future__ import annotations

from .complex import Complex, iterate_mandelbrot
from .errors import Escaped, FixedPointError, IterationError
from .fixed import Fix2x61


class Point:
    """One sample of the plane and its iteration state.

    A point is either active or escaped. ``loc`` never changes; ``value``,
    ``iterations`` and the two flags only move forward. ``candidate`` marks a
    point the grid still considers worth iterating.
    """

    __slots__ = ("loc", "value", "iterations", "escaped", "candidate")

    def __init__(self, loc: Complex) -> None:
        self.loc = loc
        self.value = loc
        self.iterations = 0
        self.escaped = False
        self.candidate = False

    @classmethod
    def origin(cls) -> Point:
        return cls(Complex.zero())

    @classmethod
    def from_parts(cls, r: Fix2x61, i: Fix2x61) -> Point:
        return cls(Complex(r, i))

    def __repr__(self) -> str:
        return (
            f"Point(loc={self.loc!r}, iterations={self.iterations}, "
            f"escaped={self.escaped}, candidate={self.candidate})"
        )

    def iterate(self) -> None:
        # The escaping step is counted, so a point that leaves on its first
        # step reports one iteration.
        if self.escaped:
            return
        try:
            self.value = iterate_mandelbrot(self.value, self.loc)
        except Escaped:
            self.escaped = True
        self.iterations += 1

    def iterate_n(self, n: int) -> None:
        """Iterate up to ``n`` more times, stopping early on escape."""

        for _ in range(n):
            if self.escaped:
                return
            self._step(n)

    def iterate_to_n(self, n: int) -> None:
        """Advance a candidate until it has ``n`` iterations or escapes.

        Non-candidates are left untouched.
        """

        if not self.candidate:
            return
        while self.iterations < n and not self.escaped:
            self._step(n)

    def _step(self, target: int) -> None:
        try:
            self.iterate()
        except FixedPointError as exc:
            raise IterationError(self.loc, self.iterations, target) from exc
