"""Exceptions raised by the fixed-point kernel and the sampling grid."""

from __future__ import annotations


class FixedPointError(ArithmeticError):
    """Base class for failures of the fixed-point kernel."""


class Overflow(FixedPointError):
    """A fixed-point operation left the representable (-4, 4) window."""

    def __init__(self, op: str) -> None:
        super().__init__(f"operation {op} would overflow")
        self.op = op


class Escaped(FixedPointError):
    """Iteration left the tracked domain; the point is outside the set."""

    def __init__(self) -> None:
        super().__init__("iteration triggered escape")


class SamplingOverflow(Overflow):
    """A sample coordinate of a grid could not be represented."""

    def __init__(self, op: str, *, row: int | None = None, column: int | None = None) -> None:
        super().__init__(op)
        self.row = row
        self.column = column
        self.args = (f"operation {op} would overflow while sampling row={row} column={column}",)


class IterationError(RuntimeError):
    """An arithmetic failure other than escape surfaced while iterating a point."""

    def __init__(self, location, iteration: int, target: int) -> None:
        super().__init__(f"iterating point {location!r} failed at iteration {iteration} of {target}")
        self.location = location
        self.iteration = iteration
        self.target = target
