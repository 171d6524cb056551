"""Fixed-point scalars bounded to the Mandelbrot escape window (-4, 4).

``Fix2x61`` is the narrow type used for coordinates and iteration state: one
sign bit, two integer bits and 61 fractional bits stored in a signed 64-bit
word. ``Fix4x123`` is the wide type produced by multiplying two narrow values:
one sign bit, four integer bits and 123 fractional bits in a 128-bit word.

Every operation that would leave the representable range raises
:class:`~fixbrot.errors.Overflow` instead of wrapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
import math

from .errors import Overflow

NARROW_FRACTION_BITS = 61
WIDE_FRACTION_BITS = 123
WIDEN_SHIFT = WIDE_FRACTION_BITS - NARROW_FRACTION_BITS

# Open bounds on the raw words: -4 itself is excluded so the window is symmetric.
NARROW_LIMIT = 1 << 63
WIDE_LIMIT = 1 << 127

NARROW_ONE = 1 << NARROW_FRACTION_BITS
WIDE_ONE = 1 << WIDE_FRACTION_BITS
WIDE_FOUR = 1 << (WIDE_FRACTION_BITS + 2)


def _narrow(raw: int, op: str) -> Fix2x61:
    if -NARROW_LIMIT < raw < NARROW_LIMIT:
        return Fix2x61(raw)
    raise Overflow(op)


def _wide(raw: int, op: str) -> Fix4x123:
    if -WIDE_LIMIT < raw < WIDE_LIMIT:
        return Fix4x123(raw)
    raise Overflow(op)


@dataclass(frozen=True, order=True)
class Fix2x61:
    """Narrow fixed-point value, ``raw / 2**61``."""

    raw: int

    @classmethod
    def zero(cls) -> Fix2x61:
        return cls(0)

    @classmethod
    def one(cls) -> Fix2x61:
        return cls(NARROW_ONE)

    @classmethod
    def two(cls) -> Fix2x61:
        return cls(NARROW_ONE << 1)

    @classmethod
    def power_of_two(cls, power: int) -> Fix2x61:
        """Return ``2**power``; only ``-61 <= power <= 1`` is representable."""

        if power > 1 or power < -NARROW_FRACTION_BITS:
            raise Overflow("Fix2x61.power_of_two")
        return cls(1 << (NARROW_FRACTION_BITS + power))

    @classmethod
    def from_int(cls, value: int) -> Fix2x61:
        if value >= 4 or value <= -4:
            raise Overflow("Fix2x61.from_int")
        return cls(value << NARROW_FRACTION_BITS)

    @classmethod
    def from_float(cls, value: float) -> Fix2x61:
        """Convert ``value``, dropping bits below 2**-61 (rounds toward zero)."""

        if math.isnan(value) or abs(value) >= 4.0:
            raise Overflow("Fix2x61.from_float")
        return cls(int(Fraction(value) * NARROW_ONE))

    @classmethod
    def parse(cls, text: str) -> Fix2x61:
        """Parse a decimal literal such as ``"-0.743643887037151"``."""

        value = Fraction(text.strip())
        if abs(value) >= 4:
            raise Overflow("Fix2x61.parse")
        return cls(int(value * NARROW_ONE))

    def __add__(self, other: Fix2x61) -> Fix2x61:
        return _narrow(self.raw + other.raw, "Fix2x61.add")

    def __sub__(self, other: Fix2x61) -> Fix2x61:
        return _narrow(self.raw - other.raw, "Fix2x61.sub")

    def __mul__(self, other: Fix2x61) -> Fix4x123:
        # |product| < 2**126, so the widened product always fits.
        return Fix4x123((self.raw * other.raw) << 1)

    def __neg__(self) -> Fix2x61:
        return Fix2x61(-self.raw)

    def __float__(self) -> float:
        return self.raw / NARROW_ONE

    def __repr__(self) -> str:
        return f"Fix2x61({float(self)!r})"


@dataclass(frozen=True, order=True)
class Fix4x123:
    """Wide fixed-point value, ``raw / 2**123``; only produced by multiplication."""

    raw: int

    @classmethod
    def zero(cls) -> Fix4x123:
        return cls(0)

    @classmethod
    def one(cls) -> Fix4x123:
        return cls(WIDE_ONE)

    @classmethod
    def two(cls) -> Fix4x123:
        return cls(WIDE_ONE << 1)

    @classmethod
    def four(cls) -> Fix4x123:
        return cls(WIDE_FOUR)

    @classmethod
    def from_narrow(cls, value: Fix2x61) -> Fix4x123:
        return cls(value.raw << WIDEN_SHIFT)

    def __add__(self, other: Fix4x123) -> Fix4x123:
        return _wide(self.raw + other.raw, "Fix4x123.add")

    def __sub__(self, other: Fix4x123) -> Fix4x123:
        return _wide(self.raw - other.raw, "Fix4x123.sub")

    def __neg__(self) -> Fix4x123:
        return Fix4x123(-self.raw)

    def truncate(self) -> Fix2x61:
        """Narrow back to :class:`Fix2x61`, failing unless ``-4 < self < 4``."""

        if -WIDE_FOUR < self.raw < WIDE_FOUR:
            return Fix2x61(self.raw >> WIDEN_SHIFT)
        raise Overflow("Fix4x123.truncate")

    def __float__(self) -> float:
        return self.raw / WIDE_ONE

    def __repr__(self) -> str:
        return f"Fix4x123({float(self)!r})"
