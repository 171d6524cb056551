"""Complex values over :class:`Fix2x61` and the Mandelbrot iteration step."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import Escaped
from .fixed import WIDE_FOUR, WIDEN_SHIFT, Fix2x61


@dataclass(frozen=True)
class Complex:
    """Immutable ``(r, i)`` pair of narrow fixed-point scalars."""

    r: Fix2x61
    i: Fix2x61

    @classmethod
    def zero(cls) -> Complex:
        return cls(Fix2x61.zero(), Fix2x61.zero())

    @classmethod
    def unit_i(cls) -> Complex:
        return cls(Fix2x61.zero(), Fix2x61.one())

    @classmethod
    def from_floats(cls, r: float, i: float) -> Complex:
        return cls(Fix2x61.from_float(r), Fix2x61.from_float(i))

    @classmethod
    def parse(cls, r: str, i: str) -> Complex:
        return cls(Fix2x61.parse(r), Fix2x61.parse(i))

    def __complex__(self) -> complex:
        return complex(float(self.r), float(self.i))

    def __repr__(self) -> str:
        return f"Complex({float(self.r)!r}, {float(self.i)!r})"

    def iterate_mandelbrot(self, loc: Complex) -> Complex:
        return iterate_mandelbrot(self, loc)


def iterate_mandelbrot(z: Complex, c: Complex) -> Complex:
    """Return ``z**2 + c`` or raise :class:`Escaped`.

    The square and the addition of ``c`` are carried out on the wide
    (Fix4x123) words and only truncated once, so no precision is lost
    between the two. Any range violation along the way means the value has
    left the (-4, 4) window, which is reported as :class:`Escaped` rather
    than :class:`~fixbrot.errors.Overflow`. A representable result with
    ``|z|**2 >= 4`` escapes as well.
    """

    r = z.r.raw
    i = z.i.raw

    # Square, widened: (r*r - i*i, 2*r*i)
    real = ((r * r) << 1) - ((i * i) << 1)
    imag = (r * i) << 2

    # Add c
    real += c.r.raw << WIDEN_SHIFT
    imag += c.i.raw << WIDEN_SHIFT

    # Truncate; a word outside the wide range is outside (-4, 4) as well,
    # so this one check covers both.
    if not (-WIDE_FOUR < real < WIDE_FOUR and -WIDE_FOUR < imag < WIDE_FOUR):
        raise Escaped()
    real >>= WIDEN_SHIFT
    imag >>= WIDEN_SHIFT

    # Escape check
    if ((real * real) << 1) + ((imag * imag) << 1) >= WIDE_FOUR:
        raise Escaped()
    return Complex(Fix2x61(real), Fix2x61(imag))
