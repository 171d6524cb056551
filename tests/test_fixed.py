"""Unit tests for fixbrot.fixed."""

from __future__ import annotations

import pytest

from fixbrot.errors import Overflow
from fixbrot.fixed import WIDE_LIMIT, Fix2x61, Fix4x123


class TestNarrowArithmetic:
    """Checked add/sub on Fix2x61."""

    def test_one_plus_one(self) -> None:
        one = Fix2x61.one()
        assert one + one == Fix2x61.from_int(2)

    def test_sub(self) -> None:
        assert Fix2x61.from_float(1.5) - Fix2x61.from_float(2.25) == Fix2x61.from_float(-0.75)

    def test_add_overflow(self) -> None:
        with pytest.raises(Overflow) as excinfo:
            Fix2x61.from_float(3.5) + Fix2x61.from_float(0.5)
        assert excinfo.value.op == "Fix2x61.add"

    def test_sub_to_minus_four_overflows(self) -> None:
        with pytest.raises(Overflow):
            Fix2x61.from_float(-3.5) - Fix2x61.from_float(0.5)

    def test_negation(self) -> None:
        assert -Fix2x61.one() == Fix2x61.from_int(-1)

    def test_ordering(self) -> None:
        assert Fix2x61.from_int(-1) < Fix2x61.zero() < Fix2x61.one() < Fix2x61.two()

    def test_float_conversion(self) -> None:
        assert float(Fix2x61.from_float(0.25)) == 0.25
        assert float(Fix2x61.from_float(-3.125)) == -3.125


class TestConstruction:
    """Construction from integers, floats, strings and powers of two."""

    def test_float_one(self) -> None:
        assert Fix2x61.from_float(1.0) == Fix2x61.one()

    def test_float_minus_one(self) -> None:
        assert Fix2x61.from_float(-1.0) == Fix2x61(-Fix2x61.one().raw)

    @pytest.mark.parametrize("value", [4.0, -4.0, 10.0, float("nan"), float("inf")])
    def test_float_out_of_range(self, value: float) -> None:
        with pytest.raises(Overflow):
            Fix2x61.from_float(value)

    def test_float_just_below_four(self) -> None:
        assert float(Fix2x61.from_float(3.999999)) == pytest.approx(3.999999)
        assert float(Fix2x61.from_float(-3.999999)) == pytest.approx(-3.999999)

    @pytest.mark.parametrize("value", [4, -4, 100])
    def test_int_out_of_range(self, value: int) -> None:
        with pytest.raises(Overflow):
            Fix2x61.from_int(value)

    def test_int_in_range(self) -> None:
        assert Fix2x61.from_int(3) == Fix2x61.from_float(3.0)
        assert Fix2x61.from_int(-3) == Fix2x61.from_float(-3.0)

    def test_parse(self) -> None:
        assert Fix2x61.parse("0.5") == Fix2x61.from_float(0.5)
        assert Fix2x61.parse(" -3.75 ") == Fix2x61.from_float(-3.75)

    def test_parse_out_of_range(self) -> None:
        with pytest.raises(Overflow):
            Fix2x61.parse("4")

    def test_parse_garbage(self) -> None:
        with pytest.raises(ValueError):
            Fix2x61.parse("abc")

    def test_power_of_two(self) -> None:
        assert Fix2x61.power_of_two(0) == Fix2x61.one()
        assert Fix2x61.power_of_two(1) == Fix2x61.two()
        assert Fix2x61.two() * Fix2x61.power_of_two(-1) == Fix4x123.one()
        assert Fix2x61.power_of_two(-61).raw == 1

    @pytest.mark.parametrize("power", [2, 3, -62])
    def test_power_of_two_out_of_range(self, power: int) -> None:
        with pytest.raises(Overflow):
            Fix2x61.power_of_two(power)


class TestWide:
    """Multiplication into Fix4x123 and truncation back."""

    def test_multiplicative_identity(self) -> None:
        one = Fix2x61.one()
        assert one * one == Fix4x123.one()
        assert (one * one).truncate() == one

    def test_two_squared_is_four(self) -> None:
        two = Fix2x61.two()
        assert two * two == Fix4x123.four()

    def test_truncate_four_overflows(self) -> None:
        two = Fix2x61.two()
        with pytest.raises(Overflow):
            (two * two).truncate()
        with pytest.raises(Overflow):
            (-Fix4x123.four()).truncate()

    def test_truncate_one(self) -> None:
        assert Fix4x123.one().truncate() == Fix2x61.one()

    def test_extend(self) -> None:
        assert Fix4x123.from_narrow(Fix2x61.one()) == Fix4x123.one()
        long_one = Fix4x123.one()
        assert Fix4x123.from_narrow(Fix2x61.two()) == long_one + long_one

    @pytest.mark.parametrize("value", [0.0, 1.5, -3.25, 3.999, -3.999, 1e-10, -0.3])
    def test_round_trip(self, value: float) -> None:
        narrow = Fix2x61.from_float(value)
        assert Fix4x123.from_narrow(narrow).truncate() == narrow

    def test_largest_product_fits(self) -> None:
        big = Fix2x61((1 << 63) - 1)
        product = big * big
        assert product.raw < WIDE_LIMIT
        assert (-big) * big == -product

    def test_wide_add_overflow(self) -> None:
        with pytest.raises(Overflow):
            Fix4x123(WIDE_LIMIT - 1) + Fix4x123.one()

    def test_wide_sub(self) -> None:
        assert Fix4x123.four() - Fix4x123.two() == Fix4x123.two()
