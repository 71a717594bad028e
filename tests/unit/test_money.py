"""
Unit tests for Money and minor-unit rounding.

Verifies:
- Integer-only amounts (floats and Decimals rejected)
- Currency checks on arithmetic
- Half-up rounding in round_minor / percent_of
"""

from decimal import Decimal

import pytest

from billing_kernel.domain.values import Money, percent_of, round_minor
from billing_kernel.exceptions import CurrencyMismatchError, InvalidCurrencyError


class TestMoneyConstruction:

    def test_default_currency(self):
        assert Money(100).currency == "RUB"

    def test_currency_normalized(self):
        assert Money(100, " usd ").currency == "USD"

    @pytest.mark.parametrize("amount", [1.5, Decimal("1"), "100", True])
    def test_non_int_amount_rejected(self, amount):
        with pytest.raises(ValueError):
            Money(amount)

    def test_unknown_currency_rejected(self):
        with pytest.raises(InvalidCurrencyError) as exc_info:
            Money(1, "XXX")
        assert exc_info.value.code == "INVALID_CURRENCY"

    def test_hashable(self):
        assert len({Money(1), Money(1), Money(2)}) == 2


class TestMoneyArithmetic:

    def test_add_and_subtract(self):
        assert Money(50000) + Money(30000) == Money(80000)
        assert Money(80000) - Money(90000) == Money(-10000)

    def test_mixed_currency_rejected(self):
        with pytest.raises(CurrencyMismatchError):
            Money(1, "RUB") + Money(1, "USD")

    def test_multiply_by_int_only(self):
        assert Money(5000) * 3 == Money(15000)
        assert 3 * Money(5000) == Money(15000)
        with pytest.raises(TypeError):
            Money(5000) * 1.5

    def test_sum_of_empty_is_zero(self):
        assert Money.sum([]) == Money.zero()

    def test_ordering(self):
        assert Money(1) < Money(2)
        assert max(Money(3), Money(7), Money(5)) == Money(7)

    def test_negation_and_flags(self):
        m = -Money(10)
        assert m.is_negative
        assert not m.is_zero
        assert Money.zero().is_zero

    def test_percent(self):
        assert Money(100000).percent(Decimal("6")) == Money(6000)


class TestDisplay:

    def test_to_major(self):
        assert Money(150025).to_major() == Decimal("1500.25")

    def test_zero_decimal_currency(self):
        assert Money(500, "JPY").to_major() == Decimal("500")

    def test_str(self):
        assert str(Money(150025)) == "1500.25 RUB"


class TestRounding:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("0.5"), 1),
            (Decimal("1.49"), 1),
            (Decimal("740.7"), 741),
            (Decimal("-2.5"), -3),
        ],
    )
    def test_round_minor_half_up(self, value, expected):
        assert round_minor(value) == expected

    def test_percent_of(self):
        assert percent_of(100000, Decimal("6")) == 6000
        assert percent_of(100000, 20) == 20000

    def test_percent_of_rejects_float(self):
        with pytest.raises(ValueError):
            percent_of(100, 6.0)
