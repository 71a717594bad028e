"""Tests for expected commission and period expense item amounts."""

from datetime import date
from decimal import Decimal

import pytest

from billing_engines.commission import (
    CommissionRates,
    count_periods_in_window,
    expected_commission,
    period_expense_item_amount,
    periods_intersect,
)
from billing_kernel.domain.dtos import ExpenseValueType

PERIODS = [
    (date(2024, 12, 4), date(2025, 1, 3)),
    (date(2025, 1, 4), date(2025, 2, 3)),
    (date(2025, 2, 4), date(2025, 3, 3)),
]


class TestWindowCounting:

    def test_intersection_is_inclusive(self):
        assert periods_intersect(date(2025, 1, 4), date(2025, 2, 3), date(2025, 2, 3), date(2025, 2, 3))
        assert not periods_intersect(date(2025, 1, 4), date(2025, 2, 3), date(2025, 2, 4), date(2025, 3, 1))

    def test_january_touches_two_periods(self):
        assert count_periods_in_window(PERIODS, date(2025, 1, 1), date(2025, 1, 31)) == 2

    def test_window_outside_all_periods(self):
        assert count_periods_in_window(PERIODS, date(2026, 1, 1), date(2026, 1, 31)) == 0

    def test_inverted_window_rejected(self):
        with pytest.raises(ValueError):
            count_periods_in_window(PERIODS, date(2025, 2, 1), date(2025, 1, 1))


class TestExpectedCommission:

    def test_amounts_times_count(self):
        result = expected_commission(CommissionRates(5000, 2000, 1000), 3)
        assert result.seller_amount == 15000
        assert result.account_manager_amount == 6000
        assert result.account_manager_fee == 3000
        assert result.total == 24000
        assert result.periods_count == 3

    def test_missing_amounts_are_zero(self):
        result = expected_commission(CommissionRates(seller_amount=5000), 2)
        assert result.account_manager_amount == 0
        assert result.account_manager_fee == 0
        assert result.total == 10000

    def test_zero_periods(self):
        assert expected_commission(CommissionRates(5000, 2000, 1000), 0).total == 0

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            expected_commission(CommissionRates(), -1)


class TestPeriodExpenseItemAmount:

    def test_percent_of_expected_amount(self):
        assert period_expense_item_amount(ExpenseValueType.PERCENT, Decimal("10"), 50000) == 5000

    def test_percent_rounds_half_up(self):
        # 50% of 1 minor unit = 0.5 -> 1
        assert period_expense_item_amount("PERCENT", Decimal("50"), 1) == 1

    def test_percent_without_amount_is_unknown(self):
        assert period_expense_item_amount(ExpenseValueType.PERCENT, Decimal("10"), None) is None

    def test_fixed_in_major_units(self):
        assert period_expense_item_amount(ExpenseValueType.FIXED, Decimal("1500.25"), None) == 150025
