"""
Commission and Expense-Item Calculator.

Pure functions with deterministic behavior. No I/O.

Expected commission scales linearly: each per-period amount stored on the
service (seller commission, account-manager commission, account-manager fee)
times the number of the service's periods that intersect the query window.
The per-period amounts are fixed when the service is configured, so later
rate edits never change historical expected commission.

Usage:
    from billing_engines.commission import CommissionRates, expected_commission

    rates = CommissionRates(seller_amount=5000, account_manager_amount=3000)
    result = expected_commission(rates, periods_in_range_count=3)
    result.seller_amount  # 15000
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from billing_engines.tracer import traced_engine
from billing_kernel.domain.dtos import ExpenseValueType
from billing_kernel.domain.values import percent_of, round_minor


@dataclass(frozen=True)
class CommissionRates:
    """Per-period amounts in minor units.  None counts as zero."""

    seller_amount: int | None = None
    account_manager_amount: int | None = None
    account_manager_fee: int | None = None


@dataclass(frozen=True)
class ExpectedCommission:
    seller_amount: int
    account_manager_amount: int
    account_manager_fee: int
    periods_count: int

    @property
    def total(self) -> int:
        return self.seller_amount + self.account_manager_amount + self.account_manager_fee


def periods_intersect(
    date_from: date, date_to: date, window_from: date, window_to: date
) -> bool:
    """Inclusive range intersection."""
    return date_from <= window_to and date_to >= window_from


def count_periods_in_window(
    periods: Iterable[tuple[date, date]],
    window_from: date,
    window_to: date,
) -> int:
    if window_to < window_from:
        raise ValueError(f"window_to {window_to} precedes window_from {window_from}")
    return sum(1 for f, t in periods if periods_intersect(f, t, window_from, window_to))


@traced_engine("commission", "1.0", fingerprint_fields=("rates", "periods_in_range_count"))
def expected_commission(
    rates: CommissionRates,
    periods_in_range_count: int,
) -> ExpectedCommission:
    if periods_in_range_count < 0:
        raise ValueError("periods_in_range_count must be non-negative")
    n = periods_in_range_count
    return ExpectedCommission(
        seller_amount=(rates.seller_amount or 0) * n,
        account_manager_amount=(rates.account_manager_amount or 0) * n,
        account_manager_fee=(rates.account_manager_fee or 0) * n,
        periods_count=n,
    )


def period_expense_item_amount(
    value_type: ExpenseValueType | str,
    value: Decimal,
    expected_amount: int | None,
) -> int | None:
    """Amount of an expense item snapshotted onto a period.

    PERCENT items take ``value`` percent of the period's expected amount and
    need one; FIXED items hold ``value`` in major units.
    """
    value_type = ExpenseValueType(value_type)
    if value_type is ExpenseValueType.PERCENT:
        if expected_amount is None:
            return None
        return percent_of(expected_amount, value)
    return round_minor(Decimal(value) * 100)
