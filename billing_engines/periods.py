"""
Billing Period Generator.

Pure functions with deterministic behavior. No I/O.

Derives the calendar of billing periods a service is expected to produce from
its start date and billing cadence, up to a horizon.

A period ends on the day before the same day-of-month in the following month
(start 2024-12-04 -> end 2025-01-03).  Period ``i`` is anchored to the start
date rather than to the previous period, so a start on the 31st gives
Jan 31..Feb 27, Feb 28..Mar 30 and so on, and consecutive periods always chain
with ``next.date_from == prev.date_to + 1 day``.

Cadence rules:
- ONE_TIME: exactly one period, whatever the horizon.
- MONTHLY: one period per month while ``date_from <= horizon_end``.
- QUARTERLY: generated monthly, exactly like MONTHLY.  Existing persisted
  periods rely on this, so it is kept.
- YEARLY: generated monthly for reporting; only periods ending in December
  are invoice periods.

Usage:
    from billing_engines.periods import generate_periods, default_horizon

    horizon = default_horizon(today=date(2025, 1, 15), end_date=None)
    periods = generate_periods(date(2024, 12, 4), BillingCadence.MONTHLY, horizon)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from billing_engines.tracer import traced_engine
from billing_kernel.domain.dtos import BillingCadence

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class ExpectedPeriod:
    """One generated period, inclusive on both ends."""

    date_from: date
    date_to: date
    is_invoice_period: bool = True

    def __post_init__(self) -> None:
        if self.date_to < self.date_from:
            raise ValueError(
                f"date_to {self.date_to} precedes date_from {self.date_from}"
            )

    @property
    def key(self) -> tuple[date, date]:
        return (self.date_from, self.date_to)


def coerce_cadence(cadence: BillingCadence | str) -> BillingCadence:
    """Accept an enum member or its string value."""
    if isinstance(cadence, BillingCadence):
        return cadence
    try:
        return BillingCadence(cadence)
    except ValueError:
        raise ValueError(f"Unknown billing cadence: {cadence!r}") from None


def period_end(date_from: date) -> date:
    """The day before the same day-of-month in the following month."""
    return date_from + relativedelta(months=1) - _ONE_DAY


def _is_invoice_period(cadence: BillingCadence, date_to: date) -> bool:
    if cadence is BillingCadence.YEARLY:
        return date_to.month == 12
    return True


def default_horizon(today: date, end_date: date | None = None, months: int = 1) -> date:
    """The service end date when set, otherwise today plus ``months`` months."""
    if end_date is not None:
        return end_date
    return today + relativedelta(months=months)


@traced_engine("periods", "1.0", fingerprint_fields=("start_date", "cadence", "horizon_end"))
def generate_periods(
    start_date: date,
    cadence: BillingCadence | str,
    horizon_end: date,
) -> tuple[ExpectedPeriod, ...]:
    """Ordered expected periods of a service.

    Args:
        start_date: Service start date; the first period starts here.
        cadence: Billing cadence of the service.
        horizon_end: Last date a recurring period may start on (inclusive).

    Returns:
        Periods in ascending order.  Empty for recurring cadences when
        ``start_date`` is after ``horizon_end``.

    Raises:
        ValueError: Unknown cadence.
    """
    cadence = coerce_cadence(cadence)

    if cadence is BillingCadence.ONE_TIME:
        return (ExpectedPeriod(start_date, period_end(start_date), True),)

    periods: list[ExpectedPeriod] = []
    index = 0
    date_from = start_date
    while date_from <= horizon_end:
        date_to = start_date + relativedelta(months=index + 1) - _ONE_DAY
        periods.append(
            ExpectedPeriod(date_from, date_to, _is_invoice_period(cadence, date_to))
        )
        index += 1
        date_from = date_to + _ONE_DAY

    return tuple(periods)


def suggest_next_period(
    start_date: date,
    cadence: BillingCadence | str,
    last_date_to: date | None = None,
) -> ExpectedPeriod:
    """The period following the latest recorded one.

    With no recorded period the suggestion is the service's first period.
    Otherwise it starts the day after ``last_date_to`` and runs one month.
    """
    cadence = coerce_cadence(cadence)
    date_from = start_date if last_date_to is None else last_date_to + _ONE_DAY
    date_to = period_end(date_from)
    return ExpectedPeriod(date_from, date_to, _is_invoice_period(cadence, date_to))
