"""
Period Reconciler.

Pure functions with deterministic behavior. No I/O.

Pairs the generated calendar of a service with the periods actually recorded
for it.  Matching is by exact ``(date_from, date_to)`` equality, never by
overlap: a period that was adjusted by hand no longer matches its generated
counterpart and drops out of the generated view.  Adjustment is the
authoritative manual override, so this is the intended result.  Recorded
periods that match nothing are reported by ``unmatched_persisted``.

Usage:
    from billing_engines.reconciliation import reconcile_periods, PersistedPeriod

    view = reconcile_periods(generated, persisted, default_amount=service.price)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from billing_engines.periods import ExpectedPeriod
from billing_engines.tracer import traced_engine


@dataclass(frozen=True)
class PersistedPeriod:
    """The reconciler's view of a recorded period."""

    id: UUID
    date_from: date
    date_to: date
    expected_amount: int | None = None
    has_invoice: bool = False

    @property
    def key(self) -> tuple[date, date]:
        return (self.date_from, self.date_to)


@dataclass(frozen=True)
class ReconciledPeriod:
    date_from: date
    date_to: date
    is_invoice_period: bool
    persisted_period_id: UUID | None
    expected_amount: int | None
    has_invoice: bool = False

    @property
    def is_recorded(self) -> bool:
        return self.persisted_period_id is not None


def _index(persisted: Sequence[PersistedPeriod]) -> dict[tuple[date, date], PersistedPeriod]:
    by_key: dict[tuple[date, date], PersistedPeriod] = {}
    for period in persisted:
        # First recorded period wins on duplicate boundaries
        by_key.setdefault(period.key, period)
    return by_key


@traced_engine("reconciliation", "1.0")
def reconcile_periods(
    generated: Sequence[ExpectedPeriod],
    persisted: Sequence[PersistedPeriod],
    default_amount: int | None,
) -> tuple[ReconciledPeriod, ...]:
    """One row per generated period, in generated order.

    ``expected_amount`` is the matched period's override when it has one,
    otherwise ``default_amount`` (which may be None).
    """
    by_key = _index(persisted)
    rows: list[ReconciledPeriod] = []
    for expected in generated:
        match = by_key.get(expected.key)
        if match is None:
            rows.append(
                ReconciledPeriod(
                    date_from=expected.date_from,
                    date_to=expected.date_to,
                    is_invoice_period=expected.is_invoice_period,
                    persisted_period_id=None,
                    expected_amount=default_amount,
                )
            )
            continue
        amount = match.expected_amount if match.expected_amount is not None else default_amount
        rows.append(
            ReconciledPeriod(
                date_from=expected.date_from,
                date_to=expected.date_to,
                is_invoice_period=expected.is_invoice_period,
                persisted_period_id=match.id,
                expected_amount=amount,
                has_invoice=match.has_invoice,
            )
        )
    return tuple(rows)


def unmatched_persisted(
    generated: Sequence[ExpectedPeriod],
    persisted: Sequence[PersistedPeriod],
) -> tuple[PersistedPeriod, ...]:
    """Recorded periods whose boundaries match no generated period."""
    keys = {expected.key for expected in generated}
    return tuple(p for p in persisted if p.key not in keys)
