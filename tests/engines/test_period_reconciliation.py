"""Tests for reconciling generated periods with recorded ones."""

from datetime import date
from uuid import uuid4

from billing_engines.periods import ExpectedPeriod, generate_periods
from billing_engines.reconciliation import (
    PersistedPeriod,
    reconcile_periods,
    unmatched_persisted,
)
from billing_kernel.domain.dtos import BillingCadence


def _generated():
    return generate_periods(date(2024, 12, 4), BillingCadence.MONTHLY, date(2025, 2, 1))


class TestReconcilePeriods:

    def test_unrecorded_rows_use_default_amount(self):
        rows = reconcile_periods(_generated(), [], 50000)

        assert len(rows) == 2
        assert all(not r.is_recorded for r in rows)
        assert all(r.expected_amount == 50000 for r in rows)
        assert all(not r.has_invoice for r in rows)

    def test_exact_match_carries_id_override_and_invoice_flag(self):
        recorded = PersistedPeriod(
            id=uuid4(),
            date_from=date(2025, 1, 4),
            date_to=date(2025, 2, 3),
            expected_amount=42000,
            has_invoice=True,
        )
        rows = reconcile_periods(_generated(), [recorded], 50000)

        assert rows[0].persisted_period_id is None
        assert rows[1].persisted_period_id == recorded.id
        assert rows[1].expected_amount == 42000
        assert rows[1].has_invoice is True

    def test_match_without_override_falls_back_to_default(self):
        recorded = PersistedPeriod(uuid4(), date(2024, 12, 4), date(2025, 1, 3))
        rows = reconcile_periods(_generated(), [recorded], 50000)
        assert rows[0].is_recorded
        assert rows[0].expected_amount == 50000

    def test_adjusted_boundaries_do_not_match(self):
        shifted = PersistedPeriod(uuid4(), date(2025, 1, 4), date(2025, 2, 10))
        rows = reconcile_periods(_generated(), [shifted], 50000)

        assert not rows[1].is_recorded
        assert unmatched_persisted(_generated(), [shifted]) == (shifted,)

    def test_first_recorded_duplicate_wins(self):
        first = PersistedPeriod(uuid4(), date(2024, 12, 4), date(2025, 1, 3), expected_amount=1)
        second = PersistedPeriod(uuid4(), date(2024, 12, 4), date(2025, 1, 3), expected_amount=2)
        rows = reconcile_periods(_generated(), [first, second], None)
        assert rows[0].persisted_period_id == first.id
        assert rows[0].expected_amount == 1

    def test_output_follows_generated_order(self):
        generated = (
            ExpectedPeriod(date(2025, 1, 1), date(2025, 1, 31)),
            ExpectedPeriod(date(2025, 2, 1), date(2025, 2, 28)),
        )
        rows = reconcile_periods(generated, [], None)
        assert [(r.date_from, r.date_to) for r in rows] == [p.key for p in generated]
        assert rows[0].expected_amount is None

    def test_nothing_unmatched_when_all_recorded_match(self):
        recorded = [
            PersistedPeriod(uuid4(), p.date_from, p.date_to) for p in _generated()
        ]
        assert unmatched_persisted(_generated(), recorded) == ()
