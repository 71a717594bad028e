"""Tests for the BILLING_ENGINE_TRACE decorator."""

from datetime import date

from billing_engines.periods import generate_periods
from billing_engines.tracer import compute_input_fingerprint
from billing_kernel.domain.dtos import BillingCadence


class TestFingerprint:

    def test_deterministic(self):
        args = {"start_date": date(2024, 12, 4), "cadence": BillingCadence.MONTHLY}
        fields = ("start_date", "cadence")
        assert compute_input_fingerprint(fields, args) == compute_input_fingerprint(fields, dict(args))

    def test_enum_and_value_agree(self):
        fields = ("cadence",)
        assert compute_input_fingerprint(fields, {"cadence": BillingCadence.MONTHLY}) == (
            compute_input_fingerprint(fields, {"cadence": "MONTHLY"})
        )

    def test_missing_argument_recorded_as_null(self):
        assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(("x",), {"x": None})


class TestTraceRecord:

    def test_call_style_does_not_change_fingerprint(self, captured_logs):
        generate_periods(date(2024, 12, 4), BillingCadence.MONTHLY, date(2025, 2, 1))
        generate_periods(
            start_date=date(2024, 12, 4),
            cadence=BillingCadence.MONTHLY,
            horizon_end=date(2025, 2, 1),
        )

        traces = [r for r in captured_logs() if r["message"] == "BILLING_ENGINE_TRACE"]
        assert len(traces) == 2
        assert traces[0]["engine_name"] == "periods"
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]
        assert "duration_ms" in traces[0]
