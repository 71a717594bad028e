"""Tests for invoice arithmetic: totals, balance and automatic numbering."""

from datetime import date

import pytest

from billing_engines.invoicing import (
    coverage_range,
    invoice_total,
    next_invoice_number,
    normalize_override,
    outstanding_balance,
)
from billing_kernel.domain.values import Money


class TestInvoiceTotal:

    def test_sum_of_lines(self):
        assert invoice_total([50000, 30000]) == 80000

    def test_no_lines_is_zero(self):
        assert invoice_total([]) == 0


class TestOutstandingBalance:

    def test_unpaid(self):
        assert outstanding_balance(80000, []) == Money(80000, "RUB")

    def test_fully_paid(self):
        assert outstanding_balance(80000, [50000, 30000]).is_zero

    def test_overpayment_goes_negative(self):
        balance = outstanding_balance(80000, [80000, 10000])
        assert balance == Money(-10000)
        assert balance.is_negative

    def test_currency_carried(self):
        assert outstanding_balance(100, [], "usd").currency == "USD"


class TestNextInvoiceNumber:

    def test_floor_when_empty(self):
        assert next_invoice_number([]) == "100000"

    def test_max_plus_one(self):
        assert next_invoice_number(["100004", "100010", "100007"]) == "100011"

    @pytest.mark.parametrize("manual", ["A-17", "2024/15", "1234", "12345678", None, ""])
    def test_non_automatic_numbers_ignored(self, manual):
        assert next_invoice_number(["100002", manual]) == "100003"

    def test_five_digit_numbers_count(self):
        assert next_invoice_number(["54321"]) == "54322"

    def test_custom_floor(self):
        assert next_invoice_number(["X-1"], floor=500000) == "500000"


class TestHelpers:

    def test_coverage_range(self):
        bounds = [
            (date(2025, 2, 4), date(2025, 3, 3)),
            (date(2025, 1, 4), date(2025, 2, 3)),
        ]
        assert coverage_range(bounds) == (date(2025, 1, 4), date(2025, 3, 3))

    def test_coverage_range_empty(self):
        assert coverage_range([]) == (None, None)

    @pytest.mark.parametrize(
        "raw,expected",
        [(None, None), ("", None), ("   ", None), ("  SEO  ", "SEO")],
    )
    def test_normalize_override(self, raw, expected):
        assert normalize_override(raw) == expected
