"""Tests for income tax and VAT computation."""

from decimal import Decimal

import pytest

from billing_engines.tax import compute_tax_amounts


class TestComputeTaxAmounts:

    def test_usn_only(self):
        amounts = compute_tax_amounts(100000, Decimal("6"), Decimal("0"), include_vat=False)
        assert amounts.tax_amount == 6000
        assert amounts.vat_amount == 0
        assert amounts.total == 6000

    def test_vat_when_included(self):
        amounts = compute_tax_amounts(100000, Decimal("6"), Decimal("20"), include_vat=True)
        assert amounts.tax_amount == 6000
        assert amounts.vat_amount == 20000

    def test_vat_ignored_when_not_included(self):
        amounts = compute_tax_amounts(100000, Decimal("6"), Decimal("20"), include_vat=False)
        assert amounts.vat_amount == 0

    def test_rounds_half_up_not_truncated(self):
        # 6% of 12345 = 740.7
        assert compute_tax_amounts(12345, Decimal("6"), None, False).tax_amount == 741
        # 6% of 25 = 1.5
        assert compute_tax_amounts(25, Decimal("6"), None, False).tax_amount == 2

    def test_fractional_rate(self):
        assert compute_tax_amounts(100000, Decimal("1.5"), None, False).tax_amount == 1500

    def test_zero_rates_produce_nothing(self):
        amounts = compute_tax_amounts(100000, None, None, include_vat=True)
        assert not amounts.has_any

    def test_float_rate_rejected(self):
        with pytest.raises(ValueError, match="float"):
            compute_tax_amounts(100000, 6.0, None, False)

    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            compute_tax_amounts(100000, Decimal("-1"), None, False)
