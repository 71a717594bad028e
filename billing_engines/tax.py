"""
Income Tax Expense Calculator.

Pure functions with deterministic behavior. No I/O.

Derives the simplified-tax (USN) and VAT amounts owed on an income:

    tax = round(income * usn_percent / 100)
    vat = round(income * vat_percent / 100)   only when VAT is included
                                              and vat_percent > 0

Rounding is to the nearest minor unit, half up.  Truncation would
systematically under-collect.

Usage:
    from billing_engines.tax import compute_tax_amounts

    amounts = compute_tax_amounts(100000, Decimal("6"), Decimal("0"), include_vat=False)
    amounts.tax_amount  # 6000
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from billing_engines.tracer import traced_engine
from billing_kernel.domain.values import percent_of


@dataclass(frozen=True)
class TaxAmounts:
    income_amount: int
    tax_amount: int
    vat_amount: int

    @property
    def total(self) -> int:
        return self.tax_amount + self.vat_amount

    @property
    def has_any(self) -> bool:
        return self.tax_amount != 0 or self.vat_amount != 0


def _as_rate(value: Decimal | int | None, name: str) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, float):
        raise ValueError(f"{name} must be Decimal, not float")
    rate = Decimal(value)
    if rate < 0:
        raise ValueError(f"{name} must be non-negative, got {rate}")
    return rate


@traced_engine(
    "tax",
    "1.0",
    fingerprint_fields=("income_amount", "usn_percent", "vat_percent", "include_vat"),
)
def compute_tax_amounts(
    income_amount: int,
    usn_percent: Decimal | int | None,
    vat_percent: Decimal | int | None,
    include_vat: bool,
) -> TaxAmounts:
    """Tax and VAT owed on one income, in minor units."""
    usn = _as_rate(usn_percent, "usn_percent")
    vat = _as_rate(vat_percent, "vat_percent")

    tax_amount = percent_of(income_amount, usn)
    vat_amount = percent_of(income_amount, vat) if include_vat and vat > 0 else 0
    return TaxAmounts(
        income_amount=income_amount,
        tax_amount=tax_amount,
        vat_amount=vat_amount,
    )
