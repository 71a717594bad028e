"""
Invoice Arithmetic.

Pure functions with deterministic behavior. No I/O.

The invoice ledger stores line amounts and payments; everything derived from
them is computed here, from the full current set, on every call:

- ``invoice_total``: the invoice amount is the sum of its lines.
- ``outstanding_balance``: invoice amount minus the sum of payments.  Never
  cached.  Overpayment is allowed and gives a negative balance.
- ``next_invoice_number``: the next automatic number after the largest
  existing 5-7 digit numeric one, starting at 100000.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date

from billing_kernel.domain.values import DEFAULT_CURRENCY, Money

DEFAULT_INVOICE_NUMBER_FLOOR = 100000

_AUTO_NUMBER = re.compile(r"^\d{5,7}$")


def invoice_total(line_amounts: Iterable[int]) -> int:
    """Sum of line amounts in minor units."""
    return sum(line_amounts, 0)


def outstanding_balance(
    invoice_amount: int,
    payment_amounts: Iterable[int],
    currency: str = DEFAULT_CURRENCY,
) -> Money:
    paid = Money.sum((Money(a, currency) for a in payment_amounts), currency)
    return Money(invoice_amount, currency) - paid


def next_invoice_number(
    existing_numbers: Iterable[str | None],
    floor: int = DEFAULT_INVOICE_NUMBER_FLOOR,
) -> str:
    """Next automatic invoice number.

    Only purely numeric numbers of 5 to 7 digits take part; manual numbers
    such as "A-17" are ignored.

    >>> next_invoice_number([])
    '100000'
    >>> next_invoice_number(["100004", "A-17", "100010"])
    '100011'
    """
    numeric = [
        int(n) for n in existing_numbers
        if n is not None and _AUTO_NUMBER.match(n.strip())
    ]
    last = max(numeric) if numeric else floor - 1
    return str(last + 1)


def coverage_range(bounds: Iterable[tuple[date, date]]) -> tuple[date | None, date | None]:
    """Earliest start and latest end over a set of period bounds."""
    bounds = list(bounds)
    if not bounds:
        return (None, None)
    return (min(b[0] for b in bounds), max(b[1] for b in bounds))


def normalize_override(value: str | None) -> str | None:
    """Trim a display override; blank means "no override"."""
    if value is None:
        return None
    value = value.strip()
    return value or None
