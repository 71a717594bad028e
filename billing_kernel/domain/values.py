"""
Values -- Immutable, self-validating money value object.

Responsibility:
    Provides the Money type used for every amount the engine handles:
    expected period amounts, invoice totals, payments, commissions and
    derived tax expenses.  Amounts are integers in minor units (kopecks,
    cents); conversion to a display currency happens only at the edge.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts are ``int`` only.  ``float``, ``Decimal`` and ``bool`` are
      rejected at construction.
    - Currency codes are validated ISO 4217 codes, normalized to upper case.
    - Arithmetic across currencies raises CurrencyMismatchError.
    - round_minor() is the ONLY rounding function for minor units.  It rounds
      half up to the nearest integer and never truncates.

Failure modes:
    - ValueError on invalid amount types or currency codes.
    - CurrencyMismatchError when combining different currencies.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import total_ordering

from billing_kernel.exceptions import CurrencyMismatchError, InvalidCurrencyError

DEFAULT_CURRENCY = "RUB"

ISO_4217_CURRENCIES: frozenset[str] = frozenset({
    "AED", "AMD", "AUD", "AZN", "BGN", "BRL", "BYN", "CAD", "CHF", "CNY",
    "CZK", "DKK", "EUR", "GBP", "GEL", "HKD", "HUF", "ILS", "INR", "JPY",
    "KGS", "KRW", "KZT", "MDL", "MXN", "NOK", "NZD", "PLN", "RON", "RSD",
    "RUB", "SEK", "SGD", "THB", "TJS", "TRY", "UAH", "USD", "UZS", "ZAR",
})

# Minor units per major unit.  Every listed currency except JPY and KRW uses 2.
_ZERO_DECIMAL = frozenset({"JPY", "KRW"})


def round_minor(value: Decimal) -> int:
    """Round a Decimal to a whole number of minor units, half up.

    >>> round_minor(Decimal("6000.5"))
    6001
    >>> round_minor(Decimal("-2.5"))
    -3
    """
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percent_of(amount: int, rate: Decimal | int) -> int:
    """``round(amount * rate / 100)`` in minor units."""
    if isinstance(rate, (float, bool)):
        raise ValueError(f"Rate must be Decimal or int, not {type(rate).__name__}")
    return round_minor(Decimal(amount) * Decimal(rate) / Decimal(100))


def _normalize_currency(code: str) -> str:
    normalized = code.upper().strip() if code else ""
    if normalized not in ISO_4217_CURRENCIES:
        raise InvalidCurrencyError(code)
    return normalized


@total_ordering
@dataclass(frozen=True, slots=True)
class Money:
    """
    An amount of minor units in one currency.

    Guarantees:
        - Immutable and hashable.
        - ``amount`` is always an ``int``.
        - ``currency`` is an upper-case ISO 4217 code.
    """

    amount: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if type(self.amount) is not int:
            raise ValueError(
                f"Money amount must be an int of minor units, got "
                f"{type(self.amount).__name__}"
            )
        object.__setattr__(self, "currency", _normalize_currency(self.currency))

    @classmethod
    def of(cls, amount: int, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(amount, currency)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(0, currency)

    @classmethod
    def sum(cls, amounts: Iterable[Money], currency: str = DEFAULT_CURRENCY) -> Money:
        """Sum an iterable of Money; an empty iterable gives zero."""
        total = cls.zero(currency)
        for m in amounts:
            total = total + m
        return total

    def _check(self, other: object) -> Money:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot combine Money with {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(self.currency, other.currency)
        return other

    def __add__(self, other: Money) -> Money:
        other = self._check(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        other = self._check(other)
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __mul__(self, factor: int) -> Money:
        if type(factor) is not int:
            raise TypeError("Money can only be multiplied by an int")
        return Money(self.amount * factor, self.currency)

    __rmul__ = __mul__

    def __lt__(self, other: Money) -> bool:
        other = self._check(other)
        return self.amount < other.amount

    def percent(self, rate: Decimal | int) -> Money:
        """This amount times ``rate`` percent, rounded half up."""
        return Money(percent_of(self.amount, rate), self.currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    @property
    def decimal_places(self) -> int:
        return 0 if self.currency in _ZERO_DECIMAL else 2

    def to_major(self) -> Decimal:
        """Amount in major units, for display only."""
        return Decimal(self.amount).scaleb(-self.decimal_places)

    def __str__(self) -> str:
        return f"{self.to_major()} {self.currency}"
