"""
Pure domain layer.

Value objects, DTOs, the actor context and the clock.  No dependencies on
the ORM, the database or I/O (SystemClock aside).
"""

from billing_kernel.domain.actor import ActorContext, SystemRole
from billing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from billing_kernel.domain.dtos import (
    BillingCadence,
    ExpenseInfo,
    ExpenseValueType,
    InvoiceInfo,
    InvoiceLineInfo,
    OwnershipChain,
    PaymentInfo,
    PeriodInfo,
    PeriodType,
    ServiceStatus,
    TaxExpenseKind,
)
from billing_kernel.domain.values import Money, percent_of, round_minor

__all__ = [
    "Money",
    "round_minor",
    "percent_of",
    "ActorContext",
    "SystemRole",
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "BillingCadence",
    "ServiceStatus",
    "PeriodType",
    "ExpenseValueType",
    "TaxExpenseKind",
    "OwnershipChain",
    "PeriodInfo",
    "InvoiceInfo",
    "InvoiceLineInfo",
    "PaymentInfo",
    "ExpenseInfo",
]
