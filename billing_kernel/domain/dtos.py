"""
Data Transfer Objects for the billing engine.

Services return these frozen dataclasses instead of ORM instances so that
callers can never mutate persisted state by accident.  The enums here are
shared by the models (as stored string values) and the pure engines.

All amounts are ints in minor units.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID


class BillingCadence(str, Enum):
    """How often a service is billed.

    QUARTERLY services produce monthly periods.  Persisted periods of
    existing services depend on it, so it is kept as is.
    """

    ONE_TIME = "ONE_TIME"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class ServiceStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    FINISHED = "FINISHED"


class PeriodType(str, Enum):
    STANDARD = "STANDARD"
    EXTENDED = "EXTENDED"
    BONUS = "BONUS"
    COMPENSATION = "COMPENSATION"


class ExpenseValueType(str, Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class TaxExpenseKind(str, Enum):
    TAX = "TAX"
    VAT = "VAT"


@dataclass(frozen=True)
class OwnershipChain:
    """Ownership ids a caller extracts before asking for access."""

    client_id: UUID
    account_manager_id: UUID | None
    seller_employee_id: UUID | None
    creator_id: UUID | None = None


@dataclass(frozen=True)
class PeriodInfo:
    id: UUID
    service_id: UUID
    date_from: date
    date_to: date
    period_type: PeriodType
    expected_amount: int | None
    invoice_not_required: bool = False

    @property
    def duration_days(self) -> int:
        return (self.date_to - self.date_from).days + 1


@dataclass(frozen=True)
class InvoiceLineInfo:
    id: UUID
    invoice_id: UUID
    work_period_id: UUID
    amount: int
    sort_order: int
    service_name_override: str | None = None
    site_name_override: str | None = None
    period_override: str | None = None


@dataclass(frozen=True)
class InvoiceInfo:
    """Invoice with its lines.  ``amount`` always equals the sum of the lines."""

    id: UUID
    work_period_id: UUID
    invoice_number: str | None
    invoice_date: date | None
    amount: int
    coverage_from: date | None
    coverage_to: date | None
    legal_entity_id: UUID | None
    invoice_not_required: bool
    public_token: str | None
    pdf_generated_at: datetime | None
    lines: tuple[InvoiceLineInfo, ...] = ()


@dataclass(frozen=True)
class PaymentInfo:
    id: UUID
    invoice_id: UUID
    amount: int
    paid_at: datetime
    comment: str | None = None


@dataclass(frozen=True)
class ExpenseInfo:
    id: UUID
    amount: int
    cost_item_id: UUID
    legal_entity_id: UUID | None
    service_id: UUID | None
    source_income_id: UUID | None
    source_kind: TaxExpenseKind | None
    title: str | None = None
    comment: str | None = None
