"""
Module: billing_kernel.models.ledger
Responsibility: ORM persistence for incomes, expenses and the cost items
    expenses are posted against.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - An income yields at most one derived expense of each kind
      (uq_expense_source_income_kind).  This makes bulk tax generation
      idempotent even when two runs race on the same income.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import TrackedBase
from billing_kernel.db.types import LONG_TEXT, SHORT_CODE, TITLE


class CostItem(TrackedBase):
    """Expense category, e.g. "Simplified tax" or "VAT"."""

    __tablename__ = "cost_items"

    title: Mapped[str] = mapped_column(TITLE, nullable=False)

    def __repr__(self) -> str:
        return f"<CostItem {self.title}>"


class Income(TrackedBase):
    """Money received for a service, attributed to a legal entity."""

    __tablename__ = "incomes"
    __table_args__ = (
        Index("idx_income_legal_entity_date", "legal_entity_id", "income_date"),
        Index("idx_income_service", "service_id"),
    )

    service_id: Mapped[UUID] = mapped_column(
        ForeignKey("services.id"),
        nullable=False,
    )

    work_period_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("work_periods.id"),
        nullable=True,
    )

    legal_entity_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("legal_entities.id"),
        nullable=True,
    )

    amount: Mapped[int] = mapped_column(nullable=False)

    income_date: Mapped[date] = mapped_column(Date, nullable=False)


class Expense(TrackedBase):
    __tablename__ = "expenses"
    __table_args__ = (
        UniqueConstraint(
            "source_income_id", "source_kind", name="uq_expense_source_income_kind"
        ),
        Index("idx_expense_source_income", "source_income_id"),
    )

    amount: Mapped[int] = mapped_column(nullable=False)

    cost_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("cost_items.id"),
        nullable=False,
    )

    title: Mapped[str | None] = mapped_column(TITLE, nullable=True)

    site_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("sites.id"),
        nullable=True,
    )

    service_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("services.id"),
        nullable=True,
    )

    legal_entity_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("legal_entities.id"),
        nullable=True,
    )

    comment: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)

    payment_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Set on expenses derived from an income by bulk tax generation
    source_income_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("incomes.id"),
        nullable=True,
    )

    source_kind: Mapped[str | None] = mapped_column(SHORT_CODE, nullable=True)
