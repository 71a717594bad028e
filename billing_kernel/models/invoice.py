"""
Module: billing_kernel.models.invoice
Responsibility: ORM persistence for invoices, their lines and the partial
    payments recorded against them.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - invoice.amount equals the sum of its lines.  The ledger recomputes it
      from the full line set after every line insert or delete, inside the
      same transaction, with the invoice row locked.
    - A period appears at most once per invoice (uq_invoice_line_period).
    - Outstanding balance is never stored; it is derived from payments.
    - invoice_number is unique when present.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import TrackedBase
from billing_kernel.db.types import INVOICE_NUMBER, LONG_TEXT, PUBLIC_TOKEN


class Invoice(TrackedBase):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_invoice_number"),
        UniqueConstraint("public_token", name="uq_invoice_public_token"),
        Index("idx_invoice_period", "work_period_id"),
        Index("idx_invoice_legal_entity", "legal_entity_id"),
    )

    # Primary period; also the first line
    work_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("work_periods.id"),
        nullable=False,
    )

    invoice_number: Mapped[str | None] = mapped_column(INVOICE_NUMBER, nullable=True)

    invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    amount: Mapped[int] = mapped_column(nullable=False, default=0)

    coverage_from: Mapped[date | None] = mapped_column(Date, nullable=True)

    coverage_to: Mapped[date | None] = mapped_column(Date, nullable=True)

    legal_entity_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("legal_entities.id"),
        nullable=True,
    )

    invoice_not_required: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    public_token: Mapped[str | None] = mapped_column(PUBLIC_TOKEN, nullable=True)

    # Public download is only allowed once a PDF has been produced
    pdf_generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number or self.id}: {self.amount}>"


class InvoiceLine(TrackedBase):
    __tablename__ = "invoice_lines"
    __table_args__ = (
        UniqueConstraint("invoice_id", "work_period_id", name="uq_invoice_line_period"),
        Index("idx_invoice_line_period", "work_period_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
    )

    work_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("work_periods.id"),
        nullable=False,
    )

    amount: Mapped[int] = mapped_column(nullable=False)

    sort_order: Mapped[int] = mapped_column(nullable=False, default=0)

    service_name_override: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)

    site_name_override: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)

    period_override: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)


class Payment(TrackedBase):
    __tablename__ = "payments"
    __table_args__ = (
        Index("idx_payment_invoice", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
    )

    amount: Mapped[int] = mapped_column(nullable=False)

    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    comment: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)
