"""
Module: billing_kernel.models.work_period
Responsibility: ORM persistence for recorded billing periods and the expense
    items snapshotted onto them.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - date_to >= date_from (CHECK constraint plus service-layer validation).
    - A period belongs to exactly one service.  Periods of a service do not
      overlap when created; manual adjustment without cascade may leave a gap
      or overlap on purpose.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import TrackedBase
from billing_kernel.db.types import ITEM_VALUE, SHORT_CODE, TITLE
from billing_kernel.domain.dtos import PeriodType


class WorkPeriod(TrackedBase):
    """
    One recorded billing period of a service, inclusive on both ends.

    expected_amount overrides the service price for this period when set.
    """

    __tablename__ = "work_periods"
    __table_args__ = (
        CheckConstraint("date_to >= date_from", name="ck_work_period_range"),
        Index("idx_work_period_service_dates", "service_id", "date_from", "date_to"),
    )

    service_id: Mapped[UUID] = mapped_column(
        ForeignKey("services.id"),
        nullable=False,
    )

    date_from: Mapped[date] = mapped_column(Date, nullable=False)

    date_to: Mapped[date] = mapped_column(Date, nullable=False)

    period_type: Mapped[str] = mapped_column(
        SHORT_CODE,
        nullable=False,
        default=PeriodType.STANDARD.value,
    )

    expected_amount: Mapped[int | None] = mapped_column(nullable=True)

    invoice_not_required: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<WorkPeriod {self.date_from.isoformat()}..{self.date_to.isoformat()}>"

    def shift(self, days: int) -> None:
        """Move both boundaries by ``days``, keeping the duration."""
        delta = timedelta(days=days)
        self.date_from = self.date_from + delta
        self.date_to = self.date_to + delta


class PeriodExpenseItem(TrackedBase):
    """Snapshot of a service expense item taken when the period was recorded."""

    __tablename__ = "period_expense_items"
    __table_args__ = (
        Index("idx_period_expense_item_period", "work_period_id"),
    )

    work_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("work_periods.id", ondelete="CASCADE"),
        nullable=False,
    )

    expense_item_template_id: Mapped[UUID | None] = mapped_column(nullable=True)

    name: Mapped[str] = mapped_column(TITLE, nullable=False)

    value_type: Mapped[str] = mapped_column(SHORT_CODE, nullable=False)

    value: Mapped[Decimal] = mapped_column(ITEM_VALUE, nullable=False)

    calculated_amount: Mapped[int | None] = mapped_column(nullable=True)

    responsible_user_id: Mapped[UUID | None] = mapped_column(nullable=True)
