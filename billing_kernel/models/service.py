"""
Module: billing_kernel.models.service
Responsibility: ORM persistence for billable services and their configured
    expense items.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - billing_cadence is one of BillingCadence and is not changed once the
      service has periods (no operation edits it).
    - Commission and fee amounts are fixed per-period minor-unit amounts,
      captured at configuration time.  Later rate edits never rewrite them.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import TrackedBase
from billing_kernel.db.types import ITEM_VALUE, SHORT_CODE, TITLE
from billing_kernel.domain.dtos import BillingCadence, ServiceStatus


class Service(TrackedBase):
    """
    A product sold to a client's site, billed per period.

    ``price`` is the default expected amount of every period; a persisted
    period may override it.
    """

    __tablename__ = "services"
    __table_args__ = (
        Index("idx_service_site", "site_id"),
        Index("idx_service_status", "status"),
    )

    site_id: Mapped[UUID] = mapped_column(
        ForeignKey("sites.id"),
        nullable=False,
    )

    product_name: Mapped[str] = mapped_column(TITLE, nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    billing_cadence: Mapped[str] = mapped_column(
        SHORT_CODE,
        nullable=False,
        default=BillingCadence.MONTHLY.value,
    )

    status: Mapped[str] = mapped_column(
        SHORT_CODE,
        nullable=False,
        default=ServiceStatus.ACTIVE.value,
    )

    price: Mapped[int | None] = mapped_column(nullable=True)

    seller_commission_amount: Mapped[int | None] = mapped_column(nullable=True)

    account_manager_commission_amount: Mapped[int | None] = mapped_column(nullable=True)

    account_manager_fee_amount: Mapped[int | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Service {self.product_name} {self.billing_cadence}>"

    @property
    def cadence(self) -> BillingCadence:
        return BillingCadence(self.billing_cadence)

    @property
    def is_active(self) -> bool:
        return self.status == ServiceStatus.ACTIVE.value


class ServiceExpenseItem(TrackedBase):
    """Expected cost line configured on a service (percent of amount or fixed)."""

    __tablename__ = "service_expense_items"
    __table_args__ = (
        Index("idx_service_expense_item_service", "service_id"),
    )

    service_id: Mapped[UUID] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    value_type: Mapped[str] = mapped_column(SHORT_CODE, nullable=False)

    # Percent for PERCENT items, major units for FIXED items
    value: Mapped[Decimal] = mapped_column(ITEM_VALUE, nullable=False)

    responsible_user_id: Mapped[UUID | None] = mapped_column(nullable=True)
