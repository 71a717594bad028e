"""
Module: billing_kernel.models.client
Responsibility: ORM persistence for the ownership chain above a service:
    LegalEntity -> Client -> Site.
Architecture position: Kernel > Models.  May import from db/ only.

The account manager and seller ids stored here are the ownership fields the
access scope resolver checks for own-scope actors.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import TrackedBase
from billing_kernel.db.types import PERCENT, TITLE


class LegalEntity(TrackedBase):
    """
    Issuing legal entity of invoices and payer of taxes.

    usn_percent is the simplified-tax rate applied to incomes; vat_percent is
    0 for entities outside VAT.
    """

    __tablename__ = "legal_entities"

    name: Mapped[str] = mapped_column(TITLE, nullable=False)

    usn_percent: Mapped[Decimal] = mapped_column(
        PERCENT,
        nullable=False,
        default=Decimal("0"),
    )

    vat_percent: Mapped[Decimal] = mapped_column(
        PERCENT,
        nullable=False,
        default=Decimal("0"),
    )

    # Invoices are issued only for entities that produce closing documents
    generate_closing_docs: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<LegalEntity {self.name}>"


class Client(TrackedBase):
    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_client_seller", "seller_employee_id"),
        Index("idx_client_account_manager", "account_manager_id"),
    )

    name: Mapped[str] = mapped_column(TITLE, nullable=False)

    seller_employee_id: Mapped[UUID | None] = mapped_column(nullable=True)

    account_manager_id: Mapped[UUID | None] = mapped_column(nullable=True)

    legal_entity_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("legal_entities.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Client {self.name}>"


class Site(TrackedBase):
    __tablename__ = "sites"
    __table_args__ = (
        Index("idx_site_client", "client_id"),
        Index("idx_site_account_manager", "account_manager_id"),
    )

    client_id: Mapped[UUID] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    account_manager_id: Mapped[UUID | None] = mapped_column(nullable=True)

    creator_id: Mapped[UUID | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Site {self.title}>"
