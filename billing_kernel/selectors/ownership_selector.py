"""
Module: billing_kernel.selectors.ownership_selector
Responsibility: Resolve the ownership chain (client, account manager, seller,
    creator) of services, periods and invoices.
Architecture position: Kernel > Selectors.

The access scope resolver never walks entities itself.  Services call this
selector to extract ownership ids, then hand them to the resolver.

The account manager of a service is the site's account manager, falling
back to the client's when the site has none.
"""

from uuid import UUID

from sqlalchemy import select

from billing_kernel.domain.dtos import OwnershipChain
from billing_kernel.models.client import Client, Site
from billing_kernel.models.invoice import Invoice, InvoiceLine
from billing_kernel.models.service import Service
from billing_kernel.models.work_period import WorkPeriod
from billing_kernel.selectors.base import BaseSelector


class OwnershipSelector(BaseSelector):
    """Ownership lookups keyed by service, period or invoice id."""

    def _chain_query(self):
        return (
            select(
                Client.id,
                Site.account_manager_id,
                Client.account_manager_id,
                Client.seller_employee_id,
                Site.creator_id,
            )
            .select_from(Service)
            .join(Site, Site.id == Service.site_id)
            .join(Client, Client.id == Site.client_id)
        )

    @staticmethod
    def _to_chain(row) -> OwnershipChain:
        client_id, site_am, client_am, seller_id, creator_id = row
        return OwnershipChain(
            client_id=client_id,
            account_manager_id=site_am or client_am,
            seller_employee_id=seller_id,
            creator_id=creator_id,
        )

    def for_service(self, service_id: UUID) -> OwnershipChain | None:
        row = self.session.execute(
            self._chain_query().where(Service.id == service_id)
        ).one_or_none()
        return self._to_chain(row) if row is not None else None

    def for_period(self, period_id: UUID) -> OwnershipChain | None:
        row = self.session.execute(
            self._chain_query()
            .join(WorkPeriod, WorkPeriod.service_id == Service.id)
            .where(WorkPeriod.id == period_id)
        ).one_or_none()
        return self._to_chain(row) if row is not None else None

    def for_invoice(self, invoice_id: UUID) -> list[OwnershipChain]:
        """Chains of the invoice's primary period followed by each line's period.

        Duplicates are removed, order is kept.
        """
        primary = self.session.execute(
            self._chain_query()
            .join(WorkPeriod, WorkPeriod.service_id == Service.id)
            .join(Invoice, Invoice.work_period_id == WorkPeriod.id)
            .where(Invoice.id == invoice_id)
        ).all()
        via_lines = self.session.execute(
            self._chain_query()
            .join(WorkPeriod, WorkPeriod.service_id == Service.id)
            .join(InvoiceLine, InvoiceLine.work_period_id == WorkPeriod.id)
            .where(InvoiceLine.invoice_id == invoice_id)
            .order_by(InvoiceLine.sort_order)
        ).all()

        chains: list[OwnershipChain] = []
        for row in [*primary, *via_lines]:
            chain = self._to_chain(row)
            if chain not in chains:
                chains.append(chain)
        return chains

    def client_of_period(self, period_id: UUID) -> UUID | None:
        chain = self.for_period(period_id)
        return chain.client_id if chain is not None else None
