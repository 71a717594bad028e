"""
Module: billing_kernel.selectors.report_selector
Responsibility: Read-only report queries over services and their periods:
    active services that have no recorded period yet, and the commission
    inputs of active services whose periods touch a date window.
Architecture position: Kernel > Selectors.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import exists, select

from billing_kernel.domain.dtos import OwnershipChain, ServiceStatus
from billing_kernel.models.client import Client, Site
from billing_kernel.models.service import Service
from billing_kernel.models.work_period import WorkPeriod
from billing_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ServiceSummary:
    service_id: UUID
    product_name: str
    site_title: str
    client_name: str
    start_date: date
    billing_cadence: str
    ownership: OwnershipChain


@dataclass(frozen=True)
class ServiceCommissionInputs:
    """A service's per-period commission amounts plus its periods' bounds."""

    service_id: UUID
    product_name: str
    seller_employee_id: UUID | None
    account_manager_id: UUID | None
    seller_commission_amount: int | None
    account_manager_commission_amount: int | None
    account_manager_fee_amount: int | None
    periods: tuple[tuple[date, date], ...]


class ReportSelector(BaseSelector):

    def _service_rows(self):
        return (
            select(Service, Site, Client)
            .join(Site, Site.id == Service.site_id)
            .join(Client, Client.id == Site.client_id)
            .where(Service.status == ServiceStatus.ACTIVE.value)
        )

    def services_without_periods(self) -> list[ServiceSummary]:
        """Active services with no recorded period, oldest start first."""
        has_period = exists().where(WorkPeriod.service_id == Service.id)
        rows = self.session.execute(
            self._service_rows()
            .where(~has_period)
            .order_by(Service.start_date, Service.product_name)
        ).all()

        return [
            ServiceSummary(
                service_id=service.id,
                product_name=service.product_name,
                site_title=site.title,
                client_name=client.name,
                start_date=service.start_date,
                billing_cadence=service.billing_cadence,
                ownership=OwnershipChain(
                    client_id=client.id,
                    account_manager_id=site.account_manager_id or client.account_manager_id,
                    seller_employee_id=client.seller_employee_id,
                    creator_id=site.creator_id,
                ),
            )
            for service, site, client in rows
        ]

    def commission_inputs(
        self,
        window_from: date,
        window_to: date,
        service_id: UUID | None = None,
    ) -> list[ServiceCommissionInputs]:
        """Active services with at least one period intersecting the window.

        Every period of the service is returned; the caller counts the
        intersecting ones.
        """
        touches_window = exists().where(
            WorkPeriod.service_id == Service.id,
            WorkPeriod.date_from <= window_to,
            WorkPeriod.date_to >= window_from,
        )
        query = self._service_rows().where(touches_window).order_by(Service.product_name)
        if service_id is not None:
            query = query.where(Service.id == service_id)
        rows = self.session.execute(query).all()
        if not rows:
            return []

        service_ids = [service.id for service, _, _ in rows]
        bounds: dict[UUID, list[tuple[date, date]]] = {sid: [] for sid in service_ids}
        for sid, date_from, date_to in self.session.execute(
            select(WorkPeriod.service_id, WorkPeriod.date_from, WorkPeriod.date_to)
            .where(WorkPeriod.service_id.in_(service_ids))
            .order_by(WorkPeriod.date_from)
        ):
            bounds[sid].append((date_from, date_to))

        return [
            ServiceCommissionInputs(
                service_id=service.id,
                product_name=service.product_name,
                seller_employee_id=client.seller_employee_id,
                account_manager_id=site.account_manager_id or client.account_manager_id,
                seller_commission_amount=service.seller_commission_amount,
                account_manager_commission_amount=service.account_manager_commission_amount,
                account_manager_fee_amount=service.account_manager_fee_amount,
                periods=tuple(bounds[service.id]),
            )
            for service, site, client in rows
        ]
