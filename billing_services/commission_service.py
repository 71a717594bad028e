"""
CommissionService -- expected commissions and fees over a date window.

The per-period amounts stored on a service are multiplied by the number of
its recorded periods that intersect the window.  Only ACTIVE services count.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engines.commission import (
    CommissionRates,
    ExpectedCommission,
    count_periods_in_window,
    expected_commission,
)
from billing_kernel.domain.actor import ActorContext
from billing_kernel.exceptions import (
    InvalidDateRangeError,
    MissingIdentifierError,
    ServiceNotFoundError,
)
from billing_kernel.logging_config import get_logger
from billing_kernel.models.service import Service
from billing_kernel.selectors.ownership_selector import OwnershipSelector
from billing_kernel.selectors.report_selector import ReportSelector, ServiceCommissionInputs
from billing_kernel.services.base import BaseService
from billing_services.access_scope import AccessScopeResolver

logger = get_logger("services.commission")


@dataclass(frozen=True)
class EmployeeEarnings:
    employee_id: UUID
    seller_amount: int = 0
    account_manager_amount: int = 0
    account_manager_fee: int = 0

    @property
    def total(self) -> int:
        return self.seller_amount + self.account_manager_amount + self.account_manager_fee


def _check_window(window_from: date, window_to: date) -> None:
    if window_from is None or window_to is None:
        raise MissingIdentifierError("window_from" if window_from is None else "window_to")
    if window_to < window_from:
        raise InvalidDateRangeError(window_from, window_to)


def _commission_for(inputs: ServiceCommissionInputs, window_from: date, window_to: date) -> ExpectedCommission:
    rates = CommissionRates(
        seller_amount=inputs.seller_commission_amount,
        account_manager_amount=inputs.account_manager_commission_amount,
        account_manager_fee=inputs.account_manager_fee_amount,
    )
    count = count_periods_in_window(inputs.periods, window_from, window_to)
    return expected_commission(rates, count)


class CommissionService(BaseService):

    SERVICE_SECTION = "services"
    EARNINGS_SECTION = "employees"

    def __init__(self, session: Session, access: AccessScopeResolver):
        super().__init__(session)
        self._access = access
        self._ownership = OwnershipSelector(session)
        self._reports = ReportSelector(session)

    def expected_commission(
        self,
        actor: ActorContext,
        service_id: UUID,
        window_from: date,
        window_to: date,
    ) -> ExpectedCommission:
        """Expected commission of one service.

        A service that is not ACTIVE, or has no period in the window, expects
        nothing.
        """
        _check_window(window_from, window_to)
        if service_id is None:
            raise MissingIdentifierError("service_id")
        service = self.session.get(Service, service_id)
        if service is None:
            raise ServiceNotFoundError(str(service_id))
        chain = self._ownership.for_service(service_id)
        self._access.require_access(actor, chain, self.SERVICE_SECTION, record_id=service_id)
        if not service.is_active:
            return expected_commission(CommissionRates(), 0)

        found = self._reports.commission_inputs(window_from, window_to, service_id=service_id)
        if not found:
            return expected_commission(CommissionRates(), 0)
        return _commission_for(found[0], window_from, window_to)

    def employee_expected_earnings(
        self,
        actor: ActorContext,
        window_from: date,
        window_to: date,
    ) -> list[EmployeeEarnings]:
        """Per-employee totals across ACTIVE services, highest first.

        Sellers earn the seller commission; account managers earn the account
        manager commission and fee.
        """
        _check_window(window_from, window_to)
        self._access.require_view_all(actor, self.EARNINGS_SECTION)

        totals: dict[UUID, dict[str, int]] = {}
        for inputs in self._reports.commission_inputs(window_from, window_to):
            commission = _commission_for(inputs, window_from, window_to)
            if inputs.seller_employee_id is not None and commission.seller_amount:
                entry = totals.setdefault(inputs.seller_employee_id, {})
                entry["seller_amount"] = entry.get("seller_amount", 0) + commission.seller_amount
            if inputs.account_manager_id is not None and (
                commission.account_manager_amount or commission.account_manager_fee
            ):
                entry = totals.setdefault(inputs.account_manager_id, {})
                entry["account_manager_amount"] = (
                    entry.get("account_manager_amount", 0) + commission.account_manager_amount
                )
                entry["account_manager_fee"] = (
                    entry.get("account_manager_fee", 0) + commission.account_manager_fee
                )

        earnings = [EmployeeEarnings(employee_id=eid, **amounts) for eid, amounts in totals.items()]
        earnings.sort(key=lambda e: (-e.total, str(e.employee_id)))
        logger.info(
            "employee_earnings_computed",
            extra={
                "window_from": window_from.isoformat(),
                "window_to": window_to.isoformat(),
                "employee_count": len(earnings),
            },
        )
        return earnings
