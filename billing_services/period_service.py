"""
PeriodService -- recorded billing periods of a service.

Responsibility:
    Expected-period view (generator + reconciler over recorded periods),
    next-period suggestion, recording and deleting periods, and manual
    adjustment of a period's end boundary with optional cascade.

Architecture position:
    Services -- composes billing_engines.periods, .reconciliation and
    .adjustment with the caller's Session and the AccessScopeResolver.

Invariants enforced:
    - Periods of one service do not overlap when recorded.
    - Adjustment never collapses a period (new end > start).
    - Adjustments of one service are serialized: the service row is locked
      (SELECT ... FOR UPDATE) before later periods are read, so two cascades
      on the same service cannot interleave.
    - A period on any invoice cannot be deleted.

Failure modes:
    - ServiceNotFoundError / PeriodNotFoundError for unknown ids.
    - PeriodServiceMismatchError when the period belongs to another service.
    - AccessDeniedError when the actor is outside the service's scope.
    - InvalidDateRangeError, PeriodOverlapError, InvalidAdjustmentError.
    - PeriodHasInvoicesError on deleting an invoiced period.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from billing_engines.adjustment import PeriodBounds, plan_adjustment
from billing_engines.commission import period_expense_item_amount
from billing_engines.periods import default_horizon, generate_periods, suggest_next_period
from billing_engines.reconciliation import (
    PersistedPeriod,
    ReconciledPeriod,
    reconcile_periods,
    unmatched_persisted,
)
from billing_kernel.domain.actor import ActorContext
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.dtos import BillingCadence, PeriodInfo, PeriodType
from billing_kernel.exceptions import (
    InvalidDateRangeError,
    MissingIdentifierError,
    PeriodHasInvoicesError,
    PeriodNotFoundError,
    PeriodOverlapError,
    PeriodServiceMismatchError,
    ServiceNotFoundError,
)
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models.invoice import Invoice, InvoiceLine
from billing_kernel.models.service import Service, ServiceExpenseItem
from billing_kernel.models.work_period import PeriodExpenseItem, WorkPeriod
from billing_kernel.selectors.ownership_selector import OwnershipSelector
from billing_kernel.selectors.report_selector import ReportSelector, ServiceSummary
from billing_kernel.services.base import BaseService, require_minor_units
from billing_services.access_scope import AccessScopeResolver

logger = get_logger("services.period")

UNNAMED_EXPENSE_ITEM = "Untitled"


@dataclass(frozen=True)
class ExpectedPeriodsView:
    service_id: UUID
    cadence: BillingCadence
    horizon_end: date
    periods: tuple[ReconciledPeriod, ...]
    # Recorded periods no generated period matches (e.g. adjusted ones)
    unmatched: tuple[PersistedPeriod, ...]


@dataclass(frozen=True)
class SuggestedPeriod:
    service_id: UUID
    date_from: date
    date_to: date
    is_invoice_period: bool
    expected_amount: int | None


class PeriodService(BaseService):
    """Periods of services, gated by the ``services`` section."""

    SECTION = "services"

    def __init__(
        self,
        session: Session,
        access: AccessScopeResolver,
        clock: Clock | None = None,
        horizon_months: int = 1,
    ):
        super().__init__(session)
        self._access = access
        self._clock = clock or SystemClock()
        self._horizon_months = horizon_months
        self._ownership = OwnershipSelector(session)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _to_dto(period: WorkPeriod) -> PeriodInfo:
        return PeriodInfo(
            id=period.id,
            service_id=period.service_id,
            date_from=period.date_from,
            date_to=period.date_to,
            period_type=PeriodType(period.period_type),
            expected_amount=period.expected_amount,
            invoice_not_required=period.invoice_not_required,
        )

    def _get_service(self, service_id: UUID, for_update: bool = False) -> Service:
        if service_id is None:
            raise MissingIdentifierError("service_id")
        query = select(Service).where(Service.id == service_id)
        if for_update:
            query = query.with_for_update()
        service = self.session.execute(query).scalar_one_or_none()
        if service is None:
            raise ServiceNotFoundError(str(service_id))
        return service

    def _get_period(self, period_id: UUID) -> WorkPeriod:
        if period_id is None:
            raise MissingIdentifierError("period_id")
        period = self.session.get(WorkPeriod, period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period

    def _require_service_access(self, actor: ActorContext, service_id: UUID) -> None:
        chain = self._ownership.for_service(service_id)
        if chain is None:
            raise ServiceNotFoundError(str(service_id))
        self._access.require_access(actor, chain, self.SECTION, record_id=service_id)

    def _service_periods(self, service_id: UUID) -> list[WorkPeriod]:
        return list(
            self.session.execute(
                select(WorkPeriod)
                .where(WorkPeriod.service_id == service_id)
                .order_by(WorkPeriod.date_from, WorkPeriod.date_to)
            ).scalars()
        )

    def _invoiced_period_ids(self, period_ids: list[UUID]) -> set[UUID]:
        if not period_ids:
            return set()
        primary = select(Invoice.work_period_id).where(Invoice.work_period_id.in_(period_ids))
        via_lines = select(InvoiceLine.work_period_id).where(
            InvoiceLine.work_period_id.in_(period_ids)
        )
        return set(self.session.execute(primary.union(via_lines)).scalars())

    # =========================================================================
    # Queries
    # =========================================================================

    def get_period(self, actor: ActorContext, period_id: UUID) -> PeriodInfo:
        period = self._get_period(period_id)
        self._require_service_access(actor, period.service_id)
        return self._to_dto(period)

    def list_periods(self, actor: ActorContext, service_id: UUID) -> list[PeriodInfo]:
        self._get_service(service_id)
        self._require_service_access(actor, service_id)
        return [self._to_dto(p) for p in self._service_periods(service_id)]

    def expected_periods(
        self,
        actor: ActorContext,
        service_id: UUID,
        today: date | None = None,
    ) -> ExpectedPeriodsView:
        """Generated calendar of the service reconciled with its recorded periods.

        The horizon is the service end date when set, otherwise ``today`` (the
        injected clock's date by default) plus the configured months.
        """
        service = self._get_service(service_id)
        self._require_service_access(actor, service_id)

        horizon = default_horizon(
            today or self._clock.today(), service.end_date, self._horizon_months
        )
        generated = generate_periods(service.start_date, service.cadence, horizon)

        recorded = self._service_periods(service_id)
        invoiced = self._invoiced_period_ids([p.id for p in recorded])
        persisted = [
            PersistedPeriod(
                id=p.id,
                date_from=p.date_from,
                date_to=p.date_to,
                expected_amount=p.expected_amount,
                has_invoice=p.id in invoiced,
            )
            for p in recorded
        ]

        view = ExpectedPeriodsView(
            service_id=service.id,
            cadence=service.cadence,
            horizon_end=horizon,
            periods=reconcile_periods(generated, persisted, service.price),
            unmatched=unmatched_persisted(generated, persisted),
        )
        logger.debug(
            "expected_periods_built",
            extra={
                "service_id": str(service_id),
                "generated_count": len(view.periods),
                "unmatched_count": len(view.unmatched),
            },
        )
        return view

    def services_without_periods(self, actor: ActorContext) -> list[ServiceSummary]:
        """Active services with nothing recorded yet that the actor may see."""
        return [
            summary
            for summary in ReportSelector(self.session).services_without_periods()
            if self._access.can_access_chain(actor, summary.ownership, self.SECTION)
        ]

    def suggest_next_period(self, actor: ActorContext, service_id: UUID) -> SuggestedPeriod:
        """Period after the latest recorded one, priced at the service default."""
        service = self._get_service(service_id)
        self._require_service_access(actor, service_id)

        last_date_to = self.session.execute(
            select(func.max(WorkPeriod.date_to)).where(WorkPeriod.service_id == service_id)
        ).scalar_one_or_none()
        suggestion = suggest_next_period(service.start_date, service.cadence, last_date_to)
        return SuggestedPeriod(
            service_id=service.id,
            date_from=suggestion.date_from,
            date_to=suggestion.date_to,
            is_invoice_period=suggestion.is_invoice_period,
            expected_amount=service.price,
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_period(
        self,
        actor: ActorContext,
        service_id: UUID,
        date_from: date,
        date_to: date,
        period_type: PeriodType | str = PeriodType.STANDARD,
        expected_amount: int | None = None,
        invoice_not_required: bool = False,
    ) -> PeriodInfo:
        """Record a period and snapshot the service's expense items onto it."""
        if date_from is None:
            raise MissingIdentifierError("date_from")
        if date_to is None:
            raise MissingIdentifierError("date_to")
        if date_to < date_from:
            raise InvalidDateRangeError(date_from, date_to)
        require_minor_units("expected_amount", expected_amount, allow_none=True)
        period_type = PeriodType(period_type)

        service = self._get_service(service_id, for_update=True)
        self._require_service_access(actor, service_id)

        clash = self.session.execute(
            select(WorkPeriod.id)
            .where(
                WorkPeriod.service_id == service_id,
                WorkPeriod.date_from <= date_to,
                WorkPeriod.date_to >= date_from,
            )
            .limit(1)
        ).scalar_one_or_none()
        if clash is not None:
            raise PeriodOverlapError(str(service_id), date_from, date_to, str(clash))

        period = WorkPeriod(
            service_id=service.id,
            date_from=date_from,
            date_to=date_to,
            period_type=period_type.value,
            expected_amount=expected_amount,
            invoice_not_required=invoice_not_required,
            created_by_id=actor.actor_id,
        )
        self.session.add(period)
        self._flush("create_period")

        base_amount = expected_amount if expected_amount is not None else service.price
        templates = self.session.execute(
            select(ServiceExpenseItem)
            .where(ServiceExpenseItem.service_id == service.id)
            .order_by(ServiceExpenseItem.created_at, ServiceExpenseItem.id)
        ).scalars().all()
        for template in templates:
            self.session.add(
                PeriodExpenseItem(
                    work_period_id=period.id,
                    expense_item_template_id=template.id,
                    name=(template.name or "").strip() or UNNAMED_EXPENSE_ITEM,
                    value_type=template.value_type,
                    value=template.value,
                    calculated_amount=period_expense_item_amount(
                        template.value_type, template.value, base_amount
                    ),
                    responsible_user_id=template.responsible_user_id,
                    created_by_id=actor.actor_id,
                )
            )
        self._flush("create_period")

        logger.info(
            "period_created",
            extra={
                "service_id": str(service.id),
                "period_id": str(period.id),
                "date_from": date_from.isoformat(),
                "date_to": date_to.isoformat(),
                "period_type": period_type.value,
                "expense_items_copied": len(templates),
            },
        )
        return self._to_dto(period)

    def delete_period(self, actor: ActorContext, period_id: UUID) -> None:
        period = self._get_period(period_id)
        self._require_service_access(actor, period.service_id)

        invoice_count = self.session.execute(
            select(func.count(func.distinct(Invoice.id)))
            .select_from(Invoice)
            .outerjoin(InvoiceLine, InvoiceLine.invoice_id == Invoice.id)
            .where(
                or_(
                    Invoice.work_period_id == period_id,
                    InvoiceLine.work_period_id == period_id,
                )
            )
        ).scalar_one()
        if invoice_count:
            raise PeriodHasInvoicesError(str(period_id), invoice_count)

        self.session.execute(
            delete(PeriodExpenseItem).where(PeriodExpenseItem.work_period_id == period_id)
        )
        self.session.delete(period)
        self._flush("delete_period")
        logger.info(
            "period_deleted",
            extra={"service_id": str(period.service_id), "period_id": str(period_id)},
        )

    def adjust_period(
        self,
        actor: ActorContext,
        service_id: UUID,
        period_id: UUID,
        new_date_to: date,
        cascade_following: bool = False,
    ) -> list[PeriodInfo]:
        """Move a period's end and optionally shift every later period.

        Returns the mutated periods: the target first, then cascaded periods
        in ascending order.
        """
        if new_date_to is None:
            raise MissingIdentifierError("new_date_to")

        with LogContext.bind(actor_id=actor.actor_id, service_id=service_id):
            self._get_service(service_id)
            period = self._get_period(period_id)
            if period.service_id != service_id:
                raise PeriodServiceMismatchError(str(period_id), str(service_id))
            self._require_service_access(actor, service_id)

            # Serialize adjustments of this service
            self._get_service(service_id, for_update=True)
            self.session.refresh(period)

            later = self.session.execute(
                select(WorkPeriod)
                .where(
                    WorkPeriod.service_id == service_id,
                    WorkPeriod.id != period.id,
                    WorkPeriod.date_from > period.date_to,
                )
                .order_by(WorkPeriod.date_from, WorkPeriod.date_to)
            ).scalars().all()

            plan = plan_adjustment(
                PeriodBounds(period.id, period.date_from, period.date_to),
                new_date_to,
                [PeriodBounds(p.id, p.date_from, p.date_to) for p in later],
                cascade_following,
            )

            by_id = {p.id: p for p in later}
            by_id[period.id] = period
            mutated: list[WorkPeriod] = []
            for change in plan.changes:
                row = by_id[change.period_id]
                row.date_from = change.new_date_from
                row.date_to = change.new_date_to
                row.updated_by_id = actor.actor_id
                mutated.append(row)
            self._flush("adjust_period")

            logger.info(
                "period_adjusted",
                extra={
                    "period_id": str(period_id),
                    "new_date_to": new_date_to.isoformat(),
                    "delta_days": plan.delta_days,
                    "cascade": cascade_following,
                    "cascaded_count": len(plan.cascaded),
                },
            )
            return [self._to_dto(row) for row in mutated]
