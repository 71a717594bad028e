"""
TaxExpenseService -- bulk generation of tax and VAT expenses from incomes.

Responsibility:
    Preview the incomes of a legal entity with their computed tax, and post
    the tax expenses for a chosen set of incomes, plus VAT expenses when a
    VAT cost item is chosen.

Architecture position:
    Services -- composes billing_engines.tax with the caller's Session.
    Notifies through the NotificationDispatcher without waiting.

Invariants enforced:
    - Only actors with the bulk-tax grant may preview or generate.
    - An income yields at most one expense of each kind.  Incomes that
      already have a derived expense are skipped; the unique constraint on
      (source_income_id, source_kind) catches concurrent runs.
    - Each income is processed inside its own savepoint, so a failure on
      one income never aborts the others.
    - Zero amounts produce no expense.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from billing_engines.tax import TaxAmounts, compute_tax_amounts
from billing_kernel.domain.actor import ActorContext
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.dtos import ExpenseInfo, TaxExpenseKind
from billing_kernel.exceptions import (
    CostItemNotFoundError,
    DuplicateTaxExpenseError,
    InvalidDateRangeError,
    LegalEntityNotFoundError,
    MissingIdentifierError,
)
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models.client import LegalEntity
from billing_kernel.models.ledger import CostItem, Expense, Income
from billing_kernel.models.service import Service
from billing_kernel.models.work_period import WorkPeriod
from billing_kernel.services.base import BaseService
from billing_services.access_scope import AccessScopeResolver
from billing_services.notifications import BulkTaxExpensesCreated, NotificationDispatcher

logger = get_logger("services.tax_expense")


class SkipReason:
    NOT_FOUND = "income_not_found"
    OTHER_LEGAL_ENTITY = "other_legal_entity"
    ALREADY_GENERATED = "already_generated"
    NOTHING_TO_POST = "zero_amount"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class TaxableIncome:
    income_id: UUID
    service_id: UUID
    income_date: date
    amounts: TaxAmounts
    has_existing_expense: bool


@dataclass(frozen=True)
class SkippedIncome:
    income_id: UUID
    reason: str


@dataclass(frozen=True)
class BulkTaxResult:
    created: tuple[ExpenseInfo, ...] = ()
    skipped: tuple[SkippedIncome, ...] = ()
    total_tax: int = 0
    total_vat: int = 0

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def total(self) -> int:
        return self.total_tax + self.total_vat


@dataclass
class _Accumulator:
    created: list[ExpenseInfo] = field(default_factory=list)
    skipped: list[SkippedIncome] = field(default_factory=list)
    total_tax: int = 0
    total_vat: int = 0


class TaxExpenseService(BaseService):

    def __init__(
        self,
        session: Session,
        access: AccessScopeResolver,
        notifications: NotificationDispatcher | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(session)
        self._access = access
        self._notifications = notifications
        self._clock = clock or SystemClock()

    def _get_legal_entity(self, legal_entity_id: UUID) -> LegalEntity:
        if legal_entity_id is None:
            raise MissingIdentifierError("legal_entity_id")
        entity = self.session.get(LegalEntity, legal_entity_id)
        if entity is None:
            raise LegalEntityNotFoundError(str(legal_entity_id))
        return entity

    def _require_cost_item(self, cost_item_id: UUID, name: str) -> CostItem:
        if cost_item_id is None:
            raise MissingIdentifierError(name)
        item = self.session.get(CostItem, cost_item_id)
        if item is None:
            raise CostItemNotFoundError(str(cost_item_id))
        return item

    def _has_derived_expense(self, income_id: UUID) -> bool:
        return self.session.execute(
            select(Expense.id).where(Expense.source_income_id == income_id).limit(1)
        ).scalar_one_or_none() is not None

    @staticmethod
    def _amounts(entity: LegalEntity, income_amount: int, include_vat: bool) -> TaxAmounts:
        vat = Decimal(entity.vat_percent or 0)
        return compute_tax_amounts(
            income_amount,
            Decimal(entity.usn_percent or 0),
            vat,
            include_vat=include_vat and vat > 0,
        )

    def _period_label(self, income: Income) -> str:
        """Work period range of the income, or its date when it has none."""
        if income.work_period_id is not None:
            period = self.session.get(WorkPeriod, income.work_period_id)
            if period is not None:
                return f"{period.date_from.isoformat()} - {period.date_to.isoformat()}"
        return income.income_date.isoformat()

    @staticmethod
    def _expense_dto(expense: Expense) -> ExpenseInfo:
        return ExpenseInfo(
            id=expense.id,
            amount=expense.amount,
            cost_item_id=expense.cost_item_id,
            legal_entity_id=expense.legal_entity_id,
            service_id=expense.service_id,
            source_income_id=expense.source_income_id,
            source_kind=TaxExpenseKind(expense.source_kind) if expense.source_kind else None,
            title=expense.title,
            comment=expense.comment,
        )

    def list_taxable_incomes(
        self,
        actor: ActorContext,
        legal_entity_id: UUID,
        date_from: date,
        date_to: date,
        include_vat: bool = True,
    ) -> list[TaxableIncome]:
        """Incomes of a legal entity within [date_from, date_to] with their tax.

        The VAT shown is what a run with a VAT cost item would post.  Pass
        ``include_vat=False`` to preview a run without one.
        """
        self._access.require_bulk_tax_access(actor)
        if date_from is None or date_to is None:
            raise MissingIdentifierError("date_from" if date_from is None else "date_to")
        if date_to < date_from:
            raise InvalidDateRangeError(date_from, date_to)
        entity = self._get_legal_entity(legal_entity_id)

        incomes = self.session.execute(
            select(Income)
            .where(
                Income.legal_entity_id == legal_entity_id,
                Income.income_date >= date_from,
                Income.income_date <= date_to,
            )
            .order_by(Income.income_date, Income.created_at)
        ).scalars().all()

        income_ids = [i.id for i in incomes]
        with_expense: set[UUID] = set()
        if income_ids:
            with_expense = set(
                self.session.execute(
                    select(Expense.source_income_id).where(
                        Expense.source_income_id.in_(income_ids)
                    )
                ).scalars()
            )

        return [
            TaxableIncome(
                income_id=income.id,
                service_id=income.service_id,
                income_date=income.income_date,
                amounts=self._amounts(entity, income.amount, include_vat=include_vat),
                has_existing_expense=income.id in with_expense,
            )
            for income in incomes
        ]

    def bulk_generate_tax_expenses(
        self,
        actor: ActorContext,
        legal_entity_id: UUID,
        income_ids: Sequence[UUID],
        cost_item_id: UUID,
        cost_item_id_vat: UUID | None = None,
    ) -> BulkTaxResult:
        """Post tax (and VAT) expenses for the given incomes.

        VAT is posted only when ``cost_item_id_vat`` is given; without it a
        VAT-rated entity gets its tax expenses alone.  Each expense takes the
        title of its cost item.  Running twice over the same incomes creates
        nothing the second time.
        """
        self._access.require_bulk_tax_access(actor)
        if not income_ids:
            raise MissingIdentifierError("income_ids")
        entity = self._get_legal_entity(legal_entity_id)
        tax_item = self._require_cost_item(cost_item_id, "cost_item_id")
        vat_item = None
        if cost_item_id_vat is not None:
            vat_item = self._require_cost_item(cost_item_id_vat, "cost_item_id_vat")

        acc = _Accumulator()
        with LogContext.bind(actor_id=actor.actor_id):
            # Preserve caller order, drop repeats
            for income_id in dict.fromkeys(income_ids):
                self._generate_for_income(actor, entity, income_id, tax_item, vat_item, acc)

            result = BulkTaxResult(
                created=tuple(acc.created),
                skipped=tuple(acc.skipped),
                total_tax=acc.total_tax,
                total_vat=acc.total_vat,
            )
            logger.info(
                "tax_expenses_generated",
                extra={
                    "legal_entity_id": str(entity.id),
                    "requested": len(income_ids),
                    "created_count": result.created_count,
                    "skipped": len(result.skipped),
                    "total_tax": result.total_tax,
                    "total_vat": result.total_vat,
                },
            )

        if result.created and self._notifications is not None:
            self._notifications.notify(
                BulkTaxExpensesCreated(
                    count=result.created_count,
                    total=result.total,
                    legal_entity_name=entity.name,
                    actor_name=actor.display_name,
                )
            )
        return result

    def _generate_for_income(
        self,
        actor: ActorContext,
        entity: LegalEntity,
        income_id: UUID,
        tax_item: CostItem,
        vat_item: CostItem | None,
        acc: _Accumulator,
    ) -> None:
        income = self.session.get(Income, income_id)
        if income is None:
            acc.skipped.append(SkippedIncome(income_id, SkipReason.NOT_FOUND))
            return
        if income.legal_entity_id != entity.id:
            acc.skipped.append(SkippedIncome(income_id, SkipReason.OTHER_LEGAL_ENTITY))
            return
        if self._has_derived_expense(income_id):
            acc.skipped.append(SkippedIncome(income_id, SkipReason.ALREADY_GENERATED))
            return

        amounts = self._amounts(entity, income.amount, include_vat=vat_item is not None)
        if not amounts.has_any:
            acc.skipped.append(SkippedIncome(income_id, SkipReason.NOTHING_TO_POST))
            return

        site_id = self.session.execute(
            select(Service.site_id).where(Service.id == income.service_id)
        ).scalar_one_or_none()
        label = self._period_label(income)

        postings = [(TaxExpenseKind.TAX, amounts.tax_amount, tax_item, "Tax")]
        if vat_item is not None:
            postings.append((TaxExpenseKind.VAT, amounts.vat_amount, vat_item, "VAT"))

        posted: list[Expense] = []
        try:
            with self.session.begin_nested():
                for kind, amount, item, prefix in postings:
                    if amount == 0:
                        continue
                    expense = Expense(
                        amount=amount,
                        cost_item_id=item.id,
                        title=item.title,
                        site_id=site_id,
                        service_id=income.service_id,
                        legal_entity_id=entity.id,
                        comment=f"{prefix} on income for period {label} (bulk)",
                        payment_at=self._clock.now_utc(),
                        source_income_id=income.id,
                        source_kind=kind.value,
                        created_by_id=actor.actor_id,
                    )
                    self.session.add(expense)
                    posted.append(expense)
                self.session.flush()
        except IntegrityError:
            # A concurrent run posted this income first
            conflict = DuplicateTaxExpenseError(str(income_id))
            logger.warning(
                "tax_expense_skipped",
                extra={"income_id": str(income_id), "error_code": conflict.code},
            )
            acc.skipped.append(SkippedIncome(income_id, SkipReason.CONFLICT))
            return

        for expense in posted:
            acc.created.append(self._expense_dto(expense))
            if expense.source_kind == TaxExpenseKind.VAT.value:
                acc.total_vat += expense.amount
            else:
                acc.total_tax += expense.amount
