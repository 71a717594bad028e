"""
InvoiceLedger -- invoices, invoice lines and partial payments.

Responsibility:
    Issue invoices for recorded periods, keep each invoice's amount equal to
    the sum of its lines, record payments and derive the outstanding balance.

Architecture position:
    Services -- composes billing_engines.invoicing with the caller's Session,
    the OwnershipSelector and the AccessScopeResolver.

Invariants enforced:
    - invoice.amount == sum(line.amount) after every committed operation.
      Line mutations lock the invoice row first, then recompute the amount
      from the full current line set in the same flush.
    - A period appears at most once per invoice.
    - Every line of an invoice belongs to the invoice's client.
    - The outstanding balance is derived on every call, never stored, and may
      be negative (overpayment is allowed).

Failure modes:
    - InvoiceNotFoundError, InvoiceLineNotFoundError, PaymentNotFoundError,
      PeriodNotFoundError, LegalEntityNotFoundError.
    - CrossClientInvoiceLineError, DuplicateInvoiceLineError,
      DuplicateInvoiceNumberError, MissingLegalEntityError.
    - AccessDeniedError when the actor is outside every line's scope.
"""

from __future__ import annotations

import secrets
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from billing_engines.invoicing import (
    DEFAULT_INVOICE_NUMBER_FLOOR,
    coverage_range,
    invoice_total,
    next_invoice_number,
    normalize_override,
    outstanding_balance,
)
from billing_kernel.domain.actor import ActorContext
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.dtos import InvoiceInfo, InvoiceLineInfo, PaymentInfo
from billing_kernel.domain.values import DEFAULT_CURRENCY, Money
from billing_kernel.exceptions import (
    CrossClientInvoiceLineError,
    DuplicateInvoiceLineError,
    DuplicateInvoiceNumberError,
    InvalidAmountError,
    InvalidDateRangeError,
    InvoiceLineNotFoundError,
    InvoiceNotFoundError,
    LegalEntityNotFoundError,
    MissingIdentifierError,
    MissingLegalEntityError,
    PaymentNotFoundError,
    PeriodNotFoundError,
)
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models.client import Client, LegalEntity, Site
from billing_kernel.models.invoice import Invoice, InvoiceLine, Payment
from billing_kernel.models.service import Service
from billing_kernel.models.work_period import WorkPeriod
from billing_kernel.selectors.ownership_selector import OwnershipSelector
from billing_kernel.services.base import BaseService, require_minor_units
from billing_services.access_scope import AccessScopeResolver

logger = get_logger("services.invoice_ledger")

# Placeholder invoice id in errors raised before the invoice exists
_NEW_INVOICE = "new"


@dataclass(frozen=True)
class NewInvoiceLine:
    period_id: UUID
    amount: int


@dataclass(frozen=True)
class LineDeletion:
    invoice_id: UUID
    line_id: UUID
    invoice_deleted: bool
    invoice: InvoiceInfo | None = None


class InvoiceLedger(BaseService):
    """Invoices and payments, gated by the ``services`` section."""

    SECTION = "services"

    def __init__(
        self,
        session: Session,
        access: AccessScopeResolver,
        clock: Clock | None = None,
        invoice_number_floor: int = DEFAULT_INVOICE_NUMBER_FLOOR,
        currency: str = DEFAULT_CURRENCY,
    ):
        super().__init__(session)
        self._access = access
        self._clock = clock or SystemClock()
        self._number_floor = invoice_number_floor
        self._currency = currency
        self._ownership = OwnershipSelector(session)

    # =========================================================================
    # Lookups and DTOs
    # =========================================================================

    def _get_invoice(self, invoice_id: UUID, for_update: bool = False) -> Invoice:
        if invoice_id is None:
            raise MissingIdentifierError("invoice_id")
        query = select(Invoice).where(Invoice.id == invoice_id)
        if for_update:
            query = query.with_for_update()
        invoice = self.session.execute(query).scalar_one_or_none()
        if invoice is None:
            raise InvoiceNotFoundError(str(invoice_id))
        return invoice

    def _get_period(self, period_id: UUID) -> WorkPeriod:
        if period_id is None:
            raise MissingIdentifierError("period_id")
        period = self.session.get(WorkPeriod, period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period

    def _lines(self, invoice_id: UUID) -> list[InvoiceLine]:
        return list(
            self.session.execute(
                select(InvoiceLine)
                .where(InvoiceLine.invoice_id == invoice_id)
                .order_by(InvoiceLine.sort_order, InvoiceLine.created_at)
            ).scalars()
        )

    @staticmethod
    def _line_dto(line: InvoiceLine) -> InvoiceLineInfo:
        return InvoiceLineInfo(
            id=line.id,
            invoice_id=line.invoice_id,
            work_period_id=line.work_period_id,
            amount=line.amount,
            sort_order=line.sort_order,
            service_name_override=line.service_name_override,
            site_name_override=line.site_name_override,
            period_override=line.period_override,
        )

    @staticmethod
    def _payment_dto(payment: Payment) -> PaymentInfo:
        return PaymentInfo(
            id=payment.id,
            invoice_id=payment.invoice_id,
            amount=payment.amount,
            paid_at=payment.paid_at,
            comment=payment.comment,
        )

    def _to_dto(self, invoice: Invoice) -> InvoiceInfo:
        return InvoiceInfo(
            id=invoice.id,
            work_period_id=invoice.work_period_id,
            invoice_number=invoice.invoice_number,
            invoice_date=invoice.invoice_date,
            amount=invoice.amount,
            coverage_from=invoice.coverage_from,
            coverage_to=invoice.coverage_to,
            legal_entity_id=invoice.legal_entity_id,
            invoice_not_required=invoice.invoice_not_required,
            public_token=invoice.public_token,
            pdf_generated_at=invoice.pdf_generated_at,
            lines=tuple(self._line_dto(line) for line in self._lines(invoice.id)),
        )

    # =========================================================================
    # Access and invariants
    # =========================================================================

    def _require_period_access(self, actor: ActorContext, period_id: UUID):
        chain = self._ownership.for_period(period_id)
        if chain is None:
            raise PeriodNotFoundError(str(period_id))
        self._access.require_access(actor, chain, self.SECTION, record_id=period_id)
        return chain

    def _require_invoice_access(self, actor: ActorContext, invoice_id: UUID) -> None:
        self._access.require_access(
            actor,
            self._ownership.for_invoice(invoice_id),
            self.SECTION,
            record_id=invoice_id,
        )

    def _recompute_amount(self, invoice: Invoice) -> int:
        """Re-derive the invoice amount from its full current line set."""
        self._flush("recompute_invoice_amount")
        amounts = self.session.execute(
            select(InvoiceLine.amount).where(InvoiceLine.invoice_id == invoice.id)
        ).scalars()
        invoice.amount = invoice_total(amounts)
        return invoice.amount

    def _resolve_number(self, invoice_number: str | None) -> str:
        invoice_number = normalize_override(invoice_number)
        if invoice_number is None:
            existing = self.session.execute(
                select(Invoice.invoice_number).where(Invoice.invoice_number.is_not(None))
            ).scalars()
            return next_invoice_number(existing, self._number_floor)

        taken = self.session.execute(
            select(Invoice.id).where(Invoice.invoice_number == invoice_number)
        ).scalar_one_or_none()
        if taken is not None:
            raise DuplicateInvoiceNumberError(invoice_number)
        return invoice_number

    def _resolve_legal_entity(self, client_id: UUID, legal_entity_id: UUID | None) -> UUID:
        if legal_entity_id is None:
            legal_entity_id = self.session.execute(
                select(Client.legal_entity_id).where(Client.id == client_id)
            ).scalar_one_or_none()
            if legal_entity_id is None:
                raise MissingLegalEntityError(str(client_id))
        if self.session.get(LegalEntity, legal_entity_id) is None:
            raise LegalEntityNotFoundError(str(legal_entity_id))
        return legal_entity_id

    def _insert_invoice(
        self,
        actor: ActorContext,
        primary_period_id: UUID,
        lines: Sequence[NewInvoiceLine],
        legal_entity_id: UUID,
        invoice_number: str,
        invoice_date: date | None,
        coverage_from: date | None,
        coverage_to: date | None,
        invoice_not_required: bool,
    ) -> Invoice:
        invoice = Invoice(
            work_period_id=primary_period_id,
            invoice_number=invoice_number,
            invoice_date=invoice_date or self._clock.today(),
            amount=0,
            coverage_from=coverage_from,
            coverage_to=coverage_to,
            legal_entity_id=legal_entity_id,
            invoice_not_required=invoice_not_required,
            public_token=secrets.token_urlsafe(24),
            created_by_id=actor.actor_id,
        )
        self.session.add(invoice)
        self._flush("create_invoice")

        for position, line in enumerate(lines):
            self.session.add(
                InvoiceLine(
                    invoice_id=invoice.id,
                    work_period_id=line.period_id,
                    amount=line.amount,
                    sort_order=position,
                    created_by_id=actor.actor_id,
                )
            )
        self._recompute_amount(invoice)
        self._flush("create_invoice")

        logger.info(
            "invoice_created",
            extra={
                "invoice_id": str(invoice.id),
                "invoice_number": invoice.invoice_number,
                "amount": invoice.amount,
                "line_count": len(lines),
                "legal_entity_id": str(legal_entity_id),
            },
        )
        return invoice

    # =========================================================================
    # Invoices
    # =========================================================================

    def create_invoice(
        self,
        actor: ActorContext,
        period_id: UUID,
        amount: int,
        legal_entity_id: UUID | None = None,
        coverage_from: date | None = None,
        coverage_to: date | None = None,
        invoice_number: str | None = None,
        invoice_not_required: bool = False,
        invoice_date: date | None = None,
    ) -> InvoiceInfo:
        """Issue a single-period invoice for a caller-supplied amount.

        The primary line is created in the same flush, so the invoice amount
        equals the sum of its lines from the start.
        """
        require_minor_units("amount", amount)
        if coverage_from and coverage_to and coverage_to < coverage_from:
            raise InvalidDateRangeError(coverage_from, coverage_to)
        self._get_period(period_id)
        chain = self._require_period_access(actor, period_id)

        legal_entity_id = self._resolve_legal_entity(chain.client_id, legal_entity_id)
        number = self._resolve_number(invoice_number)

        with LogContext.bind(actor_id=actor.actor_id):
            invoice = self._insert_invoice(
                actor,
                period_id,
                [NewInvoiceLine(period_id, amount)],
                legal_entity_id,
                number,
                invoice_date,
                coverage_from,
                coverage_to,
                invoice_not_required,
            )
        return self._to_dto(invoice)

    def create_invoice_with_lines(
        self,
        actor: ActorContext,
        lines: Sequence[NewInvoiceLine],
        legal_entity_id: UUID | None = None,
        invoice_number: str | None = None,
        invoice_date: date | None = None,
    ) -> InvoiceInfo:
        """Issue one invoice covering several periods of a single client.

        The first line's period becomes the primary period.  Coverage spans
        the earliest start to the latest end of the line periods.
        """
        if not lines:
            raise MissingIdentifierError("lines")

        seen: set[UUID] = set()
        client_id = None
        bounds = []
        for line in lines:
            require_minor_units("amount", line.amount)
            if line.period_id in seen:
                raise DuplicateInvoiceLineError(_NEW_INVOICE, str(line.period_id))
            seen.add(line.period_id)

            period = self._get_period(line.period_id)
            chain = self._require_period_access(actor, line.period_id)
            if client_id is None:
                client_id = chain.client_id
            elif chain.client_id != client_id:
                raise CrossClientInvoiceLineError(
                    _NEW_INVOICE, str(line.period_id), str(client_id), str(chain.client_id)
                )
            bounds.append((period.date_from, period.date_to))

        legal_entity_id = self._resolve_legal_entity(client_id, legal_entity_id)
        number = self._resolve_number(invoice_number)
        coverage_from, coverage_to = coverage_range(bounds)

        with LogContext.bind(actor_id=actor.actor_id):
            invoice = self._insert_invoice(
                actor,
                lines[0].period_id,
                lines,
                legal_entity_id,
                number,
                invoice_date,
                coverage_from,
                coverage_to,
                False,
            )
        return self._to_dto(invoice)

    def get_invoice(self, actor: ActorContext, invoice_id: UUID) -> InvoiceInfo:
        invoice = self._get_invoice(invoice_id)
        self._require_invoice_access(actor, invoice_id)
        return self._to_dto(invoice)

    def invoices_for_period(self, actor: ActorContext, period_id: UUID) -> list[InvoiceInfo]:
        """Invoices whose primary period or any line is ``period_id``."""
        self._get_period(period_id)
        self._require_period_access(actor, period_id)
        return [self._to_dto(inv) for inv in self._invoices_containing(period_id)]

    def _invoices_containing(self, period_id: UUID) -> list[Invoice]:
        via_lines = select(InvoiceLine.invoice_id).where(InvoiceLine.work_period_id == period_id)
        return list(
            self.session.execute(
                select(Invoice)
                .where(or_(Invoice.work_period_id == period_id, Invoice.id.in_(via_lines)))
                .order_by(Invoice.invoice_date, Invoice.created_at)
            ).scalars()
        )

    def available_invoices_for_period(
        self, actor: ActorContext, period_id: UUID
    ) -> list[InvoiceInfo]:
        """Invoices of the period's client that do not contain it yet."""
        self._get_period(period_id)
        chain = self._require_period_access(actor, period_id)

        containing = {inv.id for inv in self._invoices_containing(period_id)}
        candidates = self.session.execute(
            select(Invoice)
            .join(WorkPeriod, WorkPeriod.id == Invoice.work_period_id)
            .join(Service, Service.id == WorkPeriod.service_id)
            .join(Site, Site.id == Service.site_id)
            .where(Site.client_id == chain.client_id)
            .order_by(Invoice.invoice_date.desc(), Invoice.created_at.desc())
        ).scalars()
        return [self._to_dto(inv) for inv in candidates if inv.id not in containing]

    def mark_pdf_generated(self, actor: ActorContext, invoice_id: UUID) -> InvoiceInfo:
        invoice = self._get_invoice(invoice_id)
        self._require_invoice_access(actor, invoice_id)
        invoice.pdf_generated_at = self._clock.now_utc()
        invoice.updated_by_id = actor.actor_id
        self._flush("mark_pdf_generated")
        return self._to_dto(invoice)

    def get_public_invoice(self, public_token: str) -> InvoiceInfo:
        """Resolve a public link.  Only invoices with a generated PDF resolve."""
        public_token = (public_token or "").strip()
        if not public_token:
            raise MissingIdentifierError("public_token")
        invoice = self.session.execute(
            select(Invoice).where(
                Invoice.public_token == public_token,
                Invoice.pdf_generated_at.is_not(None),
            )
        ).scalar_one_or_none()
        if invoice is None:
            raise InvoiceNotFoundError(public_token)
        return self._to_dto(invoice)

    # =========================================================================
    # Lines
    # =========================================================================

    def add_line(
        self,
        actor: ActorContext,
        invoice_id: UUID,
        period_id: UUID,
        amount: int,
    ) -> InvoiceLineInfo:
        require_minor_units("amount", amount)
        with LogContext.bind(actor_id=actor.actor_id, invoice_id=invoice_id):
            # Lock first: concurrent additions to this invoice serialize here
            invoice = self._get_invoice(invoice_id, for_update=True)
            self._require_invoice_access(actor, invoice_id)
            self._get_period(period_id)
            period_chain = self._require_period_access(actor, period_id)

            invoice_client = self._ownership.client_of_period(invoice.work_period_id)
            if period_chain.client_id != invoice_client:
                raise CrossClientInvoiceLineError(
                    str(invoice_id),
                    str(period_id),
                    str(invoice_client),
                    str(period_chain.client_id),
                )

            lines = self._lines(invoice_id)
            if any(line.work_period_id == period_id for line in lines):
                raise DuplicateInvoiceLineError(str(invoice_id), str(period_id))

            line = InvoiceLine(
                invoice_id=invoice.id,
                work_period_id=period_id,
                amount=amount,
                sort_order=max((ln.sort_order for ln in lines), default=-1) + 1,
                created_by_id=actor.actor_id,
            )
            self.session.add(line)
            self._recompute_amount(invoice)
            invoice.updated_by_id = actor.actor_id
            self._flush("add_line")

            logger.info(
                "invoice_line_added",
                extra={
                    "line_id": str(line.id),
                    "period_id": str(period_id),
                    "amount": amount,
                    "invoice_amount": invoice.amount,
                },
            )
            return self._line_dto(line)

    def update_line_overrides(
        self,
        actor: ActorContext,
        invoice_id: UUID,
        line_id: UUID,
        service_name: str | None = None,
        site_name: str | None = None,
        period_label: str | None = None,
    ) -> InvoiceLineInfo:
        """Edit display overrides.  None leaves a field alone; blank clears it."""
        self._get_invoice(invoice_id)
        self._require_invoice_access(actor, invoice_id)
        line = self._get_line(invoice_id, line_id)

        if service_name is not None:
            line.service_name_override = normalize_override(service_name)
        if site_name is not None:
            line.site_name_override = normalize_override(site_name)
        if period_label is not None:
            line.period_override = normalize_override(period_label)
        line.updated_by_id = actor.actor_id
        self._flush("update_line_overrides")
        return self._line_dto(line)

    def _get_line(self, invoice_id: UUID, line_id: UUID) -> InvoiceLine:
        if line_id is None:
            raise MissingIdentifierError("line_id")
        line = self.session.execute(
            select(InvoiceLine).where(
                InvoiceLine.id == line_id,
                InvoiceLine.invoice_id == invoice_id,
            )
        ).scalar_one_or_none()
        if line is None:
            raise InvoiceLineNotFoundError(str(line_id))
        return line

    def delete_line(self, actor: ActorContext, invoice_id: UUID, line_id: UUID) -> LineDeletion:
        """Remove a line and re-derive the total.

        Removing the last line removes the invoice together with its payments.
        """
        with LogContext.bind(actor_id=actor.actor_id, invoice_id=invoice_id):
            invoice = self._get_invoice(invoice_id, for_update=True)
            self._require_invoice_access(actor, invoice_id)
            line = self._get_line(invoice_id, line_id)

            remaining = [ln for ln in self._lines(invoice_id) if ln.id != line.id]
            if not remaining:
                self.session.execute(delete(Payment).where(Payment.invoice_id == invoice_id))
                self.session.execute(
                    delete(InvoiceLine).where(InvoiceLine.invoice_id == invoice_id)
                )
                self.session.delete(invoice)
                self._flush("delete_line")
                logger.info("invoice_deleted", extra={"reason": "last_line_removed"})
                return LineDeletion(invoice_id, line_id, invoice_deleted=True)

            if invoice.work_period_id == line.work_period_id:
                invoice.work_period_id = remaining[0].work_period_id
            self.session.delete(line)
            self._recompute_amount(invoice)
            invoice.updated_by_id = actor.actor_id
            self._flush("delete_line")

            logger.info(
                "invoice_line_deleted",
                extra={"line_id": str(line_id), "invoice_amount": invoice.amount},
            )
            return LineDeletion(
                invoice_id, line_id, invoice_deleted=False, invoice=self._to_dto(invoice)
            )

    # =========================================================================
    # Payments
    # =========================================================================

    def record_payment(
        self,
        actor: ActorContext,
        invoice_id: UUID,
        amount: int,
        paid_at: datetime | None = None,
        comment: str | None = None,
    ) -> PaymentInfo:
        """Record a partial or full payment.  Overpayment is accepted."""
        require_minor_units("amount", amount)
        if amount <= 0:
            raise InvalidAmountError("amount", amount)
        self._get_invoice(invoice_id)
        self._require_invoice_access(actor, invoice_id)

        payment = Payment(
            invoice_id=invoice_id,
            amount=amount,
            paid_at=paid_at or self._clock.now_utc(),
            comment=normalize_override(comment),
            created_by_id=actor.actor_id,
        )
        self.session.add(payment)
        self._flush("record_payment")

        logger.info(
            "payment_recorded",
            extra={
                "invoice_id": str(invoice_id),
                "payment_id": str(payment.id),
                "amount": amount,
            },
        )
        return self._payment_dto(payment)

    def delete_payment(self, actor: ActorContext, payment_id: UUID) -> None:
        if payment_id is None:
            raise MissingIdentifierError("payment_id")
        payment = self.session.get(Payment, payment_id)
        if payment is None:
            raise PaymentNotFoundError(str(payment_id))
        self._require_invoice_access(actor, payment.invoice_id)

        self.session.delete(payment)
        self._flush("delete_payment")
        logger.info(
            "payment_deleted",
            extra={"invoice_id": str(payment.invoice_id), "payment_id": str(payment_id)},
        )

    def list_payments(self, actor: ActorContext, invoice_id: UUID) -> list[PaymentInfo]:
        """Payments of an invoice, newest first."""
        self._get_invoice(invoice_id)
        self._require_invoice_access(actor, invoice_id)
        payments = self.session.execute(
            select(Payment)
            .where(Payment.invoice_id == invoice_id)
            .order_by(Payment.paid_at.desc(), Payment.created_at.desc())
        ).scalars()
        return [self._payment_dto(p) for p in payments]

    def outstanding_balance(self, actor: ActorContext, invoice_id: UUID) -> Money:
        """Invoice amount minus all payments, read fresh on each call."""
        invoice = self._get_invoice(invoice_id)
        self._require_invoice_access(actor, invoice_id)
        paid = self.session.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.invoice_id == invoice_id
            )
        ).scalar_one()
        return outstanding_balance(invoice.amount, [int(paid)], self._currency)
