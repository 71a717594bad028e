"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Request handlers sitting on top of the engine need to tell apart "you sent a
bad date", "you may not touch this invoice" and "this invoice does not exist"
without parsing message strings. Every error therefore:
  1. Has its own exception class (catch by type, not message)
  2. Carries a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (ids, dates, amounts) as attributes

Example:
    try:
        ledger.add_line(actor, invoice_id, period_id, amount)
    except CrossClientInvoiceLineError as e:
        api_response(code=e.code, invoice=e.invoice_id, period=e.period_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BillingKernelError (base)
    |
    +-- ValidationError
    |   +-- MissingIdentifierError
    |   +-- InvalidDateRangeError
    |   +-- InvalidAdjustmentError
    |   +-- PeriodServiceMismatchError
    |   +-- PeriodOverlapError
    |   +-- CrossClientInvoiceLineError
    |   +-- InvalidAmountError
    |   +-- MissingLegalEntityError
    |
    +-- AuthorizationError
    |   +-- AccessDeniedError
    |
    +-- NotFoundError
    |   +-- ServiceNotFoundError
    |   +-- PeriodNotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- InvoiceLineNotFoundError
    |   +-- PaymentNotFoundError
    |   +-- LegalEntityNotFoundError
    |   +-- CostItemNotFoundError
    |
    +-- ConflictError
    |   +-- DuplicateInvoiceLineError
    |   +-- DuplicateInvoiceNumberError
    |   +-- DuplicateTaxExpenseError
    |   +-- PeriodHasInvoicesError
    |
    +-- StoreError
    |   +-- TransactionFailedError
    |
    +-- CurrencyError
        +-- InvalidCurrencyError
        +-- CurrencyMismatchError

===============================================================================
ERROR CODES
===============================================================================

| Code                        | Exception                     | Meaning                                 |
|-----------------------------|-------------------------------|-----------------------------------------|
| VALIDATION_FAILED           | ValidationError               | Input rejected before any mutation      |
| MISSING_IDENTIFIER          | MissingIdentifierError        | Required id or id list absent           |
| INVALID_DATE_RANGE          | InvalidDateRangeError         | date_to precedes date_from              |
| INVALID_ADJUSTMENT          | InvalidAdjustmentError        | New end would collapse the period       |
| PERIOD_SERVICE_MISMATCH     | PeriodServiceMismatchError    | Period belongs to another service       |
| PERIOD_OVERLAP              | PeriodOverlapError            | New period overlaps a recorded one      |
| CROSS_CLIENT_INVOICE_LINE   | CrossClientInvoiceLineError   | Line period of a different client       |
| INVALID_AMOUNT              | InvalidAmountError            | Amount not an integer of minor units    |
| MISSING_LEGAL_ENTITY        | MissingLegalEntityError       | Invoice has no resolvable legal entity  |
| ACCESS_DENIED               | AccessDeniedError             | Actor outside the record's scope        |
| *_NOT_FOUND                 | NotFoundError subclasses      | Id does not resolve                     |
| DUPLICATE_INVOICE_LINE      | DuplicateInvoiceLineError     | Period already on this invoice          |
| DUPLICATE_INVOICE_NUMBER    | DuplicateInvoiceNumberError   | Invoice number already used             |
| DUPLICATE_TAX_EXPENSE       | DuplicateTaxExpenseError      | Income already has a derived expense    |
| PERIOD_HAS_INVOICES         | PeriodHasInvoicesError        | Period cannot be deleted                |
| TRANSACTION_FAILED          | TransactionFailedError        | Store aborted the unit of work          |
| INVALID_CURRENCY            | InvalidCurrencyError          | Not an ISO 4217 code                    |
| CURRENCY_MISMATCH           | CurrencyMismatchError         | Arithmetic across currencies            |
"""

from datetime import date


class BillingKernelError(Exception):
    """Base exception for all billing kernel errors."""

    code: str = "BILLING_KERNEL_ERROR"


# =============================================================================
# Validation
# =============================================================================


class ValidationError(BillingKernelError):
    """Input rejected synchronously, before any state change."""

    code: str = "VALIDATION_FAILED"


class MissingIdentifierError(ValidationError):
    """A required identifier was not supplied."""

    code: str = "MISSING_IDENTIFIER"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required identifier: {field}")


class InvalidDateRangeError(ValidationError):
    """date_to is earlier than date_from."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, date_from: date, date_to: date):
        self.date_from = date_from
        self.date_to = date_to
        super().__init__(
            f"Invalid date range: {date_to.isoformat()} is before "
            f"{date_from.isoformat()}"
        )


class InvalidAdjustmentError(ValidationError):
    """The requested end date would collapse the period."""

    code: str = "INVALID_ADJUSTMENT"

    def __init__(self, period_id: str, date_from: date, new_date_to: date):
        self.period_id = period_id
        self.date_from = date_from
        self.new_date_to = new_date_to
        super().__init__(
            f"New end date {new_date_to.isoformat()} must be after period "
            f"start {date_from.isoformat()} (period {period_id})"
        )


class PeriodServiceMismatchError(ValidationError):
    """The period does not belong to the specified service."""

    code: str = "PERIOD_SERVICE_MISMATCH"

    def __init__(self, period_id: str, service_id: str):
        self.period_id = period_id
        self.service_id = service_id
        super().__init__(
            f"Period {period_id} does not belong to service {service_id}"
        )


class PeriodOverlapError(ValidationError):
    """A new period overlaps an existing period of the same service."""

    code: str = "PERIOD_OVERLAP"

    def __init__(self, service_id: str, date_from: date, date_to: date, existing_id: str):
        self.service_id = service_id
        self.date_from = date_from
        self.date_to = date_to
        self.existing_id = existing_id
        super().__init__(
            f"Period {date_from.isoformat()}..{date_to.isoformat()} overlaps "
            f"period {existing_id} of service {service_id}"
        )


class CrossClientInvoiceLineError(ValidationError):
    """The period belongs to a different client than the invoice."""

    code: str = "CROSS_CLIENT_INVOICE_LINE"

    def __init__(self, invoice_id: str, period_id: str, invoice_client_id: str, period_client_id: str):
        self.invoice_id = invoice_id
        self.period_id = period_id
        self.invoice_client_id = invoice_client_id
        self.period_client_id = period_client_id
        super().__init__(
            f"Period {period_id} (client {period_client_id}) cannot be added to "
            f"invoice {invoice_id} of client {invoice_client_id}"
        )


class InvalidAmountError(ValidationError):
    """Amount is not an integer number of minor units."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Invalid amount for {field}: {value!r}")


class MissingLegalEntityError(ValidationError):
    """Neither the caller nor the client supplied a legal entity."""

    code: str = "MISSING_LEGAL_ENTITY"

    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"No legal entity for invoice of client {client_id}")


# =============================================================================
# Authorization
# =============================================================================


class AuthorizationError(BillingKernelError):
    """Base for access control failures."""

    code: str = "AUTHORIZATION_FAILED"


class AccessDeniedError(AuthorizationError):
    """Actor is outside the ownership scope of the record."""

    code: str = "ACCESS_DENIED"

    def __init__(self, actor_id: str, section: str, record_id: str | None = None):
        self.actor_id = actor_id
        self.section = section
        self.record_id = record_id
        target = f" record {record_id}" if record_id else ""
        super().__init__(f"Actor {actor_id} may not access {section}{target}")


# =============================================================================
# Not found
# =============================================================================


class NotFoundError(BillingKernelError):
    """Base for unresolved identifiers."""

    code: str = "NOT_FOUND"
    entity: str = "Record"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"{self.entity} not found: {record_id}")


class ServiceNotFoundError(NotFoundError):
    code: str = "SERVICE_NOT_FOUND"
    entity: str = "Service"


class PeriodNotFoundError(NotFoundError):
    code: str = "PERIOD_NOT_FOUND"
    entity: str = "Period"


class InvoiceNotFoundError(NotFoundError):
    code: str = "INVOICE_NOT_FOUND"
    entity: str = "Invoice"


class InvoiceLineNotFoundError(NotFoundError):
    code: str = "INVOICE_LINE_NOT_FOUND"
    entity: str = "Invoice line"


class PaymentNotFoundError(NotFoundError):
    code: str = "PAYMENT_NOT_FOUND"
    entity: str = "Payment"


class LegalEntityNotFoundError(NotFoundError):
    code: str = "LEGAL_ENTITY_NOT_FOUND"
    entity: str = "Legal entity"


class CostItemNotFoundError(NotFoundError):
    code: str = "COST_ITEM_NOT_FOUND"
    entity: str = "Cost item"


# =============================================================================
# Conflict
# =============================================================================


class ConflictError(BillingKernelError):
    """Fatal for single-item calls, a per-item skip in bulk calls."""

    code: str = "CONFLICT"


class DuplicateInvoiceLineError(ConflictError):
    """The period is already on a line of this invoice."""

    code: str = "DUPLICATE_INVOICE_LINE"

    def __init__(self, invoice_id: str, period_id: str):
        self.invoice_id = invoice_id
        self.period_id = period_id
        super().__init__(f"Period {period_id} is already on invoice {invoice_id}")


class DuplicateInvoiceNumberError(ConflictError):
    code: str = "DUPLICATE_INVOICE_NUMBER"

    def __init__(self, invoice_number: str):
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number already in use: {invoice_number}")


class DuplicateTaxExpenseError(ConflictError):
    """The income already has a derived tax expense."""

    code: str = "DUPLICATE_TAX_EXPENSE"

    def __init__(self, income_id: str):
        self.income_id = income_id
        super().__init__(f"Income {income_id} already has a tax expense")


class PeriodHasInvoicesError(ConflictError):
    code: str = "PERIOD_HAS_INVOICES"

    def __init__(self, period_id: str, invoice_count: int):
        self.period_id = period_id
        self.invoice_count = invoice_count
        super().__init__(
            f"Period {period_id} is referenced by {invoice_count} invoice(s)"
        )


# =============================================================================
# Store
# =============================================================================


class StoreError(BillingKernelError):
    """Persistent store failure surfaced as an internal error."""

    code: str = "STORE_ERROR"


class TransactionFailedError(StoreError):
    """The unit of work was aborted and nothing was applied."""

    code: str = "TRANSACTION_FAILED"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


# =============================================================================
# Currency
# =============================================================================


class CurrencyError(BillingKernelError):
    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: {currency}")


class CurrencyMismatchError(CurrencyError):
    code: str = "CURRENCY_MISMATCH"

    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(f"Cannot combine amounts in {left} and {right}")
