"""
billing_services -- stateful orchestration over a caller-provided Session.

Layering:
    billing_services -> billing_engines (pure) -> billing_kernel.domain
    billing_services -> billing_kernel (models, selectors, db)

Services flush but never commit; wrap calls in
``billing_kernel.db.session_scope()`` or an equivalent transaction.
"""

from billing_services.access_scope import (
    AccessScopeResolver,
    PermissionGrantSource,
    StaticGrantSource,
)
from billing_services.commission_service import CommissionService, EmployeeEarnings
from billing_services.invoice_ledger import InvoiceLedger, LineDeletion, NewInvoiceLine
from billing_services.notifications import (
    BulkTaxExpensesCreated,
    LoggingNotificationSink,
    NotificationDispatcher,
    NotificationSink,
    RecordingNotificationSink,
)
from billing_services.period_service import (
    ExpectedPeriodsView,
    PeriodService,
    SuggestedPeriod,
)
from billing_services.tax_expense_service import (
    BulkTaxResult,
    SkippedIncome,
    SkipReason,
    TaxableIncome,
    TaxExpenseService,
)

__all__ = [
    "AccessScopeResolver",
    "BulkTaxExpensesCreated",
    "BulkTaxResult",
    "CommissionService",
    "EmployeeEarnings",
    "ExpectedPeriodsView",
    "InvoiceLedger",
    "LineDeletion",
    "LoggingNotificationSink",
    "NewInvoiceLine",
    "NotificationDispatcher",
    "NotificationSink",
    "PeriodService",
    "PermissionGrantSource",
    "RecordingNotificationSink",
    "SkipReason",
    "SkippedIncome",
    "StaticGrantSource",
    "SuggestedPeriod",
    "TaxExpenseService",
    "TaxableIncome",
]
