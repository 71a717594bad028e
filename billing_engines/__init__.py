"""
Billing Engines - Pure calculation functions.

Everything here is deterministic with no I/O: the same inputs always give the
same outputs.  Stateful orchestration lives in billing_services.

Engines:
    periods         Expected period calendar of a service
    reconciliation  Generated vs recorded periods
    adjustment      End-boundary shift and cascade plan
    invoicing       Invoice totals, balances, numbering
    commission      Expected commission, expense-item amounts
    tax             Tax and VAT on incomes
    access          Own-scope and view-all predicates

Usage:
    from billing_engines import generate_periods, reconcile_periods
"""

from billing_engines.access import can_access, system_role_grant, view_all_from_grants
from billing_engines.adjustment import (
    AdjustmentPlan,
    BoundaryChange,
    PeriodBounds,
    plan_adjustment,
)
from billing_engines.commission import (
    CommissionRates,
    ExpectedCommission,
    count_periods_in_window,
    expected_commission,
    period_expense_item_amount,
)
from billing_engines.invoicing import (
    invoice_total,
    next_invoice_number,
    outstanding_balance,
)
from billing_engines.periods import (
    ExpectedPeriod,
    default_horizon,
    generate_periods,
    suggest_next_period,
)
from billing_engines.reconciliation import (
    PersistedPeriod,
    ReconciledPeriod,
    reconcile_periods,
    unmatched_persisted,
)
from billing_engines.tax import TaxAmounts, compute_tax_amounts

__all__ = [
    # Periods
    "ExpectedPeriod",
    "generate_periods",
    "default_horizon",
    "suggest_next_period",
    # Reconciliation
    "PersistedPeriod",
    "ReconciledPeriod",
    "reconcile_periods",
    "unmatched_persisted",
    # Adjustment
    "PeriodBounds",
    "BoundaryChange",
    "AdjustmentPlan",
    "plan_adjustment",
    # Invoicing
    "invoice_total",
    "outstanding_balance",
    "next_invoice_number",
    # Commission
    "CommissionRates",
    "ExpectedCommission",
    "count_periods_in_window",
    "expected_commission",
    "period_expense_item_amount",
    # Tax
    "TaxAmounts",
    "compute_tax_amounts",
    # Access
    "can_access",
    "system_role_grant",
    "view_all_from_grants",
]
