"""ORM models for the billing kernel."""

from billing_kernel.models.client import Client, LegalEntity, Site
from billing_kernel.models.invoice import Invoice, InvoiceLine, Payment
from billing_kernel.models.ledger import CostItem, Expense, Income
from billing_kernel.models.service import Service, ServiceExpenseItem
from billing_kernel.models.work_period import PeriodExpenseItem, WorkPeriod

__all__ = [
    "LegalEntity",
    "Client",
    "Site",
    "Service",
    "ServiceExpenseItem",
    "WorkPeriod",
    "PeriodExpenseItem",
    "Invoice",
    "InvoiceLine",
    "Payment",
    "CostItem",
    "Income",
    "Expense",
]
