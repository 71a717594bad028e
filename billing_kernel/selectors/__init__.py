"""Read-only query selectors."""

from billing_kernel.selectors.base import BaseSelector
from billing_kernel.selectors.ownership_selector import OwnershipSelector
from billing_kernel.selectors.report_selector import (
    ReportSelector,
    ServiceCommissionInputs,
    ServiceSummary,
)

__all__ = [
    "BaseSelector",
    "OwnershipSelector",
    "ReportSelector",
    "ServiceCommissionInputs",
    "ServiceSummary",
]
