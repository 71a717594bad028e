"""Service base classes for the billing kernel."""

from billing_kernel.services.base import BaseService

__all__ = ["BaseService"]
