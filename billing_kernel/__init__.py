"""
Billing Kernel

Persistence and domain core of the agency billing engine:
- Minor-unit money arithmetic
- Billing period, invoice and payment records
- Typed, machine-readable errors
- Structured JSON logging
"""

__version__ = "0.1.0"
