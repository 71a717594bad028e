"""
Settings schema.

Frozen dataclasses the loader parses YAML into.  Nothing outside
billing_config reads YAML or environment variables directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    echo: bool = False
    pool_size: int = 10


@dataclass(frozen=True)
class AccessSettings:
    scoped_sections: frozenset[str] = frozenset()
    bulk_tax_roles: frozenset[str] = frozenset({"OWNER", "CEO"})


@dataclass(frozen=True)
class NotificationSettings:
    max_workers: int = 2


@dataclass(frozen=True)
class BillingSettings:
    database: DatabaseSettings
    currency: str = "RUB"
    horizon_months: int = 1
    invoice_number_floor: int = 100000
    access: AccessSettings = field(default_factory=AccessSettings)
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.horizon_months < 0:
            raise ValueError("horizon_months must be non-negative")
        if self.invoice_number_floor < 1:
            raise ValueError("invoice_number.floor must be positive")
        if self.notifications.max_workers < 1:
            raise ValueError("notifications.max_workers must be at least 1")
