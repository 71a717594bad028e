"""
billing_config -- single public entrypoint for runtime settings.

Responsibility:
    ``get_settings()`` is the only way components obtain settings.  It loads
    the packaged defaults, merges the file named by ``BILLING_CONFIG_PATH``
    (when set), applies ``BILLING_DATABASE_URL`` (when set) and caches the
    result.

Architecture position:
    Configuration -- sits above ``billing_kernel`` and beside
    ``billing_services``.  The kernel MUST NEVER import from billing_config.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import replace
from pathlib import Path

from billing_config.loader import load_settings_file
from billing_config.schema import (
    AccessSettings,
    BillingSettings,
    DatabaseSettings,
    NotificationSettings,
)

_logger = logging.getLogger("billing_kernel.config")

CONFIG_PATH_ENV = "BILLING_CONFIG_PATH"
DATABASE_URL_ENV = "BILLING_DATABASE_URL"

_cached: BillingSettings | None = None
_lock = threading.Lock()


def load_settings(path: Path | None = None) -> BillingSettings:
    """Load settings from ``path`` (or the environment) without caching."""
    if path is None and os.environ.get(CONFIG_PATH_ENV):
        path = Path(os.environ[CONFIG_PATH_ENV])
    settings = load_settings_file(path)

    url_override = os.environ.get(DATABASE_URL_ENV)
    if url_override:
        settings = replace(settings, database=replace(settings.database, url=url_override))

    _logger.info(
        "settings_loaded",
        extra={
            "config_path": str(path) if path else None,
            "currency": settings.currency,
            "horizon_months": settings.horizon_months,
        },
    )
    return settings


def get_settings() -> BillingSettings:
    """Cached settings; loaded on first call."""
    global _cached
    with _lock:
        if _cached is None:
            _cached = load_settings()
        return _cached


def clear_settings_cache() -> None:
    """Forget cached settings. FOR TESTING ONLY."""
    global _cached
    with _lock:
        _cached = None


__all__ = [
    "AccessSettings",
    "BillingSettings",
    "DatabaseSettings",
    "NotificationSettings",
    "clear_settings_cache",
    "get_settings",
    "load_settings",
]
