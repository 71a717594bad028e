"""
Settings Loader (``billing_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen dataclasses of
``billing_config.schema``.  Keys missing from the file fall back to the
packaged ``defaults.yaml``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong value types  -> ``ValueError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from billing_config.schema import (
    AccessSettings,
    BillingSettings,
    DatabaseSettings,
    NotificationSettings,
)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Contents of one YAML file; an empty file gives an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursive merge; mappings merge, every other value replaces."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge(result[key], value)
        else:
            result[key] = value
    return result


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return value


def _as_str_set(value: Any, name: str) -> frozenset[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{name} must be a list of strings")
    return frozenset(value)


def parse_settings(data: dict[str, Any]) -> BillingSettings:
    database = data.get("database") or {}
    if "url" not in database:
        raise ValueError("database.url is required")
    access = data.get("access") or {}
    notifications = data.get("notifications") or {}
    invoice_number = data.get("invoice_number") or {}
    logging_section = data.get("logging") or {}

    return BillingSettings(
        database=DatabaseSettings(
            url=str(database["url"]),
            echo=bool(database.get("echo", False)),
            pool_size=_as_int(database.get("pool_size", 10), "database.pool_size"),
        ),
        currency=str(data.get("currency", "RUB")).upper(),
        horizon_months=_as_int(data.get("horizon_months", 1), "horizon_months"),
        invoice_number_floor=_as_int(
            invoice_number.get("floor", 100000), "invoice_number.floor"
        ),
        access=AccessSettings(
            scoped_sections=_as_str_set(
                access.get("scoped_sections", []), "access.scoped_sections"
            ),
            bulk_tax_roles=_as_str_set(
                access.get("bulk_tax_roles", ["OWNER", "CEO"]), "access.bulk_tax_roles"
            ),
        ),
        notifications=NotificationSettings(
            max_workers=_as_int(
                notifications.get("max_workers", 2), "notifications.max_workers"
            ),
        ),
        log_level=str(logging_section.get("level", "INFO")).upper(),
    )


def load_settings_file(path: Path | None = None) -> BillingSettings:
    """Defaults merged with ``path`` (when given), parsed."""
    data = load_yaml_file(DEFAULTS_PATH)
    if path is not None:
        data = merge(data, load_yaml_file(path))
    return parse_settings(data)
