"""Database layer - engine, base classes and column types."""

from billing_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from billing_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from billing_kernel.db.types import MINOR_UNITS, PERCENT, SHORT_CODE, TITLE

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "MINOR_UNITS",
    "PERCENT",
    "SHORT_CODE",
    "TITLE",
]
