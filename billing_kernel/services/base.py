"""
Module: billing_kernel.services.base
Responsibility: Base class for stateful services that own a caller-provided
    Session.
Architecture position: Kernel > Services.  Outer-layer services in
    billing_services subclass it.

Invariants enforced:
    - Services flush() but never commit().  The caller owns the transaction
      (see billing_kernel.db.engine.session_scope).
    - Store failures during flush surface as TransactionFailedError; the
      caller's rollback discards the whole unit of work.
"""

from abc import ABC

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from billing_kernel.exceptions import InvalidAmountError, TransactionFailedError
from billing_kernel.logging_config import get_logger

logger = get_logger("services.base")


def require_minor_units(field: str, value: object, allow_none: bool = False) -> None:
    """Reject anything but an int (bools and floats included)."""
    if value is None and allow_none:
        return
    if type(value) is not int:
        raise InvalidAmountError(field, value)


class BaseService(ABC):

    def __init__(self, session: Session):
        self.session = session

    def _flush(self, operation: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            logger.error(
                "flush_failed",
                extra={"operation": operation},
                exc_info=True,
            )
            raise TransactionFailedError(operation, type(exc).__name__) from exc
