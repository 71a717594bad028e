"""
Notification dispatch -- fire-and-forget requests to a delivery collaborator.

The engine never waits for delivery and never fails an operation because a
notification could not be sent.  Sinks run on a small thread pool; any
exception they raise is logged and dropped.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

from billing_kernel.logging_config import get_logger

logger = get_logger("services.notifications")


@dataclass(frozen=True)
class BulkTaxExpensesCreated:
    count: int
    total: int
    legal_entity_name: str
    actor_name: str

    @property
    def kind(self) -> str:
        return "bulk_tax_expenses_created"


class NotificationSink(Protocol):
    def send(self, notification: object) -> None:
        ...


class LoggingNotificationSink:
    """Default sink: writes the notification to the log."""

    def send(self, notification: object) -> None:
        logger.info(
            "notification_sent",
            extra={
                "notification_kind": getattr(notification, "kind", type(notification).__name__),
                "notification": repr(notification),
            },
        )


class RecordingNotificationSink:
    """Keeps every notification in memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.sent: list[object] = []

    def send(self, notification: object) -> None:
        with self._lock:
            self.sent.append(notification)


class NotificationDispatcher:

    def __init__(self, sink: NotificationSink | None = None, max_workers: int = 2):
        self._sink = sink or LoggingNotificationSink()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="billing-notify"
        )

    def notify(self, notification: object) -> Future:
        """Submit and return immediately."""
        return self._executor.submit(self._deliver, notification)

    def _deliver(self, notification: object) -> None:
        try:
            self._sink.send(notification)
        except Exception:
            logger.warning(
                "notification_failed",
                extra={"notification_kind": getattr(notification, "kind", None)},
                exc_info=True,
            )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
