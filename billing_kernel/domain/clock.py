"""
Injectable clocks.

Service code never calls ``datetime.now()`` or ``date.today()``.  The default
period horizon ("today + one month"), invoice dates, payment timestamps and
PDF generation stamps all read a Clock handed in at construction.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

_DEFAULT_INSTANT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current instant.  ``now()`` is always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)

    def today(self) -> date:
        """Billing date: the UTC calendar date of the current instant."""
        return self.now_utc().date()


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock frozen at one instant until moved explicitly.

    ``set_date`` pins the clock to noon UTC so that ``today()`` cannot slip
    across midnight whatever offsets the tests use.
    """

    def __init__(self, instant: datetime | None = None):
        self._instant = instant or _DEFAULT_INSTANT

    def now(self) -> datetime:
        return self._instant

    def set_instant(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")
        self._instant = instant

    def set_date(self, day: date) -> None:
        self.set_instant(datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc))

    def advance(self, *, days: int = 0, seconds: int = 0) -> datetime:
        """Move forward and return the new instant."""
        self._instant += timedelta(days=days, seconds=seconds)
        return self._instant
