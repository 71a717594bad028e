"""
Period Adjustment Planner.

Pure functions with deterministic behavior. No I/O.

Plans a manual shift of one period's end boundary and, optionally, the
cascade of that shift through the later periods of the same service.
PeriodService applies the plan under a row lock on the service.

Rules:
- The new end must be strictly after the period's start.
- ``delta = new_date_to - old_date_to`` in days; may be negative.
- The target always receives the new end.
- With cascade and a non-zero delta, every period whose ``date_from`` is
  strictly after the *old* end moves by ``delta`` on both boundaries, in
  ascending ``date_from`` order.  Durations, ordering and gaps between them
  are preserved.
- Without cascade, later periods are untouched even if that leaves a gap or
  an overlap.  Nothing is auto-healed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from uuid import UUID

from billing_engines.tracer import traced_engine
from billing_kernel.exceptions import InvalidAdjustmentError


@dataclass(frozen=True)
class PeriodBounds:
    id: UUID
    date_from: date
    date_to: date


@dataclass(frozen=True)
class BoundaryChange:
    period_id: UUID
    old_date_from: date
    old_date_to: date
    new_date_from: date
    new_date_to: date

    @property
    def duration_preserved(self) -> bool:
        return (self.new_date_to - self.new_date_from) == (self.old_date_to - self.old_date_from)


@dataclass(frozen=True)
class AdjustmentPlan:
    """Target change first, then cascaded changes in ascending order."""

    delta_days: int
    changes: tuple[BoundaryChange, ...]

    @property
    def target(self) -> BoundaryChange:
        return self.changes[0]

    @property
    def cascaded(self) -> tuple[BoundaryChange, ...]:
        return self.changes[1:]


@traced_engine("adjustment", "1.0", fingerprint_fields=("new_date_to", "cascade"))
def plan_adjustment(
    target: PeriodBounds,
    new_date_to: date,
    following: Sequence[PeriodBounds],
    cascade: bool,
) -> AdjustmentPlan:
    """Compute the boundary changes of an adjustment.

    Args:
        target: The period being adjusted.
        new_date_to: Its requested new end.
        following: Other periods of the same service.  Only those starting
            after the target's old end are considered.
        cascade: Whether later periods follow the shift.

    Raises:
        InvalidAdjustmentError: ``new_date_to <= target.date_from``.
    """
    if new_date_to <= target.date_from:
        raise InvalidAdjustmentError(str(target.id), target.date_from, new_date_to)

    delta_days = (new_date_to - target.date_to).days
    changes = [
        BoundaryChange(
            period_id=target.id,
            old_date_from=target.date_from,
            old_date_to=target.date_to,
            new_date_from=target.date_from,
            new_date_to=new_date_to,
        )
    ]

    if cascade and delta_days != 0:
        shift = timedelta(days=delta_days)
        later = sorted(
            (p for p in following if p.id != target.id and p.date_from > target.date_to),
            key=lambda p: (p.date_from, p.date_to),
        )
        changes.extend(
            BoundaryChange(
                period_id=p.id,
                old_date_from=p.date_from,
                old_date_to=p.date_to,
                new_date_from=p.date_from + shift,
                new_date_to=p.date_to + shift,
            )
            for p in later
        )

    return AdjustmentPlan(delta_days=delta_days, changes=tuple(changes))
