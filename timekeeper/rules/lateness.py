"""
Lateness engine: how late was the first clock-in, and what does it cost.
"""

from __future__ import annotations

from datetime import timezone, tzinfo

from pydantic import BaseModel

from timekeeper.core.timeutil import floor_minutes
from timekeeper.rules.base import (LatenessRuleLike, RecordLike, ShiftLike,
                                   first_clock_in, wall_clock_on)


class LatenessVerdict(BaseModel):
    is_late: bool = False
    minutes_late: int = 0
    minutes_late_after_grace: int = 0
    deduction: float = 0.0
    grace_period_applied: int = 0
    message: str


def effective_grace(shift: ShiftLike, rule: LatenessRuleLike) -> int:
    """Rule grace wins; a rule without one defers to the shift."""
    if rule.grace_period_minutes is not None:
        return rule.grace_period_minutes
    return shift.grace_period_minutes or 0


def evaluate_lateness(
    record: RecordLike,
    shift: ShiftLike,
    rule: LatenessRuleLike,
    tz: tzinfo = timezone.utc,
) -> LatenessVerdict:
    clock_in = first_clock_in(record.punches)
    if clock_in is None:
        return LatenessVerdict(message="No clock-in time found")
    if not shift.start_time:
        return LatenessVerdict(message="No shift start time found")

    shift_start = wall_clock_on(clock_in, shift.start_time, tz)
    diff = floor_minutes(clock_in - shift_start)

    grace = effective_grace(shift, rule)
    after_grace = max(0, diff - grace)
    deduction = after_grace * (rule.deduction_for_each_minute or 0.0)
    is_late = after_grace > 0

    if is_late:
        message = (
            f"Employee was {after_grace} minutes late after grace period. "
            f"Deduction: {deduction}"
        )
    elif diff > 0:
        message = f"Employee was {diff} minutes late but within grace period"
    else:
        message = "Employee clocked in on time"

    return LatenessVerdict(
        is_late=is_late,
        minutes_late=max(0, diff),
        minutes_late_after_grace=after_grace,
        deduction=deduction,
        grace_period_applied=grace,
        message=message,
    )
