"""
Overtime engine: minutes worked past the shift end on the last clock-out.
"""

from __future__ import annotations

from datetime import timezone, tzinfo

from pydantic import BaseModel

from timekeeper.core.timeutil import floor_minutes
from timekeeper.rules.base import (OvertimeRuleLike, RecordLike, ShiftLike,
                                   last_clock_out, wall_clock_on)


class OvertimeVerdict(BaseModel):
    has_overtime: bool = False
    overtime_minutes: int = 0
    is_rule_active: bool = True
    requires_approval: bool = False
    is_approved: bool = False
    message: str


def evaluate_overtime(
    record: RecordLike,
    shift: ShiftLike,
    rule: OvertimeRuleLike,
    tz: tzinfo = timezone.utc,
) -> OvertimeVerdict:
    if not rule.active:
        return OvertimeVerdict(is_rule_active=False, message="Overtime rule is not active")

    requires_approval = bool(shift.requires_approval_for_overtime)
    is_approved = bool(rule.approved)

    clock_out = last_clock_out(record.punches)
    if clock_out is None:
        return OvertimeVerdict(
            requires_approval=requires_approval,
            is_approved=is_approved,
            message="No clock-out time found",
        )
    if not shift.end_time:
        return OvertimeVerdict(
            requires_approval=requires_approval,
            is_approved=is_approved,
            message="No shift end time found",
        )

    shift_end = wall_clock_on(clock_out, shift.end_time, tz)
    overtime = max(0, floor_minutes(clock_out - shift_end))

    if overtime == 0:
        message = "No overtime detected"
    elif requires_approval and not is_approved:
        message = f"Employee worked {overtime} minutes overtime but requires approval"
    elif requires_approval:
        message = f"Employee worked {overtime} minutes overtime (approved)"
    else:
        message = f"Employee worked {overtime} minutes overtime"

    return OvertimeVerdict(
        has_overtime=overtime > 0,
        overtime_minutes=overtime,
        requires_approval=requires_approval,
        is_approved=is_approved,
        message=message,
    )
