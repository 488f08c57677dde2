"""
Structural inputs for the rule engines.

ORM rows and pydantic schemas both satisfy these protocols, so the engines
never import the persistence layer.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, time, timezone, tzinfo
from typing import Protocol

from timekeeper.core.timeutil import ensure_utc, parse_hhmm


class PunchLike(Protocol):
    type: str
    time: datetime


class RecordLike(Protocol):
    punches: Sequence[PunchLike]


class ShiftLike(Protocol):
    start_time: str | None
    end_time: str | None
    grace_period_minutes: int
    requires_approval_for_overtime: bool


class LatenessRuleLike(Protocol):
    grace_period_minutes: int | None
    deduction_for_each_minute: float


class OvertimeRuleLike(Protocol):
    active: bool
    approved: bool


def _kind(punch: PunchLike) -> str:
    # Enum members and plain strings both compare by value
    return getattr(punch.type, "value", punch.type)


def first_clock_in(punches: Sequence[PunchLike]) -> datetime | None:
    for punch in punches:
        if _kind(punch) == "IN":
            return ensure_utc(punch.time)
    return None


def last_clock_out(punches: Sequence[PunchLike]) -> datetime | None:
    for punch in reversed(punches):
        if _kind(punch) == "OUT":
            return ensure_utc(punch.time)
    return None


def wall_clock_on(moment: datetime, hhmm: str, tz: tzinfo = timezone.utc) -> datetime:
    """Place a shift's ``HH:mm`` on the calendar date of *moment* in *tz*."""
    local_day: date = moment.astimezone(tz).date()
    wall: time = parse_hhmm(hhmm)
    return datetime.combine(local_day, wall, tzinfo=tz)
