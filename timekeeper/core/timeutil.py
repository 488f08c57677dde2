"""
Date / time helpers shared by the ledger, resolver and rule engines.

Every stored punch is UTC-aware; a "day" is always the UTC calendar day.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone

from timekeeper.core.exceptions import ValidationError

UTC_OFFSET_RE = re.compile(r"(?P<sign>[+-])(?P<hours>\d{2}):(?P<minutes>\d{2})")

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: str | datetime | None) -> datetime:
    """Parse an ISO-8601 timestamp, defaulting to *now*.

    Naive values are taken as UTC. Raises ``ValidationError`` on garbage.
    """
    if value is None:
        return utcnow()
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = value.strip()
    if not text:
        return utcnow()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValidationError("Invalid timestamp format") from None


def parse_day(value: str | date | datetime) -> date:
    """Accept ``YYYY-MM-DD`` or a full timestamp; return the UTC day."""
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    if isinstance(value, date):
        return value
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    return parse_timestamp(text).date()


def day_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Inclusive UTC bounds ``[00:00:00, 23:59:59.999999]`` of *day*."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(day, time.max, tzinfo=timezone.utc)
    return start, end


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def parse_hhmm(value: str) -> time:
    """Parse a shift wall-clock time such as ``09:00``."""
    try:
        hours, minutes = (int(p) for p in value.strip().split(":"))
        return time(hours, minutes)
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid time '{value}', expected HH:mm") from None


def parse_utc_offset(offset: str) -> timezone:
    """Turn ``+05:00`` / ``-03:30`` / ``Z`` into a fixed-offset tzinfo."""
    if offset == "Z":
        return timezone.utc
    match = UTC_OFFSET_RE.fullmatch(offset)
    if match is None:
        raise ValidationError(f"Invalid UTC offset '{offset}', expected +HH:mm, -HH:mm or Z")
    sign = 1 if match["sign"] == "+" else -1
    hours, minutes = int(match["hours"]), int(match["minutes"])
    if hours > 14 or minutes > 59:
        raise ValidationError(f"UTC offset '{offset}' is out of range")
    return timezone(timedelta(hours=sign * hours, minutes=sign * minutes))


def floor_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)
