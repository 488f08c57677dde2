"""String enums persisted in the database and exposed over the API."""

from __future__ import annotations

from enum import Enum


class PunchType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class ShiftType(str, Enum):
    NORMAL = "normal"
    OVERNIGHT = "overnight"
    SPLIT = "split"
    ROTATIONAL = "rotational"


class ShiftAssignmentStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class CorrectionStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ESCALATED = "ESCALATED"


class TimeExceptionType(str, Enum):
    MISSED_PUNCH = "MISSED_PUNCH"
    LATE = "LATE"
    EARLY_LEAVE = "EARLY_LEAVE"
    SHORT_TIME = "SHORT_TIME"
    OVERTIME_REQUEST = "OVERTIME_REQUEST"
    MANUAL_ADJUSTMENT = "MANUAL_ADJUSTMENT"


class TimeExceptionStatus(str, Enum):
    OPEN = "OPEN"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ESCALATED = "ESCALATED"
    RESOLVED = "RESOLVED"


class HolidayType(str, Enum):
    NATIONAL = "NATIONAL"
    ORGANIZATIONAL = "ORGANIZATIONAL"
    WEEKLY_REST = "WEEKLY_REST"


class Role(str, Enum):
    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"
