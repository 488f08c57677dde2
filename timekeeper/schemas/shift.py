"""Pydantic schemas for shifts and shift assignments."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from timekeeper.core.timeutil import WEEKDAY_NAMES
from timekeeper.models.enums import ShiftAssignmentStatus, ShiftType
from timekeeper.schemas.common import validate_hhmm

_WEEKDAYS = {d.lower(): d for d in WEEKDAY_NAMES}


# ── Shift definitions ──────────────────────────────────────────────
class ShiftCreate(BaseModel):
    name: str
    shift_type: ShiftType = ShiftType.NORMAL
    start_time: str
    end_time: str
    grace_period_minutes: int = Field(default=0, ge=0)
    requires_approval_for_overtime: bool = False
    active: bool = True

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be empty")
        if len(v) > 200:
            raise ValueError("Name must not exceed 200 characters")
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        return validate_hhmm(v)


class ShiftUpdate(BaseModel):
    name: str | None = None
    shift_type: ShiftType | None = None
    start_time: str | None = None
    end_time: str | None = None
    grace_period_minutes: int | None = Field(default=None, ge=0)
    requires_approval_for_overtime: bool | None = None
    active: bool | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str | None) -> str | None:
        return validate_hhmm(v) if v is not None else v


class ShiftRead(BaseModel):
    id: int
    name: str
    shift_type: str
    start_time: str
    end_time: str
    grace_period_minutes: int
    requires_approval_for_overtime: bool
    active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


# ── Assignments ────────────────────────────────────────────────────
def _normalise_rest_days(days: list[str]) -> list[str]:
    out: list[str] = []
    for d in days:
        name = _WEEKDAYS.get(d.strip().lower())
        if name is None:
            raise ValueError(f"Invalid rest day '{d}', expected a weekday name")
        if name not in out:
            out.append(name)
    return out


class ShiftAssignmentCreate(BaseModel):
    employee_id: str | None = None
    shift_id: int
    schedule_rule_id: int | None = None
    start_date: date
    end_date: date | None = None
    rest_days: list[str] = Field(default_factory=list)

    @field_validator("rest_days")
    @classmethod
    def _rest_days(cls, v: list[str]) -> list[str]:
        return _normalise_rest_days(v)

    @model_validator(mode="after")
    def _range(self) -> "ShiftAssignmentCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ShiftAssignmentUpdate(BaseModel):
    shift_id: int | None = None
    schedule_rule_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    rest_days: list[str] | None = None
    status: ShiftAssignmentStatus | None = None

    @field_validator("rest_days")
    @classmethod
    def _rest_days(cls, v: list[str] | None) -> list[str] | None:
        return _normalise_rest_days(v) if v is not None else v


class ShiftAssignmentRead(BaseModel):
    id: int
    employee_id: str
    shift_id: int
    schedule_rule_id: int | None = None
    start_date: date
    end_date: date | None
    rest_days: list[str]
    status: str
    created_at: datetime | None
    shift: ShiftRead | None = None

    model_config = {"from_attributes": True}


class ResolvedShiftResponse(BaseModel):
    employee_id: str
    date: str
    is_rest_day: bool
    assignment: ShiftAssignmentRead


class ExpireResponse(BaseModel):
    expired: int
