"""Pydantic schemas for lateness, overtime and schedule rules and holidays."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import (BaseModel, Field, ValidationInfo, field_validator,
                      model_validator)

from timekeeper.models.enums import HolidayType


def _clean_name(v: str, label: str = "Name") -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{label} must not be empty")
    if len(v) > 200:
        raise ValueError(f"{label} must not exceed 200 characters")
    return v


# ── Lateness rules ─────────────────────────────────────────────────
class LatenessRuleCreate(BaseModel):
    name: str
    description: str | None = None
    grace_period_minutes: int | None = Field(default=None, ge=0)
    deduction_for_each_minute: float = Field(default=0.0, ge=0)
    active: bool = True

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v)


class LatenessRuleUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    grace_period_minutes: int | None = Field(default=None, ge=0)
    deduction_for_each_minute: float | None = Field(default=None, ge=0)
    active: bool | None = None


class LatenessRuleRead(BaseModel):
    id: int
    name: str
    description: str | None
    grace_period_minutes: int | None
    deduction_for_each_minute: float
    active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


# ── Overtime rules ─────────────────────────────────────────────────
class OvertimeRuleCreate(BaseModel):
    name: str
    description: str | None = None
    active: bool = True
    approved: bool = False

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v)


class OvertimeRuleUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    active: bool | None = None
    approved: bool | None = None


class OvertimeRuleRead(BaseModel):
    id: int
    name: str
    description: str | None
    active: bool
    approved: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


# ── Schedule rules ─────────────────────────────────────────────────
class ScheduleRuleCreate(BaseModel):
    name: str
    pattern: str
    active: bool = True

    @field_validator("name", "pattern")
    @classmethod
    def _text(cls, v: str, info: ValidationInfo) -> str:
        return _clean_name(v, info.field_name.capitalize())


class ScheduleRuleUpdate(BaseModel):
    name: str | None = None
    pattern: str | None = None
    active: bool | None = None

    @field_validator("name", "pattern")
    @classmethod
    def _text(cls, v: str | None, info: ValidationInfo) -> str | None:
        return _clean_name(v, info.field_name.capitalize()) if v is not None else v


class ScheduleRuleRead(BaseModel):
    id: int
    name: str
    pattern: str
    active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


# ── Holidays ───────────────────────────────────────────────────────
class HolidayCreate(BaseModel):
    type: HolidayType
    start_date: date
    end_date: date | None = None
    name: str | None = None
    active: bool = True

    @model_validator(mode="after")
    def _range(self) -> "HolidayCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class HolidayUpdate(BaseModel):
    type: HolidayType | None = None
    start_date: date | None = None
    end_date: date | None = None
    name: str | None = None
    active: bool | None = None


class HolidayRead(BaseModel):
    id: int
    type: str
    start_date: date
    end_date: date | None
    name: str | None
    active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}
