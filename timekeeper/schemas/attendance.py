"""Pydantic schemas for the punch ledger and attendance reports."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from timekeeper.core.timeutil import ensure_utc
from timekeeper.services.reporting import MonthlySummary


# ── Clock events ────────────────────────────────────────────────────
class ClockRequest(BaseModel):
    employee_id: str | None = None
    # Raw string so a malformed value surfaces as a domain validation error
    timestamp: str | None = None

    @field_validator("employee_id")
    @classmethod
    def _employee_id(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if len(v) > 64:
            raise ValueError("Employee ID must not exceed 64 characters")
        return v or None


class AttendanceCorrection(BaseModel):
    """Direct correction by HR / a manager, bypassing the request workflow."""

    clock_in: str | None = None
    clock_out: str | None = None
    manager_id: str | None = None
    correction_reason: str | None = None


# ── Records ─────────────────────────────────────────────────────────
class PunchRead(BaseModel):
    type: str
    time: datetime

    model_config = {"from_attributes": True}

    @field_validator("time")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class AttendanceRecordRead(BaseModel):
    id: int
    employee_id: str
    date: str
    punches: list[PunchRead] = Field(default_factory=list)
    total_work_minutes: int
    has_missed_punch: bool
    exception_ids: list[int] = Field(default_factory=list)
    finalised_for_payroll: bool
    version: int
    created_at: datetime | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}


# ── Reports ─────────────────────────────────────────────────────────
class DailyReportResponse(BaseModel):
    date: str
    total_records: int
    records: list[AttendanceRecordRead]


class MonthlyReportResponse(BaseModel):
    employee_id: str
    month: int
    year: int
    attendance_records: list[AttendanceRecordRead]
    summary: MonthlySummary


# ── Health / Status ────────────────────────────────────────────────
class HealthResponse(BaseModel):
    db: bool
    redis: bool


class StatusResponse(BaseModel):
    today_records: int
    open_corrections: int
    open_exceptions: int
    status: str
