"""Pydantic schemas for attendance correction requests."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from timekeeper.core.timeutil import ensure_utc


class CorrectionCreate(BaseModel):
    # Any client-supplied status is ignored; requests always start SUBMITTED
    employee_id: str | None = None
    attendance_record_id: int
    clock_in: str | None = None
    clock_out: str | None = None
    reason: str | None = None
    manager_id: str | None = None

    @field_validator("reason")
    @classmethod
    def _reason(cls, v: str | None) -> str | None:
        if v is not None and len(v) > 1000:
            raise ValueError("Reason must not exceed 1000 characters")
        return v


class CorrectionRead(BaseModel):
    id: int
    employee_id: str
    attendance_record_id: int
    requested_clock_in: datetime | None
    requested_clock_out: datetime | None
    reason: str | None
    manager_id: str | None
    status: str
    created_at: datetime | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}

    @field_validator("requested_clock_in", "requested_clock_out")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else v
