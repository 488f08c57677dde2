"""Pydantic schemas for time exceptions."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from timekeeper.models.enums import TimeExceptionStatus, TimeExceptionType


class TimeExceptionCreate(BaseModel):
    employee_id: str | None = None
    attendance_record_id: int
    type: TimeExceptionType
    reason: str | None = None
    assigned_to: str | None = None


class TimeExceptionUpdate(BaseModel):
    type: TimeExceptionType | None = None
    reason: str | None = None
    assigned_to: str | None = None
    status: TimeExceptionStatus | None = None


class TimeExceptionRead(BaseModel):
    id: int
    employee_id: str
    attendance_record_id: int
    type: str
    assigned_to: str | None
    reason: str | None
    status: str
    created_at: datetime | None

    model_config = {"from_attributes": True}
