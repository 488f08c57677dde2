"""
CorrectionRequest: an employee's dispute of a day's punches.

Status only moves through ``services.correction_workflow``; rows are never
deleted.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from timekeeper.db.base import Base


class CorrectionRequest(Base):
    __tablename__ = "correction_requests"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    attendance_record_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("attendance_records.id"), nullable=False
    )
    requested_clock_in: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    requested_clock_out: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    reason: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    manager_id: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="SUBMITTED")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
