"""TimeException: a claimed irregularity against one attendance record."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from timekeeper.db.base import Base


class TimeException(Base):
    __tablename__ = "time_exceptions"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    attendance_record_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("attendance_records.id"), nullable=False
    )
    type: str = Column(String(30), nullable=False)  # type: ignore[assignment]
    assigned_to: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    reason: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="OPEN")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
