"""
Shift catalog & shift assignments.

Shifts are reference data; an assignment binds an employee to a shift for
a date range and only counts once it is APPROVED.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (JSON, Boolean, Column, Date, DateTime, ForeignKey,
                        Index, Integer, String)
from sqlalchemy.orm import relationship

from timekeeper.db.base import Base


class Shift(Base):
    __tablename__ = "shifts"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    shift_type: str = Column(String(20), nullable=False, default="normal")  # type: ignore[assignment]
    start_time: str = Column(String(5), nullable=False)  # type: ignore[assignment]  # HH:mm
    end_time: str = Column(String(5), nullable=False)  # type: ignore[assignment]  # HH:mm
    grace_period_minutes: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    requires_approval_for_overtime: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    active: bool = Column(Boolean, nullable=False, default=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class ShiftAssignment(Base):
    __tablename__ = "shift_assignments"
    __table_args__ = (
        Index("ix_assignment_employee_dates", "employee_id", "start_date", "end_date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    shift_id: int = Column(Integer, ForeignKey("shifts.id"), nullable=False)  # type: ignore[assignment]
    schedule_rule_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("schedule_rules.id"), nullable=True
    )
    start_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    end_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    rest_days: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="PENDING")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    shift = relationship("Shift", lazy="selectin")
