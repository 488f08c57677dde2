"""
AttendanceRecord & AttendancePunch: the punch ledger.

One record per (employee, UTC day). Punches are kept in list order via
``seq``; clock events append, corrections may insert an IN at the front.
``version`` is SQLAlchemy's optimistic-concurrency counter.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (JSON, Boolean, Column, DateTime, ForeignKey, Index,
                        Integer, String, UniqueConstraint)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from timekeeper.db.base import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
        Index("ix_attendance_employee_date", "employee_id", "date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    date: str = Column(String(10), nullable=False, index=True)  # type: ignore[assignment]  # YYYY-MM-DD
    total_work_minutes: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    has_missed_punch: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    exception_ids: list[int] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    finalised_for_payroll: bool = Column(Boolean, nullable=False, default=True)  # type: ignore[assignment]
    version: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_now)  # type: ignore[assignment]
    updated_at: datetime = Column(DateTime(timezone=True), default=_now)  # type: ignore[assignment]

    punches = relationship(
        "AttendancePunch",
        back_populates="record",
        order_by="AttendancePunch.seq",
        collection_class=ordering_list("seq"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}


class AttendancePunch(Base):
    __tablename__ = "attendance_punches"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    record_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("attendance_records.id"), nullable=False, index=True
    )
    seq: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    type: str = Column(String(3), nullable=False)  # type: ignore[assignment]  # IN | OUT
    time: datetime = Column(DateTime(timezone=True), nullable=False, index=True)  # type: ignore[assignment]

    record = relationship("AttendanceRecord", back_populates="punches")
