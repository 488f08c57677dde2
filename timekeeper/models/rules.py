"""
Lateness / overtime / schedule rule configuration: evaluated, never owned by
a record.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String

from timekeeper.db.base import Base


class LatenessRule(Base):
    __tablename__ = "lateness_rules"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    description: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    # NULL means "use the shift's own grace period"
    grace_period_minutes: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    deduction_for_each_minute: float = Column(Float, nullable=False, default=0.0)  # type: ignore[assignment]
    active: bool = Column(Boolean, nullable=False, default=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class OvertimeRule(Base):
    __tablename__ = "overtime_rules"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    description: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    active: bool = Column(Boolean, nullable=False, default=True)  # type: ignore[assignment]
    approved: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class ScheduleRule(Base):
    """A named working pattern (e.g. ``Mon-Fri 9-5``) an assignment may reference."""

    __tablename__ = "schedule_rules"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    pattern: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    active: bool = Column(Boolean, nullable=False, default=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
