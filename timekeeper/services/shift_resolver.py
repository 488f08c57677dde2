"""
Shift assignment resolution: which approved assignment governs an
employee on a given day.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.core.exceptions import NotFoundError, PendingAssignmentError
from timekeeper.core.timeutil import day_key, utcnow, weekday_name
from timekeeper.models.enums import ShiftAssignmentStatus
from timekeeper.models.shift import ShiftAssignment

logger = logging.getLogger(__name__)


def _covering(day: date):
    return (
        ShiftAssignment.start_date <= day,
        or_(ShiftAssignment.end_date.is_(None), ShiftAssignment.end_date >= day),
    )


async def resolve(db: AsyncSession, employee_id: str, day: date) -> ShiftAssignment:
    """Return the APPROVED assignment covering *day*.

    Raises ``PendingAssignmentError`` when only a PENDING one covers it and
    ``NotFoundError`` otherwise.
    """
    result = await db.execute(
        select(ShiftAssignment)
        .where(
            ShiftAssignment.employee_id == employee_id,
            ShiftAssignment.status == ShiftAssignmentStatus.APPROVED.value,
            *_covering(day),
        )
        .order_by(ShiftAssignment.created_at.asc(), ShiftAssignment.id.asc())
    )
    approved = list(result.scalars().all())
    if approved:
        if len(approved) > 1:
            logger.warning(
                "Employee %s has %d overlapping approved assignments on %s; using #%s",
                employee_id,
                len(approved),
                day_key(day),
                approved[0].id,
            )
        return approved[0]

    pending = await db.execute(
        select(ShiftAssignment.id)
        .where(
            ShiftAssignment.employee_id == employee_id,
            ShiftAssignment.status == ShiftAssignmentStatus.PENDING.value,
            *_covering(day),
        )
        .limit(1)
    )
    if pending.scalar_one_or_none() is not None:
        raise PendingAssignmentError(
            "You have a shift assignment, but it is pending approval. "
            "Please contact your manager to approve it."
        )

    any_assignment = await db.execute(
        select(ShiftAssignment.id).where(ShiftAssignment.employee_id == employee_id).limit(1)
    )
    if any_assignment.scalar_one_or_none() is not None:
        raise NotFoundError(
            f"You have a shift assignment, but it is not active for {day_key(day)}. "
            "Please check the assignment dates."
        )
    raise NotFoundError(
        f"No shift assignment found for employee {employee_id} on {day_key(day)}. "
        "Please contact HR to assign a shift."
    )


def is_rest_day(assignment: ShiftAssignment, day: date) -> bool:
    name = weekday_name(day).lower()
    return any(str(d).strip().lower() == name for d in (assignment.rest_days or []))


async def expire_assignments(db: AsyncSession, now: datetime | None = None) -> int:
    """Mark every assignment that ended before today as EXPIRED."""
    today = (now or utcnow()).date()
    result = await db.execute(
        update(ShiftAssignment)
        .where(
            ShiftAssignment.end_date.is_not(None),
            ShiftAssignment.end_date < today,
            ShiftAssignment.status != ShiftAssignmentStatus.EXPIRED.value,
        )
        .values(status=ShiftAssignmentStatus.EXPIRED.value)
    )
    await db.commit()
    count = result.rowcount or 0
    if count:
        logger.info("Expired %d shift assignment(s) ending before %s", count, day_key(today))
    return count
