"""
Time-exception service: persistence around the exception engine.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.core.exceptions import NotFoundError
from timekeeper.models.enums import TimeExceptionStatus
from timekeeper.models.time_exception import TimeException
from timekeeper.services import punch_ledger

logger = logging.getLogger(__name__)


async def create(
    db: AsyncSession,
    employee_id: str,
    attendance_record_id: int,
    type: str,
    reason: str | None = None,
    assigned_to: str | None = None,
    status: str = TimeExceptionStatus.OPEN.value,
) -> TimeException:
    """Persist the exception and link its id into the record."""
    record = await punch_ledger.get_record(db, attendance_record_id)

    exception = TimeException(
        employee_id=employee_id,
        attendance_record_id=attendance_record_id,
        type=type,
        reason=reason,
        assigned_to=assigned_to,
        status=status,
    )
    db.add(exception)
    await db.flush()
    await punch_ledger.link_exception(db, record, exception.id)
    await db.commit()

    logger.info(
        "Time exception #%s (%s) raised for %s on record #%s",
        exception.id,
        type,
        employee_id,
        attendance_record_id,
    )
    return exception


async def get(db: AsyncSession, exception_id: int) -> TimeException:
    result = await db.execute(
        select(TimeException)
        .where(TimeException.id == exception_id)
        .execution_options(populate_existing=True)
    )
    exception = result.scalar_one_or_none()
    if exception is None:
        raise NotFoundError(f"Time exception with ID {exception_id} not found")
    return exception


async def list_all(db: AsyncSession, employee_id: str | None = None) -> list[TimeException]:
    stmt = select(TimeException).order_by(TimeException.created_at.desc(), TimeException.id.desc())
    if employee_id is not None:
        stmt = stmt.where(TimeException.employee_id == employee_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update(db: AsyncSession, exception_id: int, **changes) -> TimeException:
    exception = await get(db, exception_id)
    for field, value in changes.items():
        setattr(exception, field, value)
    await db.commit()
    logger.info("Time exception #%s updated: %s", exception_id, ", ".join(sorted(changes)))
    return exception


async def set_status(db: AsyncSession, exception_id: int, status: TimeExceptionStatus) -> TimeException:
    exception = await get(db, exception_id)
    previous = exception.status
    exception.status = status.value
    await db.commit()
    logger.info("Time exception #%s: %s -> %s", exception_id, previous, status.value)
    return exception


async def approve(db: AsyncSession, exception_id: int) -> TimeException:
    return await set_status(db, exception_id, TimeExceptionStatus.APPROVED)


async def reject(db: AsyncSession, exception_id: int) -> TimeException:
    return await set_status(db, exception_id, TimeExceptionStatus.REJECTED)
