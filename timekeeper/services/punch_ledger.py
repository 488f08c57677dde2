"""
Punch ledger: the only writer of AttendanceRecord and its punches.

Every mutation of one (employee, day) record runs under an in-process keyed
lock and is stamped with ``updated_at`` so the parent row's ``version`` is
bumped; a concurrent writer in another process then fails with
``StaleDataError`` instead of silently overwriting.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.core.exceptions import (NotFoundError, OnLeaveError,
                                        RestDayError, StateConflictError,
                                        TerminatedEmployeeError,
                                        ValidationError)
from timekeeper.core.locks import KeyedLock
from timekeeper.core.timeutil import (day_key, ensure_utc, floor_minutes,
                                      parse_timestamp, utcnow)
from timekeeper.models.attendance import AttendancePunch, AttendanceRecord
from timekeeper.models.enums import PunchType
from timekeeper.rules.base import PunchLike
from timekeeper.services import shift_resolver
from timekeeper.services.reference_data import ReferenceDataRepository

logger = logging.getLogger(__name__)

record_locks = KeyedLock()


# ── Derived fields ──────────────────────────────────────────────────
def compute_work_minutes(punches: Sequence[PunchLike]) -> int:
    """Sum IN→OUT pairs in list order; unmatched punches add nothing."""
    total = 0
    opened: datetime | None = None
    for punch in punches:
        kind = getattr(punch.type, "value", punch.type)
        if kind == PunchType.IN.value:
            opened = ensure_utc(punch.time)
        elif kind == PunchType.OUT.value and opened is not None:
            total += floor_minutes(ensure_utc(punch.time) - opened)
            opened = None
    return total


def detect_missed_punch(punches: Sequence[PunchLike]) -> bool:
    ins = sum(1 for p in punches if getattr(p.type, "value", p.type) == PunchType.IN.value)
    outs = sum(1 for p in punches if getattr(p.type, "value", p.type) == PunchType.OUT.value)
    return ins != outs


def _recompute(record: AttendanceRecord) -> None:
    record.total_work_minutes = compute_work_minutes(record.punches)
    record.has_missed_punch = detect_missed_punch(record.punches)
    record.updated_at = utcnow()


def _require_employee(employee_id: str | None) -> str:
    if not employee_id or not employee_id.strip():
        raise ValidationError("Employee ID is required")
    return employee_id.strip()


async def _locked_record(
    db: AsyncSession, employee_id: str, key: str
) -> AttendanceRecord | None:
    result = await db.execute(
        select(AttendanceRecord)
        .where(AttendanceRecord.employee_id == employee_id, AttendanceRecord.date == key)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


# ── Clock events ────────────────────────────────────────────────────
async def clock_in(
    db: AsyncSession,
    reference: ReferenceDataRepository,
    employee_id: str | None,
    timestamp: str | datetime | None = None,
) -> AttendanceRecord:
    employee_id = _require_employee(employee_id)
    ts = parse_timestamp(timestamp)
    day = ts.date()

    if reference.is_terminated(employee_id, day):
        raise TerminatedEmployeeError("Cannot record attendance for terminated employee")
    if reference.is_on_leave(employee_id, day):
        raise OnLeaveError("Cannot clock in/out while on approved leave")

    assignment = await shift_resolver.resolve(db, employee_id, day)
    if shift_resolver.is_rest_day(assignment, day):
        raise RestDayError("Cannot clock in on rest day")

    key = day_key(day)
    async with record_locks.hold((employee_id, key)):
        record = await _locked_record(db, employee_id, key)
        if record is None:
            record = AttendanceRecord(
                employee_id=employee_id,
                date=key,
                punches=[],
                total_work_minutes=0,
                has_missed_punch=False,
                exception_ids=[],
                finalised_for_payroll=True,
            )
            db.add(record)

        record.punches.append(AttendancePunch(type=PunchType.IN.value, time=ts))
        _recompute(record)
        await db.commit()

    logger.info("Clock-in recorded for %s at %s (record #%s)", employee_id, ts.isoformat(), record.id)
    return record


async def clock_out(
    db: AsyncSession,
    employee_id: str | None,
    timestamp: str | datetime | None = None,
) -> AttendanceRecord:
    employee_id = _require_employee(employee_id)
    ts = parse_timestamp(timestamp)
    key = day_key(ts.date())

    async with record_locks.hold((employee_id, key)):
        record = await _locked_record(db, employee_id, key)
        if record is None or not record.punches:
            raise StateConflictError("Must clock in before clocking out")

        record.punches.append(AttendancePunch(type=PunchType.OUT.value, time=ts))
        _recompute(record)
        await db.commit()

    logger.info(
        "Clock-out recorded for %s at %s, %d min worked",
        employee_id,
        ts.isoformat(),
        record.total_work_minutes,
    )
    return record


# ── Corrections ─────────────────────────────────────────────────────
def _replace_or_insert(record: AttendanceRecord, kind: PunchType, when: datetime) -> None:
    existing = next(
        (p for p in record.punches if p.type == kind.value),
        None,
    )
    if existing is not None:
        existing.time = when
    elif kind is PunchType.IN:
        record.punches.insert(0, AttendancePunch(type=kind.value, time=when))
    else:
        record.punches.append(AttendancePunch(type=kind.value, time=when))


async def apply_correction(
    db: AsyncSession,
    record_id: int,
    clock_in: str | datetime | None = None,
    clock_out: str | datetime | None = None,
    *,
    commit: bool = True,
) -> AttendanceRecord:
    """Overwrite the first IN / OUT punch (or insert one) and recompute.

    With ``commit=False`` the caller owns the transaction.
    """
    record = await get_record(db, record_id)
    new_in = parse_timestamp(clock_in) if clock_in else None
    new_out = parse_timestamp(clock_out) if clock_out else None

    async with record_locks.hold((record.employee_id, record.date)):
        result = await db.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.id == record_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one()

        if new_in is not None:
            _replace_or_insert(record, PunchType.IN, new_in)
        if new_out is not None:
            _replace_or_insert(record, PunchType.OUT, new_out)
        _recompute(record)

        if commit:
            await db.commit()
        else:
            await db.flush()

    logger.info(
        "Correction applied to record #%s (in=%s, out=%s)",
        record_id,
        new_in.isoformat() if new_in else "-",
        new_out.isoformat() if new_out else "-",
    )
    return record


async def link_exception(db: AsyncSession, record: AttendanceRecord, exception_id: int) -> None:
    """Append an exception id to the record; the caller commits."""
    async with record_locks.hold((record.employee_id, record.date)):
        # Reassign so the JSON column is flagged dirty
        record.exception_ids = [*(record.exception_ids or []), exception_id]
        record.updated_at = utcnow()
        await db.flush()


# ── Reads ───────────────────────────────────────────────────────────
async def get_record(db: AsyncSession, record_id: int) -> AttendanceRecord:
    result = await db.execute(select(AttendanceRecord).where(AttendanceRecord.id == record_id))
    record = result.scalar_one_or_none()
    if record is None:
        raise NotFoundError(f"Attendance record with ID {record_id} not found")
    return record


async def get_by_date(db: AsyncSession, employee_id: str | None, day: date) -> AttendanceRecord | None:
    employee_id = _require_employee(employee_id)
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.date == day_key(day),
        )
    )
    return result.scalar_one_or_none()


async def get_today(db: AsyncSession, employee_id: str | None) -> AttendanceRecord | None:
    return await get_by_date(db, employee_id, utcnow().date())
