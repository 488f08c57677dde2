"""
Daily / monthly attendance reporting and per-record rule evaluation.

Reads only. Lateness and overtime are worked out with the rule engines
against the approved shift that covered each day.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date

from pydantic import BaseModel
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.core.config import settings
from timekeeper.core.exceptions import NotFoundError, ValidationError
from timekeeper.core.timeutil import day_bounds, day_key, parse_utc_offset
from timekeeper.models.attendance import AttendancePunch, AttendanceRecord
from timekeeper.models.enums import ShiftAssignmentStatus
from timekeeper.models.rules import LatenessRule, OvertimeRule
from timekeeper.models.shift import ShiftAssignment
from timekeeper.rules.lateness import LatenessVerdict, evaluate_lateness
from timekeeper.rules.overtime import OvertimeVerdict, evaluate_overtime
from timekeeper.services import punch_ledger, shift_resolver

logger = logging.getLogger(__name__)


class MonthlySummary(BaseModel):
    total_working_days: int
    days_present: int
    days_absent: int
    total_late_count: int
    total_overtime_minutes: int
    total_work_minutes: int


class RecordEvaluation(BaseModel):
    attendance_record_id: int
    employee_id: str
    date: str
    shift_id: int
    lateness_rule_id: int
    overtime_rule_id: int
    lateness: LatenessVerdict
    overtime: OvertimeVerdict


async def daily_report(db: AsyncSession, day: date) -> list[AttendanceRecord]:
    """Records holding at least one punch inside the UTC day."""
    start, end = day_bounds(day)
    ids = (
        select(AttendancePunch.record_id)
        .where(AttendancePunch.time >= start, AttendancePunch.time <= end)
        .distinct()
    )
    result = await db.execute(
        select(AttendanceRecord)
        .where(AttendanceRecord.id.in_(ids))
        .order_by(AttendanceRecord.employee_id, AttendanceRecord.id)
    )
    return list(result.scalars().all())


async def first_active_lateness_rule(db: AsyncSession) -> LatenessRule | None:
    result = await db.execute(
        select(LatenessRule).where(LatenessRule.active.is_(True)).order_by(LatenessRule.id).limit(1)
    )
    return result.scalar_one_or_none()


async def first_active_overtime_rule(db: AsyncSession) -> OvertimeRule | None:
    result = await db.execute(
        select(OvertimeRule).where(OvertimeRule.active.is_(True)).order_by(OvertimeRule.id).limit(1)
    )
    return result.scalar_one_or_none()


def _covering_assignment(assignments: list[ShiftAssignment], day: date) -> ShiftAssignment | None:
    # Same pick as the resolver: earliest created wins
    for assignment in assignments:
        if assignment.start_date <= day and (assignment.end_date is None or assignment.end_date >= day):
            return assignment
    return None


async def monthly_report(
    db: AsyncSession, employee_id: str | None, month: int, year: int
) -> tuple[list[AttendanceRecord], MonthlySummary]:
    if not employee_id or not employee_id.strip():
        raise ValidationError("Employee ID is required")
    if month < 1 or month > 12:
        raise ValidationError("Month must be between 1 and 12")
    if year < 1900 or year > 2100:
        raise ValidationError("Year must be a valid year")

    days_in_month = calendar.monthrange(year, month)[1]
    first_day = date(year, month, 1)
    last_day = date(year, month, days_in_month)

    result = await db.execute(
        select(AttendanceRecord)
        .where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.date >= day_key(first_day),
            AttendanceRecord.date <= day_key(last_day),
        )
        .order_by(AttendanceRecord.date)
    )
    records = list(result.scalars().all())

    assignments_result = await db.execute(
        select(ShiftAssignment)
        .where(
            ShiftAssignment.employee_id == employee_id,
            ShiftAssignment.status == ShiftAssignmentStatus.APPROVED.value,
            ShiftAssignment.start_date <= last_day,
            or_(ShiftAssignment.end_date.is_(None), ShiftAssignment.end_date >= first_day),
        )
        .order_by(ShiftAssignment.created_at.asc(), ShiftAssignment.id.asc())
    )
    assignments = list(assignments_result.scalars().all())
    lateness_rule = await first_active_lateness_rule(db)
    overtime_rule = await first_active_overtime_rule(db)
    tz = parse_utc_offset(settings.SHIFT_UTC_OFFSET)

    late_count = 0
    overtime_minutes = 0
    for record in records:
        if not record.punches:
            continue
        assignment = _covering_assignment(assignments, date.fromisoformat(record.date))
        if assignment is None or assignment.shift is None:
            continue
        if lateness_rule is not None:
            if evaluate_lateness(record, assignment.shift, lateness_rule, tz).is_late:
                late_count += 1
        if overtime_rule is not None:
            overtime_minutes += evaluate_overtime(record, assignment.shift, overtime_rule, tz).overtime_minutes

    summary = MonthlySummary(
        total_working_days=days_in_month,
        days_present=sum(1 for r in records if r.punches and not r.has_missed_punch),
        days_absent=days_in_month - len(records),
        total_late_count=late_count,
        total_overtime_minutes=overtime_minutes,
        total_work_minutes=sum(r.total_work_minutes or 0 for r in records),
    )
    logger.debug("Monthly report %s %04d-%02d: %s", employee_id, year, month, summary)
    return records, summary


async def evaluate_record(
    db: AsyncSession,
    record_id: int,
    lateness_rule_id: int | None = None,
    overtime_rule_id: int | None = None,
) -> RecordEvaluation:
    """Both verdicts for one employee-day, against its approved shift."""
    record = await punch_ledger.get_record(db, record_id)
    assignment = await shift_resolver.resolve(db, record.employee_id, date.fromisoformat(record.date))

    if lateness_rule_id is not None:
        lateness_rule = await db.get(LatenessRule, lateness_rule_id)
        if lateness_rule is None:
            raise NotFoundError(f"Lateness rule with ID {lateness_rule_id} not found")
    else:
        lateness_rule = await first_active_lateness_rule(db)
        if lateness_rule is None:
            raise NotFoundError("No active lateness rule configured")

    if overtime_rule_id is not None:
        overtime_rule = await db.get(OvertimeRule, overtime_rule_id)
        if overtime_rule is None:
            raise NotFoundError(f"Overtime rule with ID {overtime_rule_id} not found")
    else:
        overtime_rule = await first_active_overtime_rule(db)
        if overtime_rule is None:
            raise NotFoundError("No active overtime rule configured")

    tz = parse_utc_offset(settings.SHIFT_UTC_OFFSET)
    return RecordEvaluation(
        attendance_record_id=record.id,
        employee_id=record.employee_id,
        date=record.date,
        shift_id=assignment.shift_id,
        lateness_rule_id=lateness_rule.id,
        overtime_rule_id=overtime_rule.id,
        lateness=evaluate_lateness(record, assignment.shift, lateness_rule, tz),
        overtime=evaluate_overtime(record, assignment.shift, overtime_rule, tz),
    )
