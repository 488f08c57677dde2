"""
Attendance endpoints: clock in/out, direct corrections, reads, reports.

Employees act for themselves; admin / hr / manager may pass another
``employee_id``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.api.v1.deps import (get_current_active_user, get_db,
                                    require_reviewer, resolve_employee_id)
from timekeeper.core.timeutil import day_key, parse_day
from timekeeper.models.attendance import AttendanceRecord
from timekeeper.models.user import User
from timekeeper.schemas.attendance import (AttendanceCorrection,
                                           AttendanceRecordRead, ClockRequest,
                                           DailyReportResponse,
                                           MonthlyReportResponse)
from timekeeper.services import punch_ledger, reporting
from timekeeper.services.reference_data import (ReferenceDataRepository,
                                                get_reference_data)
from timekeeper.services.reporting import RecordEvaluation

router = APIRouter(prefix="/attendance", tags=["attendance"])
logger = logging.getLogger(__name__)


# ── Clock events ────────────────────────────────────────────────────
@router.post("/clock-in", response_model=AttendanceRecordRead, status_code=201)
async def clock_in(
    body: ClockRequest,
    db: AsyncSession = Depends(get_db),
    reference: ReferenceDataRepository = Depends(get_reference_data),
    user: User = Depends(get_current_active_user),
) -> AttendanceRecord:
    """Append an IN punch to today's (or *timestamp*'s) record."""
    employee_id = resolve_employee_id(user, body.employee_id)
    return await punch_ledger.clock_in(db, reference, employee_id, body.timestamp)


@router.post("/clock-out", response_model=AttendanceRecordRead)
async def clock_out(
    body: ClockRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> AttendanceRecord:
    employee_id = resolve_employee_id(user, body.employee_id)
    return await punch_ledger.clock_out(db, employee_id, body.timestamp)


@router.patch("/correction/{record_id}", response_model=AttendanceRecordRead)
async def correct_attendance(
    record_id: int,
    body: AttendanceCorrection,
    db: AsyncSession = Depends(get_db),
    reviewer: User = Depends(require_reviewer),
) -> AttendanceRecord:
    """Directly overwrite a record's clock-in / clock-out (HR and managers)."""
    record = await punch_ledger.apply_correction(db, record_id, body.clock_in, body.clock_out)
    logger.info(
        "Direct correction of record #%s by %s (manager=%s): %s",
        record_id,
        reviewer.email,
        body.manager_id or "-",
        body.correction_reason or "no reason given",
    )
    return record


# ── Reports ─────────────────────────────────────────────────────────
@router.get("/daily-report", response_model=DailyReportResponse)
async def daily_report(
    date: str = Query(..., description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_reviewer),
) -> DailyReportResponse:
    day = parse_day(date)
    records = await reporting.daily_report(db, day)
    return DailyReportResponse(
        date=day_key(day),
        total_records=len(records),
        records=[AttendanceRecordRead.model_validate(r) for r in records],
    )


@router.get("/monthly-report", response_model=MonthlyReportResponse)
async def monthly_report(
    month: int = Query(...),
    year: int = Query(...),
    employee_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> MonthlyReportResponse:
    employee_id = resolve_employee_id(user, employee_id)
    records, summary = await reporting.monthly_report(db, employee_id, month, year)
    return MonthlyReportResponse(
        employee_id=employee_id,
        month=month,
        year=year,
        attendance_records=[AttendanceRecordRead.model_validate(r) for r in records],
        summary=summary,
    )


# ── Reads ───────────────────────────────────────────────────────────
@router.get("/today", response_model=AttendanceRecordRead | None)
async def today(
    employee_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> AttendanceRecord | None:
    """Today's record, or ``null`` before the first clock-in."""
    return await punch_ledger.get_today(db, resolve_employee_id(user, employee_id))


@router.get("/record", response_model=AttendanceRecordRead | None)
async def record_by_date(
    date: str = Query(..., description="YYYY-MM-DD"),
    employee_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> AttendanceRecord | None:
    return await punch_ledger.get_by_date(db, resolve_employee_id(user, employee_id), parse_day(date))


@router.get("/records/{record_id}/evaluation", response_model=RecordEvaluation)
async def evaluate_record(
    record_id: int,
    lateness_rule_id: int | None = Query(default=None),
    overtime_rule_id: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_reviewer),
) -> RecordEvaluation:
    """Lateness and overtime verdicts for one record against its shift."""
    return await reporting.evaluate_record(db, record_id, lateness_rule_id, overtime_rule_id)
