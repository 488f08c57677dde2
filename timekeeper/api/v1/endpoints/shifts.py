"""
Shift assignment endpoints.

New assignments always start PENDING; a reviewer approves them through
``PATCH /shifts/{id}``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.api.v1.deps import (ensure_owner, get_current_active_user,
                                    get_db, require_reviewer,
                                    resolve_employee_id)
from timekeeper.core.exceptions import NotFoundError, ValidationError
from timekeeper.core.timeutil import day_key, parse_day, utcnow
from timekeeper.models.enums import ShiftAssignmentStatus
from timekeeper.models.rules import ScheduleRule
from timekeeper.models.shift import Shift, ShiftAssignment
from timekeeper.models.user import User
from timekeeper.schemas.shift import (ExpireResponse, ResolvedShiftResponse,
                                      ShiftAssignmentCreate,
                                      ShiftAssignmentRead,
                                      ShiftAssignmentUpdate)
from timekeeper.services import shift_resolver

router = APIRouter(prefix="/shifts", tags=["shifts"])
logger = logging.getLogger(__name__)


async def _get_shift(db: AsyncSession, shift_id: int) -> Shift:
    shift = await db.get(Shift, shift_id)
    if shift is None:
        raise NotFoundError(f"Shift with ID {shift_id} not found")
    return shift


async def _get_schedule_rule(db: AsyncSession, rule_id: int) -> ScheduleRule:
    rule = await db.get(ScheduleRule, rule_id)
    if rule is None:
        raise NotFoundError(f"Schedule rule with ID {rule_id} not found")
    if not rule.active:
        raise ValidationError(f"Schedule rule '{rule.name}' is inactive")
    return rule


async def _get_assignment(db: AsyncSession, assignment_id: int) -> ShiftAssignment:
    result = await db.execute(
        select(ShiftAssignment)
        .where(ShiftAssignment.id == assignment_id)
        .execution_options(populate_existing=True)
    )
    assignment = result.scalar_one_or_none()
    if assignment is None:
        raise NotFoundError(f"Shift assignment with ID {assignment_id} not found")
    return assignment


@router.post("/assign", response_model=ShiftAssignmentRead, status_code=201)
async def assign_shift(
    body: ShiftAssignmentCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> ShiftAssignment:
    employee_id = resolve_employee_id(user, body.employee_id)
    shift = await _get_shift(db, body.shift_id)
    if not shift.active:
        raise ValidationError(f"Shift '{shift.name}' is inactive")
    if body.schedule_rule_id is not None:
        await _get_schedule_rule(db, body.schedule_rule_id)

    assignment = ShiftAssignment(
        employee_id=employee_id,
        shift_id=shift.id,
        schedule_rule_id=body.schedule_rule_id,
        start_date=body.start_date,
        end_date=body.end_date,
        rest_days=body.rest_days,
        status=ShiftAssignmentStatus.PENDING.value,
    )
    db.add(assignment)
    await db.commit()
    logger.info(
        "Shift #%s assigned to %s from %s (pending approval)",
        shift.id,
        employee_id,
        body.start_date,
    )
    return await _get_assignment(db, assignment.id)


@router.get("/my", response_model=list[ShiftAssignmentRead])
async def my_assignments(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> list[ShiftAssignment]:
    employee_id = resolve_employee_id(user, None)
    result = await db.execute(
        select(ShiftAssignment)
        .where(ShiftAssignment.employee_id == employee_id)
        .order_by(ShiftAssignment.start_date.desc())
    )
    return list(result.scalars().all())


@router.get("", response_model=list[ShiftAssignmentRead])
async def list_assignments(
    employee_id: str | None = Query(default=None),
    status: ShiftAssignmentStatus | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_reviewer),
) -> list[ShiftAssignment]:
    stmt = select(ShiftAssignment).order_by(ShiftAssignment.id)
    if employee_id:
        stmt = stmt.where(ShiftAssignment.employee_id == employee_id)
    if status is not None:
        stmt = stmt.where(ShiftAssignment.status == status.value)
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.post("/expire", response_model=ExpireResponse)
async def expire_assignments(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_reviewer),
) -> ExpireResponse:
    """Mark assignments that ended before today as EXPIRED."""
    return ExpireResponse(expired=await shift_resolver.expire_assignments(db, utcnow()))


@router.get("/resolve", response_model=ResolvedShiftResponse)
async def resolve_assignment(
    date: str | None = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    employee_id: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> ResolvedShiftResponse:
    employee_id = resolve_employee_id(user, employee_id)
    day = parse_day(date) if date else utcnow().date()
    assignment = await shift_resolver.resolve(db, employee_id, day)
    return ResolvedShiftResponse(
        employee_id=employee_id,
        date=day_key(day),
        is_rest_day=shift_resolver.is_rest_day(assignment, day),
        assignment=ShiftAssignmentRead.model_validate(assignment),
    )


@router.get("/{assignment_id}", response_model=ShiftAssignmentRead)
async def get_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> ShiftAssignment:
    assignment = await _get_assignment(db, assignment_id)
    ensure_owner(user, assignment.employee_id, "Not your shift assignment")
    return assignment


@router.patch("/{assignment_id}", response_model=ShiftAssignmentRead)
async def update_assignment(
    assignment_id: int,
    body: ShiftAssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_reviewer),
) -> ShiftAssignment:
    """Partial update; also the approval path (``{"status": "APPROVED"}``)."""
    assignment = await _get_assignment(db, assignment_id)
    # end_date and schedule_rule_id are the only fields that may be cleared
    changes = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in ("end_date", "schedule_rule_id")
    }

    if "shift_id" in changes:
        await _get_shift(db, changes["shift_id"])
    if changes.get("schedule_rule_id") is not None:
        await _get_schedule_rule(db, changes["schedule_rule_id"])
    if "status" in changes:
        changes["status"] = ShiftAssignmentStatus(changes["status"]).value

    start = changes.get("start_date", assignment.start_date)
    end = changes.get("end_date", assignment.end_date)
    if end is not None and end < start:
        raise ValidationError("end_date must not be before start_date")

    for field, value in changes.items():
        setattr(assignment, field, value)
    await db.commit()
    logger.info("Shift assignment #%s updated: %s", assignment_id, ", ".join(sorted(changes)))
    return await _get_assignment(db, assignment_id)
