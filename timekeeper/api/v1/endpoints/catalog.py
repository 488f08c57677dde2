"""
Shift catalog CRUD: shift definitions, lateness / overtime / schedule rules,
holidays.

- GET operations require any authenticated user.
- POST / PATCH / DELETE require admin or hr.
"""

from __future__ import annotations

import logging
from typing import TypeVar

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.api.v1.deps import get_current_active_user, get_db, require_hr
from timekeeper.core.exceptions import (NotFoundError, StateConflictError,
                                        ValidationError)
from timekeeper.db.base import Base
from timekeeper.models.holiday import Holiday
from timekeeper.models.rules import LatenessRule, OvertimeRule, ScheduleRule
from timekeeper.models.shift import Shift, ShiftAssignment
from timekeeper.models.user import User
from timekeeper.schemas.catalog import (HolidayCreate, HolidayRead,
                                        HolidayUpdate, LatenessRuleCreate,
                                        LatenessRuleRead, LatenessRuleUpdate,
                                        OvertimeRuleCreate, OvertimeRuleRead,
                                        OvertimeRuleUpdate, ScheduleRuleCreate,
                                        ScheduleRuleRead, ScheduleRuleUpdate)
from timekeeper.schemas.common import DeleteResponse
from timekeeper.schemas.shift import ShiftCreate, ShiftRead, ShiftUpdate

router = APIRouter(tags=["catalog"])
logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Base)


# ── Helpers ─────────────────────────────────────────────────────────
async def _get_or_404(db: AsyncSession, model: type[M], item_id: int, label: str) -> M:
    item = await db.get(model, item_id)
    if item is None:
        raise NotFoundError(f"{label} with ID {item_id} not found")
    return item


def _dump(body: BaseModel, *, exclude_unset: bool = False) -> dict:
    data = body.model_dump(exclude_unset=exclude_unset)
    # Enums are stored by value
    return {k: getattr(v, "value", v) for k, v in data.items()}


async def _create(db: AsyncSession, model: type[M], body: BaseModel) -> M:
    item = model(**_dump(body))
    db.add(item)
    await db.commit()
    logger.info("%s #%s created", model.__name__, item.id)
    return item


async def _update(db: AsyncSession, item: M, body: BaseModel) -> M:
    columns = type(item).__table__.columns
    # null only clears nullable columns
    changes = {
        k: v
        for k, v in _dump(body, exclude_unset=True).items()
        if v is not None or columns[k].nullable
    }
    for field, value in changes.items():
        setattr(item, field, value)
    await db.commit()
    logger.info("%s #%s updated: %s", type(item).__name__, item.id, ", ".join(sorted(changes)))
    return item


async def _delete(db: AsyncSession, item: Base, label: str) -> DeleteResponse:
    item_id = item.id
    await db.delete(item)
    await db.commit()
    logger.info("%s #%s deleted", label, item_id)
    return DeleteResponse(success=True, message=f"{label} {item_id} deleted")


# ── Shift definitions ──────────────────────────────────────────────
@router.post("/shift-definitions", response_model=ShiftRead, status_code=201)
async def create_shift(
    body: ShiftCreate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> Shift:
    return await _create(db, Shift, body)


@router.get("/shift-definitions", response_model=list[ShiftRead])
async def list_shifts(
    active: bool | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[Shift]:
    stmt = select(Shift).order_by(Shift.id)
    if active is not None:
        stmt = stmt.where(Shift.active.is_(active))
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.get("/shift-definitions/{shift_id}", response_model=ShiftRead)
async def get_shift(
    shift_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> Shift:
    return await _get_or_404(db, Shift, shift_id, "Shift")


@router.patch("/shift-definitions/{shift_id}", response_model=ShiftRead)
async def update_shift(
    shift_id: int,
    body: ShiftUpdate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> Shift:
    shift = await _get_or_404(db, Shift, shift_id, "Shift")
    return await _update(db, shift, body)


@router.delete("/shift-definitions/{shift_id}", response_model=DeleteResponse)
async def delete_shift(
    shift_id: int,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> DeleteResponse:
    """Delete an unused shift; shifts with assignments must be deactivated instead."""
    shift = await _get_or_404(db, Shift, shift_id, "Shift")
    in_use = await db.execute(
        select(func.count(ShiftAssignment.id)).where(ShiftAssignment.shift_id == shift_id)
    )
    if (in_use.scalar() or 0) > 0:
        raise StateConflictError(
            f"Shift {shift_id} has assignments; set active=false instead of deleting"
        )
    return await _delete(db, shift, "Shift")


# ── Lateness rules ─────────────────────────────────────────────────
@router.post("/lateness-rules", response_model=LatenessRuleRead, status_code=201)
async def create_lateness_rule(
    body: LatenessRuleCreate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> LatenessRule:
    return await _create(db, LatenessRule, body)


@router.get("/lateness-rules", response_model=list[LatenessRuleRead])
async def list_lateness_rules(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[LatenessRule]:
    result = await db.execute(select(LatenessRule).order_by(LatenessRule.id))
    return list(result.scalars().all())


@router.get("/lateness-rules/{rule_id}", response_model=LatenessRuleRead)
async def get_lateness_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> LatenessRule:
    return await _get_or_404(db, LatenessRule, rule_id, "Lateness rule")


@router.patch("/lateness-rules/{rule_id}", response_model=LatenessRuleRead)
async def update_lateness_rule(
    rule_id: int,
    body: LatenessRuleUpdate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> LatenessRule:
    rule = await _get_or_404(db, LatenessRule, rule_id, "Lateness rule")
    return await _update(db, rule, body)


@router.delete("/lateness-rules/{rule_id}", response_model=DeleteResponse)
async def delete_lateness_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> DeleteResponse:
    rule = await _get_or_404(db, LatenessRule, rule_id, "Lateness rule")
    return await _delete(db, rule, "Lateness rule")


# ── Overtime rules ─────────────────────────────────────────────────
@router.post("/overtime-rules", response_model=OvertimeRuleRead, status_code=201)
async def create_overtime_rule(
    body: OvertimeRuleCreate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> OvertimeRule:
    return await _create(db, OvertimeRule, body)


@router.get("/overtime-rules", response_model=list[OvertimeRuleRead])
async def list_overtime_rules(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[OvertimeRule]:
    result = await db.execute(select(OvertimeRule).order_by(OvertimeRule.id))
    return list(result.scalars().all())


@router.get("/overtime-rules/{rule_id}", response_model=OvertimeRuleRead)
async def get_overtime_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> OvertimeRule:
    return await _get_or_404(db, OvertimeRule, rule_id, "Overtime rule")


@router.patch("/overtime-rules/{rule_id}", response_model=OvertimeRuleRead)
async def update_overtime_rule(
    rule_id: int,
    body: OvertimeRuleUpdate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> OvertimeRule:
    rule = await _get_or_404(db, OvertimeRule, rule_id, "Overtime rule")
    return await _update(db, rule, body)


@router.delete("/overtime-rules/{rule_id}", response_model=DeleteResponse)
async def delete_overtime_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> DeleteResponse:
    rule = await _get_or_404(db, OvertimeRule, rule_id, "Overtime rule")
    return await _delete(db, rule, "Overtime rule")


# ── Schedule rules ─────────────────────────────────────────────────
@router.post("/schedule-rules", response_model=ScheduleRuleRead, status_code=201)
async def create_schedule_rule(
    body: ScheduleRuleCreate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> ScheduleRule:
    return await _create(db, ScheduleRule, body)


@router.get("/schedule-rules", response_model=list[ScheduleRuleRead])
async def list_schedule_rules(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[ScheduleRule]:
    result = await db.execute(select(ScheduleRule).order_by(ScheduleRule.id))
    return list(result.scalars().all())


@router.get("/schedule-rules/{rule_id}", response_model=ScheduleRuleRead)
async def get_schedule_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ScheduleRule:
    return await _get_or_404(db, ScheduleRule, rule_id, "Schedule rule")


@router.patch("/schedule-rules/{rule_id}", response_model=ScheduleRuleRead)
async def update_schedule_rule(
    rule_id: int,
    body: ScheduleRuleUpdate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> ScheduleRule:
    rule = await _get_or_404(db, ScheduleRule, rule_id, "Schedule rule")
    return await _update(db, rule, body)


@router.delete("/schedule-rules/{rule_id}", response_model=DeleteResponse)
async def delete_schedule_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> DeleteResponse:
    rule = await _get_or_404(db, ScheduleRule, rule_id, "Schedule rule")
    in_use = await db.execute(
        select(func.count(ShiftAssignment.id)).where(ShiftAssignment.schedule_rule_id == rule_id)
    )
    if (in_use.scalar() or 0) > 0:
        raise StateConflictError(
            f"Schedule rule {rule_id} is referenced by assignments; set active=false instead of deleting"
        )
    return await _delete(db, rule, "Schedule rule")


# ── Holidays ───────────────────────────────────────────────────────
@router.post("/holidays", response_model=HolidayRead, status_code=201)
async def create_holiday(
    body: HolidayCreate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> Holiday:
    return await _create(db, Holiday, body)


@router.get("/holidays", response_model=list[HolidayRead])
async def list_holidays(
    active: bool | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[Holiday]:
    stmt = select(Holiday).order_by(Holiday.start_date, Holiday.id)
    if active is not None:
        stmt = stmt.where(Holiday.active.is_(active))
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.get("/holidays/{holiday_id}", response_model=HolidayRead)
async def get_holiday(
    holiday_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> Holiday:
    return await _get_or_404(db, Holiday, holiday_id, "Holiday")


@router.patch("/holidays/{holiday_id}", response_model=HolidayRead)
async def update_holiday(
    holiday_id: int,
    body: HolidayUpdate,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> Holiday:
    holiday = await _get_or_404(db, Holiday, holiday_id, "Holiday")
    start = body.start_date or holiday.start_date
    end = body.end_date if "end_date" in body.model_fields_set else holiday.end_date
    if end is not None and end < start:
        raise ValidationError("end_date must not be before start_date")
    return await _update(db, holiday, body)


@router.delete("/holidays/{holiday_id}", response_model=DeleteResponse)
async def delete_holiday(
    holiday_id: int,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> DeleteResponse:
    holiday = await _get_or_404(db, Holiday, holiday_id, "Holiday")
    return await _delete(db, holiday, "Holiday")
