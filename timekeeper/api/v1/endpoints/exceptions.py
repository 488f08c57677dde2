"""
Time exception endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.api.v1.deps import (ensure_owner, get_current_active_user,
                                    get_db, is_privileged, require_reviewer,
                                    resolve_employee_id)
from timekeeper.models.time_exception import TimeException
from timekeeper.models.user import User
from timekeeper.rules.time_exception import ExceptionVerdict, evaluate_exception
from timekeeper.schemas.time_exception import (TimeExceptionCreate,
                                               TimeExceptionRead,
                                               TimeExceptionUpdate)
from timekeeper.services import punch_ledger, time_exceptions

router = APIRouter(prefix="/exceptions", tags=["exceptions"])


async def _visible(db: AsyncSession, exception_id: int, user: User) -> TimeException:
    exception = await time_exceptions.get(db, exception_id)
    ensure_owner(user, exception.employee_id, "Not your time exception")
    return exception


@router.post("", response_model=TimeExceptionRead, status_code=201)
async def create_exception(
    body: TimeExceptionCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> TimeException:
    employee_id = resolve_employee_id(user, body.employee_id)
    record = await punch_ledger.get_record(db, body.attendance_record_id)
    ensure_owner(user, record.employee_id, "Not your attendance record")
    return await time_exceptions.create(
        db,
        employee_id=employee_id,
        attendance_record_id=body.attendance_record_id,
        type=body.type.value,
        reason=body.reason,
        assigned_to=body.assigned_to,
    )


@router.get("", response_model=list[TimeExceptionRead])
async def list_exceptions(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> list[TimeException]:
    """All exceptions for reviewers; only the caller's own otherwise."""
    if is_privileged(user):
        return await time_exceptions.list_all(db)
    return await time_exceptions.list_all(db, resolve_employee_id(user, None))


@router.get("/{exception_id}", response_model=TimeExceptionRead)
async def get_exception(
    exception_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> TimeException:
    return await _visible(db, exception_id, user)


@router.patch("/{exception_id}", response_model=TimeExceptionRead)
async def update_exception(
    exception_id: int,
    body: TimeExceptionUpdate,
    db: AsyncSession = Depends(get_db),
    _reviewer: User = Depends(require_reviewer),
) -> TimeException:
    """Partial update; a ``status`` here is the generic status change."""
    changes = {
        k: getattr(v, "value", v)
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None
    }
    return await time_exceptions.update(db, exception_id, **changes)


@router.patch("/{exception_id}/approve", response_model=TimeExceptionRead)
async def approve_exception(
    exception_id: int,
    db: AsyncSession = Depends(get_db),
    _reviewer: User = Depends(require_reviewer),
) -> TimeException:
    return await time_exceptions.approve(db, exception_id)


@router.patch("/{exception_id}/reject", response_model=TimeExceptionRead)
async def reject_exception(
    exception_id: int,
    db: AsyncSession = Depends(get_db),
    _reviewer: User = Depends(require_reviewer),
) -> TimeException:
    return await time_exceptions.reject(db, exception_id)


@router.get("/{exception_id}/evaluation", response_model=ExceptionVerdict)
async def evaluate(
    exception_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> ExceptionVerdict:
    """What the exception grants in its current status (advisory)."""
    return evaluate_exception(await _visible(db, exception_id, user))
