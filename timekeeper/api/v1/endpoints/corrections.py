"""
Correction request endpoints.

- Any employee files requests for their own records and sees their own.
- Managers move SUBMITTED → IN_REVIEW; HR (or admin) gives final approval.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.api.v1.deps import (ensure_owner, get_current_active_user,
                                    get_db, is_privileged, require_hr,
                                    require_reviewer, resolve_employee_id)
from timekeeper.models.correction import CorrectionRequest
from timekeeper.models.user import User
from timekeeper.schemas.correction import CorrectionCreate, CorrectionRead
from timekeeper.services import correction_workflow, punch_ledger
from timekeeper.services.correction_workflow import CorrectionFinalization

router = APIRouter(prefix="/attendance/corrections", tags=["corrections"])


@router.post("", response_model=CorrectionRead, status_code=201)
async def create_correction(
    body: CorrectionCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> CorrectionRequest:
    employee_id = resolve_employee_id(user, body.employee_id)
    record = await punch_ledger.get_record(db, body.attendance_record_id)
    ensure_owner(user, record.employee_id, "Not your attendance record")
    return await correction_workflow.create(
        db,
        employee_id=employee_id,
        attendance_record_id=body.attendance_record_id,
        clock_in=body.clock_in,
        clock_out=body.clock_out,
        reason=body.reason,
        manager_id=body.manager_id,
    )


@router.get("", response_model=list[CorrectionRead])
async def list_corrections(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> list[CorrectionRequest]:
    """All requests for reviewers; only the caller's own otherwise."""
    if is_privileged(user):
        return await correction_workflow.list_requests(db)
    return await correction_workflow.list_requests(db, resolve_employee_id(user, None))


async def _visible_request(db: AsyncSession, request_id: int, user: User) -> CorrectionRequest:
    request = await correction_workflow.get_request(db, request_id)
    ensure_owner(user, request.employee_id, "Not your correction request")
    return request


@router.get("/{request_id}", response_model=CorrectionRead)
async def get_correction(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> CorrectionRequest:
    return await _visible_request(db, request_id, user)


@router.get("/{request_id}/finalize", response_model=CorrectionFinalization)
async def finalize_correction(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> CorrectionFinalization:
    """Advisory view for payroll; never changes the request."""
    return correction_workflow.finalize_correction(await _visible_request(db, request_id, user))


# ── Workflow transitions ────────────────────────────────────────────
@router.patch("/{request_id}/manager", response_model=CorrectionRead)
async def approve_by_manager(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _reviewer: User = Depends(require_reviewer),
) -> CorrectionRequest:
    return await correction_workflow.approve_by_manager(db, request_id)


@router.patch("/{request_id}/hr", response_model=CorrectionRead)
async def approve_by_hr(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _hr: User = Depends(require_hr),
) -> CorrectionRequest:
    return await correction_workflow.approve_by_hr(db, request_id)


@router.patch("/{request_id}/reject", response_model=CorrectionRead)
async def reject_correction(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _reviewer: User = Depends(require_reviewer),
) -> CorrectionRequest:
    return await correction_workflow.reject(db, request_id)


@router.patch("/{request_id}/escalate", response_model=CorrectionRead)
async def escalate_correction(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _reviewer: User = Depends(require_reviewer),
) -> CorrectionRequest:
    return await correction_workflow.escalate(db, request_id)
