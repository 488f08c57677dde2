"""
Attendance correction workflow.

    SUBMITTED ──manager──▶ IN_REVIEW ──hr──▶ APPROVED
        │                      │
        └──────reject──────────┴──▶ REJECTED

ESCALATED is reachable from every state, terminal ones included. Status
writes are compare-and-set on the status the transition was computed from.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.core.exceptions import NotFoundError, StateConflictError
from timekeeper.core.timeutil import parse_timestamp, utcnow
from timekeeper.models.correction import CorrectionRequest
from timekeeper.models.enums import CorrectionStatus
from timekeeper.services import punch_ledger

logger = logging.getLogger(__name__)

S = CorrectionStatus

# requested status -> statuses it may be entered from
TRANSITIONS: dict[CorrectionStatus, frozenset[CorrectionStatus]] = {
    S.IN_REVIEW: frozenset({S.SUBMITTED}),
    S.APPROVED: frozenset({S.IN_REVIEW}),
    S.REJECTED: frozenset({S.SUBMITTED, S.IN_REVIEW, S.REJECTED, S.ESCALATED}),
    S.ESCALATED: frozenset(S),
}

_EXPECTED = {
    S.IN_REVIEW: S.SUBMITTED,
    S.APPROVED: S.IN_REVIEW,
}


def transition(current: CorrectionStatus | str, requested: CorrectionStatus | str) -> CorrectionStatus:
    """Return the new status or raise ``StateConflictError``."""
    current = CorrectionStatus(current)
    requested = CorrectionStatus(requested)
    allowed = TRANSITIONS.get(requested, frozenset())
    if current in allowed:
        return requested

    expected = _EXPECTED.get(requested)
    if requested is S.REJECTED:
        message = "Cannot reject an already approved correction request"
    elif expected is not None:
        message = (
            f"Correction request must be in {expected.value} status to move to "
            f"{requested.value}. Current status: {current.value}"
        )
    else:
        message = f"Cannot move correction request from {current.value} to {requested.value}"
    raise StateConflictError(
        message,
        current=current.value,
        expected=expected.value if expected else None,
    )


# ── Reads ───────────────────────────────────────────────────────────
async def get_request(db: AsyncSession, request_id: int) -> CorrectionRequest:
    result = await db.execute(
        select(CorrectionRequest)
        .where(CorrectionRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError(f"Correction request with ID {request_id} not found")
    return request


async def list_requests(db: AsyncSession, employee_id: str | None = None) -> list[CorrectionRequest]:
    stmt = select(CorrectionRequest).order_by(CorrectionRequest.created_at.desc(), CorrectionRequest.id.desc())
    if employee_id is not None:
        stmt = stmt.where(CorrectionRequest.employee_id == employee_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ── Writes ──────────────────────────────────────────────────────────
async def create(
    db: AsyncSession,
    employee_id: str,
    attendance_record_id: int,
    clock_in: str | datetime | None = None,
    clock_out: str | datetime | None = None,
    reason: str | None = None,
    manager_id: str | None = None,
) -> CorrectionRequest:
    """File a new request; status is always SUBMITTED."""
    await punch_ledger.get_record(db, attendance_record_id)

    request = CorrectionRequest(
        employee_id=employee_id,
        attendance_record_id=attendance_record_id,
        requested_clock_in=parse_timestamp(clock_in) if clock_in else None,
        requested_clock_out=parse_timestamp(clock_out) if clock_out else None,
        reason=reason,
        manager_id=manager_id,
        status=S.SUBMITTED.value,
    )
    db.add(request)
    await db.commit()
    logger.info(
        "Correction request #%s submitted by %s for record #%s",
        request.id,
        employee_id,
        attendance_record_id,
    )
    return request


async def _move(db: AsyncSession, request_id: int, requested: CorrectionStatus) -> CorrectionRequest:
    request = await get_request(db, request_id)
    current = CorrectionStatus(request.status)
    new_status = transition(current, requested)

    result = await db.execute(
        update(CorrectionRequest)
        .where(CorrectionRequest.id == request_id, CorrectionRequest.status == current.value)
        .values(status=new_status.value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        latest = await get_request(db, request_id)
        raise StateConflictError(
            "Correction request was changed by another reviewer",
            current=latest.status,
            expected=current.value,
        )
    logger.info("Correction request #%s: %s -> %s", request_id, current.value, new_status.value)
    return request


async def _finish(db: AsyncSession, request_id: int) -> CorrectionRequest:
    await db.commit()
    return await get_request(db, request_id)


async def approve_by_manager(db: AsyncSession, request_id: int) -> CorrectionRequest:
    await _move(db, request_id, S.IN_REVIEW)
    return await _finish(db, request_id)


async def approve_by_hr(db: AsyncSession, request_id: int) -> CorrectionRequest:
    """Final approval; the requested punches land in the ledger atomically."""
    request = await _move(db, request_id, S.APPROVED)
    if request.requested_clock_in or request.requested_clock_out:
        await punch_ledger.apply_correction(
            db,
            request.attendance_record_id,
            clock_in=request.requested_clock_in,
            clock_out=request.requested_clock_out,
            commit=False,
        )
    return await _finish(db, request_id)


async def reject(db: AsyncSession, request_id: int) -> CorrectionRequest:
    await _move(db, request_id, S.REJECTED)
    return await _finish(db, request_id)


async def escalate(db: AsyncSession, request_id: int) -> CorrectionRequest:
    await _move(db, request_id, S.ESCALATED)
    return await _finish(db, request_id)


# ── Advisory ────────────────────────────────────────────────────────
class CorrectionFinalization(BaseModel):
    can_apply_correction: bool
    correction_status: str
    attendance_record_id: int
    employee_id: str
    reason: str
    is_approved: bool
    is_rejected: bool
    is_pending: bool
    requires_escalation: bool
    requires_manager_review: bool
    message: str
    suggested_actions: list[str]


_ADVICE: dict[CorrectionStatus, tuple[str, list[str]]] = {
    S.SUBMITTED: (
        "Correction request submitted. Awaiting manager review.",
        ["Notify manager for review", "Do not modify attendance record yet"],
    ),
    S.IN_REVIEW: (
        "Correction request approved by manager. Awaiting HR approval.",
        ["Notify HR for final approval", "Do not modify attendance record yet"],
    ),
    S.APPROVED: (
        "Correction request fully approved. Ready to apply changes.",
        [
            "Apply correction to attendance record",
            "Notify employee of approved correction",
            "Update attendance calculations",
        ],
    ),
    S.REJECTED: (
        "Correction request has been rejected.",
        [
            "Notify employee of rejection",
            "Keep original attendance record",
            "Close correction workflow",
        ],
    ),
    S.ESCALATED: (
        "Correction request has been escalated for higher-level review.",
        [
            "Notify HR or senior management",
            "Hold attendance record pending escalation review",
            "Provide additional documentation",
        ],
    ),
}


def finalize_correction(request: CorrectionRequest) -> CorrectionFinalization:
    """Summarise what payroll may do with *request*. Never mutates."""
    status = CorrectionStatus(request.status)
    message, actions = _ADVICE[status]
    return CorrectionFinalization(
        can_apply_correction=status is S.APPROVED,
        correction_status=status.value,
        attendance_record_id=request.attendance_record_id,
        employee_id=request.employee_id,
        reason=request.reason or "No reason provided",
        is_approved=status is S.APPROVED,
        is_rejected=status is S.REJECTED,
        is_pending=status in (S.SUBMITTED, S.IN_REVIEW),
        requires_escalation=status is S.ESCALATED,
        requires_manager_review=status is S.SUBMITTED,
        message=message,
        suggested_actions=list(actions),
    )
