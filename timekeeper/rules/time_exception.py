"""
Time-exception engine.

Each exception type maps to the effects it grants once APPROVED, whether it
always needs a manager, and the wording for both outcomes. Advisory only:
nothing here touches the ledger.
"""

from __future__ import annotations

from typing import NamedTuple, Protocol

from pydantic import BaseModel

from timekeeper.models.enums import TimeExceptionStatus, TimeExceptionType


class ExceptionLike(Protocol):
    type: str
    status: str
    reason: str | None


class _Policy(NamedTuple):
    excuse_absence: bool
    excuse_lateness: bool
    excuse_early_leave: bool
    adjust_hours: bool
    always_review: bool  # False: review only until approved
    approved_message: str
    pending_message: str
    approved_action: str
    pending_action: str


POLICIES: dict[TimeExceptionType, _Policy] = {
    TimeExceptionType.MISSED_PUNCH: _Policy(
        False, False, False, True, True,
        "Missed punch exception approved.",
        "Missed punch reported. Pending approval.",
        "Adjust attendance record based on manager confirmation",
        "Hold for manager review and approval",
    ),
    TimeExceptionType.LATE: _Policy(
        False, True, False, False, False,
        "Lateness excused.",
        "Lateness exception pending approval.",
        "Waive lateness penalties",
        "Apply standard lateness rules until approved",
    ),
    TimeExceptionType.EARLY_LEAVE: _Policy(
        False, False, True, False, False,
        "Early leave approved.",
        "Early leave exception pending approval.",
        "Count as full day if approved by policy",
        "Mark as incomplete shift until approved",
    ),
    TimeExceptionType.SHORT_TIME: _Policy(
        False, False, False, True, True,
        "Short time exception approved.",
        "Short time reported. Pending approval.",
        "Adjust expected hours for this day",
        "Flag as incomplete attendance",
    ),
    TimeExceptionType.OVERTIME_REQUEST: _Policy(
        False, False, False, True, True,
        "Overtime request approved.",
        "Overtime request pending approval.",
        "Credit overtime hours to employee",
        "Hold overtime calculation pending approval",
    ),
    TimeExceptionType.MANUAL_ADJUSTMENT: _Policy(
        True, True, True, True, True,
        "Manual adjustment approved.",
        "Manual adjustment requested. Pending approval.",
        "Apply manual adjustment as specified",
        "Maintain current record until approved",
    ),
}


class ExceptionVerdict(BaseModel):
    exception_type: str
    should_excuse_absence: bool = False
    should_excuse_lateness: bool = False
    should_excuse_early_leave: bool = False
    should_adjust_hours: bool = False
    adjustment_reason: str
    requires_manager_review: bool = True
    is_approved: bool = False
    message: str
    suggested_action: str


def evaluate_exception(exception: ExceptionLike) -> ExceptionVerdict:
    """Describe what an exception grants in its current status."""
    reason = exception.reason or "No reason provided"
    is_approved = exception.status == TimeExceptionStatus.APPROVED.value

    try:
        policy = POLICIES[TimeExceptionType(exception.type)]
    except ValueError:
        return ExceptionVerdict(
            exception_type=exception.type,
            adjustment_reason=reason,
            is_approved=is_approved,
            message=f"Unknown exception type: {exception.type}",
            suggested_action="Review exception manually",
        )

    return ExceptionVerdict(
        exception_type=exception.type,
        should_excuse_absence=policy.excuse_absence and is_approved,
        should_excuse_lateness=policy.excuse_lateness and is_approved,
        should_excuse_early_leave=policy.excuse_early_leave and is_approved,
        should_adjust_hours=policy.adjust_hours and is_approved,
        adjustment_reason=reason,
        requires_manager_review=policy.always_review or not is_approved,
        is_approved=is_approved,
        message=(
            f"{policy.approved_message if is_approved else policy.pending_message} "
            f"Reason: {reason}"
        ),
        suggested_action=policy.approved_action if is_approved else policy.pending_action,
    )
