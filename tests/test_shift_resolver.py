"""Tests for shift assignment resolution and expiry."""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import select

from timekeeper.core.exceptions import NotFoundError, PendingAssignmentError
from timekeeper.models.shift import ShiftAssignment
from timekeeper.services import shift_resolver

EMPLOYEE_ID = "EMP-001"


@pytest.mark.asyncio
async def test_resolves_covering_approved_assignment(db_session, make_assignment):
    assignment = await make_assignment(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))
    found = await shift_resolver.resolve(db_session, EMPLOYEE_ID, date(2024, 1, 31))
    assert found.id == assignment.id
    assert found.shift.start_time == "09:00"


@pytest.mark.asyncio
async def test_open_ended_assignment_covers_future_days(db_session, make_assignment):
    assignment = await make_assignment(start_date=date(2024, 1, 1))
    found = await shift_resolver.resolve(db_session, EMPLOYEE_ID, date(2030, 6, 1))
    assert found.id == assignment.id


@pytest.mark.asyncio
async def test_pending_assignment_is_reported(db_session, make_assignment):
    await make_assignment(status="PENDING")
    with pytest.raises(PendingAssignmentError, match="pending approval"):
        await shift_resolver.resolve(db_session, EMPLOYEE_ID, date(2024, 2, 5))


@pytest.mark.asyncio
async def test_assignment_outside_dates(db_session, make_assignment):
    await make_assignment(start_date=date(2024, 3, 1))
    with pytest.raises(NotFoundError, match="not active for 2024-02-05"):
        await shift_resolver.resolve(db_session, EMPLOYEE_ID, date(2024, 2, 5))


@pytest.mark.asyncio
async def test_no_assignment_at_all(db_session):
    with pytest.raises(NotFoundError, match="No shift assignment found for employee EMP-001"):
        await shift_resolver.resolve(db_session, EMPLOYEE_ID, date(2024, 2, 5))


@pytest.mark.asyncio
async def test_other_employees_assignments_are_ignored(db_session, make_assignment):
    await make_assignment(employee_id="EMP-999")
    with pytest.raises(NotFoundError, match="No shift assignment found"):
        await shift_resolver.resolve(db_session, EMPLOYEE_ID, date(2024, 2, 5))


@pytest.mark.asyncio
async def test_overlap_picks_earliest_created(db_session, make_assignment):
    first = await make_assignment(start_time="08:00", end_time="16:00")
    await make_assignment(start_time="10:00", end_time="18:00")
    found = await shift_resolver.resolve(db_session, EMPLOYEE_ID, date(2024, 2, 5))
    assert found.id == first.id


@pytest.mark.asyncio
async def test_rest_day_match_is_case_insensitive(make_assignment):
    assignment = await make_assignment(rest_days=["saturday", "Sunday"])
    assert shift_resolver.is_rest_day(assignment, date(2024, 2, 3)) is True  # Saturday
    assert shift_resolver.is_rest_day(assignment, date(2024, 2, 4)) is True  # Sunday
    assert shift_resolver.is_rest_day(assignment, date(2024, 2, 5)) is False


@pytest.mark.asyncio
async def test_expire_marks_only_ended_assignments(db_session, make_assignment):
    ended = await make_assignment(end_date=date(2024, 1, 31))
    ends_today = await make_assignment(end_date=date(2024, 3, 1))
    open_ended = await make_assignment()

    now = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert await shift_resolver.expire_assignments(db_session, now) == 1
    assert await shift_resolver.expire_assignments(db_session, now) == 0

    result = await db_session.execute(
        select(ShiftAssignment.id, ShiftAssignment.status).order_by(ShiftAssignment.id)
    )
    statuses = dict(result.all())
    assert statuses[ended.id] == "EXPIRED"
    assert statuses[ends_today.id] == "APPROVED"
    assert statuses[open_ended.id] == "APPROVED"
