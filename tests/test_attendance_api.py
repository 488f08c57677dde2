"""
Attendance API tests: clock events, policy gates, direct corrections,
reads and rule evaluation.
"""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import delete

from timekeeper.models.attendance import AttendancePunch
from timekeeper.models.rules import LatenessRule, OvertimeRule
from timekeeper.services.reference_data import LeaveEntry, OffboardingEntry

EMPLOYEE_ID = "EMP-001"
BASE = "/api/v1/attendance"


async def _clock(client: AsyncClient, action: str, timestamp: str, employee_id: str | None = None):
    body = {"timestamp": timestamp}
    if employee_id is not None:
        body["employee_id"] = employee_id
    return await client.post(f"{BASE}/clock-{action}", json=body)


# ── Clock in / out ──────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_clock_in_then_out(async_client: AsyncClient, make_assignment):
    """A full day: IN then OUT gives worked minutes and no missed punch."""
    await make_assignment()

    resp = await _clock(async_client, "in", "2024-02-05T09:00:00Z")
    assert resp.status_code == 201
    data = resp.json()
    assert data["employee_id"] == EMPLOYEE_ID
    assert data["date"] == "2024-02-05"
    assert data["has_missed_punch"] is True
    assert [p["type"] for p in data["punches"]] == ["IN"]

    resp = await _clock(async_client, "out", "2024-02-05T17:30:00Z")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_work_minutes"] == 510
    assert data["has_missed_punch"] is False
    assert [p["type"] for p in data["punches"]] == ["IN", "OUT"]
    assert data["punches"][1]["time"].startswith("2024-02-05T17:30:00")


@pytest.mark.asyncio
async def test_same_day_punches_share_one_record(async_client: AsyncClient, make_assignment):
    await make_assignment()
    first = await _clock(async_client, "in", "2024-02-05T09:00:00Z")
    await _clock(async_client, "out", "2024-02-05T12:00:00Z")
    await _clock(async_client, "in", "2024-02-05T13:00:00Z")
    last = await _clock(async_client, "out", "2024-02-05T17:00:00Z")

    assert last.json()["id"] == first.json()["id"]
    assert last.json()["total_work_minutes"] == 420
    assert len(last.json()["punches"]) == 4


@pytest.mark.asyncio
async def test_clock_out_without_clock_in(async_client: AsyncClient, make_assignment):
    await make_assignment()
    resp = await _clock(async_client, "out", "2024-02-05T17:00:00Z")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Must clock in before clocking out"


@pytest.mark.asyncio
async def test_pending_assignment_blocks_clock_in(async_client: AsyncClient, make_assignment):
    await make_assignment(status="PENDING")
    resp = await _clock(async_client, "in", "2024-02-05T09:00:00Z")
    assert resp.status_code == 422
    assert resp.json()["code"] == "pending_assignment"


@pytest.mark.asyncio
async def test_no_assignment_blocks_clock_in(async_client: AsyncClient):
    resp = await _clock(async_client, "in", "2024-02-05T09:00:00Z")
    assert resp.status_code == 404
    assert "No shift assignment found" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_rest_day_blocks_clock_in(async_client: AsyncClient, make_assignment):
    await make_assignment(rest_days=["Monday"])
    resp = await _clock(async_client, "in", "2024-02-05T09:00:00Z")
    assert resp.status_code == 422
    assert resp.json()["code"] == "rest_day"


@pytest.mark.asyncio
async def test_leave_blocks_clock_in(async_client: AsyncClient, make_assignment, reference):
    await make_assignment()
    reference.leaves.append(
        LeaveEntry(employee_id=EMPLOYEE_ID, start_date=date(2024, 2, 5), end_date=date(2024, 2, 9))
    )
    resp = await _clock(async_client, "in", "2024-02-07T09:00:00Z")
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Cannot clock in/out while on approved leave"


@pytest.mark.asyncio
async def test_terminated_blocks_clock_in(async_client: AsyncClient, make_assignment, reference):
    await make_assignment()
    reference.offboardings.append(
        OffboardingEntry(employee_id=EMPLOYEE_ID, effective_date=date(2024, 2, 1))
    )
    resp = await _clock(async_client, "in", "2024-02-05T09:00:00Z")
    assert resp.status_code == 422
    assert resp.json()["code"] == "terminated"


@pytest.mark.asyncio
async def test_malformed_timestamp(async_client: AsyncClient, make_assignment):
    await make_assignment()
    resp = await _clock(async_client, "in", "yesterday-ish")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid timestamp format"


@pytest.mark.asyncio
async def test_employee_cannot_clock_for_someone_else(async_client: AsyncClient, actor, make_assignment):
    await make_assignment(employee_id="EMP-002")
    actor.become("employee")
    resp = await _clock(async_client, "in", "2024-02-05T09:00:00Z", employee_id="EMP-002")
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_manager_can_clock_for_someone_else(async_client: AsyncClient, actor, make_assignment):
    await make_assignment(employee_id="EMP-002")
    actor.become("manager")
    resp = await _clock(async_client, "in", "2024-02-05T09:00:00Z", employee_id="EMP-002")
    assert resp.status_code == 201
    assert resp.json()["employee_id"] == "EMP-002"


@pytest.mark.asyncio
async def test_user_without_employee_id_must_name_one(async_client: AsyncClient, actor):
    actor.become("employee", employee_id=None)
    resp = await _clock(async_client, "in", "2024-02-05T09:00:00Z")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Employee ID is required"


# ── Direct correction ───────────────────────────────────────────────
@pytest.mark.asyncio
async def test_direct_correction_replaces_and_inserts(async_client: AsyncClient, make_assignment):
    """Correcting a lone IN: the IN moves, a missing OUT is appended."""
    await make_assignment()
    record = (await _clock(async_client, "in", "2024-02-05T09:40:00Z")).json()

    resp = await async_client.patch(
        f"{BASE}/correction/{record['id']}",
        json={
            "clock_in": "2024-02-05T09:00:00Z",
            "clock_out": "2024-02-05T17:00:00Z",
            "correction_reason": "Reader offline",
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [p["type"] for p in data["punches"]] == ["IN", "OUT"]
    assert data["punches"][0]["time"].startswith("2024-02-05T09:00:00")
    assert data["total_work_minutes"] == 480
    assert data["version"] > record["version"]


@pytest.mark.asyncio
async def test_direct_correction_inserts_missing_in_first(async_client: AsyncClient, db_session, make_assignment):
    await make_assignment()
    record = (await _clock(async_client, "in", "2024-02-05T09:00:00Z")).json()
    await _clock(async_client, "out", "2024-02-05T12:00:00Z")

    # Drop the IN so only the OUT remains
    await db_session.execute(delete(AttendancePunch).where(AttendancePunch.type == "IN"))
    await db_session.commit()

    resp = await async_client.patch(
        f"{BASE}/correction/{record['id']}", json={"clock_in": "2024-02-05T08:00:00Z"}
    )
    data = resp.json()
    assert [p["type"] for p in data["punches"]] == ["IN", "OUT"]
    assert data["total_work_minutes"] == 240


@pytest.mark.asyncio
async def test_direct_correction_requires_reviewer(async_client: AsyncClient, actor, make_assignment):
    await make_assignment()
    record = (await _clock(async_client, "in", "2024-02-05T09:00:00Z")).json()
    actor.become("employee")
    resp = await async_client.patch(
        f"{BASE}/correction/{record['id']}", json={"clock_in": "2024-02-05T08:00:00Z"}
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_direct_correction_unknown_record(async_client: AsyncClient):
    resp = await async_client.patch(f"{BASE}/correction/404", json={"clock_in": "2024-02-05T08:00:00Z"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Attendance record with ID 404 not found"


# ── Reads ───────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_record_by_date(async_client: AsyncClient, make_assignment):
    await make_assignment()
    await _clock(async_client, "in", "2024-02-05T09:00:00Z")

    resp = await async_client.get(f"{BASE}/record", params={"date": "2024-02-05"})
    assert resp.status_code == 200
    assert resp.json()["date"] == "2024-02-05"

    resp = await async_client.get(f"{BASE}/record", params={"date": "2024-02-06"})
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_today_is_null_before_first_punch(async_client: AsyncClient):
    resp = await async_client.get(f"{BASE}/today")
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_clock_in_without_timestamp_lands_today(async_client: AsyncClient, make_assignment):
    await make_assignment()
    resp = await async_client.post(f"{BASE}/clock-in", json={})
    assert resp.status_code == 201

    today = await async_client.get(f"{BASE}/today")
    assert today.json()["id"] == resp.json()["id"]


@pytest.mark.asyncio
async def test_daily_report(async_client: AsyncClient, make_assignment):
    await make_assignment()
    await make_assignment(employee_id="EMP-002")
    await _clock(async_client, "in", "2024-02-05T09:00:00Z")
    await _clock(async_client, "in", "2024-02-05T09:05:00Z", employee_id="EMP-002")
    await _clock(async_client, "in", "2024-02-06T09:00:00Z")

    resp = await async_client.get(f"{BASE}/daily-report", params={"date": "2024-02-05"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["date"] == "2024-02-05"
    assert data["total_records"] == 2
    assert [r["employee_id"] for r in data["records"]] == [EMPLOYEE_ID, "EMP-002"]


@pytest.mark.asyncio
async def test_daily_report_bad_date(async_client: AsyncClient):
    resp = await async_client.get(f"{BASE}/daily-report", params={"date": "05/02/2024"})
    assert resp.status_code == 400


# ── Evaluation ──────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_record_evaluation(async_client: AsyncClient, db_session, make_assignment):
    await make_assignment(requires_approval_for_overtime=True)
    db_session.add_all(
        [
            LatenessRule(name="Standard", grace_period_minutes=None, deduction_for_each_minute=2.0, active=True),
            OvertimeRule(name="Standard", active=True, approved=False),
        ]
    )
    await db_session.commit()

    record = (await _clock(async_client, "in", "2024-02-05T09:25:00Z")).json()
    await _clock(async_client, "out", "2024-02-05T18:00:00Z")

    resp = await async_client.get(f"{BASE}/records/{record['id']}/evaluation")
    assert resp.status_code == 200
    data = resp.json()
    assert data["lateness"]["is_late"] is True
    assert data["lateness"]["grace_period_applied"] == 15
    assert data["lateness"]["minutes_late_after_grace"] == 10
    assert data["lateness"]["deduction"] == 20.0
    assert data["overtime"]["overtime_minutes"] == 60
    assert data["overtime"]["requires_approval"] is True
    assert data["overtime"]["is_approved"] is False


@pytest.mark.asyncio
async def test_record_evaluation_without_rules(async_client: AsyncClient, make_assignment):
    await make_assignment()
    record = (await _clock(async_client, "in", "2024-02-05T09:00:00Z")).json()
    resp = await async_client.get(f"{BASE}/records/{record['id']}/evaluation")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No active lateness rule configured"
