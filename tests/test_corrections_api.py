"""
Correction request API tests: the two-step approval, refused transitions,
visibility and the payroll advisory view.
"""

import pytest
from httpx import AsyncClient

EMPLOYEE_ID = "EMP-001"
BASE = "/api/v1/attendance/corrections"


@pytest.fixture
async def record_id(async_client: AsyncClient, make_assignment) -> int:
    """A record holding a single late IN punch."""
    await make_assignment()
    resp = await async_client.post(
        "/api/v1/attendance/clock-in", json={"timestamp": "2024-02-05T09:45:00Z"}
    )
    assert resp.status_code == 201
    return resp.json()["id"]


async def _submit(client: AsyncClient, record_id: int, **extra) -> dict:
    body = {
        "attendance_record_id": record_id,
        "clock_in": "2024-02-05T09:00:00Z",
        "clock_out": "2024-02-05T17:00:00Z",
        "reason": "Card reader was down",
        **extra,
    }
    resp = await client.post(BASE, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_full_flow_updates_ledger(async_client: AsyncClient, actor, record_id):
    """SUBMITTED -> IN_REVIEW -> APPROVED, then the record carries the corrected punches."""
    actor.become("employee")
    request = await _submit(async_client, record_id)
    assert request["status"] == "SUBMITTED"
    assert request["employee_id"] == EMPLOYEE_ID

    actor.become("manager", employee_id="MGR-1")
    resp = await async_client.patch(f"{BASE}/{request['id']}/manager")
    assert resp.status_code == 200
    assert resp.json()["status"] == "IN_REVIEW"

    actor.become("hr", employee_id="HR-1")
    resp = await async_client.patch(f"{BASE}/{request['id']}/hr")
    assert resp.status_code == 200
    assert resp.json()["status"] == "APPROVED"

    actor.become("employee")
    record = (await async_client.get("/api/v1/attendance/record", params={"date": "2024-02-05"})).json()
    assert record["id"] == record_id
    assert [p["type"] for p in record["punches"]] == ["IN", "OUT"]
    assert record["punches"][0]["time"].startswith("2024-02-05T09:00:00")
    assert record["total_work_minutes"] == 480


@pytest.mark.asyncio
async def test_client_status_is_ignored(async_client: AsyncClient, record_id):
    request = await _submit(async_client, record_id, status="APPROVED")
    assert request["status"] == "SUBMITTED"


@pytest.mark.asyncio
async def test_unknown_record(async_client: AsyncClient):
    resp = await async_client.post(BASE, json={"attendance_record_id": 77})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_hr_before_manager_is_conflict(async_client: AsyncClient, record_id):
    request = await _submit(async_client, record_id)
    resp = await async_client.patch(f"{BASE}/{request['id']}/hr")
    assert resp.status_code == 409
    body = resp.json()
    assert body["current_status"] == "SUBMITTED"
    assert body["expected_status"] == "IN_REVIEW"

    record = (await async_client.get("/api/v1/attendance/record", params={"date": "2024-02-05"})).json()
    assert [p["type"] for p in record["punches"]] == ["IN"]


@pytest.mark.asyncio
async def test_cannot_reject_approved(async_client: AsyncClient, record_id):
    request = await _submit(async_client, record_id)
    await async_client.patch(f"{BASE}/{request['id']}/manager")
    await async_client.patch(f"{BASE}/{request['id']}/hr")

    resp = await async_client.patch(f"{BASE}/{request['id']}/reject")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Cannot reject an already approved correction request"


@pytest.mark.asyncio
async def test_escalate_from_any_state(async_client: AsyncClient, record_id):
    request = await _submit(async_client, record_id)
    await async_client.patch(f"{BASE}/{request['id']}/manager")
    await async_client.patch(f"{BASE}/{request['id']}/hr")

    resp = await async_client.patch(f"{BASE}/{request['id']}/escalate")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ESCALATED"


@pytest.mark.asyncio
async def test_manager_cannot_give_final_approval(async_client: AsyncClient, actor, record_id):
    request = await _submit(async_client, record_id)
    actor.become("manager", employee_id="MGR-1")
    await async_client.patch(f"{BASE}/{request['id']}/manager")
    resp = await async_client.patch(f"{BASE}/{request['id']}/hr")
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_employee_cannot_review(async_client: AsyncClient, actor, record_id):
    request = await _submit(async_client, record_id)
    actor.become("employee")
    for step in ("manager", "reject", "escalate"):
        resp = await async_client.patch(f"{BASE}/{request['id']}/{step}")
        assert resp.status_code == 403


@pytest.mark.asyncio
async def test_visibility(async_client: AsyncClient, actor, record_id):
    """Employees see only their own requests; reviewers see all."""
    mine = await _submit(async_client, record_id)
    theirs = await _submit(async_client, record_id, employee_id="EMP-002")

    actor.become("employee")
    listed = (await async_client.get(BASE)).json()
    assert [r["id"] for r in listed] == [mine["id"]]
    assert (await async_client.get(f"{BASE}/{mine['id']}")).status_code == 200
    assert (await async_client.get(f"{BASE}/{theirs['id']}")).status_code == 403

    actor.become("hr", employee_id="HR-1")
    assert len((await async_client.get(BASE)).json()) == 2


@pytest.mark.asyncio
async def test_employee_cannot_file_against_anothers_record(async_client: AsyncClient, actor, record_id):
    actor.become("employee", employee_id="EMP-002")
    resp = await async_client.post(BASE, json={"attendance_record_id": record_id, "reason": "Not mine"})
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Not your attendance record"
    assert (await async_client.get(BASE)).json() == []

    actor.become("manager", employee_id="MGR-1")
    assert (await async_client.post(BASE, json={"attendance_record_id": record_id})).status_code == 201


@pytest.mark.asyncio
async def test_finalize_is_advisory(async_client: AsyncClient, record_id):
    request = await _submit(async_client, record_id)

    resp = await async_client.get(f"{BASE}/{request['id']}/finalize")
    assert resp.status_code == 200
    advice = resp.json()
    assert advice["can_apply_correction"] is False
    assert advice["requires_manager_review"] is True
    assert advice["reason"] == "Card reader was down"

    again = (await async_client.get(f"{BASE}/{request['id']}")).json()
    assert again["status"] == "SUBMITTED"

    await async_client.patch(f"{BASE}/{request['id']}/manager")
    await async_client.patch(f"{BASE}/{request['id']}/hr")
    advice = (await async_client.get(f"{BASE}/{request['id']}/finalize")).json()
    assert advice["can_apply_correction"] is True
    assert "Apply correction to attendance record" in advice["suggested_actions"]


@pytest.mark.asyncio
async def test_missing_request(async_client: AsyncClient):
    resp = await async_client.patch(f"{BASE}/9999/manager")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Correction request with ID 9999 not found"
