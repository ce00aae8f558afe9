"""Leave balances: allocation rules, ownership scoping and the audit trail."""
from datetime import date
from decimal import Decimal

import pytest

from hrms.models import AuditAction, LeaveBalance, LeaveRequest, LeaveRequestStatus
from tests.helpers import audit_entries, count_audit


@pytest.fixture
async def balances(world, db):
    """One 2025 Annual Leave balance per employee in the seeded organisation, keyed by employee code."""
    rows = {}
    for employee in (world.h1, world.m1, world.m2, world.e1, world.e2, world.e3, world.s1):
        rows[employee.employee_id] = LeaveBalance(
            employee_id=employee.id, policy_id=world.policy.id, year=2025, allocated=Decimal("21")
        )
    db.add_all(rows.values())
    await db.commit()
    return rows


def balance_ids(response):
    return {b["id"] for b in response.json()["data"]["balances"]}


async def test_hr_allocates_a_balance(client, world, session_factory):
    response = await client.post(
        "/api/leave-balances",
        json={"employeeId": world.e1.id, "policyId": world.policy.id, "year": 2026, "allocated": 21, "carryForward": 4},
        headers=world.headers["hr"],
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["employee"]["employeeId"] == "E1"
    assert data["policy"]["name"] == "Annual Leave"
    assert float(data["used"]) == 0
    assert float(data["remaining"]) == 25

    created = await audit_entries(session_factory, action=AuditAction.CREATE, resource_type="leave_balances")
    assert len(created) == 1
    assert created[0].resource_id == data["id"]
    assert created[0].before_state is None
    assert float(created[0].after_state["allocated"]) == 21


async def test_one_balance_per_employee_policy_and_year(client, world, balances, session_factory):
    payload = {"employeeId": world.e1.id, "policyId": world.policy.id, "year": 2025, "allocated": 10}
    response = await client.post("/api/leave-balances", json=payload, headers=world.headers["admin"])
    assert response.status_code == 400
    assert response.json()["code"] == "DUPLICATE_BALANCE"
    assert await count_audit(session_factory, action=AuditAction.CREATE) == 0

    response = await client.post(
        "/api/leave-balances", json=dict(payload, year=2026), headers=world.headers["admin"]
    )
    assert response.status_code == 201


@pytest.mark.parametrize(
    "field,value,code",
    [("employeeId", 987654, "EMPLOYEE_NOT_FOUND"), ("policyId", 987654, "POLICY_NOT_FOUND")],
)
async def test_create_checks_references(client, world, field, value, code):
    payload = {"employeeId": world.e1.id, "policyId": world.policy.id, "year": 2026, "allocated": 10}
    payload[field] = value
    response = await client.post("/api/leave-balances", json=payload, headers=world.headers["hr"])
    assert response.status_code == 400
    assert response.json()["code"] == code


@pytest.mark.parametrize("role", ["manager", "emp1"])
async def test_only_admin_hr_change_allocations(client, world, balances, session_factory, role):
    payload = {"employeeId": world.e1.id, "policyId": world.policy.id, "year": 2026, "allocated": 30}
    response = await client.post("/api/leave-balances", json=payload, headers=world.headers[role])
    assert response.status_code == 403
    assert response.json()["code"] == "ROLE_NOT_ALLOWED"

    balance_id = balances["E1"].id
    response = await client.put(f"/api/leave-balances/{balance_id}", json={"allocated": 30}, headers=world.headers[role])
    assert response.status_code == 403
    response = await client.delete(f"/api/leave-balances/{balance_id}", headers=world.headers[role])
    assert response.status_code == 403
    assert await count_audit(session_factory) == 0


async def test_employee_lists_only_own_balances(client, world, balances):
    response = await client.get("/api/leave-balances", headers=world.headers["emp1"])
    assert response.status_code == 200
    assert balance_ids(response) == {balances["E1"].id}


@pytest.mark.parametrize("role,code", [("emp1", "E2"), ("manager", "E3"), ("manager", "S1")])
async def test_explicit_out_of_scope_employee_is_forbidden(client, world, balances, role, code):
    employee = {"E2": world.e2, "E3": world.e3, "S1": world.s1}[code]
    response = await client.get(
        "/api/leave-balances", params={"employeeId": employee.id}, headers=world.headers[role]
    )
    assert response.status_code == 403
    assert response.json()["code"] == "OUT_OF_SCOPE"

    response = await client.get(f"/api/leave-balances/{balances[code].id}", headers=world.headers[role])
    assert response.status_code == 403


async def test_manager_filters_to_a_direct_report(client, world, balances):
    response = await client.get(
        "/api/leave-balances", params={"employeeId": world.e2.id}, headers=world.headers["manager"]
    )
    assert balance_ids(response) == {balances["E2"].id}


async def test_manager_list_and_detail_agree(client, world, balances):
    listed = balance_ids(await client.get("/api/leave-balances", params={"limit": 100}, headers=world.headers["manager"]))
    assert listed == {balances["M1"].id, balances["E1"].id, balances["E2"].id}
    for code, balance in balances.items():
        detail = await client.get(f"/api/leave-balances/{balance.id}", headers=world.headers["manager"])
        assert (detail.status_code == 200) == (balance.id in listed), code


async def test_admin_sees_every_balance_filtered_by_year(client, world, balances, db):
    db.add(LeaveBalance(employee_id=world.e1.id, policy_id=world.policy.id, year=2024, allocated=Decimal("18")))
    await db.commit()

    response = await client.get("/api/leave-balances", params={"limit": 100}, headers=world.headers["admin"])
    assert response.json()["data"]["pagination"]["total"] == 8
    assert response.json()["data"]["balances"][-1]["year"] == 2024

    response = await client.get("/api/leave-balances", params={"year": 2024}, headers=world.headers["admin"])
    assert [b["employeeId"] for b in response.json()["data"]["balances"]] == [world.e1.id]


async def test_update_recomputes_remaining(client, world, balances, session_factory):
    balance_id = balances["E1"].id
    response = await client.put(
        f"/api/leave-balances/{balance_id}", json={"used": 5, "carryForward": 2}, headers=world.headers["hr"]
    )
    assert response.status_code == 200
    assert float(response.json()["data"]["remaining"]) == 18

    updates = await audit_entries(session_factory, action=AuditAction.UPDATE, resource_type="leave_balances")
    assert len(updates) == 1
    assert float(updates[0].before_state["remaining"]) == 21
    assert float(updates[0].after_state["remaining"]) == 18


async def test_used_cannot_exceed_what_was_granted(client, world, balances, session_factory):
    response = await client.put(
        f"/api/leave-balances/{balances['E1'].id}", json={"used": 22}, headers=world.headers["hr"]
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_BALANCE"
    assert await count_audit(session_factory, action=AuditAction.UPDATE) == 0


async def test_empty_update_is_rejected(client, world, balances):
    response = await client.put(f"/api/leave-balances/{balances['E1'].id}", json={}, headers=world.headers["hr"])
    assert response.status_code == 400
    assert response.json()["code"] == "NO_CHANGES"


async def test_balance_with_active_requests_cannot_be_deleted(client, world, balances, db, session_factory):
    leave_request = LeaveRequest(
        employee_id=world.e1.id,
        policy_id=world.policy.id,
        start_date=date(2025, 7, 1),
        end_date=date(2025, 7, 2),
        days=2,
        status=LeaveRequestStatus.PENDING,
    )
    db.add(leave_request)
    await db.commit()

    balance_id = balances["E1"].id
    response = await client.delete(f"/api/leave-balances/{balance_id}", headers=world.headers["admin"])
    assert response.status_code == 400
    assert response.json()["code"] == "BALANCE_IN_USE"

    leave_request.status = LeaveRequestStatus.CANCELLED
    await db.commit()
    response = await client.delete(f"/api/leave-balances/{balance_id}", headers=world.headers["admin"])
    assert response.status_code == 200

    deletes = await audit_entries(session_factory, action=AuditAction.DELETE, resource_type="leave_balances")
    assert len(deletes) == 1
    assert deletes[0].before_state["id"] == balance_id
    assert deletes[0].after_state is None

    response = await client.get(f"/api/leave-balances/{balance_id}", headers=world.headers["admin"])
    assert response.status_code == 404


async def test_missing_balance_is_404(client, world):
    response = await client.get("/api/leave-balances/987654", headers=world.headers["hr"])
    assert response.status_code == 404
    response = await client.put("/api/leave-balances/987654", json={"used": 1}, headers=world.headers["hr"])
    assert response.status_code == 404


async def test_reads_are_audited(client, world, balances, session_factory):
    await client.get(f"/api/leave-balances/{balances['E1'].id}", headers=world.headers["emp1"])
    await client.get("/api/leave-balances", headers=world.headers["emp1"])

    reads = await audit_entries(session_factory, action=AuditAction.READ, resource_type="leave_balances")
    assert [r.resource_id for r in reads] == [balances["E1"].id, None]
