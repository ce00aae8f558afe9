from datetime import datetime, timedelta

import pytest

from hrms.models import AuditAction, AuditLog


@pytest.fixture
async def trail(world, db):
    admin = world.users["admin"]
    now = datetime(2025, 5, 1, 12, 0, 0)
    entries = [
        AuditLog(actor_user_id=admin.id, action=AuditAction.CREATE, resource_type="employees", resource_id=1,
                 created_at=now - timedelta(days=2)),
        AuditLog(actor_user_id=admin.id, action=AuditAction.UPDATE, resource_type="employees", resource_id=1,
                 created_at=now - timedelta(days=1)),
        AuditLog(actor_user_id=world.users["hr"].id, action=AuditAction.CREATE, resource_type="departments",
                 resource_id=3, created_at=now),
    ]
    db.add_all(entries)
    await db.commit()
    return entries


def listed(response):
    return response.json()["data"]["auditLogs"]


@pytest.mark.parametrize("role", ["manager", "emp1"])
async def test_audit_trail_is_admin_hr_only(client, world, trail, role):
    response = await client.get("/api/audit-logs", headers=world.headers[role])
    assert response.status_code == 403

    response = await client.get(f"/api/audit-logs/{trail[0].id}", headers=world.headers[role])
    assert response.status_code == 403


async def test_newest_first(client, world, trail):
    response = await client.get("/api/audit-logs", params={"to": "2025-05-02T00:00:00"}, headers=world.headers["hr"])
    assert [e["id"] for e in listed(response)] == [trail[2].id, trail[1].id, trail[0].id]


async def test_filters_combine(client, world, trail):
    response = await client.get(
        "/api/audit-logs",
        params={"resourceType": "employees", "actorId": world.users["admin"].id, "action": "UPDATE"},
        headers=world.headers["admin"],
    )
    assert [e["id"] for e in listed(response)] == [trail[1].id]


async def test_time_range_is_inclusive(client, world, trail):
    response = await client.get(
        "/api/audit-logs",
        params={"from": "2025-04-29T12:00:00", "to": "2025-04-30T12:00:00"},
        headers=world.headers["admin"],
    )
    assert {e["id"] for e in listed(response)} == {trail[0].id, trail[1].id}


async def test_inverted_range_is_rejected(client, world, trail):
    response = await client.get(
        "/api/audit-logs",
        params={"from": "2025-05-02T00:00:00", "to": "2025-05-01T00:00:00"},
        headers=world.headers["admin"],
    )
    assert response.status_code == 400


async def test_reading_the_trail_is_itself_audited(client, world, trail):
    await client.get(f"/api/audit-logs/{trail[0].id}", headers=world.headers["admin"])
    response = await client.get(
        "/api/audit-logs", params={"resourceType": "audit_logs"}, headers=world.headers["admin"]
    )
    entries = listed(response)
    assert len(entries) == 1
    assert entries[0]["resourceId"] == trail[0].id
    assert entries[0]["action"] == "READ"


async def test_detail_and_missing_entry(client, world, trail):
    response = await client.get(f"/api/audit-logs/{trail[2].id}", headers=world.headers["hr"])
    assert response.status_code == 200
    assert response.json()["data"]["resourceType"] == "departments"

    response = await client.get("/api/audit-logs/987654", headers=world.headers["hr"])
    assert response.status_code == 404


@pytest.mark.parametrize("method", ["post", "put", "patch", "delete"])
async def test_no_write_surface(client, world, trail, method):
    path = "/api/audit-logs" if method == "post" else f"/api/audit-logs/{trail[0].id}"
    response = await getattr(client, method)(path, headers=world.headers["admin"])
    assert response.status_code == 405


async def test_bare_dates_cover_whole_days(client, world, trail):
    response = await client.get(
        "/api/audit-logs", params={"from": "2025-05-01", "to": "2025-05-01"}, headers=world.headers["admin"]
    )
    assert [e["id"] for e in listed(response)] == [trail[2].id]

    response = await client.get(
        "/api/audit-logs", params={"from": "2025-04-29", "to": "2025-04-30"}, headers=world.headers["admin"]
    )
    assert [e["id"] for e in listed(response)] == [trail[1].id, trail[0].id]


async def test_todays_reads_are_found_by_todays_date(client, world, trail):
    await client.get(f"/api/audit-logs/{trail[0].id}", headers=world.headers["hr"])
    today = datetime.utcnow().date().isoformat()
    response = await client.get(
        "/api/audit-logs",
        params={"from": today, "to": today, "resourceType": "audit_logs"},
        headers=world.headers["hr"],
    )
    assert response.json()["data"]["pagination"]["total"] == 1


async def test_offset_timestamps_are_compared_in_utc(client, world, trail):
    response = await client.get(
        "/api/audit-logs",
        params={"from": "2025-05-01T13:30:00+02:00", "to": "2025-05-01T12:30:00Z"},
        headers=world.headers["admin"],
    )
    assert [e["id"] for e in listed(response)] == [trail[2].id]


async def test_unparseable_bound_is_rejected(client, world, trail):
    response = await client.get("/api/audit-logs", params={"to": "yesterday"}, headers=world.headers["admin"])
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_DATE"
