from unittest.mock import patch

from jose import jwt

from hrms.models import Role
from tests.helpers import PASSWORD, count_audit, make_user


async def test_login_issues_token_usable_on_protected_routes(client, world):
    response = await client.post("/auth/login", data={"username": "manager@acme.com", "password": PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["role"] == "MANAGER"
    assert body["employee_id"] == world.m1.id

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["data"] == {
        "userId": world.users["manager"].id,
        "email": "manager@acme.com",
        "role": "MANAGER",
        "employeeId": world.m1.id,
    }


async def test_login_with_wrong_password_fails(client, world, session_factory):
    response = await client.post("/auth/login", data={"username": "hr@acme.com", "password": "nope"})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_CREDENTIALS"
    assert await count_audit(session_factory) == 0


async def test_inactive_user_cannot_log_in(client, db):
    await make_user(db, "gone@acme.com", Role.EMPLOYEE, is_active=False)
    await db.commit()
    response = await client.post("/auth/login", data={"username": "gone@acme.com", "password": PASSWORD})
    assert response.status_code == 400
    assert response.json()["code"] == "INACTIVE_ACCOUNT"


async def test_demotion_applies_to_existing_tokens(client, world, db):
    world.users["hr"].role = Role.EMPLOYEE
    await db.commit()
    response = await client.get("/api/employees", headers=world.headers["hr"])
    assert response.status_code == 403


async def test_token_signed_with_another_key_is_rejected(client, world):
    forged = jwt.encode({"sub": str(world.users["admin"].id), "role": "ADMIN"}, "not-the-key", algorithm="HS256")
    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


async def test_health_reports_database(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "OK", "database": "Connected"}


async def test_health_reports_outage(client):
    with patch("hrms.main.ping_db", side_effect=ConnectionError("db down")):
        response = await client.get("/api/health")
    assert response.status_code == 503
    assert response.json()["status"] == "Service Unavailable"
