"""
Shared fixtures: an in-memory SQLite database (aiosqlite), the FastAPI app
wired to it through dependency overrides, and a small seeded organisation.

Organisation used by the HTTP tests (department "Engineering" unless noted):

    admin   ADMIN     no employee record
    hr      HR        H1
    manager MANAGER   M1
    emp1    EMPLOYEE  E1 (reports to M1)
    emp2    EMPLOYEE  E2 (reports to M1)
    emp3    EMPLOYEE  E3 (reports to M2)
    -                 M2 (no account, no manager)
    -                 S1 (department "Sales", no manager)
"""
import os
import tempfile

# Settings are read at import time of hrms.db / hrms.utils.security
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "hrms-test-logs"))
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hrms.db import Base, get_db
from hrms.main import app
from hrms.models import Department, LeavePolicy, LeaveType, Role
from hrms.services.audit import AuditRecorder, get_audit_recorder
from tests.helpers import auth_headers, make_employee, make_user


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def recorder(session_factory):
    return AuditRecorder(session_factory)


@pytest.fixture
async def client(session_factory, recorder):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_recorder] = lambda: recorder
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client
    app.dependency_overrides.clear()


@pytest.fixture
async def world(db):
    engineering = Department(name="Engineering", is_active=True)
    sales = Department(name="Sales", is_active=True)
    db.add_all([engineering, sales])
    await db.flush()

    admin = await make_user(db, "admin@acme.com", Role.ADMIN)
    hr = await make_user(db, "hr@acme.com", Role.HR)
    manager = await make_user(db, "manager@acme.com", Role.MANAGER)
    emp1 = await make_user(db, "emp1@acme.com", Role.EMPLOYEE)
    emp2 = await make_user(db, "emp2@acme.com", Role.EMPLOYEE)
    emp3 = await make_user(db, "emp3@acme.com", Role.EMPLOYEE)

    h1 = await make_employee(db, "H1", "Hana", "Reyes", department_id=engineering.id, user_id=hr.id)
    m1 = await make_employee(db, "M1", "Mona", "Keller", department_id=engineering.id, user_id=manager.id)
    m2 = await make_employee(db, "M2", "Mark", "Olsen", department_id=engineering.id)
    e1 = await make_employee(db, "E1", "Eli", "Brandt", department_id=engineering.id, manager_id=m1.id, user_id=emp1.id)
    e2 = await make_employee(db, "E2", "Eva", "Novak", department_id=engineering.id, manager_id=m1.id, user_id=emp2.id)
    e3 = await make_employee(db, "E3", "Ezra", "Stone", department_id=engineering.id, manager_id=m2.id, user_id=emp3.id)
    s1 = await make_employee(db, "S1", "Sam", "Ortiz", department_id=sales.id)

    policy = LeavePolicy(name="Annual Leave", leave_type=LeaveType.ANNUAL, days_allowed=21, carry_forward=False, is_active=True)
    db.add(policy)
    await db.commit()

    users = {"admin": admin, "hr": hr, "manager": manager, "emp1": emp1, "emp2": emp2, "emp3": emp3}
    return SimpleNamespace(
        engineering=engineering,
        sales=sales,
        users=users,
        headers={name: auth_headers(user) for name, user in users.items()},
        h1=h1, m1=m1, m2=m2, e1=e1, e2=e2, e3=e3, s1=s1,
        policy=policy,
    )
