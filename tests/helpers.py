"""Factories and audit-trail queries shared by the test modules."""
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models import AuditLog, Employee, EmploymentStatus, Role, User
from hrms.utils.security import create_access_token, get_password_hash

PASSWORD = "Secret@123"


async def make_user(db: AsyncSession, email: str, role: Role, *, is_active: bool = True) -> User:
    user = User(email=email, hashed_password=get_password_hash(PASSWORD), role=role, is_active=is_active)
    db.add(user)
    await db.flush()
    return user


async def make_employee(db: AsyncSession, code: str, first: str, last: str, **fields) -> Employee:
    fields.setdefault("email", f"{code.lower()}@acme.com")
    fields.setdefault("hire_date", date(2022, 1, 10))
    fields.setdefault("employment_status", EmploymentStatus.ACTIVE)
    employee = Employee(employee_id=code, first_name=first, last_name=last, **fields)
    db.add(employee)
    await db.flush()
    return employee


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id), 'role': user.role.value})}"}


async def count_audit(session_factory, **filters) -> int:
    async with session_factory() as session:
        query = select(func.count(AuditLog.id))
        for column, value in filters.items():
            query = query.where(getattr(AuditLog, column) == value)
        return (await session.execute(query)).scalar()


async def audit_entries(session_factory, **filters) -> list:
    async with session_factory() as session:
        query = select(AuditLog).order_by(AuditLog.id)
        for column, value in filters.items():
            query = query.where(getattr(AuditLog, column) == value)
        return list((await session.execute(query)).scalars().all())
