from sqlalchemy import func, select

from hrms.models import LeavePolicy, LeaveType, Role, User
from hrms.services.seed import ADMIN_EMAIL, DEFAULT_LEAVE_POLICIES, run_seed_admin, run_seed_leave_policies


async def test_seed_admin_is_idempotent(db):
    assert await run_seed_admin(db) is True
    await db.commit()
    assert await run_seed_admin(db) is False

    admin = (await db.execute(select(User).where(User.email == ADMIN_EMAIL))).scalar_one()
    assert admin.role == Role.ADMIN


async def test_seed_leave_policies_fills_gaps_only(db):
    db.add(LeavePolicy(name="Sick Leave", leave_type=LeaveType.SICK, days_allowed=12, carry_forward=False, is_active=True))
    await db.commit()

    created = await run_seed_leave_policies(db)
    await db.commit()
    assert created == len(DEFAULT_LEAVE_POLICIES) - 1
    assert await run_seed_leave_policies(db) == 0

    total = (await db.execute(select(func.count(LeavePolicy.id)))).scalar()
    assert total == len(DEFAULT_LEAVE_POLICIES)
    sick = (await db.execute(select(LeavePolicy).where(LeavePolicy.name == "Sick Leave"))).scalar_one()
    assert sick.days_allowed == 12
