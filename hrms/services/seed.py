"""
Shared seed logic for the admin account and the default leave policies.
Used by scripts/seed_admin.py.
"""
import os
from decimal import Decimal

from sqlalchemy import select  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore

from hrms.models import User as UserModel, LeavePolicy, LeaveType, Role
from hrms.utils.security import get_password_hash


# Default admin credentials (override through the environment)
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@hrms.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin@123")

DEFAULT_LEAVE_POLICIES = [
    ("Annual Leave", LeaveType.ANNUAL, Decimal("21"), True, Decimal("5")),
    ("Sick Leave", LeaveType.SICK, Decimal("10"), False, None),
    ("Emergency Leave", LeaveType.EMERGENCY, Decimal("3"), False, None),
    ("Unpaid Leave", LeaveType.UNPAID, Decimal("30"), False, None),
]


async def run_seed_admin(db: AsyncSession) -> bool:
    """
    Create default admin user if not present. Does not commit.
    Returns True if admin was created, False if already existed.
    """
    result = await db.execute(select(UserModel).where(UserModel.email == ADMIN_EMAIL))
    if result.scalar_one_or_none():
        return False

    db.add(
        UserModel(
            email=ADMIN_EMAIL,
            hashed_password=get_password_hash(ADMIN_PASSWORD),
            role=Role.ADMIN,
            is_active=True,
        )
    )
    await db.flush()
    return True


async def run_seed_leave_policies(db: AsyncSession) -> int:
    """Add any default leave policy missing by name. Does not commit. Returns the number created."""
    result = await db.execute(select(LeavePolicy.name))
    existing = {row[0] for row in result.all()}
    created = 0
    for name, leave_type, days, carry_forward, max_carry in DEFAULT_LEAVE_POLICIES:
        if name in existing:
            continue
        db.add(
            LeavePolicy(
                name=name,
                leave_type=leave_type,
                days_allowed=days,
                carry_forward=carry_forward,
                max_carry_forward=max_carry,
                is_active=True,
            )
        )
        created += 1
    if created:
        await db.flush()
    return created
