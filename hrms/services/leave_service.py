"""
Leave request and leave balance helpers: duration, overlap detection, ownership lookups and loading.
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, and_, func  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore
from sqlalchemy.orm import selectinload  # type: ignore

from hrms.errors import NotFound, ValidationFailed
from hrms.models import ACTIVE_LEAVE_STATUSES, LeaveBalance, LeaveBalanceSchema, LeaveRequest, LeaveRequestSchema


def leave_days(start: date, end: date) -> Decimal:
    """Calendar days, both ends inclusive."""
    return Decimal((end - start).days + 1)


async def check_leave_overlap(db: AsyncSession, employee_id: int, start: date, end: date) -> None:
    """Raise ValidationFailed if [start, end] intersects a PENDING or APPROVED request of the employee."""
    result = await db.execute(
        select(LeaveRequest).where(
            and_(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
                LeaveRequest.start_date <= end,
                LeaveRequest.end_date >= start,
            )
        ).limit(1)
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        raise ValidationFailed(
            f"Overlaps with existing leave ({existing.start_date} to {existing.end_date})",
            code="OVERLAPPING_LEAVE",
        )


async def leave_owner_id(db: AsyncSession, request_id: int) -> int:
    """Owning employee of a leave request; the authorization check runs on this before the full fetch."""
    result = await db.execute(select(LeaveRequest.employee_id).where(LeaveRequest.id == request_id))
    row = result.first()
    if row is None:
        raise NotFound("Leave request not found")
    return row[0]


def leave_request_query():
    return select(LeaveRequest).options(selectinload(LeaveRequest.employee))


async def load_leave_request(db: AsyncSession, request_id: int) -> Optional[LeaveRequest]:
    result = await db.execute(
        leave_request_query()
        .where(LeaveRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def leave_snapshot(leave_request: LeaveRequest) -> dict:
    return LeaveRequestSchema.model_validate(leave_request).to_json()


async def balance_owner_id(db: AsyncSession, balance_id: int) -> int:
    result = await db.execute(select(LeaveBalance.employee_id).where(LeaveBalance.id == balance_id))
    row = result.first()
    if row is None:
        raise NotFound("Leave balance not found")
    return row[0]


def leave_balance_query():
    return select(LeaveBalance).options(selectinload(LeaveBalance.employee), selectinload(LeaveBalance.policy))


async def load_leave_balance(db: AsyncSession, balance_id: int) -> Optional[LeaveBalance]:
    result = await db.execute(
        leave_balance_query()
        .where(LeaveBalance.id == balance_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def balance_snapshot(balance: LeaveBalance) -> dict:
    return LeaveBalanceSchema.model_validate(balance).to_json()


async def active_requests_for_balance(db: AsyncSession, balance: LeaveBalance) -> int:
    """PENDING/APPROVED requests of the balance's employee under the same policy."""
    result = await db.execute(
        select(func.count(LeaveRequest.id)).where(
            LeaveRequest.employee_id == balance.employee_id,
            LeaveRequest.policy_id == balance.policy_id,
            LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
        )
    )
    return result.scalar() or 0
