"""
Leave balances: days allocated, used and carried forward per employee, policy and year.

Reads are open to every role and scoped on the owning employee exactly like
leave requests; allocation changes are ADMIN/HR only. `remaining` is derived
from the stored columns and never written.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import select  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore

from hrms.db import get_db
from hrms.errors import ValidationFailed
from hrms.models import (
    AuditAction,
    Employee,
    LeaveBalance,
    LeaveBalanceCreate,
    LeaveBalanceUpdate,
    LeavePolicy,
)
from hrms.services.access import authorize_employee, check_access, get_directory
from hrms.services.audit import AuditRecorder, get_audit_recorder
from hrms.services.directory import EmployeeDirectory
from hrms.services.leave_service import (
    active_requests_for_balance,
    balance_owner_id,
    balance_snapshot,
    leave_balance_query,
    load_leave_balance,
)
from hrms.services.principal import Principal
from hrms.services.scope import build_scope_filter
from hrms.utils.action_log import log_principal_action
from hrms.utils.pagination import PageParams, paginate, paginated, success
from hrms.utils.request_info import request_meta
from hrms.utils.roles import ADMIN_HR, ALL_ROLES

router = APIRouter(prefix="/api/leave-balances", tags=["Leave Balances"])

RESOURCE = "leave_balances"
BALANCE_FIELDS = ("allocated", "used", "carry_forward")


@router.get("")
async def list_leave_balances(
    request: Request,
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    policy_id: Optional[int] = Query(None, alias="policyId"),
    page: PageParams = Depends(),
    principal: Principal = Depends(check_access(ALL_ROLES)),
    directory: EmployeeDirectory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Newest year first. An explicit employeeId outside the caller's scope is Forbidden."""
    scope = await build_scope_filter(
        principal, directory, [employee_id] if employee_id is not None else None
    )
    filters = []
    if year is not None:
        filters.append(LeaveBalance.year == year)
    if policy_id is not None:
        filters.append(LeaveBalance.policy_id == policy_id)

    query = scope.apply(leave_balance_query(), LeaveBalance.employee_id, *filters)
    query = query.order_by(LeaveBalance.year.desc(), LeaveBalance.employee_id, LeaveBalance.policy_id)
    rows, total = await paginate(db, query, page)
    items = [balance_snapshot(b) for b in rows]

    await recorder.record(
        principal, AuditAction.READ, RESOURCE,
        meta=request_meta(request),
        summary=f"Listed leave balances (page {page.page}, {len(items)} of {total})",
    )
    return paginated("balances", items, total, page)


@router.get("/{balance_id}")
async def get_leave_balance(
    balance_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ALL_ROLES)),
    directory: EmployeeDirectory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    owner_id = await balance_owner_id(db, balance_id)
    await authorize_employee(principal, directory, owner_id)
    balance = await load_leave_balance(db, balance_id)
    data = balance_snapshot(balance)

    await recorder.record(
        principal, AuditAction.READ, RESOURCE, balance_id,
        meta=request_meta(request),
        summary=f"Viewed leave balance {balance_id}",
    )
    return success(data)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_leave_balance(
    payload: LeaveBalanceCreate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    employee = await db.get(Employee, payload.employee_id)
    if employee is None:
        raise ValidationFailed("Employee not found", code="EMPLOYEE_NOT_FOUND")
    policy = await db.get(LeavePolicy, payload.policy_id)
    if policy is None:
        raise ValidationFailed("Leave policy not found", code="POLICY_NOT_FOUND")

    existing = await db.execute(
        select(LeaveBalance.id).where(
            LeaveBalance.employee_id == payload.employee_id,
            LeaveBalance.policy_id == payload.policy_id,
            LeaveBalance.year == payload.year,
        )
    )
    if existing.first():
        raise ValidationFailed(
            "Leave balance already exists for this employee, policy, and year",
            code="DUPLICATE_BALANCE",
        )

    balance = LeaveBalance(**payload.model_dump())
    db.add(balance)
    await db.commit()

    balance = await load_leave_balance(db, balance.id)
    after = balance_snapshot(balance)
    await recorder.record(
        principal, AuditAction.CREATE, RESOURCE, balance.id,
        after=after,
        meta=request_meta(request),
        summary=f"Allocated {after['allocated']} days of {policy.name} for {payload.year} to employee {employee.employee_id}",
    )
    log_principal_action(
        principal, "CREATE_LEAVE_BALANCE",
        target=balance.id, employee=employee.id, policy=policy.id, year=payload.year,
    )
    return success(after, "Leave balance created successfully")


@router.put("/{balance_id}")
async def update_leave_balance(
    balance_id: int,
    payload: LeaveBalanceUpdate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    await balance_owner_id(db, balance_id)
    balance = await load_leave_balance(db, balance_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No fields to update", code="NO_CHANGES")
    nulled = sorted(f for f in BALANCE_FIELDS if f in changes and changes[f] is None)
    if nulled:
        raise ValidationFailed(f"Fields cannot be null: {', '.join(nulled)}")

    allocated = changes.get("allocated", balance.allocated)
    used = changes.get("used", balance.used)
    carry_forward = changes.get("carry_forward", balance.carry_forward)
    if used > allocated + carry_forward:
        raise ValidationFailed(
            "Used days cannot exceed allocated plus carried-forward days",
            code="INVALID_BALANCE",
        )

    before = balance_snapshot(balance)
    for field, value in changes.items():
        setattr(balance, field, value)
    await db.commit()

    balance = await load_leave_balance(db, balance_id)
    after = balance_snapshot(balance)
    await recorder.record(
        principal, AuditAction.UPDATE, RESOURCE, balance_id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Updated leave balance {balance_id}: {', '.join(sorted(changes))}",
    )
    log_principal_action(principal, "UPDATE_LEAVE_BALANCE", target=balance_id, fields=",".join(sorted(changes)))
    return success(after, "Leave balance updated successfully")


@router.delete("/{balance_id}")
async def delete_leave_balance(
    balance_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Hard delete; refused while the employee has PENDING or APPROVED requests under the policy."""
    await balance_owner_id(db, balance_id)
    balance = await load_leave_balance(db, balance_id)
    if await active_requests_for_balance(db, balance):
        raise ValidationFailed("Cannot delete balance with active leave requests", code="BALANCE_IN_USE")

    before = balance_snapshot(balance)
    await db.delete(balance)
    await db.commit()

    await recorder.record(
        principal, AuditAction.DELETE, RESOURCE, balance_id,
        before=before,
        meta=request_meta(request),
        summary=f"Deleted leave balance {balance_id}",
    )
    log_principal_action(principal, "DELETE_LEAVE_BALANCE", target=balance_id, employee=before["employeeId"])
    return success(None, "Leave balance deleted successfully")
