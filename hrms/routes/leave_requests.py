"""
Leave requests: apply, list, view, review (approve/reject) and cancel.

Every path is scoped on the owning employee: EMPLOYEE sees and files only its
own requests, MANAGER those of itself and its direct reports, ADMIN/HR all.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore

from hrms.db import get_db
from hrms.errors import Forbidden, NotFound, ValidationFailed
from hrms.models import (
    AuditAction,
    Employee,
    EmploymentStatus,
    LeavePolicy,
    LeaveRequest,
    LeaveRequestCreate,
    LeaveRequestStatus,
    LeaveReview,
    Role,
)
from hrms.services.access import authorize_employee, check_access, get_directory
from hrms.services.audit import AuditRecorder, get_audit_recorder
from hrms.services.directory import EmployeeDirectory
from hrms.services.leave_service import (
    check_leave_overlap,
    leave_days,
    leave_owner_id,
    leave_request_query,
    leave_snapshot,
    load_leave_request,
)
from hrms.services.principal import Principal
from hrms.services.scope import build_scope_filter
from hrms.utils.action_log import log_principal_action
from hrms.utils.pagination import PageParams, paginate, paginated, success
from hrms.utils.request_info import request_meta
from hrms.utils.roles import ALL_ROLES, MANAGEMENT

router = APIRouter(prefix="/api/leave-requests", tags=["Leave Requests"])

RESOURCE = "leave_requests"
CANCELLABLE = (LeaveRequestStatus.PENDING, LeaveRequestStatus.APPROVED)


@router.get("")
async def list_leave_requests(
    request: Request,
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    request_status: Optional[LeaveRequestStatus] = Query(None, alias="status"),
    policy_id: Optional[int] = Query(None, alias="policyId"),
    page: PageParams = Depends(),
    principal: Principal = Depends(check_access(ALL_ROLES)),
    directory: EmployeeDirectory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    scope = await build_scope_filter(
        principal, directory, [employee_id] if employee_id is not None else None
    )
    filters = []
    if request_status is not None:
        filters.append(LeaveRequest.status == request_status)
    if policy_id is not None:
        filters.append(LeaveRequest.policy_id == policy_id)

    query = scope.apply(leave_request_query(), LeaveRequest.employee_id, *filters)
    query = query.order_by(LeaveRequest.applied_at.desc(), LeaveRequest.id.desc())
    rows, total = await paginate(db, query, page)
    items = [leave_snapshot(r) for r in rows]

    await recorder.record(
        principal, AuditAction.READ, RESOURCE,
        meta=request_meta(request),
        summary=f"Listed leave requests (page {page.page}, {len(items)} of {total})",
    )
    return paginated("leaveRequests", items, total, page)


@router.get("/{request_id}")
async def get_leave_request(
    request_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ALL_ROLES)),
    directory: EmployeeDirectory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    owner_id = await leave_owner_id(db, request_id)
    await authorize_employee(principal, directory, owner_id)
    leave_request = await load_leave_request(db, request_id)
    data = leave_snapshot(leave_request)

    await recorder.record(
        principal, AuditAction.READ, RESOURCE, request_id,
        meta=request_meta(request),
        summary=f"Viewed leave request {request_id}",
    )
    return success(data)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_leave_request(
    payload: LeaveRequestCreate,
    request: Request,
    principal: Principal = Depends(check_access(ALL_ROLES)),
    directory: EmployeeDirectory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    employee_id = payload.employee_id if payload.employee_id is not None else principal.employee_id
    if employee_id is None:
        raise ValidationFailed("No employee record is linked to this account", code="NO_EMPLOYEE_RECORD")
    await authorize_employee(principal, directory, employee_id)

    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise NotFound("Employee not found")
    if employee.employment_status == EmploymentStatus.TERMINATED:
        raise ValidationFailed("Cannot apply leave for a terminated employee", code="EMPLOYEE_TERMINATED")

    policy = await db.get(LeavePolicy, payload.policy_id)
    if policy is None or not policy.is_active:
        raise ValidationFailed("Leave policy not found or inactive", code="POLICY_NOT_FOUND")

    await check_leave_overlap(db, employee_id, payload.start_date, payload.end_date)

    leave_request = LeaveRequest(
        employee_id=employee_id,
        policy_id=policy.id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        days=leave_days(payload.start_date, payload.end_date),
        reason=payload.reason,
        status=LeaveRequestStatus.PENDING,
    )
    db.add(leave_request)
    await db.commit()

    leave_request = await load_leave_request(db, leave_request.id)
    after = leave_snapshot(leave_request)
    await recorder.record(
        principal, AuditAction.CREATE, RESOURCE, leave_request.id,
        after=after,
        meta=request_meta(request),
        summary=f"Applied {policy.name} leave for employee {employee.employee_id} ({after['days']} days)",
    )
    log_principal_action(
        principal, "APPLY_LEAVE",
        target=leave_request.id, employee=employee_id, start=str(payload.start_date), end=str(payload.end_date),
    )
    return success(after, "Leave request submitted successfully")


@router.patch("/{request_id}/review")
async def review_leave_request(
    request_id: int,
    payload: LeaveReview,
    request: Request,
    principal: Principal = Depends(check_access(MANAGEMENT)),
    directory: EmployeeDirectory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Approve or reject a PENDING request. A MANAGER reviews only its direct reports, never itself."""
    owner_id = await leave_owner_id(db, request_id)
    if principal.role == Role.MANAGER and owner_id == principal.employee_id:
        raise Forbidden("You cannot review your own leave request", code="SELF_REVIEW")
    await authorize_employee(principal, directory, owner_id)

    leave_request = await load_leave_request(db, request_id)
    if leave_request.status != LeaveRequestStatus.PENDING:
        raise ValidationFailed(
            f"Only pending requests can be reviewed (current status: {leave_request.status.value})",
            code="INVALID_STATUS",
        )

    before = leave_snapshot(leave_request)
    leave_request.status = payload.status
    leave_request.reviewed_by_id = principal.user_id
    leave_request.reviewed_at = datetime.utcnow()
    leave_request.review_comment = payload.comment
    await db.commit()

    leave_request = await load_leave_request(db, request_id)
    after = leave_snapshot(leave_request)
    await recorder.record(
        principal, AuditAction.UPDATE, RESOURCE, request_id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"{payload.status.value.capitalize()} leave request {request_id}",
    )
    log_principal_action(principal, f"{payload.status.value}_LEAVE", target=request_id, employee=owner_id)
    return success(after, f"Leave request {payload.status.value.lower()}")


@router.patch("/{request_id}/cancel")
async def cancel_leave_request(
    request_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ALL_ROLES)),
    directory: EmployeeDirectory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """The owner (or ADMIN/HR) cancels a PENDING or APPROVED request."""
    owner_id = await leave_owner_id(db, request_id)
    await authorize_employee(principal, directory, owner_id)
    if not principal.has_role(Role.ADMIN, Role.HR) and owner_id != principal.employee_id:
        raise Forbidden("Only the requester can cancel this leave request", code="NOT_OWNER")

    leave_request = await load_leave_request(db, request_id)
    if leave_request.status not in CANCELLABLE:
        raise ValidationFailed(
            f"Cannot cancel a {leave_request.status.value.lower()} leave request",
            code="INVALID_STATUS",
        )

    before = leave_snapshot(leave_request)
    leave_request.status = LeaveRequestStatus.CANCELLED
    await db.commit()

    leave_request = await load_leave_request(db, request_id)
    after = leave_snapshot(leave_request)
    await recorder.record(
        principal, AuditAction.UPDATE, RESOURCE, request_id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Cancelled leave request {request_id}",
    )
    log_principal_action(principal, "CANCEL_LEAVE", target=request_id, employee=owner_id)
    return success(after, "Leave request cancelled")
