from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import select, func  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore
from typing import Optional

from hrms.db import get_db
from hrms.errors import NotFound, ValidationFailed
from hrms.models import (
    ACTIVE_LEAVE_STATUSES,
    AuditAction,
    LeavePolicy,
    LeavePolicyCreate,
    LeavePolicySchema,
    LeavePolicyUpdate,
    LeaveRequest,
    LeaveType,
)
from hrms.services.access import check_access
from hrms.services.audit import AuditRecorder, get_audit_recorder
from hrms.services.principal import Principal
from hrms.utils.action_log import log_principal_action
from hrms.utils.pagination import PageParams, paginate, paginated, success
from hrms.utils.request_info import request_meta
from hrms.utils.roles import ADMIN_HR, ALL_ROLES

router = APIRouter(prefix="/api/leave-policies", tags=["Leave Policies"])

RESOURCE = "leave_policies"


async def _get_policy_or_404(db: AsyncSession, policy_id: int) -> LeavePolicy:
    policy = await db.get(LeavePolicy, policy_id)
    if policy is None:
        raise NotFound("Leave policy not found")
    return policy


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(LeavePolicy.id).where(func.lower(LeavePolicy.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.where(LeavePolicy.id != exclude_id)
    if (await db.execute(query)).first():
        raise ValidationFailed("Leave policy with this name already exists", code="DUPLICATE_NAME")


@router.get("")
async def list_leave_policies(
    request: Request,
    leave_type: Optional[LeaveType] = Query(None, alias="leaveType"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: PageParams = Depends(),
    principal: Principal = Depends(check_access(ALL_ROLES)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    query = select(LeavePolicy)
    if leave_type is not None:
        query = query.where(LeavePolicy.leave_type == leave_type)
    if is_active is not None:
        query = query.where(LeavePolicy.is_active == is_active)
    rows, total = await paginate(db, query.order_by(LeavePolicy.name), page)
    items = [LeavePolicySchema.model_validate(p).to_json() for p in rows]

    await recorder.record(
        principal, AuditAction.READ, RESOURCE,
        meta=request_meta(request),
        summary=f"Listed leave policies (page {page.page}, {len(items)} of {total})",
    )
    return paginated("policies", items, total, page)


@router.get("/{policy_id}")
async def get_leave_policy(
    policy_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ALL_ROLES)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    policy = await _get_policy_or_404(db, policy_id)
    data = LeavePolicySchema.model_validate(policy).to_json()
    await recorder.record(
        principal, AuditAction.READ, RESOURCE, policy.id,
        meta=request_meta(request),
        summary=f"Viewed leave policy {policy.name}",
    )
    return success(data)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_leave_policy(
    payload: LeavePolicyCreate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    await _ensure_name_free(db, payload.name)
    policy = LeavePolicy(**payload.model_dump())
    policy.name = policy.name.strip()
    db.add(policy)
    await db.commit()
    await db.refresh(policy)

    after = LeavePolicySchema.model_validate(policy).to_json()
    await recorder.record(
        principal, AuditAction.CREATE, RESOURCE, policy.id,
        after=after,
        meta=request_meta(request),
        summary=f"Created leave policy {policy.name}",
    )
    log_principal_action(principal, "CREATE_LEAVE_POLICY", target=policy.id, name=policy.name)
    return success(after, "Leave policy created successfully")


@router.put("/{policy_id}")
async def update_leave_policy(
    policy_id: int,
    payload: LeavePolicyUpdate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    policy = await _get_policy_or_404(db, policy_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No fields to update", code="NO_CHANGES")
    for field in ("name", "leave_type", "days_allowed", "carry_forward", "is_active"):
        if field in changes and changes[field] is None:
            raise ValidationFailed(f"{field} cannot be null")
    if "name" in changes:
        await _ensure_name_free(db, changes["name"], exclude_id=policy.id)
        changes["name"] = changes["name"].strip()

    before = LeavePolicySchema.model_validate(policy).to_json()
    for field, value in changes.items():
        setattr(policy, field, value)
    await db.commit()
    await db.refresh(policy)

    after = LeavePolicySchema.model_validate(policy).to_json()
    await recorder.record(
        principal, AuditAction.UPDATE, RESOURCE, policy.id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Updated leave policy {policy.name}",
    )
    log_principal_action(principal, "UPDATE_LEAVE_POLICY", target=policy.id)
    return success(after, "Leave policy updated successfully")


@router.delete("/{policy_id}")
async def delete_leave_policy(
    policy_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Soft delete; refused while PENDING or APPROVED requests reference the policy."""
    policy = await _get_policy_or_404(db, policy_id)
    in_use = (await db.execute(
        select(func.count(LeaveRequest.id)).where(
            LeaveRequest.policy_id == policy.id,
            LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
        )
    )).scalar() or 0
    if in_use:
        raise ValidationFailed("Cannot delete policy with active leave requests", code="POLICY_IN_USE")

    before = LeavePolicySchema.model_validate(policy).to_json()
    policy.is_active = False
    await db.commit()
    await db.refresh(policy)

    after = LeavePolicySchema.model_validate(policy).to_json()
    await recorder.record(
        principal, AuditAction.DELETE, RESOURCE, policy.id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Deactivated leave policy {policy.name}",
    )
    log_principal_action(principal, "DELETE_LEAVE_POLICY", target=policy.id)
    return success(after, "Leave policy deleted successfully")
