from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import select, func  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore
from typing import Optional

from hrms.db import get_db
from hrms.errors import NotFound, ValidationFailed
from hrms.models import (
    AuditAction,
    Department,
    Employee,
    EmploymentStatus,
    Position,
    PositionCreate,
    PositionSchema,
    PositionUpdate,
)
from hrms.services.access import check_access
from hrms.services.audit import AuditRecorder, get_audit_recorder
from hrms.services.principal import Principal
from hrms.utils.action_log import log_principal_action
from hrms.utils.pagination import LIKE_ESCAPE, PageParams, contains_pattern, paginate, paginated, success
from hrms.utils.request_info import request_meta
from hrms.utils.roles import ADMIN_HR, ALL_ROLES

router = APIRouter(prefix="/api/positions", tags=["Positions"])

RESOURCE = "positions"


async def _get_position_or_404(db: AsyncSession, position_id: int) -> Position:
    position = await db.get(Position, position_id)
    if position is None:
        raise NotFound("Position not found")
    return position


async def _ensure_department_active(db: AsyncSession, department_id: Optional[int]) -> None:
    if department_id is None:
        return
    department = await db.get(Department, department_id)
    if department is None or not department.is_active:
        raise ValidationFailed("Department not found or inactive", code="DEPARTMENT_NOT_FOUND")


async def _ensure_title_free(
    db: AsyncSession, title: str, department_id: Optional[int], exclude_id: Optional[int] = None
) -> None:
    """Titles are unique within a department (or among positions with no department)."""
    query = select(Position.id).where(func.lower(Position.title) == title.strip().lower())
    if department_id is None:
        query = query.where(Position.department_id.is_(None))
    else:
        query = query.where(Position.department_id == department_id)
    if exclude_id is not None:
        query = query.where(Position.id != exclude_id)
    if (await db.execute(query)).first():
        raise ValidationFailed("Position with this title already exists in the department", code="DUPLICATE_TITLE")


@router.get("")
async def list_positions(
    request: Request,
    search: Optional[str] = None,
    department_id: Optional[int] = Query(None, alias="departmentId"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: PageParams = Depends(),
    principal: Principal = Depends(check_access(ALL_ROLES)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    query = select(Position)
    if search:
        query = query.where(func.lower(Position.title).like(contains_pattern(search), escape=LIKE_ESCAPE))
    if department_id is not None:
        query = query.where(Position.department_id == department_id)
    if is_active is not None:
        query = query.where(Position.is_active == is_active)
    rows, total = await paginate(db, query.order_by(Position.title, Position.id), page)
    items = [PositionSchema.model_validate(p).to_json() for p in rows]

    await recorder.record(
        principal, AuditAction.READ, RESOURCE,
        meta=request_meta(request),
        summary=f"Listed positions (page {page.page}, {len(items)} of {total})",
    )
    return paginated("positions", items, total, page)


@router.get("/{position_id}")
async def get_position(
    position_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ALL_ROLES)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    position = await _get_position_or_404(db, position_id)
    data = PositionSchema.model_validate(position).to_json()
    await recorder.record(
        principal, AuditAction.READ, RESOURCE, position.id,
        meta=request_meta(request),
        summary=f"Viewed position {position.title}",
    )
    return success(data)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_position(
    payload: PositionCreate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    await _ensure_department_active(db, payload.department_id)
    await _ensure_title_free(db, payload.title, payload.department_id)

    position = Position(**payload.model_dump())
    position.title = position.title.strip()
    db.add(position)
    await db.commit()
    await db.refresh(position)

    after = PositionSchema.model_validate(position).to_json()
    await recorder.record(
        principal, AuditAction.CREATE, RESOURCE, position.id,
        after=after,
        meta=request_meta(request),
        summary=f"Created position {position.title}",
    )
    log_principal_action(principal, "CREATE_POSITION", target=position.id, title=position.title)
    return success(after, "Position created successfully")


@router.put("/{position_id}")
async def update_position(
    position_id: int,
    payload: PositionUpdate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    position = await _get_position_or_404(db, position_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No fields to update", code="NO_CHANGES")
    for field in ("title", "is_active"):
        if field in changes and changes[field] is None:
            raise ValidationFailed(f"{field} cannot be null")

    department_id = changes.get("department_id", position.department_id)
    if "department_id" in changes:
        await _ensure_department_active(db, department_id)
    if "title" in changes or "department_id" in changes:
        await _ensure_title_free(db, changes.get("title", position.title), department_id, exclude_id=position.id)

    min_salary = changes.get("min_salary", position.min_salary)
    max_salary = changes.get("max_salary", position.max_salary)
    if min_salary is not None and max_salary is not None and min_salary > max_salary:
        raise ValidationFailed("minSalary cannot exceed maxSalary", code="INVALID_SALARY_RANGE")

    before = PositionSchema.model_validate(position).to_json()
    for field, value in changes.items():
        setattr(position, field, value)
    await db.commit()
    await db.refresh(position)

    after = PositionSchema.model_validate(position).to_json()
    await recorder.record(
        principal, AuditAction.UPDATE, RESOURCE, position.id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Updated position {position.title}",
    )
    log_principal_action(principal, "UPDATE_POSITION", target=position.id)
    return success(after, "Position updated successfully")


@router.delete("/{position_id}")
async def delete_position(
    position_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    position = await _get_position_or_404(db, position_id)
    holders = (await db.execute(
        select(func.count(Employee.id)).where(
            Employee.position_id == position.id,
            Employee.employment_status == EmploymentStatus.ACTIVE,
        )
    )).scalar() or 0
    if holders:
        raise ValidationFailed(
            f"Cannot delete position held by {holders} active employees",
            code="HAS_ACTIVE_EMPLOYEES",
        )

    before = PositionSchema.model_validate(position).to_json()
    position.is_active = False
    await db.commit()
    await db.refresh(position)

    after = PositionSchema.model_validate(position).to_json()
    await recorder.record(
        principal, AuditAction.DELETE, RESOURCE, position.id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Deactivated position {position.title}",
    )
    log_principal_action(principal, "DELETE_POSITION", target=position.id)
    return success(after, "Position deleted successfully")
