from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import select, func  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore
from typing import Optional

from hrms.db import get_db
from hrms.errors import NotFound, ValidationFailed
from hrms.models import (
    AuditAction,
    Department,
    DepartmentCreate,
    DepartmentSchema,
    DepartmentUpdate,
    Employee,
    EmploymentStatus,
)
from hrms.services.access import check_access
from hrms.services.audit import AuditRecorder, get_audit_recorder
from hrms.services.principal import Principal
from hrms.utils.action_log import log_principal_action
from hrms.utils.pagination import LIKE_ESCAPE, PageParams, contains_pattern, paginate, paginated, success
from hrms.utils.request_info import request_meta
from hrms.utils.roles import ADMIN_HR, ALL_ROLES

router = APIRouter(prefix="/api/departments", tags=["Departments"])

RESOURCE = "departments"


async def _get_department_or_404(db: AsyncSession, department_id: int) -> Department:
    department = await db.get(Department, department_id)
    if department is None:
        raise NotFound("Department not found")
    return department


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(Department.id).where(func.lower(Department.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.where(Department.id != exclude_id)
    if (await db.execute(query)).first():
        raise ValidationFailed("Department name already exists", code="DUPLICATE_NAME")


@router.get("")
async def list_departments(
    request: Request,
    search: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: PageParams = Depends(),
    principal: Principal = Depends(check_access(ALL_ROLES)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    query = select(Department)
    if search:
        query = query.where(func.lower(Department.name).like(contains_pattern(search), escape=LIKE_ESCAPE))
    if is_active is not None:
        query = query.where(Department.is_active == is_active)
    rows, total = await paginate(db, query.order_by(Department.name), page)
    items = [DepartmentSchema.model_validate(d).to_json() for d in rows]

    await recorder.record(
        principal, AuditAction.READ, RESOURCE,
        meta=request_meta(request),
        summary=f"Listed departments (page {page.page}, {len(items)} of {total})",
    )
    return paginated("departments", items, total, page)


@router.get("/{department_id}")
async def get_department(
    department_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ALL_ROLES)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    department = await _get_department_or_404(db, department_id)
    headcount = (await db.execute(
        select(func.count(Employee.id)).where(
            Employee.department_id == department.id,
            Employee.employment_status == EmploymentStatus.ACTIVE,
        )
    )).scalar() or 0
    data = DepartmentSchema.model_validate(department).to_json()
    data["activeEmployees"] = headcount

    await recorder.record(
        principal, AuditAction.READ, RESOURCE, department.id,
        meta=request_meta(request),
        summary=f"Viewed department {department.name}",
    )
    return success(data)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_department(
    payload: DepartmentCreate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    await _ensure_name_free(db, payload.name)
    department = Department(name=payload.name.strip(), description=payload.description)
    db.add(department)
    await db.commit()
    await db.refresh(department)

    after = DepartmentSchema.model_validate(department).to_json()
    await recorder.record(
        principal, AuditAction.CREATE, RESOURCE, department.id,
        after=after,
        meta=request_meta(request),
        summary=f"Created department {department.name}",
    )
    log_principal_action(principal, "CREATE_DEPARTMENT", target=department.id, name=department.name)
    return success(after, "Department created successfully")


@router.put("/{department_id}")
async def update_department(
    department_id: int,
    payload: DepartmentUpdate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    department = await _get_department_or_404(db, department_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No fields to update", code="NO_CHANGES")
    if changes.get("name") is None and "name" in changes:
        raise ValidationFailed("Department name cannot be null")
    if changes.get("is_active") is None and "is_active" in changes:
        raise ValidationFailed("isActive cannot be null")
    if "name" in changes:
        await _ensure_name_free(db, changes["name"], exclude_id=department.id)
        changes["name"] = changes["name"].strip()

    before = DepartmentSchema.model_validate(department).to_json()
    for field, value in changes.items():
        setattr(department, field, value)
    await db.commit()
    await db.refresh(department)

    after = DepartmentSchema.model_validate(department).to_json()
    await recorder.record(
        principal, AuditAction.UPDATE, RESOURCE, department.id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Updated department {department.name}",
    )
    log_principal_action(principal, "UPDATE_DEPARTMENT", target=department.id)
    return success(after, "Department updated successfully")


@router.delete("/{department_id}")
async def delete_department(
    department_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Soft delete; refused while any ACTIVE employee belongs to the department."""
    department = await _get_department_or_404(db, department_id)
    active = (await db.execute(
        select(func.count(Employee.id)).where(
            Employee.department_id == department.id,
            Employee.employment_status == EmploymentStatus.ACTIVE,
        )
    )).scalar() or 0
    if active:
        raise ValidationFailed(
            f"Cannot delete department with {active} active employees",
            code="HAS_ACTIVE_EMPLOYEES",
        )

    before = DepartmentSchema.model_validate(department).to_json()
    department.is_active = False
    await db.commit()
    await db.refresh(department)

    after = DepartmentSchema.model_validate(department).to_json()
    await recorder.record(
        principal, AuditAction.DELETE, RESOURCE, department.id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Deactivated department {department.name}",
    )
    log_principal_action(principal, "DELETE_DEPARTMENT", target=department.id)
    return success(after, "Department deleted successfully")
