"""
Employee records: list, detail, create, update and soft termination.

Reads are scoped by role (MANAGER: self + direct reports, EMPLOYEE: self);
every read and every successful mutation is written to the audit trail after
the data operation has committed.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import func, or_  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore

from hrms.db import get_db
from hrms.errors import ValidationFailed
from hrms.models import (
    AuditAction,
    Employee,
    EmployeeCreate,
    EmployeeDetailSchema,
    EmployeeRef,
    EmployeeSchema,
    EmployeeUpdate,
    EmploymentStatus,
    EmploymentType,
    User,
)
from hrms.services.access import authorize_employee, check_access, get_directory
from hrms.services.audit import AuditRecorder, get_audit_recorder
from hrms.services.directory import EmployeeDirectory
from hrms.services.employee_service import (
    employee_query,
    employee_snapshot,
    ensure_can_terminate,
    ensure_unique,
    get_employee_or_404,
    load_employee,
    validate_references,
)
from hrms.services.principal import Principal
from hrms.services.scope import build_scope_filter
from hrms.utils.action_log import log_principal_action
from hrms.utils.pagination import LIKE_ESCAPE, PageParams, contains_pattern, paginate, paginated, success
from hrms.utils.request_info import request_meta
from hrms.utils.roles import ADMIN_HR, ALL_ROLES, MANAGEMENT

router = APIRouter(prefix="/api/employees", tags=["Employees"])

RESOURCE = "employees"
NOT_NULL_FIELDS = {"first_name", "last_name", "email", "employment_type", "employment_status"}


@router.get("")
async def list_employees(
    request: Request,
    search: Optional[str] = None,
    department_id: Optional[int] = Query(None, alias="departmentId"),
    employment_status: Optional[EmploymentStatus] = Query(None, alias="employmentStatus"),
    employment_type: Optional[EmploymentType] = Query(None, alias="employmentType"),
    manager_id: Optional[int] = Query(None, alias="managerId"),
    employee_ids: Optional[List[int]] = Query(None, alias="employeeIds"),
    page: PageParams = Depends(),
    principal: Principal = Depends(check_access(MANAGEMENT)),
    directory: EmployeeDirectory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """List employees visible to the caller; ADMIN/HR see all, MANAGER sees self + direct reports."""
    scope = await build_scope_filter(principal, directory, employee_ids)

    filters = []
    if search:
        term = contains_pattern(search)
        filters.append(or_(
            func.lower(Employee.first_name).like(term, escape=LIKE_ESCAPE),
            func.lower(Employee.last_name).like(term, escape=LIKE_ESCAPE),
            func.lower(Employee.email).like(term, escape=LIKE_ESCAPE),
            func.lower(Employee.employee_id).like(term, escape=LIKE_ESCAPE),
        ))
    if department_id is not None:
        filters.append(Employee.department_id == department_id)
    if employment_status is not None:
        filters.append(Employee.employment_status == employment_status)
    if employment_type is not None:
        filters.append(Employee.employment_type == employment_type)
    if manager_id is not None:
        filters.append(Employee.manager_id == manager_id)

    query = scope.apply(employee_query(), Employee.id, *filters)
    query = query.order_by(Employee.last_name, Employee.first_name, Employee.id)
    rows, total = await paginate(db, query, page)
    items = [EmployeeSchema.model_validate(e).to_json() for e in rows]

    await recorder.record(
        principal, AuditAction.READ, RESOURCE,
        meta=request_meta(request),
        summary=f"Listed employees (page {page.page}, {len(items)} of {total})",
    )
    return paginated("employees", items, total, page)


@router.get("/{employee_id}")
async def get_employee(
    employee_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ALL_ROLES)),
    directory: EmployeeDirectory = Depends(get_directory),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    # Scope is decided on the id alone, before anything is fetched
    await authorize_employee(principal, directory, employee_id)
    employee = await get_employee_or_404(db, employee_id, with_subordinates=True)

    detail = EmployeeDetailSchema.model_validate(employee)
    detail.subordinates = [
        EmployeeRef.model_validate(s) for s in employee.subordinates
        if s.employment_status == EmploymentStatus.ACTIVE
    ]
    data = detail.to_json()

    await recorder.record(
        principal, AuditAction.READ, RESOURCE, employee.id,
        meta=request_meta(request),
        summary=f"Viewed employee {employee.employee_id}",
    )
    return success(data)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    await ensure_unique(db, employee_code=payload.employee_id, email=payload.email)
    await validate_references(
        db,
        department_id=payload.department_id,
        position_id=payload.position_id,
        manager_id=payload.manager_id,
        user_id=payload.user_id,
    )

    employee = Employee(
        **payload.model_dump(),
        created_by_id=principal.user_id,
        updated_by_id=principal.user_id,
    )
    db.add(employee)
    await db.commit()

    employee = await load_employee(db, employee.id)
    after = employee_snapshot(employee)
    await recorder.record(
        principal, AuditAction.CREATE, RESOURCE, employee.id,
        after=after,
        meta=request_meta(request),
        summary=f"Created employee {employee.employee_id} ({employee.full_name})",
    )
    log_principal_action(principal, "CREATE_EMPLOYEE", target=employee.id, employee_code=employee.employee_id)
    return success(after, "Employee created successfully")


@router.put("/{employee_id}")
async def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    employee = await get_employee_or_404(db, employee_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No fields to update", code="NO_CHANGES")
    nulled = sorted(f for f in NOT_NULL_FIELDS if f in changes and changes[f] is None)
    if nulled:
        raise ValidationFailed(f"Fields cannot be null: {', '.join(nulled)}")
    # Termination checks subordinates and disables the login; only DELETE does that
    if changes.get("employment_status") == EmploymentStatus.TERMINATED:
        raise ValidationFailed(
            "Use DELETE /api/employees/{id} to terminate an employee",
            code="USE_TERMINATE_ENDPOINT",
        )

    if "email" in changes and changes["email"].lower() != employee.email.lower():
        await ensure_unique(db, email=changes["email"], exclude_id=employee.id)
    await validate_references(
        db,
        department_id=changes.get("department_id"),
        position_id=changes.get("position_id"),
        manager_id=changes.get("manager_id"),
        employee_pk=employee.id,
    )

    before = employee_snapshot(employee)
    for field, value in changes.items():
        setattr(employee, field, value)
    employee.updated_by_id = principal.user_id
    await db.commit()

    employee = await load_employee(db, employee.id)
    after = employee_snapshot(employee)
    await recorder.record(
        principal, AuditAction.UPDATE, RESOURCE, employee.id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Updated employee {employee.employee_id}: {', '.join(sorted(changes))}",
    )
    log_principal_action(principal, "UPDATE_EMPLOYEE", target=employee.id, fields=",".join(sorted(changes)))
    return success(after, "Employee updated successfully")


@router.delete("/{employee_id}")
async def terminate_employee(
    employee_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Soft delete: the record stays, status becomes TERMINATED and the login is disabled."""
    employee = await get_employee_or_404(db, employee_id)
    await ensure_can_terminate(db, employee)

    before = employee_snapshot(employee)
    employee.employment_status = EmploymentStatus.TERMINATED
    employee.termination_date = date.today()
    employee.updated_by_id = principal.user_id
    if employee.user_id is not None:
        user = await db.get(User, employee.user_id)
        if user is not None:
            user.is_active = False
    await db.commit()

    employee = await load_employee(db, employee.id)
    after = employee_snapshot(employee)
    await recorder.record(
        principal, AuditAction.DELETE, RESOURCE, employee.id,
        before=before, after=after,
        meta=request_meta(request),
        summary=f"Terminated employee {employee.employee_id}",
    )
    log_principal_action(principal, "TERMINATE_EMPLOYEE", target=employee.id, employee_code=employee.employee_id)
    return success(after, "Employee terminated successfully")
