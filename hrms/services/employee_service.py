"""
Employee business rules: uniqueness, referential-integrity guards and the
termination preconditions. Raises ValidationFailed / NotFound; never commits.
"""
from typing import Optional

from sqlalchemy import select, func  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore
from sqlalchemy.orm import selectinload  # type: ignore

from hrms.errors import NotFound, ValidationFailed
from hrms.models import Department, Employee, EmployeeSchema, EmploymentStatus, Position, User


def employee_query():
    """select(Employee) with the relations EmployeeSchema renders."""
    return select(Employee).options(
        selectinload(Employee.department),
        selectinload(Employee.position),
        selectinload(Employee.manager),
    )


async def load_employee(db: AsyncSession, employee_id: int, *, with_subordinates: bool = False) -> Optional[Employee]:
    query = employee_query().where(Employee.id == employee_id)
    if with_subordinates:
        query = query.options(selectinload(Employee.subordinates))
    result = await db.execute(query.execution_options(populate_existing=True))
    return result.scalar_one_or_none()


async def get_employee_or_404(db: AsyncSession, employee_id: int, **kwargs) -> Employee:
    employee = await load_employee(db, employee_id, **kwargs)
    if employee is None:
        raise NotFound("Employee not found")
    return employee


def employee_snapshot(employee: Employee) -> dict:
    return EmployeeSchema.model_validate(employee).to_json()


async def ensure_unique(
    db: AsyncSession,
    *,
    employee_code: Optional[str] = None,
    email: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> None:
    if employee_code is not None:
        query = select(Employee.id).where(Employee.employee_id == employee_code)
        if exclude_id is not None:
            query = query.where(Employee.id != exclude_id)
        if (await db.execute(query)).first():
            raise ValidationFailed("Employee ID already exists", code="DUPLICATE_EMPLOYEE_ID")
    if email is not None:
        query = select(Employee.id).where(func.lower(Employee.email) == email.lower())
        if exclude_id is not None:
            query = query.where(Employee.id != exclude_id)
        if (await db.execute(query)).first():
            raise ValidationFailed("Email already exists", code="DUPLICATE_EMAIL")


async def validate_references(
    db: AsyncSession,
    *,
    department_id: Optional[int] = None,
    position_id: Optional[int] = None,
    manager_id: Optional[int] = None,
    user_id: Optional[int] = None,
    employee_pk: Optional[int] = None,
) -> None:
    """
    department and position must exist and be active; the manager must be an
    ACTIVE employee other than the record itself; a linked account must exist
    and not belong to another employee.
    """
    if department_id is not None:
        department = await db.get(Department, department_id)
        if department is None or not department.is_active:
            raise ValidationFailed("Department not found or inactive", code="DEPARTMENT_NOT_FOUND")

    if position_id is not None:
        position = await db.get(Position, position_id)
        if position is None or not position.is_active:
            raise ValidationFailed("Position not found or inactive", code="POSITION_NOT_FOUND")

    if manager_id is not None:
        if employee_pk is not None and manager_id == employee_pk:
            raise ValidationFailed("Employee cannot be their own manager", code="INVALID_MANAGER")
        manager = await db.get(Employee, manager_id)
        if manager is None or manager.employment_status != EmploymentStatus.ACTIVE:
            raise ValidationFailed("Manager not found or inactive", code="MANAGER_NOT_FOUND")

    if user_id is not None:
        user = await db.get(User, user_id)
        if user is None:
            raise ValidationFailed("User account not found", code="USER_NOT_FOUND")
        linked = await db.execute(select(Employee.id).where(Employee.user_id == user_id))
        taken = linked.first()
        if taken and taken[0] != employee_pk:
            raise ValidationFailed("User account is already linked to another employee", code="USER_ALREADY_LINKED")


async def active_subordinate_count(db: AsyncSession, employee_pk: int) -> int:
    result = await db.execute(
        select(func.count(Employee.id)).where(
            Employee.manager_id == employee_pk,
            Employee.employment_status == EmploymentStatus.ACTIVE,
        )
    )
    return result.scalar() or 0


async def ensure_can_terminate(db: AsyncSession, employee: Employee) -> None:
    if employee.employment_status == EmploymentStatus.TERMINATED:
        raise ValidationFailed("Employee is already terminated", code="ALREADY_TERMINATED")
    if await active_subordinate_count(db, employee.id) > 0:
        raise ValidationFailed(
            "Cannot terminate employee: employee has active subordinates. Please reassign subordinates first.",
            code="HAS_ACTIVE_SUBORDINATES",
        )
