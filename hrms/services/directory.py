"""
Data-access collaborator for the access gate and the scope filter.

The gate and the filter only ever ask two questions of the database: "who is
this account" and "who reports to this employee". Keeping them behind a small
class lets tests pass a fake instead of a session.
"""
from typing import Optional, Set

from sqlalchemy import select  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore
from sqlalchemy.orm import selectinload  # type: ignore

from hrms.models import User, Employee


class EmployeeDirectory:
    """Interface; SqlEmployeeDirectory is the production implementation."""

    async def get_user(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    async def direct_report_ids(self, employee_id: int) -> Set[int]:
        raise NotImplementedError


class SqlEmployeeDirectory(EmployeeDirectory):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id).options(selectinload(User.employee))
        )
        return result.scalar_one_or_none()

    async def direct_report_ids(self, employee_id: int) -> Set[int]:
        """One hop only: employees whose manager_id points at employee_id."""
        result = await self.db.execute(select(Employee.id).where(Employee.manager_id == employee_id))
        return {row[0] for row in result.all()}
