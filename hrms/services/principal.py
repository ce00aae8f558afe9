"""
The authenticated caller, resolved once per request and never persisted.
"""
from dataclasses import dataclass
from typing import Optional

from hrms.models.enums import Role


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: Role
    employee_id: Optional[int] = None  # linked employee record (employees.id)

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles
