"""
Role sets and role visibility.

Every protected route declares one of the frozensets below (or its own
frozenset of Role members) as its allow-list; VISIBILITY maps each role to how
much of the employee hierarchy it may see. Both are checked for completeness
at import so a new Role cannot be added without deciding its visibility.
"""
import enum
from typing import FrozenSet, Iterable

from hrms.models.enums import Role


class Visibility(str, enum.Enum):
    ALL = "ALL"    # every record
    TEAM = "TEAM"  # self + direct reports (one hop)
    SELF = "SELF"  # own linked employee record only


VISIBILITY = {
    Role.ADMIN: Visibility.ALL,
    Role.HR: Visibility.ALL,
    Role.MANAGER: Visibility.TEAM,
    Role.EMPLOYEE: Visibility.SELF,
}

_missing = set(Role) - set(VISIBILITY)
if _missing:
    raise RuntimeError(f"No visibility declared for roles: {sorted(r.value for r in _missing)}")

ALL_ROLES: FrozenSet[Role] = frozenset(Role)
ADMIN_HR: FrozenSet[Role] = frozenset({Role.ADMIN, Role.HR})
MANAGEMENT: FrozenSet[Role] = frozenset({Role.ADMIN, Role.HR, Role.MANAGER})


def role_set(roles: Iterable[Role]) -> FrozenSet[Role]:
    """
    Normalize a declared allow-list.

    Only Role members are accepted; a bare string such as "admin" is a
    declaration bug and fails at import time of the route module.
    """
    allowed = frozenset(roles)
    if not allowed:
        raise ValueError("allow-list must name at least one role")
    invalid = [r for r in allowed if not isinstance(r, Role)]
    if invalid:
        raise TypeError(f"allow-list entries must be Role members, got {invalid!r}")
    return allowed


def visibility_for(role: Role) -> Visibility:
    return VISIBILITY[role]
