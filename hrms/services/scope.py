"""
Role-scoped query filter.

Turns {principal, requested filters} into the predicate a handler adds to its
query. ADMIN/HR are unrestricted; MANAGER sees itself plus its direct reports;
EMPLOYEE sees only its own linked record. An explicitly requested target id
outside that set is a Forbidden error, never an empty result.

List endpoints apply ScopeFilter.apply(); detail endpoints call
ScopeFilter.ensure_allows() on the same visible-id set, so both paths agree.
"""
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from sqlalchemy import and_, false  # type: ignore

from hrms.errors import Forbidden
from hrms.services.directory import EmployeeDirectory
from hrms.services.principal import Principal
from hrms.utils.roles import Visibility, visibility_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScopeFilter:
    """
    visible_ids: employee ids the principal may see; None means unrestricted.
    target_ids:  ids the caller explicitly asked for (already checked against visible_ids).
    """
    visible_ids: Optional[FrozenSet[int]] = None
    target_ids: Optional[FrozenSet[int]] = None

    @property
    def unrestricted(self) -> bool:
        return self.visible_ids is None

    def allows(self, employee_id: Optional[int]) -> bool:
        if self.visible_ids is None:
            return True
        return employee_id is not None and employee_id in self.visible_ids

    def ensure_allows(self, employee_id: Optional[int]) -> None:
        if not self.allows(employee_id):
            raise Forbidden("Access denied: record is outside your scope", code="OUT_OF_SCOPE")

    def effective_ids(self) -> Optional[FrozenSet[int]]:
        """The id restriction the query must carry, or None for no restriction."""
        if self.target_ids is not None:
            return self.target_ids
        return self.visible_ids

    def clause(self, column):
        """Predicate on the owning-employee column; None when nothing restricts it."""
        ids = self.effective_ids()
        if ids is None:
            return None
        if not ids:
            return false()
        return column.in_(sorted(ids))

    def apply(self, query, column, *filters):
        """Add caller filters (conjunctive) plus the scope restriction to a select()."""
        clauses = [f for f in filters if f is not None]
        scope_clause = self.clause(column)
        if scope_clause is not None:
            clauses.append(scope_clause)
        if clauses:
            query = query.where(and_(*clauses))
        return query


async def visible_employee_ids(principal: Principal, directory: EmployeeDirectory) -> Optional[FrozenSet[int]]:
    """None for unrestricted roles; otherwise the exact set of visible employee ids."""
    visibility = visibility_for(principal.role)
    if visibility is Visibility.ALL:
        return None
    if principal.employee_id is None:
        # A restricted account with no employee record can see nothing
        return frozenset()
    if visibility is Visibility.SELF:
        return frozenset({principal.employee_id})
    reports = await directory.direct_report_ids(principal.employee_id)
    return frozenset(reports) | {principal.employee_id}


async def build_scope_filter(
    principal: Principal,
    directory: EmployeeDirectory,
    target_ids: Optional[Iterable[int]] = None,
) -> ScopeFilter:
    """
    Build the scope filter for one request.

    target_ids is the explicit "only these employees" filter the caller sent
    (e.g. ?employeeId=7). Any id outside the visible set raises Forbidden.
    """
    visible = await visible_employee_ids(principal, directory)
    targets = frozenset(target_ids) if target_ids is not None else None
    if targets is not None and visible is not None:
        outside = targets - visible
        if outside:
            logger.info(
                "Scope violation: user_id=%s role=%s requested employees %s",
                principal.user_id, principal.role.value, sorted(outside),
            )
            raise Forbidden("Access denied: requested employee is outside your scope", code="OUT_OF_SCOPE")
    return ScopeFilter(visible_ids=visible, target_ids=targets)
