"""Role-scoped query filter, exercised against an in-memory fake directory."""
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from hrms.errors import Forbidden
from hrms.models import Employee, Role
from hrms.services.directory import EmployeeDirectory
from hrms.services.principal import Principal
from hrms.services.scope import ScopeFilter, build_scope_filter, visible_employee_ids


class FakeDirectory(EmployeeDirectory):
    def __init__(self, reports=None):
        self.reports = reports or {}
        self.direct_report_ids = AsyncMock(side_effect=lambda employee_id: set(self.reports.get(employee_id, ())))

    async def get_user(self, user_id):
        return None


MANAGER = Principal(user_id=10, email="m@acme.com", role=Role.MANAGER, employee_id=1)
EMPLOYEE = Principal(user_id=11, email="e@acme.com", role=Role.EMPLOYEE, employee_id=2)


@pytest.fixture
def directory():
    # M1 (1) manages E1 (2) and E2 (3); M2 (5) manages E3 (4)
    return FakeDirectory({1: {2, 3}, 5: {4}})


@pytest.mark.parametrize("role", [Role.ADMIN, Role.HR])
async def test_admin_and_hr_are_unrestricted(role, directory):
    principal = Principal(user_id=1, email="a@acme.com", role=role, employee_id=None)
    assert await visible_employee_ids(principal, directory) is None
    directory.direct_report_ids.assert_not_awaited()


async def test_manager_sees_self_and_direct_reports(directory):
    assert await visible_employee_ids(MANAGER, directory) == frozenset({1, 2, 3})
    directory.direct_report_ids.assert_awaited_once_with(1)


async def test_employee_sees_only_self(directory):
    assert await visible_employee_ids(EMPLOYEE, directory) == frozenset({2})
    directory.direct_report_ids.assert_not_awaited()


@pytest.mark.parametrize("role", [Role.MANAGER, Role.EMPLOYEE])
async def test_restricted_principal_without_employee_record_sees_nothing(role, directory):
    principal = Principal(user_id=9, email="x@acme.com", role=role, employee_id=None)
    assert await visible_employee_ids(principal, directory) == frozenset()


async def test_explicit_target_outside_scope_is_forbidden(directory):
    with pytest.raises(Forbidden) as exc:
        await build_scope_filter(MANAGER, directory, [2, 4])
    assert exc.value.status_code == 403
    assert exc.value.code == "OUT_OF_SCOPE"


async def test_employee_asking_for_another_id_is_forbidden(directory):
    with pytest.raises(Forbidden):
        await build_scope_filter(EMPLOYEE, directory, [3])


async def test_explicit_target_inside_scope_narrows_the_filter(directory):
    scope = await build_scope_filter(MANAGER, directory, [3])
    assert scope.effective_ids() == frozenset({3})
    assert scope.allows(2)


async def test_unrestricted_principal_may_target_any_id(directory):
    admin = Principal(user_id=1, email="a@acme.com", role=Role.ADMIN)
    scope = await build_scope_filter(admin, directory, [99])
    assert scope.effective_ids() == frozenset({99})


def test_unrestricted_filter_adds_no_clause():
    scope = ScopeFilter()
    assert scope.unrestricted
    assert scope.clause(Employee.id) is None
    query = scope.apply(select(Employee), Employee.id)
    assert "WHERE" not in str(query)


def test_empty_visible_set_matches_nothing():
    scope = ScopeFilter(visible_ids=frozenset())
    assert not scope.allows(1)
    assert str(scope.clause(Employee.id)) == "false"


def test_apply_combines_caller_filters_with_scope():
    scope = ScopeFilter(visible_ids=frozenset({1, 2}))
    query = scope.apply(select(Employee), Employee.id, Employee.department_id == 7, None)
    sql = str(query)
    assert "employees.department_id" in sql
    assert "employees.id IN" in sql
    assert " AND " in sql


def test_ensure_allows_raises_forbidden_for_hidden_ids():
    scope = ScopeFilter(visible_ids=frozenset({1}))
    scope.ensure_allows(1)
    with pytest.raises(Forbidden):
        scope.ensure_allows(2)
    with pytest.raises(Forbidden):
        scope.ensure_allows(None)
