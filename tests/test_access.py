"""Access-control gate: principal resolution, role allow-lists, per-record scope."""
from datetime import timedelta
from types import SimpleNamespace

import pytest

from hrms.errors import Forbidden, Unauthenticated
from hrms.models import Role
from hrms.services.access import authorize_employee, ensure_role_allowed, resolve_principal
from hrms.services.directory import EmployeeDirectory
from hrms.services.principal import Principal
from hrms.utils.roles import ADMIN_HR, ALL_ROLES, MANAGEMENT
from hrms.utils.security import create_access_token


class FakeDirectory(EmployeeDirectory):
    def __init__(self, users=None, reports=None):
        self.users = users or {}
        self.reports = reports or {}

    async def get_user(self, user_id):
        return self.users.get(user_id)

    async def direct_report_ids(self, employee_id):
        return set(self.reports.get(employee_id, ()))


def fake_user(user_id, role, *, employee_id=None, is_active=True):
    employee = SimpleNamespace(id=employee_id) if employee_id is not None else None
    return SimpleNamespace(id=user_id, email=f"u{user_id}@acme.com", role=role, is_active=is_active, employee=employee)


@pytest.fixture
def directory():
    return FakeDirectory(
        users={
            1: fake_user(1, Role.ADMIN),
            2: fake_user(2, Role.MANAGER, employee_id=20),
            3: fake_user(3, Role.EMPLOYEE, employee_id=21),
            4: fake_user(4, Role.EMPLOYEE, employee_id=22, is_active=False),
        },
        reports={20: {21}},
    )


async def test_missing_token_is_unauthenticated(directory):
    with pytest.raises(Unauthenticated) as exc:
        await resolve_principal(None, directory)
    assert exc.value.status_code == 401
    assert exc.value.code == "MISSING_TOKEN"
    assert exc.value.headers["WWW-Authenticate"] == "Bearer"


async def test_garbage_token_is_unauthenticated(directory):
    with pytest.raises(Unauthenticated) as exc:
        await resolve_principal("not-a-jwt", directory)
    assert exc.value.code == "INVALID_TOKEN"


async def test_expired_token_is_unauthenticated(directory):
    token = create_access_token({"sub": "1"}, expires_delta=timedelta(minutes=-5))
    with pytest.raises(Unauthenticated):
        await resolve_principal(token, directory)


async def test_token_without_numeric_subject_is_unauthenticated(directory):
    token = create_access_token({"sub": "someone@acme.com"})
    with pytest.raises(Unauthenticated) as exc:
        await resolve_principal(token, directory)
    assert exc.value.code == "INVALID_TOKEN"


@pytest.mark.parametrize("user_id", [4, 404])
async def test_inactive_or_unknown_account_is_unauthenticated(user_id, directory):
    token = create_access_token({"sub": str(user_id)})
    with pytest.raises(Unauthenticated) as exc:
        await resolve_principal(token, directory)
    assert exc.value.code == "INACTIVE_ACCOUNT"


async def test_principal_carries_linked_employee(directory):
    principal = await resolve_principal(create_access_token({"sub": "2"}), directory)
    assert principal == Principal(user_id=2, email="u2@acme.com", role=Role.MANAGER, employee_id=20)


async def test_role_comes_from_account_not_token_claim(directory):
    token = create_access_token({"sub": "3", "role": "ADMIN"})
    principal = await resolve_principal(token, directory)
    assert principal.role is Role.EMPLOYEE


@pytest.mark.parametrize("allowed", [ADMIN_HR, MANAGEMENT, ALL_ROLES, frozenset({Role.EMPLOYEE})])
@pytest.mark.parametrize("role", list(Role))
def test_role_outside_allow_list_is_forbidden(role, allowed):
    principal = Principal(user_id=1, email="x@acme.com", role=role, employee_id=1)
    if role in allowed:
        ensure_role_allowed(principal, allowed)
    else:
        with pytest.raises(Forbidden) as exc:
            ensure_role_allowed(principal, allowed)
        assert exc.value.code == "ROLE_NOT_ALLOWED"


async def test_manager_may_act_on_direct_report(directory):
    manager = Principal(user_id=2, email="u2@acme.com", role=Role.MANAGER, employee_id=20)
    scope = await authorize_employee(manager, directory, 21)
    assert scope.visible_ids == frozenset({20, 21})


async def test_manager_may_not_act_on_non_report(directory):
    manager = Principal(user_id=2, email="u2@acme.com", role=Role.MANAGER, employee_id=20)
    with pytest.raises(Forbidden):
        await authorize_employee(manager, directory, 22)


async def test_admin_passes_record_check_for_any_id(directory):
    admin = Principal(user_id=1, email="u1@acme.com", role=Role.ADMIN)
    scope = await authorize_employee(admin, directory, 12345)
    assert scope.unrestricted
