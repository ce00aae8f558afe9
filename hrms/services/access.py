"""
Access-control gate.

check_access(allowed_roles) builds the FastAPI dependency every protected
route declares. It resolves the bearer token into a Principal, rejects the
request with Unauthenticated (401) or Forbidden (403) before the handler runs,
and stores the Principal on request.state for the handler and the audit recorder.
"""
import logging
from typing import Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore

from hrms.db import get_db
from hrms.errors import Unauthenticated, Forbidden
from hrms.models.enums import Role
from hrms.services.directory import EmployeeDirectory, SqlEmployeeDirectory
from hrms.services.principal import Principal
from hrms.services.scope import ScopeFilter, build_scope_filter
from hrms.utils.roles import role_set
from hrms.utils.security import decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches resolve_principal and gets our 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def get_directory(db: AsyncSession = Depends(get_db)) -> EmployeeDirectory:
    return SqlEmployeeDirectory(db)


async def resolve_principal(token: Optional[str], directory: EmployeeDirectory) -> Principal:
    """
    Credential -> Principal. The role comes from the account row, not from the
    token claim, so a demotion takes effect on the next request.
    """
    if not token:
        raise Unauthenticated("Not authenticated", code="MISSING_TOKEN")
    claims = decode_access_token(token)
    if claims is None:
        raise Unauthenticated("Invalid or expired token", code="INVALID_TOKEN")
    try:
        user_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid token subject", code="INVALID_TOKEN")

    user = await directory.get_user(user_id)
    if user is None or not user.is_active:
        raise Unauthenticated("Account not found or inactive", code="INACTIVE_ACCOUNT")

    return Principal(
        user_id=user.id,
        email=user.email,
        role=Role(user.role),
        employee_id=user.employee.id if user.employee is not None else None,
    )


def ensure_role_allowed(principal: Principal, allowed_roles: Iterable[Role]) -> None:
    allowed = frozenset(allowed_roles)
    if principal.role not in allowed:
        logger.info(
            "Role rejected: user_id=%s role=%s allowed=%s",
            principal.user_id, principal.role.value, sorted(r.value for r in allowed),
        )
        raise Forbidden(
            f"Not enough permissions. Required role: {', '.join(sorted(r.value for r in allowed))}",
            code="ROLE_NOT_ALLOWED",
        )


def check_access(allowed_roles: Iterable[Role]):
    """
    Create a dependency that admits only principals whose role is in allowed_roles.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(principal: Principal = Depends(check_access(ADMIN_HR))):
            ...
    """
    allowed = role_set(allowed_roles)

    async def access_checker(
        request: Request,
        token: Optional[str] = Depends(oauth2_scheme),
        directory: EmployeeDirectory = Depends(get_directory),
    ) -> Principal:
        principal = await resolve_principal(token, directory)
        ensure_role_allowed(principal, allowed)
        request.state.principal = principal
        return principal

    return access_checker


async def authorize_employee(
    principal: Principal,
    directory: EmployeeDirectory,
    employee_id: Optional[int],
) -> ScopeFilter:
    """
    Per-record check for detail and mutation endpoints: the owning employee
    must be in the principal's visible set. Computed from the same set the
    list endpoints filter on.
    """
    scope = await build_scope_filter(principal, directory)
    scope.ensure_allows(employee_id)
    return scope
