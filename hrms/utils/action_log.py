"""
User-action logging: writes who did what to the application log and trail.log.
This is the operator-facing trail; the audit_logs table is the durable one.
"""
import logging
from typing import Any, Optional

from hrms.utils.logging_config import ACTIONS_LOGGER

ACTION_LOGGER = logging.getLogger(ACTIONS_LOGGER)


def _user_context(
    user_id: Optional[int] = None,
    email: Optional[str] = None,
    role: Optional[str] = None,
    employee_id: Optional[int] = None,
) -> str:
    parts = []
    if user_id is not None:
        parts.append(f"user_id={user_id}")
    if email:
        parts.append(f"email={email}")
    if role:
        parts.append(f"role={role}")
    if employee_id is not None:
        parts.append(f"employee={employee_id}")
    return " | ".join(parts) if parts else "anonymous"


def log_user_action(
    action: str,
    *,
    user_id: Optional[int] = None,
    email: Optional[str] = None,
    role: Optional[str] = None,
    employee_id: Optional[int] = None,
    **details: Any,
) -> None:
    """
    Log a user action to the application log.

    Example:
        log_user_action("LOGIN", user_id=user.id, email=user.email, role="HR")
        log_user_action("TERMINATE_EMPLOYEE", user_id=1, role="ADMIN", target=42)
    """
    ctx = _user_context(user_id=user_id, email=email, role=role, employee_id=employee_id)
    extra_parts = [f"{k}={v!r}" if isinstance(v, str) else f"{k}={v}" for k, v in details.items()]
    extra = " " + " ".join(extra_parts) if extra_parts else ""
    ACTION_LOGGER.info(f"USER_ACTION | {ctx} | {action}{extra}")


def log_principal_action(principal, action: str, **details: Any) -> None:
    """log_user_action with the actor fields taken from a resolved Principal."""
    log_user_action(
        action,
        user_id=principal.user_id,
        email=principal.email,
        role=principal.role.value,
        employee_id=principal.employee_id,
        **details,
    )
