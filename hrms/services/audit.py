"""
Audit service: records who did what to which record in the audit_logs table.

Entries are written only after the primary operation has committed, in their
own session and their own commit. A failed audit write is reported to the
hrms.audit logger and swallowed: it never changes the caller's response.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker  # type: ignore

from hrms.db import AsyncSessionLocal
from hrms.models import AuditLog
from hrms.models.enums import AuditAction
from hrms.services.principal import Principal
from hrms.utils.logging_config import AUDIT_LOGGER
from hrms.utils.request_info import RequestMeta

logger = logging.getLogger(AUDIT_LOGGER)


def _json_safe(obj: Any) -> Any:
    """Convert values to JSON-serializable form for the JSON snapshot columns."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return {k: _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [_json_safe(v) for v in obj]
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    if hasattr(obj, "value"):  # enum
        return obj.value
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)


def _truncate(value: Optional[str], length: int) -> Optional[str]:
    if value is None:
        return None
    return value[:length]


class AuditRecorder:
    """Best-effort, append-only writer of AuditLog rows."""

    def __init__(self, session_factory: async_sessionmaker = AsyncSessionLocal):
        self.session_factory = session_factory

    def build_entry(
        self,
        actor: Principal,
        action: AuditAction,
        resource_type: str,
        resource_id: Optional[int] = None,
        *,
        before: Optional[dict[str, Any]] = None,
        after: Optional[dict[str, Any]] = None,
        meta: Optional[RequestMeta] = None,
        summary: Optional[str] = None,
    ) -> AuditLog:
        meta = meta or RequestMeta()
        return AuditLog(
            actor_user_id=actor.user_id,
            actor_email=actor.email,
            actor_role=actor.role,
            actor_employee_id=actor.employee_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            summary=summary,
            before_state=_json_safe(before) if before is not None else None,
            after_state=_json_safe(after) if after is not None else None,
            ip_address=_truncate(meta.ip_address, 45),
            user_agent=_truncate(meta.user_agent, 500),
            request_method=meta.method,
            request_path=_truncate(meta.path, 500),
        )

    async def record(
        self,
        actor: Principal,
        action: AuditAction,
        resource_type: str,
        resource_id: Optional[int] = None,
        *,
        before: Optional[dict[str, Any]] = None,
        after: Optional[dict[str, Any]] = None,
        meta: Optional[RequestMeta] = None,
        summary: Optional[str] = None,
    ) -> None:
        """
        Write one audit entry. Call only after the primary operation committed.
        Never raises: failures are logged to hrms.audit and dropped.
        """
        try:
            entry = self.build_entry(
                actor, action, resource_type, resource_id,
                before=before, after=after, meta=meta, summary=summary,
            )
            async with self.session_factory() as session:
                session.add(entry)
                await session.commit()
        except Exception:
            logger.exception(
                "Audit write failed: actor=%s action=%s resource=%s id=%s",
                actor.user_id, getattr(action, "value", action), resource_type, resource_id,
            )


_default_recorder = AuditRecorder()


def get_audit_recorder() -> AuditRecorder:
    """FastAPI dependency; tests override it to point at their own database."""
    return _default_recorder
