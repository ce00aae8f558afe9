"""
Read-only view of the audit trail for ADMIN and HR. There is no write surface:
entries are created by the recorder and the model refuses updates and deletes.
"""
from datetime import date, datetime, time, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select, and_  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore

from hrms.db import get_db
from hrms.errors import NotFound, ValidationFailed
from hrms.models import AuditAction, AuditLog, AuditLogSchema
from hrms.services.access import check_access
from hrms.services.audit import AuditRecorder, get_audit_recorder
from hrms.services.principal import Principal
from hrms.utils.pagination import PageParams, paginate, paginated, success
from hrms.utils.request_info import request_meta
from hrms.utils.roles import ADMIN_HR

router = APIRouter(prefix="/api/audit-logs", tags=["Audit Logs"])

RESOURCE = "audit_logs"


def parse_range_bound(value: Optional[str], *, end: bool = False) -> Optional[datetime]:
    """
    ISO date or datetime -> naive UTC datetime for comparing with created_at.
    A bare date covers the whole day: start of day for 'from', end of day for 'to'.
    """
    if value is None or not value.strip():
        return None
    raw = value.strip()
    try:
        if len(raw) == 10:
            return datetime.combine(date.fromisoformat(raw), time.max if end else time.min)
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationFailed(f"Invalid date or datetime: {value!r}", code="INVALID_DATE") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@router.get("")
async def list_audit_logs(
    request: Request,
    resource_type: Optional[str] = Query(None, alias="resourceType"),
    actor_id: Optional[int] = Query(None, alias="actorId"),
    action: Optional[AuditAction] = None,
    resource_id: Optional[int] = Query(None, alias="resourceId"),
    raw_from: Optional[str] = Query(None, alias="from"),
    raw_to: Optional[str] = Query(None, alias="to"),
    page: PageParams = Depends(),
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Newest first; every filter narrows the result (AND). A bare date in from/to covers that whole day."""
    date_from = parse_range_bound(raw_from)
    date_to = parse_range_bound(raw_to, end=True)
    if date_from is not None and date_to is not None and date_from > date_to:
        raise ValidationFailed("'from' must not be after 'to'", code="INVALID_RANGE")

    conditions = []
    if resource_type:
        conditions.append(AuditLog.resource_type == resource_type)
    if actor_id is not None:
        conditions.append(AuditLog.actor_user_id == actor_id)
    if action is not None:
        conditions.append(AuditLog.action == action)
    if resource_id is not None:
        conditions.append(AuditLog.resource_id == resource_id)
    if date_from is not None:
        conditions.append(AuditLog.created_at >= date_from)
    if date_to is not None:
        conditions.append(AuditLog.created_at <= date_to)

    query = select(AuditLog)
    if conditions:
        query = query.where(and_(*conditions))
    query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    rows, total = await paginate(db, query, page)
    items = [AuditLogSchema.model_validate(entry).to_json() for entry in rows]

    await recorder.record(
        principal, AuditAction.READ, RESOURCE,
        meta=request_meta(request),
        summary=f"Listed audit logs (page {page.page}, {len(items)} of {total})",
    )
    return paginated("auditLogs", items, total, page)


@router.get("/{log_id}")
async def get_audit_log(
    log_id: int,
    request: Request,
    principal: Principal = Depends(check_access(ADMIN_HR)),
    db: AsyncSession = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    entry = await db.get(AuditLog, log_id)
    if entry is None:
        raise NotFound("Audit log entry not found")
    data = AuditLogSchema.model_validate(entry).to_json()

    await recorder.record(
        principal, AuditAction.READ, RESOURCE, entry.id,
        meta=request_meta(request),
        summary=f"Viewed audit log entry {entry.id}",
    )
    return success(data)
