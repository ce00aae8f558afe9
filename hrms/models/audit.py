"""
Audit log SQLAlchemy model.
Stores who did what, to which record, when, with before/after snapshots.
Rows are append-only: the ORM refuses to flush an UPDATE or DELETE of an entry.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Enum as SQLEnum, Index, event, text  # type: ignore
from datetime import datetime
from typing import Any, Optional
from hrms.db import Base
from hrms.models.enums import AuditAction, Role
from hrms.models.schema import CamelModel


class AuditLogImmutableError(RuntimeError):
    """Raised when application code tries to modify or remove an audit entry."""


class AuditLog(Base):
    """
    Audit logs table - append-only trail of state changes and sensitive reads.

    resource_type = resource name the action targeted (employees, departments, leave_requests, ...).
    resource_id   = primary key of that record; NULL for list-level reads.
    The target is referenced by type + id only, never by foreign key.
    """
    __tablename__ = "audit_logs"

    # --- Actor (who performed the action) ---
    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True)
    actor_email = Column(String(255), nullable=True, comment="Email of actor at time of action")
    actor_role = Column(SQLEnum(Role), nullable=True, comment="Role of actor at time of action")
    actor_employee_id = Column(Integer, nullable=True, comment="Linked employee record of actor, if any")

    # --- Target (which record was acted upon) ---
    action = Column(SQLEnum(AuditAction), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(Integer, nullable=True)
    summary = Column(Text, nullable=True, comment="Human-readable one-line description")

    # --- Snapshots & request context ---
    before_state = Column(JSON, nullable=True, comment="Snapshot before the change")
    after_state = Column(JSON, nullable=True, comment="Snapshot after the change")
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    request_method = Column(String(10), nullable=True, comment="e.g. POST, PUT")
    request_path = Column(String(500), nullable=True, comment="e.g. /api/employees/5")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    __table_args__ = (
        Index("idx_audit_logs_actor", "actor_user_id"),
        Index("idx_audit_logs_resource", "resource_type", "resource_id"),
        Index("idx_audit_logs_created_at", "created_at"),
        Index("idx_audit_logs_created_action", "created_at", "action"),
    )


@event.listens_for(AuditLog, "before_update")
def _refuse_update(mapper, connection, target):
    raise AuditLogImmutableError(f"audit log entry {target.id} is append-only and cannot be updated")


@event.listens_for(AuditLog, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise AuditLogImmutableError(f"audit log entry {target.id} is append-only and cannot be deleted")


class AuditLogSchema(CamelModel):
    id: int
    actor_user_id: Optional[int] = None
    actor_email: Optional[str] = None
    actor_role: Optional[Role] = None
    actor_employee_id: Optional[int] = None
    action: AuditAction
    resource_type: str
    resource_id: Optional[int] = None
    summary: Optional[str] = None
    before_state: Optional[Any] = None
    after_state: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_method: Optional[str] = None
    request_path: Optional[str] = None
    created_at: datetime
