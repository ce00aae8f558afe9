"""
Models package for the HR management backend.

SQLAlchemy ORM models are split by domain; the pydantic request/response
models live in the same files as their corresponding SQLAlchemy models.
"""

# Enums
from .enums import (
    Role,
    AuditAction,
    EmploymentStatus,
    EmploymentType,
    Gender,
    LeaveType,
    LeaveRequestStatus,
    ACTIVE_LEAVE_STATUSES,
)

# SQLAlchemy Models - Import in order to resolve relationships
from .user import User, UserSchema
from .department import (
    Department,
    Position,
    DepartmentCreate,
    DepartmentUpdate,
    DepartmentSchema,
    PositionCreate,
    PositionUpdate,
    PositionSchema,
)
from .employee import (
    Employee,
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeSchema,
    EmployeeDetailSchema,
    EmployeeRef,
)
from .leave import (
    LeavePolicy,
    LeaveRequest,
    LeavePolicyCreate,
    LeavePolicyUpdate,
    LeavePolicySchema,
    LeaveRequestCreate,
    LeaveRequestSchema,
    LeaveReview,
    LeaveBalance,
    LeaveBalanceCreate,
    LeaveBalanceUpdate,
    LeaveBalanceSchema,
    LeavePolicyRef,
)
from .audit import AuditLog, AuditLogSchema, AuditLogImmutableError

__all__ = [
    # Enums
    "Role",
    "AuditAction",
    "EmploymentStatus",
    "EmploymentType",
    "Gender",
    "LeaveType",
    "LeaveRequestStatus",
    "ACTIVE_LEAVE_STATUSES",
    # SQLAlchemy Models
    "User",
    "Department",
    "Position",
    "Employee",
    "LeavePolicy",
    "LeaveRequest",
    "LeaveBalance",
    "AuditLog",
    "AuditLogImmutableError",
    # Pydantic Models
    "UserSchema",
    "DepartmentCreate",
    "DepartmentUpdate",
    "DepartmentSchema",
    "PositionCreate",
    "PositionUpdate",
    "PositionSchema",
    "EmployeeCreate",
    "EmployeeUpdate",
    "EmployeeSchema",
    "EmployeeDetailSchema",
    "EmployeeRef",
    "LeavePolicyCreate",
    "LeavePolicyUpdate",
    "LeavePolicySchema",
    "LeaveRequestCreate",
    "LeaveRequestSchema",
    "LeaveReview",
    "LeaveBalanceCreate",
    "LeaveBalanceUpdate",
    "LeaveBalanceSchema",
    "LeavePolicyRef",
    "AuditLogSchema",
]
