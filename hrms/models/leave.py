"""
Leave-related SQLAlchemy models
"""
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Text, DECIMAL, ForeignKey, Enum as SQLEnum, UniqueConstraint, Index, text  # type: ignore
from sqlalchemy.orm import relationship  # type: ignore
from datetime import datetime, date
from decimal import Decimal
from typing import Optional
from pydantic import Field, model_validator
from hrms.db import Base
from hrms.models.enums import LeaveType, LeaveRequestStatus
from hrms.models.schema import CamelModel
from hrms.models.employee import EmployeeRef


class LeavePolicy(Base):
    """Leave policies table"""
    __tablename__ = "leave_policies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    leave_type = Column(SQLEnum(LeaveType), nullable=False)
    days_allowed = Column(DECIMAL(5, 1), nullable=False)
    carry_forward = Column(Boolean, nullable=False, default=False)
    max_carry_forward = Column(DECIMAL(5, 1), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    leave_requests = relationship("LeaveRequest", back_populates="policy")

    __table_args__ = (
        Index("idx_leave_policies_type", "leave_type"),
        Index("idx_leave_policies_is_active", "is_active"),
    )


class LeaveRequest(Base):
    """Leave requests table"""
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False)
    policy_id = Column(Integer, ForeignKey("leave_policies.id", ondelete="RESTRICT", onupdate="CASCADE"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(DECIMAL(5, 1), nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(SQLEnum(LeaveRequestStatus), nullable=False, default=LeaveRequestStatus.PENDING)
    reviewed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    review_comment = Column(Text, nullable=True)
    applied_at = Column(DateTime, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    employee = relationship("Employee")
    policy = relationship("LeavePolicy", back_populates="leave_requests")

    __table_args__ = (
        Index("idx_leave_requests_employee_id", "employee_id"),
        Index("idx_leave_requests_policy_status", "policy_id", "status"),
        Index("idx_leave_requests_dates", "start_date", "end_date"),
    )


class LeaveBalance(Base):
    """Leave balances table - days allocated per employee, policy and year"""
    __tablename__ = "leave_balances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False)
    policy_id = Column(Integer, ForeignKey("leave_policies.id", ondelete="RESTRICT", onupdate="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    allocated = Column(DECIMAL(5, 1), nullable=False)
    used = Column(DECIMAL(5, 1), nullable=False, default=Decimal("0"))
    carry_forward = Column(DECIMAL(5, 1), nullable=False, default=Decimal("0"), comment="Days brought over from the previous year")
    created_at = Column(DateTime, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    employee = relationship("Employee")
    policy = relationship("LeavePolicy")

    __table_args__ = (
        UniqueConstraint("employee_id", "policy_id", "year", name="uq_leave_balances_employee_policy_year"),
        Index("idx_leave_balances_employee_id", "employee_id"),
        Index("idx_leave_balances_year", "year"),
    )

    @property
    def remaining(self) -> Decimal:
        """Derived, never stored: allocated + carried forward - used."""
        return (self.allocated or 0) + (self.carry_forward or 0) - (self.used or 0)


# Pydantic Models (for API request/response)
class LeavePolicyCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    leave_type: LeaveType
    days_allowed: Decimal = Field(..., ge=0)
    carry_forward: bool = False
    max_carry_forward: Optional[Decimal] = Field(None, ge=0)
    is_active: bool = True


class LeavePolicyUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    leave_type: Optional[LeaveType] = None
    days_allowed: Optional[Decimal] = Field(None, ge=0)
    carry_forward: Optional[bool] = None
    max_carry_forward: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None


class LeavePolicySchema(CamelModel):
    id: int
    name: str
    leave_type: LeaveType
    days_allowed: Decimal
    carry_forward: bool
    max_carry_forward: Optional[Decimal] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeaveRequestCreate(CamelModel):
    employee_id: Optional[int] = Field(None, description="Defaults to the caller's own employee record")
    policy_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate cannot be before startDate")
        return self


class LeaveReview(CamelModel):
    status: LeaveRequestStatus
    comment: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_decision(self):
        if self.status not in (LeaveRequestStatus.APPROVED, LeaveRequestStatus.REJECTED):
            raise ValueError("status must be APPROVED or REJECTED")
        return self


class LeaveRequestSchema(CamelModel):
    id: int
    employee_id: int
    policy_id: int
    start_date: date
    end_date: date
    days: Decimal
    reason: Optional[str] = None
    status: LeaveRequestStatus
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_comment: Optional[str] = None
    applied_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    employee: Optional[EmployeeRef] = None


class LeavePolicyRef(CamelModel):
    id: int
    name: str
    leave_type: LeaveType
    days_allowed: Decimal


class LeaveBalanceCreate(CamelModel):
    employee_id: int
    policy_id: int
    year: int = Field(..., ge=2000, le=2100)
    allocated: Decimal = Field(..., ge=0)
    carry_forward: Decimal = Field(Decimal("0"), ge=0)


class LeaveBalanceUpdate(CamelModel):
    """Only set fields are applied; remaining is recomputed from the merged values"""
    allocated: Optional[Decimal] = Field(None, ge=0)
    used: Optional[Decimal] = Field(None, ge=0)
    carry_forward: Optional[Decimal] = Field(None, ge=0)


class LeaveBalanceSchema(CamelModel):
    id: int
    employee_id: int
    policy_id: int
    year: int
    allocated: Decimal
    used: Decimal
    carry_forward: Decimal
    remaining: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    employee: Optional[EmployeeRef] = None
    policy: Optional[LeavePolicyRef] = None
