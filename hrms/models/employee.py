"""
Employee SQLAlchemy model and API schemas
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, Text, DECIMAL, ForeignKey, Enum as SQLEnum, Index, text  # type: ignore
from sqlalchemy.orm import relationship  # type: ignore
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from pydantic import EmailStr, Field
from hrms.db import Base
from hrms.models.enums import EmploymentStatus, EmploymentType, Gender
from hrms.models.schema import CamelModel


class Employee(Base):
    """Employees table"""
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(String(50), unique=True, nullable=False, comment="Unique Employee ID (e.g. EMP100)")
    first_name = Column(String(50), nullable=False)
    middle_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(30), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(SQLEnum(Gender), nullable=True)

    # Address
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)

    # Organization
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True)
    position_id = Column(Integer, ForeignKey("positions.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True)
    manager_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True, comment="Self-referential: direct manager")
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL", onupdate="CASCADE"), unique=True, nullable=True, comment="Linked login account")

    # Employment
    employment_type = Column(SQLEnum(EmploymentType), nullable=False, default=EmploymentType.FULL_TIME)
    employment_status = Column(SQLEnum(EmploymentStatus), nullable=False, default=EmploymentStatus.ACTIVE)
    hire_date = Column(Date, nullable=False)
    termination_date = Column(Date, nullable=True)
    base_salary = Column(DECIMAL(12, 2), nullable=True)

    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    department = relationship("Department")
    position = relationship("Position")
    manager = relationship("Employee", remote_side=[id], back_populates="subordinates")
    subordinates = relationship("Employee", back_populates="manager")
    user = relationship("User", back_populates="employee", foreign_keys=[user_id])

    __table_args__ = (
        Index("idx_employees_manager_id", "manager_id"),
        Index("idx_employees_department_id", "department_id"),
        Index("idx_employees_status", "employment_status"),
        Index("idx_employees_last_first", "last_name", "first_name"),
    )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.middle_name, self.last_name) if p)


# Pydantic Models (for API request/response)
PHONE_PATTERN = r"^\+?[\d\s\-\(\)]+$"


class EmployeeCreate(CamelModel):
    """Model for HR/admin creating an employee record"""
    employee_id: str = Field(..., min_length=1, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=50)
    middle_name: Optional[str] = Field(None, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    department_id: Optional[int] = None
    position_id: Optional[int] = None
    manager_id: Optional[int] = None
    user_id: Optional[int] = None
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE
    hire_date: date
    base_salary: Optional[Decimal] = Field(None, ge=0)


class EmployeeUpdate(CamelModel):
    """Model for HR/admin updating an employee record; only set fields are applied"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    middle_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    department_id: Optional[int] = None
    position_id: Optional[int] = None
    manager_id: Optional[int] = None
    employment_type: Optional[EmploymentType] = None
    employment_status: Optional[EmploymentStatus] = None
    base_salary: Optional[Decimal] = Field(None, ge=0)


class EmployeeRef(CamelModel):
    """Compact employee reference (manager, subordinates)"""
    id: int
    employee_id: str
    first_name: str
    last_name: str


class DepartmentRef(CamelModel):
    id: int
    name: str


class PositionRef(CamelModel):
    id: int
    title: str
    level: Optional[str] = None


class EmployeeSchema(CamelModel):
    """Employee model for API responses"""
    id: int
    employee_id: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    email: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    department_id: Optional[int] = None
    position_id: Optional[int] = None
    manager_id: Optional[int] = None
    user_id: Optional[int] = None
    employment_type: EmploymentType
    employment_status: EmploymentStatus
    hire_date: date
    termination_date: Optional[date] = None
    base_salary: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    department: Optional[DepartmentRef] = None
    position: Optional[PositionRef] = None
    manager: Optional[EmployeeRef] = None


class EmployeeDetailSchema(EmployeeSchema):
    """Detail view: adds the active direct reports"""
    subordinates: List[EmployeeRef] = []
