"""
Department and position SQLAlchemy models and API schemas
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL, ForeignKey, UniqueConstraint, Index, text  # type: ignore
from sqlalchemy.orm import relationship  # type: ignore
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import Field, model_validator
from hrms.db import Base
from hrms.models.schema import CamelModel


class Department(Base):
    """Departments table"""
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    positions = relationship("Position", back_populates="department")

    __table_args__ = (
        Index("idx_departments_is_active", "is_active"),
    )


class Position(Base):
    """Positions table - job titles, optionally tied to a department"""
    __tablename__ = "positions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True)
    level = Column(String(50), nullable=True, comment="e.g. JUNIOR, SENIOR, LEAD")
    description = Column(Text, nullable=True)
    min_salary = Column(DECIMAL(12, 2), nullable=True)
    max_salary = Column(DECIMAL(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    department = relationship("Department", back_populates="positions")

    __table_args__ = (
        UniqueConstraint("title", "department_id", name="uq_positions_title_department"),
        Index("idx_positions_department_id", "department_id"),
        Index("idx_positions_is_active", "is_active"),
    )


# Pydantic Models (for API request/response)
class DepartmentCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)


class DepartmentUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None


class DepartmentSchema(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PositionCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    department_id: Optional[int] = None
    level: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    min_salary: Optional[Decimal] = Field(None, ge=0)
    max_salary: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_salary_range(self):
        if self.min_salary is not None and self.max_salary is not None and self.min_salary > self.max_salary:
            raise ValueError("minSalary cannot exceed maxSalary")
        return self


class PositionUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    department_id: Optional[int] = None
    level: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    min_salary: Optional[Decimal] = Field(None, ge=0)
    max_salary: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None


class PositionSchema(CamelModel):
    id: int
    title: str
    department_id: Optional[int] = None
    level: Optional[str] = None
    description: Optional[str] = None
    min_salary: Optional[Decimal] = None
    max_salary: Optional[Decimal] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
