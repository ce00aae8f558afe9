"""
User (login account) SQLAlchemy model and API schemas
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SQLEnum, Index, text  # type: ignore
from sqlalchemy.orm import relationship  # type: ignore
from datetime import datetime
from typing import Optional
from hrms.db import Base
from hrms.models.enums import Role
from hrms.models.schema import CamelModel


class User(Base):
    """Users table - one login account, optionally linked to an employee record"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, comment="Login email")
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(Role), nullable=False, default=Role.EMPLOYEE)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    employee = relationship("Employee", back_populates="user", uselist=False, foreign_keys="Employee.user_id")

    __table_args__ = (
        Index("idx_users_role", "role"),
        Index("idx_users_is_active", "is_active"),
    )


class UserSchema(CamelModel):
    """User model for API responses (never carries the password hash)"""
    id: int
    email: str
    role: Role
    is_active: bool
    last_login_at: Optional[datetime] = None
