"""
WorkZen - User Model

Authentication identity with role-based access control.

Roles:
- Admin: Full access, manages every user
- HR Officer: Manages employees, onboarding and non-admin users
- Manager: Team-level access
- Employee: Self-service access
- Contractor: Limited self-service access
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from workzen.database import Base
from workzen.models.base import BaseModel


class UserRole(str, Enum):
    """User roles for RBAC."""
    ADMIN = "admin"
    HR_OFFICER = "hr_officer"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    CONTRACTOR = "contractor"


class User(BaseModel):
    """
    User model for authentication and authorization.
    
    Users are never hard-deleted; deactivation flips is_active.
    """
    
    __tablename__ = "users"
    
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda x: [e.value for e in x]),
        default=UserRole.EMPLOYEE,
        nullable=False,
    )
    
    # Account status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    
    # Password reset
    reset_token: Mapped[Optional[str]] = mapped_column(
        String(128),
        nullable=True,
        index=True,
    )
    reset_token_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class Role(Base):
    """Lookup table of role names, seeded by the initial migration."""
    
    __tablename__ = "roles"
    
    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


ROLE_DESCRIPTIONS = {
    UserRole.ADMIN: "System administrator with full access",
    UserRole.HR_OFFICER: "HR officer managing employees and onboarding",
    UserRole.MANAGER: "Manager with team-level access",
    UserRole.EMPLOYEE: "Regular employee",
    UserRole.CONTRACTOR: "External contractor with limited access",
}
