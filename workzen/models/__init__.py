"""
WorkZen - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from workzen.models.base import BaseModel, TimestampMixin, utcnow, as_utc
from workzen.models.user import User, UserRole, Role, ROLE_DESCRIPTIONS
from workzen.models.employee import Employee, EmployeeStatus, EmployeeIdSequence
from workzen.models.onboarding import (
    OnboardingRequest,
    OnboardingStatus,
    DocumentType,
    TERMINAL_STATUSES,
)
from workzen.models.otp import EmailOtp
from workzen.models.audit import AuditLog, AuditAction

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "utcnow",
    "as_utc",
    "User",
    "UserRole",
    "Role",
    "ROLE_DESCRIPTIONS",
    "Employee",
    "EmployeeStatus",
    "EmployeeIdSequence",
    "OnboardingRequest",
    "OnboardingStatus",
    "DocumentType",
    "TERMINAL_STATUSES",
    "EmailOtp",
    "AuditLog",
    "AuditAction",
]
