"""
WorkZen - Services Package

Business logic services.
"""

from workzen.services.audit_service import AuditService
from workzen.services.auth_service import AuthService
from workzen.services.email_service import EmailService
from workzen.services.employee_id_service import EmployeeIdService
from workzen.services.employee_service import EmployeeService
from workzen.services.file_storage_service import FileStorageService
from workzen.services.ocr_service import OCRService
from workzen.services.onboarding_service import OnboardingService
from workzen.services.otp_service import OTPService
from workzen.services.user_service import UserService

__all__ = [
    "AuditService",
    "AuthService",
    "EmailService",
    "EmployeeIdService",
    "EmployeeService",
    "FileStorageService",
    "OCRService",
    "OnboardingService",
    "OTPService",
    "UserService",
]
