"""
WorkZen - Schemas Package

Pydantic schemas for request/response validation.
"""

from workzen.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterResponse,
    RegisterWithOtpRequest,
    ResendOtpRequest,
    ResetPasswordRequest,
    TokenUserResponse,
    UserResponse,
    VerifyOtpRequest,
)
from workzen.schemas.employee import (
    EmployeeCreateRequest,
    EmployeeUpdateRequest,
    GenerateIdRequest,
)
from workzen.schemas.onboarding import (
    ApprovalResponse,
    BankInfoRequest,
    OCRExtractRequest,
    OnboardingInviteRequest,
    PersonalInfoRequest,
    RejectRequest,
    RequestChangesRequest,
    StepResponse,
    ValidateTokenResponse,
)
from workzen.schemas.user import (
    RoleResponse,
    UserCreateRequest,
    UserPasswordResetRequest,
    UserUpdateRequest,
)
