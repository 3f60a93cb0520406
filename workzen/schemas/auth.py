"""
WorkZen - Authentication Schemas

Pydantic schemas for login, OTP registration and password flows.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from workzen.models.user import UserRole


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class LoginRequest(BaseModel):
    """Both fields are checked by the route so the error names them together."""
    email: Optional[str] = None
    password: Optional[str] = None


class RegisterWithOtpRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., max_length=128)
    role: UserRole = UserRole.EMPLOYEE


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=10)


class ResendOtpRequest(BaseModel):
    email: EmailStr


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=128)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., max_length=128)


class ProfileUpdateRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class UserResponse(BaseModel):
    """Schema for user response."""
    id: UUID
    email: str
    full_name: str
    role: UserRole
    is_active: bool
    email_verified: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Generic message response."""
    message: str


class RegisterResponse(BaseModel):
    message: str
    email: str


class TokenUserResponse(BaseModel):
    """Session token together with the user it was issued for."""
    message: str
    token: str
    user: UserResponse


class ProfileResponse(BaseModel):
    message: Optional[str] = None
    user: UserResponse
