"""
WorkZen - Authentication Router

Endpoints:
- POST /auth/register-with-otp - Self-registration, sends a verification code
- POST /auth/verify-otp - Verify the code and activate the account
- POST /auth/resend-otp - Issue a fresh code
- POST /auth/login - Email/password login
- GET/PUT /auth/profile - Current user profile
- POST /auth/change-password - Change own password
- POST /auth/forgot-password - Email a reset link
- POST /auth/reset-password - Set a new password with a reset token
- POST /auth/verify-token - Check a session token
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.database import get_async_session
from workzen.dependencies import get_current_active_user
from workzen.models.user import User
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
from workzen.services.auth_service import AuthService


router = APIRouter(prefix="/auth", tags=["Authentication"])

FORGOT_PASSWORD_MESSAGE = "If the email exists, a password reset link has been sent"
RESEND_OTP_MESSAGE = "If the email exists, a new OTP has been sent."


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


# ===========================================
# OTP SELF-REGISTRATION
# ===========================================

@router.post("/register-with-otp", response_model=RegisterResponse)
async def register_with_otp(
    payload: RegisterWithOtpRequest,
    request: Request,
    db: AsyncSession = Depends(get_async_session),
):
    """Create an unverified account and email a verification code."""
    service = AuthService(db)
    user = await service.register_with_otp(
        full_name=payload.full_name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        ip_address=_client_ip(request),
    )
    return RegisterResponse(
        message="Registration successful! Please check your email for verification code.",
        email=user.email,
    )


@router.post("/verify-otp", response_model=TokenUserResponse)
async def verify_otp(
    payload: VerifyOtpRequest,
    request: Request,
    db: AsyncSession = Depends(get_async_session),
):
    service = AuthService(db)
    result = await service.verify_otp(payload.email, payload.otp, ip_address=_client_ip(request))
    return TokenUserResponse(
        message="Email verified successfully! Your account is now active.",
        token=result.token,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/resend-otp", response_model=MessageResponse)
async def resend_otp(
    payload: ResendOtpRequest,
    request: Request,
    db: AsyncSession = Depends(get_async_session),
):
    service = AuthService(db)
    await service.resend_otp(payload.email, ip_address=_client_ip(request))
    return MessageResponse(message=RESEND_OTP_MESSAGE)


# ===========================================
# LOGIN / SESSION
# ===========================================

@router.post("/login", response_model=TokenUserResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
):
    if not payload.email or not payload.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required",
        )

    service = AuthService(db)
    token, user = await service.login(payload.email, payload.password)
    return TokenUserResponse(
        message="Login successful",
        token=token,
        user=UserResponse.model_validate(user),
    )


@router.post("/verify-token", response_model=ProfileResponse)
async def verify_token(current_user: User = Depends(get_current_active_user)):
    return ProfileResponse(message="Token is valid", user=UserResponse.model_validate(current_user))


# ===========================================
# PROFILE / PASSWORD
# ===========================================

@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: User = Depends(get_current_active_user)):
    return ProfileResponse(user=UserResponse.model_validate(current_user))


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    service = AuthService(db)
    user = await service.update_profile(current_user, payload.full_name)
    return ProfileResponse(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    service = AuthService(db)
    await service.change_password(current_user, payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """Always answers with the same message, whether or not the email exists."""
    service = AuthService(db)
    await service.forgot_password(payload.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_async_session),
):
    service = AuthService(db)
    await service.reset_password(payload.token, payload.new_password)
    return MessageResponse(
        message="Password reset successful. You can now login with your new password."
    )
