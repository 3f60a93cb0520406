"""
WorkZen - Authentication Service

Credential validation, session tokens, OTP self-registration and the
password reset lifecycle.
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.config import settings
from workzen.models.base import utcnow
from workzen.models.user import User, UserRole
from workzen.services.email_service import EmailService
from workzen.services.otp_service import OTPService, OTPVerificationResult
from workzen.utils.error_handling import (
    AccountDeactivatedException,
    AuthenticationException,
    DomainStateException,
    ErrorCode,
    InvalidCredentialsException,
    NotFoundException,
    ValidationException,
)
from workzen.utils.security import (
    create_user_token,
    generate_secure_token,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

# Roles a person may pick when registering themselves
SELF_REGISTRATION_ROLES = (UserRole.EMPLOYEE, UserRole.CONTRACTOR)


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        db: AsyncSession,
        email_service: Optional[EmailService] = None,
        otp_service: Optional[OTPService] = None,
    ):
        self.db = db
        self.email_service = email_service or EmailService()
        self.otp_service = otp_service or OTPService(db, email_service=self.email_service)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email address."""
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    # ===========================================
    # LOGIN / SESSION
    # ===========================================

    async def validate_credentials(self, email: str, password: str) -> User:
        """
        Check an email/password pair.

        Unknown email and wrong password share one message. The deactivated
        message is only shown once the password has been proven.

        Raises:
            InvalidCredentialsException: Unknown email or wrong password
            AccountDeactivatedException: Correct password, inactive account
        """
        user = await self.get_user_by_email(email)

        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsException()

        if not user.is_active:
            raise AccountDeactivatedException()

        return user

    @staticmethod
    def generate_token(user: User) -> str:
        """Signed session token embedding id, email and role."""
        return create_user_token(user)

    async def login(self, email: str, password: str) -> Tuple[str, User]:
        user = await self.validate_credentials(email, password)
        logger.info(f"User logged in: {user.email}")
        return self.generate_token(user), user

    # ===========================================
    # PROFILE / PASSWORD
    # ===========================================

    async def update_profile(self, user: User, full_name: str) -> User:
        if not full_name or not full_name.strip():
            raise ValidationException("Full name is required", field="full_name")
        user.full_name = full_name.strip()
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def update_password(self, user_id: uuid.UUID, new_password: str) -> User:
        """Re-hash and persist a password (updated_at is bumped on flush)."""
        user = await self.get_user_by_id(user_id)
        if not user:
            raise NotFoundException("User", user_id, message="User not found")

        user.hashed_password = get_password_hash(new_password)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        validate_password_strength(new_password)

        if not verify_password(current_password, user.hashed_password):
            raise AuthenticationException(
                "Current password is incorrect",
                code=ErrorCode.INVALID_CREDENTIALS,
            )

        await self.update_password(user.id, new_password)
        logger.info(f"Password changed for {user.email}")

    # ===========================================
    # OTP SELF-REGISTRATION
    # ===========================================

    async def register_with_otp(
        self,
        full_name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.EMPLOYEE,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Create (or refresh) an unverified, inactive account and send an OTP.

        An existing unverified account has its name and password replaced.
        """
        email = email.strip().lower()
        validate_password_strength(password)

        if role not in SELF_REGISTRATION_ROLES:
            raise ValidationException(
                "Invalid role for self-registration",
                field="role",
            )

        user = await self.get_user_by_email(email)
        if user and user.email_verified:
            raise DomainStateException(
                "Email already registered. Please login.",
                code=ErrorCode.ALREADY_COMPLETED,
            )

        if user:
            user.full_name = full_name
            user.hashed_password = get_password_hash(password)
            user.email_verified = False
        else:
            user = User(
                email=email,
                full_name=full_name,
                hashed_password=get_password_hash(password),
                role=role,
                email_verified=False,
                is_active=False,
            )
            self.db.add(user)
        await self.db.flush()

        await self.otp_service.issue(email, full_name=full_name, ip_address=ip_address)
        logger.info(f"Registration OTP sent to {email}")
        return user

    async def verify_otp(
        self,
        email: str,
        otp: str,
        ip_address: Optional[str] = None,
    ) -> OTPVerificationResult:
        return await self.otp_service.verify(email.strip().lower(), otp, ip_address=ip_address)

    async def resend_otp(self, email: str, ip_address: Optional[str] = None) -> bool:
        """
        Issue a fresh OTP.

        Returns:
            False when no account exists (callers answer generically)
        """
        user = await self.get_user_by_email(email)
        if not user:
            return False

        if user.email_verified:
            raise DomainStateException(
                "Email already verified. Please login.",
                code=ErrorCode.ALREADY_COMPLETED,
            )

        await self.otp_service.issue(
            user.email,
            full_name=user.full_name,
            ip_address=ip_address,
            resend=True,
        )
        return True

    # ===========================================
    # PASSWORD RESET
    # ===========================================

    async def forgot_password(self, email: str) -> None:
        """
        Start a password reset. Silent when the email is unknown.
        """
        user = await self.get_user_by_email(email)
        if not user:
            logger.info("Password reset requested for unknown email")
            return

        token = generate_secure_token(32)
        user.reset_token = token
        user.reset_token_expiry = utcnow() + timedelta(hours=settings.reset_token_ttl_hours)
        await self.db.commit()

        reset_link = f"{settings.frontend_url}/reset-password?token={token}"
        sent = await self.email_service.send_password_reset_email(user.email, user.full_name, reset_link)
        if not sent:
            logger.warning(f"Password reset email to {user.email} was not delivered")

    async def reset_password(self, token: str, new_password: str) -> User:
        validate_password_strength(new_password)

        result = await self.db.execute(
            select(User).where(
                and_(
                    User.reset_token == token,
                    User.reset_token_expiry > utcnow(),
                )
            )
        )
        user = result.scalar_one_or_none()
        if not user:
            raise DomainStateException(
                "Invalid or expired reset token",
                code=ErrorCode.TOKEN_EXPIRED,
            )

        user.hashed_password = get_password_hash(new_password)
        user.reset_token = None
        user.reset_token_expiry = None
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Password reset completed for {user.email}")
        return user
