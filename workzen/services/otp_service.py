"""
WorkZen - OTP Verification Service

Issues and validates one-time email verification codes for self-registration.

Rules:
- Codes are 6 digits, bcrypt-hashed, valid for 10 minutes
- Issuing a code marks every earlier unused code for the email as used
- Verification reads the newest unused, unexpired code only
- 5 wrong guesses lock the code; the next attempt marks it used
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.config import settings
from workzen.models.audit import AuditAction
from workzen.models.base import utcnow
from workzen.models.otp import EmailOtp
from workzen.models.user import User
from workzen.services.audit_service import AuditService
from workzen.services.email_service import EmailService
from workzen.utils.error_handling import DomainStateException, ErrorCode
from workzen.utils.security import create_user_token, pwd_context

logger = logging.getLogger(__name__)


# ===========================================
# EXCEPTIONS
# ===========================================

class OTPInvalidOrExpiredError(DomainStateException):
    def __init__(self):
        super().__init__("Invalid or expired OTP", code=ErrorCode.OTP_INVALID_OR_EXPIRED)


class OTPTooManyAttemptsError(DomainStateException):
    def __init__(self):
        super().__init__(
            "Too many failed attempts. Please request a new OTP.",
            code=ErrorCode.OTP_TOO_MANY_ATTEMPTS,
        )


class OTPMismatchError(DomainStateException):
    def __init__(self, attempts_remaining: int):
        self.attempts_remaining = attempts_remaining
        super().__init__(
            "Invalid OTP",
            code=ErrorCode.OTP_MISMATCH,
            details={"attemptsRemaining": attempts_remaining},
        )


# ===========================================
# CODE HELPERS
# ===========================================

def generate_otp(digits: int = 6) -> str:
    """Uniform random code in [10^(digits-1), 10^digits - 1]."""
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))


def hash_otp(otp: str) -> str:
    return pwd_context.hash(otp)


def verify_otp_hash(otp: str, otp_hash: str) -> bool:
    return pwd_context.verify(otp, otp_hash)


@dataclass
class OTPVerificationResult:
    user: User
    token: str


class OTPService:
    """Service for issuing and verifying email OTPs."""

    def __init__(
        self,
        db: AsyncSession,
        email_service: Optional[EmailService] = None,
        audit_service: Optional[AuditService] = None,
    ):
        self.db = db
        self.email_service = email_service or EmailService()
        self.audit_service = audit_service or AuditService(db)

    async def invalidate_unused(self, email: str) -> None:
        """Mark every unused OTP for the email as used."""
        await self.db.execute(
            update(EmailOtp)
            .where(and_(EmailOtp.email == email, EmailOtp.used.is_(False)))
            .values(used=True)
        )

    async def issue(
        self,
        email: str,
        full_name: str = "",
        ip_address: Optional[str] = None,
        resend: bool = False,
    ) -> EmailOtp:
        """
        Supersede earlier codes, store a new one and email it.

        Commits the session.
        """
        await self.invalidate_unused(email)

        otp = generate_otp(settings.otp_length)
        record = EmailOtp(
            email=email,
            otp_hash=hash_otp(otp),
            otp_plain=None if settings.is_production else otp,
            expires_at=utcnow() + timedelta(minutes=settings.otp_expiry_minutes),
            used=False,
            attempts=0,
        )
        self.db.add(record)
        await self.db.flush()

        sent = await self.email_service.send_otp_email(email, otp, full_name)
        if not sent:
            logger.warning(f"OTP email to {email} was not delivered")

        await self.audit_service.log_action(
            AuditAction.OTP_RESENT if resend else AuditAction.OTP_SENT,
            actor_email=email,
            details={"message": "New OTP requested and sent" if resend else "OTP sent for registration"},
            ip_address=ip_address,
        )

        await self.db.commit()
        logger.info(f"OTP {'resent' if resend else 'sent'} to {email}")
        return record

    async def get_active_otp(self, email: str) -> Optional[EmailOtp]:
        """Newest unused, unexpired OTP for the email."""
        result = await self.db.execute(
            select(EmailOtp)
            .where(
                and_(
                    EmailOtp.email == email,
                    EmailOtp.used.is_(False),
                    EmailOtp.expires_at > utcnow(),
                )
            )
            .order_by(EmailOtp.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def verify(
        self,
        email: str,
        otp: str,
        ip_address: Optional[str] = None,
    ) -> OTPVerificationResult:
        """
        Check a code and activate the account on success.

        Raises:
            OTPInvalidOrExpiredError: No usable code for the email
            OTPTooManyAttemptsError: Attempt limit reached (code is burned)
            OTPMismatchError: Wrong code (attempts_remaining is set)
        """
        record = await self.get_active_otp(email)
        if not record:
            raise OTPInvalidOrExpiredError()

        if record.attempts >= settings.otp_max_attempts:
            record.used = True
            await self.db.commit()
            logger.warning(f"OTP for {email} locked after {record.attempts} failed attempts")
            raise OTPTooManyAttemptsError()

        if not verify_otp_hash(otp, record.otp_hash):
            record.attempts += 1
            await self.audit_service.log_action(
                AuditAction.OTP_VERIFY_FAILED,
                actor_email=email,
                details={"message": "Failed OTP verification attempt", "attempts": record.attempts},
                ip_address=ip_address,
            )
            await self.db.commit()
            raise OTPMismatchError(settings.otp_max_attempts - record.attempts)

        record.used = True

        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if not user:
            # Code without an account (user removed after issuance)
            await self.db.commit()
            raise OTPInvalidOrExpiredError()

        user.email_verified = True
        user.is_active = True

        await self.audit_service.log_action(
            AuditAction.OTP_VERIFIED,
            actor_email=email,
            details={"message": "Account activated successfully"},
            ip_address=ip_address,
        )
        await self.db.commit()
        await self.db.refresh(user)

        token = create_user_token(user)

        sent = await self.email_service.send_account_activated_email(email, user.full_name)
        if not sent:
            logger.warning(f"Activation email to {email} was not delivered")

        logger.info(f"Account verified and activated: {email}")
        return OTPVerificationResult(user=user, token=token)
