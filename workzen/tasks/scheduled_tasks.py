"""
WorkZen - Housekeeping Tasks

Plain async functions over a session so they can run from Celery, a
script, or a test without a broker.
"""

import logging
from datetime import timedelta

from sqlalchemy import and_, delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.models.base import utcnow
from workzen.models.otp import EmailOtp
from workzen.models.user import User

logger = logging.getLogger(__name__)

EXPIRED_OTP_RETENTION = timedelta(days=2)
USED_OTP_RETENTION = timedelta(days=7)


# ===========================================
# SCHEDULED TASK: OTP CLEANUP
# ===========================================

async def cleanup_expired_otps(db: AsyncSession) -> dict:
    """
    Delete codes that expired more than 2 days ago, and used codes
    created more than 7 days ago. Should run daily.
    """
    now = utcnow()
    result = await db.execute(
        delete(EmailOtp).where(
            or_(
                EmailOtp.expires_at < now - EXPIRED_OTP_RETENTION,
                and_(
                    EmailOtp.used.is_(True),
                    EmailOtp.created_at < now - USED_OTP_RETENTION,
                ),
            )
        )
    )
    await db.commit()

    deleted = result.rowcount or 0
    logger.info(f"Deleted {deleted} stale OTP records")
    return {"deleted_otps": deleted}


# ===========================================
# SCHEDULED TASK: RESET TOKEN CLEANUP
# ===========================================

async def cleanup_expired_reset_tokens(db: AsyncSession) -> dict:
    """Clear password reset tokens whose expiry has passed. Should run daily."""
    result = await db.execute(
        update(User)
        .where(
            and_(
                User.reset_token.is_not(None),
                User.reset_token_expiry < utcnow(),
            )
        )
        .values(reset_token=None, reset_token_expiry=None)
    )
    await db.commit()

    cleared = result.rowcount or 0
    logger.info(f"Cleared {cleared} expired password reset tokens")
    return {"cleared_reset_tokens": cleared}
