"""
WorkZen - Housekeeping Task Tests
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from workzen.models.base import utcnow
from workzen.models.otp import EmailOtp
from workzen.models.user import UserRole
from workzen.tasks.scheduled_tasks import cleanup_expired_otps, cleanup_expired_reset_tokens


def otp(email: str, created_ago: timedelta, expires_ago: timedelta, used: bool) -> EmailOtp:
    now = utcnow()
    return EmailOtp(
        email=email,
        otp_hash="x",
        created_at=now - created_ago,
        expires_at=now - expires_ago,
        used=used,
        attempts=0,
    )


class TestCleanupExpiredOtps:

    @pytest.mark.asyncio
    async def test_deletes_only_stale_codes(self, db_session):
        db_session.add_all([
            # expired three days ago
            otp("old@example.com", timedelta(days=3), timedelta(days=3), used=False),
            # used and eight days old
            otp("used@example.com", timedelta(days=8), timedelta(days=1), used=True),
            # expired yesterday, kept for now
            otp("recent@example.com", timedelta(days=1), timedelta(days=1), used=False),
            # still valid
            otp("live@example.com", timedelta(minutes=1), timedelta(minutes=-9), used=False),
        ])
        await db_session.commit()

        result = await cleanup_expired_otps(db_session)

        assert result == {"deleted_otps": 2}
        remaining = (await db_session.execute(select(EmailOtp.email))).scalars().all()
        assert sorted(remaining) == ["live@example.com", "recent@example.com"]


class TestCleanupExpiredResetTokens:

    @pytest.mark.asyncio
    async def test_clears_expired_tokens(self, db_session, make_user):
        expired = await make_user("expired@example.com", UserRole.EMPLOYEE)
        valid = await make_user("valid@example.com", UserRole.EMPLOYEE)
        expired.reset_token = "a" * 64
        expired.reset_token_expiry = utcnow() - timedelta(minutes=5)
        valid.reset_token = "b" * 64
        valid.reset_token_expiry = utcnow() + timedelta(minutes=55)
        await db_session.commit()

        result = await cleanup_expired_reset_tokens(db_session)

        assert result == {"cleared_reset_tokens": 1}
        await db_session.refresh(expired)
        await db_session.refresh(valid)
        assert expired.reset_token is None
        assert expired.reset_token_expiry is None
        assert valid.reset_token == "b" * 64
