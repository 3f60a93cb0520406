"""
WorkZen - Auth API Tests

Integration tests for registration, OTP verification, login and
password management endpoints.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from workzen.models.base import utcnow
from workzen.models.otp import EmailOtp
from workzen.models.user import User

PASSWORD = "Password123!"
NEW_EMAIL = "meera.iyer@example.com"


async def latest_otp(db, email: str) -> str:
    result = await db.execute(
        select(EmailOtp)
        .where(EmailOtp.email == email, EmailOtp.used.is_(False))
        .order_by(EmailOtp.created_at.desc())
    )
    return result.scalars().first().otp_plain


async def register(client: AsyncClient, email: str = NEW_EMAIL, **overrides):
    payload = {"full_name": "Meera Iyer", "email": email, "password": PASSWORD, **overrides}
    return await client.post("/api/auth/register-with-otp", json=payload)


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

        response = await client.get("/api/health")
        assert response.json()["environment"] == "testing"


class TestRegistration:
    """Self-registration with email OTP."""

    @pytest.mark.asyncio
    async def test_register_creates_inactive_account(self, client, db_session, sent_emails):
        response = await register(client, email="Meera.Iyer@Example.com")

        assert response.status_code == 200
        assert response.json()["email"] == NEW_EMAIL

        user = (await db_session.execute(select(User).where(User.email == NEW_EMAIL))).scalar_one()
        assert user.is_active is False
        assert user.email_verified is False
        assert len(sent_emails) == 1

    @pytest.mark.asyncio
    async def test_register_rejects_short_password(self, client, sent_emails):
        response = await register(client, password="short")
        assert response.status_code == 400
        assert response.json()["field"] == "password"

    @pytest.mark.asyncio
    async def test_register_rejects_privileged_role(self, client, sent_emails):
        response = await register(client, role="admin")
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid role for self-registration"

    @pytest.mark.asyncio
    async def test_register_invalid_email(self, client):
        response = await register(client, email="not-an-email")
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_register_verified_email_again(self, client, employee_user, sent_emails):
        response = await register(client, email=employee_user.email)
        assert response.status_code == 400
        assert response.json()["error"] == "Email already registered. Please login."

    @pytest.mark.asyncio
    async def test_reregistering_unverified_account_replaces_password(self, client, db_session, sent_emails):
        await register(client)
        await register(client, full_name="Meera S. Iyer", password="Another123!")

        otp = await latest_otp(db_session, NEW_EMAIL)
        response = await client.post("/api/auth/verify-otp", json={"email": NEW_EMAIL, "otp": otp})
        assert response.status_code == 200
        assert response.json()["user"]["full_name"] == "Meera S. Iyer"

        response = await client.post(
            "/api/auth/login", json={"email": NEW_EMAIL, "password": "Another123!"}
        )
        assert response.status_code == 200


class TestOtpVerification:

    @pytest.mark.asyncio
    async def test_verify_activates_and_returns_token(self, client, db_session, sent_emails):
        await register(client)
        otp = await latest_otp(db_session, NEW_EMAIL)

        response = await client.post("/api/auth/verify-otp", json={"email": NEW_EMAIL, "otp": otp})

        assert response.status_code == 200
        data = response.json()
        assert data["token"]
        assert data["user"]["is_active"] is True
        assert data["user"]["email_verified"] is True

        profile = await client.get(
            "/api/auth/profile", headers={"Authorization": f"Bearer {data['token']}"}
        )
        assert profile.status_code == 200
        assert profile.json()["user"]["email"] == NEW_EMAIL

    @pytest.mark.asyncio
    async def test_wrong_code_reports_attempts(self, client, sent_emails):
        await register(client)

        response = await client.post(
            "/api/auth/verify-otp", json={"email": NEW_EMAIL, "otp": "000000"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid OTP"
        assert response.json()["attemptsRemaining"] == 4

    @pytest.mark.asyncio
    async def test_locked_after_five_failures(self, client, db_session, sent_emails):
        await register(client)
        otp = await latest_otp(db_session, NEW_EMAIL)

        for _ in range(5):
            await client.post("/api/auth/verify-otp", json={"email": NEW_EMAIL, "otp": "000000"})

        response = await client.post("/api/auth/verify-otp", json={"email": NEW_EMAIL, "otp": otp})
        assert response.status_code == 400
        assert response.json()["error"] == "Too many failed attempts. Please request a new OTP."

    @pytest.mark.asyncio
    async def test_expired_code(self, client, db_session, sent_emails):
        await register(client)
        record = (
            await db_session.execute(select(EmailOtp).where(EmailOtp.email == NEW_EMAIL))
        ).scalar_one()
        record.expires_at = utcnow() - timedelta(seconds=1)
        await db_session.commit()

        response = await client.post(
            "/api/auth/verify-otp", json={"email": NEW_EMAIL, "otp": record.otp_plain}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid or expired OTP"

    @pytest.mark.asyncio
    async def test_resend_supersedes_previous_code(self, client, db_session, sent_emails):
        await register(client)
        first = await latest_otp(db_session, NEW_EMAIL)

        response = await client.post("/api/auth/resend-otp", json={"email": NEW_EMAIL})
        assert response.status_code == 200
        second = await latest_otp(db_session, NEW_EMAIL)

        if first != second:
            response = await client.post(
                "/api/auth/verify-otp", json={"email": NEW_EMAIL, "otp": first}
            )
            assert response.status_code == 400

        response = await client.post("/api/auth/verify-otp", json={"email": NEW_EMAIL, "otp": second})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_resend_for_unknown_email_is_generic(self, client, sent_emails):
        response = await client.post("/api/auth/resend-otp", json={"email": "ghost@example.com"})
        assert response.status_code == 200
        assert response.json()["message"] == "If the email exists, a new OTP has been sent."
        assert sent_emails == []


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, client, employee_user):
        response = await client.post(
            "/api/auth/login", json={"email": "STAFF@workzen.example.com", "password": PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["user"]["role"] == "employee"

        verify = await client.post(
            "/api/auth/verify-token", headers={"Authorization": f"Bearer {data['token']}"}
        )
        assert verify.status_code == 200
        assert verify.json()["message"] == "Token is valid"

    @pytest.mark.asyncio
    async def test_missing_fields(self, client):
        response = await client.post("/api/auth/login", json={"email": "a@example.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "Email and password are required"

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_look_alike(self, client, employee_user):
        wrong_password = await client.post(
            "/api/auth/login", json={"email": employee_user.email, "password": "Nope12345!"}
        )
        unknown = await client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
        )

        assert wrong_password.status_code == unknown.status_code == 401
        assert wrong_password.json() == unknown.json()

    @pytest.mark.asyncio
    async def test_deactivated_account(self, client, make_user):
        user = await make_user("gone@example.com", is_active=False)

        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": PASSWORD}
        )
        assert response.status_code == 401
        assert "deactivated" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_deactivated_account_wrong_password_stays_generic(self, client, make_user):
        user = await make_user("gone@example.com", is_active=False)

        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": "Wrong12345!"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password"


class TestSession:

    @pytest.mark.asyncio
    async def test_profile_requires_token(self, client):
        response = await client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["error"] == "Not authenticated"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get(
            "/api/auth/profile", headers={"Authorization": "Bearer not.a.jwt"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_token_of_deactivated_user(self, client, employee_user, employee_headers, db_session):
        employee_user.is_active = False
        await db_session.commit()

        response = await client.get("/api/auth/profile", headers=employee_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "User account is deactivated"

    @pytest.mark.asyncio
    async def test_update_profile(self, client, employee_headers):
        response = await client.put(
            "/api/auth/profile", json={"full_name": "  Samuel Staff "}, headers=employee_headers
        )
        assert response.status_code == 200
        assert response.json()["user"]["full_name"] == "Samuel Staff"


class TestPasswords:

    @pytest.mark.asyncio
    async def test_change_password(self, client, employee_user, employee_headers):
        response = await client.post(
            "/api/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "Changed123!"},
            headers=employee_headers,
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"

        old = await client.post("/api/auth/login", json={"email": employee_user.email, "password": PASSWORD})
        new = await client.post(
            "/api/auth/login", json={"email": employee_user.email, "password": "Changed123!"}
        )
        assert old.status_code == 401
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, client, employee_headers):
        response = await client.post(
            "/api/auth/change-password",
            json={"current_password": "Wrong12345!", "new_password": "Changed123!"},
            headers=employee_headers,
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_forgot_and_reset_password(self, client, employee_user, db_session, sent_emails):
        response = await client.post(
            "/api/auth/forgot-password", json={"email": employee_user.email}
        )
        assert response.status_code == 200

        await db_session.refresh(employee_user)
        token = employee_user.reset_token
        assert token
        assert f"reset-password?token={token}" in sent_emails[-1].body_text

        response = await client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "Recovered123!"}
        )
        assert response.status_code == 200

        login = await client.post(
            "/api/auth/login", json={"email": employee_user.email, "password": "Recovered123!"}
        )
        assert login.status_code == 200

        # Tokens are single use
        again = await client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "Recovered456!"}
        )
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_forgot_password_unknown_email_is_generic(self, client, sent_emails):
        response = await client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
        assert response.status_code == 200
        assert response.json()["message"] == "If the email exists, a password reset link has been sent"
        assert sent_emails == []

    @pytest.mark.asyncio
    async def test_expired_reset_token(self, client, employee_user, db_session, sent_emails):
        await client.post("/api/auth/forgot-password", json={"email": employee_user.email})
        await db_session.refresh(employee_user)
        token = employee_user.reset_token
        employee_user.reset_token_expiry = utcnow() - timedelta(minutes=1)
        await db_session.commit()

        response = await client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "Recovered123!"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid or expired reset token"
