"""
WorkZen - Test Configuration

Pytest fixtures and configuration. Runs against in-memory SQLite with
email in mock mode.
"""

import os
import tempfile
from typing import AsyncGenerator, List

# Settings are read at import time; configure the environment first
os.environ["APP_ENV"] = "testing"
os.environ["DEBUG"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["FIELD_ENCRYPTION_SECRET"] = "test-field-encryption-secret"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["MAIL_PROVIDER"] = "mock"
os.environ["STORAGE_LOCAL_PATH"] = tempfile.mkdtemp(prefix="workzen-test-uploads-")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import workzen.models  # noqa: F401
from workzen.database import Base, get_async_session
from workzen.models.user import User, UserRole
from workzen.services.email_service import EmailMessage, EmailService
from workzen.utils.security import create_user_token, get_password_hash
from main import app


TEST_PASSWORD = "Password123!"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh in-memory database and session for each test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def sent_emails(monkeypatch) -> List[EmailMessage]:
    """Capture outgoing email instead of logging it."""
    outbox: List[EmailMessage] = []

    async def capture(self, message: EmailMessage) -> bool:
        outbox.append(message)
        return True

    monkeypatch.setattr(EmailService, "send_email", capture)
    return outbox


# ===========================================
# DATA FIXTURES
# ===========================================

async def create_user(
    db: AsyncSession,
    email: str,
    role: UserRole,
    password: str = TEST_PASSWORD,
    is_active: bool = True,
    full_name: str = "Test User",
) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        role=role,
        is_active=is_active,
        email_verified=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "admin@workzen.example.com", UserRole.ADMIN, full_name="Ada Admin")


@pytest_asyncio.fixture
async def hr_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "hr@workzen.example.com", UserRole.HR_OFFICER, full_name="Harriet HR")


@pytest_asyncio.fixture
async def employee_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "staff@workzen.example.com", UserRole.EMPLOYEE, full_name="Sam Staff")


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory for extra users inside a test."""

    async def _make(email: str, role: UserRole = UserRole.EMPLOYEE, **kwargs) -> User:
        return await create_user(db_session, email, role, **kwargs)

    return _make


@pytest.fixture
def headers_for():
    """Bearer headers for any user."""
    return auth_headers


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers(admin_user)


@pytest.fixture
def hr_headers(hr_user: User) -> dict:
    return auth_headers(hr_user)


@pytest.fixture
def employee_headers(employee_user: User) -> dict:
    return auth_headers(employee_user)
