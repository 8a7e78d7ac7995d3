"""
Test Configuration and Fixtures

Shared fixtures for AccessGate API tests.
Provides isolated database, accounts in every access state, and clients.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from accessgate.api.main import create_app
from accessgate.api.config import settings
from accessgate.api.accounts.store import AccountStore
from accessgate.api.db.models import Base, Account, AccessStatus, Role, utcnow
from accessgate.api.db.session import get_db
from accessgate.api.auth.tokens import create_access_token


USER_PASSWORD = "UserPassword123!"
ADMIN_PASSWORD = "AdminPassword123!"
ADMIN_CODE = "test-admin-code"


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    """Cheap hashing and a known admin code for every test."""
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(settings, "ADMIN_REGISTRATION_CODE", ADMIN_CODE)


# ==================== Database Fixtures ====================


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# ==================== Application Fixtures ====================


@pytest.fixture(scope="function")
def app(db_session) -> FastAPI:
    """Create FastAPI app with test database."""
    test_app = create_app()

    async def override_get_db():
        yield db_session

    test_app.dependency_overrides[get_db] = override_get_db
    return test_app


@pytest_asyncio.fixture(scope="function")
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ==================== Account Fixtures ====================


async def _create_account(
    db: AsyncSession,
    email: str,
    status: AccessStatus = AccessStatus.PENDING,
    granted_by: Account = None,
) -> Account:
    account = await AccountStore(db).create(
        name=email.split("@")[0].title(),
        email=email,
        password=USER_PASSWORD,
    )
    if status != AccessStatus.PENDING:
        account.access_status = AccessStatus.GRANTED.value
        account.access_granted_at = utcnow()
        account.access_granted_by = granted_by.id if granted_by else None
    if status == AccessStatus.REVOKED:
        account.access_status = AccessStatus.REVOKED.value
        account.access_revoked_at = utcnow()
        account.access_revoked_by = granted_by.id if granted_by else None
    await db.commit()
    await db.refresh(account)
    return account


@pytest_asyncio.fixture(scope="function")
async def admin_user(db_session) -> Account:
    """Create an admin. Admins start granted."""
    return await AccountStore(db_session).create(
        name="Admin",
        email="admin@example.com",
        password=ADMIN_PASSWORD,
        role=Role.ADMIN,
    )


@pytest_asyncio.fixture(scope="function")
async def other_admin(db_session) -> Account:
    """Create a second admin."""
    return await AccountStore(db_session).create(
        name="Other Admin",
        email="other-admin@example.com",
        password=ADMIN_PASSWORD,
        role=Role.ADMIN,
    )


@pytest_asyncio.fixture(scope="function")
async def pending_user(db_session) -> Account:
    """Create a freshly registered user."""
    return await _create_account(db_session, "pending@example.com")


@pytest_asyncio.fixture(scope="function")
async def granted_user(db_session, admin_user) -> Account:
    """Create a user whose access was granted."""
    return await _create_account(
        db_session, "granted@example.com", AccessStatus.GRANTED, admin_user
    )


@pytest_asyncio.fixture(scope="function")
async def revoked_user(db_session, admin_user) -> Account:
    """Create a user whose access was revoked."""
    return await _create_account(
        db_session, "revoked@example.com", AccessStatus.REVOKED, admin_user
    )


# ==================== Token Fixtures ====================


@pytest.fixture(scope="function")
def admin_token(admin_user) -> str:
    return create_access_token(admin_user.id)


@pytest.fixture(scope="function")
def user_token(granted_user) -> str:
    return create_access_token(granted_user.id)


@pytest.fixture(scope="function")
def admin_headers(admin_token) -> dict:
    """Authorization headers for admin user."""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture(scope="function")
def auth_headers(user_token) -> dict:
    """Authorization headers for granted user."""
    return {"Authorization": f"Bearer {user_token}"}


# ==================== Helpers ====================


class TestHelpers:
    """Helper methods for tests."""

    @staticmethod
    async def login(client: AsyncClient, email: str, password: str = USER_PASSWORD):
        """Log in and drop the session cookie so later requests use explicit headers."""
        response = await client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        client.cookies.clear()
        return response

    @staticmethod
    def bearer(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def assert_error(response, status_code: int, code: str) -> None:
        assert response.status_code == status_code, response.text
        body = response.json()
        assert body["success"] is False
        assert body["code"] == code


@pytest.fixture(scope="function")
def helpers() -> TestHelpers:
    """Provide test helpers."""
    return TestHelpers()
