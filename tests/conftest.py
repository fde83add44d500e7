"""
Pytest configuration and fixtures for Warden tests.

This module provides:
- A fresh SQLite database per test
- Test client fixtures
- User, role and permission fixtures
- Authentication token fixtures
"""

# Set environment variables BEFORE importing anything from warden
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-characters-long")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./warden-test.db")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BOOTSTRAP_ENABLED"] = "false"
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "8192"
os.environ["ARGON2_PARALLELISM"] = "1"

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from warden.core.config import settings
from warden.core.database import create_database_engine, create_sessionmaker
from warden.core.permissions import PermissionCatalog, build_permission_catalog
from warden.core.security import hash_password
from warden.main import app
from warden.models import Base, Permission, Role, User
from warden.services.bootstrap_service import BootstrapReport, BootstrapService

API = settings.api_prefix
ADMIN_USERNAME = "administrator"
ADMIN_PASSWORD = "AdminPass123!"
USER_PASSWORD = "UserPass123!"


# ============================================================================
# Database Fixtures
# ============================================================================
@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a test database engine on a fresh SQLite file.

    Every test gets its own database, so no cleanup between tests is needed.
    """
    engine = create_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'warden.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(test_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for a test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def catalog() -> PermissionCatalog:
    return build_permission_catalog(API)


# ============================================================================
# FastAPI Client Fixtures
# ============================================================================
@pytest_asyncio.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    catalog: PermissionCatalog,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async test client wired to the test database.

    The ASGI transport does not run the lifespan, so the state it would set
    up is installed here.
    """
    app.state.sessionmaker = session_factory
    app.state.catalog = catalog

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.state.sessionmaker = None


# ============================================================================
# Bootstrap and Entity Fixtures
# ============================================================================
@pytest.fixture
def bootstrap_service(
    session_factory: async_sessionmaker[AsyncSession],
    catalog: PermissionCatalog,
) -> BootstrapService:
    return BootstrapService(
        session_factory=session_factory,
        catalog=catalog,
        admin_username=ADMIN_USERNAME,
        admin_password_hash=hash_password(ADMIN_PASSWORD),
        root_role_name="root",
    )


@pytest_asyncio.fixture
async def bootstrapped(bootstrap_service: BootstrapService) -> BootstrapReport:
    """Run the bootstrap routine once: administrator, root role, full catalog."""
    return await bootstrap_service.run()


@pytest_asyncio.fixture
async def make_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[User]]:
    """Factory creating committed users with USER_PASSWORD."""

    async def _make(username: str, phone: str | None = None) -> User:
        async with session_factory() as session:
            user = User(
                username=username,
                phone=phone,
                password_hash=hash_password(USER_PASSWORD),
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make


@pytest_asyncio.fixture
async def make_role(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Role]]:
    """Factory creating committed roles."""

    async def _make(name: str, description: str | None = None) -> Role:
        async with session_factory() as session:
            role = Role(name=name, description=description)
            session.add(role)
            await session.commit()
            await session.refresh(role)
            return role

    return _make


@pytest_asyncio.fixture
async def make_permission(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Permission]]:
    """Factory creating committed api permissions."""

    async def _make(name: str, method: str = "GET", path: str = "/x", type: str = "api") -> Permission:
        async with session_factory() as session:
            meta: dict[str, Any] = {"method": method, "path": path} if type == "api" else {"code": name}
            permission = Permission(name=name, type=type, meta=meta)
            session.add(permission)
            await session.commit()
            await session.refresh(permission)
            return permission

    return _make


@pytest_asyncio.fixture
async def test_user(make_user) -> User:
    """A user holding no roles."""
    return await make_user("testuser")


# ============================================================================
# Authentication Fixtures
# ============================================================================
async def login(client: AsyncClient, username: str, password: str) -> dict:
    response = await client.post(
        f"{API}/auth/login",
        json={"username": username, "password": password},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 200, body
    return body["data"]


@pytest_asyncio.fixture
async def admin_token(async_client: AsyncClient, bootstrapped: BootstrapReport) -> dict:
    """
    Get tokens for the bootstrapped administrator.

    Returns:
        Token payload with access_token and refresh_token
    """
    return await login(async_client, ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest_asyncio.fixture
async def user_token(async_client: AsyncClient, test_user: User) -> dict:
    return await login(async_client, "testuser", USER_PASSWORD)


@pytest.fixture
def admin_headers(admin_token: dict) -> dict:
    return {"Authorization": f"Bearer {admin_token['access_token']}"}


@pytest.fixture
def auth_headers(user_token: dict) -> dict:
    return {"Authorization": f"Bearer {user_token['access_token']}"}
