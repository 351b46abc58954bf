"""
Shared test fixtures for the Classboard test suite.

Every test gets its own in-memory aiosqlite database; the app's session
dependency is overridden to use it.
"""

import os
import sys
import uuid
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = "*"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key-for-classboard"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from classboard.api.deps import get_db
from classboard.core.security import create_access_token, get_password_hash
from classboard.db.base import Base
from classboard.main import app
from classboard.models.user import User


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def user_factory(session_factory):
    """Insert a user straight into the database and return it."""
    hashes: dict[str, str] = {}

    async def _create(
        name: str = "Test User",
        email: str | None = None,
        password: str = "password123",
        role: str = "student",
        **fields,
    ) -> User:
        if password not in hashes:
            hashes[password] = get_password_hash(password)
        async with session_factory() as session:
            user = User(
                name=name,
                email=email or f"{uuid.uuid4().hex[:10]}@example.com",
                password_hash=hashes[password],
                role=role,
                **fields,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _create


# ── Auth helpers ────────────────────────────────────────────────────
def bearer(sub: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(sub, role)}"}


@pytest.fixture
def headers_for():
    """Build Authorization headers for a stored user."""

    def _headers(user: User) -> dict[str, str]:
        return bearer(user.id, user.role)

    return _headers


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return bearer("admin-test-id", "admin")


@pytest.fixture
def student_headers() -> dict[str, str]:
    return bearer("student-test-id", "student")
