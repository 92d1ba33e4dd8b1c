"""
Voyage Backend - Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the whole suite.
How:   The environment is pointed at a throw-away SQLite file (aiosqlite)
       BEFORE anything from voyage is imported, since voyage.config reads
       it at import time.

Fixture Hierarchy:
    Function-scoped (fresh for each test):
    ├── mock_db_session:   AsyncMock session (service unit tests, no DB)
    ├── database:          empty tables on the SQLite test database
    ├── db_session:        real AsyncSession on the test database
    ├── test_client:       httpx AsyncClient over ASGITransport (all routers)
    └── user_headers / other_user_headers / admin_headers:
                           bearer tokens for stateless services
"""

import os
import tempfile
from typing import AsyncGenerator, Callable, Dict
from unittest.mock import AsyncMock, MagicMock

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

_TEST_DIR = tempfile.mkdtemp(prefix="voyage_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"  # library minimum; hashing stays fast
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SERVICE"] = "all"
os.environ["DB_CREATE_ALL"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TRAVEL_PROVIDERS"] = "AIRFRANCE=http://airfrance.test,SNCF=http://sncf.test"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["CB_FAILURE_THRESHOLD"] = "3"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from voyage.database import Base, async_session_factory, engine  # noqa: E402
from voyage.security import create_access_token  # noqa: E402

import voyage.models  # noqa: E402,F401


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        async def test_get_user(mock_db_session):
            mock_db_session.get.return_value = user
            result = await user_service.get_user(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Recreates every table, and releases pooled connections afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    # Pooled aiosqlite connections belong to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """A real session; tests flush, the fixture commits at the end."""
    async with async_session_factory() as session:
        yield session
        await session.commit()


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient talking to the combined application.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from voyage.main import create_app

    transport = ASGITransport(app=create_app("all"))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def bearer(user_id: int, role: str = "user", email: str = None) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role, email)}"}


@pytest.fixture
def make_headers() -> Callable[..., Dict[str, str]]:
    return bearer


@pytest.fixture
def user_headers() -> Dict[str, str]:
    return bearer(1, "user", "jane.doe@mail.com")


@pytest.fixture
def other_user_headers() -> Dict[str, str]:
    return bearer(2, "user", "john.smith@mail.com")


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return bearer(99, "admin", "admin@mail.com")
