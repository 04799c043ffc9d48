"""
Shared test fixtures.

Environment variables are set before the application is imported so the
module-level settings and engine use an in-memory SQLite database.
"""

import os

os.environ.setdefault("PYTHON_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("SMS_ENABLED", "false")
os.environ.setdefault("TESTING", "true")

from datetime import timedelta  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402

from alumni.core.rate_limit import reset_memory_store  # noqa: E402
from alumni.core.security import TokenService  # noqa: E402

TEST_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def _clear_rate_limits():
    """Rate-limit counters must not leak between tests."""
    reset_memory_store()
    yield
    reset_memory_store()


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET, expires_in=timedelta(hours=24))


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def admin_id() -> UUID:
    """Return a consistent admin UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def user_token(token_service, user_id) -> str:
    return token_service.issue(
        user_id=user_id, phone_number="+85291234567", status="active", role="user"
    ).token


@pytest.fixture
def admin_token(token_service, admin_id) -> str:
    return token_service.issue(
        user_id=admin_id, phone_number="+85290000000", status="active", role="admin"
    ).token
