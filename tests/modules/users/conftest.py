"""
Fixtures for users tests.
"""

from datetime import UTC, datetime

import pytest

from alumni.modules.users.models import User, UserPreferences, UserRole, UserStatus
from alumni.modules.users.repository import DEFAULT_PREFERENCES


@pytest.fixture
def active_user(user_id) -> User:
    now = datetime.now(UTC)
    return User(
        id=user_id,
        phone_number_hash="a" * 64,
        phone_number="+85291234567",
        name="Chan Tai Man",
        status=UserStatus.ACTIVE,
        role=UserRole.USER,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def stored_preferences(user_id) -> UserPreferences:
    return UserPreferences(user_id=user_id, updated_at=datetime.now(UTC), **DEFAULT_PREFERENCES)
