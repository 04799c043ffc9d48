"""
Fixtures for auth tests.
"""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from alumni.modules.auth.helpers import hash_phone_number
from alumni.modules.auth.models import VerificationCode
from alumni.modules.users.models import User, UserRole, UserStatus

PHONE = "+85291234567"


@pytest.fixture
def phone_number() -> str:
    return PHONE


@pytest.fixture
def verification_code() -> VerificationCode:
    """An unused, unexpired verification code for PHONE."""
    now = datetime.now(UTC)
    return VerificationCode(
        phone_number_hash=hash_phone_number(PHONE),
        phone_number=PHONE,
        name="Chan Tai Man",
        code="123456",
        created_at=now,
        expires_at=now + timedelta(minutes=5),
        attempts=0,
        max_attempts=3,
        verified=False,
    )


@pytest.fixture
def pending_user() -> User:
    now = datetime.now(UTC)
    return User(
        id=uuid4(),
        phone_number_hash=hash_phone_number(PHONE),
        phone_number=PHONE,
        name="Chan Tai Man",
        status=UserStatus.PENDING_APPROVAL,
        role=UserRole.USER,
        created_at=now,
        updated_at=now,
    )
