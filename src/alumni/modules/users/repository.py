"""
User Repository

Database operations for member accounts and preferences.

Status changes go through `transition_status`, a single conditional UPDATE
that only succeeds while the row is still in the expected status. Two
concurrent reviews of the same account therefore cannot both win.
"""

import copy
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from alumni.modules.shared import utcnow
from alumni.modules.users.models import (
    CommunicationChannel,
    DigestFrequency,
    ProfileVisibility,
    User,
    UserPreferences,
    UserRole,
    UserStatus,
)

logger = logging.getLogger(__name__)


# Valid status transitions for the account lifecycle.
# Active, suspended and rejected accounts have no outgoing transitions.
VALID_STATUS_TRANSITIONS: dict[UserStatus, set[UserStatus]] = {
    UserStatus.PENDING_APPROVAL: {
        UserStatus.ACTIVE,  # Admin approved
        UserStatus.REJECTED,  # Admin rejected
    },
    UserStatus.ACTIVE: set(),
    UserStatus.SUSPENDED: set(),
    UserStatus.REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when attempting an invalid status transition."""

    def __init__(self, current_status: UserStatus, new_status: UserStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition from {current_status.value} to {new_status.value}. "
            f"Valid transitions: {[s.value for s in valid]}"
        )


# Default preferences applied on first read
DEFAULT_PREFERENCES: dict = {
    "primary_channel": CommunicationChannel.APP,
    "enabled_channels": [CommunicationChannel.APP.value],
    "sms_notifications": True,
    "email_notifications": True,
    "whatsapp_notifications": False,
    "notify_on_messages": True,
    "notify_on_forum_posts": False,
    "notify_on_events": True,
    "digest_frequency": DigestFrequency.DAILY,
    "quiet_hours_start": "22:00",
    "quiet_hours_end": "08:00",
    "profile_visibility": ProfileVisibility.CLASSMATES,
    "show_phone_number": False,
    "show_email": False,
}


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        phone_number_hash: str,
        phone_number: str,
        name: str = "",
        status: UserStatus = UserStatus.PENDING_APPROVAL,
        role: UserRole = UserRole.USER,
    ) -> User:
        """
        Add a new user to the session and flush it.

        The caller owns the transaction. A duplicate phone hash raises
        IntegrityError on flush.
        """
        now = utcnow()
        user = User(
            phone_number_hash=phone_number_hash,
            phone_number=phone_number,
            name=name,
            status=status,
            role=role,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        await db.flush()
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        """Get user by ID."""
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_phone_hash(db: AsyncSession, phone_number_hash: str) -> User | None:
        """Get user by phone number hash (unique index)."""
        result = await db.execute(select(User).where(User.phone_number_hash == phone_number_hash))
        return result.scalar_one_or_none()

    @staticmethod
    async def transition_status(
        db: AsyncSession,
        user_id: UUID,
        *,
        from_status: UserStatus,
        to_status: UserStatus,
        reviewed_by: UUID | None = None,
        reviewed_at: datetime | None = None,
    ) -> bool:
        """
        Move a user from `from_status` to `to_status` atomically.

        Returns:
            True if the row was updated, False if the user no longer has
            `from_status` (or does not exist).

        Raises:
            InvalidStatusTransitionError: If the transition is not allowed
        """
        if to_status not in VALID_STATUS_TRANSITIONS.get(from_status, set()):
            raise InvalidStatusTransitionError(from_status, to_status)

        now = reviewed_at or utcnow()
        values: dict = {"status": to_status, "updated_at": now}
        if to_status == UserStatus.ACTIVE:
            values["approved_by"] = reviewed_by
            values["approved_at"] = now

        result = await db.execute(
            update(User)
            .where(User.id == user_id, User.status == from_status)
            .values(**values)
        )

        if result.rowcount != 1:
            logger.warning(
                f"Status transition {from_status.value} -> {to_status.value} "
                f"lost for user {user_id}"
            )
            return False
        return True

    @staticmethod
    async def update_profile(db: AsyncSession, user: User, **fields) -> User:
        """Set profile fields on a user and flush."""
        for field, value in fields.items():
            setattr(user, field, value)
        user.updated_at = utcnow()
        await db.flush()
        return user

    @staticmethod
    async def set_role(db: AsyncSession, user: User, role: UserRole) -> User:
        """Change a user's role."""
        user.role = role
        user.updated_at = utcnow()
        await db.flush()
        return user


class PreferencesRepository:
    """Repository for user preferences."""

    @staticmethod
    async def get(db: AsyncSession, user_id: UUID) -> UserPreferences | None:
        return await db.get(UserPreferences, user_id)

    @staticmethod
    async def create_default(db: AsyncSession, user_id: UUID) -> UserPreferences:
        """Insert the default preferences for a user and flush."""
        preferences = UserPreferences(
            user_id=user_id,
            updated_at=utcnow(),
            **copy.deepcopy(DEFAULT_PREFERENCES),
        )
        db.add(preferences)
        await db.flush()
        return preferences

    @staticmethod
    async def update(db: AsyncSession, preferences: UserPreferences, **fields) -> UserPreferences:
        """Merge the given fields into stored preferences and flush."""
        for field, value in fields.items():
            setattr(preferences, field, value)
        preferences.updated_at = utcnow()
        await db.flush()
        return preferences
