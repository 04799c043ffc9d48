"""
User Models

Database models for member accounts and their notification preferences.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from alumni.core.database import Base


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class UserStatus(str, enum.Enum):
    """Account lifecycle status."""

    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    REJECTED = "rejected"


class UserRole(str, enum.Enum):
    """User roles in the system."""

    USER = "user"
    ADMIN = "admin"


class CommunicationChannel(str, enum.Enum):
    APP = "app"
    SMS = "sms"
    EMAIL = "email"
    WHATSAPP = "whatsapp"


class DigestFrequency(str, enum.Enum):
    REALTIME = "realtime"
    DAILY = "daily"
    WEEKLY = "weekly"
    NEVER = "never"


class ProfileVisibility(str, enum.Enum):
    PUBLIC = "public"
    CLASSMATES = "classmates"
    CONNECTIONS = "connections"


class User(Base):
    """
    Member account.

    Created when a phone number is verified. The phone number is looked up by
    its SHA-256 hash; the cleartext number is kept for notifications only.
    Accounts are never hard-deleted.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Identity
    phone_number_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)

    # Profile
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    profile_photo_key: Mapped[str | None] = mapped_column(String(500), nullable=True)
    profile_photo_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Lifecycle
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, name="user_status", values_callable=_enum_values),
        nullable=False,
        default=UserStatus.PENDING_APPROVAL,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=_enum_values),
        nullable=False,
        default=UserRole.USER,
    )
    approved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, status={self.status.value}, role={self.role.value})>"


class UserPreferences(Base):
    """Notification and privacy preferences, one row per user."""

    __tablename__ = "user_preferences"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # Channels
    primary_channel: Mapped[CommunicationChannel] = mapped_column(
        Enum(CommunicationChannel, name="communication_channel", values_callable=_enum_values),
        nullable=False,
        default=CommunicationChannel.APP,
    )
    enabled_channels: Mapped[list] = mapped_column(
        JSON, nullable=False, default=lambda: [CommunicationChannel.APP.value]
    )
    sms_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    whatsapp_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Notification types
    notify_on_messages: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notify_on_forum_posts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notify_on_events: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Digest and quiet hours (HH:MM)
    digest_frequency: Mapped[DigestFrequency] = mapped_column(
        Enum(DigestFrequency, name="digest_frequency", values_callable=_enum_values),
        nullable=False,
        default=DigestFrequency.DAILY,
    )
    quiet_hours_start: Mapped[str | None] = mapped_column(String(5), nullable=True, default="22:00")
    quiet_hours_end: Mapped[str | None] = mapped_column(String(5), nullable=True, default="08:00")

    # Privacy
    profile_visibility: Mapped[ProfileVisibility] = mapped_column(
        Enum(ProfileVisibility, name="profile_visibility", values_callable=_enum_values),
        nullable=False,
        default=ProfileVisibility.CLASSMATES,
    )
    show_phone_number: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    show_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
