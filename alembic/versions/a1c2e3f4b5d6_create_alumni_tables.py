"""create alumni tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates the member accounts, verification codes, approval requests,
preferences, classrooms and classroom memberships tables.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1c2e3f4b5d6"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

user_status = sa.Enum(
    "pending_approval", "active", "suspended", "rejected", name="user_status"
)
user_role = sa.Enum("user", "admin", name="user_role")
approval_status = sa.Enum("pending", "approved", "rejected", name="approval_status")
communication_channel = sa.Enum("app", "sms", "email", "whatsapp", name="communication_channel")
digest_frequency = sa.Enum("realtime", "daily", "weekly", "never", name="digest_frequency")
profile_visibility = sa.Enum("public", "classmates", "connections", name="profile_visibility")
classroom_role = sa.Enum("student", "teacher", name="classroom_role")


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("phone_number_hash", sa.String(64), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("profile_photo_key", sa.String(500), nullable=True),
        sa.Column("profile_photo_url", sa.String(1000), nullable=True),
        sa.Column("status", user_status, nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("approved_by", sa.Uuid(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    )
    # One account per phone number
    op.create_index(
        "ix_users_phone_number_hash", "users", ["phone_number_hash"], unique=True
    )

    op.create_table(
        "verification_codes",
        sa.Column("phone_number_hash", sa.String(64), primary_key=True),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("code", sa.String(6), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_verification_codes_expires_at", "verification_codes", ["expires_at"])

    op.create_table(
        "pending_approvals",
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("status", approval_status, nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.Uuid(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("notification_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index(
        "ix_pending_approvals_status_requested_at",
        "pending_approvals",
        ["status", "requested_at"],
    )

    op.create_table(
        "user_preferences",
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("primary_channel", communication_channel, nullable=False),
        sa.Column("enabled_channels", sa.JSON(), nullable=False),
        sa.Column("sms_notifications", sa.Boolean(), nullable=False),
        sa.Column("email_notifications", sa.Boolean(), nullable=False),
        sa.Column("whatsapp_notifications", sa.Boolean(), nullable=False),
        sa.Column("notify_on_messages", sa.Boolean(), nullable=False),
        sa.Column("notify_on_forum_posts", sa.Boolean(), nullable=False),
        sa.Column("notify_on_events", sa.Boolean(), nullable=False),
        sa.Column("digest_frequency", digest_frequency, nullable=False),
        sa.Column("quiet_hours_start", sa.String(5), nullable=True),
        sa.Column("quiet_hours_end", sa.String(5), nullable=True),
        sa.Column("profile_visibility", profile_visibility, nullable=False),
        sa.Column("show_phone_number", sa.Boolean(), nullable=False),
        sa.Column("show_email", sa.Boolean(), nullable=False),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("grade", sa.String(16), nullable=False),
        sa.Column("section", sa.String(16), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("teacher_name", sa.String(200), nullable=True),
        sa.Column("student_count", sa.Integer(), nullable=True),
        sa.Column("photo_key", sa.String(500), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("ix_classrooms_year", "classrooms", ["year"])

    op.create_table(
        "user_classrooms",
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "classroom_id",
            sa.String(32),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("verified_by", sa.Uuid(), nullable=True),
        sa.Column("role", classroom_role, nullable=False),
    )
    # Members of a classroom
    op.create_index("ix_user_classrooms_classroom_id", "user_classrooms", ["classroom_id"])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_index("ix_user_classrooms_classroom_id", table_name="user_classrooms")
    op.drop_table("user_classrooms")
    op.drop_index("ix_classrooms_year", table_name="classrooms")
    op.drop_table("classrooms")
    op.drop_table("user_preferences")
    op.drop_index("ix_pending_approvals_status_requested_at", table_name="pending_approvals")
    op.drop_table("pending_approvals")
    op.drop_index("ix_verification_codes_expires_at", table_name="verification_codes")
    op.drop_table("verification_codes")
    op.drop_index("ix_users_phone_number_hash", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        classroom_role,
        profile_visibility,
        digest_frequency,
        communication_channel,
        approval_status,
        user_role,
        user_status,
    ):
        enum_type.drop(bind, checkfirst=True)
