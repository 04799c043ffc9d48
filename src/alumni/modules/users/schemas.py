"""
User Schemas

Pydantic schemas for profile, photo upload and preference endpoints.
"""

import re
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from alumni.modules.shared import CamelModel
from alumni.modules.users.models import CommunicationChannel, DigestFrequency, ProfileVisibility

_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ProfileUpdateRequest(CamelModel):
    """Request body for PUT /users/{user_id}/profile. Blank strings count as absent."""

    name: str | None = Field(None, max_length=200)
    bio: str | None = Field(None, max_length=1000)

    @field_validator("name", "bio")
    @classmethod
    def strip_blank(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def require_a_field(self) -> "ProfileUpdateRequest":
        if self.name is None and self.bio is None:
            raise ValueError("At least one field (name or bio) is required")
        return self


class MessageResponse(CamelModel):
    message: str


class ProfileUpdateResponse(CamelModel):
    message: str
    user_id: UUID


class PhotoUploadRequest(CamelModel):
    content_type: str = Field(..., min_length=1, max_length=100)
    file_size: int


class PhotoUploadResponse(CamelModel):
    upload_url: str
    photo_key: str
    expires_in: int


class PhotoCompleteRequest(CamelModel):
    photo_key: str = Field(..., min_length=1, max_length=500)


class PhotoCompleteResponse(CamelModel):
    message: str
    photo_url: str


class PreferencesResponse(CamelModel):
    user_id: UUID
    primary_channel: CommunicationChannel
    enabled_channels: list[CommunicationChannel]
    sms_notifications: bool
    email_notifications: bool
    whatsapp_notifications: bool
    notify_on_messages: bool
    notify_on_forum_posts: bool
    notify_on_events: bool
    digest_frequency: DigestFrequency
    quiet_hours_start: str | None
    quiet_hours_end: str | None
    profile_visibility: ProfileVisibility
    show_phone_number: bool
    show_email: bool
    updated_at: datetime


class PreferencesUpdateRequest(CamelModel):
    """
    Partial preference update. Only fields present in the request change.

    Enum fields reject unknown values.
    """

    primary_channel: CommunicationChannel | None = None
    enabled_channels: list[CommunicationChannel] | None = None
    sms_notifications: bool | None = None
    email_notifications: bool | None = None
    whatsapp_notifications: bool | None = None
    notify_on_messages: bool | None = None
    notify_on_forum_posts: bool | None = None
    notify_on_events: bool | None = None
    digest_frequency: DigestFrequency | None = None
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    profile_visibility: ProfileVisibility | None = None
    show_phone_number: bool | None = None
    show_email: bool | None = None

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def validate_time_of_day(cls, v: str | None) -> str | None:
        if v is not None and not _TIME_OF_DAY.match(v):
            raise ValueError("Quiet hours must use HH:MM (24-hour) format")
        return v

    @field_validator(
        "primary_channel",
        "enabled_channels",
        "sms_notifications",
        "email_notifications",
        "whatsapp_notifications",
        "notify_on_messages",
        "notify_on_forum_posts",
        "notify_on_events",
        "digest_frequency",
        "profile_visibility",
        "show_phone_number",
        "show_email",
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field may be omitted but not null")
        return v

    def changes(self) -> dict:
        """Fields explicitly provided in the request, as column values."""
        updates = self.model_dump(exclude_unset=True)
        if "enabled_channels" in updates:
            updates["enabled_channels"] = [
                CommunicationChannel(channel).value for channel in updates["enabled_channels"]
            ]
        return updates
