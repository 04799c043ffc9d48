"""
User Service Layer

Business logic for profiles, profile photos and notification preferences.

Photo uploads are two-step: the client asks for a presigned S3 URL, uploads
directly to S3, then confirms the key so the public URL is saved on the
profile. Preferences are created with defaults on first read.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from alumni.core import storage
from alumni.core.exceptions import BadRequestError, NotFoundError
from alumni.modules.shared import utcnow
from alumni.modules.users.models import User, UserPreferences
from alumni.modules.users.repository import PreferencesRepository, UserRepository
from alumni.modules.users.schemas import (
    PhotoCompleteResponse,
    PhotoUploadResponse,
    PreferencesUpdateRequest,
    ProfileUpdateResponse,
)

logger = logging.getLogger(__name__)

# Photo upload constraints
ALLOWED_PHOTO_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}
MAX_PHOTO_SIZE_BYTES = 5 * 1024 * 1024
PHOTO_KEY_PREFIX = "profiles"


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: UUID | None = None):
        super().__init__(f"User {user_id} not found" if user_id else "User not found")


class InvalidPhotoError(BadRequestError):
    """Raised when a photo upload request is not acceptable."""


class PhotoNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Photo not found. Please upload again.")


class PreferencesNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Preferences not found. Please get preferences first to initialize.")


async def _get_user_or_raise(db: AsyncSession, user_id: UUID) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        logger.warning(f"User not found: {user_id}")
        raise UserNotFoundError(user_id)
    return user


def _photo_key_prefix(user_id: UUID) -> str:
    return f"{PHOTO_KEY_PREFIX}/{user_id}-"


# ============================================
# Profile
# ============================================


async def update_profile(
    db: AsyncSession,
    user_id: UUID,
    name: str | None = None,
    bio: str | None = None,
) -> ProfileUpdateResponse:
    """
    Update name and/or bio. Only provided fields change.

    Raises:
        BadRequestError: If neither field is provided
        UserNotFoundError: If the user doesn't exist
    """
    fields = {}
    if name is not None and name.strip():
        fields["name"] = name.strip()
    if bio is not None and bio.strip():
        fields["bio"] = bio.strip()

    if not fields:
        raise BadRequestError("At least one field (name or bio) is required")

    user = await _get_user_or_raise(db, user_id)
    await UserRepository.update_profile(db, user, **fields)
    await db.commit()

    logger.info(f"Profile updated for user {user_id}: {sorted(fields)}")
    return ProfileUpdateResponse(message="Profile updated successfully", user_id=user_id)


# ============================================
# Profile photo
# ============================================


async def request_photo_upload(
    db: AsyncSession,
    user_id: UUID,
    content_type: str,
    file_size: int,
) -> PhotoUploadResponse:
    """
    Create a presigned upload URL for a new profile photo.

    Raises:
        InvalidPhotoError: If the type is not allowed or the size is out of range
        UserNotFoundError: If the user doesn't exist
    """
    extension = ALLOWED_PHOTO_TYPES.get(content_type)
    if extension is None:
        raise InvalidPhotoError(
            f"Invalid content type. Allowed: {', '.join(ALLOWED_PHOTO_TYPES)}"
        )

    if file_size <= 0 or file_size > MAX_PHOTO_SIZE_BYTES:
        raise InvalidPhotoError(
            f"File size must be between 1 byte and {MAX_PHOTO_SIZE_BYTES // (1024 * 1024)} MB"
        )

    await _get_user_or_raise(db, user_id)

    timestamp_ms = int(utcnow().timestamp() * 1000)
    photo_key = f"{_photo_key_prefix(user_id)}{timestamp_ms}.{extension}"
    upload_url = await storage.generate_upload_url(photo_key, content_type)

    logger.info(f"Issued photo upload URL for user {user_id}")
    return PhotoUploadResponse(
        upload_url=upload_url,
        photo_key=photo_key,
        expires_in=storage.UPLOAD_URL_EXPIRY_SECONDS,
    )


async def complete_photo_upload(
    db: AsyncSession,
    user_id: UUID,
    photo_key: str,
) -> PhotoCompleteResponse:
    """
    Confirm an uploaded photo and save its public URL on the profile.

    Raises:
        InvalidPhotoError: If the key does not belong to this user
        UserNotFoundError: If the user doesn't exist
        PhotoNotFoundError: If nothing was uploaded under the key
    """
    if not photo_key.startswith(_photo_key_prefix(user_id)):
        raise InvalidPhotoError("Photo key does not belong to this user")

    user = await _get_user_or_raise(db, user_id)

    if not await storage.object_exists(photo_key):
        logger.warning(f"Photo {photo_key} not found in storage for user {user_id}")
        raise PhotoNotFoundError()

    photo_url = storage.public_url(photo_key)
    await UserRepository.update_profile(
        db, user, profile_photo_key=photo_key, profile_photo_url=photo_url
    )
    await db.commit()

    logger.info(f"Profile photo updated for user {user_id}")
    return PhotoCompleteResponse(message="Profile photo updated successfully", photo_url=photo_url)


# ============================================
# Preferences
# ============================================


async def get_preferences(db: AsyncSession, user_id: UUID) -> UserPreferences:
    """
    Return stored preferences, creating the defaults on first read.

    If a concurrent first read inserts the defaults first, the stored row
    is returned instead.

    Raises:
        UserNotFoundError: If there are no preferences and no such user
    """
    preferences = await PreferencesRepository.get(db, user_id)
    if preferences:
        return preferences

    await _get_user_or_raise(db, user_id)

    try:
        preferences = await PreferencesRepository.create_default(db, user_id)
        await db.commit()
        logger.info(f"Created default preferences for user {user_id}")
        return preferences
    except IntegrityError:
        await db.rollback()
        preferences = await PreferencesRepository.get(db, user_id)
        if preferences is None:
            raise
        return preferences


async def update_preferences(
    db: AsyncSession,
    user_id: UUID,
    updates: PreferencesUpdateRequest,
) -> UserPreferences:
    """
    Merge the provided preference fields into the stored record.

    Raises:
        PreferencesNotFoundError: If preferences were never initialized
    """
    preferences = await PreferencesRepository.get(db, user_id)
    if not preferences:
        raise PreferencesNotFoundError()

    changes = updates.changes()
    if changes:
        await PreferencesRepository.update(db, preferences, **changes)
        await db.commit()
        logger.info(f"Preferences updated for user {user_id}: {sorted(changes)}")

    return preferences
