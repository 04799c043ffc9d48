"""
Users Router

Profile, profile photo and preference endpoints.
A user may act on their own account; admins may act on any account.

Endpoints:
- PUT /users/{user_id}/profile - Update name and/or bio
- POST /users/{user_id}/profile-photo - Get a presigned photo upload URL
- PUT /users/{user_id}/profile-photo-complete - Confirm an uploaded photo
- GET /users/{user_id}/preferences - Get preferences (defaults on first read)
- PUT /users/{user_id}/preferences - Partially update preferences
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from alumni.core.auth import get_current_user, require_self_or_admin
from alumni.core.database import get_db
from alumni.core.exceptions import ServiceError, internal_error, to_http_exception
from alumni.core.security import TokenPayload
from alumni.modules.users import service
from alumni.modules.users.schemas import (
    MessageResponse,
    PhotoCompleteRequest,
    PhotoCompleteResponse,
    PhotoUploadRequest,
    PhotoUploadResponse,
    PreferencesResponse,
    PreferencesUpdateRequest,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put(
    "/{user_id}/profile",
    response_model=ProfileUpdateResponse,
    summary="Update Profile",
)
async def update_profile(
    user_id: UUID,
    data: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: TokenPayload = Depends(get_current_user),
) -> ProfileUpdateResponse:
    """Update name and/or bio. At least one is required."""
    require_self_or_admin(current_user, user_id)

    try:
        return await service.update_profile(db, user_id, name=data.name, bio=data.bio)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error updating profile for user {user_id}: {e}")
        raise internal_error("Failed to update profile") from e


@router.post(
    "/{user_id}/profile-photo",
    response_model=PhotoUploadResponse,
    summary="Request Profile Photo Upload",
)
async def request_photo_upload(
    user_id: UUID,
    data: PhotoUploadRequest,
    db: AsyncSession = Depends(get_db),
    current_user: TokenPayload = Depends(get_current_user),
) -> PhotoUploadResponse:
    """
    Get a presigned URL for uploading a profile photo directly to storage.

    Allowed types: image/jpeg, image/png, image/webp. Maximum size 5 MB.
    The URL is valid for 5 minutes.
    """
    require_self_or_admin(current_user, user_id)

    try:
        return await service.request_photo_upload(db, user_id, data.content_type, data.file_size)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error creating photo upload URL for user {user_id}: {e}")
        raise internal_error("Failed to generate upload URL") from e


@router.put(
    "/{user_id}/profile-photo-complete",
    response_model=PhotoCompleteResponse,
    summary="Complete Profile Photo Upload",
)
async def complete_photo_upload(
    user_id: UUID,
    data: PhotoCompleteRequest,
    db: AsyncSession = Depends(get_db),
    current_user: TokenPayload = Depends(get_current_user),
) -> PhotoCompleteResponse:
    """Confirm an uploaded photo and set it as the profile photo."""
    require_self_or_admin(current_user, user_id)

    try:
        return await service.complete_photo_upload(db, user_id, data.photo_key)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error completing photo upload for user {user_id}: {e}")
        raise internal_error("Failed to complete photo upload") from e


@router.get(
    "/{user_id}/preferences",
    response_model=PreferencesResponse,
    summary="Get Preferences",
)
async def get_preferences(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: TokenPayload = Depends(get_current_user),
) -> PreferencesResponse:
    """Get notification preferences. Defaults are stored on first read."""
    require_self_or_admin(current_user, user_id)

    try:
        preferences = await service.get_preferences(db, user_id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error getting preferences for user {user_id}: {e}")
        raise internal_error("Failed to get preferences") from e

    return PreferencesResponse.model_validate(preferences)


@router.put(
    "/{user_id}/preferences",
    response_model=MessageResponse,
    summary="Update Preferences",
)
async def update_preferences(
    user_id: UUID,
    data: PreferencesUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: TokenPayload = Depends(get_current_user),
) -> MessageResponse:
    """Update the provided preference fields only."""
    require_self_or_admin(current_user, user_id)

    try:
        await service.update_preferences(db, user_id, data)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error updating preferences for user {user_id}: {e}")
        raise internal_error("Failed to update preferences") from e

    return MessageResponse(message="Preferences updated successfully")
