"""
Classrooms Router

Endpoints:
- GET /classrooms?year= - List classrooms (public)
- GET /classrooms/{classroom_id}/members - Members of a classroom (any signed-in user)
- POST /users/{user_id}/classrooms - Assign classrooms to a user (self or admin)
- GET /users/{user_id}/classrooms - Classrooms of a user (self or admin)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from alumni.core.auth import ADMIN_ROLE, get_current_user, require_self_or_admin
from alumni.core.database import get_db
from alumni.core.exceptions import ServiceError, internal_error, to_http_exception
from alumni.core.security import TokenPayload
from alumni.modules.classrooms import service
from alumni.modules.classrooms.schemas import (
    AssignClassroomsRequest,
    AssignClassroomsResponse,
    ClassroomListResponse,
    ClassroomMembersResponse,
    UserClassroomListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()
user_classrooms_router = APIRouter()


@router.get("", response_model=ClassroomListResponse, summary="List Classrooms")
async def list_classrooms(
    year: int | None = Query(None, ge=1900, le=2100, description="Filter by year"),
    db: AsyncSession = Depends(get_db),
) -> ClassroomListResponse:
    """List all classrooms, or the classrooms of one year."""
    try:
        classrooms = await service.list_classrooms(db, year)
    except Exception as e:
        logger.exception(f"Error listing classrooms: {e}")
        raise internal_error("Failed to list classrooms") from e

    return ClassroomListResponse(classrooms=classrooms, count=len(classrooms))


@router.get(
    "/{classroom_id}/members",
    response_model=ClassroomMembersResponse,
    summary="List Classroom Members",
)
async def get_classroom_members(
    classroom_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: TokenPayload = Depends(get_current_user),
) -> ClassroomMembersResponse:
    """Find classmates: members of a classroom ordered by name."""
    try:
        return await service.get_classroom_members(db, classroom_id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error getting members of classroom {classroom_id}: {e}")
        raise internal_error("Failed to retrieve classroom members") from e


@user_classrooms_router.post(
    "/{user_id}/classrooms",
    response_model=AssignClassroomsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign Classrooms",
)
async def assign_classrooms(
    user_id: UUID,
    data: AssignClassroomsRequest,
    db: AsyncSession = Depends(get_db),
    current_user: TokenPayload = Depends(get_current_user),
) -> AssignClassroomsResponse:
    """
    Add a user to 1-20 classrooms as a student.

    Every classroom must exist; otherwise nothing is assigned.
    """
    require_self_or_admin(current_user, user_id)

    # Assignments made by an admin for someone else count as verified
    verified_by = (
        current_user.user_id
        if current_user.role == ADMIN_ROLE and current_user.user_id != user_id
        else None
    )

    try:
        return await service.assign_classrooms(db, user_id, data.classroom_ids, verified_by)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error assigning classrooms to user {user_id}: {e}")
        raise internal_error("Failed to assign classrooms") from e


@user_classrooms_router.get(
    "/{user_id}/classrooms",
    response_model=UserClassroomListResponse,
    summary="Get User Classrooms",
)
async def get_user_classrooms(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: TokenPayload = Depends(get_current_user),
) -> UserClassroomListResponse:
    """Classrooms a user belongs to, ordered by year."""
    require_self_or_admin(current_user, user_id)

    try:
        classrooms = await service.get_user_classrooms(db, user_id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error getting classrooms of user {user_id}: {e}")
        raise internal_error("Failed to retrieve user classrooms") from e

    return UserClassroomListResponse(classrooms=classrooms, count=len(classrooms))
