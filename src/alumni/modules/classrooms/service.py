"""
Classrooms Service Layer

Business logic for classroom listing and user memberships.

Assignment is all-or-nothing: every requested classroom must exist, checked
with a single query, before any membership is written.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from alumni.core.exceptions import BadRequestError, NotFoundError
from alumni.modules.classrooms import repository
from alumni.modules.classrooms.models import ClassroomRole
from alumni.modules.classrooms.schemas import (
    AssignClassroomsResponse,
    ClassroomMember,
    ClassroomMembersResponse,
    ClassroomResponse,
    ClassroomSummary,
    UserClassroomItem,
)
from alumni.modules.shared import utcnow
from alumni.modules.users.repository import UserRepository
from alumni.modules.users.service import UserNotFoundError

logger = logging.getLogger(__name__)


class ClassroomNotFoundError(NotFoundError):
    def __init__(self, classroom_id: str):
        super().__init__(f"Classroom {classroom_id} not found")


class UnknownClassroomsError(BadRequestError):
    def __init__(self, missing_ids: list[str]):
        self.missing_ids = missing_ids
        super().__init__(f"Invalid classroom IDs: {', '.join(missing_ids)}")


async def list_classrooms(db: AsyncSession, year: int | None = None) -> list[ClassroomResponse]:
    """List classrooms, optionally filtered by year."""
    classrooms = await repository.list_classrooms(db, year)
    return [ClassroomResponse.from_model(classroom) for classroom in classrooms]


async def assign_classrooms(
    db: AsyncSession,
    user_id: UUID,
    classroom_ids: list[str],
    verified_by: UUID | None = None,
) -> AssignClassroomsResponse:
    """
    Add the user to each classroom as a student.

    Duplicate ids collapse to one membership. Existing memberships are
    overwritten.

    Raises:
        UserNotFoundError: If the user doesn't exist
        UnknownClassroomsError: If any classroom id doesn't exist (nothing is written)
    """
    if not await UserRepository.get_by_id(db, user_id):
        raise UserNotFoundError(user_id)

    unique_ids = list(dict.fromkeys(classroom_id.strip() for classroom_id in classroom_ids))

    existing = await repository.get_existing_ids(db, unique_ids)
    missing = [classroom_id for classroom_id in unique_ids if classroom_id not in existing]
    if missing:
        logger.info(f"Classroom assignment for user {user_id} rejected, unknown ids: {missing}")
        raise UnknownClassroomsError(missing)

    await repository.upsert_memberships(
        db,
        user_id,
        unique_ids,
        added_at=utcnow(),
        role=ClassroomRole.STUDENT,
        verified_by=verified_by,
    )
    await db.commit()

    logger.info(f"Assigned {len(unique_ids)} classroom(s) to user {user_id}")
    return AssignClassroomsResponse(
        message="Classrooms assigned successfully",
        count=len(unique_ids),
    )


async def get_user_classrooms(db: AsyncSession, user_id: UUID) -> list[UserClassroomItem]:
    """
    Classrooms the user belongs to, ordered by year.

    Raises:
        UserNotFoundError: If the user doesn't exist
    """
    if not await UserRepository.get_by_id(db, user_id):
        raise UserNotFoundError(user_id)

    rows = await repository.get_user_classrooms(db, user_id)
    return [
        UserClassroomItem(
            **ClassroomResponse.from_model(classroom).model_dump(),
            added_at=membership.added_at,
            role=membership.role,
        )
        for membership, classroom in rows
    ]


async def get_classroom_members(db: AsyncSession, classroom_id: str) -> ClassroomMembersResponse:
    """
    Members of a classroom ordered by name, with a classroom summary.

    Raises:
        ClassroomNotFoundError: If the classroom doesn't exist
    """
    classroom = await repository.get_by_id(db, classroom_id)
    if not classroom:
        raise ClassroomNotFoundError(classroom_id)

    rows = await repository.get_classroom_members(db, classroom_id)
    members = [
        ClassroomMember(
            user_id=user.id,
            name=user.name,
            profile_photo_url=user.profile_photo_url,
            bio=user.bio,
            added_at=membership.added_at,
        )
        for membership, user in rows
    ]

    return ClassroomMembersResponse(
        members=members,
        count=len(members),
        classroom=ClassroomSummary.from_model(classroom),
    )
