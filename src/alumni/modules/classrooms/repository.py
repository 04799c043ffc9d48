"""
Classrooms Repository

Database operations for classrooms and user memberships.
Functions flush but never commit; the service owns the transaction.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni.modules.users.models import User

from .models import Classroom, ClassroomRole, UserClassroom


async def list_classrooms(db: AsyncSession, year: int | None = None) -> list[Classroom]:
    """All classrooms, or those of one year, ordered by year then display name."""
    query = select(Classroom)
    if year is not None:
        query = query.where(Classroom.year == year)
    result = await db.execute(query.order_by(Classroom.year, Classroom.display_name))
    return list(result.scalars().all())


async def get_by_id(db: AsyncSession, classroom_id: str) -> Classroom | None:
    return await db.get(Classroom, classroom_id)


async def get_existing_ids(db: AsyncSession, classroom_ids: list[str]) -> set[str]:
    """Return which of the given classroom ids exist, in one query."""
    result = await db.execute(select(Classroom.id).where(Classroom.id.in_(classroom_ids)))
    return set(result.scalars().all())


async def upsert_memberships(
    db: AsyncSession,
    user_id: UUID,
    classroom_ids: list[str],
    *,
    added_at: datetime,
    role: ClassroomRole = ClassroomRole.STUDENT,
    verified_by: UUID | None = None,
) -> list[UserClassroom]:
    """Create or overwrite one membership per classroom id."""
    memberships = []
    for classroom_id in classroom_ids:
        membership = await db.merge(
            UserClassroom(
                user_id=user_id,
                classroom_id=classroom_id,
                added_at=added_at,
                role=role,
                verified_by=verified_by,
            )
        )
        memberships.append(membership)
    await db.flush()
    return memberships


async def get_user_classrooms(
    db: AsyncSession, user_id: UUID
) -> list[tuple[UserClassroom, Classroom]]:
    """
    Memberships of a user joined to their classrooms, ordered by year.

    Memberships pointing at missing classrooms are dropped by the join.
    """
    result = await db.execute(
        select(UserClassroom, Classroom)
        .join(Classroom, Classroom.id == UserClassroom.classroom_id)
        .where(UserClassroom.user_id == user_id)
        .order_by(Classroom.year, Classroom.display_name)
    )
    return [(membership, classroom) for membership, classroom in result.all()]


async def get_classroom_members(
    db: AsyncSession, classroom_id: str
) -> list[tuple[UserClassroom, User]]:
    """
    Memberships of a classroom joined to their users, ordered by name.

    Memberships pointing at missing users are dropped by the join.
    """
    result = await db.execute(
        select(UserClassroom, User)
        .join(User, User.id == UserClassroom.user_id)
        .where(UserClassroom.classroom_id == classroom_id)
        .order_by(User.name)
    )
    return [(membership, user) for membership, user in result.all()]
