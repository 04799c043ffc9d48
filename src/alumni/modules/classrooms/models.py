"""
Classroom Models

Classrooms are reference data (one row per class per year). Users link to the
classrooms they attended through memberships.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from alumni.core.database import Base


class ClassroomRole(str, enum.Enum):
    """Role of a user within a classroom."""

    STUDENT = "student"
    TEACHER = "teacher"


class Classroom(Base):
    """
    A class in a given year, e.g. "1985-P4B" (Primary 4B, 1985).

    The id is human-readable: "<year>-<grade><section>".
    """

    __tablename__ = "classrooms"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    grade: Mapped[str] = mapped_column(String(16), nullable=False)
    section: Mapped[str] = mapped_column(String(16), nullable=False)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    teacher_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    student_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    photo_key: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Classroom(id={self.id}, year={self.year})>"


class UserClassroom(Base):
    """Membership of a user in a classroom."""

    __tablename__ = "user_classrooms"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    classroom_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("classrooms.id", ondelete="CASCADE"),
        primary_key=True,
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    verified_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    role: Mapped[ClassroomRole] = mapped_column(
        Enum(
            ClassroomRole,
            name="classroom_role",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=ClassroomRole.STUDENT,
    )

    __table_args__ = (Index("ix_user_classrooms_classroom_id", "classroom_id"),)
