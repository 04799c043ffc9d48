"""
Classroom Schemas

Pydantic schemas for classroom listing, membership assignment and member
lookup. JSON keys are camelCase.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from alumni.modules.classrooms.models import Classroom, ClassroomRole
from alumni.modules.shared import CamelModel

MAX_CLASSROOMS_PER_REQUEST = 20


class ClassroomSummary(CamelModel):
    classroom_id: str
    display_name: str
    year: int
    grade: str
    section: str

    @classmethod
    def from_model(cls, classroom: Classroom) -> "ClassroomSummary":
        return cls(
            classroom_id=classroom.id,
            display_name=classroom.display_name,
            year=classroom.year,
            grade=classroom.grade,
            section=classroom.section,
        )


class ClassroomResponse(ClassroomSummary):
    teacher_name: str | None = None
    student_count: int | None = None

    @classmethod
    def from_model(cls, classroom: Classroom) -> "ClassroomResponse":
        return cls(
            classroom_id=classroom.id,
            display_name=classroom.display_name,
            year=classroom.year,
            grade=classroom.grade,
            section=classroom.section,
            teacher_name=classroom.teacher_name,
            student_count=classroom.student_count,
        )


class ClassroomListResponse(CamelModel):
    classrooms: list[ClassroomResponse]
    count: int


class AssignClassroomsRequest(CamelModel):
    """Request body for POST /users/{user_id}/classrooms."""

    classroom_ids: list[str] = Field(..., min_length=1, max_length=MAX_CLASSROOMS_PER_REQUEST)

    @field_validator("classroom_ids")
    @classmethod
    def reject_blank_ids(cls, v: list[str]) -> list[str]:
        if any(not classroom_id.strip() for classroom_id in v):
            raise ValueError("Classroom ids must not be blank")
        return v


class AssignClassroomsResponse(CamelModel):
    message: str
    count: int


class UserClassroomItem(ClassroomResponse):
    added_at: datetime
    role: ClassroomRole


class UserClassroomListResponse(CamelModel):
    classrooms: list[UserClassroomItem]
    count: int


class ClassroomMember(CamelModel):
    user_id: UUID
    name: str
    profile_photo_url: str | None = None
    bio: str | None = None
    added_at: datetime


class ClassroomMembersResponse(CamelModel):
    members: list[ClassroomMember]
    count: int
    classroom: ClassroomSummary
