"""
Auth Schemas

Pydantic schemas for registration, verification and admin approval.
JSON keys are camelCase.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from alumni.modules.auth.models import ApprovalStatus
from alumni.modules.shared import CamelModel
from alumni.modules.users.models import UserStatus


class RegisterRequest(CamelModel):
    """Request body for POST /auth/register."""

    phone_number: str = Field(..., min_length=1, max_length=32)
    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class RegisterResponse(CamelModel):
    message: str
    expires_in: int


class VerifyRequest(CamelModel):
    """Request body for POST /auth/verify."""

    phone_number: str = Field(..., min_length=1, max_length=32)
    code: str = Field(..., pattern=r"^\d{6}$")


class VerifyResponse(CamelModel):
    user_id: UUID
    status: UserStatus
    token: str
    expires_at: datetime


class PendingApprovalItem(CamelModel):
    user_id: UUID
    phone_number: str
    name: str
    status: ApprovalStatus
    requested_at: datetime


class PendingApprovalListResponse(CamelModel):
    approvals: list[PendingApprovalItem]
    count: int


class ApproveResponse(CamelModel):
    message: str
    user_id: UUID


class RejectRequest(CamelModel):
    """Request body for POST /auth/reject/{userId}. The body is optional."""

    reason: str | None = Field(None, max_length=1000)


class RejectResponse(CamelModel):
    message: str
    user_id: UUID
    reason: str
