"""
Auth Admin Router

Endpoints for admins to review newly verified accounts.
All endpoints require a token with role == "admin".

Endpoints:
- GET /auth/pending-approvals - List accounts awaiting review
- POST /auth/approve/{user_id} - Approve an account
- POST /auth/reject/{user_id} - Reject an account

Security:
- Admin role required (403 otherwise)
- Rate limiting on review actions
- Audit logging for all admin actions
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from alumni.core.auth import get_current_admin_user
from alumni.core.database import get_db
from alumni.core.exceptions import (
    RateLimitExceededError,
    ServiceError,
    internal_error,
    to_http_exception,
)
from alumni.core.rate_limit import check_rate_limit
from alumni.core.security import TokenPayload
from alumni.modules.auth import service
from alumni.modules.auth.schemas import (
    ApproveResponse,
    PendingApprovalItem,
    PendingApprovalListResponse,
    RejectRequest,
    RejectResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Rate limits for admin review actions
RATE_LIMIT_REVIEW = (30, 60)  # 30 reviews per minute per admin


async def _check_admin_rate_limit(admin: TokenPayload, action: str) -> None:
    """
    Check rate limit for an admin action.

    Raises:
        HTTPException 429: If rate limit is exceeded
    """
    limit, window_seconds = RATE_LIMIT_REVIEW
    key = f"admin:{action}:{admin.user_id}"

    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(
            f"Rate limit exceeded for admin {admin.user_id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise to_http_exception(RateLimitExceededError(retry_after_seconds=window_seconds))


@router.get(
    "/pending-approvals",
    response_model=PendingApprovalListResponse,
    summary="List Pending Approvals",
)
async def list_pending_approvals(
    db: AsyncSession = Depends(get_db),
    admin: TokenPayload = Depends(get_current_admin_user),
) -> PendingApprovalListResponse:
    """List accounts awaiting review, oldest request first."""
    try:
        approvals = await service.list_pending_approvals(db)
    except Exception as e:
        logger.exception(f"Failed to list pending approvals: {e}")
        raise internal_error("Failed to list pending approvals") from e

    items = [PendingApprovalItem.model_validate(approval) for approval in approvals]
    return PendingApprovalListResponse(approvals=items, count=len(items))


@router.post(
    "/approve/{user_id}",
    response_model=ApproveResponse,
    summary="Approve Account",
    responses={
        400: {"description": "Account is not pending approval"},
        404: {"description": "User not found"},
        429: {"description": "Too many review actions"},
    },
)
async def approve_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: TokenPayload = Depends(get_current_admin_user),
) -> ApproveResponse:
    """
    Approve a pending account.

    The account becomes active and the user is notified by SMS. A failed
    notification does not fail the request.
    """
    await _check_admin_rate_limit(admin, "approve")

    try:
        result = await service.approve(db, user_id, admin.user_id)
        logger.info(f"Admin {admin.user_id} approved user {user_id}")
        return result
    except ServiceError as e:
        logger.warning(f"Cannot approve user {user_id}: {e.message}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error approving user {user_id}: {e}")
        raise internal_error("Failed to approve user") from e


@router.post(
    "/reject/{user_id}",
    response_model=RejectResponse,
    summary="Reject Account",
    responses={
        400: {"description": "Account is not pending approval"},
        404: {"description": "User not found"},
        429: {"description": "Too many review actions"},
    },
)
async def reject_user(
    user_id: UUID,
    data: RejectRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: TokenPayload = Depends(get_current_admin_user),
) -> RejectResponse:
    """
    Reject a pending account.

    The reason is optional and defaults to "No reason provided".
    """
    await _check_admin_rate_limit(admin, "reject")

    reason = data.reason if data else None

    try:
        result = await service.reject(db, user_id, admin.user_id, reason)
        logger.info(f"Admin {admin.user_id} rejected user {user_id}")
        return result
    except ServiceError as e:
        logger.warning(f"Cannot reject user {user_id}: {e.message}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error rejecting user {user_id}: {e}")
        raise internal_error("Failed to reject user") from e
