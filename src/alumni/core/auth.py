"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
This module reads the bearer token from the Authorization header, validates
it with the application's TokenService, and enforces role checks.

SECURITY NOTE:
- The TokenService is built once at startup and read from app.state
- Admin endpoints require role == "admin" in the token claims
- Per-user endpoints allow the account owner or an admin
"""

import logging
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from alumni.core.exceptions import ForbiddenError, UnauthorizedError, to_http_exception
from alumni.core.security import TokenPayload, TokenService, extract_token_from_header

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def get_token_service(request: Request) -> TokenService:
    """Return the TokenService configured during application startup."""
    token_service: TokenService | None = getattr(request.app.state, "token_service", None)
    if token_service is None:
        logger.error("Token service requested before application startup completed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "INTERNAL_ERROR", "message": "Authentication is not configured"},
        )
    return token_service


async def get_current_user(
    authorization: str | None = Header(default=None),
    token_service: TokenService = Depends(get_token_service),
) -> TokenPayload:
    """
    Dependency that validates the bearer token and returns its claims.

    Raises:
        HTTPException 401: If the header is missing, malformed, or the token is
            invalid or expired.
    """
    try:
        token = extract_token_from_header(authorization)
        return token_service.verify(token)
    except UnauthorizedError as e:
        logger.warning(f"Rejected request token: {e.message}")
        raise to_http_exception(e) from e


async def get_current_admin_user(
    user: TokenPayload = Depends(get_current_user),
) -> TokenPayload:
    """
    Dependency that requires an admin token.

    Raises:
        HTTPException 401: If not authenticated
        HTTPException 403: If the token does not carry the admin role
    """
    if user.role != ADMIN_ROLE:
        logger.warning(f"User {user.user_id} with role '{user.role}' denied admin access")
        raise to_http_exception(ForbiddenError("Admin access required"))

    return user


def require_self_or_admin(user: TokenPayload, target_user_id: UUID) -> None:
    """
    Allow the account owner or an admin to act on `target_user_id`.

    Raises:
        HTTPException 403: For any other caller.
    """
    if user.user_id == target_user_id or user.role == ADMIN_ROLE:
        return

    logger.warning(f"User {user.user_id} denied access to user {target_user_id}")
    raise to_http_exception(ForbiddenError("You can only access your own account"))


__all__ = [
    "ADMIN_ROLE",
    "get_token_service",
    "get_current_user",
    "get_current_admin_user",
    "require_self_or_admin",
]
