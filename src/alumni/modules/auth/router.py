"""
Auth Router

Public endpoints for phone registration.

Endpoints:
- POST /auth/register - Send a verification code to a phone number
- POST /auth/verify - Verify the code, create the account, return a token

Security:
- Registration is rate limited per phone number
- Input validation via Pydantic schemas
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from alumni.core.auth import get_token_service
from alumni.core.database import get_db
from alumni.core.exceptions import ServiceError, internal_error, to_http_exception
from alumni.core.security import TokenService
from alumni.modules.auth import service
from alumni.modules.auth.schemas import (
    RegisterRequest,
    RegisterResponse,
    VerifyRequest,
    VerifyResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_200_OK,
    summary="Register Phone Number",
    responses={
        400: {"description": "Invalid phone number"},
        409: {"description": "Phone number already registered"},
        429: {"description": "Too many registrations for this phone"},
    },
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    """
    Send a 6-digit verification code by SMS.

    The code is valid for 5 minutes and allows 3 attempts. Registering again
    replaces any previous code.
    """
    try:
        return await service.register(db, data.phone_number, data.name)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Registration failed: {e}")
        raise internal_error("Registration failed. Please try again.") from e


@router.post(
    "/verify",
    response_model=VerifyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Verify Phone Number",
    responses={
        400: {"description": "Code missing, expired, used, exhausted or wrong"},
        409: {"description": "Phone number already registered"},
    },
)
async def verify(
    data: VerifyRequest,
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> VerifyResponse:
    """
    Verify the SMS code.

    On success the account is created in `pending_approval` status and a
    session token is returned. An admin must approve the account before it
    becomes active.
    """
    try:
        return await service.verify(db, token_service, data.phone_number, data.code)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Verification failed: {e}")
        raise internal_error("Verification failed. Please try again.") from e
