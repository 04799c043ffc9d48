"""
Auth Service Layer

Business logic for phone registration and the account approval workflow.

This module implements:
1. Registration:
   - Normalize and validate the phone number (E.164)
   - Reject phones that already have an account
   - Rate limit per phone (each registration sends an SMS)
   - Store a 6-digit code (5 minute expiry, 3 attempts) and send it by SMS

2. Verification:
   - Check the code; wrong codes count against the attempt limit
   - Consume the code, create the account (pending approval) and its
     approval request in one transaction, and issue a session token

3. Approval:
   - Admins approve or reject pending accounts
   - The status change is a conditional update, so only one review wins
   - The user is notified by SMS on a best-effort basis

Security considerations:
- Codes come from `secrets` and are compared in constant time
- Phone numbers are looked up by SHA-256 hash
- Codes, tokens and full phone numbers are never logged
"""

import logging
import secrets
from datetime import timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from alumni.core import sms
from alumni.core.exceptions import (
    BadRequestError,
    ConflictError,
    RateLimitExceededError,
)
from alumni.core.rate_limit import check_rate_limit
from alumni.core.security import TokenService
from alumni.modules.auth import repository
from alumni.modules.auth.helpers import (
    generate_verification_code,
    hash_phone_number,
    is_valid_phone_number,
    normalize_phone_number,
    phone_hash_prefix,
)
from alumni.modules.auth.models import ApprovalStatus, PendingApproval
from alumni.modules.auth.schemas import (
    ApproveResponse,
    RegisterResponse,
    RejectResponse,
    VerifyResponse,
)
from alumni.modules.shared import ensure_utc, utcnow
from alumni.modules.users.models import UserStatus
from alumni.modules.users.repository import UserRepository
from alumni.modules.users.service import UserNotFoundError

logger = logging.getLogger(__name__)

# Constants
CODE_EXPIRY_SECONDS = 300
MAX_VERIFICATION_ATTEMPTS = 3
REGISTER_RATE_LIMIT = (5, 3600)  # 5 registrations per phone per hour
DEFAULT_REJECTION_REASON = "No reason provided"


# ============================================
# Errors
# ============================================


class InvalidPhoneNumberError(BadRequestError):
    def __init__(self):
        super().__init__("Invalid phone number format. Use E.164 format (e.g., +85291234567)")


class PhoneAlreadyRegisteredError(ConflictError):
    def __init__(self):
        super().__init__("Phone number already registered")


class VerificationCodeNotFoundError(BadRequestError):
    def __init__(self):
        super().__init__("No verification code found. Please register first.")


class VerificationCodeExpiredError(BadRequestError):
    def __init__(self):
        super().__init__("Verification code expired. Please register again.")


class VerificationCodeUsedError(BadRequestError):
    def __init__(self):
        super().__init__("Verification code already used")


class TooManyAttemptsError(BadRequestError):
    def __init__(self):
        super().__init__("Too many failed attempts. Please register again.")


class InvalidVerificationCodeError(BadRequestError):
    def __init__(self):
        super().__init__("Invalid verification code")


class InvalidAccountStateError(BadRequestError):
    """Raised when an account is not in the state a review requires."""

    def __init__(self, status: UserStatus | str):
        value = status.value if isinstance(status, UserStatus) else status
        super().__init__(f"User is not pending approval (status: {value})")


# ============================================
# Helpers
# ============================================


def _normalized_or_raise(phone_number: str) -> str:
    normalized = normalize_phone_number(phone_number)
    if not is_valid_phone_number(normalized):
        raise InvalidPhoneNumberError()
    return normalized


# ============================================
# Registration and verification
# ============================================


async def register(db: AsyncSession, phone_number: str, name: str) -> RegisterResponse:
    """
    Start registration by sending a verification code.

    Raises:
        InvalidPhoneNumberError: If the phone is not valid E.164
        PhoneAlreadyRegisteredError: If an account exists for the phone
        RateLimitExceededError: If the phone registered too often
        sms.SmsDeliveryError: If the code could not be sent
    """
    normalized = _normalized_or_raise(phone_number)
    phone_hash = hash_phone_number(normalized)
    log_ref = phone_hash_prefix(phone_hash)

    existing = await UserRepository.get_by_phone_hash(db, phone_hash)
    if existing:
        logger.info(f"Registration rejected, phone {log_ref} already has an account")
        raise PhoneAlreadyRegisteredError()

    limit, window = REGISTER_RATE_LIMIT
    if not await check_rate_limit(f"register:{phone_hash}", limit, window):
        logger.warning(f"Registration rate limit exceeded for phone {log_ref}")
        raise RateLimitExceededError(retry_after_seconds=window)

    now = utcnow()
    code = generate_verification_code()
    await repository.upsert_verification_code(
        db,
        phone_number_hash=phone_hash,
        phone_number=normalized,
        name=name.strip(),
        code=code,
        created_at=now,
        expires_at=now + timedelta(seconds=CODE_EXPIRY_SECONDS),
        max_attempts=MAX_VERIFICATION_ATTEMPTS,
    )
    await db.commit()

    await sms.send_verification_code(normalized, code)
    logger.info(f"Verification code sent to phone {log_ref}")

    return RegisterResponse(message="Verification code sent", expires_in=CODE_EXPIRY_SECONDS)


async def verify(
    db: AsyncSession,
    token_service: TokenService,
    phone_number: str,
    code: str,
) -> VerifyResponse:
    """
    Verify a code, create the account and issue a session token.

    Raises:
        InvalidPhoneNumberError: If the phone is not valid E.164
        VerificationCodeNotFoundError: If no code was issued
        VerificationCodeExpiredError: If the code expired
        VerificationCodeUsedError: If the code was already consumed
        TooManyAttemptsError: If the attempt limit was reached
        InvalidVerificationCodeError: If the code does not match
        PhoneAlreadyRegisteredError: If an account was created concurrently
    """
    normalized = _normalized_or_raise(phone_number)
    phone_hash = hash_phone_number(normalized)
    log_ref = phone_hash_prefix(phone_hash)

    verification = await repository.get_verification_code(db, phone_hash)
    if verification is None:
        raise VerificationCodeNotFoundError()

    now = utcnow()
    if now > ensure_utc(verification.expires_at):
        raise VerificationCodeExpiredError()

    if verification.verified:
        raise VerificationCodeUsedError()

    if verification.attempts >= verification.max_attempts:
        raise TooManyAttemptsError()

    if not secrets.compare_digest(verification.code, code):
        await repository.increment_attempts(db, phone_hash)
        await db.commit()
        logger.info(f"Wrong verification code for phone {log_ref}")
        raise InvalidVerificationCodeError()

    if not await repository.consume_verification_code(db, phone_hash):
        await db.rollback()
        raise VerificationCodeUsedError()

    try:
        user = await UserRepository.create(
            db,
            phone_number_hash=phone_hash,
            phone_number=normalized,
            name=verification.name,
            status=UserStatus.PENDING_APPROVAL,
        )
        await repository.create_pending_approval(
            db,
            user_id=user.id,
            phone_number=normalized,
            name=verification.name,
            requested_at=now,
        )
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.info(f"Account for phone {log_ref} was created concurrently")
        raise PhoneAlreadyRegisteredError() from e

    issued = token_service.issue(
        user_id=user.id,
        phone_number=normalized,
        status=user.status.value,
        role=user.role.value,
    )
    logger.info(f"User {user.id} created, pending approval")

    return VerifyResponse(
        user_id=user.id,
        status=user.status,
        token=issued.token,
        expires_at=issued.expires_at,
    )


# ============================================
# Approval workflow
# ============================================


async def list_pending_approvals(db: AsyncSession) -> list[PendingApproval]:
    """Pending approval requests, oldest first."""
    return await repository.list_pending_approvals(db)


async def _review(
    db: AsyncSession,
    user_id: UUID,
    admin_id: UUID,
    to_status: UserStatus,
    rejection_reason: str | None = None,
):
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        logger.warning(f"User not found for review: {user_id}")
        raise UserNotFoundError(user_id)

    if user.status != UserStatus.PENDING_APPROVAL:
        logger.warning(f"Cannot review user {user_id}: status={user.status.value}")
        raise InvalidAccountStateError(user.status)

    reviewed_at = utcnow()
    changed = await UserRepository.transition_status(
        db,
        user_id,
        from_status=UserStatus.PENDING_APPROVAL,
        to_status=to_status,
        reviewed_by=admin_id,
        reviewed_at=reviewed_at,
    )
    if not changed:
        # Another review won between the read and the update
        await db.rollback()
        current = await UserRepository.get_by_id(db, user_id)
        raise InvalidAccountStateError(current.status if current else "unknown")

    approval_status = (
        ApprovalStatus.APPROVED if to_status == UserStatus.ACTIVE else ApprovalStatus.REJECTED
    )
    if not await repository.mark_reviewed(
        db,
        user_id,
        status=approval_status,
        reviewed_by=admin_id,
        reviewed_at=reviewed_at,
        rejection_reason=rejection_reason,
    ):
        logger.warning(f"No pending approval request found for user {user_id}")

    await db.commit()
    return user


async def _notify(db: AsyncSession, user_id: UUID, send) -> None:
    """Send a review notification. Failures are logged, never raised."""
    try:
        await send()
        await repository.mark_notification_sent(db, user_id)
        await db.commit()
    except Exception as e:
        logger.error(f"Failed to notify user {user_id} of review outcome: {e}", exc_info=True)
        await db.rollback()


async def approve(db: AsyncSession, user_id: UUID, admin_id: UUID) -> ApproveResponse:
    """
    Approve a pending account.

    Raises:
        UserNotFoundError: If the user doesn't exist
        InvalidAccountStateError: If the user is not pending approval
    """
    logger.info(f"Admin {admin_id} approving user {user_id}")

    user = await _review(db, user_id, admin_id, UserStatus.ACTIVE)
    logger.info(f"User {user_id} approved by admin {admin_id}")

    phone_number, name = user.phone_number, user.name
    await _notify(db, user_id, lambda: sms.send_approval_notice(phone_number, name or None))

    return ApproveResponse(message="User approved successfully", user_id=user_id)


async def reject(
    db: AsyncSession,
    user_id: UUID,
    admin_id: UUID,
    reason: str | None = None,
) -> RejectResponse:
    """
    Reject a pending account.

    Raises:
        UserNotFoundError: If the user doesn't exist
        InvalidAccountStateError: If the user is not pending approval
    """
    reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
    logger.info(f"Admin {admin_id} rejecting user {user_id}")

    user = await _review(db, user_id, admin_id, UserStatus.REJECTED, rejection_reason=reason)
    logger.info(f"User {user_id} rejected by admin {admin_id}")

    phone_number = user.phone_number
    await _notify(db, user_id, lambda: sms.send_rejection_notice(phone_number, reason))

    return RejectResponse(message="User rejected", user_id=user_id, reason=reason)
