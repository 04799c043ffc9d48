"""
Auth Repository

Database operations for verification codes and approval requests.

Design Principles:
- Only database operations, no business logic
- Functions flush but never commit; the service owns the transaction
- Counters and one-shot flags change through conditional UPDATEs so
  concurrent requests cannot double-spend a code or double-review a user
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ApprovalStatus, PendingApproval, VerificationCode

# ============================================
# Verification codes
# ============================================


async def upsert_verification_code(
    db: AsyncSession,
    *,
    phone_number_hash: str,
    phone_number: str,
    name: str,
    code: str,
    created_at: datetime,
    expires_at: datetime,
    max_attempts: int,
) -> VerificationCode:
    """Store a fresh code for a phone hash, replacing any previous one."""
    verification = await db.merge(
        VerificationCode(
            phone_number_hash=phone_number_hash,
            phone_number=phone_number,
            name=name,
            code=code,
            created_at=created_at,
            expires_at=expires_at,
            attempts=0,
            max_attempts=max_attempts,
            verified=False,
        )
    )
    await db.flush()
    return verification


async def get_verification_code(
    db: AsyncSession, phone_number_hash: str
) -> VerificationCode | None:
    """Get the current code for a phone hash."""
    return await db.get(VerificationCode, phone_number_hash)


async def increment_attempts(db: AsyncSession, phone_number_hash: str) -> bool:
    """
    Count one failed attempt against an unconsumed, non-exhausted code.

    Returns:
        True if the counter was incremented
    """
    result = await db.execute(
        update(VerificationCode)
        .where(
            VerificationCode.phone_number_hash == phone_number_hash,
            VerificationCode.verified.is_(False),
            VerificationCode.attempts < VerificationCode.max_attempts,
        )
        .values(attempts=VerificationCode.attempts + 1)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1


async def consume_verification_code(db: AsyncSession, phone_number_hash: str) -> bool:
    """
    Mark a code as used.

    Only an unconsumed code with attempts left can be consumed, so of two
    concurrent verifications at most one succeeds.

    Returns:
        True if this call consumed the code
    """
    result = await db.execute(
        update(VerificationCode)
        .where(
            VerificationCode.phone_number_hash == phone_number_hash,
            VerificationCode.verified.is_(False),
            VerificationCode.attempts < VerificationCode.max_attempts,
        )
        .values(verified=True)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1


async def delete_expired_verification_codes(db: AsyncSession, now: datetime) -> int:
    """Delete codes that expired before `now`. Returns the number deleted."""
    result = await db.execute(
        delete(VerificationCode)
        .where(VerificationCode.expires_at < now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


# ============================================
# Approval requests
# ============================================


async def create_pending_approval(
    db: AsyncSession,
    *,
    user_id: UUID,
    phone_number: str,
    name: str,
    requested_at: datetime,
) -> PendingApproval:
    """Add an approval request in the pending state."""
    approval = PendingApproval(
        user_id=user_id,
        phone_number=phone_number,
        name=name,
        status=ApprovalStatus.PENDING,
        requested_at=requested_at,
        notification_sent=False,
    )
    db.add(approval)
    await db.flush()
    return approval


async def get_pending_approval(db: AsyncSession, user_id: UUID) -> PendingApproval | None:
    return await db.get(PendingApproval, user_id)


async def list_pending_approvals(db: AsyncSession) -> list[PendingApproval]:
    """Pending approval requests, oldest first."""
    result = await db.execute(
        select(PendingApproval)
        .where(PendingApproval.status == ApprovalStatus.PENDING)
        .order_by(PendingApproval.requested_at.asc())
    )
    return list(result.scalars().all())


async def mark_reviewed(
    db: AsyncSession,
    user_id: UUID,
    *,
    status: ApprovalStatus,
    reviewed_by: UUID,
    reviewed_at: datetime,
    rejection_reason: str | None = None,
) -> bool:
    """
    Record the review outcome on a pending approval request.

    Returns:
        True if a pending request was updated
    """
    result = await db.execute(
        update(PendingApproval)
        .where(
            PendingApproval.user_id == user_id,
            PendingApproval.status == ApprovalStatus.PENDING,
        )
        .values(
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            rejection_reason=rejection_reason,
        )
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1


async def mark_notification_sent(db: AsyncSession, user_id: UUID) -> None:
    """Record that the review outcome was delivered to the user."""
    await db.execute(
        update(PendingApproval)
        .where(PendingApproval.user_id == user_id)
        .values(notification_sent=True)
        .execution_options(synchronize_session="fetch")
    )
