"""
Auth Background Jobs

Scheduled cleanup of verification codes. Expired codes can never be used,
so they are deleted periodically.

Design Principles:
- Idempotent (safe to run multiple times)
- Handles its own database session
"""

import logging

from apscheduler.triggers.interval import IntervalTrigger

from alumni.core.config import settings
from alumni.core.database import async_session_maker
from alumni.core.scheduler import register_job
from alumni.modules.auth import repository
from alumni.modules.shared import utcnow

logger = logging.getLogger(__name__)

JOB_ID_PURGE_VERIFICATION_CODES = "auth_purge_expired_verification_codes"


async def purge_expired_verification_codes(session_maker=None) -> dict[str, int]:
    """
    Delete verification codes whose expiry has passed.

    Returns:
        Dict with the number of deleted codes
    """
    session_maker = session_maker or async_session_maker

    async with session_maker() as db:
        deleted = await repository.delete_expired_verification_codes(db, utcnow())
        await db.commit()

    if deleted:
        logger.info(f"Purged {deleted} expired verification code(s)")
    return {"deleted": deleted}


def register_auth_jobs() -> None:
    """Register auth background jobs with the scheduler."""
    register_job(
        job_id=JOB_ID_PURGE_VERIFICATION_CODES,
        func=purge_expired_verification_codes,
        trigger=IntervalTrigger(minutes=settings.verification_purge_interval_minutes),
    )
    logger.info(
        f"Registered job: {JOB_ID_PURGE_VERIFICATION_CODES} "
        f"(interval: {settings.verification_purge_interval_minutes} minutes)"
    )
