"""
Seed Admin User

Creates an active admin account for a phone number, or promotes an existing
account to admin, and prints a session token for it. There is no login
endpoint, so this is how the first admin gets a token.

Usage:
    python scripts/seed_admin.py +85291234567 --name "Admin"
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from alumni.core.config import settings
from alumni.core.database import async_session_maker, engine
from alumni.core.security import build_token_service
from alumni.modules.auth.helpers import (
    hash_phone_number,
    is_valid_phone_number,
    normalize_phone_number,
)
from alumni.modules.shared import utcnow
from alumni.modules.users.models import UserRole, UserStatus
from alumni.modules.users.repository import UserRepository


async def seed_admin(phone_number: str, name: str) -> None:
    """Create or promote the admin account and print a token."""
    normalized = normalize_phone_number(phone_number)
    if not is_valid_phone_number(normalized):
        raise SystemExit(f"Invalid phone number: {phone_number}")

    phone_hash = hash_phone_number(normalized)

    async with async_session_maker() as db:
        user = await UserRepository.get_by_phone_hash(db, phone_hash)

        if user:
            if user.role == UserRole.ADMIN and user.status == UserStatus.ACTIVE:
                print(f"Admin already exists: {user.id}")
            else:
                user.status = UserStatus.ACTIVE
                user.approved_at = user.approved_at or utcnow()
                await UserRepository.set_role(db, user, UserRole.ADMIN)
                print(f"Promoted existing user to admin: {user.id}")
        else:
            user = await UserRepository.create(
                db,
                phone_number_hash=phone_hash,
                phone_number=normalized,
                name=name,
                status=UserStatus.ACTIVE,
                role=UserRole.ADMIN,
            )
            print(f"Admin created: {user.id}")

        await db.commit()

        issued = build_token_service(settings).issue(
            user_id=user.id,
            phone_number=normalized,
            status=user.status.value,
            role=user.role.value,
        )

    print(f"  Name: {user.name}")
    print(f"  Token (expires {issued.expires_at.isoformat()}):")
    print(issued.token)

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or promote an admin account")
    parser.add_argument("phone_number", help="Phone number in E.164 format")
    parser.add_argument("--name", default="Admin", help="Display name for a new account")
    args = parser.parse_args()

    asyncio.run(seed_admin(args.phone_number, args.name))


if __name__ == "__main__":
    main()
