"""
Set Admin Script
================
Grants (or revokes) admin rights by flipping the stored ``is_admin`` flag.
The access policy re-reads the flag on every request, so the change takes
effect immediately without new tokens.

Run with: python -m thesishub.scripts.set_admin <email|uid> [--revoke]
"""

import argparse
import asyncio
from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.database import get_session_local
from thesishub.core.logging_config import logger
from thesishub.models.user import User


async def set_admin(db: AsyncSession, email_or_id: str, grant: bool = True) -> Optional[User]:
    """Returns the updated user, or None when no user matches"""
    key = email_or_id.strip()
    result = await db.execute(
        select(User).where(or_(User.email == key.lower(), User.id == key))
    )
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning(f"set_admin: no user matches {key}")
        return None

    if user.is_admin != grant:
        user.is_admin = grant
        await db.commit()
    logger.info(f"Admin flag for {user.email} set to {grant}")
    return user


async def run(email_or_id: str, grant: bool) -> int:
    session_factory = get_session_local()
    async with session_factory() as db:
        try:
            user = await set_admin(db, email_or_id, grant)
        except Exception as e:
            await db.rollback()
            logger.error(f"set_admin failed: {e}")
            print(f"\n❌ Failed: {e}")
            raise

    if user is None:
        print(f"\n❌ User {email_or_id} not found!")
        print("   The user must sign in once before they can be made admin.")
        return 1

    action = "granted to" if grant else "revoked from"
    print(f"\n✅ Admin privileges {action}: {user.email}")
    print(f"   Name: {user.name}")
    print(f"   UID: {user.id}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Grant or revoke ThesisHub admin rights")
    parser.add_argument("user", help="Email address or user id")
    parser.add_argument("--revoke", action="store_true", help="Remove admin rights instead")
    args = parser.parse_args()
    return asyncio.run(run(args.user, grant=not args.revoke))


if __name__ == "__main__":
    raise SystemExit(main())
