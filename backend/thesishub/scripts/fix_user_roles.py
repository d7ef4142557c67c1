"""
Fix User Roles Script
=====================
Bulk version of the role repair done on every profile fetch: each user's
stored role is aligned with the role implied by their email domain. Users
whose domain implies no role are left alone.

Run with: python -m thesishub.scripts.fix_user_roles
"""

import asyncio
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.database import get_session_local
from thesishub.core.logging_config import logger
from thesishub.models.user import User
from thesishub.services.user_service import repair_role


async def fix_user_roles(db: AsyncSession) -> Dict[str, int]:
    result = await db.execute(select(User))
    users = list(result.scalars().all())

    fixed = 0
    for user in users:
        if repair_role(user):
            fixed += 1

    if fixed:
        await db.commit()
    logger.info(f"Role repair complete: {fixed} of {len(users)} users updated")
    return {"checked": len(users), "fixed": fixed}


async def run() -> None:
    session_factory = get_session_local()
    async with session_factory() as db:
        try:
            summary = await fix_user_roles(db)
        except Exception as e:
            await db.rollback()
            logger.error(f"Role repair failed: {e}")
            print(f"\n❌ Role repair failed: {e}")
            raise

    print("\n✅ Role repair complete!")
    print(f"   - Users checked: {summary['checked']}")
    print(f"   - Roles fixed: {summary['fixed']}")


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
