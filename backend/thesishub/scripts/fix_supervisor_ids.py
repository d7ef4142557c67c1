"""
Fix Missing Supervisor IDs
==========================
Finds projects that carry a free-text supervisor name but no supervisor
reference, looks the name up among supervisors (case-insensitive exact
match) and writes the full supervisor triple.

Run with: python -m thesishub.scripts.fix_supervisor_ids
"""

import asyncio
from typing import Dict

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.database import get_session_local
from thesishub.core.logging_config import logger
from thesishub.models.project import Project
from thesishub.models.user import User, UserRole
from thesishub.services.project_service import ProjectService


async def fix_supervisor_ids(db: AsyncSession) -> Dict[str, int]:
    result = await db.execute(
        select(Project).where(
            Project.supervisor_name.is_not(None),
            Project.supervisor_name != "",
            or_(Project.supervisor_id.is_(None), Project.supervisor_id == ""),
        )
    )
    projects = list(result.scalars().all())

    fixed = 0
    not_found = 0
    for project in projects:
        name = project.supervisor_name.strip()
        lookup = await db.execute(
            select(User).where(
                func.lower(User.name) == name.lower(),
                User.role == UserRole.SUPERVISOR,
            ).limit(1)
        )
        supervisor = lookup.scalar_one_or_none()
        if supervisor is None:
            logger.warning(f"No supervisor account named '{name}' for project {project.id}")
            not_found += 1
            continue

        ProjectService.assign_supervisor(project, supervisor)
        supervised = list(supervisor.supervised_projects or [])
        if project.id not in supervised:
            supervisor.supervised_projects = supervised + [project.id]
        fixed += 1
        logger.info(f"Project {project.id} linked to supervisor {supervisor.id}")

    if fixed:
        await db.commit()
    return {"checked": len(projects), "fixed": fixed, "not_found": not_found}


async def run() -> None:
    session_factory = get_session_local()
    async with session_factory() as db:
        try:
            summary = await fix_supervisor_ids(db)
        except Exception as e:
            await db.rollback()
            logger.error(f"Supervisor id repair failed: {e}")
            print(f"\n❌ Supervisor id repair failed: {e}")
            raise

    print("\n📊 Summary:")
    print(f"   ✅ Fixed: {summary['fixed']} projects")
    print(f"   ⚠️  Not Found: {summary['not_found']} projects")


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
