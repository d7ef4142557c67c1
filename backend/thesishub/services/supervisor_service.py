"""
Supervisor directory: listings, public profiles, statistics and profile edits
"""
from collections import Counter
from typing import Dict, List, Optional

from sqlalchemy import select, func, cast, String
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.exceptions import AccessDeniedError, SupervisorNotFoundError
from thesishub.core.logging_config import logger
from thesishub.models.project import Project, ProjectStatus, LEGACY_FINISHED_STATUSES
from thesishub.models.user import User, UserRole
from thesishub.modules.auth.access_policy import apply_visibility, ensure_self_or_admin
from thesishub.modules.auth.dependencies import Caller
from thesishub.schemas.project import ProjectResponse
from thesishub.schemas.user import SupervisorProfileUpdate
from thesishub.services.project_service import contains, parse_status
from thesishub.services.user_service import propagate_profile
from thesishub.utils.pagination import paginate

STATUS_KEYS = [s.value for s in ProjectStatus]


def supervisor_summary(user: User, supervised_count: int) -> dict:
    max_students = user.max_students
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "department": user.department,
        "designation": user.designation,
        "research_areas": list(user.research_areas or []),
        "photo_url": user.photo_url,
        "office_hours": user.office_hours,
        "supervised_count": supervised_count,
        "max_students": max_students,
        "available_slots": max(0, max_students - supervised_count) if max_students is not None else None,
    }


def project_stats(projects: List[Project]) -> dict:
    by_status = Counter(p.status.value for p in projects)
    by_year: Dict[str, int] = Counter(
        str(p.year or (p.created_at.year if p.created_at else "")) for p in projects
    )
    return {
        "total_projects": len(projects),
        "active_projects": by_status["pending"] + by_status["approved"],
        "completed_projects": by_status["completed"],
        "projects_by_status": {key: by_status.get(key, 0) for key in STATUS_KEYS},
        "projects_by_year": dict(by_year),
    }


class SupervisorService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_supervisor(self, supervisor_id: str) -> User:
        result = await self.db.execute(
            select(User).where(User.id == supervisor_id, User.role == UserRole.SUPERVISOR)
        )
        supervisor = result.scalar_one_or_none()
        if supervisor is None:
            raise SupervisorNotFoundError(supervisor_id)
        return supervisor

    async def _supervised_counts(self, supervisor_ids: List[str]) -> Dict[str, int]:
        if not supervisor_ids:
            return {}
        result = await self.db.execute(
            select(Project.supervisor_id, func.count(Project.id))
            .where(Project.supervisor_id.in_(supervisor_ids))
            .group_by(Project.supervisor_id)
        )
        return {row[0]: row[1] for row in result.all()}

    async def _all_supervised(self, supervisor_id: str) -> List[Project]:
        result = await self.db.execute(
            select(Project).where(Project.supervisor_id == supervisor_id).order_by(Project.created_at.desc())
        )
        return list(result.scalars().all())

    # ========== Directory ==========

    async def list_supervisors(self) -> List[dict]:
        result = await self.db.execute(
            select(User).where(User.role == UserRole.SUPERVISOR).order_by(User.name.asc())
        )
        supervisors = list(result.scalars().all())
        counts = await self._supervised_counts([s.id for s in supervisors])
        return [supervisor_summary(s, counts.get(s.id, 0)) for s in supervisors]

    async def browse(self, department: Optional[str] = None, research_area: Optional[str] = None,
                     page: int = 1, limit: int = 12) -> dict:
        """Directory for students, each entry with up to five finished projects"""
        query = select(User).where(User.role == UserRole.SUPERVISOR)
        if department:
            query = query.where(contains(User.department, department))
        if research_area:
            query = query.where(contains(cast(User.research_areas, String), research_area))
        query = query.order_by(User.name.asc())

        page_data = await paginate(self.db, query, page, limit)
        supervisors: List[User] = page_data["items"]
        counts = await self._supervised_counts([s.id for s in supervisors])

        items = []
        for supervisor in supervisors:
            recent = await self.db.execute(
                select(Project)
                .where(
                    Project.supervisor_id == supervisor.id,
                    Project.status.in_(LEGACY_FINISHED_STATUSES),
                )
                .order_by(Project.created_at.desc())
                .limit(5)
            )
            items.append({
                **supervisor_summary(supervisor, counts.get(supervisor.id, 0)),
                "bio": supervisor.bio,
                "recent_projects": [
                    {"id": p.id, "title": p.title, "year": p.year, "status": p.status.value}
                    for p in recent.scalars().all()
                ],
            })
        page_data["items"] = items
        return page_data

    async def profile(self, caller: Optional[Caller], supervisor_id: str) -> dict:
        supervisor = await self.get_supervisor(supervisor_id)
        projects = await self._all_supervised(supervisor.id)

        recent_query = apply_visibility(
            select(Project).where(Project.supervisor_id == supervisor.id), caller
        ).order_by(Project.created_at.desc()).limit(5)
        recent = (await self.db.execute(recent_query)).scalars().all()

        viewer_id = caller.id if caller else None
        return {
            **supervisor_summary(supervisor, len(projects)),
            "bio": supervisor.bio,
            "social_links": supervisor.social_links or {},
            "stats": project_stats(projects),
            "recent_projects": [ProjectResponse.build(p, viewer_id) for p in recent],
        }

    async def supervised_projects(self, caller: Optional[Caller], supervisor_id: str,
                                  status: Optional[str] = None, year: Optional[int] = None,
                                  page: int = 1, limit: int = 10) -> dict:
        query = select(Project).where(Project.supervisor_id == supervisor_id)
        # The supervisor sees every project they supervise
        if caller is None or caller.id != supervisor_id:
            query = apply_visibility(query, caller)
        if status:
            query = query.where(Project.status == parse_status(status, tuple(ProjectStatus)))
        if year:
            query = query.where(Project.year == year)
        query = query.order_by(Project.created_at.desc())

        viewer_id = caller.id if caller else None
        return await paginate(
            self.db, query, page, limit,
            serializer=lambda p: ProjectResponse.build(p, viewer_id),
        )

    async def students(self, caller: Caller, supervisor_id: str) -> List[dict]:
        """Authors of the supervisor's projects with their supervised projects"""
        if caller.id != supervisor_id and not caller.is_admin and caller.role != UserRole.SUPERVISOR:
            raise AccessDeniedError("Only supervisors and admins can view supervised students")

        projects = await self._all_supervised(supervisor_id)
        author_ids = {p.author_id for p in projects if p.author_id}
        if not author_ids:
            return []
        result = await self.db.execute(select(User).where(User.id.in_(author_ids)).order_by(User.name.asc()))

        students = []
        for student in result.scalars().all():
            own = [p for p in projects if p.author_id == student.id]
            students.append({
                "id": student.id,
                "name": student.name,
                "email": student.email,
                "photo_url": student.photo_url,
                "department": student.department,
                "project_count": len(own),
                "projects": [
                    {
                        "id": p.id,
                        "title": p.title,
                        "status": p.status.value,
                        "year": p.year,
                        "created_at": p.created_at,
                    }
                    for p in own
                ],
            })
        return students

    async def stats(self, caller: Caller, supervisor_id: str) -> dict:
        ensure_self_or_admin(caller, supervisor_id, "You can only view your own statistics")
        projects = await self._all_supervised(supervisor_id)

        author_ids = {p.author_id for p in projects if p.author_id}
        names: Dict[str, str] = {}
        if author_ids:
            result = await self.db.execute(select(User.id, User.name).where(User.id.in_(author_ids)))
            names = {row.id: row.name for row in result.all()}

        stats = project_stats(projects)
        stats.update({
            "total_students": len(author_ids),
            "pending_reviews": stats["projects_by_status"]["pending"],
            "recent_activity": [
                {
                    "type": "submission",
                    "project_id": p.id,
                    "project_title": p.title,
                    "student_name": names.get(p.author_id) or p.author_name,
                    "status": p.status.value,
                    "timestamp": p.created_at,
                }
                for p in projects[:10]
            ],
        })
        return stats

    async def update_profile(self, caller: Caller, supervisor_id: str, data: SupervisorProfileUpdate) -> dict:
        ensure_self_or_admin(caller, supervisor_id, "You can only update your own profile")
        supervisor = await self.get_supervisor(supervisor_id)

        changes = data.model_dump(exclude_unset=True)
        if "research_areas" in changes:
            changes["research_areas"] = [
                a.strip()[:100] for a in (changes["research_areas"] or []) if a and a.strip()
            ]
        if "social_links" in changes:
            changes["social_links"] = changes["social_links"] or {}
        for column, value in changes.items():
            setattr(supervisor, column, value)

        if {"department", "photo_url"} & changes.keys():
            await propagate_profile(self.db, supervisor)
        await self.db.commit()
        await self.db.refresh(supervisor)
        logger.info(f"Supervisor profile updated: {supervisor_id}", extra={"fields": sorted(changes)})

        counts = await self._supervised_counts([supervisor.id])
        return {
            **supervisor_summary(supervisor, counts.get(supervisor.id, 0)),
            "bio": supervisor.bio,
            "social_links": supervisor.social_links or {},
        }
