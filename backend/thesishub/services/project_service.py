"""
Project Service - project lifecycle, engagement and PDF access

Lifecycle:
    create -> pending -> approved | rejected (owner/admin, permissive)

Every read goes through the access policy; every mutation that notifies
commits first, serializes its result, then hands off to the Notifier.
"""

import json
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import select, update, or_, cast, String
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.config import settings
from thesishub.core.exceptions import (
    InvalidProjectDataError,
    ProjectNotFoundError,
    ResourceNotFoundError,
    SupervisorNotFoundError,
)
from thesishub.core.logging_config import logger
from thesishub.core.types import generate_uuid
from thesishub.models.project import Project, ProjectStatus, SETTABLE_STATUSES
from thesishub.models.user import User, UserRole
from thesishub.modules.auth.access_policy import (
    apply_visibility,
    ensure_can_mutate,
    ensure_can_read,
    ensure_self_or_admin,
)
from thesishub.modules.auth.dependencies import Caller
from thesishub.schemas.project import (
    BookmarkResponse,
    LikeResponse,
    ProjectDetailResponse,
    ProjectResponse,
    ProjectUpdate,
    ViewResponse,
)
from thesishub.services import project_fields as fields
from thesishub.services.notification_service import Notifier
from thesishub.services.storage_service import StorageService, storage_service
from thesishub.utils.pagination import paginate
from thesishub.utils.text import escape_like

SORT_COLUMNS = {
    "date": Project.created_at.desc(),
    "title": Project.title.asc(),
    "views": Project.view_count.desc(),
    "likes": Project.like_count.desc(),
}


@dataclass
class PdfUpload:
    content: bytes
    filename: Optional[str]


@dataclass
class ProjectFilters:
    tech_stack: Optional[str] = None
    author: Optional[str] = None
    year: Optional[int] = None
    supervisor: Optional[str] = None
    keywords: Optional[str] = None
    status: Optional[str] = None
    sort: str = "date"
    page: int = 1
    limit: int = 20


def contains(column, term: str):
    """Case-insensitive literal substring match"""
    return column.ilike(f"%{escape_like(term.strip())}%", escape="\\")


def list_contains(column, term: str):
    """Substring match against the items of a JSON string-list column"""
    # Encode the term the way the column serializer writes it, minus the quotes
    encoded = json.dumps(term.strip(), ensure_ascii=False)[1:-1]
    return contains(cast(column, String), encoded)


def parse_status(value: str, allowed=SETTABLE_STATUSES) -> ProjectStatus:
    try:
        status = ProjectStatus((value or "").strip().lower())
    except ValueError:
        status = None
    if status not in allowed:
        raise InvalidProjectDataError(
            f"Invalid status. Must be one of: {', '.join(s.value for s in allowed)}", field="status"
        )
    return status


class ProjectService:
    """Project lifecycle engine"""

    def __init__(self, db: AsyncSession, storage: Optional[StorageService] = None,
                 notifier: Optional[Notifier] = None):
        self.db = db
        self.storage = storage or storage_service
        self.notifier = notifier or Notifier(db)

    # ========== Lookups ==========

    async def get_model(self, project_id: str, lock: bool = False) -> Project:
        query = select(Project).where(Project.id == project_id)
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        project = result.scalar_one_or_none()
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def get_readable(self, caller: Optional[Caller], project_id: str, lock: bool = False) -> Project:
        project = await self.get_model(project_id, lock=lock)
        ensure_can_read(caller, project)
        return project

    async def _get_supervisor(self, supervisor_id: str) -> User:
        result = await self.db.execute(
            select(User).where(User.id == supervisor_id, User.role == UserRole.SUPERVISOR)
        )
        supervisor = result.scalar_one_or_none()
        if supervisor is None:
            raise SupervisorNotFoundError(supervisor_id)
        return supervisor

    @staticmethod
    def assign_supervisor(project: Project, supervisor: User) -> None:
        """Copy the supervisor's current name and department onto the project"""
        project.supervisor_id = supervisor.id
        project.supervisor_name = supervisor.name
        project.supervisor_department = supervisor.department

    @staticmethod
    def _set_legacy_supervisor(project: Project, name: Optional[str]) -> None:
        # Free-text name carries no verified reference
        project.supervisor_name = name
        project.supervisor_id = None
        project.supervisor_department = None

    # ========== Create ==========

    async def create_project(self, caller: Caller, data: dict, pdf: Optional[PdfUpload] = None) -> ProjectDetailResponse:
        title = fields.normalize_title(data.get("title"))
        abstract = fields.normalize_abstract(data.get("abstract"))
        tech_stack = fields.parse_string_list(data.get("tech_stack"), fields.TECH_STACK_MAX_ITEMS)
        tags = fields.parse_string_list(data.get("tags"), fields.TAGS_MAX_ITEMS)
        year = fields.normalize_year(data.get("year"))
        github_link = fields.normalize_github_link(data.get("github_link"))
        author_name = fields.normalize_author_name(data.get("author"), caller.display_name)

        supervisor = None
        if data.get("supervisor_id"):
            supervisor = await self._get_supervisor(data["supervisor_id"])
        legacy_supervisor = fields.normalize_supervisor_name(data.get("supervisor"))

        project = Project(
            id=generate_uuid(),
            title=title,
            abstract=abstract,
            tech_stack=tech_stack,
            tags=tags,
            year=year,
            github_link=github_link,
            author_id=caller.id,
            author_name=author_name,
            author_email=caller.email,
            author_photo_url=caller.photo_url,
            status=ProjectStatus.PENDING,
            likes=[],
            like_count=0,
            bookmarks=[],
            view_count=0,
            comments=[],
            comment_count=0,
        )
        if supervisor is not None:
            self.assign_supervisor(project, supervisor)
        elif legacy_supervisor:
            self._set_legacy_supervisor(project, legacy_supervisor)

        # Upload before insert: a failed upload leaves nothing behind
        if pdf is not None:
            stored = await self.storage.upload_pdf(pdf.content, pdf.filename)
            project.pdf_key = stored["key"]
            project.pdf_url = stored["url"]
            project.pdf_filename = stored["filename"]

        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)

        logger.log_workflow_event("project", "created", project_id=project.id, author_id=caller.id)
        result = ProjectDetailResponse.build(project, caller.id)

        await self.notifier.project_submitted(caller.id, author_name, project.id, title)
        return result

    # ========== Reads ==========

    async def list_projects(self, caller: Optional[Caller], filters: ProjectFilters) -> dict:
        query = apply_visibility(select(Project), caller)

        if filters.tech_stack:
            query = query.where(list_contains(Project.tech_stack, filters.tech_stack))
        if filters.author:
            query = query.where(contains(Project.author_name, filters.author))
        if filters.year:
            query = query.where(Project.year == filters.year)
        if filters.supervisor:
            query = query.where(contains(Project.supervisor_name, filters.supervisor))
        if filters.keywords:
            query = query.where(or_(
                contains(Project.title, filters.keywords),
                contains(Project.abstract, filters.keywords),
                list_contains(Project.tags, filters.keywords),
            ))
        if filters.status:
            query = query.where(Project.status == parse_status(filters.status, tuple(ProjectStatus)))

        order = SORT_COLUMNS.get(filters.sort, SORT_COLUMNS["date"])
        query = query.order_by(order, Project.id)

        viewer_id = caller.id if caller else None
        return await paginate(
            self.db, query, filters.page, filters.limit,
            serializer=lambda p: ProjectResponse.build(p, viewer_id),
        )

    async def get_project(self, caller: Optional[Caller], project_id: str) -> ProjectDetailResponse:
        project = await self.get_readable(caller, project_id)
        return ProjectDetailResponse.build(project, caller.id if caller else None)

    async def get_user_projects(self, caller: Caller, user_id: str) -> List[ProjectResponse]:
        """All of one author's projects, any status; self or admin only"""
        target_id = caller.id if user_id == "me" else user_id
        ensure_self_or_admin(caller, target_id, "You can only view your own projects")
        result = await self.db.execute(
            select(Project).where(Project.author_id == target_id).order_by(Project.created_at.desc())
        )
        return [ProjectResponse.build(p, caller.id) for p in result.scalars().all()]

    async def list_admin(self, status: Optional[str] = None, page: int = 1, limit: int = 20) -> dict:
        query = select(Project)
        if status:
            query = query.where(Project.status == parse_status(status, tuple(ProjectStatus)))
        query = query.order_by(Project.created_at.desc())
        return await paginate(self.db, query, page, limit, serializer=ProjectResponse.build)

    async def list_pending(self, page: int = 1, limit: int = 20) -> dict:
        query = (
            select(Project)
            .where(Project.status == ProjectStatus.PENDING)
            .order_by(Project.created_at.asc())
        )
        return await paginate(self.db, query, page, limit, serializer=ProjectResponse.build)

    # ========== Mutations ==========

    async def update_status(self, caller: Caller, project_id: str, status: str) -> ProjectResponse:
        new_status = parse_status(status)
        project = await self.get_model(project_id)
        ensure_can_mutate(caller, project)

        old_status = project.status
        project.status = new_status
        await self.db.commit()

        logger.log_workflow_event(
            "project", "status_changed", project_id=project.id,
            from_status=old_status.value, to_status=new_status.value, changed_by=caller.id,
        )
        result = ProjectResponse.build(project, caller.id)

        if old_status == ProjectStatus.PENDING and new_status != ProjectStatus.PENDING:
            await self.notifier.project_status_changed(
                project.author_id, project.id, project.title, new_status.value
            )
        return result

    async def edit_project(self, caller: Caller, project_id: str, changes: ProjectUpdate) -> ProjectDetailResponse:
        project = await self.get_model(project_id)
        ensure_can_mutate(caller, project)
        supplied = changes.model_fields_set

        # Validate everything before touching the row
        updates = {}
        if "title" in supplied:
            updates["title"] = fields.normalize_title(changes.title)
        if "abstract" in supplied:
            updates["abstract"] = fields.normalize_abstract(changes.abstract)
        if "tech_stack" in supplied:
            updates["tech_stack"] = fields.parse_string_list(changes.tech_stack, fields.TECH_STACK_MAX_ITEMS)
        if "tags" in supplied:
            updates["tags"] = fields.parse_string_list(changes.tags, fields.TAGS_MAX_ITEMS)
        if "year" in supplied:
            updates["year"] = fields.normalize_year(changes.year)
        if "github_link" in supplied:
            updates["github_link"] = fields.normalize_github_link(changes.github_link)
        if "author" in supplied:
            updates["author_name"] = fields.normalize_author_name(changes.author, project.author_name)

        supervisor = None
        legacy_name = project.supervisor_name
        if "supervisor_id" in supplied and changes.supervisor_id:
            supervisor = await self._get_supervisor(changes.supervisor_id)
        elif "supervisor" in supplied:
            legacy_name = fields.normalize_supervisor_name(changes.supervisor)

        for column, value in updates.items():
            setattr(project, column, value)
        if supervisor is not None:
            self.assign_supervisor(project, supervisor)
        elif "supervisor_id" in supplied:
            # Unassign; a name sent alongside stays as display-only
            self._set_legacy_supervisor(project, legacy_name if "supervisor" in supplied else None)
        elif legacy_name != project.supervisor_name:
            self._set_legacy_supervisor(project, legacy_name)

        await self.db.commit()
        await self.db.refresh(project)
        logger.log_workflow_event("project", "edited", project_id=project.id, fields=sorted(supplied))
        return ProjectDetailResponse.build(project, caller.id)

    async def delete_project(self, caller: Caller, project_id: str) -> None:
        """Hard delete; notifications and requests referencing it are left as-is"""
        project = await self.get_model(project_id)
        ensure_can_mutate(caller, project)
        pdf_key = project.pdf_key
        await self.db.delete(project)
        await self.db.commit()
        logger.log_workflow_event("project", "deleted", project_id=project_id, deleted_by=caller.id)

        # Best-effort; an orphaned file never fails the delete
        if pdf_key:
            await self.storage.delete(pdf_key)

    # ========== Engagement ==========

    async def toggle_like(self, caller: Caller, project_id: str) -> LikeResponse:
        project = await self.get_readable(caller, project_id, lock=True)

        likes = list(project.likes or [])
        liked = caller.id not in likes
        if liked:
            likes.append(caller.id)
        else:
            likes.remove(caller.id)
        # Set and counter go out in the same UPDATE
        project.likes = likes
        project.like_count = len(likes)
        await self.db.commit()

        result = LikeResponse(liked=liked, like_count=len(likes))
        if liked:
            await self.notifier.project_liked(
                project.author_id, caller.id, caller.display_name, project.id, project.title
            )
        return result

    async def toggle_bookmark(self, caller: Caller, project_id: str) -> BookmarkResponse:
        project = await self.get_readable(caller, project_id, lock=True)

        bookmarks = list(project.bookmarks or [])
        bookmarked = caller.id not in bookmarks
        if bookmarked:
            bookmarks.append(caller.id)
        else:
            bookmarks.remove(caller.id)
        project.bookmarks = bookmarks
        await self.db.commit()
        return BookmarkResponse(bookmarked=bookmarked, bookmark_count=len(bookmarks))

    async def track_view(self, caller: Optional[Caller], project_id: str) -> ViewResponse:
        project = await self.get_readable(caller, project_id)

        await self.db.execute(
            update(Project)
            .where(Project.id == project.id)
            .values(view_count=Project.view_count + 1, updated_at=Project.updated_at)
        )

        if caller is not None and caller.user is not None:
            user = caller.user
            recent = [project.id] + [pid for pid in (user.recently_viewed or []) if pid != project.id]
            user.recently_viewed = recent[:settings.RECENT_VIEWS_LIMIT]

        await self.db.commit()
        result = await self.db.execute(select(Project.view_count).where(Project.id == project.id))
        return ViewResponse(view_count=result.scalar() or 0)

    async def list_bookmarked(self, caller: Caller) -> List[ProjectResponse]:
        pattern = f'%"{escape_like(caller.id)}"%'
        query = apply_visibility(
            select(Project).where(cast(Project.bookmarks, String).like(pattern, escape="\\")),
            caller,
        ).order_by(Project.created_at.desc())
        result = await self.db.execute(query)
        # The LIKE is a prefilter; confirm membership exactly
        return [
            ProjectResponse.build(p, caller.id)
            for p in result.scalars().all()
            if caller.id in (p.bookmarks or [])
        ]

    async def list_recently_viewed(self, caller: Caller) -> List[ProjectResponse]:
        ids = list(caller.user.recently_viewed or []) if caller.user is not None else []
        if not ids:
            return []
        query = apply_visibility(select(Project).where(Project.id.in_(ids)), caller)
        by_id = {p.id: p for p in (await self.db.execute(query)).scalars().all()}
        return [ProjectResponse.build(by_id[pid], caller.id) for pid in ids if pid in by_id]

    # ========== PDF ==========

    async def get_pdf(self, caller: Optional[Caller], project_id: str) -> Tuple[bytes, str]:
        """Returns (content, filename) for a readable project with a stored PDF"""
        project = await self.get_readable(caller, project_id)
        if not project.pdf_key:
            raise ResourceNotFoundError("Pdf", project_id)
        content = await self.storage.download(project.pdf_key)
        return content, project.pdf_filename or "project.pdf"
