"""
Project visibility and mutation rules.

Every project listing and single-project read goes through this module:

    anonymous            -> approved only
    authenticated        -> approved, plus own pending
    admin (stored flag)  -> everything

Mutations (status change, edit, delete) are allowed to the author and to
admins only.
"""
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from thesishub.core.exceptions import AccessDeniedError, NotOwnerError
from thesishub.models.project import Project, ProjectStatus
from thesishub.modules.auth.dependencies import Caller


def visible_project_filter(caller: Optional[Caller]) -> Optional[ColumnElement]:
    """WHERE clause restricting projects to what ``caller`` may list; None means unrestricted"""
    if caller is None:
        return Project.status == ProjectStatus.APPROVED
    if caller.is_admin:
        return None
    return or_(
        Project.status == ProjectStatus.APPROVED,
        and_(Project.status == ProjectStatus.PENDING, Project.author_id == caller.id),
    )


def apply_visibility(query, caller: Optional[Caller]):
    clause = visible_project_filter(caller)
    return query if clause is None else query.where(clause)


def is_owner(caller: Optional[Caller], project: Project) -> bool:
    return caller is not None and project.author_id == caller.id


def can_read(caller: Optional[Caller], project: Project) -> bool:
    """Single-project read, consistent with visible_project_filter"""
    if project.status == ProjectStatus.APPROVED:
        return True
    if caller is None:
        return False
    if caller.is_admin:
        return True
    return project.status == ProjectStatus.PENDING and is_owner(caller, project)


def can_mutate(caller: Optional[Caller], project: Project) -> bool:
    return caller is not None and (caller.is_admin or is_owner(caller, project))


def ensure_can_read(caller: Optional[Caller], project: Project) -> None:
    if not can_read(caller, project):
        raise AccessDeniedError("This project is not available", code="PROJECT_NOT_AVAILABLE")


def ensure_can_mutate(caller: Optional[Caller], project: Project) -> None:
    if not can_mutate(caller, project):
        raise NotOwnerError("Only the author or an admin can modify this project")


def ensure_self_or_admin(caller: Caller, user_id: str, message: str = "You can only access your own data") -> None:
    if caller.id != user_id and not caller.is_admin:
        raise AccessDeniedError(message)
