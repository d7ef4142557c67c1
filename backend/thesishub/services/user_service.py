"""
User Service - profiles, role repair and display-name propagation
"""
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.exceptions import InvalidEmailDomainError, UserNotFoundError, ValidationError
from thesishub.core.logging_config import logger
from thesishub.core.security import Identity
from thesishub.core.types import utcnow
from thesishub.models.project import Project
from thesishub.models.user import User, UserRole
from thesishub.modules.auth.access_policy import visible_project_filter
from thesishub.schemas.project import ProjectResponse
from thesishub.schemas.user import ProfileUpdate, PublicUserResponse, UserResponse, UserUpsert
from thesishub.utils.email_roles import derive_role, is_university_email
from thesishub.utils.text import is_http_url


def _check_url(value: Optional[str], field: str) -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return None
    if not is_http_url(value):
        raise ValidationError(f"{field} must be a valid http(s) URL", field=field)
    return value


def repair_role(user: User) -> bool:
    """
    Align the stored role with the email domain.

    Returns True when the role changed. A domain that implies no role leaves
    the stored value alone, so repeated calls are no-ops.
    """
    derived = derive_role(user.email)
    if derived is None or user.role == derived:
        return False
    logger.info(f"Repairing role for {user.email}: {user.role} -> {derived.value}")
    user.role = derived
    return True


async def propagate_profile(db: AsyncSession, user: User) -> None:
    """Copy the user's current display fields onto projects that denormalize them"""
    await db.execute(
        update(Project)
        .where(Project.author_id == user.id)
        .values(author_name=user.name, author_photo_url=user.photo_url, updated_at=Project.updated_at)
    )
    await db.execute(
        update(Project)
        .where(Project.supervisor_id == user.id)
        .values(supervisor_name=user.name, supervisor_department=user.department, updated_at=Project.updated_at)
    )


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_profile(self, identity: Identity) -> UserResponse:
        user = await self._get(identity.id)
        if user is None:
            raise UserNotFoundError(identity.id)
        if repair_role(user):
            await self.db.commit()
        return UserResponse.model_validate(user)

    async def create_or_update(self, identity: Identity, data: UserUpsert) -> UserResponse:
        """Called after every sign-in: creates the row once, refreshes display fields after"""
        photo_url = _check_url(data.photo_url, "photo_url") if data.photo_url is not None else None
        name = (data.name or "").strip() or identity.name
        user = await self._get(identity.id)

        if user is None:
            if not is_university_email(identity.email):
                logger.log_auth_event("register", False, user_email=identity.email, reason="INVALID_EMAIL_DOMAIN")
                raise InvalidEmailDomainError(identity.email)
            user = User(
                id=identity.id,
                email=identity.email,
                name=name[:100],
                photo_url=photo_url,
                role=derive_role(identity.email) or data.role,
                is_admin=False,
                skills=[],
                research_areas=[],
                social_links={},
                supervised_projects=[],
                recently_viewed=[],
                last_login=utcnow(),
            )
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
            logger.log_auth_event("register", True, user_email=user.email, role=getattr(user.role, "value", None))
            return UserResponse.model_validate(user)

        renamed = bool(data.name and data.name.strip() and data.name.strip() != user.name)
        if data.name and data.name.strip():
            user.name = data.name.strip()
        if data.photo_url is not None:
            user.photo_url = photo_url
        repair_role(user)
        user.last_login = utcnow()
        if renamed or data.photo_url is not None:
            await propagate_profile(self.db, user)
        await self.db.commit()
        logger.log_auth_event("login", True, user_email=user.email)
        return UserResponse.model_validate(user)

    async def update_profile(self, identity: Identity, data: ProfileUpdate) -> UserResponse:
        user = await self._get(identity.id)
        if user is None:
            raise UserNotFoundError(identity.id)

        supplied = data.model_fields_set
        updates = {}
        if "name" in supplied:
            name = (data.name or "").strip()
            if not name:
                raise ValidationError("Name cannot be empty", field="name")
            updates["name"] = name
        if "photo_url" in supplied:
            updates["photo_url"] = _check_url(data.photo_url, "photo_url")
        if "website" in supplied:
            updates["website"] = _check_url(data.website, "website")
        for column in ("bio", "location", "department"):
            if column in supplied:
                updates[column] = (getattr(data, column) or "").strip() or None
        if "skills" in supplied:
            updates["skills"] = [s.strip()[:50] for s in (data.skills or []) if s and s.strip()]

        for column, value in updates.items():
            setattr(user, column, value)
        if {"name", "photo_url", "department"} & updates.keys():
            await propagate_profile(self.db, user)
        await self.db.commit()
        await self.db.refresh(user)
        return UserResponse.model_validate(user)

    async def public_profile(self, user_id: str) -> dict:
        """Public fields plus role-specific stats over publicly visible projects"""
        user = await self._get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        public = visible_project_filter(None)
        if user.role == UserRole.SUPERVISOR:
            owner_clause = Project.supervisor_id == user.id
        else:
            owner_clause = Project.author_id == user.id

        totals = await self.db.execute(
            select(
                func.count(Project.id),
                func.coalesce(func.sum(Project.view_count), 0),
                func.coalesce(func.sum(Project.like_count), 0),
            ).where(owner_clause, public)
        )
        count, views, likes = totals.one()

        recent = await self.db.execute(
            select(Project).where(owner_clause, public).order_by(Project.created_at.desc()).limit(5)
        )
        stats = {"total_projects": count, "total_views": views, "total_likes": likes}
        if user.role == UserRole.SUPERVISOR:
            stats = {"supervised_projects": count, "total_views": views, "total_likes": likes}

        return {
            **PublicUserResponse.model_validate(user).model_dump(),
            "stats": stats,
            "recent_projects": [ProjectResponse.build(p) for p in recent.scalars().all()],
        }
