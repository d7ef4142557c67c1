from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.database import get_db
from thesishub.core.exceptions import (
    AuthenticationError,
    AdminRequiredError,
    RoleRequiredError,
    ThesisHubError,
)
from thesishub.core.logging_config import logger, set_user_id
from thesishub.core.security import Identity, decode_identity_token
from thesishub.models.user import User, UserRole

# auto_error=False so missing credentials surface as our own 401
security = HTTPBearer(auto_error=False)


@dataclass
class Caller:
    """
    Authenticated caller as seen by the access policy.

    ``is_admin`` and ``role`` always come from the stored user record,
    never from token claims.
    """
    id: str
    email: str
    name: str
    is_admin: bool = False
    role: Optional[UserRole] = None
    user: Optional[User] = None

    @property
    def identity(self) -> Identity:
        return Identity(id=self.id, email=self.email, name=self.name)

    @property
    def display_name(self) -> str:
        if self.user is not None and self.user.name:
            return self.user.name
        return self.name

    @property
    def photo_url(self) -> Optional[str]:
        return self.user.photo_url if self.user is not None else None


async def load_caller(db: AsyncSession, identity: Identity) -> Caller:
    """Attach the stored admin flag and role to a verified identity"""
    result = await db.execute(select(User).where(User.id == identity.id))
    user = result.scalar_one_or_none()
    return Caller(
        id=identity.id,
        email=identity.email,
        name=identity.name,
        is_admin=bool(user.is_admin) if user else False,
        role=user.role if user else None,
        user=user,
    )


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """Verified identity; 401 when the bearer token is missing or invalid"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")
    try:
        identity = decode_identity_token(credentials.credentials)
    except AuthenticationError as e:
        logger.log_auth_event("token_verify", False, reason=e.code)
        raise
    set_user_id(identity.id)
    return identity


async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Identity]:
    """Identity when a valid token is present; anonymous otherwise (never 401)"""
    if credentials is None or not credentials.credentials:
        return None
    try:
        identity = decode_identity_token(credentials.credentials)
    except ThesisHubError as e:
        logger.debug(f"Optional auth ignored an invalid token: {e.code}")
        return None
    set_user_id(identity.id)
    return identity


async def get_caller(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> Caller:
    return await load_caller(db, identity)


async def get_optional_caller(
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
) -> Optional[Caller]:
    if identity is None:
        return None
    return await load_caller(db, identity)


async def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    """Caller whose stored admin flag is set"""
    if not caller.is_admin:
        logger.warning(f"Admin access denied for {caller.id}")
        raise AdminRequiredError()
    return caller


def require_role(*roles: UserRole):
    """Dependency factory: caller's stored role must be one of ``roles``"""
    async def checker(caller: Caller = Depends(get_caller)) -> Caller:
        if caller.role not in roles:
            raise RoleRequiredError(*[r.value for r in roles])
        return caller
    return checker


require_student = require_role(UserRole.STUDENT)
require_supervisor = require_role(UserRole.SUPERVISOR)
