"""
User profile API

The frontend calls POST /users after every sign-in; GET /users/profile
repairs a stale role before returning it.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.database import get_db
from thesishub.core.security import Identity
from thesishub.modules.auth.dependencies import Caller, get_caller, get_identity
from thesishub.schemas.project import ProjectResponse
from thesishub.schemas.user import ProfileUpdate, UserResponse, UserUpsert
from thesishub.services.project_service import ProjectService
from thesishub.services.user_service import UserService

router = APIRouter()


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).get_profile(identity)


@router.post("", response_model=UserResponse)
async def create_or_update_user(
    body: UserUpsert,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).create_or_update(identity, body)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).update_profile(identity, body)


@router.get("/me/bookmarks", response_model=List[ProjectResponse])
async def my_bookmarks(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).list_bookmarked(caller)


@router.get("/me/recently-viewed", response_model=List[ProjectResponse])
async def my_recently_viewed(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Most recent first"""
    return await ProjectService(db).list_recently_viewed(caller)


@router.get("/{user_id}")
async def public_profile(user_id: str, db: AsyncSession = Depends(get_db)) -> dict:
    return await UserService(db).public_profile(user_id)
