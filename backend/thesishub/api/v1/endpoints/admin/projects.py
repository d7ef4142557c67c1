from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.database import get_db
from thesishub.modules.auth.dependencies import Caller, require_admin
from thesishub.schemas.project import ProjectListResponse
from thesishub.services.project_service import ProjectService

router = APIRouter()


@router.get("", response_model=ProjectListResponse)
async def list_all_projects(
    project_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Every project regardless of status, newest first"""
    return await ProjectService(db).list_admin(project_status, page, limit)


@router.get("/pending", response_model=ProjectListResponse)
async def list_pending_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Review queue, oldest first"""
    return await ProjectService(db).list_pending(page, limit)
