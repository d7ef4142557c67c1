from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.database import get_db
from thesishub.core.security import Identity
from thesishub.modules.auth.dependencies import get_identity
from thesishub.schemas.notification import NotificationResponse, UnreadCountResponse
from thesishub.services.notification_service import NotificationService

router = APIRouter()


@router.get("")
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Caller's notifications, newest first"""
    return await NotificationService(db).list_for(identity.id, unread_only, page, limit)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCountResponse(unread_count=await NotificationService(db).unread_count(identity.id))


@router.patch("/read-all")
async def mark_all_read(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    updated = await NotificationService(db).mark_all_read(identity.id)
    return {"success": True, "updated": updated}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService(db).mark_read(identity.id, notification_id)
