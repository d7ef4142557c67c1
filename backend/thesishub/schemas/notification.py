from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from thesishub.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: str
    type: NotificationType
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    sender_photo_url: Optional[str] = None
    project_id: Optional[str] = None
    project_title: Optional[str] = None
    comment_id: Optional[str] = None
    message: str
    related_link: Optional[str] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    unread_count: int
