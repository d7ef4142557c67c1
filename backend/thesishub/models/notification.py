from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Text, Boolean, Index
import enum

from thesishub.core.database import Base
from thesishub.core.types import GUID, generate_uuid, utcnow


# Sender id used for automated confirmations
SYSTEM_SENDER = "system"


class NotificationType(str, enum.Enum):
    SUBMISSION = "submission"
    STATUS_UPDATE = "status_update"
    REQUEST = "request"
    RESPONSE = "response"
    LIKE = "like"
    COMMENT = "comment"
    REPLY = "reply"
    TEAM_INVITE = "team_invite"


class Notification(Base):
    """Immutable event record; only ``is_read`` changes after creation"""
    __tablename__ = "notifications"

    __table_args__ = (
        Index('ix_notifications_recipient_read', 'recipient_id', 'is_read'),
        Index('ix_notifications_created_at', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    recipient_id = Column(String(128), nullable=False)
    type = Column(
        SQLEnum(NotificationType, native_enum=False, length=30, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    # None when the sender is the system
    sender_id = Column(String(128), nullable=True)
    sender_name = Column(String(100), nullable=True)
    sender_photo_url = Column(String(500), nullable=True)

    project_id = Column(GUID, nullable=True)
    project_title = Column(String(200), nullable=True)
    comment_id = Column(String(36), nullable=True)

    message = Column(Text, nullable=False)
    related_link = Column(String(500), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Notification {self.type} -> {self.recipient_id}>"
