"""
Notification Service

Notifier  - best-effort fan-out triggered after a primary write has committed.
            Never raises: failures are logged and the session is rolled back.
NotificationService - recipient-facing listing and read/unread updates.

Callers must serialize anything they return before calling the Notifier,
because a failed dispatch rolls the session back and expires loaded objects.
"""
from typing import Iterable, List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.exceptions import NotificationNotFoundError
from thesishub.core.logging_config import logger
from thesishub.models.notification import Notification, NotificationType, SYSTEM_SENDER
from thesishub.models.user import User
from thesishub.schemas.notification import NotificationResponse
from thesishub.utils.pagination import paginate


def project_link(project_id: Optional[str]) -> str:
    return f"/project/{project_id}" if project_id else "/dashboard"


class Notifier:
    """Creates notification records for workflow events"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _sender_details(self, sender_id: Optional[str], name: Optional[str], photo: Optional[str]):
        if sender_id and sender_id != SYSTEM_SENDER and (not name or not photo):
            result = await self.db.execute(select(User.name, User.photo_url).where(User.id == sender_id))
            row = result.first()
            if row is not None:
                name = name or row.name
                photo = photo or row.photo_url
        if sender_id == SYSTEM_SENDER:
            name = name or "System"
        return name or "Someone", photo

    async def _build(
        self,
        recipient_id: str,
        sender_id: Optional[str],
        type: NotificationType,
        message: str,
        project_id: Optional[str] = None,
        project_title: Optional[str] = None,
        comment_id: Optional[str] = None,
        sender_name: Optional[str] = None,
        sender_photo_url: Optional[str] = None,
        related_link: Optional[str] = None,
    ) -> Optional[Notification]:
        # No self-notifications, except automated confirmations
        if recipient_id == sender_id and sender_id != SYSTEM_SENDER:
            return None
        name, photo = await self._sender_details(sender_id, sender_name, sender_photo_url)
        return Notification(
            recipient_id=recipient_id,
            type=type,
            sender_id=None if sender_id == SYSTEM_SENDER else sender_id,
            sender_name=name,
            sender_photo_url=photo,
            project_id=project_id,
            project_title=project_title,
            comment_id=comment_id,
            message=message,
            related_link=related_link or project_link(project_id),
            is_read=False,
        )

    async def _dispatch(self, pending: Iterable[dict], context: str) -> int:
        """Build and commit a batch; returns the number written, 0 on failure"""
        try:
            built: List[Notification] = []
            for kwargs in pending:
                notification = await self._build(**kwargs)
                if notification is not None:
                    built.append(notification)
            if not built:
                return 0
            self.db.add_all(built)
            await self.db.commit()
            for n in built:
                logger.info(f"Notification created for user {n.recipient_id}: {n.type.value}")
            return len(built)
        except Exception as e:
            await self.db.rollback()
            logger.log_error_with_context(e, context=f"notification:{context}")
            return 0

    async def notify(self, recipient_id: str, sender_id: Optional[str], type: NotificationType,
                     message: str, **kwargs) -> bool:
        """Single notification; False when skipped or failed"""
        written = await self._dispatch(
            [dict(recipient_id=recipient_id, sender_id=sender_id, type=type, message=message, **kwargs)],
            context=type.value,
        )
        return written == 1

    async def _admin_ids(self) -> List[str]:
        result = await self.db.execute(select(User.id).where(User.is_admin.is_(True)))
        return list(result.scalars().all())

    async def notify_admins(self, sender_id: str, type: NotificationType, message: str, **kwargs) -> int:
        try:
            admin_ids = await self._admin_ids()
        except Exception as e:
            logger.log_error_with_context(e, context="notification:admin_lookup")
            return 0
        return await self._dispatch(
            [dict(recipient_id=a, sender_id=sender_id, type=type, message=message, **kwargs) for a in admin_ids],
            context=f"admins:{type.value}",
        )

    # ========== Event helpers ==========

    async def project_submitted(self, author_id: str, author_name: str, project_id: str, project_title: str) -> int:
        """Admins get a submission notice, the author a system confirmation"""
        written = await self.notify_admins(
            author_id, NotificationType.SUBMISSION,
            f'{author_name} submitted a new project: "{project_title}"',
            sender_name=author_name, project_id=project_id, project_title=project_title,
        )
        confirmed = await self.notify(
            author_id, SYSTEM_SENDER, NotificationType.STATUS_UPDATE,
            f'Your project "{project_title}" has been submitted and is pending admin approval.',
            project_id=project_id, project_title=project_title,
        )
        return written + int(confirmed)

    async def project_status_changed(self, author_id: str, project_id: str, project_title: str, status: str) -> bool:
        if status == "approved":
            message = f'Your project "{project_title}" has been approved!'
        else:
            message = f'Your project "{project_title}" was not approved. Please check the feedback.'
        return await self.notify(
            author_id, SYSTEM_SENDER, NotificationType.STATUS_UPDATE, message,
            project_id=project_id, project_title=project_title,
        )

    async def supervision_requested(self, supervisor_id: str, student_id: str, student_name: str,
                                    project_title: Optional[str] = None, project_id: Optional[str] = None) -> bool:
        suffix = f' for "{project_title}"' if project_title else ""
        return await self.notify(
            supervisor_id, student_id, NotificationType.REQUEST,
            f"{student_name} sent you a supervision request{suffix}.",
            sender_name=student_name,
            project_id=project_id,
            project_title=project_title or "Project Request",
            related_link="/supervisor/dashboard",
        )

    async def supervision_answered(self, student_id: str, supervisor_id: str, supervisor_name: str, approved: bool,
                                   project_title: Optional[str] = None, project_id: Optional[str] = None) -> bool:
        verdict = "accepted" if approved else "declined"
        suffix = f' for "{project_title}"' if project_title else ""
        return await self.notify(
            student_id, supervisor_id, NotificationType.RESPONSE,
            f"Supervisor {supervisor_name} {verdict} your request{suffix}.",
            sender_name=supervisor_name,
            project_id=project_id,
            project_title=project_title or "Supervision Response",
        )

    async def project_liked(self, author_id: str, liker_id: str, liker_name: str,
                            project_id: str, project_title: str) -> bool:
        return await self.notify(
            author_id, liker_id, NotificationType.LIKE,
            f'{liker_name} liked your project "{project_title}"',
            sender_name=liker_name, project_id=project_id, project_title=project_title,
        )

    async def comment_added(self, author_id: str, commenter_id: str, commenter_name: str,
                            project_id: str, project_title: str, comment_id: str) -> bool:
        return await self.notify(
            author_id, commenter_id, NotificationType.COMMENT,
            f'{commenter_name} commented on your project "{project_title}"',
            sender_name=commenter_name, project_id=project_id,
            project_title=project_title, comment_id=comment_id,
        )

    async def reply_added(self, comment_author_id: str, replier_id: str, replier_name: str,
                          project_id: str, project_title: str, comment_id: str) -> bool:
        return await self.notify(
            comment_author_id, replier_id, NotificationType.REPLY,
            f'{replier_name} replied to your comment on "{project_title}"',
            sender_name=replier_name, project_id=project_id,
            project_title=project_title, comment_id=comment_id,
        )

    async def team_invited(self, invited_id: str, inviter_id: str, inviter_name: str,
                           project_title: str, project_id: Optional[str] = None) -> bool:
        return await self.notify(
            invited_id, inviter_id, NotificationType.TEAM_INVITE,
            f'{inviter_name} invited you to join their project: "{project_title}"',
            sender_name=inviter_name, project_id=project_id,
            project_title=project_title, related_link="/student/workflow",
        )


class NotificationService:
    """Recipient-side access to notifications"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for(self, recipient_id: str, unread_only: bool = False, page: int = 1, limit: int = 20) -> dict:
        query = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc())
        return await paginate(self.db, query, page, limit, serializer=NotificationResponse.model_validate)

    async def unread_count(self, recipient_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Notification).where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def mark_read(self, recipient_id: str, notification_id: str) -> NotificationResponse:
        result = await self.db.execute(select(Notification).where(Notification.id == notification_id))
        notification = result.scalar_one_or_none()
        # Someone else's notification looks the same as a missing one
        if notification is None or notification.recipient_id != recipient_id:
            raise NotificationNotFoundError(notification_id)
        notification.is_read = True
        await self.db.commit()
        return NotificationResponse.model_validate(notification)

    async def mark_all_read(self, recipient_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0
