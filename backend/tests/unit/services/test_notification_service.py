"""
Unit Tests for notification fan-out and the recipient API
"""
import pytest
from sqlalchemy import select

from thesishub.core.exceptions import NotificationNotFoundError
from thesishub.models.notification import Notification, NotificationType, SYSTEM_SENDER
from thesishub.services.notification_service import Notifier, NotificationService


class TestNotifier:
    """Best-effort creation"""

    @pytest.mark.asyncio
    async def test_sender_details_are_looked_up(self, db_session, student, other_student):
        other_student.photo_url = "https://example.com/me.png"
        await db_session.commit()

        ok = await Notifier(db_session).notify(
            student.id, other_student.id, NotificationType.LIKE, "liked", project_id="p1"
        )
        assert ok is True
        row = (await db_session.execute(select(Notification))).scalar_one()
        assert row.sender_name == other_student.name
        assert row.sender_photo_url == "https://example.com/me.png"
        assert row.is_read is False
        assert row.related_link == "/project/p1"

    @pytest.mark.asyncio
    async def test_no_self_notification(self, db_session, student):
        ok = await Notifier(db_session).notify(student.id, student.id, NotificationType.COMMENT, "self")
        assert ok is False
        assert (await db_session.execute(select(Notification))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_system_sender_is_exempt(self, db_session):
        ok = await Notifier(db_session).notify(
            SYSTEM_SENDER, SYSTEM_SENDER, NotificationType.STATUS_UPDATE, "confirmation"
        )
        assert ok is True
        row = (await db_session.execute(select(Notification))).scalar_one()
        assert row.sender_id is None
        assert row.sender_name == "System"

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, db_session, student, other_student, monkeypatch):
        notifier = Notifier(db_session)

        async def broken(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(notifier, "_build", broken)
        ok = await notifier.notify(student.id, other_student.id, NotificationType.LIKE, "liked")
        assert ok is False

    @pytest.mark.asyncio
    async def test_notify_admins(self, db_session, student, admin_user, make_user):
        second_admin = await make_user(is_admin=True)
        written = await Notifier(db_session).notify_admins(
            student.id, NotificationType.SUBMISSION, "new project"
        )
        assert written == 2
        recipients = set((await db_session.execute(select(Notification.recipient_id))).scalars().all())
        assert recipients == {admin_user.id, second_admin.id}

    @pytest.mark.asyncio
    async def test_team_invite(self, db_session, student, other_student):
        ok = await Notifier(db_session).team_invited(
            other_student.id, student.id, student.name, "Smart Campus"
        )
        assert ok is True
        row = (await db_session.execute(select(Notification))).scalar_one()
        assert row.type == NotificationType.TEAM_INVITE
        assert row.related_link == "/student/workflow"


class TestNotificationService:
    """Recipient-side reads and read flags"""

    async def _seed(self, db_session, recipient, sender, count=3):
        notifier = Notifier(db_session)
        for i in range(count):
            await notifier.notify(recipient.id, sender.id, NotificationType.COMMENT, f"comment {i}")

    @pytest.mark.asyncio
    async def test_list_and_unread_count(self, db_session, student, other_student):
        await self._seed(db_session, student, other_student)
        service = NotificationService(db_session)

        page = await service.list_for(student.id)
        assert page["total"] == 3
        assert await service.unread_count(student.id) == 3
        assert await service.unread_count(other_student.id) == 0

    @pytest.mark.asyncio
    async def test_mark_read(self, db_session, student, other_student):
        await self._seed(db_session, student, other_student, count=2)
        service = NotificationService(db_session)
        first = (await service.list_for(student.id))["items"][0]

        updated = await service.mark_read(student.id, first.id)
        assert updated.is_read is True
        assert await service.unread_count(student.id) == 1
        unread = await service.list_for(student.id, unread_only=True)
        assert [n.id for n in unread["items"]] != [first.id]
        assert unread["total"] == 1

    @pytest.mark.asyncio
    async def test_cannot_touch_someone_elses(self, db_session, student, other_student):
        await self._seed(db_session, student, other_student, count=1)
        service = NotificationService(db_session)
        notification_id = (await service.list_for(student.id))["items"][0].id

        with pytest.raises(NotificationNotFoundError):
            await service.mark_read(other_student.id, notification_id)

    @pytest.mark.asyncio
    async def test_mark_all_read(self, db_session, student, other_student):
        await self._seed(db_session, student, other_student)
        service = NotificationService(db_session)
        assert await service.mark_all_read(student.id) == 3
        assert await service.unread_count(student.id) == 0
