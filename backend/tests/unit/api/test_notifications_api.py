"""
Unit Tests for Notification API Endpoints
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from thesishub.core.security import create_identity_token
from thesishub.models.notification import Notification, NotificationType
from thesishub.services.notification_service import Notifier


class TestNotificationsApi:
    @pytest.mark.asyncio
    async def test_like_produces_notification(self, client: AsyncClient, student, student_headers,
                                              other_student, other_student_headers, make_project):
        project = await make_project(student)
        await client.post(f'/api/v1/projects/{project.id}/like', headers=other_student_headers)

        count = await client.get('/api/v1/notifications/unread-count', headers=student_headers)
        assert count.json() == {"unread_count": 1}

        listing = await client.get('/api/v1/notifications', headers=student_headers)
        items = listing.json()["items"]
        assert len(items) == 1
        assert items[0]["type"] == "like"
        assert items[0]["sender_id"] == other_student.id

        read = await client.patch(f"/api/v1/notifications/{items[0]['id']}/read", headers=student_headers)
        assert read.status_code == 200
        assert read.json()["is_read"] is True

        unread = await client.get('/api/v1/notifications', params={"unreadOnly": "true"}, headers=student_headers)
        assert unread.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_own_like_is_silent(self, client: AsyncClient, student, student_headers, make_project):
        project = await make_project(student)
        await client.post(f'/api/v1/projects/{project.id}/like', headers=student_headers)

        count = await client.get('/api/v1/notifications/unread-count', headers=student_headers)
        assert count.json()["unread_count"] == 0

    @pytest.mark.asyncio
    async def test_read_all(self, client: AsyncClient, student, student_headers, make_user, make_project):
        project = await make_project(student)
        for _ in range(2):
            fan = await make_user()
            token = create_identity_token(fan.id, fan.email, fan.name)
            await client.post(
                f'/api/v1/projects/{project.id}/like', headers={"Authorization": f"Bearer {token}"}
            )

        response = await client.patch('/api/v1/notifications/read-all', headers=student_headers)
        assert response.json() == {"success": True, "updated": 2}
        count = await client.get('/api/v1/notifications/unread-count', headers=student_headers)
        assert count.json()["unread_count"] == 0

    @pytest.mark.asyncio
    async def test_someone_elses_notification(self, client: AsyncClient, student, other_student,
                                              other_student_headers, db_session):
        await Notifier(db_session).notify(student.id, other_student.id, NotificationType.COMMENT, "hi")
        notification_id = (await db_session.execute(select(Notification.id))).scalar_one()

        response = await client.patch(
            f'/api/v1/notifications/{notification_id}/read', headers=other_student_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient):
        response = await client.get('/api/v1/notifications')
        assert response.status_code == 401
