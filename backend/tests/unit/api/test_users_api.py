"""
Unit Tests for User API Endpoints
"""
import pytest
from httpx import AsyncClient

from thesishub.core.security import create_identity_token
from thesishub.models.project import ProjectStatus


class TestOwnProfile:
    @pytest.mark.asyncio
    async def test_first_sign_in(self, client: AsyncClient, db_session):
        token = create_identity_token("fresh-uid", "c211234@ugrad.iiuc.ac.bd", "Fresh Student")
        headers = {"Authorization": f"Bearer {token}"}

        missing = await client.get('/api/v1/users/profile', headers=headers)
        assert missing.status_code == 404

        created = await client.post('/api/v1/users', json={}, headers=headers)
        assert created.status_code == 200
        assert created.json()["role"] == "student"
        assert created.json()["is_admin"] is False

        fetched = await client.get('/api/v1/users/profile', headers=headers)
        assert fetched.json()["id"] == "fresh-uid"

    @pytest.mark.asyncio
    async def test_outside_domain_rejected(self, client: AsyncClient, db_session):
        token = create_identity_token("gmail-uid", "someone@gmail.com", "Someone")
        response = await client.post(
            '/api/v1/users', json={}, headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "INVALID_EMAIL_DOMAIN"

    @pytest.mark.asyncio
    async def test_bad_token(self, client: AsyncClient):
        response = await client.get('/api/v1/users/profile', headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, student, student_headers):
        response = await client.put(
            '/api/v1/users/profile', json={"bio": "Loves compilers"}, headers=student_headers
        )
        assert response.status_code == 200
        assert response.json()["bio"] == "Loves compilers"


class TestPublicProfile:
    @pytest.mark.asyncio
    async def test_public_profile(self, client: AsyncClient, student, make_project):
        await make_project(student, ProjectStatus.APPROVED)

        response = await client.get(f'/api/v1/users/{student.id}')
        assert response.status_code == 200
        assert response.json()["stats"]["total_projects"] == 1
        assert "email" not in response.json()

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient):
        response = await client.get('/api/v1/users/nobody')
        assert response.status_code == 404


class TestPersonalLists:
    @pytest.mark.asyncio
    async def test_bookmarks_and_recently_viewed(self, client: AsyncClient, student, other_student,
                                                 other_student_headers, make_project):
        first = await make_project(student)
        second = await make_project(student)

        await client.post(f'/api/v1/projects/{first.id}/bookmark', headers=other_student_headers)
        await client.post(f'/api/v1/projects/{first.id}/view', headers=other_student_headers)
        await client.post(f'/api/v1/projects/{second.id}/view', headers=other_student_headers)

        bookmarks = await client.get('/api/v1/users/me/bookmarks', headers=other_student_headers)
        assert [p["id"] for p in bookmarks.json()] == [first.id]
        assert bookmarks.json()[0]["is_bookmarked"] is True

        recent = await client.get('/api/v1/users/me/recently-viewed', headers=other_student_headers)
        assert [p["id"] for p in recent.json()] == [second.id, first.id]
