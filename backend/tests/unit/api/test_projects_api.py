"""
Unit Tests for Project API Endpoints
"""
import pytest
from httpx import AsyncClient

from thesishub.core.exceptions import StorageUploadError
from thesishub.main import app
from thesishub.models.project import ProjectStatus
from thesishub.services.storage_service import get_storage_service

ABSTRACT = (
    "<p>A field study of peer code review practices in final year student teams, "
    "measuring defect detection and the effect of checklists on review quality.</p>"
)
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def form_data(**overrides) -> dict:
    data = {
        "title": "Peer Review in Student Teams",
        "abstract": ABSTRACT,
        "techStack": "Python, Django",
        "tags": "review, teams",
        "year": "2024",
    }
    data.update(overrides)
    return data


class BrokenStorage:
    async def upload_pdf(self, content, filename):
        raise StorageUploadError("pdfs/broken.pdf")


class TestListing:
    """Public listing"""

    @pytest.mark.asyncio
    async def test_anonymous_sees_approved_only(self, client: AsyncClient, student, make_project):
        approved = await make_project(student, ProjectStatus.APPROVED)
        await make_project(student, ProjectStatus.PENDING)

        response = await client.get('/api/v1/projects')
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert [p["id"] for p in body["items"]] == [approved.id]

    @pytest.mark.asyncio
    async def test_author_sees_own_pending(self, client: AsyncClient, student, student_headers, make_project):
        await make_project(student, ProjectStatus.APPROVED)
        await make_project(student, ProjectStatus.PENDING)

        response = await client.get('/api/v1/projects', headers=student_headers)
        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_invalid_sort_rejected(self, client: AsyncClient):
        response = await client.get('/api/v1/projects', params={"sort": "random"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_pending_project_hidden_from_anonymous(self, client: AsyncClient, student, make_project):
        pending = await make_project(student, ProjectStatus.PENDING)

        response = await client.get(f'/api/v1/projects/{pending.id}')
        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "error": {"code": "PROJECT_NOT_AVAILABLE", "message": "This project is not available", "details": {}},
        }

    @pytest.mark.asyncio
    async def test_missing_project(self, client: AsyncClient):
        response = await client.get('/api/v1/projects/does-not-exist')
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PROJECT_NOT_FOUND"


class TestSubmission:
    """Multipart create"""

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient):
        response = await client.post('/api/v1/projects', data=form_data())
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_create_with_pdf(self, client: AsyncClient, student, student_headers):
        response = await client.post(
            '/api/v1/projects',
            data=form_data(),
            files={"pdf": ("thesis.pdf", PDF_BYTES, "application/pdf")},
            headers=student_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["author_id"] == student.id
        assert body["tech_stack"] == ["Python", "Django"]
        assert body["has_pdf"] is True

        pdf = await client.get(f"/api/v1/projects/{body['id']}/pdf?download=true", headers=student_headers)
        assert pdf.status_code == 200
        assert pdf.content == PDF_BYTES
        assert pdf.headers["content-disposition"].startswith("attachment")

    @pytest.mark.asyncio
    async def test_non_pdf_rejected(self, client: AsyncClient, student_headers):
        response = await client.post(
            '/api/v1/projects',
            data=form_data(),
            files={"pdf": ("notes.txt", b"plain text", "text/plain")},
            headers=student_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_upload_failure_persists_nothing(self, client: AsyncClient, student_headers):
        app.dependency_overrides[get_storage_service] = lambda: BrokenStorage()

        response = await client.post(
            '/api/v1/projects',
            data=form_data(),
            files={"pdf": ("thesis.pdf", PDF_BYTES, "application/pdf")},
            headers=student_headers,
        )
        assert response.status_code == 502
        assert response.json()["error"]["code"] == "PDF_UPLOAD_FAILED"

        mine = await client.get('/api/v1/projects/user/me', headers=student_headers)
        assert mine.json() == []

    @pytest.mark.asyncio
    async def test_short_abstract(self, client: AsyncClient, student_headers):
        response = await client.post(
            '/api/v1/projects', data=form_data(abstract="<p>Too short</p>"), headers=student_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_PROJECT_DATA"


class TestOwnerActions:
    @pytest.mark.asyncio
    async def test_status_by_admin(self, client: AsyncClient, student, admin_headers, make_project):
        project = await make_project(student, ProjectStatus.PENDING)

        response = await client.patch(
            f'/api/v1/projects/{project.id}/status', json={"status": "approved"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

    @pytest.mark.asyncio
    async def test_edit_by_stranger(self, client: AsyncClient, student, other_student_headers, make_project):
        project = await make_project(student)

        response = await client.patch(
            f'/api/v1/projects/{project.id}', json={"title": "Hijacked"}, headers=other_student_headers
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "NOT_OWNER"

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient, student, student_headers, make_project):
        project = await make_project(student)

        response = await client.delete(f'/api/v1/projects/{project.id}', headers=student_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert (await client.get(f'/api/v1/projects/{project.id}')).status_code == 404


class TestEngagement:
    @pytest.mark.asyncio
    async def test_like_toggle(self, client: AsyncClient, student, other_student_headers, make_project):
        project = await make_project(student)
        url = f'/api/v1/projects/{project.id}/like'

        first = await client.post(url, headers=other_student_headers)
        assert first.json() == {"liked": True, "like_count": 1}
        second = await client.post(url, headers=other_student_headers)
        assert second.json() == {"liked": False, "like_count": 0}

    @pytest.mark.asyncio
    async def test_anonymous_view(self, client: AsyncClient, student, make_project):
        project = await make_project(student, view_count=4)

        response = await client.post(f'/api/v1/projects/{project.id}/view')
        assert response.status_code == 200
        assert response.json() == {"view_count": 5}

    @pytest.mark.asyncio
    async def test_comment_thread(self, client: AsyncClient, student, student_headers, other_student_headers,
                                  make_project):
        project = await make_project(student)
        base = f'/api/v1/projects/{project.id}/comments'

        created = await client.post(base, json={"content": "Great work!"}, headers=other_student_headers)
        assert created.status_code == 201
        comment_id = created.json()["id"]

        reply = await client.post(
            f'{base}/{comment_id}/replies', json={"content": "Thanks!"}, headers=student_headers
        )
        assert reply.status_code == 201

        thread = await client.get(base)
        assert [c["content"] for c in thread.json()] == ["Great work!"]
        assert [r["content"] for r in thread.json()[0]["replies"]] == ["Thanks!"]

        detail = await client.get(f'/api/v1/projects/{project.id}')
        assert detail.json()["comment_count"] == 2

        forbidden = await client.put(f'{base}/{comment_id}', json={"content": "edited"}, headers=student_headers)
        assert forbidden.status_code == 403

        deleted = await client.delete(f'{base}/{comment_id}', headers=other_student_headers)
        assert deleted.json() == {"success": True, "comment_count": 0}

    @pytest.mark.asyncio
    async def test_empty_comment(self, client: AsyncClient, student, student_headers, make_project):
        project = await make_project(student)
        response = await client.post(
            f'/api/v1/projects/{project.id}/comments', json={"content": "   "}, headers=student_headers
        )
        assert response.status_code == 400
