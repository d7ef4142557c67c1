"""
Project API

- Listing with filters, sorting and pagination (visibility-aware)
- Submission with optional PDF upload
- Edit, status change and delete (author or admin)
- Likes, bookmarks, view tracking and PDF access
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.config import settings
from thesishub.core.database import get_db
from thesishub.core.exceptions import ValidationError
from thesishub.modules.auth.dependencies import Caller, get_caller, get_optional_caller
from thesishub.schemas.project import (
    BookmarkResponse,
    LikeResponse,
    ProjectDetailResponse,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
    StatusUpdate,
    ViewResponse,
)
from thesishub.services.storage_service import PDF_CONTENT_TYPE, StorageService, get_storage_service
from thesishub.services.project_service import PdfUpload, ProjectFilters, ProjectService

router = APIRouter()


async def read_pdf(upload: Optional[UploadFile]) -> Optional[PdfUpload]:
    """Validate an uploaded PDF; None when no file was sent"""
    if upload is None or not upload.filename:
        return None
    if upload.content_type != PDF_CONTENT_TYPE:
        raise ValidationError("Only PDF files are allowed", field="pdf")
    content = await upload.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(
            f"PDF cannot exceed {settings.MAX_UPLOAD_SIZE // 1024 // 1024}MB", field="pdf"
        )
    if not content:
        raise ValidationError("PDF file is empty", field="pdf")
    return PdfUpload(content=content, filename=upload.filename)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    tech_stack: Optional[str] = Query(None, alias="techStack"),
    author: Optional[str] = None,
    year: Optional[int] = None,
    supervisor: Optional[str] = None,
    keywords: Optional[str] = None,
    project_status: Optional[str] = Query(None, alias="status"),
    sort: str = Query("date", pattern="^(date|title|views|likes)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    """Projects visible to the caller, newest first by default"""
    filters = ProjectFilters(
        tech_stack=tech_stack,
        author=author,
        year=year,
        supervisor=supervisor,
        keywords=keywords,
        status=project_status,
        sort=sort,
        page=page,
        limit=limit,
    )
    return await ProjectService(db).list_projects(caller, filters)


@router.get("/user/{user_id}", response_model=List[ProjectResponse])
async def get_user_projects(
    user_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """All projects of one author; 'me' is the caller"""
    return await ProjectService(db).get_user_projects(caller, user_id)


@router.get("/{project_id}", response_model=ProjectDetailResponse)
async def get_project(
    project_id: str,
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).get_project(caller, project_id)


@router.post("", response_model=ProjectDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    title: str = Form(...),
    abstract: str = Form(...),
    tech_stack: Optional[str] = Form(None, alias="techStack"),
    tags: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    github_link: Optional[str] = Form(None, alias="githubLink"),
    author: Optional[str] = Form(None),
    supervisor_id: Optional[str] = Form(None, alias="supervisorId"),
    supervisor: Optional[str] = Form(None),
    pdf: Optional[UploadFile] = File(None),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    """Submit a project for review (multipart form, optional PDF)"""
    upload = await read_pdf(pdf)
    data = {
        "title": title,
        "abstract": abstract,
        "tech_stack": tech_stack,
        "tags": tags,
        "year": year,
        "github_link": github_link,
        "author": author,
        "supervisor_id": supervisor_id,
        "supervisor": supervisor,
    }
    return await ProjectService(db, storage=storage).create_project(caller, data, upload)


@router.patch("/{project_id}", response_model=ProjectDetailResponse)
async def edit_project(
    project_id: str,
    changes: ProjectUpdate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).edit_project(caller, project_id, changes)


@router.patch("/{project_id}/status", response_model=ProjectResponse)
async def update_project_status(
    project_id: str,
    body: StatusUpdate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Set pending / approved / rejected (author or admin)"""
    return await ProjectService(db).update_status(caller, project_id, body.status)


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    await ProjectService(db).delete_project(caller, project_id)
    return {"success": True, "message": "Project deleted successfully"}


@router.get("/{project_id}/pdf")
async def get_project_pdf(
    project_id: str,
    download: bool = False,
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    """Serve the stored PDF inline, or as an attachment with ?download=true"""
    content, filename = await ProjectService(db, storage=storage).get_pdf(caller, project_id)
    disposition = "attachment" if download else "inline"
    return Response(
        content=content,
        media_type=PDF_CONTENT_TYPE,
        headers={"Content-Disposition": f'{disposition}; filename="{filename}"'},
    )


@router.post("/{project_id}/like", response_model=LikeResponse)
async def toggle_like(
    project_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).toggle_like(caller, project_id)


@router.post("/{project_id}/bookmark", response_model=BookmarkResponse)
async def toggle_bookmark(
    project_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).toggle_bookmark(caller, project_id)


@router.post("/{project_id}/view", response_model=ViewResponse)
async def track_view(
    project_id: str,
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).track_view(caller, project_id)
