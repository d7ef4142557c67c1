from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Any
from datetime import datetime


class ReplyResponse(BaseModel):
    id: str
    author_id: str
    author_name: str
    author_photo_url: Optional[str] = None
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class CommentResponse(ReplyResponse):
    replies: List[ReplyResponse] = []


class ProjectResponse(BaseModel):
    """Project as returned by list endpoints (no comment thread)"""
    id: str
    title: str
    abstract: str
    tech_stack: List[str] = []
    tags: List[str] = []
    year: int
    github_link: Optional[str] = None
    author_id: str
    author_name: str
    author_photo_url: Optional[str] = None
    pdf_url: Optional[str] = None
    has_pdf: bool = False
    status: str
    supervisor_id: Optional[str] = None
    supervisor_name: Optional[str] = None
    supervisor_department: Optional[str] = None
    like_count: int = 0
    bookmark_count: int = 0
    view_count: int = 0
    comment_count: int = 0
    is_liked: bool = False
    is_bookmarked: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def build(cls, project: Any, viewer_id: Optional[str] = None, **extra):
        likes = project.likes or []
        bookmarks = project.bookmarks or []
        return cls(
            id=str(project.id),
            title=project.title,
            abstract=project.abstract,
            tech_stack=list(project.tech_stack or []),
            tags=list(project.tags or []),
            year=project.year,
            github_link=project.github_link,
            author_id=project.author_id,
            author_name=project.author_name,
            author_photo_url=project.author_photo_url,
            pdf_url=project.pdf_url,
            has_pdf=bool(project.pdf_key),
            status=project.status.value if hasattr(project.status, "value") else project.status,
            supervisor_id=project.supervisor_id,
            supervisor_name=project.supervisor_name,
            supervisor_department=project.supervisor_department,
            like_count=project.like_count or 0,
            bookmark_count=len(bookmarks),
            view_count=project.view_count or 0,
            comment_count=project.comment_count or 0,
            is_liked=viewer_id is not None and viewer_id in likes,
            is_bookmarked=viewer_id is not None and viewer_id in bookmarks,
            created_at=project.created_at,
            updated_at=project.updated_at,
            **extra,
        )


class ProjectDetailResponse(ProjectResponse):
    """Single project with its comment thread"""
    comments: List[CommentResponse] = []

    @classmethod
    def build(cls, project: Any, viewer_id: Optional[str] = None, **extra):
        return super().build(project, viewer_id, comments=list(project.comments or []), **extra)


class ProjectUpdate(BaseModel):
    """Partial edit; only supplied fields are validated and applied"""
    title: Optional[str] = None
    abstract: Optional[str] = None
    tech_stack: Optional[Any] = None
    tags: Optional[Any] = None
    year: Optional[Any] = None
    github_link: Optional[str] = None
    author: Optional[str] = None
    supervisor_id: Optional[str] = None
    supervisor: Optional[str] = None  # Legacy free-text supervisor name


class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class LikeResponse(BaseModel):
    liked: bool
    like_count: int


class BookmarkResponse(BaseModel):
    bookmarked: bool
    bookmark_count: int


class ViewResponse(BaseModel):
    view_count: int


class ProjectListResponse(BaseModel):
    items: List[ProjectResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=2000)


class CommentDeleteResponse(BaseModel):
    success: bool = True
    comment_count: int
