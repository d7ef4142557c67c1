from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, Text, JSON, Index
import enum

from thesishub.core.database import Base
from thesishub.core.types import GUID, generate_uuid, utcnow


class ProjectStatus(str, enum.Enum):
    """Project moderation status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    # Legacy values still present in older records; readable, never settable
    COMPLETED = "completed"
    ARCHIVED = "archived"


SETTABLE_STATUSES = (ProjectStatus.PENDING, ProjectStatus.APPROVED, ProjectStatus.REJECTED)
LEGACY_FINISHED_STATUSES = (ProjectStatus.COMPLETED, ProjectStatus.ARCHIVED)


class Project(Base):
    """
    Thesis / project submission.

    Likes, bookmarks and the comment thread are embedded JSON collections
    with their counters stored beside them; every write must keep
    ``like_count == len(likes)`` and
    ``comment_count == sum(1 + len(c["replies"]) for c in comments)``.
    """
    __tablename__ = "projects"

    __table_args__ = (
        Index('ix_projects_author_id', 'author_id'),
        Index('ix_projects_status', 'status'),
        Index('ix_projects_supervisor_id', 'supervisor_id'),
        Index('ix_projects_created_at', 'created_at'),
        Index('ix_projects_author_status', 'author_id', 'status'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)

    title = Column(String(200), nullable=False)
    abstract = Column(Text, nullable=False)  # Rich text (HTML)
    tech_stack = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    year = Column(Integer, nullable=False)
    github_link = Column(String(500), nullable=True)

    # Author (denormalized display fields)
    author_id = Column(String(128), nullable=False)
    author_name = Column(String(100), nullable=False)
    author_email = Column(String(255), nullable=True)
    author_photo_url = Column(String(500), nullable=True)

    # Stored PDF
    pdf_url = Column(String(1000), nullable=True)
    pdf_key = Column(String(500), nullable=True)
    pdf_filename = Column(String(255), nullable=True)

    status = Column(
        SQLEnum(ProjectStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        default=ProjectStatus.PENDING,
        nullable=False,
    )

    # Supervisor triple, copied from the supervisor profile
    supervisor_id = Column(String(128), nullable=True)
    supervisor_name = Column(String(100), nullable=True)
    supervisor_department = Column(String(100), nullable=True)

    # Engagement
    likes = Column(JSON, nullable=False, default=list)  # user ids, set semantics
    like_count = Column(Integer, nullable=False, default=0)
    bookmarks = Column(JSON, nullable=False, default=list)  # user ids, set semantics
    view_count = Column(Integer, nullable=False, default=0)
    comments = Column(JSON, nullable=False, default=list)
    comment_count = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Project {self.title} ({self.status})>"
