from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, Text, JSON
import enum

from thesishub.core.database import Base
from thesishub.core.types import utcnow


class UserRole(str, enum.Enum):
    """Academic roles, derived from the university email domain"""
    STUDENT = "student"
    SUPERVISOR = "supervisor"


class User(Base):
    """User profile keyed by the identity provider's stable id"""
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False, default="User")

    # None means the email domain gave no role and none was chosen
    role = Column(
        SQLEnum(UserRole, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=True,
        index=True,
    )
    # Only ever changed by the set_admin operator script
    is_admin = Column(Boolean, default=False, nullable=False)

    # Profile fields
    photo_url = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String(100), nullable=True)
    website = Column(String(200), nullable=True)
    department = Column(String(100), nullable=True)
    skills = Column(JSON, nullable=False, default=list)

    # Supervisor profile fields
    designation = Column(String(100), nullable=True)
    research_areas = Column(JSON, nullable=False, default=list)
    office_hours = Column(String(200), nullable=True)
    max_students = Column(Integer, nullable=False, default=5)
    social_links = Column(JSON, nullable=False, default=dict)
    supervised_projects = Column(JSON, nullable=False, default=list)  # project ids, set semantics

    # Most recent first, capped at RECENT_VIEWS_LIMIT
    recently_viewed = Column(JSON, nullable=False, default=list)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_login = Column(DateTime, nullable=True)

    @property
    def is_supervisor(self) -> bool:
        return self.role == UserRole.SUPERVISOR

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    def __repr__(self):
        return f"<User {self.email}>"
