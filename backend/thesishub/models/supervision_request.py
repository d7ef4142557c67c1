from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Text, Index
import enum

from thesishub.core.database import Base
from thesishub.core.types import GUID, generate_uuid, utcnow


class RequestStatus(str, enum.Enum):
    """pending -> approved | rejected, terminal afterwards"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SupervisionRequest(Base):
    """A student's request for a supervisor, optionally tied to one project"""
    __tablename__ = "supervision_requests"

    __table_args__ = (
        Index('ix_requests_supervisor_status', 'supervisor_id', 'status'),
        Index('ix_requests_student_id', 'student_id'),
        Index('ix_requests_triple', 'student_id', 'supervisor_id', 'project_id', 'status'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)

    student_id = Column(String(128), nullable=False)
    student_name = Column(String(100), nullable=True)
    student_email = Column(String(255), nullable=True)

    supervisor_id = Column(String(128), nullable=False)
    supervisor_name = Column(String(100), nullable=True)

    project_id = Column(GUID, nullable=True)
    project_title = Column(String(200), nullable=True)

    message = Column(Text, nullable=False)
    status = Column(
        SQLEnum(RequestStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        default=RequestStatus.PENDING,
        nullable=False,
    )
    response = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    responded_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<SupervisionRequest {self.student_id} -> {self.supervisor_id} ({self.status})>"
