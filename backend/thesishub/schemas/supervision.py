from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal
from datetime import datetime

from thesishub.models.supervision_request import RequestStatus


class SupervisionRequestCreate(BaseModel):
    supervisor_id: str = Field(..., min_length=1)
    project_id: Optional[str] = None
    message: str = Field(..., max_length=1000)


class SupervisionRespond(BaseModel):
    action: Literal["approve", "reject"]
    response: Optional[str] = Field(None, max_length=1000)


class SupervisionRequestResponse(BaseModel):
    id: str
    student_id: str
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    supervisor_id: str
    supervisor_name: Optional[str] = None
    project_id: Optional[str] = None
    project_title: Optional[str] = None
    message: str
    status: RequestStatus
    response: Optional[str] = None
    created_at: datetime
    responded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
