"""
Supervisor API

- Directory and browse (students)
- Supervision requests: send, list, respond
- Supervisor profile, supervised projects/students and statistics
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.database import get_db
from thesishub.modules.auth.dependencies import (
    Caller,
    get_caller,
    get_optional_caller,
    require_student,
    require_supervisor,
)
from thesishub.schemas.project import ProjectListResponse
from thesishub.schemas.supervision import (
    SupervisionRequestCreate,
    SupervisionRequestResponse,
    SupervisionRespond,
)
from thesishub.schemas.user import SupervisorProfileUpdate
from thesishub.services.supervision_service import SupervisionService
from thesishub.services.supervisor_service import SupervisorService

router = APIRouter()


@router.get("")
async def list_supervisors(db: AsyncSession = Depends(get_db)) -> List[dict]:
    """All supervisors with their current load"""
    return await SupervisorService(db).list_supervisors()


@router.get("/browse")
async def browse_supervisors(
    department: Optional[str] = None,
    research_area: Optional[str] = Query(None, alias="researchArea"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    caller: Caller = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await SupervisorService(db).browse(department, research_area, page, limit)


# ========== Supervision requests ==========

@router.post("/request", response_model=SupervisionRequestResponse, status_code=status.HTTP_201_CREATED)
async def send_request(
    body: SupervisionRequestCreate,
    caller: Caller = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    """Ask a supervisor to supervise, optionally for one unassigned project"""
    return await SupervisionService(db).send_request(
        caller, body.supervisor_id, body.message, project_id=body.project_id
    )


@router.get("/my-requests")
async def my_requests(
    caller: Caller = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> List[dict]:
    return await SupervisionService(db).my_requests(caller)


@router.get("/pending-requests")
async def pending_requests(
    caller: Caller = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
) -> List[dict]:
    return await SupervisionService(db).pending_requests(caller)


@router.patch("/request/{request_id}/respond", response_model=SupervisionRequestResponse)
async def respond_to_request(
    request_id: str,
    body: SupervisionRespond,
    caller: Caller = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject; approving assigns the attached project"""
    return await SupervisionService(db).respond(caller, request_id, body.action, body.response)


# ========== Supervisor pages ==========

@router.get("/{supervisor_id}/profile")
async def supervisor_profile(
    supervisor_id: str,
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await SupervisorService(db).profile(caller, supervisor_id)


@router.patch("/{supervisor_id}/profile")
async def update_supervisor_profile(
    supervisor_id: str,
    body: SupervisorProfileUpdate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await SupervisorService(db).update_profile(caller, supervisor_id, body)


@router.get("/{supervisor_id}/projects", response_model=ProjectListResponse)
async def supervised_projects(
    supervisor_id: str,
    project_status: Optional[str] = Query(None, alias="status"),
    year: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    return await SupervisorService(db).supervised_projects(
        caller, supervisor_id, status=project_status, year=year, page=page, limit=limit
    )


@router.get("/{supervisor_id}/students")
async def supervised_students(
    supervisor_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> List[dict]:
    return await SupervisorService(db).students(caller, supervisor_id)


@router.get("/{supervisor_id}/stats")
async def supervisor_stats(
    supervisor_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await SupervisorService(db).stats(caller, supervisor_id)
