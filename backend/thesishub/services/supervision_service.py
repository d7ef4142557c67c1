"""
Supervision Request Workflow

    pending --approve--> approved   (terminal)
    pending --reject-->  rejected   (terminal)

Approving a request tied to a project writes the request status, the
project's supervisor fields and the supervisor's supervised set in a
single database transaction.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.exceptions import (
    DuplicateRequestError,
    InvalidStateError,
    NotOwnerError,
    RequestNotFoundError,
    SupervisorAlreadyAssignedError,
    SupervisorNotFoundError,
    ValidationError,
)
from thesishub.core.logging_config import logger
from thesishub.core.types import utcnow
from thesishub.models.project import Project
from thesishub.models.supervision_request import RequestStatus, SupervisionRequest
from thesishub.models.user import User, UserRole
from thesishub.modules.auth.dependencies import Caller
from thesishub.schemas.supervision import SupervisionRequestResponse
from thesishub.services.notification_service import Notifier
from thesishub.services.project_service import ProjectService

MESSAGE_MAX_CHARS = 1000


def _user_card(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "photo_url": user.photo_url,
        "department": user.department,
        "designation": user.designation,
    }


class SupervisionService:
    def __init__(self, db: AsyncSession, notifier: Optional[Notifier] = None):
        self.db = db
        self.notifier = notifier or Notifier(db)
        self.projects = ProjectService(db, notifier=self.notifier)

    async def _users_by_id(self, ids) -> dict:
        ids = {i for i in ids if i}
        if not ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(ids)))
        return {u.id: u for u in result.scalars().all()}

    # ========== Student side ==========

    async def send_request(self, student: Caller, supervisor_id: str, message: str,
                           project_id: Optional[str] = None) -> SupervisionRequestResponse:
        text = (message or "").strip()
        if not text:
            raise ValidationError("Message is required", field="message")
        if len(text) > MESSAGE_MAX_CHARS:
            raise ValidationError(f"Message cannot exceed {MESSAGE_MAX_CHARS} characters", field="message")

        result = await self.db.execute(select(User).where(User.id == supervisor_id))
        supervisor = result.scalar_one_or_none()
        if supervisor is None:
            raise SupervisorNotFoundError(supervisor_id)
        if supervisor.role != UserRole.SUPERVISOR:
            raise ValidationError("Selected user is not a supervisor", field="supervisor_id")

        project = None
        if project_id:
            project = await self.projects.get_model(project_id)
            if project.author_id != student.id:
                raise NotOwnerError("You can only request supervision for your own project")
            if project.supervisor_id:
                raise SupervisorAlreadyAssignedError(project.id)

        duplicate = await self.db.execute(
            select(SupervisionRequest.id).where(
                SupervisionRequest.student_id == student.id,
                SupervisionRequest.supervisor_id == supervisor_id,
                SupervisionRequest.project_id == project_id if project_id else SupervisionRequest.project_id.is_(None),
                SupervisionRequest.status == RequestStatus.PENDING,
            ).limit(1)
        )
        if duplicate.scalar_one_or_none() is not None:
            raise DuplicateRequestError()

        request = SupervisionRequest(
            student_id=student.id,
            student_name=student.display_name,
            student_email=student.email,
            supervisor_id=supervisor.id,
            supervisor_name=supervisor.name,
            project_id=project.id if project else None,
            project_title=project.title if project else None,
            message=text,
            status=RequestStatus.PENDING,
        )
        self.db.add(request)
        await self.db.commit()
        await self.db.refresh(request)

        logger.log_workflow_event(
            "supervision", "requested", request_id=request.id,
            student_id=student.id, supervisor_id=supervisor.id, project_id=request.project_id,
        )
        response = SupervisionRequestResponse.model_validate(request)

        await self.notifier.supervision_requested(
            supervisor.id, student.id, student.display_name, request.project_title, request.project_id
        )
        return response

    async def my_requests(self, student: Caller) -> List[dict]:
        """Student's requests, newest first, with the supervisor's card"""
        result = await self.db.execute(
            select(SupervisionRequest)
            .where(SupervisionRequest.student_id == student.id)
            .order_by(SupervisionRequest.created_at.desc())
        )
        requests = list(result.scalars().all())
        supervisors = await self._users_by_id(r.supervisor_id for r in requests)
        return [
            {
                **SupervisionRequestResponse.model_validate(r).model_dump(),
                "supervisor": _user_card(supervisors.get(r.supervisor_id)),
            }
            for r in requests
        ]

    # ========== Supervisor side ==========

    async def pending_requests(self, supervisor: Caller) -> List[dict]:
        """Open requests addressed to the supervisor, oldest first"""
        result = await self.db.execute(
            select(SupervisionRequest)
            .where(
                SupervisionRequest.supervisor_id == supervisor.id,
                SupervisionRequest.status == RequestStatus.PENDING,
            )
            .order_by(SupervisionRequest.created_at.asc())
        )
        requests = list(result.scalars().all())
        students = await self._users_by_id(r.student_id for r in requests)

        project_ids = {r.project_id for r in requests if r.project_id}
        projects = {}
        if project_ids:
            rows = await self.db.execute(select(Project).where(Project.id.in_(project_ids)))
            projects = {p.id: p for p in rows.scalars().all()}

        items = []
        for r in requests:
            project = projects.get(r.project_id)
            items.append({
                **SupervisionRequestResponse.model_validate(r).model_dump(),
                "student": _user_card(students.get(r.student_id)),
                "project": {
                    "id": project.id,
                    "title": project.title,
                    "status": project.status.value,
                    "year": project.year,
                } if project else None,
            })
        return items

    async def respond(self, supervisor: Caller, request_id: str, action: str,
                      response: Optional[str] = None) -> SupervisionRequestResponse:
        if action not in ("approve", "reject"):
            raise ValidationError("Action must be 'approve' or 'reject'", field="action")

        result = await self.db.execute(
            select(SupervisionRequest).where(SupervisionRequest.id == request_id).with_for_update()
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise RequestNotFoundError(request_id)
        if request.supervisor_id != supervisor.id:
            raise NotOwnerError("This request is not addressed to you")
        if request.status != RequestStatus.PENDING:
            raise InvalidStateError("This request has already been responded to")

        approved = action == "approve"
        project = None
        if approved and request.project_id:
            project = await self._lock_project(supervisor, request)

        request.status = RequestStatus.APPROVED if approved else RequestStatus.REJECTED
        request.response = (response or "").strip() or None
        request.responded_at = utcnow()
        if project is not None:
            await self._assign(supervisor, project)

        # Request, project and supervisor profile are committed together
        await self.db.commit()
        await self.db.refresh(request)

        logger.log_workflow_event(
            "supervision", request.status.value, request_id=request.id,
            supervisor_id=supervisor.id, project_id=request.project_id,
        )
        result_model = SupervisionRequestResponse.model_validate(request)

        await self.notifier.supervision_answered(
            request.student_id, supervisor.id, supervisor.display_name, approved,
            request.project_title, request.project_id,
        )
        return result_model

    async def _lock_project(self, supervisor: Caller, request: SupervisionRequest) -> Optional[Project]:
        result = await self.db.execute(
            select(Project).where(Project.id == request.project_id).with_for_update()
        )
        project = result.scalar_one_or_none()
        if project is None:
            # Project deleted after the request was sent; the approval still stands
            logger.warning(f"Approved request {request.id} refers to missing project {request.project_id}")
            return None
        if project.supervisor_id and project.supervisor_id != supervisor.id:
            raise SupervisorAlreadyAssignedError(project.id)
        return project

    async def _assign(self, supervisor: Caller, project: Project) -> None:
        profile = supervisor.user
        if profile is None:
            profile = (await self.db.execute(select(User).where(User.id == supervisor.id))).scalar_one()
        ProjectService.assign_supervisor(project, profile)

        supervised = list(profile.supervised_projects or [])
        if project.id not in supervised:
            profile.supervised_projects = supervised + [project.id]
