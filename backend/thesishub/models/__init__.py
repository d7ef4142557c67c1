# Re-export all models for convenient imports
from thesishub.models.user import User, UserRole
from thesishub.models.project import Project, ProjectStatus, SETTABLE_STATUSES, LEGACY_FINISHED_STATUSES
from thesishub.models.supervision_request import SupervisionRequest, RequestStatus
from thesishub.models.notification import Notification, NotificationType, SYSTEM_SENDER

__all__ = [
    "User",
    "UserRole",
    "Project",
    "ProjectStatus",
    "SETTABLE_STATUSES",
    "LEGACY_FINISHED_STATUSES",
    "SupervisionRequest",
    "RequestStatus",
    "Notification",
    "NotificationType",
    "SYSTEM_SENDER",
]
