from thesishub.services.storage_service import StorageService, storage_service
from thesishub.services.notification_service import Notifier, NotificationService
from thesishub.services.project_service import ProjectService
from thesishub.services.comment_service import CommentService
from thesishub.services.supervision_service import SupervisionService
from thesishub.services.supervisor_service import SupervisorService
from thesishub.services.user_service import UserService

__all__ = [
    "StorageService",
    "storage_service",
    "Notifier",
    "NotificationService",
    "ProjectService",
    "CommentService",
    "SupervisionService",
    "SupervisorService",
    "UserService",
]
