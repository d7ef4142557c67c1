"""
Custom Exceptions for ThesisHub
===============================

Every domain failure is raised as a ThesisHubError subclass. The API layer
maps them to HTTP responses through ``status_code`` and ``error_response()``.

Usage:
    from thesishub.core.exceptions import ProjectNotFoundError, NotOwnerError

    if not project:
        raise ProjectNotFoundError(project_id)
    if project.author_id != caller.id:
        raise NotOwnerError("Only the author can edit this project")
"""

from typing import Optional, Any, Dict


class ThesisHubError(Exception):
    """Base exception for all ThesisHub errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(ThesisHubError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidProjectDataError(ValidationError):
    """Project data is invalid or incomplete"""

    def __init__(self, message: str = "Invalid project data", field: Optional[str] = None):
        super().__init__(message, field=field)
        self.code = "INVALID_PROJECT_DATA"


# ============================================
# Authentication Errors (401-type)
# ============================================

class AuthenticationError(ThesisHubError):
    """Caller identity could not be established"""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="AUTH_FAILED")


class TokenExpiredError(AuthenticationError):
    """Bearer token has expired"""

    def __init__(self):
        super().__init__("Token has expired")
        self.code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """Bearer token is invalid"""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


# ============================================
# Authorization Errors (403-type)
# ============================================

class AccessDeniedError(ThesisHubError):
    """Caller is identified but not allowed to do this"""

    status_code = 403

    def __init__(self, message: str = "Access denied", code: str = "ACCESS_DENIED"):
        super().__init__(message, code=code)


class NotOwnerError(AccessDeniedError):
    """Caller does not own the resource"""

    def __init__(self, message: str = "You do not own this resource"):
        super().__init__(message, code="NOT_OWNER")


class AdminRequiredError(AccessDeniedError):
    def __init__(self):
        super().__init__("Admin access required", code="ADMIN_REQUIRED")


class RoleRequiredError(AccessDeniedError):
    """Caller's stored role does not allow the action"""

    def __init__(self, *roles: str):
        super().__init__(
            f"This action requires role: {' or '.join(roles)}",
            code="ROLE_REQUIRED"
        )
        self.details["required_roles"] = list(roles)


class InvalidEmailDomainError(AccessDeniedError):
    """New accounts must use a university email address"""

    def __init__(self, email: str):
        super().__init__(
            "Only university email addresses can register",
            code="INVALID_EMAIL_DOMAIN"
        )
        self.details["email"] = email


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(ThesisHubError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ProjectNotFoundError(ResourceNotFoundError):
    def __init__(self, project_id: str):
        super().__init__("Project", project_id)


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class SupervisorNotFoundError(ResourceNotFoundError):
    def __init__(self, supervisor_id: str):
        super().__init__("Supervisor", supervisor_id)


class RequestNotFoundError(ResourceNotFoundError):
    """Supervision request not found"""

    def __init__(self, request_id: str):
        super().__init__("Request", request_id)


class CommentNotFoundError(ResourceNotFoundError):
    def __init__(self, comment_id: str):
        super().__init__("Comment", comment_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(ThesisHubError):
    """Request conflicts with the current state"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, code=code)


class DuplicateRequestError(ConflictError):
    """A pending request for the same student/supervisor/project exists"""

    def __init__(self):
        super().__init__(
            "You already have a pending request with this supervisor for this project",
            code="DUPLICATE_REQUEST"
        )


class SupervisorAlreadyAssignedError(ConflictError):
    def __init__(self, project_id: str):
        super().__init__("This project already has a supervisor", code="ALREADY_ASSIGNED")
        self.details["project_id"] = project_id


class InvalidStateError(ConflictError):
    """Workflow record is not in a state that allows the action"""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_STATE")


# ============================================
# Upstream / Storage Errors (502-type)
# ============================================

class UpstreamError(ThesisHubError):
    """A collaborator service failed"""

    status_code = 502

    def __init__(self, message: str, code: str = "UPSTREAM_FAILURE"):
        super().__init__(message, code=code)


class StorageUploadError(UpstreamError):
    """PDF upload to object storage failed"""

    def __init__(self, key: str, message: str = "Failed to upload PDF"):
        super().__init__(message, code="PDF_UPLOAD_FAILED")
        self.details["storage_key"] = key


class StorageDownloadError(UpstreamError):
    """PDF could not be fetched from object storage"""

    def __init__(self, key: str, message: str = "Failed to fetch PDF"):
        super().__init__(message, code="PDF_DOWNLOAD_FAILED")
        self.details["storage_key"] = key


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: ThesisHubError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
