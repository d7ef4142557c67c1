"""Role derivation from university email domains"""
from typing import Optional

from thesishub.core.config import settings
from thesishub.models.user import UserRole


def _domain(email: Optional[str]) -> str:
    if not email or "@" not in email:
        return ""
    return email.rsplit("@", 1)[1].strip().lower()


def is_student_email(email: Optional[str]) -> bool:
    return _domain(email) == settings.STUDENT_EMAIL_DOMAIN.lower()


def is_supervisor_email(email: Optional[str]) -> bool:
    # The student domain is a subdomain of the staff one, so exclude it explicitly
    return _domain(email) == settings.SUPERVISOR_EMAIL_DOMAIN.lower() and not is_student_email(email)


def is_university_email(email: Optional[str]) -> bool:
    return is_student_email(email) or is_supervisor_email(email)


def derive_role(email: Optional[str]) -> Optional[UserRole]:
    """Role implied by the email domain, or None when the domain implies none"""
    if is_student_email(email):
        return UserRole.STUDENT
    if is_supervisor_email(email):
        return UserRole.SUPERVISOR
    return None
