"""
Unit Tests for email-domain role derivation
"""
from thesishub.models.user import UserRole
from thesishub.utils.email_roles import derive_role, is_university_email


class TestDeriveRole:
    def test_student_domain(self):
        assert derive_role("c201001@ugrad.iiuc.ac.bd") == UserRole.STUDENT

    def test_staff_domain(self):
        assert derive_role("rahman@iiuc.ac.bd") == UserRole.SUPERVISOR

    def test_domain_is_case_insensitive(self):
        assert derive_role("Rahman@IIUC.AC.BD") == UserRole.SUPERVISOR

    def test_other_domains_give_no_role(self):
        assert derive_role("someone@gmail.com") is None
        assert derive_role("someone@sub.iiuc.ac.bd") is None

    def test_malformed_email(self):
        assert derive_role("") is None
        assert derive_role(None) is None
        assert derive_role("no-at-sign") is None

    def test_university_email(self):
        assert is_university_email("a@ugrad.iiuc.ac.bd")
        assert is_university_email("b@iiuc.ac.bd")
        assert not is_university_email("c@example.com")
