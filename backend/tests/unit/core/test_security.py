"""
Unit Tests for the identity resolver
"""
import pytest
from datetime import timedelta
from jose import jwt

from thesishub.core.config import settings
from thesishub.core.exceptions import InvalidTokenError, TokenExpiredError
from thesishub.core.security import create_identity_token, decode_identity_token


class TestDecodeIdentityToken:
    """Bearer token verification"""

    def test_round_trip_identity(self):
        token = create_identity_token("uid-1", "a@ugrad.iiuc.ac.bd", "Amina")
        identity = decode_identity_token(token)

        assert identity.id == "uid-1"
        assert identity.email == "a@ugrad.iiuc.ac.bd"
        assert identity.name == "Amina"

    def test_name_falls_back_to_email_local_part(self):
        token = create_identity_token("uid-2", "karim@iiuc.ac.bd")
        assert decode_identity_token(token).name == "karim"

    def test_email_is_normalised(self):
        token = jwt.encode(
            {"sub": "uid-3", "email": "  Mixed@IIUC.ac.bd "},
            settings.IDENTITY_JWT_SECRET,
            algorithm=settings.IDENTITY_JWT_ALGORITHM,
        )
        assert decode_identity_token(token).email == "mixed@iiuc.ac.bd"

    def test_uid_claim_is_accepted(self):
        token = jwt.encode(
            {"uid": "legacy-uid", "email": "x@iiuc.ac.bd"},
            settings.IDENTITY_JWT_SECRET,
            algorithm=settings.IDENTITY_JWT_ALGORITHM,
        )
        assert decode_identity_token(token).id == "legacy-uid"

    def test_expired_token(self):
        token = create_identity_token("uid-4", "a@iiuc.ac.bd", expires_delta=timedelta(seconds=-10))
        with pytest.raises(TokenExpiredError):
            decode_identity_token(token)

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "uid-5"}, "some-other-secret", algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            decode_identity_token(token)

    def test_missing_subject(self):
        token = jwt.encode(
            {"email": "a@iiuc.ac.bd"},
            settings.IDENTITY_JWT_SECRET,
            algorithm=settings.IDENTITY_JWT_ALGORITHM,
        )
        with pytest.raises(InvalidTokenError):
            decode_identity_token(token)

    def test_garbage(self):
        with pytest.raises(InvalidTokenError):
            decode_identity_token("not-a-jwt")
