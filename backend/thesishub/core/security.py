"""
Identity resolution for bearer tokens issued by the external identity provider.

ThesisHub never issues credentials itself in production; it only verifies
them. ``create_identity_token`` exists for local development and tests.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, ExpiredSignatureError, jwt

from thesishub.core.config import settings
from thesishub.core.exceptions import InvalidTokenError, TokenExpiredError


@dataclass(frozen=True)
class Identity:
    """Verified caller identity: stable id, email and display name"""
    id: str
    email: str
    name: str


def _decode_options() -> Dict[str, Any]:
    return {
        "verify_aud": bool(settings.IDENTITY_AUDIENCE),
        "verify_iss": bool(settings.IDENTITY_ISSUER),
    }


def decode_identity_token(token: str) -> Identity:
    """Verify a bearer token and return the identity it carries"""
    try:
        payload = jwt.decode(
            token,
            settings.IDENTITY_JWT_SECRET,
            algorithms=[settings.IDENTITY_JWT_ALGORITHM],
            audience=settings.IDENTITY_AUDIENCE or None,
            issuer=settings.IDENTITY_ISSUER or None,
            options=_decode_options(),
        )
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError as e:
        raise InvalidTokenError(f"Could not validate credentials: {e}")

    user_id = payload.get("sub") or payload.get("uid") or payload.get("user_id")
    if not user_id:
        raise InvalidTokenError("Token has no subject")

    email = (payload.get("email") or "").strip().lower()
    name = payload.get("name") or (email.split("@")[0] if email else "") or "User"

    return Identity(id=str(user_id), email=email, name=name)


def create_identity_token(
    user_id: str,
    email: str,
    name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Mint a token the resolver accepts (development and tests only)"""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: Dict[str, Any] = {"sub": user_id, "email": email, "exp": expire}
    if name:
        to_encode["name"] = name
    if settings.IDENTITY_AUDIENCE:
        to_encode["aud"] = settings.IDENTITY_AUDIENCE
    if settings.IDENTITY_ISSUER:
        to_encode["iss"] = settings.IDENTITY_ISSUER
    return jwt.encode(to_encode, settings.IDENTITY_JWT_SECRET, algorithm=settings.IDENTITY_JWT_ALGORITHM)
