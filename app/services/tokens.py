"""Signed access tokens and opaque refresh tokens.

Access tokens are HS256 JWTs carrying the user id (``sub``), a unique
``jti`` and the role claims the authorization engine needs. Expiry is judged
against the injected clock rather than PyJWT's wall clock so that expiry and
revocation are testable deterministically. This module knows nothing about
users in storage or business rules.
"""

from __future__ import annotations

import hashlib
import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt

from app.config import get_settings
from app.exceptions import MalformedTokenError, TokenExpiredError

if TYPE_CHECKING:
    from app.models.user import User

_REQUIRED_CLAIMS = ["sub", "jti", "exp", "iat"]


@dataclass(frozen=True)
class IssuedToken:
    """A freshly minted token and when it stops being valid."""

    token: str
    expires_at: datetime
    jti: str | None = None


@dataclass(frozen=True)
class AccessTokenClaims:
    """Decoded, signature-checked access token contents."""

    user_id: int
    username: str
    jti: str
    issued_at: datetime
    expires_at: datetime
    is_admin: bool = False
    is_manager: bool = False
    is_hr: bool = False
    department: str | None = None


def role_claims(user: User) -> dict[str, Any]:
    """Claims describing the standing of ``user`` at issue time."""
    return {
        "username": user.username,
        "is_admin": user.is_admin,
        "is_manager": user.is_manager,
        "is_hr": user.is_hr,
        "department": user.department,
    }


def issue_access_token(user_id: int, claims: dict[str, Any], now: datetime) -> IssuedToken:
    """Sign a short-lived access token with a fresh ``jti``."""
    settings = get_settings()
    jti = uuid.uuid4().hex
    expires_at = now + timedelta(minutes=settings.access_token_minutes)
    payload = {
        **claims,
        "sub": str(user_id),
        "jti": jti,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    # Round to whole seconds so the stored expiry matches the signed claim.
    return IssuedToken(token=token, expires_at=_from_timestamp(payload["exp"]), jti=jti)


def issue_refresh_token(now: datetime) -> IssuedToken:
    """Generate an opaque refresh token. Only its hash is ever stored."""
    settings = get_settings()
    return IssuedToken(
        token=secrets.token_urlsafe(64),
        expires_at=now + timedelta(days=settings.refresh_token_days),
    )


def hash_refresh_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def validate_access_token(token: str | None, now: datetime, *, verify_expiry: bool = True) -> AccessTokenClaims:
    """Check signature, issuer and audience, then expiry against ``now``.

    Raises ``MalformedTokenError`` for anything that is not a token we signed
    and ``TokenExpiredError`` for a genuine token past its ``exp``.
    """
    if not token:
        raise MalformedTokenError
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={
                "verify_exp": False,
                "verify_iat": False,
                "verify_nbf": False,
                "require": _REQUIRED_CLAIMS,
            },
        )
    except jwt.InvalidTokenError as exc:
        raise MalformedTokenError(f"Invalid access token: {exc}") from None

    try:
        claims = AccessTokenClaims(
            user_id=int(payload["sub"]),
            username=str(payload.get("username", "")),
            jti=str(payload["jti"]),
            issued_at=_from_timestamp(payload["iat"]),
            expires_at=_from_timestamp(payload["exp"]),
            is_admin=bool(payload.get("is_admin", False)),
            is_manager=bool(payload.get("is_manager", False)),
            is_hr=bool(payload.get("is_hr", False)),
            department=payload.get("department"),
        )
    except (TypeError, ValueError):
        raise MalformedTokenError("Access token claims are malformed") from None

    if verify_expiry and claims.expires_at <= now:
        raise TokenExpiredError
    return claims


def _from_timestamp(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value), tz=UTC)
