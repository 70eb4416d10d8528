from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class AuthContext(BaseModel):
    """Authenticated caller, rebuilt from access token claims on every call."""

    user_id: int
    username: str
    is_admin: bool = False
    is_manager: bool = False
    is_hr: bool = False
    department: str | None = None
    jti: str | None = None
    expires_at: datetime | None = None


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class LoginPayload(BaseModel):
    """Request body for username/password login."""

    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1, max_length=1024)


class RefreshPayload(BaseModel):
    """Request body for rotating a refresh token."""

    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """Access/refresh token pair issued on login and refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: datetime
    refresh_token_expires_at: datetime
    user_id: int
    username: str
    full_name: str
    is_admin: bool
    is_manager: bool
    is_hr: bool
    department: str | None


class CurrentUserResponse(BaseModel):
    """The authenticated caller as seen by the API."""

    user_id: int
    username: str
    is_admin: bool
    is_manager: bool
    is_hr: bool
    department: str | None
    access_level: str
