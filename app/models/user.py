from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import IntIdBase, TimestampMixin


class User(IntIdBase, TimestampMixin, table=True):
    """An employee account with role flags and credential state."""

    __tablename__ = "app_user"

    username: str = Field(max_length=150, unique=True, index=True)
    full_name: str = Field(default="", max_length=255)
    password_hash: str = Field(max_length=255)
    department: str | None = Field(default=None, max_length=255, index=True)

    is_admin: bool = False
    is_manager: bool = False
    is_hr: bool = False

    failed_login_attempts: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    is_locked: bool = False
    lockout_end: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]

    refresh_token_hash: str | None = Field(default=None, max_length=128, index=True)
    refresh_token_expires_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    last_login_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
