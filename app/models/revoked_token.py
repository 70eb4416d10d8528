from __future__ import annotations

from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import IntIdBase


def _now_utc() -> datetime:
    return datetime.now(UTC)


class RevokedToken(IntIdBase, table=True):
    """An access token invalidated before its natural expiry.

    Rows past ``expires_at`` carry no meaning and are purged by the worker.
    """

    __tablename__ = "revoked_token"

    jti: str = Field(max_length=64, unique=True, index=True)
    user_id: int = Field(index=True)
    expires_at: datetime = Field(index=True, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    revoked_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
