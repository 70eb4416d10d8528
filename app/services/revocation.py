"""Durable denylist of access tokens invalidated before their expiry.

Entries only matter until the token would have expired anyway, so lookups
ignore rows past ``expires_at`` and the worker purges them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlmodel import col

from app.models.base import as_utc
from app.models.revoked_token import RevokedToken

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession


def revoke_token(
    session: AsyncSession,
    *,
    jti: str,
    user_id: int,
    expires_at: datetime,
    now: datetime,
) -> RevokedToken:
    """Add a denylist entry within the caller's transaction."""
    entry = RevokedToken(jti=jti, user_id=user_id, expires_at=expires_at, revoked_at=now)
    session.add(entry)
    return entry


async def is_token_revoked(session: AsyncSession, jti: str, now: datetime) -> bool:
    """True if ``jti`` is on the denylist and the entry is still meaningful."""
    result = await session.execute(select(RevokedToken.expires_at).where(col(RevokedToken.jti) == jti))
    expires_at = as_utc(result.scalar_one_or_none())
    return expires_at is not None and expires_at > now


async def purge_expired_revoked_tokens(session: AsyncSession, now: datetime) -> int:
    """Delete entries whose token has expired naturally. Commits."""
    result = await session.execute(
        delete(RevokedToken)
        .where(col(RevokedToken.expires_at) <= now)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return int(result.rowcount or 0)  # type: ignore[attr-defined]
