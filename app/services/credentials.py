"""Storage-side operations on user credential state.

Counters, lock flags and refresh tokens are only ever changed through single
conditional ``UPDATE`` statements, so concurrent logins or refreshes for the
same user cannot lose an increment or both win a rotation. Nothing here
commits; the calling service owns the transaction.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from app.config import get_settings
from app.exceptions import AppError
from app.models.user import User
from app.services.departments import normalize_department
from app.services.passwords import hash_password

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

_NO_SYNC: dict[str, Any] = {"synchronize_session": False}


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(
        select(User).where(col(User.username) == username).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: int) -> User | None:
    return await session.get(User, user_id, populate_existing=True)


async def create_user(
    session: AsyncSession,
    *,
    username: str,
    password: str,
    full_name: str = "",
    department: str | None = None,
    is_admin: bool = False,
    is_manager: bool = False,
    is_hr: bool = False,
) -> User:
    """Create a user with a freshly hashed password and commit."""
    user = User(
        username=username,
        full_name=full_name,
        password_hash=hash_password(password),
        department=normalize_department(department),
        is_admin=is_admin,
        is_manager=is_manager,
        is_hr=is_hr,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise AppError("Username already exists", status_code=409) from None
    await session.refresh(user)
    return user


async def clear_expired_lockout(session: AsyncSession, user_id: int, now: datetime) -> bool:
    """Unlock ``user_id`` if its lockout window has elapsed. Returns True if cleared."""
    result = await session.execute(
        update(User)
        .where(
            col(User.id) == user_id,
            col(User.is_locked).is_(True),
            or_(col(User.lockout_end).is_(None), col(User.lockout_end) <= now),
        )
        .values(is_locked=False, failed_login_attempts=0, lockout_end=None)
        .execution_options(**_NO_SYNC)
    )
    return bool(result.rowcount)  # type: ignore[attr-defined]


async def clear_elapsed_lockouts(session: AsyncSession, now: datetime) -> int:
    """Unlock every account whose lockout window has elapsed."""
    result = await session.execute(
        update(User)
        .where(
            col(User.is_locked).is_(True),
            or_(col(User.lockout_end).is_(None), col(User.lockout_end) <= now),
        )
        .values(is_locked=False, failed_login_attempts=0, lockout_end=None)
        .execution_options(**_NO_SYNC)
    )
    return int(result.rowcount or 0)  # type: ignore[attr-defined]


async def record_failed_login(session: AsyncSession, user_id: int, now: datetime) -> User:
    """Atomically bump the failure counter, locking once the threshold is reached.

    Returns the user as stored after the update.
    """
    settings = get_settings()
    lockout_end = now + timedelta(minutes=settings.lockout_minutes)
    attempts = col(User.failed_login_attempts) + 1
    crosses_threshold = attempts >= settings.max_failed_login_attempts

    await session.execute(
        update(User)
        .where(col(User.id) == user_id)
        .values(
            failed_login_attempts=attempts,
            is_locked=sa.case((crosses_threshold, sa.true()), else_=col(User.is_locked)),
            lockout_end=sa.case(
                (crosses_threshold, sa.literal(lockout_end, sa.DateTime(timezone=True))),
                else_=col(User.lockout_end),
            ),
        )
        .execution_options(**_NO_SYNC)
    )
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise AppError("User disappeared during login", status_code=500)
    return user


async def record_successful_login(
    session: AsyncSession,
    user_id: int,
    refresh_token_hash: str,
    refresh_token_expires_at: datetime,
    now: datetime,
) -> None:
    """Reset lockout state and store the new refresh token."""
    await session.execute(
        update(User)
        .where(col(User.id) == user_id)
        .values(
            failed_login_attempts=0,
            is_locked=False,
            lockout_end=None,
            refresh_token_hash=refresh_token_hash,
            refresh_token_expires_at=refresh_token_expires_at,
            last_login_at=now,
        )
        .execution_options(**_NO_SYNC)
    )


async def rotate_refresh_token(
    session: AsyncSession,
    user_id: int,
    presented_hash: str,
    new_hash: str,
    new_expires_at: datetime,
    now: datetime,
) -> bool:
    """Swap the stored refresh token only if it still equals the presented one.

    Returns False when the presented token is stale, unknown or expired.
    """
    result = await session.execute(
        update(User)
        .where(
            col(User.id) == user_id,
            col(User.refresh_token_hash) == presented_hash,
            col(User.refresh_token_expires_at) > now,
        )
        .values(refresh_token_hash=new_hash, refresh_token_expires_at=new_expires_at)
        .execution_options(**_NO_SYNC)
    )
    return result.rowcount == 1  # type: ignore[attr-defined]


async def clear_refresh_token(session: AsyncSession, user_id: int) -> None:
    await session.execute(
        update(User)
        .where(col(User.id) == user_id)
        .values(refresh_token_hash=None, refresh_token_expires_at=None)
        .execution_options(**_NO_SYNC)
    )
