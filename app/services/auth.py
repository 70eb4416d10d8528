"""Session lifecycle: login, refresh rotation, logout and authentication.

Lockout disclosure: a locked account is reported as locked before the
password outcome is known, but the password is always verified first so a
locked response costs the same and looks the same whether or not the
password was right.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from app.exceptions import (
    AccountLockedError,
    InvalidCredentialsError,
    MalformedTokenError,
    RefreshTokenMismatchError,
    TokenRevokedError,
)
from app.models.base import as_utc
from app.models.enums import AuditAction, AuditEntityType
from app.schemas.auth import AuthContext, TokenResponse
from app.services import credentials, revocation, tokens
from app.services.audit import write_audit_log
from app.services.clock import get_clock
from app.services.passwords import burn_verification, verify_password

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from app.models.user import User

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_token_response(user: User, access: tokens.IssuedToken, refresh: tokens.IssuedToken) -> TokenResponse:
    """Map a user and a token pair to the response schema."""
    if user.id is None:
        raise ValueError("user must be persisted before tokens are issued")
    return TokenResponse(
        access_token=access.token,
        refresh_token=refresh.token,
        expires_at=access.expires_at,
        refresh_token_expires_at=refresh.expires_at,
        user_id=user.id,
        username=user.username,
        full_name=user.full_name,
        is_admin=user.is_admin,
        is_manager=user.is_manager,
        is_hr=user.is_hr,
        department=user.department,
    )


def _issue_pair(user: User, now: datetime) -> tuple[tokens.IssuedToken, tokens.IssuedToken]:
    if user.id is None:
        raise ValueError("user must be persisted before tokens are issued")
    access = tokens.issue_access_token(user.id, tokens.role_claims(user), now)
    refresh = tokens.issue_refresh_token(now)
    return access, refresh


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def login(session: AsyncSession, username: str, password: str) -> TokenResponse:
    """Authenticate with username and password and open a session.

    1. Unknown user: burn one verification, fail generically.
    2. Elapsed lockout: clear it.
    3. Active lockout: verify anyway, fail with the remaining time.
    4. Wrong password: atomic failure increment (may lock), fail.
    5. Success: reset lockout state, issue and store a token pair.
    """
    now = get_clock().now()

    user = await credentials.get_user_by_username(session, username)
    if user is None or user.id is None:
        burn_verification(password)
        logger.warning("Login failed: unknown user")
        raise InvalidCredentialsError

    if user.is_locked:
        lockout_end = as_utc(user.lockout_end)
        if lockout_end is not None and lockout_end > now:
            verify_password(password, user.password_hash)
            logger.warning("Login refused for locked account user_id=%s until %s", user.id, lockout_end.isoformat())
            raise AccountLockedError.from_seconds((lockout_end - now).total_seconds())
        if await credentials.clear_expired_lockout(session, user.id, now):
            logger.info("Lockout elapsed for user_id=%s; counter reset", user.id)

    if not verify_password(password, user.password_hash):
        updated = await credentials.record_failed_login(session, user.id, now)
        write_audit_log(
            session,
            actor_id=None,
            entity_type=AuditEntityType.USER,
            entity_id=user.id,
            action=AuditAction.LOGIN_FAILED,
            after_json={"failed_login_attempts": updated.failed_login_attempts},
        )
        logger.warning(
            "Login failed: invalid password for user_id=%s attempts=%d",
            user.id,
            updated.failed_login_attempts,
        )
        if updated.is_locked:
            lockout_end = as_utc(updated.lockout_end)
            write_audit_log(
                session,
                actor_id=None,
                entity_type=AuditEntityType.USER,
                entity_id=user.id,
                action=AuditAction.LOCKOUT,
                after_json={"lockout_end": lockout_end.isoformat() if lockout_end else None},
            )
            logger.warning("Account locked for user_id=%s until %s", user.id, lockout_end)
        await session.commit()
        raise InvalidCredentialsError

    access, refresh = _issue_pair(user, now)
    await credentials.record_successful_login(
        session,
        user.id,
        tokens.hash_refresh_token(refresh.token),
        refresh.expires_at,
        now,
    )
    write_audit_log(
        session,
        actor_id=user.id,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        action=AuditAction.LOGIN,
        after_json={"jti": access.jti},
    )
    await session.commit()
    logger.info("User user_id=%s logged in", user.id)
    return _build_token_response(user, access, refresh)


async def refresh(session: AsyncSession, access_token: str | None, refresh_token: str | None) -> TokenResponse:
    """Rotate the refresh token and issue a new access token.

    The access token only identifies the user; its signature must be valid
    but it may already have expired. The stored refresh token is replaced in
    a single conditional update, so a replayed or concurrently used token
    fails.
    """
    if not access_token or not refresh_token:
        raise MalformedTokenError("Both access and refresh tokens are required")
    now = get_clock().now()
    claims = tokens.validate_access_token(access_token, now, verify_expiry=False)

    user = await credentials.get_user_by_id(session, claims.user_id)
    if user is None or user.id is None:
        logger.warning("Refresh rejected: user_id=%s no longer exists", claims.user_id)
        raise RefreshTokenMismatchError

    access, new_refresh = _issue_pair(user, now)
    rotated = await credentials.rotate_refresh_token(
        session,
        user.id,
        tokens.hash_refresh_token(refresh_token),
        tokens.hash_refresh_token(new_refresh.token),
        new_refresh.expires_at,
        now,
    )
    if not rotated:
        await session.rollback()
        logger.warning("Refresh rejected: stale or expired refresh token for user_id=%s", claims.user_id)
        raise RefreshTokenMismatchError

    write_audit_log(
        session,
        actor_id=user.id,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        action=AuditAction.REFRESH,
        after_json={"jti": access.jti},
    )
    await session.commit()
    logger.info("Tokens refreshed for user_id=%s", user.id)
    return _build_token_response(user, access, new_refresh)


async def logout(session: AsyncSession, access_token: str | None) -> None:
    """End the session: drop the refresh token and deny the access token.

    The token must pass ``authenticate``. An expired or already revoked token
    cannot log out, so replaying an old token never ends a newer session.
    """
    context = await authenticate(session, access_token)
    if context.jti is None or context.expires_at is None:
        raise MalformedTokenError("Token carries no jti or expiry")
    now = get_clock().now()

    await credentials.clear_refresh_token(session, context.user_id)
    await session.commit()

    revocation.revoke_token(
        session,
        jti=context.jti,
        user_id=context.user_id,
        expires_at=context.expires_at,
        now=now,
    )
    write_audit_log(
        session,
        actor_id=context.user_id,
        entity_type=AuditEntityType.TOKEN,
        entity_id=context.jti,
        action=AuditAction.REVOKE,
        after_json={"expires_at": context.expires_at.isoformat()},
    )
    try:
        await session.commit()
    except IntegrityError:
        # A concurrent logout with the same token got there first.
        await session.rollback()
        logger.info("Token jti=%s was already revoked", context.jti)
        return
    logger.info("Token jti=%s revoked for user_id=%s", context.jti, context.user_id)


async def authenticate(session: AsyncSession, access_token: str | None) -> AuthContext:
    """Resolve a bearer token into the caller's context.

    Signature and expiry are checked locally first; only a token that passes
    costs a denylist lookup.
    """
    now = get_clock().now()
    claims = tokens.validate_access_token(access_token, now)
    if await revocation.is_token_revoked(session, claims.jti, now):
        logger.info("Rejected revoked token jti=%s for user_id=%s", claims.jti, claims.user_id)
        raise TokenRevokedError
    return AuthContext(
        user_id=claims.user_id,
        username=claims.username,
        is_admin=claims.is_admin,
        is_manager=claims.is_manager,
        is_hr=claims.is_hr,
        department=claims.department,
        jti=claims.jti,
        expires_at=claims.expires_at,
    )
