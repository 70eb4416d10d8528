from __future__ import annotations

import logging
import secrets

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from app.config import get_settings

logger = logging.getLogger(__name__)

_hasher: PasswordHasher | None = None
_dummy_hash: str | None = None


def get_password_hasher() -> PasswordHasher:
    """Return the argon2id hasher configured from settings."""
    global _hasher
    if _hasher is None:
        settings = get_settings()
        _hasher = PasswordHasher(
            time_cost=settings.password_hash_time_cost,
            memory_cost=settings.password_hash_memory_cost,
            parallelism=settings.password_hash_parallelism,
            type=Type.ID,
        )
    return _hasher


def hash_password(password: str) -> str:
    """Hash a password. The encoded result embeds its own random salt."""
    return get_password_hasher().hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check ``password`` against a stored hash in constant time.

    An empty or corrupt stored hash never verifies, but still costs one
    full hash computation so the caller's timing does not reveal it.
    """
    if not password_hash:
        burn_verification(password)
        return False
    try:
        return get_password_hasher().verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError):
        logger.warning("Stored password hash could not be verified")
        burn_verification(password)
        return False


def burn_verification(password: str) -> None:
    """Spend the same work as a real verification against a throwaway hash."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password(secrets.token_urlsafe(16))
    try:
        get_password_hasher().verify(_dummy_hash, password)
    except VerifyMismatchError:
        pass
