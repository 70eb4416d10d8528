from __future__ import annotations

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


# ---------------------------------------------------------------------------
# Authentication failures
# ---------------------------------------------------------------------------


class AuthenticationError(AppError):
    """Credentials or token rejected. Recoverable by the user."""

    status_code = status.HTTP_401_UNAUTHORIZED

    @property
    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class InvalidCredentialsError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Invalid username or password")


class AccountLockedError(AuthenticationError):
    """Login refused while the lockout window is open."""

    status_code = status.HTTP_423_LOCKED

    def __init__(self, remaining_minutes: int) -> None:
        self.remaining_minutes = remaining_minutes
        super().__init__(f"Account is locked. Try again in {remaining_minutes} minute(s)")

    @property
    def headers(self) -> dict[str, str] | None:
        return {"Retry-After": str(self.remaining_minutes * 60)}

    @classmethod
    def from_seconds(cls, remaining_seconds: float) -> AccountLockedError:
        return cls(max(1, math.ceil(remaining_seconds / 60)))


class TokenExpiredError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Access token has expired")


class TokenRevokedError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Access token has been revoked")


class RefreshTokenMismatchError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Refresh token is invalid or expired")


class MalformedTokenError(AuthenticationError):
    def __init__(self, message: str = "Token is missing or malformed") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Authorization failures
# ---------------------------------------------------------------------------


class PermissionDeniedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


# ---------------------------------------------------------------------------
# State conflicts
# ---------------------------------------------------------------------------


class StateConflictError(AppError):
    """The target is not in a state that allows the operation."""

    status_code = status.HTTP_409_CONFLICT


class TransitionNotAllowedError(StateConflictError):
    pass


class ConcurrentUpdateError(StateConflictError):
    def __init__(self, message: str = "Request was modified concurrently; reload and retry") -> None:
        super().__init__(message)


class OverlappingRequestError(StateConflictError):
    pass


class InvariantViolationError(RuntimeError):
    """Stored data breaks a lifecycle invariant. Always a defect."""


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
        headers=exc.headers,
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
