# ruff: noqa: B008, TC001
from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.db import SessionDep
from app.exceptions import MalformedTokenError, PermissionDeniedError
from app.schemas.auth import AuthContext
from app.services import auth as auth_service
from app.services.authorization import can_manage_requests

_bearer = HTTPBearer(auto_error=False)


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """Extract the raw bearer token from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise MalformedTokenError("Missing bearer token")
    return credentials.credentials


BearerTokenDep = Annotated[str, Depends(get_bearer_token)]


async def get_auth_context(session: SessionDep, token: BearerTokenDep) -> AuthContext:
    """Authenticate the caller from its access token."""
    return await auth_service.authenticate(session, token)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_approver(
    auth: AuthDep,
) -> AuthContext:
    """Require a manager, HR or admin caller for approval actions."""
    if not can_manage_requests(auth):
        raise PermissionDeniedError("Approver role required")
    return auth


ApproverDep = Annotated[AuthContext, Depends(require_approver)]
