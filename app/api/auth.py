# ruff: noqa: TC001
from __future__ import annotations

from fastapi import APIRouter, Response, status

from app.api.deps import AuthDep, BearerTokenDep
from app.db import SessionDep
from app.schemas.auth import CurrentUserResponse, LoginPayload, RefreshPayload, TokenResponse
from app.services import auth as auth_service
from app.services.authorization import access_level

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginPayload,
    session: SessionDep,
) -> TokenResponse:
    """Exchange username and password for an access/refresh token pair."""
    return await auth_service.login(session, payload.username, payload.password)


@auth_router.post("/refresh", response_model=TokenResponse)
async def refresh(
    payload: RefreshPayload,
    session: SessionDep,
) -> TokenResponse:
    """Rotate the refresh token. The access token may already be expired."""
    return await auth_service.refresh(session, payload.access_token, payload.refresh_token)


@auth_router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: SessionDep,
    token: BearerTokenDep,
) -> Response:
    """Revoke the presented access token and drop the stored refresh token."""
    await auth_service.logout(session, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@auth_router.get("/me", response_model=CurrentUserResponse)
async def me(auth: AuthDep) -> CurrentUserResponse:
    """Describe the authenticated caller."""
    return CurrentUserResponse(
        user_id=auth.user_id,
        username=auth.username,
        is_admin=auth.is_admin,
        is_manager=auth.is_manager,
        is_hr=auth.is_hr,
        department=auth.department,
        access_level=access_level(auth).value,
    )
