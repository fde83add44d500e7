"""
Authentication API routes.

This module provides REST endpoints for:
- User login
- Token refresh
- Current-user profile

Login and refresh are served without credentials; the profile only needs a
valid access token.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from warden.api.dependencies import CurrentUserId, DbSession
from warden.core.config import settings
from warden.core.pipeline import bind_json, bind_none, handle
from warden.core.rate_limit import limiter
from warden.schemas.auth import LoginRequest, RefreshTokenRequest
from warden.schemas.common import Envelope
from warden.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=Envelope,
    summary="Login with username and password",
    description="""
    Authenticate with username and password.

    Returns an access token and a refresh token. Wrong usernames and wrong
    passwords are reported identically.

    **Rate Limit:** Configurable via RATE_LIMIT_LOGIN (default: 5/15minute)
    """,
)
@limiter.limit(settings.rate_limit_login)
async def login(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_json(LoginRequest), AuthService(db).login)


@router.post(
    "/refresh",
    response_model=Envelope,
    summary="Refresh access token",
    description="""
    Exchange a refresh token for a new access token.

    The refresh token is rotated: the response carries a new one as well.

    **Rate Limit:** Configurable via RATE_LIMIT_TOKEN_REFRESH (default: 10/hour)
    """,
)
@limiter.limit(settings.rate_limit_token_refresh)
async def refresh(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_json(RefreshTokenRequest), AuthService(db).refresh)


@router.get(
    "/me",
    response_model=Envelope,
    summary="Get current user",
    description="Get the caller's profile with roles and effective permissions.",
)
async def me(request: Request, user_id: CurrentUserId, db: DbSession) -> JSONResponse:
    service = AuthService(db)
    return await handle(request, bind_none(), lambda _: service.get_profile(user_id))
