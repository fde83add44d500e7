"""
FastAPI dependencies shared by the route modules.

This module provides:
- Database session management (re-exported ``get_db``)
- Current user id, as resolved by AuthorizationMiddleware
"""

import uuid
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from warden.core.database import get_db
from warden.exceptions import AuthenticationError


def get_current_user_id(request: Request) -> uuid.UUID:
    """
    Dependency returning the id of the authenticated caller.

    AuthorizationMiddleware verifies the access token before the handler
    runs and stores the caller id on ``request.state``.

    Raises:
        AuthenticationError: If the route was reached without passing the gate

    Usage:
        @router.get("/me")
        async def me(user_id: CurrentUserId):
            ...
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise AuthenticationError("Missing authentication credentials")
    return user_id


CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
