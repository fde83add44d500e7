"""
Authentication service for login, token refresh and the current-user profile.

This module provides:
- User login with token pair generation
- Token refresh with rotation (stateless)
- Current-user profile with roles and effective permissions
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from warden.core.security import (
    TOKEN_TYPE_REFRESH,
    TokenPair,
    TokenService,
    token_service,
    verify_password,
)
from warden.exceptions import InvalidCredentialsError, InvalidTokenError, NotFoundError
from warden.repositories.role_repository import RoleRepository
from warden.repositories.user_repository import UserRepository
from warden.schemas.auth import LoginRequest, RefreshTokenRequest, TokenResponse
from warden.schemas.permission import PermissionResponse
from warden.schemas.user import RoleSummary, UserProfileResponse, UserResponse

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service class for authentication operations.

    All methods require an active database session.
    """

    def __init__(self, session: AsyncSession, tokens: TokenService = token_service):
        """
        Initialize AuthService.

        Args:
            session: Async database session
            tokens: Token service used to issue and verify tokens
        """
        self.session = session
        self.tokens = tokens
        self.user_repo = UserRepository(session)
        self.role_repo = RoleRepository(session)

    async def login(self, request: LoginRequest) -> TokenResponse:
        """
        Authenticate a user by username and password.

        Returns:
            TokenResponse with a fresh access/refresh pair

        Raises:
            InvalidCredentialsError: If the username is unknown or the password
                is wrong (the two cases are indistinguishable to the caller)
        """
        user = await self.user_repo.get_by_username(request.username)
        if user is None:
            logger.warning(f"Login failed: unknown username {request.username!r}")
            raise InvalidCredentialsError()

        if not verify_password(request.password, user.password_hash):
            logger.warning(f"Login failed: invalid password for user {user.id}")
            raise InvalidCredentialsError()

        logger.info(f"User logged in successfully: {user.id} ({user.username})")
        return self._token_response(self.tokens.issue_token_pair(user.id))

    async def refresh(self, request: RefreshTokenRequest) -> TokenResponse:
        """
        Exchange a refresh token for a new token pair.

        Raises:
            AuthenticationError subclasses: If the refresh token is malformed,
                forged, expired, of the wrong type, or its user no longer exists
        """
        user_id = self.tokens.verify_token(
            request.refresh_token, expected_type=TOKEN_TYPE_REFRESH
        )
        if await self.user_repo.get_by_id(user_id) is None:
            logger.warning(f"Token refresh rejected: user {user_id} no longer exists")
            raise InvalidTokenError("Token subject no longer exists")

        pair = self.tokens.refresh_access_token(request.refresh_token)

        logger.info(f"Tokens refreshed for user {user_id}")
        return self._token_response(pair)

    async def get_profile(self, user_id: uuid.UUID) -> UserProfileResponse:
        """
        Get the current user with roles and effective permissions.

        Raises:
            NotFoundError: If the user was deleted after the token was issued
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")

        roles = await self.role_repo.get_user_roles(user_id)
        permissions = await self.role_repo.get_effective_permissions(user_id)

        return UserProfileResponse(
            **UserResponse.model_validate(user).model_dump(),
            roles=[RoleSummary.model_validate(r) for r in roles],
            permissions=[PermissionResponse.model_validate(p) for p in permissions],
        )

    def _token_response(self, pair: TokenPair) -> TokenResponse:
        return TokenResponse(
            access_token=pair.access.token,
            refresh_token=pair.refresh.token,
            expires_in=int(self.tokens.access_token_ttl.total_seconds()),
            expires_at=pair.access.expires_at,
            refresh_expires_at=pair.refresh.expires_at,
        )
