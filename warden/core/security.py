"""
Security utilities for authentication.

This module provides:
- Password hashing with Argon2id
- TokenService: stateless issue/verify/refresh of signed access and refresh
  tokens (python-jose, HS256 by default)

Token verification is pure computation: no store lookup, no I/O.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from argon2 import PasswordHasher
from argon2.exceptions import (
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)
from jose import ExpiredSignatureError, JWTError, jwt

from warden.core.config import settings
from warden.exceptions import (
    InvalidSignatureError,
    InvalidTokenError,
    MalformedTokenError,
    TokenExpiredError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Password Hashing with Argon2id
# =============================================================================

pwd_hasher = PasswordHasher(
    time_cost=settings.argon2_time_cost,
    memory_cost=settings.argon2_memory_cost,
    parallelism=settings.argon2_parallelism,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Args:
        password: Plain text password to hash

    Returns:
        Argon2id hash string (includes algorithm, parameters, salt, and hash)

    Example:
        >>> hashed = hash_password("my_secure_password")
        >>> # Returns: $argon2id$v=19$m=65536,t=2,p=4$...
    """
    return pwd_hasher.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against an Argon2id hash.

    Returns:
        True if password matches hash, False otherwise (including for a
        hash that is not a valid Argon2 string)
    """
    try:
        pwd_hasher.verify(hashed_password, password)
        return True
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


# =============================================================================
# JWT Token Management
# =============================================================================
# Access tokens: short-lived, presented on every protected request
# Refresh tokens: long-lived, exchanged for a new access/refresh pair
# =============================================================================

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


@dataclass(frozen=True)
class IssuedToken:
    """A signed token and the instant it stops being valid."""

    token: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access: IssuedToken
    refresh: IssuedToken


class TokenService:
    """
    Issues and verifies signed tokens carrying a user identity.

    Claims: ``sub`` (user id), ``iat``, ``exp``, ``type`` ("access" or
    "refresh") and ``jti`` (unique token id, so two tokens issued within the
    same second still differ).

    Verification fails distinctly for:
    - MalformedTokenError: the token cannot be decoded at all
    - InvalidSignatureError: the signature does not verify
    - TokenExpiredError: the signature verifies but ``exp`` has passed
    - InvalidTokenError: wrong token type or unusable subject
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = timedelta(minutes=15),
        refresh_token_ttl: timedelta = timedelta(days=7),
    ) -> None:
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl

    def _issue(
        self,
        user_id: uuid.UUID,
        token_type: str,
        ttl: timedelta,
        now: datetime | None = None,
    ) -> IssuedToken:
        issued_at = now or datetime.now(UTC)
        expires_at = issued_at + ttl
        claims = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": expires_at,
            "type": token_type,
            "jti": str(uuid.uuid4()),
        }
        token = jwt.encode(claims, self._secret_key, algorithm=self.algorithm)
        return IssuedToken(token=token, expires_at=expires_at)

    def issue_access_token(
        self, user_id: uuid.UUID, now: datetime | None = None
    ) -> IssuedToken:
        """Sign a short-lived access token for ``user_id``."""
        return self._issue(user_id, TOKEN_TYPE_ACCESS, self.access_token_ttl, now)

    def issue_refresh_token(
        self, user_id: uuid.UUID, now: datetime | None = None
    ) -> IssuedToken:
        """Sign a long-lived refresh token for ``user_id``."""
        return self._issue(user_id, TOKEN_TYPE_REFRESH, self.refresh_token_ttl, now)

    def issue_token_pair(self, user_id: uuid.UUID) -> TokenPair:
        """Issue a fresh access token and refresh token together."""
        return TokenPair(
            access=self.issue_access_token(user_id),
            refresh=self.issue_refresh_token(user_id),
        )

    def decode(self, token: str) -> dict[str, Any]:
        """
        Decode a token, verifying signature and expiry.

        Raises:
            MalformedTokenError, InvalidSignatureError, TokenExpiredError
        """
        try:
            jwt.get_unverified_claims(token)
        except JWTError as e:
            logger.debug(f"Token is malformed: {e}")
            raise MalformedTokenError() from e

        try:
            return jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except JWTError as e:
            logger.debug(f"Token rejected: {e}")
            raise InvalidSignatureError() from e

    def verify_token(
        self, token: str, expected_type: str = TOKEN_TYPE_ACCESS
    ) -> uuid.UUID:
        """
        Verify a token and return the user id it was issued for.

        Args:
            token: Encoded token
            expected_type: "access" (default) or "refresh"

        Returns:
            The user id from the ``sub`` claim

        Example:
            >>> pair = token_service.issue_token_pair(user.id)
            >>> token_service.verify_token(pair.access.token) == user.id
            True
        """
        claims = self.decode(token)

        if claims.get("type") != expected_type:
            raise InvalidTokenError("Invalid token type")

        try:
            return uuid.UUID(str(claims.get("sub")))
        except ValueError as e:
            raise InvalidTokenError("Invalid token subject") from e

    def refresh_access_token(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new access token.

        The refresh token is rotated as well, so clients keep a sliding
        session as long as they refresh before the refresh token expires.
        """
        user_id = self.verify_token(refresh_token, expected_type=TOKEN_TYPE_REFRESH)
        return self.issue_token_pair(user_id)


# Process-wide token service built from settings
token_service = TokenService(
    secret_key=settings.secret_key,
    algorithm=settings.jwt_algorithm,
    access_token_ttl=timedelta(minutes=settings.access_token_expire_minutes),
    refresh_token_ttl=timedelta(days=settings.refresh_token_expire_days),
)
