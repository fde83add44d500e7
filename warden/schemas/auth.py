"""
Authentication Pydantic schemas for API request/response handling.

This module provides:
- Login request
- Token refresh request
- Token pair response
"""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field

from warden.core.validation import Rule, Rules, required


class LoginRequest(BaseModel):
    """
    Schema for user login request.

    Attributes:
        username: User's login name
        password: User's password
    """

    username: str | None = None
    password: str | None = None

    rules: ClassVar[Rules] = {
        "username": Rule("Username", required()),
        "password": Rule("Password", required()),
    }


class RefreshTokenRequest(BaseModel):
    """
    Schema for token refresh request.

    Attributes:
        refresh_token: Refresh token obtained at login or at the last refresh
    """

    refresh_token: str | None = None

    rules: ClassVar[Rules] = {
        "refresh_token": Rule("Refresh token", required()),
    }


class TokenResponse(BaseModel):
    """
    Schema for authentication token response.

    Returned by login and refresh.

    Attributes:
        access_token: Signed access token (short-lived)
        refresh_token: Signed refresh token (long-lived, rotated on refresh)
        token_type: Type of token (always "bearer")
        expires_in: Access token lifetime in seconds
        expires_at: Access token expiry instant
        refresh_expires_at: Refresh token expiry instant
    """

    access_token: str = Field(description="Access token")
    refresh_token: str = Field(description="Refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(description="Access token lifetime in seconds")
    expires_at: datetime
    refresh_expires_at: datetime
