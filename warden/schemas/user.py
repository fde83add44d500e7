"""
User Pydantic schemas for API request/response handling.

This module provides:
- User create / update / query requests
- Role assignment requests
- User responses (plain and with roles)
"""

import uuid
from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from warden.core.validation import (
    Rule,
    Rules,
    each,
    max_length,
    min_items,
    min_length,
    pattern,
    required,
    uuid_format,
)
from warden.schemas.common import PaginationQuery
from warden.schemas.permission import PermissionResponse

USERNAME_PATTERN = r"[A-Za-z0-9_.\-]+"
PHONE_PATTERN = r"\+[1-9]\d{1,14}"  # E.164

_USERNAME_RULE = Rule(
    "Username",
    min_length(3),
    max_length(50),
    pattern(USERNAME_PATTERN, "{label} may only contain letters, digits, '.', '_' and '-'"),
)
_PHONE_RULE = Rule(
    "Phone",
    pattern(PHONE_PATTERN),
    message="Phone must be in E.164 format, e.g. +8613800000000",
)
_PASSWORD_RULE = Rule("Password", min_length(8), max_length(128))


class UserCreate(BaseModel):
    """Body of POST /users."""

    username: str | None = None
    password: str | None = None
    phone: str | None = None
    profile: dict[str, Any] | None = None

    rules: ClassVar[Rules] = {
        "username": Rule("Username", required(), *_USERNAME_RULE.constraints),
        "password": Rule("Password", required(), *_PASSWORD_RULE.constraints),
        "phone": _PHONE_RULE,
    }


class UserUpdate(BaseModel):
    """Body and path of PUT /users/{id}; absent fields are left unchanged."""

    id: str | None = None
    username: str | None = None
    password: str | None = None
    phone: str | None = None
    profile: dict[str, Any] | None = None

    rules: ClassVar[Rules] = {
        "id": Rule("User ID", required(), uuid_format()),
        "username": _USERNAME_RULE,
        "password": _PASSWORD_RULE,
        "phone": _PHONE_RULE,
    }


class UserQuery(PaginationQuery):
    """Query of GET /users."""

    username: str | None = None
    phone: str | None = None

    rules: ClassVar[Rules] = {
        **PaginationQuery.rules,
        "phone": _PHONE_RULE,
    }


class AssignRolesRequest(BaseModel):
    """Body and path of POST /users/{id}/roles."""

    id: str | None = None
    role_ids: list[str] | None = None

    rules: ClassVar[Rules] = {
        "id": Rule("User ID", required(), uuid_format()),
        "role_ids": Rule(
            "Role IDs",
            required(),
            min_items(1),
            each(uuid_format()),
            message="Role IDs must be a non-empty list of valid UUIDs",
        ),
    }


class UserRolePath(BaseModel):
    """Path of DELETE /users/{id}/roles/{role_id}."""

    id: str | None = None
    role_id: str | None = None

    rules: ClassVar[Rules] = {
        "id": Rule("User ID", required(), uuid_format()),
        "role_id": Rule("Role ID", required(), uuid_format()),
    }


class RoleSummary(BaseModel):
    """Minimal role view embedded in user responses."""

    id: uuid.UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """User as returned by the API. The password hash is never exposed."""

    id: uuid.UUID
    username: str
    phone: str | None = None
    profile: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserDetailResponse(UserResponse):
    """User with the roles it currently holds."""

    roles: list[RoleSummary] = []


class UserProfileResponse(UserDetailResponse):
    """Current-user profile: user, roles and effective permissions."""

    permissions: list[PermissionResponse] = []


class RoleRemovalResult(BaseModel):
    removed: bool
