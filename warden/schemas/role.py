"""
Role Pydantic schemas for API request/response handling.
"""

import uuid
from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from warden.core.validation import (
    Rule,
    Rules,
    each,
    max_length,
    min_items,
    required,
    uuid_format,
)
from warden.schemas.common import PaginationQuery
from warden.schemas.permission import PermissionResponse


class RoleCreate(BaseModel):
    """Body of POST /roles."""

    name: str | None = None
    description: str | None = None

    rules: ClassVar[Rules] = {
        "name": Rule("Role name", required(), max_length(50)),
        "description": Rule("Description", max_length(500)),
    }


class RoleUpdate(BaseModel):
    """Body and path of PUT /roles/{id}; absent fields are left unchanged."""

    id: str | None = None
    name: str | None = None
    description: str | None = None

    rules: ClassVar[Rules] = {
        "id": Rule("Role ID", required(), uuid_format()),
        "name": Rule("Role name", max_length(50)),
        "description": Rule("Description", max_length(500)),
    }


class RoleQuery(PaginationQuery):
    """Query of GET /roles."""

    name: str | None = None


class AssignPermissionsRequest(BaseModel):
    """Body and path of POST /roles/{id}/permissions."""

    id: str | None = None
    permission_ids: list[str] | None = None

    rules: ClassVar[Rules] = {
        "id": Rule("Role ID", required(), uuid_format()),
        "permission_ids": Rule(
            "Permission IDs",
            required(),
            min_items(1),
            each(uuid_format()),
        ),
    }


class RolePermissionPath(BaseModel):
    """Path of DELETE /roles/{id}/permissions/{permission_id}."""

    id: str | None = None
    permission_id: str | None = None

    rules: ClassVar[Rules] = {
        "id": Rule("Role ID", required(), uuid_format()),
        "permission_id": Rule("Permission ID", required(), uuid_format()),
    }


class RoleResponse(BaseModel):
    """Role as returned by the API."""

    id: uuid.UUID
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleDetailResponse(RoleResponse):
    """Role with the permissions granted to it."""

    permissions: list[PermissionResponse] = []


class PermissionRevocationResult(BaseModel):
    revoked: bool
