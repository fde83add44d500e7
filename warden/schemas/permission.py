"""
Permission Pydantic schemas for API request/response handling.
"""

import uuid
from datetime import datetime
from typing import Any, ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from warden.core.validation import (
    Rule,
    Rules,
    max_length,
    nested,
    one_of,
    pattern,
    required,
    uuid_format,
)
from warden.schemas.common import PaginationQuery

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

# Literal segments, ":name" / "{name}" parameters, and a trailing "*"
ROUTE_PATTERN = r"/(?:[A-Za-z0-9._~\-]+|:[A-Za-z_]\w*|\{[A-Za-z_]\w*\})?(?:/(?:[A-Za-z0-9._~\-]+|:[A-Za-z_]\w*|\{[A-Za-z_]\w*\}))*(?:/\*)?"


class PermissionMetadata(BaseModel):
    """
    Metadata of a permission.

    For type "api": method and path of the route it unlocks.
    For type "action": an opaque code.
    """

    method: str | None = None
    path: str | None = None
    code: str | None = None

    rules: ClassVar[Rules] = {
        "method": Rule("Method", one_of(*HTTP_METHODS)),
        "path": Rule(
            "Path",
            max_length(255),
            pattern(ROUTE_PATTERN),
            message="Path must be an absolute route pattern such as /api/v1/users/{id}",
        ),
        "code": Rule("Code", max_length(100)),
    }


class PermissionCreate(BaseModel):
    """Body of POST /permissions."""

    name: str | None = None
    type: str | None = None
    metadata: PermissionMetadata | None = None

    rules: ClassVar[Rules] = {
        "name": Rule("Permission name", required(), max_length(100)),
        "type": Rule("Permission type", required(), max_length(20)),
        "metadata": Rule("Permission metadata", nested()),
    }


class PermissionUpdate(BaseModel):
    """Body and path of PUT /permissions/{id}; absent fields are left unchanged."""

    id: str | None = None
    name: str | None = None
    type: str | None = None
    metadata: PermissionMetadata | None = None

    rules: ClassVar[Rules] = {
        "id": Rule("Permission ID", required(), uuid_format()),
        "name": Rule("Permission name", max_length(100)),
        "type": Rule("Permission type", max_length(20)),
        "metadata": Rule("Permission metadata", nested()),
    }


class PermissionQuery(PaginationQuery):
    """Query of GET /permissions."""

    name: str | None = None
    type: str | None = None


class PermissionResponse(BaseModel):
    """Permission as returned by the API."""

    id: uuid.UUID
    name: str
    type: str
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("meta", "metadata"),
    )
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
