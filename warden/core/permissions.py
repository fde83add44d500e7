"""
Permission catalog.

The catalog is the fixed list of permission keys this service knows about,
one ``api`` permission per protected endpoint. It is built once at startup by
``build_permission_catalog`` and handed to the bootstrap routine, which seeds
the permissions table from it. The catalog is immutable after construction.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from warden.models.permission import PERMISSION_TYPE_API


@dataclass(frozen=True)
class PermissionDefinition:
    """A catalog entry: a permission key and the route it unlocks."""

    name: str
    description: str
    method: str
    path: str
    type: str = field(default=PERMISSION_TYPE_API)

    @property
    def metadata(self) -> dict[str, Any]:
        return {"method": self.method, "path": self.path}


class PermissionCatalog:
    """
    Immutable, ordered collection of permission definitions.

    Example:
        >>> catalog = build_permission_catalog("/api/v1")
        >>> catalog.get("user:create").path
        '/api/v1/users'
    """

    def __init__(self, definitions: Iterable[PermissionDefinition]) -> None:
        items = tuple(definitions)
        by_name: dict[str, PermissionDefinition] = {}
        for definition in items:
            if definition.name in by_name:
                raise ValueError(f"Duplicate permission in catalog: {definition.name}")
            by_name[definition.name] = definition
        self._definitions = items
        self._by_name: Mapping[str, PermissionDefinition] = MappingProxyType(by_name)

    def __iter__(self) -> Iterator[PermissionDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> PermissionDefinition | None:
        return self._by_name.get(name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(d.name for d in self._definitions)


# (name, description, method, path relative to the API prefix)
_API_PERMISSIONS: tuple[tuple[str, str, str, str], ...] = (
    # Users
    ("user:create", "Create a user", "POST", "/users"),
    ("user:list", "List users", "GET", "/users"),
    ("user:batch_delete", "Delete several users at once", "POST", "/users/batch-delete"),
    ("user:view", "View a user", "GET", "/users/{id}"),
    ("user:update", "Update a user", "PUT", "/users/{id}"),
    ("user:delete", "Delete a user", "DELETE", "/users/{id}"),
    ("user:assign_role", "Assign roles to a user", "POST", "/users/{id}/roles"),
    ("user:remove_role", "Remove a role from a user", "DELETE", "/users/{id}/roles/{role_id}"),
    ("user:view_permissions", "View a user's effective permissions", "GET", "/users/{id}/permissions"),
    # Roles
    ("role:create", "Create a role", "POST", "/roles"),
    ("role:list", "List roles", "GET", "/roles"),
    ("role:batch_delete", "Delete several roles at once", "POST", "/roles/batch-delete"),
    ("role:view", "View a role", "GET", "/roles/{id}"),
    ("role:update", "Update a role", "PUT", "/roles/{id}"),
    ("role:delete", "Delete a role", "DELETE", "/roles/{id}"),
    ("role:view_permissions", "View the permissions granted to a role", "GET", "/roles/{id}/permissions"),
    ("role:assign_permission", "Grant permissions to a role", "POST", "/roles/{id}/permissions"),
    ("role:revoke_permission", "Revoke a permission from a role", "DELETE", "/roles/{id}/permissions/{permission_id}"),
    # Permissions
    ("permission:create", "Create a permission", "POST", "/permissions"),
    ("permission:list", "List permissions", "GET", "/permissions"),
    ("permission:view", "View a permission", "GET", "/permissions/{id}"),
    ("permission:update", "Update a permission", "PUT", "/permissions/{id}"),
    ("permission:delete", "Delete a permission", "DELETE", "/permissions/{id}"),
)


def build_permission_catalog(api_prefix: str) -> PermissionCatalog:
    """
    Build the catalog of API permissions for routes mounted under ``api_prefix``.

    Args:
        api_prefix: Mount point of the versioned API (e.g. "/api/v1")

    Returns:
        PermissionCatalog with one entry per protected endpoint
    """
    prefix = api_prefix.rstrip("/")
    return PermissionCatalog(
        PermissionDefinition(
            name=name,
            description=description,
            method=method,
            path=f"{prefix}{path}",
        )
        for name, description, method, path in _API_PERMISSIONS
    )
