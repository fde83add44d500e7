"""
Route-level authorization.

A request is allowed when at least one ``api`` permission in the caller's
effective permission set matches its method and path:

- the method must be equal (case-insensitive)
- the path must be equal after trailing-slash normalisation, or match the
  permission's pattern segment by segment, where ``{name}`` and ``:name``
  match exactly one concrete segment and a final ``*`` matches whatever
  remains (at least one segment)

Matching is a pure function of its inputs. The effective permission set is
loaded fresh from the store on every check.
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from warden.exceptions import InsufficientPermissionsError
from warden.models.permission import Permission
from warden.repositories.role_repository import RoleRepository

logger = logging.getLogger(__name__)

WILDCARD = "*"


def normalize_path(path: str) -> str:
    """Strip a trailing slash (except on the root path)."""
    if len(path) > 1 and path.endswith("/"):
        return path.rstrip("/") or "/"
    return path


def _is_parameter(segment: str) -> bool:
    if segment.startswith(":") and len(segment) > 1:
        return True
    return segment.startswith("{") and segment.endswith("}") and len(segment) > 2


def match_path(pattern: str, path: str) -> bool:
    """
    Check whether a concrete request path matches a route pattern.

    Example:
        >>> match_path("/api/v1/users/{id}", "/api/v1/users/42")
        True
        >>> match_path("/api/v1/users/:id", "/api/v1/users/42/roles")
        False
        >>> match_path("/api/v1/users/*", "/api/v1/users/42/roles")
        True
    """
    pattern = normalize_path(pattern)
    path = normalize_path(path)
    if pattern == path:
        return True

    pattern_segments = pattern.strip("/").split("/")
    path_segments = path.strip("/").split("/")

    if pattern_segments[-1] == WILDCARD:
        prefix = pattern_segments[:-1]
        if len(path_segments) <= len(prefix):
            return False
        path_segments = path_segments[: len(prefix)]
        pattern_segments = prefix
    elif len(pattern_segments) != len(path_segments):
        return False

    for expected, actual in zip(pattern_segments, path_segments):
        if _is_parameter(expected):
            if not actual:
                return False
            continue
        if expected != actual:
            return False
    return True


def match_route(
    permission_method: str, permission_path: str, method: str, path: str
) -> bool:
    """Exact method match plus ``match_path``."""
    if permission_method.upper() != method.upper():
        return False
    return match_path(permission_path, path)


def is_route_allowed(permissions: Iterable[Permission], method: str, path: str) -> bool:
    """
    Decide whether any api permission in ``permissions`` covers the route.

    Permissions of other types, and api permissions with incomplete
    metadata, never match.
    """
    for permission in permissions:
        route = permission.route
        if route is None:
            continue
        if match_route(route[0], route[1], method, path):
            return True
    return False


class AuthorizationService:
    """
    Service class for per-request permission checks.

    Used by AuthorizationMiddleware after the caller's token is verified.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.role_repo = RoleRepository(session)

    async def get_effective_permissions(self, user_id: uuid.UUID) -> list[Permission]:
        return await self.role_repo.get_effective_permissions(user_id)

    async def authorize(self, user_id: uuid.UUID, method: str, path: str) -> None:
        """
        Allow the request or raise.

        Raises:
            InsufficientPermissionsError: If no held permission covers the route
        """
        permissions = await self.get_effective_permissions(user_id)
        if not is_route_allowed(permissions, method, path):
            logger.warning(
                f"Access denied: user={user_id} {method} {path} "
                f"({len(permissions)} permissions held)"
            )
            raise InsufficientPermissionsError()
        logger.debug(f"Access granted: user={user_id} {method} {path}")
