"""
Permission service for ad hoc permission management.

Catalog permissions are seeded by the bootstrap routine; this service lets
administrators create, inspect, edit and delete permissions on top of them.
"""

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from warden.core.database import transaction
from warden.exceptions import AlreadyExistsError, BadRequestError, NotFoundError
from warden.models.permission import PERMISSION_TYPE_API, Permission
from warden.repositories.permission_repository import PermissionRepository
from warden.schemas.common import DeleteResult, IdPath, PaginatedResponse, PaginationMeta
from warden.schemas.permission import (
    PermissionCreate,
    PermissionMetadata,
    PermissionQuery,
    PermissionResponse,
    PermissionUpdate,
)

logger = logging.getLogger(__name__)


def _metadata_for(type: str, metadata: PermissionMetadata | None) -> dict[str, Any]:
    """
    Build stored metadata for a permission of the given type.

    Raises:
        BadRequestError: If an api permission lacks its method or path
    """
    values = metadata.model_dump(exclude_none=True) if metadata else {}
    if type == PERMISSION_TYPE_API:
        if not values.get("method") or not values.get("path"):
            raise BadRequestError("API permissions require metadata.method and metadata.path")
        return {"method": values["method"], "path": values["path"]}
    return values


class PermissionService:
    """Service class for permission management operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.permission_repo = PermissionRepository(session)

    async def _get_permission(self, permission_id: uuid.UUID) -> Permission:
        permission = await self.permission_repo.get_by_id(permission_id)
        if permission is None:
            raise NotFoundError("Permission")
        return permission

    async def create_permission(self, request: PermissionCreate) -> PermissionResponse:
        """
        Create a permission.

        Raises:
            AlreadyExistsError: If a permission with the same name exists
            BadRequestError: If an api permission has incomplete metadata
        """
        meta = _metadata_for(request.type, request.metadata)
        if await self.permission_repo.name_exists(request.name):
            raise AlreadyExistsError("Permission with this name")

        async with transaction(self.session):
            permission = await self.permission_repo.add(
                Permission(name=request.name, type=request.type, meta=meta)
            )

        logger.info(f"Permission created: {permission.id} ({permission.name})")
        return PermissionResponse.model_validate(permission)

    async def get_permission(self, request: IdPath) -> PermissionResponse:
        permission = await self._get_permission(uuid.UUID(request.id))
        return PermissionResponse.model_validate(permission)

    async def list_permissions(
        self, request: PermissionQuery
    ) -> PaginatedResponse[PermissionResponse]:
        permissions, total = await self.permission_repo.list_permissions(
            page=request.page,
            page_size=request.page_size,
            name=request.name,
            type=request.type,
            order_by=request.order_by,
            order=request.order,
        )
        return PaginatedResponse[PermissionResponse](
            items=[PermissionResponse.model_validate(p) for p in permissions],
            meta=PaginationMeta.build(total, request.page, request.page_size),
        )

    async def update_permission(self, request: PermissionUpdate) -> PermissionResponse:
        """
        Update the fields present in the request.

        Changing the type or metadata re-checks that the result is complete.
        """
        permission = await self._get_permission(uuid.UUID(request.id))

        if request.name is not None and request.name != permission.name:
            if await self.permission_repo.name_exists(request.name, exclude_id=permission.id):
                raise AlreadyExistsError("Permission with this name")
            permission.name = request.name

        if request.type is not None or request.metadata is not None:
            new_type = request.type or permission.type
            metadata = request.metadata or PermissionMetadata(**(permission.meta or {}))
            permission.meta = _metadata_for(new_type, metadata)
            permission.type = new_type

        async with transaction(self.session):
            permission = await self.permission_repo.update(permission)

        logger.info(f"Permission updated: {permission.id}")
        return PermissionResponse.model_validate(permission)

    async def delete_permission(self, request: IdPath) -> DeleteResult:
        """Delete a permission; the role grants referencing it go with it."""
        permission = await self._get_permission(uuid.UUID(request.id))
        async with transaction(self.session):
            await self.permission_repo.delete(permission)
        logger.info(f"Permission deleted: {permission.id} ({permission.name})")
        return DeleteResult(deleted=1)
