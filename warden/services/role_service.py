"""
Role service for role management and permission grants.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from warden.core.database import transaction
from warden.exceptions import AlreadyExistsError, BatchNotFoundError, NotFoundError
from warden.models.role import Role
from warden.repositories.permission_repository import PermissionRepository
from warden.repositories.role_repository import RoleRepository
from warden.schemas.common import (
    BatchDeleteRequest,
    DeleteResult,
    IdPath,
    PaginatedResponse,
    PaginationMeta,
)
from warden.schemas.permission import PermissionResponse
from warden.schemas.role import (
    AssignPermissionsRequest,
    PermissionRevocationResult,
    RoleCreate,
    RoleDetailResponse,
    RolePermissionPath,
    RoleQuery,
    RoleResponse,
    RoleUpdate,
)

logger = logging.getLogger(__name__)


class RoleService:
    """Service class for role management operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.role_repo = RoleRepository(session)
        self.permission_repo = PermissionRepository(session)

    async def _get_role(self, role_id: uuid.UUID) -> Role:
        role = await self.role_repo.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role")
        return role

    async def create_role(self, request: RoleCreate) -> RoleResponse:
        """
        Create a role.

        Raises:
            AlreadyExistsError: If a role with the same name exists
        """
        if await self.role_repo.get_by_name(request.name) is not None:
            raise AlreadyExistsError("Role with this name")

        async with transaction(self.session):
            role = await self.role_repo.add(
                Role(name=request.name, description=request.description)
            )

        logger.info(f"Role created: {role.id} ({role.name})")
        return RoleResponse.model_validate(role)

    async def get_role(self, request: IdPath) -> RoleDetailResponse:
        """Get a role with the permissions granted to it."""
        role_id = uuid.UUID(request.id)
        role = await self._get_role(role_id)
        permissions = await self.role_repo.get_role_permissions(role_id)
        return RoleDetailResponse(
            **RoleResponse.model_validate(role).model_dump(),
            permissions=[PermissionResponse.model_validate(p) for p in permissions],
        )

    async def list_roles(self, request: RoleQuery) -> PaginatedResponse[RoleResponse]:
        roles, total = await self.role_repo.filter_roles(
            page=request.page,
            page_size=request.page_size,
            name=request.name,
            order_by=request.order_by,
            order=request.order,
        )
        return PaginatedResponse[RoleResponse](
            items=[RoleResponse.model_validate(r) for r in roles],
            meta=PaginationMeta.build(total, request.page, request.page_size),
        )

    async def update_role(self, request: RoleUpdate) -> RoleResponse:
        """
        Update the fields present in the request.

        Raises:
            NotFoundError: If the role does not exist
            AlreadyExistsError: If the new name is taken by another role
        """
        role = await self._get_role(uuid.UUID(request.id))

        if request.name is not None and request.name != role.name:
            if await self.role_repo.get_by_name(request.name) is not None:
                raise AlreadyExistsError("Role with this name")
            role.name = request.name
        if request.description is not None:
            role.description = request.description

        async with transaction(self.session):
            role = await self.role_repo.update(role)

        logger.info(f"Role updated: {role.id}")
        return RoleResponse.model_validate(role)

    async def delete_role(self, request: IdPath) -> DeleteResult:
        """
        Delete a role.

        Its user assignments and permission grants are removed with it.
        """
        role = await self._get_role(uuid.UUID(request.id))
        async with transaction(self.session):
            await self.role_repo.delete(role)
        logger.info(f"Role deleted: {role.id} ({role.name})")
        return DeleteResult(deleted=1)

    async def batch_delete(self, request: BatchDeleteRequest) -> DeleteResult:
        """
        Delete several roles at once; all-or-nothing.

        Raises:
            BatchNotFoundError: Listing the ids that do not exist
        """
        ids = list(dict.fromkeys(uuid.UUID(i) for i in request.ids))
        existing = await self.role_repo.existing_ids(ids)
        missing = [str(i) for i in ids if i not in existing]
        if missing:
            raise BatchNotFoundError("Roles", missing)

        async with transaction(self.session):
            deleted = await self.role_repo.delete_many(ids)

        logger.info(f"Roles batch-deleted: {deleted}")
        return DeleteResult(deleted=deleted)

    async def assign_permissions(
        self, request: AssignPermissionsRequest
    ) -> list[PermissionResponse]:
        """
        Grant one or more permissions to a role, atomically.

        Raises:
            NotFoundError: If the role or any permission does not exist
            ConflictError: If the role already has any of the permissions; no
                grant from the request is kept in that case
        """
        role_id = uuid.UUID(request.id)
        await self._get_role(role_id)

        permission_ids = list(dict.fromkeys(uuid.UUID(i) for i in request.permission_ids))
        existing = await self.permission_repo.existing_ids(permission_ids)
        missing = [str(i) for i in permission_ids if i not in existing]
        if missing:
            raise NotFoundError(
                "Permission", message=f"Permission not found: {', '.join(missing)}"
            )

        async with transaction(self.session):
            for permission_id in permission_ids:
                await self.role_repo.assign_permission(role_id, permission_id)

        logger.info(f"Permissions granted to role {role_id}: {len(permission_ids)}")
        permissions = await self.role_repo.get_role_permissions(role_id)
        return [PermissionResponse.model_validate(p) for p in permissions]

    async def revoke_permission(
        self, request: RolePermissionPath
    ) -> PermissionRevocationResult:
        """
        Revoke a permission from a role.

        Revoking a permission the role does not have is not an error.

        Raises:
            NotFoundError: If the role or the permission does not exist
        """
        role_id = uuid.UUID(request.id)
        permission_id = uuid.UUID(request.permission_id)
        await self._get_role(role_id)
        if await self.permission_repo.get_by_id(permission_id) is None:
            raise NotFoundError("Permission")

        async with transaction(self.session):
            revoked = await self.role_repo.revoke_permission(role_id, permission_id)

        logger.info(f"Permission {permission_id} revoked from role {role_id}: {revoked}")
        return PermissionRevocationResult(revoked=revoked)

    async def get_permissions(self, request: IdPath) -> list[PermissionResponse]:
        """Get the permissions granted directly to a role."""
        role_id = uuid.UUID(request.id)
        await self._get_role(role_id)
        permissions = await self.role_repo.get_role_permissions(role_id)
        return [PermissionResponse.model_validate(p) for p in permissions]
