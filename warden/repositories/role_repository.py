"""
Role repository for role-based access control operations.

This module provides database operations for the Role model and the two
join tables: user <-> role assignments and role <-> permission grants,
including the effective permission query used on every authorization check.
"""

import uuid
from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from warden.exceptions import ConflictError
from warden.models.permission import Permission
from warden.models.role import Role, RolePermission, UserRole
from warden.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """
    Repository for Role model operations.

    Extends BaseRepository with role-specific queries:
    - Role name lookups
    - Role assignment and removal
    - Permission grants and revocations
    - Effective permission resolution
    """

    sortable_columns = ("created_at", "updated_at", "name")

    def __init__(self, session: AsyncSession):
        super().__init__(Role, session)

    async def get_by_name(self, name: str) -> Role | None:
        """
        Get role by name.

        Example:
            root = await role_repo.get_by_name("root")
        """
        query = select(Role).where(Role.name == name)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def filter_roles(
        self,
        page: int = 1,
        page_size: int = 10,
        name: str | None = None,
        order_by: str = "created_at",
        order: str = "desc",
    ) -> tuple[list[Role], int]:
        """List roles, optionally filtered by a case-insensitive name substring."""
        filters = []
        if name:
            filters.append(Role.name.icontains(name, autoescape=True))
        return await self.paginate(filters, page, page_size, order_by, order)

    # -------------------------------------------------------------------------
    # User <-> Role
    # -------------------------------------------------------------------------

    async def has_role(self, user_id: uuid.UUID, role_id: uuid.UUID) -> bool:
        query = select(UserRole.user_id).where(
            UserRole.user_id == user_id,
            UserRole.role_id == role_id,
        )
        result = await self.session.execute(query)
        return result.first() is not None

    async def assign_role(self, user_id: uuid.UUID, role_id: uuid.UUID) -> None:
        """
        Assign a role to a user.

        Raises:
            ConflictError: If the user already holds the role. A concurrent
                assignment of the same pair surfaces here too, through the
                primary key of user_roles.
        """
        if await self.has_role(user_id, role_id):
            raise ConflictError("User already holds this role")
        self.session.add(UserRole(user_id=user_id, role_id=role_id))
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ConflictError("User already holds this role") from e

    async def remove_role(self, user_id: uuid.UUID, role_id: uuid.UUID) -> bool:
        """
        Remove a role from a user.

        Returns:
            True if an assignment was removed, False if there was none
        """
        result = await self.session.execute(
            delete(UserRole).where(
                UserRole.user_id == user_id,
                UserRole.role_id == role_id,
            )
        )
        return (result.rowcount or 0) > 0

    async def link_user(self, user_id: uuid.UUID, role_id: uuid.UUID) -> bool:
        """
        Assign a role to a user unless the pair already exists.

        Returns:
            True if a new assignment was created
        """
        inserted = await self.insert_ignoring_conflicts(
            UserRole, [{"user_id": user_id, "role_id": role_id}]
        )
        return inserted > 0

    async def get_user_roles(self, user_id: uuid.UUID) -> list[Role]:
        """Get every role a user currently holds, ordered by name."""
        query = (
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.name)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_effective_permissions(self, user_id: uuid.UUID) -> list[Permission]:
        """
        Get the union of permissions granted by every role the user holds.

        Joins user_roles -> role_permissions -> permissions. A permission
        granted by several roles appears once.

        Example:
            permissions = await role_repo.get_effective_permissions(user_id)
        """
        granted = (
            select(RolePermission.permission_id)
            .join(UserRole, UserRole.role_id == RolePermission.role_id)
            .where(UserRole.user_id == user_id)
        )
        query = (
            select(Permission)
            .where(Permission.id.in_(granted))
            .order_by(Permission.name)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Role <-> Permission
    # -------------------------------------------------------------------------

    async def has_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> bool:
        query = select(RolePermission.role_id).where(
            RolePermission.role_id == role_id,
            RolePermission.permission_id == permission_id,
        )
        result = await self.session.execute(query)
        return result.first() is not None

    async def assign_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> None:
        """
        Grant a permission to a role.

        Raises:
            ConflictError: If the role already has the permission
        """
        if await self.has_permission(role_id, permission_id):
            raise ConflictError("Role already has this permission")
        self.session.add(RolePermission(role_id=role_id, permission_id=permission_id))
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ConflictError("Role already has this permission") from e

    async def revoke_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> bool:
        """
        Revoke a permission from a role.

        Returns:
            True if a grant was removed, False if there was none
        """
        result = await self.session.execute(
            delete(RolePermission).where(
                RolePermission.role_id == role_id,
                RolePermission.permission_id == permission_id,
            )
        )
        return (result.rowcount or 0) > 0

    async def link_permissions(
        self, role_id: uuid.UUID, permission_ids: Iterable[uuid.UUID]
    ) -> int:
        """
        Grant every permission in ``permission_ids`` not already granted.

        Returns:
            Number of grants created
        """
        rows = [
            {"role_id": role_id, "permission_id": permission_id}
            for permission_id in permission_ids
        ]
        return await self.insert_ignoring_conflicts(RolePermission, rows)

    async def get_role_permissions(self, role_id: uuid.UUID) -> list[Permission]:
        """Get the permissions granted directly to a role, ordered by name."""
        query = (
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
            .order_by(Permission.name)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
