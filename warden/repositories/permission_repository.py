"""
Permission repository for database operations.

This module provides lookups, listings and catalog seeding for the
Permission model.
"""

import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from warden.core.permissions import PermissionDefinition
from warden.models.permission import Permission
from warden.repositories.base import BaseRepository


class PermissionRepository(BaseRepository[Permission]):
    """Repository for Permission model operations."""

    sortable_columns = ("created_at", "updated_at", "name", "type")

    def __init__(self, session: AsyncSession):
        super().__init__(Permission, session)

    async def get_by_name(self, name: str) -> Permission | None:
        query = select(Permission).where(Permission.name == name)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def name_exists(
        self, name: str, exclude_id: uuid.UUID | None = None
    ) -> bool:
        query = select(Permission.id).where(Permission.name == name)
        if exclude_id is not None:
            query = query.where(Permission.id != exclude_id)
        result = await self.session.execute(query)
        return result.first() is not None

    async def list_permissions(
        self,
        page: int = 1,
        page_size: int = 10,
        name: str | None = None,
        type: str | None = None,
        order_by: str = "created_at",
        order: str = "desc",
    ) -> tuple[list[Permission], int]:
        """
        List permissions with optional filters.

        Args:
            name: Case-insensitive substring match on the permission key
            type: Exact match on the permission type

        Returns:
            Tuple of (permissions on the page, total matching permissions)
        """
        filters = []
        if name:
            filters.append(Permission.name.icontains(name, autoescape=True))
        if type:
            filters.append(Permission.type == type)
        return await self.paginate(filters, page, page_size, order_by, order)

    async def all_ids(self) -> list[uuid.UUID]:
        """Get the id of every permission in the store."""
        result = await self.session.execute(select(Permission.id))
        return list(result.scalars().all())

    async def seed(self, definitions: Iterable[PermissionDefinition]) -> int:
        """
        Insert catalog permissions that are not yet stored.

        Existing permissions are matched by name and left untouched.

        Returns:
            Number of permissions inserted
        """
        rows = [
            {
                "name": definition.name,
                "type": definition.type,
                "metadata": definition.metadata,
            }
            for definition in definitions
        ]
        return await self.insert_ignoring_conflicts(Permission, rows)
