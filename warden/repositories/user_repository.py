"""
User repository for database operations.

This module provides database operations for the User model.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from warden.models.user import User
from warden.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """
    Repository for User model operations.

    Extends BaseRepository with user-specific queries:
    - Username and phone lookups
    - Uniqueness checks
    - Filtered listings
    """

    sortable_columns = ("created_at", "updated_at", "username")

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_username(self, username: str) -> User | None:
        """
        Get user by username.

        Example:
            user = await user_repo.get_by_username("administrator")
        """
        query = select(User).where(User.username == username)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def username_exists(
        self, username: str, exclude_id: uuid.UUID | None = None
    ) -> bool:
        """Check if a username is taken, optionally ignoring one user."""
        query = select(User.id).where(User.username == username)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.session.execute(query)
        return result.first() is not None

    async def phone_exists(
        self, phone: str, exclude_id: uuid.UUID | None = None
    ) -> bool:
        """Check if a phone number is taken, optionally ignoring one user."""
        query = select(User.id).where(User.phone == phone)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.session.execute(query)
        return result.first() is not None

    async def filter_users(
        self,
        page: int = 1,
        page_size: int = 10,
        username: str | None = None,
        phone: str | None = None,
        order_by: str = "created_at",
        order: str = "desc",
    ) -> tuple[list[User], int]:
        """
        List users with optional filters.

        Args:
            username: Case-insensitive substring match
            phone: Exact match

        Returns:
            Tuple of (users on the page, total matching users)
        """
        filters = []
        if username:
            filters.append(User.username.icontains(username, autoescape=True))
        if phone:
            filters.append(User.phone == phone)
        return await self.paginate(filters, page, page_size, order_by, order)
