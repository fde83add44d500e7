"""
Base repository with generic CRUD operations.

This module provides a generic repository pattern for database operations.
All specific repositories should inherit from BaseRepository.

Repositories return ``None`` (or empty collections) for absent rows; turning
absence into NotFoundError is the service layer's decision. Uniqueness
violations raised by the store are translated into ConflictError here, at the
first point where they are meaningful.

Type Parameters:
    ModelType: The SQLAlchemy model class (e.g., User, Role, etc.)
"""

import uuid
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from warden.exceptions import BadRequestError, ConflictError
from warden.models.base import Base

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository for database operations.

    Type Parameters:
        ModelType: The SQLAlchemy model class

    Usage:
        class RoleRepository(BaseRepository[Role]):
            def __init__(self, session: AsyncSession):
                super().__init__(Role, session)

            async def get_by_name(self, name: str) -> Role | None:
                ...
    """

    # Columns callers may sort listings by; subclasses extend this
    sortable_columns: tuple[str, ...] = ("created_at", "updated_at")

    def __init__(self, model: type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: The SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def add(self, instance: ModelType) -> ModelType:
        """
        Persist a model instance.

        Args:
            instance: Model instance to persist

        Returns:
            Persisted model instance (with ID and timestamps populated)

        Raises:
            ConflictError: If the row violates a uniqueness constraint
        """
        self.session.add(instance)
        await self._flush()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: uuid.UUID) -> ModelType | None:
        """
        Get a record by ID.

        Example:
            role = await role_repo.get_by_id(role_id)
            if role is None:
                raise NotFoundError("Role")
        """
        query = select(self.model).where(self.model.id == id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def update(self, instance: ModelType) -> ModelType:
        """
        Persist changes to an already-modified model instance.

        The caller is responsible for modifying the instance attributes
        before calling this method.
        """
        await self._flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, instance: ModelType) -> None:
        """
        Hard delete a record.

        Join rows referencing it are removed by the ON DELETE CASCADE
        foreign keys.
        """
        await self.session.delete(instance)
        await self.session.flush()

    async def existing_ids(self, ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
        """Return the subset of ``ids`` that exist in the table."""
        ids = list(ids)
        if not ids:
            return set()
        query = select(self.model.id).where(self.model.id.in_(ids))
        result = await self.session.execute(query)
        return set(result.scalars().all())

    async def delete_many(self, ids: Iterable[uuid.UUID]) -> int:
        """
        Delete all records whose id is in ``ids``.

        Returns:
            Number of rows deleted
        """
        ids = list(ids)
        if not ids:
            return 0
        result = await self.session.execute(
            delete(self.model).where(self.model.id.in_(ids))
        )
        return result.rowcount or 0

    async def count(self) -> int:
        """Count total records."""
        query = select(func.count()).select_from(self.model)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def paginate(
        self,
        filters: list[ColumnElement[bool]],
        page: int,
        page_size: int,
        order_by: str = "created_at",
        order: str = "desc",
    ) -> tuple[list[ModelType], int]:
        """
        Run a filtered, sorted, paginated listing.

        Args:
            filters: WHERE clauses combined with AND
            page: 1-based page number
            page_size: Items per page
            order_by: Column name, must be in ``sortable_columns``
            order: "asc" or "desc"

        Returns:
            Tuple of (items on the page, total matching rows)
        """
        if order_by not in self.sortable_columns:
            raise BadRequestError(f"Cannot sort by '{order_by}'")
        column = getattr(self.model, order_by)
        ordering = column.asc() if order == "asc" else column.desc()

        query: Select[Any] = select(self.model).where(*filters)
        query = query.order_by(ordering, self.model.id)
        query = query.offset((page - 1) * page_size).limit(page_size)
        result = await self.session.execute(query)

        count_query = select(func.count()).select_from(self.model).where(*filters)
        total = (await self.session.execute(count_query)).scalar_one()

        return list(result.scalars().all()), total

    async def insert_ignoring_conflicts(
        self, model: type[Base], rows: list[dict[str, Any]]
    ) -> int:
        """
        Insert ``rows`` into ``model``'s table, skipping rows that would
        violate a unique or primary key constraint. Rows are keyed by column
        name; column defaults fill in anything omitted.

        Re-running the same insert is a no-op, which is what makes seeding and
        bootstrap idempotent.

        Returns:
            Number of rows actually inserted
        """
        if not rows:
            return 0
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            statement = pg_insert(model.__table__).values(rows).on_conflict_do_nothing()
        elif dialect == "sqlite":
            statement = sqlite_insert(model.__table__).values(rows).on_conflict_do_nothing()
        else:
            raise NotImplementedError(f"Upsert is not supported on {dialect}")
        result = await self.session.execute(statement)
        return result.rowcount or 0

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"{self.model.__name__} conflicts with an existing record"
            ) from e
