"""
User service for user management and role assignment.

This module provides:
- User CRUD with uniqueness checks on username and phone
- All-or-nothing batch delete
- Role assignment and removal
- Effective permission lookup
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from warden.core.database import transaction
from warden.core.security import hash_password
from warden.exceptions import AlreadyExistsError, BatchNotFoundError, NotFoundError
from warden.models.role import Role
from warden.models.user import User
from warden.repositories.role_repository import RoleRepository
from warden.repositories.user_repository import UserRepository
from warden.schemas.common import (
    BatchDeleteRequest,
    DeleteResult,
    IdPath,
    PaginatedResponse,
    PaginationMeta,
)
from warden.schemas.permission import PermissionResponse
from warden.schemas.user import (
    AssignRolesRequest,
    RoleRemovalResult,
    RoleSummary,
    UserCreate,
    UserDetailResponse,
    UserQuery,
    UserResponse,
    UserRolePath,
    UserUpdate,
)

logger = logging.getLogger(__name__)


class UserService:
    """
    Service class for user management operations.

    Every write runs in ``transaction(session)``: it commits on success and
    rolls back on any failure.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.role_repo = RoleRepository(session)

    async def _get_user(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def _get_role(self, role_id: uuid.UUID) -> Role:
        role = await self.role_repo.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role")
        return role

    async def create_user(self, request: UserCreate) -> UserResponse:
        """
        Create a user.

        Raises:
            AlreadyExistsError: If the username or phone is taken
        """
        if await self.user_repo.username_exists(request.username):
            logger.warning(f"User creation rejected: username {request.username!r} taken")
            raise AlreadyExistsError("User with this username")
        if request.phone and await self.user_repo.phone_exists(request.phone):
            raise AlreadyExistsError("User with this phone")

        async with transaction(self.session):
            user = await self.user_repo.add(
                User(
                    username=request.username,
                    phone=request.phone,
                    password_hash=hash_password(request.password),
                    profile=request.profile,
                )
            )

        logger.info(f"User created: {user.id} ({user.username})")
        return UserResponse.model_validate(user)

    async def get_user(self, request: IdPath) -> UserDetailResponse:
        """Get a user with the roles it holds."""
        user_id = uuid.UUID(request.id)
        user = await self._get_user(user_id)
        roles = await self.role_repo.get_user_roles(user_id)
        return UserDetailResponse(
            **UserResponse.model_validate(user).model_dump(),
            roles=[RoleSummary.model_validate(r) for r in roles],
        )

    async def list_users(self, request: UserQuery) -> PaginatedResponse[UserResponse]:
        """List users page by page, optionally filtered by username and phone."""
        users, total = await self.user_repo.filter_users(
            page=request.page,
            page_size=request.page_size,
            username=request.username,
            phone=request.phone,
            order_by=request.order_by,
            order=request.order,
        )
        return PaginatedResponse[UserResponse](
            items=[UserResponse.model_validate(u) for u in users],
            meta=PaginationMeta.build(total, request.page, request.page_size),
        )

    async def update_user(self, request: UserUpdate) -> UserResponse:
        """
        Update the fields present in the request.

        Raises:
            NotFoundError: If the user does not exist
            AlreadyExistsError: If the new username or phone is taken
        """
        user_id = uuid.UUID(request.id)
        user = await self._get_user(user_id)

        if request.username is not None and request.username != user.username:
            if await self.user_repo.username_exists(request.username, exclude_id=user_id):
                raise AlreadyExistsError("User with this username")
            user.username = request.username
        if request.phone is not None and request.phone != user.phone:
            if await self.user_repo.phone_exists(request.phone, exclude_id=user_id):
                raise AlreadyExistsError("User with this phone")
            user.phone = request.phone
        if request.password is not None:
            user.password_hash = hash_password(request.password)
        if request.profile is not None:
            user.profile = request.profile

        async with transaction(self.session):
            user = await self.user_repo.update(user)

        logger.info(f"User updated: {user.id}")
        return UserResponse.model_validate(user)

    async def delete_user(self, request: IdPath) -> DeleteResult:
        """Delete a user; its role assignments go with it."""
        user = await self._get_user(uuid.UUID(request.id))
        async with transaction(self.session):
            await self.user_repo.delete(user)
        logger.info(f"User deleted: {user.id} ({user.username})")
        return DeleteResult(deleted=1)

    async def batch_delete(self, request: BatchDeleteRequest) -> DeleteResult:
        """
        Delete several users at once.

        All-or-nothing: if any id does not exist, nothing is deleted.

        Raises:
            BatchNotFoundError: Listing the ids that do not exist
        """
        ids = list(dict.fromkeys(uuid.UUID(i) for i in request.ids))
        existing = await self.user_repo.existing_ids(ids)
        missing = [str(i) for i in ids if i not in existing]
        if missing:
            raise BatchNotFoundError("Users", missing)

        async with transaction(self.session):
            deleted = await self.user_repo.delete_many(ids)

        logger.info(f"Users batch-deleted: {deleted}")
        return DeleteResult(deleted=deleted)

    async def assign_roles(self, request: AssignRolesRequest) -> list[RoleSummary]:
        """
        Assign one or more roles to a user, atomically.

        Raises:
            NotFoundError: If the user or any role does not exist
            ConflictError: If the user already holds any of the roles; no
                assignment from the request is kept in that case
        """
        user_id = uuid.UUID(request.id)
        await self._get_user(user_id)
        role_ids = list(dict.fromkeys(uuid.UUID(i) for i in request.role_ids))
        for role_id in role_ids:
            await self._get_role(role_id)

        async with transaction(self.session):
            for role_id in role_ids:
                await self.role_repo.assign_role(user_id, role_id)

        logger.info(f"Roles assigned to user {user_id}: {[str(r) for r in role_ids]}")
        roles = await self.role_repo.get_user_roles(user_id)
        return [RoleSummary.model_validate(r) for r in roles]

    async def remove_role(self, request: UserRolePath) -> RoleRemovalResult:
        """
        Remove a role from a user.

        Removing a role the user does not hold is not an error.

        Raises:
            NotFoundError: If the user or the role does not exist
        """
        user_id = uuid.UUID(request.id)
        role_id = uuid.UUID(request.role_id)
        await self._get_user(user_id)
        await self._get_role(role_id)

        async with transaction(self.session):
            removed = await self.role_repo.remove_role(user_id, role_id)

        logger.info(f"Role {role_id} removed from user {user_id}: {removed}")
        return RoleRemovalResult(removed=removed)

    async def get_permissions(self, request: IdPath) -> list[PermissionResponse]:
        """Get the effective permission set of a user."""
        user_id = uuid.UUID(request.id)
        await self._get_user(user_id)
        permissions = await self.role_repo.get_effective_permissions(user_id)
        return [PermissionResponse.model_validate(p) for p in permissions]
