"""
User management API routes.

This module provides endpoints for:
- User CRUD and batch delete
- Role assignment and removal
- Effective permission lookup
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from warden.api.dependencies import DbSession
from warden.core.pipeline import (
    bind_json,
    bind_path,
    bind_path_and_json,
    bind_query,
    handle,
)
from warden.schemas.common import BatchDeleteRequest, Envelope, IdPath
from warden.schemas.user import (
    AssignRolesRequest,
    UserCreate,
    UserQuery,
    UserRolePath,
    UserUpdate,
)
from warden.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=Envelope, summary="Create user")
async def create_user(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_json(UserCreate), UserService(db).create_user)


@router.get(
    "",
    response_model=Envelope,
    summary="List users",
    description="""
    List users with pagination.

    **Query Parameters:**
    - page, page_size: pagination (page_size 1-100)
    - username: case-insensitive partial match
    - phone: exact match
    - order_by: created_at, updated_at or username; order: asc or desc
    """,
)
async def list_users(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_query(UserQuery), UserService(db).list_users)


@router.post(
    "/batch-delete",
    response_model=Envelope,
    summary="Delete several users",
    description="All-or-nothing: if any id does not exist, nothing is deleted.",
)
async def batch_delete_users(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_json(BatchDeleteRequest), UserService(db).batch_delete)


@router.get("/{id}", response_model=Envelope, summary="Get user with roles")
async def get_user(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path(IdPath), UserService(db).get_user)


@router.put("/{id}", response_model=Envelope, summary="Update user")
async def update_user(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path_and_json(UserUpdate), UserService(db).update_user)


@router.delete("/{id}", response_model=Envelope, summary="Delete user")
async def delete_user(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path(IdPath), UserService(db).delete_user)


@router.post(
    "/{id}/roles",
    response_model=Envelope,
    summary="Assign roles to user",
    description="Atomic: if the user already holds any of the roles, none is assigned.",
)
async def assign_roles(request: Request, db: DbSession) -> JSONResponse:
    return await handle(
        request, bind_path_and_json(AssignRolesRequest), UserService(db).assign_roles
    )


@router.delete("/{id}/roles/{role_id}", response_model=Envelope, summary="Remove role from user")
async def remove_role(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path(UserRolePath), UserService(db).remove_role)


@router.get(
    "/{id}/permissions",
    response_model=Envelope,
    summary="Get effective permissions of user",
)
async def get_user_permissions(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path(IdPath), UserService(db).get_permissions)
