"""
Role management API routes.
"""

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
from warden.schemas.role import (
    AssignPermissionsRequest,
    RoleCreate,
    RolePermissionPath,
    RoleQuery,
    RoleUpdate,
)
from warden.services.role_service import RoleService

router = APIRouter(prefix="/roles", tags=["Roles"])


@router.post("", response_model=Envelope, summary="Create role")
async def create_role(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_json(RoleCreate), RoleService(db).create_role)


@router.get("", response_model=Envelope, summary="List roles")
async def list_roles(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_query(RoleQuery), RoleService(db).list_roles)


@router.post(
    "/batch-delete",
    response_model=Envelope,
    summary="Delete several roles",
    description="All-or-nothing: if any id does not exist, nothing is deleted.",
)
async def batch_delete_roles(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_json(BatchDeleteRequest), RoleService(db).batch_delete)


@router.get("/{id}", response_model=Envelope, summary="Get role with permissions")
async def get_role(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path(IdPath), RoleService(db).get_role)


@router.put("/{id}", response_model=Envelope, summary="Update role")
async def update_role(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path_and_json(RoleUpdate), RoleService(db).update_role)


@router.delete("/{id}", response_model=Envelope, summary="Delete role")
async def delete_role(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path(IdPath), RoleService(db).delete_role)


@router.get("/{id}/permissions", response_model=Envelope, summary="List role permissions")
async def get_role_permissions(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path(IdPath), RoleService(db).get_permissions)


@router.post(
    "/{id}/permissions",
    response_model=Envelope,
    summary="Grant permissions to role",
    description="Atomic: if the role already has any of the permissions, none is granted.",
)
async def assign_permissions(request: Request, db: DbSession) -> JSONResponse:
    return await handle(
        request,
        bind_path_and_json(AssignPermissionsRequest),
        RoleService(db).assign_permissions,
    )


@router.delete(
    "/{id}/permissions/{permission_id}",
    response_model=Envelope,
    summary="Revoke permission from role",
)
async def revoke_permission(request: Request, db: DbSession) -> JSONResponse:
    return await handle(
        request, bind_path(RolePermissionPath), RoleService(db).revoke_permission
    )
