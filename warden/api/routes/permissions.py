"""
Permission management API routes.

Catalog permissions are seeded at startup; these endpoints manage
permissions on top of them.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from warden.api.dependencies import DbSession
from warden.core.pipeline import bind_json, bind_path, bind_path_and_json, bind_query, handle
from warden.schemas.common import Envelope, IdPath
from warden.schemas.permission import PermissionCreate, PermissionQuery, PermissionUpdate
from warden.services.permission_service import PermissionService

router = APIRouter(prefix="/permissions", tags=["Permissions"])


@router.post(
    "",
    response_model=Envelope,
    summary="Create permission",
    description="""
    Create a permission.

    Permissions of type "api" must carry metadata.method and metadata.path,
    the route they unlock. Path segments may be literal, `{name}` or `:name`
    parameters, and the last one may be `*`.
    """,
)
async def create_permission(request: Request, db: DbSession) -> JSONResponse:
    return await handle(
        request, bind_json(PermissionCreate), PermissionService(db).create_permission
    )


@router.get("", response_model=Envelope, summary="List permissions")
async def list_permissions(request: Request, db: DbSession) -> JSONResponse:
    return await handle(
        request, bind_query(PermissionQuery), PermissionService(db).list_permissions
    )


@router.get("/{id}", response_model=Envelope, summary="Get permission")
async def get_permission(request: Request, db: DbSession) -> JSONResponse:
    return await handle(request, bind_path(IdPath), PermissionService(db).get_permission)


@router.put("/{id}", response_model=Envelope, summary="Update permission")
async def update_permission(request: Request, db: DbSession) -> JSONResponse:
    return await handle(
        request, bind_path_and_json(PermissionUpdate), PermissionService(db).update_permission
    )


@router.delete("/{id}", response_model=Envelope, summary="Delete permission")
async def delete_permission(request: Request, db: DbSession) -> JSONResponse:
    return await handle(
        request, bind_path(IdPath), PermissionService(db).delete_permission
    )
