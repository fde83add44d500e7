"""
Liveness and readiness probes.

Both are exempt from authorization and answer plain JSON rather than the
response envelope, so orchestrators can probe them without parsing ``code``.
"""

from typing import Any

from fastapi import APIRouter, Request

from warden.core.config import settings
from warden.core.database import check_database_connection

router = APIRouter(prefix="/health", tags=["Health"])


def _about() -> dict[str, str]:
    return {
        "app": settings.app_name,
        "version": settings.version,
        "environment": settings.environment,
    }


@router.get("")
async def health_check() -> dict[str, str]:
    """The process is up and serving."""
    return {"status": "healthy", **_about()}


@router.get("/ready")
async def readiness_check(request: Request) -> dict[str, Any]:
    """
    The credential store is reachable and the permission catalog is loaded.

    Reports ``degraded`` instead of failing, with one entry per check.
    """
    db_ok = await check_database_connection(request.app.state.sessionmaker)
    catalog = getattr(request.app.state, "catalog", None)
    catalog_ok = catalog is not None and len(catalog) > 0

    return {
        "status": "ready" if db_ok and catalog_ok else "degraded",
        **_about(),
        "checks": {
            "database": "ok" if db_ok else "ko",
            "permission_catalog": "ok" if catalog_ok else "ko",
        },
    }
