import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from warden.core.config import settings
from warden.core.database import (
    close_database_connection,
    create_database_engine,
    create_sessionmaker,
)
from warden.core.permissions import build_permission_catalog
from warden.core.scheduler import RecurringTask
from warden.core.security import hash_password
from warden.services.bootstrap_service import BootstrapService

logger = logging.getLogger(__name__)


# ============================================================================
# Lifespan Context Manager
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """
    Lifespan context manager for startup and shutdown events.

    Handles:
    - Database engine creation and storage in app.state
    - Session factory creation
    - Permission catalog construction
    - Bootstrap of the administrator and root role, then on a timer
    - Resource cleanup on shutdown
    """
    logger.info(f"Starting {settings.app_name} v{settings.version}")
    logger.info(f"Environment: {settings.environment}")

    engine = create_database_engine()
    app.state.sessionmaker = create_sessionmaker(engine)
    logger.info("Sessionmaker created successfully")

    app.state.catalog = build_permission_catalog(settings.api_prefix)
    logger.info(f"Permission catalog built: {len(app.state.catalog)} permissions")

    bootstrap_task: RecurringTask | None = None
    if settings.bootstrap_enabled:
        bootstrap = BootstrapService(
            session_factory=app.state.sessionmaker,
            catalog=app.state.catalog,
            admin_username=settings.admin_username,
            admin_password_hash=(
                settings.admin_password_hash or hash_password(settings.admin_password)
            ),
            root_role_name=settings.root_role_name,
        )
        bootstrap_task = RecurringTask(
            "bootstrap", bootstrap.run, settings.bootstrap_interval_seconds
        )
        await bootstrap_task.run_once()
        bootstrap_task.start()

    yield

    # Cleanup on shutdown
    logger.info("Shutting down application")
    if bootstrap_task is not None:
        await bootstrap_task.stop()
    await close_database_connection(engine)
    app.state.sessionmaker = None
