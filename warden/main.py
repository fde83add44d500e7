"""
FastAPI application entry point.

This module sets up:
- FastAPI application with middleware
- Exception handlers rendering the response envelope
- Rate limiting
- API routes
- CORS configuration
"""

import logging

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from warden.api.routes import auth, health, permissions, roles, users
from warden.core.config import settings
from warden.core.handlers import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    rate_limit_handler,
    validation_exception_handler,
)
from warden.core.lifespan import lifespan
from warden.core.logging import setup_logging
from warden.core.rate_limit import limiter
from warden.core.security import token_service
from warden.exceptions import AppException
from warden.middleware import (
    AuthorizationMiddleware,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
)

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


# ============================================================================
# FastAPI Application
# ============================================================================
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description=settings.description,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Attach rate limiter to app
app.state.limiter = limiter


# ============================================================================
# Exception Handlers
# ============================================================================
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(Exception, general_exception_handler)


# ============================================================================
# Middleware Setup (Order matters!)
# ============================================================================
# Each add_middleware call wraps the previous ones, so the last one added
# sees the request first.

# 1. Authorization (innermost: runs with request_id already set)
app.add_middleware(
    AuthorizationMiddleware,
    token_service=token_service,
    exempt_paths=[
        "/health",
        "/health/ready",
        "/docs",
        "/docs/oauth2-redirect",
        "/redoc",
        "/openapi.json",
        f"{settings.api_prefix}/auth/login",
        f"{settings.api_prefix}/auth/refresh",
    ],
    authenticated_paths=[f"{settings.api_prefix}/auth/me"],
)

# 2. CORS (answers preflight requests before they reach authorization)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 3. Request logging middleware (logs all requests with request_id)
app.add_middleware(RequestLoggingMiddleware)

# 4. Request ID middleware (outermost, so every log record carries it)
app.add_middleware(RequestIDMiddleware)


# ============================================================================
# API Routes
# ============================================================================
api_router = APIRouter(prefix=settings.api_prefix)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(roles.router)
api_router.include_router(permissions.router)

app.include_router(health.router)
app.include_router(api_router)
