"""
Custom middleware for the FastAPI application.

This module provides:
- Request ID generation and tracking
- Request/response logging
- Authorization gate (token verification plus route permission check)
"""

import logging
import time
import uuid
from collections.abc import Iterable
from typing import Callable

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from warden.core.handlers import error_response
from warden.core.logging import request_id_var
from warden.core.security import TokenService
from warden.exceptions import AppException, AuthenticationError, InternalError
from warden.services.authorization_service import AuthorizationService, normalize_path

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to generate and track request IDs.

    This middleware:
    - Reuses an incoming X-Request-ID header or generates a UUID
    - Stores it in request.state.request_id and in the logging context
    - Adds X-Request-ID header to responses
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log one line per request: method, path, status, client and duration.

    Failures reach the client inside the envelope with HTTP 200, so the
    envelope code is logged by the pipeline rather than here. Adds an
    X-Response-Time header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        client = request.client.host if request.client else "unknown"
        summary = f"{request.method} {request.url.path}"

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"{summary} raised after {time.perf_counter() - started:.3f}s "
                f"client={client}"
            )
            raise

        elapsed = time.perf_counter() - started
        level = logging.INFO if response.status_code < 400 else logging.WARNING
        if response.status_code >= 500:
            level = logging.ERROR
        logger.log(
            level,
            f"{summary} {response.status_code} {elapsed:.3f}s client={client} "
            f"user_agent={request.headers.get('User-Agent', 'unknown')}",
        )

        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"
        return response


class AuthorizationMiddleware(BaseHTTPMiddleware):
    """
    Per-request authorization gate.

    For every request that is not exempt:
    1. Read the ``Authorization: Bearer <token>`` header
    2. Verify the access token and resolve the caller's user id
    3. Unless the path only requires authentication, load the caller's
       effective permissions and match the request's method and path
       against the ``api`` permissions among them

    Denials are answered directly with the failure envelope. On success
    the caller id is placed on ``request.state.user_id`` for the handler.
    """

    def __init__(
        self,
        app: ASGIApp,
        token_service: TokenService,
        exempt_paths: Iterable[str] = (),
        authenticated_paths: Iterable[str] = (),
    ):
        """
        Initialize AuthorizationMiddleware.

        Args:
            app: ASGI application
            token_service: Verifies access tokens
            exempt_paths: Paths served without any credentials
            authenticated_paths: Paths that need a valid token but no permission
        """
        super().__init__(app)
        self.token_service = token_service
        self.exempt_paths = frozenset(normalize_path(p) for p in exempt_paths)
        self.authenticated_paths = frozenset(
            normalize_path(p) for p in authenticated_paths
        )

    def _bearer_token(self, request: Request) -> str | None:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = normalize_path(request.url.path)
        if request.method == "OPTIONS" or path in self.exempt_paths:
            return await call_next(request)

        token = self._bearer_token(request)
        if token is None:
            logger.warning(f"Authentication failed: missing Bearer token for {path}")
            return error_response(
                AuthenticationError("Missing authentication credentials")
            )

        try:
            user_id = self.token_service.verify_token(token)
        except AppException as e:
            logger.warning(f"Authentication failed: {e.error_code} for {path}")
            return error_response(e)

        if path not in self.authenticated_paths:
            try:
                async with request.app.state.sessionmaker() as session:
                    await AuthorizationService(session).authorize(
                        user_id, request.method, path
                    )
            except AppException as e:
                return error_response(e)
            except SQLAlchemyError:
                logger.exception(f"Permission lookup failed for user {user_id}")
                return error_response(InternalError())

        request.state.user_id = user_id
        return await call_next(request)
