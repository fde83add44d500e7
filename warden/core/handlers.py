"""
Exception handlers and the response envelope.

Every response leaves the service as ``{"code", "msg", "data"}`` with HTTP
status 200. ``code == 200`` means success; any other value is the failure
category. This module provides:
- envelope_response / error_response builders
- AppException handler
- Request validation error handler (RequestValidationError)
- Starlette HTTPException handler (unknown routes, wrong methods)
- Rate limit exceeded handler (RateLimitExceeded)
- General unhandled exception handler (Exception)
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from warden.exceptions import (
    AppException,
    BadRequestError,
    InternalError,
    RateLimitExceededError,
)

logger = logging.getLogger(__name__)

SUCCESS_CODE = 200
SUCCESS_MESSAGE = "success"


def envelope_response(
    data: Any = None,
    code: int = SUCCESS_CODE,
    msg: str = SUCCESS_MESSAGE,
) -> JSONResponse:
    """Wrap ``data`` in the envelope. Transport status is always 200."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"code": code, "msg": msg, "data": jsonable_encoder(data)},
    )


def error_response(exc: AppException) -> JSONResponse:
    """Render an AppException as a failure envelope with null data."""
    return JSONResponse(status_code=status.HTTP_200_OK, content=exc.to_envelope())


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom application exceptions.

    Converts AppException to the failure envelope.
    """
    logger.warning(
        f"Application exception: {exc.error_code} - {exc.message} "
        f"(request_id={getattr(request.state, 'request_id', 'unknown')})"
    )
    return error_response(exc)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle FastAPI request validation errors.

    Only the first error is surfaced, as for pipeline validation.
    """
    errors = exc.errors()
    logger.warning(
        f"Validation error: {errors} "
        f"(request_id={getattr(request.state, 'request_id', 'unknown')})"
    )

    message = "Request validation failed"
    if errors:
        first = errors[0]
        location = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
        message = f"{location}: {first['msg']}" if location else first["msg"]

    return error_response(BadRequestError(message))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle framework HTTP errors (404 for unknown routes, 405, ...)."""
    logger.warning(
        f"HTTP exception: {exc.status_code} - {exc.detail} "
        f"(request_id={getattr(request.state, 'request_id', 'unknown')})"
    )
    return error_response(
        AppException(str(exc.detail), code=exc.status_code, error_code="HTTP_ERROR")
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    logger.warning(
        f"Rate limit exceeded: {request.client.host if request.client else 'unknown'} "
        f"(request_id={getattr(request.state, 'request_id', 'unknown')})"
    )
    return error_response(RateLimitExceededError())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full error and returns a generic failure envelope; internal
    details never reach the client.
    """
    logger.error(
        f"Unexpected error: {str(exc)} "
        f"(request_id={getattr(request.state, 'request_id', 'unknown')})",
        exc_info=True,
    )
    return error_response(InternalError())
