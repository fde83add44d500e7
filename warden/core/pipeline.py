"""
Request pipeline: bind -> validate -> execute -> respond.

Every endpoint composes the same three stages over a small sum type:
``Ok(value)`` carries a stage's output to the next stage, ``Err(error)``
carries an AppException straight to the response. The first Err
short-circuits everything after it.

Usage:
    @router.post("")
    async def create_role(request: Request, db: AsyncSession = Depends(get_db)):
        return await handle(request, bind_json(RoleCreate), RoleService(db).create_role)
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

import pydantic
from fastapi import Request
from fastapi.responses import JSONResponse

from warden.core.config import settings
from warden.core.handlers import envelope_response, error_response
from warden.core.validation import first_violation
from warden.exceptions import AppException, BadRequestError, InternalError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")
M = TypeVar("M", bound=pydantic.BaseModel)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: AppException


Result = Union[Ok[T], Err]

Binder = Callable[[Request], Awaitable[Result[M]]]


# =============================================================================
# Bind
# =============================================================================


def _load(model: type[M], payload: Any) -> Result[M]:
    try:
        return Ok(model.model_validate(payload))
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(loc) for loc in first["loc"])
        message = f"{location}: {first['msg']}" if location else first["msg"]
        return Err(BadRequestError(message))


async def _read_json_object(request: Request) -> Result[dict[str, Any]]:
    body = await request.body()
    if not body.strip():
        return Ok({})
    try:
        payload = json.loads(body)
    except ValueError as e:
        return Err(BadRequestError(f"Invalid JSON body: {e}"))
    if not isinstance(payload, dict):
        return Err(BadRequestError("Request body must be a JSON object"))
    return Ok(payload)


def bind_json(model: type[M]) -> Binder[M]:
    """Bind the JSON request body. An empty body binds as ``{}``."""

    async def binder(request: Request) -> Result[M]:
        body = await _read_json_object(request)
        if isinstance(body, Err):
            return body
        return _load(model, body.value)

    return binder


def bind_path(model: type[M]) -> Binder[M]:
    """Bind path parameters."""

    async def binder(request: Request) -> Result[M]:
        return _load(model, dict(request.path_params))

    return binder


def bind_query(model: type[M]) -> Binder[M]:
    """Bind query string parameters (last value wins for repeated keys)."""

    async def binder(request: Request) -> Result[M]:
        return _load(model, dict(request.query_params))

    return binder


def bind_none() -> Binder[Any]:
    """Bind nothing, for endpoints whose only input is the caller identity."""

    async def binder(request: Request) -> Result[None]:
        return Ok(None)

    return binder


def bind_path_and_json(model: type[M]) -> Binder[M]:
    """Bind the JSON body and path parameters; path parameters win on clashes."""

    async def binder(request: Request) -> Result[M]:
        body = await _read_json_object(request)
        if isinstance(body, Err):
            return body
        return _load(model, {**body.value, **request.path_params})

    return binder


# =============================================================================
# Validate
# =============================================================================


def validate(value: T) -> Result[T]:
    """Check ``value`` against its declared rules; first violation wins."""
    message = first_violation(value)
    if message is not None:
        return Err(BadRequestError(message))
    return Ok(value)


# =============================================================================
# Execute
# =============================================================================


async def execute(
    operation: Callable[[T], Awaitable[R]],
    value: T,
    timeout: float | None = None,
) -> Result[R]:
    """
    Run the domain operation under a deadline.

    AppExceptions become Err as they are. Anything else is logged and
    replaced with a generic InternalError. Cancellation propagates.
    """
    try:
        async with asyncio.timeout(timeout):
            return Ok(await operation(value))
    except AppException as e:
        return Err(e)
    except TimeoutError:
        logger.error(f"Operation {getattr(operation, '__qualname__', operation)} timed out")
        return Err(InternalError("Request timed out"))
    except Exception:
        logger.exception(
            f"Unhandled error in {getattr(operation, '__qualname__', operation)}"
        )
        return Err(InternalError())


# =============================================================================
# Compose
# =============================================================================


async def run(
    request: Request,
    bind: Binder[M],
    operation: Callable[[M], Awaitable[R]],
    timeout: float | None = None,
) -> Result[R]:
    """Chain bind, validate and execute, stopping at the first Err."""
    bound = await bind(request)
    if isinstance(bound, Err):
        return bound
    checked = validate(bound.value)
    if isinstance(checked, Err):
        return checked
    return await execute(operation, checked.value, timeout)


def render(result: Result[Any], request: Request | None = None) -> JSONResponse:
    """Turn a Result into the response envelope."""
    if isinstance(result, Ok):
        return envelope_response(result.value)
    error = result.error
    request_id = getattr(request.state, "request_id", "unknown") if request else "unknown"
    logger.warning(
        f"Request failed: {error.error_code} - {error.message} (request_id={request_id})"
    )
    return error_response(error)


async def handle(
    request: Request,
    bind: Binder[M],
    operation: Callable[[M], Awaitable[Any]],
) -> JSONResponse:
    """Run the full pipeline for one request and render the envelope."""
    result = await run(request, bind, operation, settings.request_timeout_seconds)
    return render(result, request)
