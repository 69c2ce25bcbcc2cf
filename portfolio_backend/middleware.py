"""
Error normalization and the async-handler adapter.

Every failure raised while handling a request ends up in
``normalize_error``, which maps it to a status code and a message, and is
rendered as ``{"success": false, "message": ...}``.
"""

from __future__ import annotations

import functools
import logging
from typing import Awaitable, Callable

import jwt
import pydantic
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_backend.errors import (
    AuthTokenError,
    PortfolioError,
)
from portfolio_backend.schemas import FIELD_MESSAGE, ErrorEnvelope

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


def _field_messages(errors: list[dict]) -> str:
    messages = []
    for error in errors:
        if error.get("type") == FIELD_MESSAGE:
            messages.append(error["msg"])
            continue
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        prefix = f"{'.'.join(loc)}: " if loc else ""
        messages.append(f"{prefix}{error.get('msg', 'Invalid value')}")
    return " ".join(messages)


def normalize_error(exc: BaseException) -> tuple[int, str]:
    """Classify an error into ``(status_code, message)``."""
    if isinstance(exc, jwt.ExpiredSignatureError):
        exc = AuthTokenError(expired=True)
    elif isinstance(exc, jwt.InvalidTokenError):
        exc = AuthTokenError(expired=False)

    if isinstance(exc, PortfolioError):
        return exc.status_code, exc.message or "Internal Server Error"
    if isinstance(exc, pydantic.ValidationError):
        return 400, _field_messages(exc.errors())
    if isinstance(exc, RequestValidationError):
        return 400, _field_messages(list(exc.errors()))
    if isinstance(exc, StarletteHTTPException):
        return exc.status_code, str(exc.detail or "Internal Server Error")

    logger.exception("Unhandled error", exc_info=exc)
    status_code = getattr(exc, "status_code", None)
    if not isinstance(status_code, int):
        status_code = 500
    return status_code, str(exc) or "Internal Server Error"


def error_response(exc: BaseException) -> JSONResponse:
    status_code, message = normalize_error(exc)
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(message=message).model_dump(),
    )


def catch_async_errors(handler: Handler) -> Handler:
    """
    Wrap a request handler so any exception raised while it runs becomes an
    error envelope. Exactly one response comes back per invocation.
    """

    @functools.wraps(handler)
    async def wrapped(request: Request) -> Response:
        try:
            return await handler(request)
        except Exception as exc:
            return error_response(exc)

    return wrapped


class CatchAsyncErrorsRoute(APIRoute):
    """Route class applying ``catch_async_errors`` to every endpoint."""

    def get_route_handler(self) -> Handler:
        return catch_async_errors(super().get_route_handler())


def install_error_handlers(app: FastAPI) -> None:
    """Cover errors raised outside any route (unknown path, bad method)."""

    async def handle(request: Request, exc: Exception) -> JSONResponse:
        return error_response(exc)

    app.add_exception_handler(StarletteHTTPException, handle)
    app.add_exception_handler(RequestValidationError, handle)
    app.add_exception_handler(PortfolioError, handle)
