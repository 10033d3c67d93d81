"""
API error kinds and the `{ok, data}` / `{ok, error}` response envelope.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


class ApiError(Exception):
    status_code = 500
    default_message = "Something went wrong on our end. Please try again."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "You must be logged in to do that."


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "You don't have permission to do that."


class PremiumRequiredError(ApiError):
    status_code = 403
    default_message = "This feature requires a Flourish Premium subscription 💎"


class NotFoundError(ApiError):
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found.")


class BadRequestError(ApiError):
    status_code = 400


class ConflictError(ApiError):
    status_code = 409


class RateLimitedError(ApiError):
    status_code = 429
    default_message = "Slow down! Too many requests. Try again in a moment. 🌿"


class InternalError(ApiError):
    status_code = 500


class MethodNotAllowedError(ApiError):
    status_code = 405

    def __init__(self, allowed: str):
        super().__init__(f"Method not allowed. Use {allowed}.")


def success(data: Any) -> dict:
    return {"ok": True, "data": data}


def error_body(message: str) -> dict:
    return {"ok": False, "error": message}


def _format_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        # Drop the leading "body"/"query" segment.
        loc = ".".join(str(part) for part in error.get("loc", ())[1:])
        messages.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=BadRequestError.status_code,
        content=error_body(_format_validation_errors(exc)),
    )


async def _http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 405:
        allowed = (exc.headers or {}).get("Allow", "")
        error = MethodNotAllowedError(allowed)
        return JSONResponse(
            status_code=error.status_code,
            content=error_body(error.message),
            headers=exc.headers,
        )
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content=error_body(NotFoundError().message))
    message = exc.detail if isinstance(exc.detail, str) else GENERIC_ERROR_MESSAGE
    return JSONResponse(
        status_code=exc.status_code, content=error_body(message), headers=exc.headers
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body(GENERIC_ERROR_MESSAGE))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
