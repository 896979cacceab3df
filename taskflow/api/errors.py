# PURPOSE: one error taxonomy for the whole API, rendered as the JSON envelope
#   {"error": "...", "success": false, "errors"?: {field: [messages]}}

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("taskflow.errors")


class ApiError(Exception):
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        errors: dict[str, list[str]] | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.message = message or self.default_message
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)


class BadRequest(ApiError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"

    def __init__(self, message: str | None = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "A record with this value already exists"


class InternalServerError(ApiError):
    status_code = 500
    default_message = "An unexpected error occurred"


def _is_unique_violation(exc: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed"; postgres: SQLSTATE 23505
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == "23505" or getattr(orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(orig).lower()


def translate_exception(exc: Exception) -> ApiError:
    """Map any exception to the API taxonomy (storage errors included)."""
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, NoResultFound):
        return NotFound()
    if isinstance(exc, IntegrityError):
        if _is_unique_violation(exc):
            return Conflict()
        return BadRequest("Referenced record does not exist")
    if isinstance(exc, SQLAlchemyError):
        return InternalServerError("Database error")
    return InternalServerError()


def _field_name(loc: tuple[Any, ...] | list[Any]) -> str:
    # drop the "body"/"query"/"path" prefix: ("body", "taskIds", 0) -> "taskIds.0"
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path", "header", "cookie") and len(parts) > 1:
        parts = parts[1:]
    return ".".join(parts)


def validation_messages(errors: list[dict[str, Any]]) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for err in errors:
        out.setdefault(_field_name(err.get("loc", ())), []).append(err.get("msg", "Invalid value"))
    return out


def error_response(err: ApiError) -> JSONResponse:
    content: dict[str, Any] = {"error": err.message, "success": False}
    if err.errors:
        content["errors"] = err.errors
    return JSONResponse(status_code=err.status_code, content=content, headers=err.headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Every failure leaves the API as an envelope; 5xx are logged with context."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(
                "api_error path=%s request_id=%s error=%s",
                request.url.path,
                getattr(request.state, "request_id", "-"),
                exc.message,
            )
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message, "success": False},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        err = BadRequest("Validation error", errors=validation_messages(list(exc.errors())))
        return error_response(err)

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
        err = translate_exception(exc)
        if err.status_code >= 500:
            logger.exception(
                "storage_error path=%s request_id=%s",
                request.url.path,
                getattr(request.state, "request_id", "-"),
            )
        return error_response(err)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_error path=%s request_id=%s",
            request.url.path,
            getattr(request.state, "request_id", "-"),
        )
        return error_response(InternalServerError())
