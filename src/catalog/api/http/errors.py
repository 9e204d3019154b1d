"""HTTP error taxonomy and the handlers that render it.

Every error response shares one envelope::

    {"error": str, "message": str, "errors"?: [str, ...], "retry_after"?: int}
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException


class ApiError(HTTPException):
    """Base error translated into the unified JSON envelope."""

    status_code: int = 500
    error: str = "Internal server error"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: list[str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(
            status_code=self.status_code, detail=self.message, headers=headers
        )

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class NotFoundError(ApiError):
    status_code = 404
    error = "Record not found"
    default_message = "The requested record does not exist"


class ValidationFailedError(ApiError):
    status_code = 422
    error = "Validation failed"
    default_message = "The submitted data is invalid"

    def __init__(self, errors: list[str], message: str | None = None) -> None:
        super().__init__(message, errors=list(errors))


class BadRequestError(ApiError):
    status_code = 400
    error = "Bad request"
    default_message = "The request is malformed"


class ForbiddenError(ApiError):
    status_code = 403
    error = "Forbidden"
    default_message = "Access denied"


class UnauthenticatedError(ApiError):
    status_code = 401
    error = "Unauthorized"
    default_message = "Authentication required"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class RateLimitedError(ApiError):
    status_code = 429
    error = "Rate limit exceeded"

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(
            f"Too many requests. Retry after {retry_after} seconds.",
            headers={"Retry-After": str(retry_after)},
        )

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict() | {"retry_after": self.retry_after}


def error_response(exc: ApiError) -> JSONResponse:
    """Render an ApiError; also used by middleware that runs outside the router."""
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers
    )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    logger.info(
        "api_error_handled",
        status_code=exc.status_code,
        error=exc.error,
        error_message=exc.message,
    )
    return error_response(exc)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Map framework-raised HTTP errors (unknown route, bad method) onto the envelope."""
    try:
        title = HTTPStatus(exc.status_code).phrase
    except ValueError:
        title = "Error"
    message = exc.detail if isinstance(exc.detail, str) else title
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": title, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and query strings are a 400, not a 422."""
    messages = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        messages.append(f"{location}: {item.get('msg')}" if location else item.get("msg"))
    error = BadRequestError("Request parameters are missing or malformed", errors=messages)
    return error_response(error)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the error translators on ``app``; specific handlers first."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
