import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed user input. Carries the first offending field."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Missing required field: {field}", status_code=status.HTTP_400_BAD_REQUEST)


class Unauthorized(AppError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED)


class Forbidden(AppError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class NotFound(AppError):
    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class InvalidState(AppError):
    """Illegal lifecycle transition (e.g. reviewing a request that is no longer pending)."""

    def __init__(self, message: str = "Request is not pending") -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class Conflict(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class ExternalChannelError(AppError):
    """Spreadsheet, email or upload failure. Never fatal to the primary operation."""

    def __init__(self, channel: str, message: str) -> None:
        self.channel = channel
        super().__init__(f"{channel}: {message}", status_code=status.HTTP_502_BAD_GATEWAY)


class RedirectRequired(AppError):
    """Tenant access verdict that sends the caller elsewhere instead of failing."""

    def __init__(self, location: str) -> None:
        self.location = location
        super().__init__(f"Redirect to {location}", status_code=status.HTTP_303_SEE_OTHER)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = {"Location": exc.location} if isinstance(exc, RedirectRequired) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
        headers=headers,
    )


def _first_error_field(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "body"
    loc = [str(part) for part in errors[0].get("loc", ()) if part != "body"]
    return ".".join(loc) or "body"


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field = _first_error_field(exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            error="ValidationError",
            detail=f"Invalid or missing field: {field}",
            status_code=status.HTTP_400_BAD_REQUEST,
        ).model_dump(),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="InternalServerError",
            detail="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)
