"""Project store errors and exception handlers with request_id in responses."""

from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.roomify.core.logging import get_logger

logger = get_logger(__name__)


class ProjectStoreError(Exception):
    """Base class for failures the project store reports to its callers.

    Each subclass carries the HTTP status the API layer maps it to.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationRequiredError(ProjectStoreError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidProjectError(ProjectStoreError):
    status_code = status.HTTP_400_BAD_REQUEST


class OwnershipConflictError(ProjectStoreError):
    """A public record exists under the target key and belongs to someone else."""

    status_code = status.HTTP_403_FORBIDDEN


class StoreUnavailableError(ProjectStoreError):
    """The key-value store (or the deployment-level namespace) is not available."""


class SourceImageNotDurableError(ProjectStoreError):
    """The source image could not be moved to durable hosting; nothing was written."""


def error_body(detail: Any, request_id: str | None = None) -> dict[str, Any]:
    """JSON error payload; every error carries the correlation id."""
    return {"detail": detail, "request_id": request_id or correlation_id.get()}


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Covers FastAPI's HTTPException too, which subclasses Starlette's."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.detail),
        headers=exc.headers,
    )


async def project_store_error_handler(request: Request, exc: ProjectStoreError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning(
            "Project store failure",
            error_type=type(exc).__name__,
            detail=exc.message,
            path=request.url.path,
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = correlation_id.get()
    logger.exception("Unhandled exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", request_id),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Every error response carries request_id; domain errors map to their status."""
    handlers = {
        StarletteHTTPException: http_error_handler,
        ProjectStoreError: project_store_error_handler,
    }
    for exc_class, handler in handlers.items():
        app.add_exception_handler(exc_class, handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
