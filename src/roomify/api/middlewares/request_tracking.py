"""Drain tracking for store-touching requests."""

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint

from src.roomify.core.exceptions import error_body
from src.roomify.core.shutdown import request_tracker

# Health checks and scrapes stay answerable while the app drains
OPERATIONAL_PATHS = frozenset({"/health", "/metrics"})
RETRY_AFTER_SECONDS = 5


async def request_tracking_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """Count requests so shutdown can wait for them.

    After shutdown starts, new requests get a 503 so no save begins a
    cross-namespace move on a connection that is about to close.
    """
    if request.url.path in OPERATIONAL_PATHS:
        return await call_next(request)

    if request_tracker.is_shutting_down:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_body("Service is shutting down"),
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
        )

    async with request_tracker.track_request():
        return await call_next(request)
