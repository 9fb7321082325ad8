"""Store health check, cached for a few seconds."""

import time
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.roomify.core.redis import ping_redis
from src.roomify.core.shutdown import request_tracker

HEALTH_CACHE_TTL = 10  # seconds

router = APIRouter(tags=["health"])


@dataclass
class HealthCache:
    """Last store check and when it ran."""

    ttl: float = HEALTH_CACHE_TTL
    report: dict[str, Any] | None = None
    checked_at: float = 0.0

    def get(self, now: float) -> dict[str, Any] | None:
        if self.report is None or now - self.checked_at >= self.ttl:
            return None
        return {
            **self.report,
            "cached": True,
            "cache_age_seconds": round(now - self.checked_at, 3),
        }

    def put(self, report: dict[str, Any], now: float) -> None:
        self.report = report
        self.checked_at = now

    def clear(self) -> None:
        self.report = None
        self.checked_at = 0.0


health_cache = HealthCache()


def health_response(report: dict[str, Any]) -> JSONResponse:
    healthy = report["status"] == "healthy"
    return JSONResponse(
        content=report,
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.get("/health", summary="Health check")
async def health() -> JSONResponse:
    """Report store health. Anything but ``healthy`` answers 503."""
    if request_tracker.is_shutting_down:
        return health_response(
            {"status": "draining", "in_flight_requests": request_tracker.in_flight_count}
        )

    now = time.time()
    cached = health_cache.get(now)
    if cached is not None:
        return health_response(cached)

    # Without Redis the API still answers, but nothing persists
    redis_status = await ping_redis()
    report: dict[str, Any] = {
        "status": "healthy" if redis_status == "healthy" else "degraded",
        "redis": redis_status,
        "cached": False,
        "timestamp": now,
    }
    health_cache.put(report, now)
    return health_response(report)
