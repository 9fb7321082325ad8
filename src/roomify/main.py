"""FastAPI application for the Roomify project store."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from src.roomify.api.middlewares import setup_middlewares
from src.roomify.api.routes import health
from src.roomify.api.routes.router import api_router, fallback_router
from src.roomify.core.config import get_settings
from src.roomify.core.exceptions import setup_exception_handlers
from src.roomify.core.http import close_http_client
from src.roomify.core.logging import get_logger, setup_logging
from src.roomify.core.redis import close_redis
from src.roomify.core.shutdown import request_tracker

logger = get_logger(__name__)

OPENAPI_TAGS = [
    {"name": "projects", "description": "Project listing, fetch, save and visibility"},
    {"name": "hosting", "description": "Durable image hosting configuration"},
    {"name": "health", "description": "Store health check"},
]


async def drain_and_close(grace_period: float) -> None:
    """Stop taking work, wait for in-flight saves, then release connections."""
    await request_tracker.start_shutdown()
    if not await request_tracker.wait_for_drain(timeout=grace_period):
        logger.warning(
            "Closing connections with requests still in flight; "
            "interrupted visibility changes converge when retried"
        )
    await close_http_client()
    await close_redis()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    settings = get_settings()
    setup_logging(settings.debug, settings.log_level)
    logger.info(
        "Starting project store",
        app_name=settings.app_name,
        env=settings.app_env,
        public_sharing=settings.enable_public_sharing,
    )

    yield

    await drain_and_close(settings.shutdown_grace_period)
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    settings = get_settings()
    docs = settings.enable_openapi

    app = FastAPI(
        title=settings.app_name,
        description="Project persistence and sharing for floor-plan renders",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
    )

    setup_exception_handlers(app)
    setup_middlewares(app, settings)

    app.include_router(health.router)
    app.include_router(api_router)

    Instrumentator(excluded_handlers=["/health", "/metrics"]).instrument(app).expose(
        app, endpoint="/metrics", include_in_schema=False
    )

    # Must be registered last: it matches every GET path
    app.include_router(fallback_router)

    return app


app = create_app()
