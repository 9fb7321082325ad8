"""Integration test fixtures for the HTTP app.

The app runs in-process over ASGITransport. Redis is fakeredis and image
hosting writes to a temporary directory, so no external services are needed.
"""

from collections.abc import AsyncGenerator, Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.asyncio import Redis

from src.roomify.api.dependencies import get_image_host_resolver, get_redis_client
from src.roomify.api.routes.health import health_cache
from src.roomify.core import redis as redis_core
from src.roomify.core.security import create_identity_token
from src.roomify.core.shutdown import request_tracker
from src.roomify.main import create_app
from src.roomify.services import ImageHostResolver


@pytest.fixture(autouse=True)
async def _reset_app_state() -> AsyncGenerator[None]:
    """Reset process-wide state so tests don't leak into each other."""
    redis_core.reset_redis_state()
    request_tracker.reset()
    health_cache.clear()
    yield
    await redis_core.close_redis()
    request_tracker.reset()
    health_cache.clear()


@pytest.fixture
def app(fake_redis: Redis, resolver: ImageHostResolver) -> FastAPI:
    """App wired to fakeredis and the temporary hosting directory."""
    application = create_app()

    async def _redis() -> Redis:
        return fake_redis

    application.dependency_overrides[get_redis_client] = _redis
    application.dependency_overrides[get_image_host_resolver] = lambda: resolver
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build Authorization headers for a provider-issued token."""

    def _headers(user_id: str = "user-alice", username: str | None = "alice") -> dict[str, str]:
        return {"Authorization": f"Bearer {create_identity_token(user_id, username)}"}

    return _headers
