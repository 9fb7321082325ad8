"""Fixtures for the project store: identities, Redis-backed namespaces,
repositories and an image host that writes to a temporary directory.

The ASGI app and its HTTP client live in tests/integration/conftest.py.
"""

import os

# Set APP_ENV to testing before any app imports
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.pop("REDIS_URL", None)

# ruff: noqa: E402 - settings read the environment at import time
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import httpx
import pytest
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis

from src.roomify.core import redis as redis_core
from src.roomify.core.config import get_settings
from src.roomify.core.hosting import LocalHostingBackend
from src.roomify.core.security import Identity
from src.roomify.repositories import (
    DEPLOYMENT_NAMESPACE,
    ProjectRepository,
    RedisKeyValueStore,
    user_namespace,
)
from src.roomify.services import ImageHostResolver
from tests.helpers import image_server

# Settings may already be cached by a plugin import
get_settings.cache_clear()


# --- Identities ---


@pytest.fixture
def alice() -> Identity:
    return Identity(user_id="user-alice", username="alice")


@pytest.fixture
def bob() -> Identity:
    return Identity(user_id="user-bob", username="bob")


# --- Key-value store ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis]:
    """In-memory Redis shared by every namespace in a test."""
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
async def mock_redis(fake_redis: Redis, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[Redis]:
    """Route every get_redis() lookup to the in-memory server."""
    redis_core.reset_redis_state()

    async def _get_fake_redis() -> Redis:
        return fake_redis

    monkeypatch.setattr("src.roomify.core.redis.get_redis", _get_fake_redis)
    monkeypatch.setattr("src.roomify.api.dependencies.stores.get_redis", _get_fake_redis)
    yield fake_redis
    redis_core.reset_redis_state()


@pytest.fixture
async def mock_redis_unavailable(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[None]:
    """Make get_redis() report that persistence is disabled."""
    redis_core.reset_redis_state()

    async def _get_none() -> None:
        return None

    monkeypatch.setattr("src.roomify.core.redis.get_redis", _get_none)
    monkeypatch.setattr("src.roomify.api.dependencies.stores.get_redis", _get_none)
    yield
    redis_core.reset_redis_state()


# --- Store and repository fixtures ---


@pytest.fixture
def deployment_store(fake_redis: Redis) -> RedisKeyValueStore:
    return RedisKeyValueStore(fake_redis, DEPLOYMENT_NAMESPACE)


@pytest.fixture
def make_repo(
    fake_redis: Redis, deployment_store: RedisKeyValueStore
) -> Callable[..., ProjectRepository]:
    """Build a repository for an identity over the shared fake Redis."""

    def _make(identity: Identity | None, with_deployment: bool = True) -> ProjectRepository:
        user_store = (
            RedisKeyValueStore(fake_redis, user_namespace(identity.user_id)) if identity else None
        )
        return ProjectRepository(user_store, deployment_store if with_deployment else None)

    return _make


# --- Hosting fixtures ---


@pytest.fixture
def hosting_root(tmp_path: Path) -> Path:
    return tmp_path / "hosting"


@pytest.fixture
def hosting_backend(hosting_root: Path) -> LocalHostingBackend:
    return LocalHostingBackend(hosting_root)


@pytest.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient]:
    """HTTP client answering from an in-process image server."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(image_server)) as client:
        yield client


@pytest.fixture
def resolver(
    hosting_backend: LocalHostingBackend, http_client: httpx.AsyncClient
) -> ImageHostResolver:
    return ImageHostResolver(hosting_backend, http_client, get_settings())
