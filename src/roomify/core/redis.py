"""Shared Redis connection behind the project namespaces.

Per-user records and the deployment namespace live in one Redis database.
Persistence is optional: without ``REDIS_URL``, or when the server cannot be
reached on first use, ``get_redis()`` returns None and the store-backed
routes answer that the store is unavailable.
"""

from urllib.parse import urlsplit, urlunsplit

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from src.roomify.core.config import get_settings
from src.roomify.core.logging import get_logger

logger = get_logger(__name__)

_pool: ConnectionPool | None = None
_redis: Redis | None = None
_connection_attempted: bool = False


def display_url(url: str) -> str:
    """Connection URL with the password masked, for log lines."""
    parts = urlsplit(url)
    if not parts.password:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


async def _connect(url: str, pool_size: int) -> tuple[ConnectionPool, Redis]:
    pool = ConnectionPool.from_url(url, max_connections=pool_size, decode_responses=True)
    client = Redis(connection_pool=pool)
    try:
        await client.ping()  # type: ignore[misc]
    except BaseException:
        await client.aclose()
        await pool.disconnect()
        raise
    return pool, client


async def get_redis() -> Redis | None:
    """Return the shared client, connecting lazily on the first call.

    A failed first attempt is remembered: later calls return None without
    reconnecting until ``close_redis()`` or ``reset_redis_state()`` runs.
    """
    global _pool, _redis, _connection_attempted

    if _redis is not None or _connection_attempted:
        return _redis

    _connection_attempted = True
    settings = get_settings()
    if not settings.redis_url:
        logger.info("REDIS_URL not set, project persistence disabled")
        return None

    url = display_url(settings.redis_url)
    try:
        _pool, _redis = await _connect(settings.redis_url, settings.redis_pool_size)
    except (RedisError, OSError, ValueError) as e:
        logger.warning("Redis unreachable, project persistence disabled", url=url, error=str(e))
        return None

    logger.info("Redis connected", url=url)
    return _redis


async def ping_redis() -> str:
    """Check the store for /health.

    Returns ``healthy``, ``not_configured`` or ``unhealthy: <reason>``.
    """
    redis = await get_redis()
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()  # type: ignore[misc]
    except (RedisError, OSError) as e:
        return f"unhealthy: {e}"
    return "healthy"


async def close_redis() -> None:
    """Close the pool on shutdown and allow a fresh connection afterwards."""
    if _redis is not None:
        await _redis.aclose()
        logger.info("Redis connection closed")
    if _pool is not None:
        await _pool.disconnect()

    reset_redis_state()


def reset_redis_state() -> None:
    """Forget the connection without closing it. For testing only."""
    global _pool, _redis, _connection_attempted
    _pool = None
    _redis = None
    _connection_attempted = False
