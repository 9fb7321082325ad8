"""Shared outbound HTTP client for image fetches."""

import httpx

from src.roomify.core.config import get_settings
from src.roomify.core.logging import get_logger

logger = get_logger(__name__)

_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Get the shared AsyncClient, creating it on first use."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = httpx.AsyncClient(
            timeout=settings.image_fetch_timeout_seconds,
            follow_redirects=True,
        )
    return _client


async def close_http_client() -> None:
    """Close the shared client. Should be called during application shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        logger.info("HTTP client closed")
    _client = None
