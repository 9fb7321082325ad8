"""Test helper functions for common data creation patterns."""

from typing import Any

import httpx
from redis.asyncio import Redis

from src.roomify.core.hosting import HostingSite
from src.roomify.repositories import KeyValueStore, public_key

PNG_BYTES = b"\x89PNG\r\n\x1a\n"
PNG_DATA_URL = "data:image/png;base64,iVBORw0KGgo="
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"

IMAGE_HOST = "images.example.com"
HOSTED_URL = "https://roomify-existing.puter.site/projects/p1/source.png"


def image_server(request: httpx.Request) -> httpx.Response:
    """Serve a couple of fixed images; everything else is a 404."""
    if request.url.host != IMAGE_HOST:
        return httpx.Response(404)
    if request.url.path == "/plan.jpg":
        return httpx.Response(200, content=JPEG_BYTES, headers={"content-type": "image/jpeg"})
    if request.url.path == "/render.webp":
        return httpx.Response(200, content=b"RIFFwebp", headers={"content-type": "image/webp"})
    return httpx.Response(404)


class FailingHostingBackend:
    """Hosting backend whose provider is down."""

    async def create_site(self, subdomain: str, root_dir: str) -> HostingSite:
        raise ConnectionError("hosting provider unavailable")

    async def mkdir(self, path: str) -> None:
        raise ConnectionError("hosting provider unavailable")

    async def write_file(self, path: str, data: bytes, content_type: str) -> None:
        raise OSError("hosting provider unavailable")


async def snapshot(redis: Redis) -> dict[str, Any]:
    """All keys and raw values currently in Redis."""
    keys = sorted(await redis.keys("*"))
    return {key: await redis.get(key) for key in keys}


async def seed_public(
    store: KeyValueStore,
    owner_id: str,
    project_id: str,
    **fields: Any,
) -> dict[str, Any]:
    """Write a public record directly, bypassing the services."""
    record = {"id": project_id, "ownerId": owner_id, **fields}
    await store.set(public_key(owner_id, project_id), record)
    return record
