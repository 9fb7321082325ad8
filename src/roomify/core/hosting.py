"""Static hosting substrate for durable image URLs.

The hosting provider is external; this module defines the narrow surface the
image resolver needs and a filesystem implementation that serves a site's
files from ``<hosting_storage_path>/<root_dir>``.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from src.roomify.core.config import get_settings
from src.roomify.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class HostingSite:
    subdomain: str
    root_dir: str


class HostingBackend(Protocol):
    async def create_site(self, subdomain: str, root_dir: str) -> HostingSite: ...

    async def mkdir(self, path: str) -> None: ...

    async def write_file(self, path: str, data: bytes, content_type: str) -> None: ...


class LocalHostingBackend:
    """Hosting backed by a local directory.

    Paths use the provider's home-relative convention (``~/roomify/...``);
    they are mapped under ``storage_path`` and may not escape it.
    """

    def __init__(self, storage_path: Path):
        self.storage_path = storage_path.resolve()

    def local_path(self, path: str) -> Path:
        relative = path.removeprefix("~").lstrip("/")
        target = (self.storage_path / relative).resolve()
        if not target.is_relative_to(self.storage_path):
            raise ValueError(f"Path escapes hosting storage: {path}")
        return target

    async def create_site(self, subdomain: str, root_dir: str) -> HostingSite:
        if not subdomain or "/" in subdomain or "." in subdomain:
            raise ValueError(f"Invalid subdomain: {subdomain!r}")
        await self.mkdir(root_dir)
        logger.info("Hosting site created", subdomain=subdomain, root_dir=root_dir)
        return HostingSite(subdomain=subdomain, root_dir=root_dir)

    async def mkdir(self, path: str) -> None:
        target = self.local_path(path)
        await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)

    async def write_file(self, path: str, data: bytes, content_type: str) -> None:
        target = self.local_path(path)
        await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(target.write_bytes, data)


_backend: HostingBackend | None = None


def get_hosting_backend() -> HostingBackend:
    """Get the process-wide hosting backend."""
    global _backend
    if _backend is None:
        _backend = LocalHostingBackend(get_settings().hosting_storage_path)
    return _backend


def reset_hosting_backend() -> None:
    """Reset backend state for testing purposes."""
    global _backend
    _backend = None
