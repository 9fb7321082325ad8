"""Key-value store abstraction over the project namespaces.

Values are JSON documents. Two namespaces share one Redis server:

- the private namespace of a user, ``user:<user_id>:``
- the deployment-wide namespace, ``deployment:``

Repositories never see the namespace prefix; they address keys such as
``roomify_project_<id>`` exactly as laid out for each namespace.
"""

import asyncio
import json
from typing import Any, NamedTuple, Protocol

from redis.asyncio import Redis

from src.roomify.core.logging import get_logger

logger = get_logger(__name__)

DEPLOYMENT_NAMESPACE = "deployment:"
SCAN_BATCH_SIZE = 200

_GLOB_SPECIAL = set("*?[]\\")


class KVEntry(NamedTuple):
    key: str
    value: Any


class PatternNotSupportedError(Exception):
    """Raised by stores whose ``list`` cannot filter keys by pattern."""


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def list(self, pattern: str | None = None) -> list[KVEntry]: ...


def user_namespace(user_id: str) -> str:
    return f"user:{user_id}:"


def escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so ``value`` matches literally."""
    return "".join(f"\\{ch}" if ch in _GLOB_SPECIAL else ch for ch in value)


class RedisKeyValueStore:
    """JSON key-value store over a Redis key prefix."""

    def __init__(self, redis: Redis, namespace: str = ""):
        self.redis = redis
        self.namespace = namespace

    def _full_key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    async def get(self, key: str) -> Any | None:
        raw = await self.redis.get(self._full_key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON value", key=key)
            return None

    async def set(self, key: str, value: Any) -> None:
        await self.redis.set(self._full_key(key), json.dumps(value))

    async def delete(self, key: str) -> bool:
        return bool(await self.redis.delete(self._full_key(key)))

    async def list(self, pattern: str | None = None) -> list[KVEntry]:
        """Return every entry whose key matches ``pattern``.

        SCAN is cursor based; all pages are drained here so callers get one
        complete result. Keys deleted between SCAN and MGET are skipped.
        """
        match = escape_glob(self.namespace) + (pattern or "*")
        keys = [key async for key in self.redis.scan_iter(match=match, count=SCAN_BATCH_SIZE)]
        if not keys:
            return []

        entries: list[KVEntry] = []
        for start in range(0, len(keys), SCAN_BATCH_SIZE):
            batch = keys[start : start + SCAN_BATCH_SIZE]
            values = await self.redis.mget(batch)
            for full_key, raw in zip(batch, values, strict=True):
                if raw is None:
                    continue
                try:
                    value = json.loads(raw)
                except ValueError:
                    logger.warning("Ignoring non-JSON value", key=full_key)
                    continue
                entries.append(KVEntry(full_key[len(self.namespace) :], value))
        return entries


async def list_by_prefix(kv: KeyValueStore, prefix: str) -> list[KVEntry]:
    """List entries under ``prefix``, filtering client-side if the store can't."""
    pattern = f"{escape_glob(prefix)}*"
    try:
        return await kv.list(pattern)
    except PatternNotSupportedError:
        entries = await kv.list()
        return [entry for entry in entries if entry.key.startswith(prefix)]


async def delete_by_prefix(kv: KeyValueStore, prefix: str) -> int:
    """Delete every entry under ``prefix``. Returns the number of entries found."""
    entries = await list_by_prefix(kv, prefix)
    if not entries:
        return 0
    await asyncio.gather(*(kv.delete(entry.key) for entry in entries))
    return len(entries)
