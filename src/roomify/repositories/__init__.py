from src.roomify.repositories.kv import (
    DEPLOYMENT_NAMESPACE,
    KeyValueStore,
    KVEntry,
    PatternNotSupportedError,
    RedisKeyValueStore,
    user_namespace,
)
from src.roomify.repositories.project_repository import (
    HOSTING_CONFIG_KEY,
    ProjectRepository,
    owner_key,
    private_key,
    public_key,
    sanitize_for_persistence,
)

__all__ = [
    "DEPLOYMENT_NAMESPACE",
    "HOSTING_CONFIG_KEY",
    "KVEntry",
    "KeyValueStore",
    "PatternNotSupportedError",
    "ProjectRepository",
    "RedisKeyValueStore",
    "owner_key",
    "private_key",
    "public_key",
    "sanitize_for_persistence",
    "user_namespace",
]
