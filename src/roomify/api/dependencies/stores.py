"""Key-value store and repository dependencies."""

from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis

from src.roomify.api.dependencies.auth import OptionalIdentity
from src.roomify.core.config import get_settings
from src.roomify.core.redis import get_redis
from src.roomify.repositories import (
    DEPLOYMENT_NAMESPACE,
    KeyValueStore,
    ProjectRepository,
    RedisKeyValueStore,
    user_namespace,
)


async def get_redis_client() -> Redis | None:
    """Get the Redis client, or None when persistence is disabled."""
    return await get_redis()


RedisClient = Annotated[Redis | None, Depends(get_redis_client)]


def get_user_store(redis: RedisClient, identity: OptionalIdentity) -> KeyValueStore | None:
    """The signed-in caller's private namespace."""
    if redis is None or identity is None:
        return None
    return RedisKeyValueStore(redis, user_namespace(identity.user_id))


def get_deployment_store(redis: RedisClient) -> KeyValueStore | None:
    """The deployment-wide namespace, if public sharing is enabled."""
    if redis is None or not get_settings().enable_public_sharing:
        return None
    return RedisKeyValueStore(redis, DEPLOYMENT_NAMESPACE)


UserStore = Annotated[KeyValueStore | None, Depends(get_user_store)]
DeploymentStore = Annotated[KeyValueStore | None, Depends(get_deployment_store)]


def get_project_repository(
    user_store: UserStore,
    deployment_store: DeploymentStore,
) -> ProjectRepository:
    """Get project repository over the caller's and the deployment's stores."""
    return ProjectRepository(user_store, deployment_store)


ProjectRepo = Annotated[ProjectRepository, Depends(get_project_repository)]
