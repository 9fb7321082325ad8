"""FastAPI dependency injection definitions.

Re-exports all dependencies for convenient imports.
"""

# Auth
from src.roomify.api.dependencies.auth import (
    CurrentIdentity,
    OptionalIdentity,
    get_optional_identity,
    require_identity,
)

# Services
from src.roomify.api.dependencies.services import (
    ImageHostResolverDep,
    ListingServiceDep,
    ProjectServiceDep,
    get_image_host_resolver,
    get_listing_service,
    get_project_service,
)

# Stores
from src.roomify.api.dependencies.stores import (
    DeploymentStore,
    ProjectRepo,
    RedisClient,
    UserStore,
    get_deployment_store,
    get_project_repository,
    get_redis_client,
    get_user_store,
)

__all__ = [
    # Auth
    "CurrentIdentity",
    "OptionalIdentity",
    "get_optional_identity",
    "require_identity",
    # Stores
    "DeploymentStore",
    "ProjectRepo",
    "RedisClient",
    "UserStore",
    "get_deployment_store",
    "get_project_repository",
    "get_redis_client",
    "get_user_store",
    # Services
    "ImageHostResolverDep",
    "ListingServiceDep",
    "ProjectServiceDep",
    "get_image_host_resolver",
    "get_listing_service",
    "get_project_service",
]
