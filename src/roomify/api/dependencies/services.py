"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.roomify.api.dependencies.auth import OptionalIdentity
from src.roomify.api.dependencies.stores import ProjectRepo
from src.roomify.core.config import get_settings
from src.roomify.core.hosting import get_hosting_backend
from src.roomify.core.http import get_http_client
from src.roomify.services import ImageHostResolver, ListingService, ProjectService


def get_image_host_resolver() -> ImageHostResolver:
    """Get image host resolver over the shared hosting backend and HTTP client."""
    return ImageHostResolver(get_hosting_backend(), get_http_client(), get_settings())


ImageHostResolverDep = Annotated[ImageHostResolver, Depends(get_image_host_resolver)]


def get_project_service(
    repo: ProjectRepo,
    resolver: ImageHostResolverDep,
    identity: OptionalIdentity,
) -> ProjectService:
    """Get project service for the current caller."""
    return ProjectService(repo, resolver, identity)


def get_listing_service(repo: ProjectRepo, identity: OptionalIdentity) -> ListingService:
    """Get listing service for the current caller."""
    return ListingService(repo, identity)


ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
ListingServiceDep = Annotated[ListingService, Depends(get_listing_service)]
