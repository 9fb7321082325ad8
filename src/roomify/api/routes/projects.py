"""Project endpoints - listing, fetch, save with visibility, bulk clear."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from redis.exceptions import RedisError

from src.roomify.api.dependencies import ListingServiceDep, ProjectServiceDep
from src.roomify.core.logging import get_logger
from src.roomify.schemas.project import (
    ClearProjectsResponse,
    ProjectListResponse,
    ProjectResponse,
    SaveProjectRequest,
    SaveProjectResponse,
    Scope,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get(
    "/list",
    response_model=ProjectListResponse,
    response_model_exclude_none=True,
    summary="List projects",
    description=(
        "The caller's private projects merged with every public project, "
        "newest first. Public entries carry isPublic and sharedBy."
    ),
    responses={
        200: {"description": "Merged project listing"},
        401: {"description": "Authentication required"},
        500: {"description": "Failed to list projects"},
    },
)
async def list_projects(service: ListingServiceDep) -> ProjectListResponse:
    """List private and public projects."""
    try:
        projects = await service.list()
    except RedisError as e:
        logger.exception("Failed to list projects")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list projects",
        ) from e
    return ProjectListResponse(projects=projects)


@router.get(
    "/get",
    response_model=ProjectResponse,
    response_model_exclude_none=True,
    summary="Get project",
    description=(
        "Fetch one project from the caller's private namespace (scope=user) "
        "or the public namespace (scope=public, optional ownerId)."
    ),
    responses={
        200: {"description": "Project details"},
        400: {"description": "Project id required"},
        401: {"description": "Authentication required for user scope"},
        404: {"description": "Project not found"},
    },
)
async def get_project(
    service: ProjectServiceDep,
    project_id: Annotated[str | None, Query(alias="id", description="Project id")] = None,
    scope: Annotated[Scope, Query(description="Namespace to read from")] = Scope.USER,
    owner_id: Annotated[
        str | None, Query(alias="ownerId", description="Owner of a public project")
    ] = None,
) -> ProjectResponse:
    """Get a project by id."""
    project = await service.get(project_id, scope, owner_id)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found",
        )
    return ProjectResponse(project=project)


@router.post(
    "/save",
    response_model=SaveProjectResponse,
    response_model_exclude_none=True,
    summary="Save project",
    description=(
        "Create or update a project. visibility=public shares it, "
        "visibility=private (default) keeps or moves it back to the caller."
    ),
    responses={
        200: {"description": "Project saved"},
        400: {"description": "Project id and image required"},
        401: {"description": "Authentication required"},
        403: {"description": "Public project belongs to another account"},
        500: {"description": "Storage or image hosting unavailable"},
    },
)
async def save_project(
    request: SaveProjectRequest,
    service: ProjectServiceDep,
) -> SaveProjectResponse:
    """Save a project and apply the requested visibility."""
    project = await service.save(request.project, request.visibility)
    return SaveProjectResponse(id=project.id, project=project)


@router.post(
    "/clear",
    response_model=ClearProjectsResponse,
    summary="Clear projects",
    description="Delete the caller's projects, all public projects and cached owner names.",
    responses={
        200: {"description": "Number of records removed per namespace"},
        401: {"description": "Authentication required"},
    },
)
async def clear_projects(service: ProjectServiceDep) -> ClearProjectsResponse:
    """Bulk-delete project records."""
    result = await service.clear()
    return ClearProjectsResponse(
        cleared=result.cleared,
        cleared_public=result.cleared_public,
        cleared_users=result.cleared_users,
    )
