"""Hosting endpoints - reset the cached hosting site, clear alias."""

from fastapi import APIRouter

from src.roomify.api.dependencies import CurrentIdentity, ProjectServiceDep
from src.roomify.api.routes.projects import clear_projects
from src.roomify.schemas.project import ClearProjectsResponse, HostingResetResponse

router = APIRouter(prefix="/hosting", tags=["hosting"])


@router.post(
    "/reset",
    response_model=HostingResetResponse,
    summary="Reset hosting",
    description="Drop the caller's cached hosting site; the next save provisions a new one.",
    responses={
        200: {"description": "Hosting configuration dropped"},
        401: {"description": "Authentication required"},
    },
)
async def reset_hosting(
    _identity: CurrentIdentity,
    service: ProjectServiceDep,
) -> HostingResetResponse:
    """Drop the cached hosting configuration."""
    await service.reset_hosting()
    return HostingResetResponse()


router.add_api_route(
    "/clear",
    clear_projects,
    methods=["POST"],
    response_model=ClearProjectsResponse,
    summary="Clear projects (alias)",
    description="Same as POST /api/projects/clear.",
)
