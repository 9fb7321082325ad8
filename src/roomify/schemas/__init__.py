from src.roomify.schemas.project import (
    ClearProjectsResponse,
    HostingResetResponse,
    Project,
    ProjectListResponse,
    ProjectPayload,
    ProjectResponse,
    SaveProjectRequest,
    SaveProjectResponse,
    Scope,
    Visibility,
)

__all__ = [
    "ClearProjectsResponse",
    "HostingResetResponse",
    "Project",
    "ProjectListResponse",
    "ProjectPayload",
    "ProjectResponse",
    "SaveProjectRequest",
    "SaveProjectResponse",
    "Scope",
    "Visibility",
]
