"""Project schemas for API request/response.

Field names are snake_case in Python and camelCase on the wire
(``sourceImage``, ``ownerId``...), matching the records in the store.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class Visibility(StrEnum):
    PRIVATE = "private"
    PUBLIC = "public"


class Scope(StrEnum):
    USER = "user"
    PUBLIC = "public"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Project(CamelModel):
    """A floor-plan design session.

    Unknown keys are ignored on input, so client-only bookkeeping such as
    ``sourcePath`` never reaches the store through this model.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    name: str | None = None
    source_image: str | None = None
    rendered_image: str | None = None
    timestamp: int | None = None
    updated_at: str | None = None
    owner_id: str | None = None
    shared_at: str | None = None
    # Read-time annotations, never persisted
    shared_by: str | None = None
    is_public: bool | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        # Clients generate time-based ids and sometimes send them as numbers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class ProjectPayload(Project):
    """Project as submitted for saving. ``id`` and ``sourceImage`` are checked by the service."""

    id: str | None = None  # type: ignore[assignment]


class SaveProjectRequest(CamelModel):
    project: ProjectPayload | None = None
    visibility: Visibility = Visibility.PRIVATE

    @field_validator("visibility", mode="before")
    @classmethod
    def default_to_private(cls, v: Any) -> Any:
        """Anything other than "public" saves privately."""
        return Visibility.PUBLIC if v == Visibility.PUBLIC.value else Visibility.PRIVATE


class ProjectListResponse(CamelModel):
    projects: list[Project]


class ProjectResponse(CamelModel):
    project: Project


class SaveProjectResponse(CamelModel):
    saved: bool = True
    id: str
    project: Project


class ClearProjectsResponse(CamelModel):
    cleared: int
    cleared_public: int
    cleared_users: int


class HostingResetResponse(CamelModel):
    reset: bool = True
