"""Client for the project storage API.

Used by session front-ends (the upload -> render -> share flow). Persistence
is optional for a session: when the storage URL is not configured, or a
request fails, methods log and return an empty result so the session keeps
working from local state.
"""

from typing import Any, Self
from urllib.parse import urljoin

import httpx
from pydantic import ValidationError

from src.roomify.core.config import get_settings
from src.roomify.core.logging import get_logger
from src.roomify.schemas.project import Project, Scope, Visibility

logger = get_logger(__name__)


class ProjectsClient:
    """Async client for ``/api/projects`` on the storage worker."""

    def __init__(
        self,
        base_url: str | None,
        token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self.base_url = base_url.rstrip("/") + "/" if base_url else None
        self.token = token
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout or get_settings().storage_worker_timeout_seconds
        )

    @classmethod
    def from_settings(cls, token: str | None = None) -> Self:
        return cls(get_settings().storage_worker_url, token=token)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        **kwargs: Any,
    ) -> dict[str, Any] | None:
        if not self.base_url:
            logger.warning(f"Storage worker URL not configured; skipping {action}")
            return None

        try:
            response = await self._http.request(
                method,
                urljoin(self.base_url, path),
                headers=self._headers(),
                **kwargs,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Failed to {action}", error=str(e))
            return None

        if response.is_error:
            logger.error(
                f"Failed to {action}",
                status_code=response.status_code,
                body=response.text,
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Failed to {action}: response is not JSON")
            return None
        return data if isinstance(data, dict) else None

    def _parse_project(self, data: dict[str, Any] | None, action: str) -> Project | None:
        project = data.get("project") if data else None
        if not project:
            return None
        try:
            return Project.model_validate(project)
        except ValidationError:
            logger.error(f"Failed to {action}: malformed project in response")
            return None

    async def get_projects(self) -> list[Project]:
        """Merged private + public listing, newest first. Empty on failure."""
        data = await self._request("GET", "api/projects/list", "fetch history")
        items = data.get("projects") if data else None
        if not isinstance(items, list):
            return []

        projects = []
        for item in items:
            try:
                projects.append(Project.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed project in listing")
        return projects

    async def get_project_by_id(
        self,
        project_id: str,
        scope: Scope = Scope.PUBLIC,
        owner_id: str | None = None,
    ) -> Project | None:
        params = {"id": project_id, "scope": scope.value}
        if owner_id:
            params["ownerId"] = owner_id

        data = await self._request("GET", "api/projects/get", "fetch project", params=params)
        return self._parse_project(data, "fetch project")

    async def save_project(
        self,
        project: Project,
        visibility: Visibility = Visibility.PRIVATE,
    ) -> Project | None:
        """Save a project. The server makes its images durable before storing."""
        body = {
            "project": project.model_dump(by_alias=True, exclude_none=True),
            "visibility": visibility.value,
        }
        data = await self._request("POST", "api/projects/save", "save project", json=body)
        return self._parse_project(data, "save project")

    async def share_project(self, project: Project) -> Project | None:
        return await self.save_project(project, Visibility.PUBLIC)

    async def unshare_project(self, project: Project) -> Project | None:
        return await self.save_project(project, Visibility.PRIVATE)
