"""Listing aggregator - one view over a caller's private and all public projects."""

import asyncio
from collections.abc import Iterable

from src.roomify.core.exceptions import AuthenticationRequiredError
from src.roomify.core.logging import get_logger
from src.roomify.core.security import Identity
from src.roomify.repositories.project_repository import ProjectRepository
from src.roomify.schemas.project import Project

logger = get_logger(__name__)


async def resolve_owner_names(
    repo: ProjectRepository,
    owner_ids: Iterable[str],
) -> dict[str, str | None]:
    """Look up display names for owners concurrently.

    Lookups that fail or find nothing map to None; this never raises.
    """
    unique_ids = list(dict.fromkeys(owner_ids))
    if not unique_ids or not repo.has_deployment_store:
        return dict.fromkeys(unique_ids)

    results = await asyncio.gather(
        *(repo.get_owner_name(owner_id) for owner_id in unique_ids),
        return_exceptions=True,
    )

    names: dict[str, str | None] = {}
    for owner_id, result in zip(unique_ids, results, strict=True):
        if isinstance(result, BaseException):
            logger.warning("Owner name lookup failed", owner_id=owner_id, error=str(result))
            names[owner_id] = None
        else:
            names[owner_id] = result
    return names


def _sort_key(project: Project) -> tuple[int, str, str]:
    return (project.timestamp or 0, project.owner_id or "", project.id)


class ListingService:
    """Builds the merged, de-duplicated, newest-first project listing."""

    def __init__(self, repo: ProjectRepository, identity: Identity | None):
        self.repo = repo
        self.identity = identity

    async def list(self) -> list[Project]:
        """List the caller's private projects together with every public project.

        Private entries are keyed by id and public entries by (owner, id), so
        an unrelated private project never collides with someone else's
        public one. A private entry that has a public copy owned by the
        caller is a leftover of an interrupted share; the public copy wins.
        """
        if self.identity is None:
            raise AuthenticationRequiredError("Authentication required")

        private_items = await self.repo.list_private()
        public_items: list[Project] = []
        if self.repo.has_deployment_store:
            public_items = await self.repo.list_public()
        else:
            logger.info("No deployment store, listing private projects only")

        merged: dict[str, Project] = {}
        for project in private_items:
            merged[f"user:{project.id}"] = project
        for project in public_items:
            key = f"public:{project.owner_id or 'unknown'}:{project.id}"
            merged[key] = project.model_copy(update={"is_public": True})

        for project in public_items:
            if project.owner_id == self.identity.user_id:
                merged.pop(f"user:{project.id}", None)

        owner_names = await resolve_owner_names(
            self.repo,
            (p.owner_id for p in merged.values() if p.is_public and p.owner_id),
        )

        hydrated = [
            project.model_copy(
                update={"shared_by": owner_names.get(project.owner_id or "")}
            )
            if project.is_public
            else project
            for project in merged.values()
        ]
        hydrated.sort(key=_sort_key, reverse=True)
        return hydrated
