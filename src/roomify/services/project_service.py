"""Visibility transition engine - moves projects between namespaces.

A project lives in exactly one of the caller's private namespace or the
deployment's public namespace. Saving with a target visibility is a move:

    share   (-> public):  write public record, then delete private record
    unshare (-> private): write private record, then delete public record

The store has no multi-key transactions, so the two steps are not atomic.
If the second step fails the record is briefly visible in both namespaces;
the listing lets the caller's public copy win, and re-running the same
save converges. Two owners sharing the same id concurrently can race past
the ownership check; the store offers no compare-and-set to prevent it.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from src.roomify.core.exceptions import (
    AuthenticationRequiredError,
    InvalidProjectError,
    OwnershipConflictError,
    SourceImageNotDurableError,
    StoreUnavailableError,
)
from src.roomify.core.logging import bind_project_context, get_logger
from src.roomify.core.security import Identity
from src.roomify.repositories.kv import KeyValueStore
from src.roomify.repositories.project_repository import (
    ProjectRepository,
    public_key,
)
from src.roomify.schemas.project import Project, ProjectPayload, Scope, Visibility
from src.roomify.services.hosting_service import ImageHostResolver
from src.roomify.services.listing_service import resolve_owner_names

logger = get_logger(__name__)


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ClearResult:
    cleared: int
    cleared_public: int
    cleared_users: int


class ProjectService:
    """Saves, fetches and resets project records for one caller."""

    def __init__(
        self,
        repo: ProjectRepository,
        resolver: ImageHostResolver,
        identity: Identity | None,
    ):
        self.repo = repo
        self.resolver = resolver
        self.identity = identity

    def _require_identity(self) -> Identity:
        if self.identity is None:
            raise AuthenticationRequiredError("Authentication required")
        return self.identity

    def _require_user_store(self) -> KeyValueStore:
        if self.repo.user_store is None:
            raise StoreUnavailableError("Project storage is not available")
        return self.repo.user_store

    async def _check_ownership(self, identity: Identity, project_id: str) -> None:
        """Reject the save if the caller's public key holds someone else's record."""
        if not self.repo.has_deployment_store:
            return
        existing = await self.repo.get_public(identity.user_id, project_id)
        if existing is not None and existing.owner_id and existing.owner_id != identity.user_id:
            logger.warning(
                "Ownership conflict on public project",
                project_id=project_id,
                owner_id=existing.owner_id,
            )
            raise OwnershipConflictError("Not allowed")

    async def remember_owner_name(self, identity: Identity) -> str | None:
        """Cache the caller's display name for listings. Best effort."""
        if not identity.username:
            return None
        try:
            await self.repo.set_owner_name(identity.user_id, identity.username)
        except Exception as e:
            logger.warning(f"Owner name cache write failed: {e}")
        return identity.username

    async def save(self, project: ProjectPayload | None, visibility: Visibility) -> Project:
        """Create or update a project and move it to ``visibility``.

        Nothing is written unless the caller is signed in, the payload has an
        id and a source image, the caller owns any existing public record,
        and the source image has been made durable.

        Raises:
            AuthenticationRequiredError: Nobody is signed in.
            InvalidProjectError: Missing id or source image.
            OwnershipConflictError: The public record belongs to another account.
            SourceImageNotDurableError: The source image could not be hosted.
            StoreUnavailableError: Persistence or the public namespace is unavailable.
        """
        identity = self._require_identity()
        if project is None or not project.id or not project.source_image:
            raise InvalidProjectError("Project id and image required")
        user_store = self._require_user_store()
        if visibility is Visibility.PUBLIC and not self.repo.has_deployment_store:
            raise StoreUnavailableError("Missing deployment store")

        project_id = project.id
        bind_project_context(project_id, visibility.value)
        # Validate before image uploads, which may provision hosting in the user store
        await self._check_ownership(identity, project_id)

        source_image = await self.resolver.ensure_durable(
            project.source_image, user_store, project_id, "source"
        )
        if source_image is None:
            logger.warning("Failed to host source image, skipping save")
            raise SourceImageNotDurableError("Failed to host source image")

        rendered_image = None
        if project.rendered_image:
            rendered_image = await self.resolver.ensure_durable(
                project.rendered_image, user_store, project_id, "rendered"
            )
            if rendered_image is None:
                logger.warning("Rendered image not durable, dropping it")

        payload: dict[str, Any] = {
            **project.model_dump(by_alias=True, exclude_none=True),
            "sourceImage": source_image,
            "renderedImage": rendered_image,
            "updatedAt": utc_now_iso(),
        }

        # Uploads can take a while; check again right before writing
        await self._check_ownership(identity, project_id)

        if visibility is Visibility.PRIVATE:
            stored = await self.repo.save_private(payload)
            if self.repo.has_deployment_store:
                await self.repo.delete_public(identity.user_id, project_id)
            logger.info("Project saved")
            return Project.model_validate(stored)

        username = await self.remember_owner_name(identity)
        stored = await self.repo.save_public(
            identity.user_id,
            {**payload, "ownerId": identity.user_id, "sharedAt": utc_now_iso()},
        )
        await self.repo.delete_private(project_id)
        logger.info("Project saved")
        return Project.model_validate(stored).model_copy(
            update={"is_public": True, "shared_by": username}
        )

    async def share(self, project: ProjectPayload) -> Project:
        return await self.save(project, Visibility.PUBLIC)

    async def unshare(self, project: ProjectPayload) -> Project:
        return await self.save(project, Visibility.PRIVATE)

    async def get(
        self,
        project_id: str | None,
        scope: Scope = Scope.USER,
        owner_id: str | None = None,
    ) -> Project | None:
        """Fetch one project. Returns None when it does not exist in ``scope``.

        Public fetches without an owner id fall back to scanning the public
        namespace for the first record with a matching id.
        """
        if not project_id:
            raise InvalidProjectError("Project id required")

        if scope is Scope.PUBLIC:
            if not self.repo.has_deployment_store:
                raise StoreUnavailableError("Missing deployment store")
            key = (
                public_key(owner_id, project_id)
                if owner_id
                else await self.repo.find_public_key_by_project_id(project_id)
            )
            if key is None:
                return None
            project = await self.repo.get_public_by_key(key)
            if project is None:
                return None
            owners = [project.owner_id] if project.owner_id else []
            names = await resolve_owner_names(self.repo, owners)
            return project.model_copy(
                update={"is_public": True, "shared_by": names.get(project.owner_id or "")}
            )

        self._require_identity()
        self._require_user_store()
        return await self.repo.get_private(project_id)

    async def clear(self) -> ClearResult:
        """Delete the caller's projects, all public projects and the owner name cache."""
        self._require_identity()
        if not self.repo.has_user_store and not self.repo.has_deployment_store:
            raise StoreUnavailableError("Project storage is not available")
        cleared = await self.repo.clear_private() if self.repo.has_user_store else 0
        cleared_public = 0
        cleared_users = 0
        if self.repo.has_deployment_store:
            cleared_public = await self.repo.clear_public()
            cleared_users = await self.repo.clear_owner_names()
        logger.info(
            "Projects cleared",
            cleared=cleared,
            cleared_public=cleared_public,
            cleared_users=cleared_users,
        )
        return ClearResult(cleared, cleared_public, cleared_users)

    async def reset_hosting(self) -> None:
        """Drop the caller's cached hosting site."""
        self._require_identity()
        await self.resolver.reset(self._require_user_store())

