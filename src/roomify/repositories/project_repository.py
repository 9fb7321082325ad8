"""Project records in the private and public namespaces.

Key layout (identical inside each namespace's key-value store):

- private project:  ``roomify_project_<id>``            (user store)
- public project:   ``roomify_public_<ownerId>_<id>``   (deployment store)
- owner name cache: ``roomify_user_<ownerId>``          (deployment store)
- hosting config:   ``roomify_hosting_config``          (user store)

The repository handles data access only. Ordering of writes across
namespaces, ownership rules and image durability belong to the services.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from src.roomify.core.exceptions import StoreUnavailableError
from src.roomify.core.logging import get_logger
from src.roomify.repositories.kv import KeyValueStore, delete_by_prefix, list_by_prefix
from src.roomify.schemas.project import Project

logger = get_logger(__name__)

PROJECT_PREFIX = "roomify_project_"
PUBLIC_PREFIX = "roomify_public_"
USER_PREFIX = "roomify_user_"
HOSTING_CONFIG_KEY = "roomify_hosting_config"

PERSISTED_FIELDS = (
    "id",
    "name",
    "sourceImage",
    "renderedImage",
    "timestamp",
    "updatedAt",
    "ownerId",
    "sharedAt",
)
PUBLIC_ONLY_FIELDS = ("ownerId", "sharedAt")


def private_key(project_id: str) -> str:
    return f"{PROJECT_PREFIX}{project_id}"


def public_key(owner_id: str, project_id: str) -> str:
    return f"{PUBLIC_PREFIX}{owner_id}_{project_id}"


def owner_key(owner_id: str) -> str:
    return f"{USER_PREFIX}{owner_id}"


def sanitize_for_persistence(record: Mapping[str, Any]) -> dict[str, Any]:
    """Reduce a wire-format project record to the fields that may be stored.

    Client bookkeeping (``sourcePath``, ``renderedPath``, ``publicPath``),
    read-time annotations (``isPublic``, ``sharedBy``), unknown keys and
    null values are all dropped.
    """
    return {field: record[field] for field in PERSISTED_FIELDS if record.get(field) is not None}


def _parse(value: Any, key: str) -> Project | None:
    if value is None:
        return None
    try:
        return Project.model_validate(value)
    except ValidationError:
        logger.warning("Skipping malformed project record", key=key)
        return None


class ProjectRepository:
    """Key-value access to project records.

    ``user_store`` is the caller's private namespace and is None when nobody
    is signed in. ``deployment_store`` is the shared namespace and is None
    when there is no deployment-level context.
    """

    def __init__(
        self,
        user_store: KeyValueStore | None,
        deployment_store: KeyValueStore | None,
    ):
        self.user_store = user_store
        self.deployment_store = deployment_store

    @property
    def has_user_store(self) -> bool:
        return self.user_store is not None

    @property
    def has_deployment_store(self) -> bool:
        return self.deployment_store is not None

    def _user(self) -> KeyValueStore:
        if self.user_store is None:
            raise StoreUnavailableError("Missing user store")
        return self.user_store

    def _deployment(self) -> KeyValueStore:
        if self.deployment_store is None:
            raise StoreUnavailableError("Missing deployment store")
        return self.deployment_store

    # --- Private namespace ---

    async def get_private(self, project_id: str) -> Project | None:
        key = private_key(project_id)
        return _parse(await self._user().get(key), key)

    async def save_private(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Write a private record. Ownership fields never go to the private namespace."""
        payload = sanitize_for_persistence(record)
        for field in PUBLIC_ONLY_FIELDS:
            payload.pop(field, None)
        await self._user().set(private_key(payload["id"]), payload)
        return payload

    async def delete_private(self, project_id: str) -> bool:
        return await self._user().delete(private_key(project_id))

    async def list_private(self) -> list[Project]:
        entries = await list_by_prefix(self._user(), PROJECT_PREFIX)
        return [p for entry in entries if (p := _parse(entry.value, entry.key)) is not None]

    async def clear_private(self) -> int:
        return await delete_by_prefix(self._user(), PROJECT_PREFIX)

    # --- Public namespace ---

    async def get_public(self, owner_id: str, project_id: str) -> Project | None:
        return await self.get_public_by_key(public_key(owner_id, project_id))

    async def get_public_by_key(self, key: str) -> Project | None:
        return _parse(await self._deployment().get(key), key)

    async def save_public(self, owner_id: str, record: Mapping[str, Any]) -> dict[str, Any]:
        payload = sanitize_for_persistence(record)
        await self._deployment().set(public_key(owner_id, payload["id"]), payload)
        return payload

    async def delete_public(self, owner_id: str, project_id: str) -> bool:
        return await self._deployment().delete(public_key(owner_id, project_id))

    async def list_public(self) -> list[Project]:
        entries = await list_by_prefix(self._deployment(), PUBLIC_PREFIX)
        return [p for entry in entries if (p := _parse(entry.value, entry.key)) is not None]

    async def find_public_key_by_project_id(self, project_id: str) -> str | None:
        """Reverse lookup for references that carry no owner id.

        Scans every public record, so it is linear in the number of shared
        projects. Returns the first key whose record has this ``id``.
        """
        entries = await list_by_prefix(self._deployment(), PUBLIC_PREFIX)
        for entry in entries:
            if isinstance(entry.value, dict) and entry.value.get("id") == project_id:
                return entry.key
        return None

    async def clear_public(self) -> int:
        return await delete_by_prefix(self._deployment(), PUBLIC_PREFIX)

    # --- Owner display names ---

    async def get_owner_name(self, owner_id: str) -> str | None:
        record = await self._deployment().get(owner_key(owner_id))
        if not isinstance(record, dict):
            return None
        username = record.get("username")
        return username if isinstance(username, str) and username else None

    async def set_owner_name(self, owner_id: str, username: str) -> None:
        await self._deployment().set(owner_key(owner_id), {"username": username})

    async def clear_owner_names(self) -> int:
        return await delete_by_prefix(self._deployment(), USER_PREFIX)
