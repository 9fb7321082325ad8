"""Tests for the merged project listing (src/roomify/services/listing_service.py)."""

from collections.abc import Callable
from typing import Any

import pytest
from redis.asyncio import Redis

from src.roomify.core.exceptions import AuthenticationRequiredError
from src.roomify.core.security import Identity
from src.roomify.repositories import ProjectRepository, RedisKeyValueStore
from src.roomify.repositories.project_repository import USER_PREFIX
from src.roomify.services import ListingService
from src.roomify.services.listing_service import resolve_owner_names
from tests.helpers import HOSTED_URL, seed_public

pytestmark = pytest.mark.unit


class BrokenOwnerNames(RedisKeyValueStore):
    """Deployment store whose owner-name lookups fail."""

    async def get(self, key: str) -> Any | None:
        if key.startswith(USER_PREFIX):
            raise ConnectionError("owner name lookup failed")
        return await super().get(key)


async def save_private(repo: ProjectRepository, project_id: str, timestamp: int) -> None:
    await repo.save_private({"id": project_id, "sourceImage": HOSTED_URL, "timestamp": timestamp})


class TestListingService:
    """Tests for ListingService.list()."""

    async def test_requires_identity(self, make_repo: Callable[..., ProjectRepository]) -> None:
        with pytest.raises(AuthenticationRequiredError):
            await ListingService(make_repo(None), None).list()

    async def test_merges_private_and_public_newest_first(
        self,
        make_repo: Callable[..., ProjectRepository],
        deployment_store: RedisKeyValueStore,
        alice: Identity,
    ) -> None:
        repo = make_repo(alice)
        await save_private(repo, "p1", 100)
        await seed_public(deployment_store, "user-alice", "p2", timestamp=300)
        await seed_public(deployment_store, "user-bob", "p3", timestamp=200)
        await repo.set_owner_name("user-alice", "alice")

        projects = await ListingService(repo, alice).list()

        assert [p.id for p in projects] == ["p2", "p3", "p1"]
        by_id = {p.id: p for p in projects}
        assert by_id["p2"].is_public is True
        assert by_id["p2"].shared_by == "alice"
        assert by_id["p3"].is_public is True
        assert by_id["p3"].shared_by is None
        assert by_id["p1"].is_public is None
        assert by_id["p1"].shared_by is None

    async def test_own_public_copy_shadows_private_leftover(
        self,
        make_repo: Callable[..., ProjectRepository],
        deployment_store: RedisKeyValueStore,
        alice: Identity,
    ) -> None:
        repo = make_repo(alice)
        await save_private(repo, "p1", 100)
        await seed_public(deployment_store, "user-alice", "p1", timestamp=100)

        projects = await ListingService(repo, alice).list()

        assert len(projects) == 1
        assert projects[0].is_public is True
        assert projects[0].owner_id == "user-alice"

    async def test_foreign_public_project_with_same_id_does_not_collide(
        self,
        make_repo: Callable[..., ProjectRepository],
        deployment_store: RedisKeyValueStore,
        alice: Identity,
    ) -> None:
        repo = make_repo(alice)
        await save_private(repo, "p1", 100)
        await seed_public(deployment_store, "user-bob", "p1", timestamp=100)

        projects = await ListingService(repo, alice).list()

        assert sorted((p.id, p.owner_id) for p in projects) == [
            ("p1", None),
            ("p1", "user-bob"),
        ]

    async def test_public_records_without_owner_are_listed(
        self,
        make_repo: Callable[..., ProjectRepository],
        deployment_store: RedisKeyValueStore,
        alice: Identity,
    ) -> None:
        await deployment_store.set("roomify_public_legacy_p1", {"id": "p1", "timestamp": 1})

        projects = await ListingService(make_repo(alice), alice).list()

        assert len(projects) == 1
        assert projects[0].is_public is True
        assert projects[0].shared_by is None

    async def test_without_deployment_store_lists_private_only(
        self,
        make_repo: Callable[..., ProjectRepository],
        deployment_store: RedisKeyValueStore,
        alice: Identity,
    ) -> None:
        repo = make_repo(alice, with_deployment=False)
        await save_private(repo, "p1", 100)
        await seed_public(deployment_store, "user-bob", "p2", timestamp=200)

        projects = await ListingService(repo, alice).list()

        assert [p.id for p in projects] == ["p1"]

    async def test_other_users_private_projects_are_not_listed(
        self,
        make_repo: Callable[..., ProjectRepository],
        alice: Identity,
        bob: Identity,
    ) -> None:
        await save_private(make_repo(bob), "secret", 100)

        assert await ListingService(make_repo(alice), alice).list() == []

    async def test_ordering_is_stable(
        self,
        make_repo: Callable[..., ProjectRepository],
        deployment_store: RedisKeyValueStore,
        alice: Identity,
    ) -> None:
        repo = make_repo(alice)
        await save_private(repo, "a", 100)
        await save_private(repo, "b", 100)
        await repo.save_private({"id": "c", "sourceImage": HOSTED_URL})
        await seed_public(deployment_store, "user-bob", "d", timestamp=100)
        await seed_public(deployment_store, "user-carol", "d", timestamp=100)

        service = ListingService(repo, alice)
        first = await service.list()
        second = await service.list()

        assert first == second
        assert [(p.owner_id, p.id) for p in first] == [
            ("user-carol", "d"),
            ("user-bob", "d"),
            (None, "b"),
            (None, "a"),
            (None, "c"),
        ]

    async def test_failed_owner_lookup_leaves_shared_by_empty(
        self, make_repo: Callable[..., ProjectRepository], alice: Identity, fake_redis: Redis
    ) -> None:
        deployment = BrokenOwnerNames(fake_redis, "deployment:")
        await seed_public(deployment, "user-bob", "p1", timestamp=1)
        repo = ProjectRepository(make_repo(alice).user_store, deployment)

        projects = await ListingService(repo, alice).list()

        assert [(p.id, p.shared_by) for p in projects] == [("p1", None)]


class TestResolveOwnerNames:
    """Tests for resolve_owner_names()."""

    async def test_deduplicates_and_maps_missing_to_none(
        self, make_repo: Callable[..., ProjectRepository]
    ) -> None:
        repo = make_repo(None)
        await repo.set_owner_name("user-alice", "alice")

        names = await resolve_owner_names(repo, ["user-alice", "user-bob", "user-alice"])

        assert names == {"user-alice": "alice", "user-bob": None}

    async def test_without_deployment_store(
        self, make_repo: Callable[..., ProjectRepository], alice: Identity
    ) -> None:
        names = await resolve_owner_names(make_repo(alice, with_deployment=False), ["user-alice"])
        assert names == {"user-alice": None}
