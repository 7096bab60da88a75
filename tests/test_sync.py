"""Tests for the sync coordinator."""

import asyncio

import pytest

from toolkeeper.catalog.client import BackendUnavailableError
from toolkeeper.catalog.items import ItemStore
from toolkeeper.catalog.models import AssetType, CatalogItem, SourceRepo, SyncOutcome
from toolkeeper.catalog.repos import RepoCatalog
from toolkeeper.catalog.sync import SyncCoordinator


def _item(item_id, repo_id, name=None):
    return CatalogItem(id=item_id, repo_id=repo_id, asset_type=AssetType.MCP, name=name or f"item{item_id}")


@pytest.fixture
def store():
    store = ItemStore()
    store.replace_all([_item(10, 1), _item(20, 2)])
    return store


@pytest.fixture
def repos(backend, store):
    repos = RepoCatalog(backend, store)
    repos.replace([SourceRepo(id=1, name="one"), SourceRepo(id=2, name="two")])
    return repos


@pytest.fixture
def coordinator(backend, repos, store):
    return SyncCoordinator(backend, repos, store)


class TestSyncOne:
    """Tests for SyncCoordinator.sync_one."""

    @pytest.mark.asyncio
    async def test_reloads_repo_items(self, coordinator, backend, store):
        backend.sync_repo.return_value = SyncOutcome(added=1, updated=0, removed=1)
        backend.list_items.return_value = [_item(11, 1), _item(12, 1)]

        outcome = await coordinator.sync_one(1)

        assert outcome.added == 1
        assert coordinator.last_outcome is outcome
        assert sorted(i.id for i in store.items) == [11, 12, 20]
        backend.list_items.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_marks_synced_even_without_changes(self, coordinator, backend, repos):
        """Test a no-change sync still stamps last_synced_at."""
        backend.sync_repo.return_value = SyncOutcome()
        backend.list_items.return_value = [_item(10, 1)]

        await coordinator.sync_one(1)

        assert repos.get(1).last_synced_at is not None
        assert repos.get(2).last_synced_at is None

    @pytest.mark.asyncio
    async def test_failure_propagates_and_leaves_state(self, coordinator, backend, repos, store):
        backend.sync_repo.side_effect = BackendUnavailableError("down")

        with pytest.raises(BackendUnavailableError):
            await coordinator.sync_one(1)

        assert coordinator.is_syncing is False
        assert repos.get(1).last_synced_at is None
        assert sorted(i.id for i in store.items) == [10, 20]

    @pytest.mark.asyncio
    async def test_second_call_while_running_is_noop(self, coordinator, backend):
        """Test a sync requested during another sync returns None at once."""
        gate = asyncio.Event()

        async def slow_sync(repo_id):
            await gate.wait()
            return SyncOutcome(updated=1)

        backend.sync_repo.side_effect = slow_sync
        backend.list_items.return_value = []

        first = asyncio.create_task(coordinator.sync_one(1))
        await asyncio.sleep(0)
        assert coordinator.is_syncing is True

        assert await coordinator.sync_one(2) is None
        assert await coordinator.sync_all() is None

        gate.set()
        outcome = await first

        assert outcome.updated == 1
        assert backend.sync_repo.await_count == 1
        backend.sync_all_repos.assert_not_called()
        assert coordinator.is_syncing is False

    @pytest.mark.asyncio
    async def test_repeat_sync_replaces_not_duplicates(self, coordinator, backend, store):
        """Test two syncs of one repo never duplicate its items."""
        backend.sync_repo.return_value = SyncOutcome(added=2)
        backend.list_items.return_value = [_item(11, 1, "a"), _item(12, 1, "b")]
        await coordinator.sync_one(1)

        backend.sync_repo.return_value = SyncOutcome(added=1, removed=1)
        backend.list_items.return_value = [_item(12, 1, "b"), _item(13, 1, "c")]
        await coordinator.sync_one(1)

        assert [i.id for i in store.for_repo(1)] == [12, 13]
        assert len(store) == 3

    @pytest.mark.asyncio
    async def test_second_sync_with_removal_drops_one_item(self, coordinator, backend, repos, store):
        """Test added=2 then updated=1/removed=1 leaves the repo one item smaller."""
        before = len(store.for_repo(1))

        backend.sync_repo.return_value = SyncOutcome(added=2)
        backend.list_items.return_value = [_item(10, 1), _item(11, 1, "a"), _item(12, 1, "b")]
        await coordinator.sync_one(1)
        assert len(store.for_repo(1)) == before + 2
        first_stamp = repos.get(1).last_synced_at

        backend.sync_repo.return_value = SyncOutcome(updated=1, removed=1)
        backend.list_items.return_value = [_item(10, 1), _item(11, 1, "a-renamed")]
        outcome = await coordinator.sync_one(1)

        assert (outcome.added, outcome.updated, outcome.removed) == (0, 1, 1)
        assert len(store.for_repo(1)) == before + 1
        assert store.get(11).name == "a-renamed"
        assert store.get(12) is None
        assert repos.get(1).last_synced_at >= first_stamp
        assert [i.id for i in store.for_repo(2)] == [20]


class TestSyncAll:
    """Tests for SyncCoordinator.sync_all."""

    @pytest.mark.asyncio
    async def test_reloads_repos_and_items(self, coordinator, backend, repos, store):
        backend.sync_all_repos.return_value = SyncOutcome(added=3, errors=["skills/bad.md"])
        backend.list_repos.return_value = [
            SourceRepo(id=1, name="one", last_synced_at="2024-05-01T00:00:00Z"),
            SourceRepo(id=2, name="two", enabled=False),
        ]
        backend.list_items.return_value = [_item(10, 1), _item(14, 1), _item(20, 2), _item(99, 7)]

        outcome = await coordinator.sync_all()

        assert outcome.errors == ["skills/bad.md"]
        assert repos.get(1).last_synced_at == "2024-05-01T00:00:00Z"
        # item 99 belongs to no known repo
        assert [i.id for i in store.items] == [10, 14, 20]

    @pytest.mark.asyncio
    async def test_failure_clears_flag(self, coordinator, backend):
        backend.sync_all_repos.side_effect = BackendUnavailableError("down")

        with pytest.raises(BackendUnavailableError):
            await coordinator.sync_all()

        assert coordinator.is_syncing is False
