"""Catalog Sync Engine.

Drives sync passes against the backend and brings the local item store back in
line with the backend's authoritative merge. The store is always reloaded from
the backend after a pass; deltas are never applied locally.
"""

from __future__ import annotations

from typing import Callable, Optional

from ..logger import get_logger
from .client import CatalogBackend, CatalogError
from .items import ItemStore
from .models import SyncOutcome
from .policy import single_flight
from .repos import RepoCatalog

log = get_logger(__name__)


class SyncCoordinator:
    """Runs one sync pass at a time.

    A call made while another pass is in flight returns None immediately.
    Failures clear the in-flight flag and propagate to the caller.
    """

    def __init__(
        self,
        backend: CatalogBackend,
        repos: RepoCatalog,
        items: ItemStore,
        on_change: Optional[Callable[[str], None]] = None,
    ):
        self._backend = backend
        self._repos = repos
        self._items = items
        self.is_syncing = False
        self.last_outcome: Optional[SyncOutcome] = None
        self._on_change = on_change

    @single_flight("is_syncing")
    async def sync_one(self, repo_id: int) -> SyncOutcome:
        """Sync one repo and reload its items.

        On success the repo's ``last_synced_at`` is set to now, even when the
        outcome reports no changes.
        """
        log.info("sync_started", repo_id=repo_id)
        try:
            outcome = await self._backend.sync_repo(repo_id)
            items = await self._backend.list_items(repo_id)
        except CatalogError as e:
            log.error("sync_failed", repo_id=repo_id, error=str(e))
            raise

        self._items.replace_repo(repo_id, items)
        self._repos.mark_synced(repo_id)
        self.last_outcome = outcome
        log.info(
            "sync_finished",
            repo_id=repo_id,
            added=outcome.added,
            updated=outcome.updated,
            removed=outcome.removed,
            errors=len(outcome.errors),
        )
        return outcome

    @single_flight("is_syncing")
    async def sync_all(self) -> SyncOutcome:
        """Sync every enabled repo in a single backend request.

        Repos and items are reloaded afterwards so ``last_synced_at`` values
        come from the backend.
        """
        log.info("sync_all_started", enabled=len(self._repos.enabled()))
        try:
            outcome = await self._backend.sync_all_repos()
            repos = await self._backend.list_repos()
            items = await self._backend.list_items()
        except CatalogError as e:
            log.error("sync_all_failed", error=str(e))
            raise

        self._repos.replace(repos)
        self._items.replace_all(items, self._repos.ids())
        self.last_outcome = outcome
        log.info(
            "sync_all_finished",
            added=outcome.added,
            updated=outcome.updated,
            removed=outcome.removed,
            errors=len(outcome.errors),
        )
        return outcome

    def _notify(self, field_name: str) -> None:
        if self._on_change:
            self._on_change(field_name)

