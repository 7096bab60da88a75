"""Repo library.

One object that wires the catalog components together and exposes the state
views read: repos, items, registry results, the in-flight flags, error fields,
rate-limit info and the filtered views. Views subscribe to changes with
``subscribe(callback)``; the callback receives the name of the changed field.

Mount-time loads (``load_repos``, ``load_items``, ``seed_default_repos``) are
background refreshes and never raise. User actions (add/remove/toggle repo,
sync, import) raise ``CatalogError`` on failure.
"""

from __future__ import annotations

from typing import List, Optional, Union

from ..config import Settings
from ..logger import get_logger
from .client import CatalogBackend, CatalogError
from .filters import filter_records
from .importer import ImportReconciler, Refresher
from .items import ItemStore
from .models import (
    ALL_TYPES,
    AssetType,
    CatalogItem,
    ImportResult,
    RateLimitStatus,
    RegistryEntry,
    RepoDescriptor,
    SourceRepo,
    SyncOutcome,
)
from .policy import ChangeNotifier, passive, single_flight
from .ratelimit import RateLimitMonitor
from .registry import RegistryPager
from .repos import RepoCatalog
from .sync import SyncCoordinator

log = get_logger(__name__)


class RepoLibrary(ChangeNotifier):
    """State and operations behind the repository/registry library."""

    def __init__(
        self,
        backend: CatalogBackend,
        refresher: Optional[Refresher] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__()
        settings = settings or Settings()
        self._backend = backend

        self.item_store = ItemStore(on_change=self._notify)
        self.repo_catalog = RepoCatalog(backend, self.item_store, on_change=self._notify)
        self.sync = SyncCoordinator(backend, self.repo_catalog, self.item_store, on_change=self._notify)
        self.registry = RegistryPager(
            backend,
            search_limit=settings.registry_search_limit,
            page_size=settings.registry_page_size,
            max_pages=settings.max_registry_pages,
            on_change=self._notify,
        )
        self.importer = ImportReconciler(backend, self.item_store, refresher)
        self.rate_limit = RateLimitMonitor(backend, on_change=self._notify)

        self.is_loading = False
        self.error: Optional[str] = None
        self.search_query = ""
        self.selected_type: Union[str, AssetType] = ALL_TYPES

    # --- State views ---

    @property
    def repos(self) -> List[SourceRepo]:
        return self.repo_catalog.list()

    @property
    def items(self) -> List[CatalogItem]:
        return self.item_store.items

    @property
    def registry_results(self) -> List[RegistryEntry]:
        return list(self.registry.results)

    @property
    def is_syncing(self) -> bool:
        return self.sync.is_syncing

    @property
    def is_searching_registry(self) -> bool:
        return self.registry.is_searching

    @property
    def registry_error(self) -> Optional[str]:
        return self.registry.error

    @property
    def registry_has_more(self) -> bool:
        return self.registry.has_more

    @property
    def rate_limit_info(self) -> Optional[RateLimitStatus]:
        return self.rate_limit.status

    @property
    def filtered_items(self) -> List[CatalogItem]:
        return filter_records(self.item_store.items, self.search_query, self.selected_type)

    @property
    def filtered_registry_results(self) -> List[RegistryEntry]:
        # registry entries are all connectors; only the text filter applies
        return filter_records(self.registry.results, self.search_query)

    @property
    def mcp_items(self) -> List[CatalogItem]:
        return self.item_store.of_type(AssetType.MCP)

    @property
    def skill_items(self) -> List[CatalogItem]:
        return self.item_store.of_type(AssetType.SKILL)

    @property
    def subagent_items(self) -> List[CatalogItem]:
        return self.item_store.of_type(AssetType.SUBAGENT)

    def get_repo_by_id(self, repo_id: int) -> Optional[SourceRepo]:
        return self.repo_catalog.get(repo_id)

    def get_item_by_id(self, item_id: int) -> Optional[CatalogItem]:
        return self.item_store.get(item_id)

    def set_search(self, query: str) -> None:
        self.search_query = query
        self._notify("search_query")

    def set_type_filter(self, type_filter: Union[str, AssetType]) -> None:
        if type_filter != ALL_TYPES:
            type_filter = AssetType(type_filter)
        self.selected_type = type_filter
        self._notify("selected_type")

    # --- Background refreshes ---

    @single_flight("is_loading")
    @passive("error", "load repos")
    async def load_repos(self) -> List[SourceRepo]:
        await self._fetch_repos()
        return self.repos

    @single_flight("is_loading")
    @passive("error", "load repo items")
    async def load_items(self, repo_id: Optional[int] = None) -> List[CatalogItem]:
        """Reload items for one repo, or every item when repo_id is None."""
        items = await self._backend.list_items(repo_id)
        if repo_id is not None:
            self.item_store.replace_repo(repo_id, items)
        else:
            # before repos are known there is nothing to check ownership against
            self.item_store.replace_all(items, self.repo_catalog.ids() or None)
        return self.items

    @single_flight("is_loading")
    @passive("error", "load repo items by type")
    async def load_items_by_type(self, asset_type: Union[str, AssetType]) -> List[CatalogItem]:
        asset_type = AssetType(asset_type)
        items = await self._backend.list_items()
        self.item_store.replace_all(
            [i for i in items if i.asset_type == asset_type],
            self.repo_catalog.ids() or None,
        )
        return self.items

    @passive("error", "seed default repos")
    async def seed_default_repos(self) -> None:
        await self._backend.seed_default_repos()
        await self._fetch_repos()

    async def refresh(self) -> None:
        """Mount-time load: repos, then items, then rate-limit status."""
        await self.load_repos()
        await self.load_items()
        await self.check_rate_limit()

    async def check_rate_limit(self) -> Optional[RateLimitStatus]:
        return await self.rate_limit.check()

    async def _fetch_repos(self) -> None:
        self.repo_catalog.replace(await self._backend.list_repos())

    # --- User actions ---

    async def add_repo(self, descriptor: RepoDescriptor) -> SourceRepo:
        return await self.repo_catalog.add(descriptor)

    async def remove_repo(self, repo_id: int) -> None:
        await self.repo_catalog.remove(repo_id)

    async def toggle_repo(self, repo_id: int, enabled: bool) -> None:
        await self.repo_catalog.toggle(repo_id, enabled)

    async def sync_repo(self, repo_id: int) -> Optional[SyncOutcome]:
        return await self.sync.sync_one(repo_id)

    async def sync_all_repos(self) -> Optional[SyncOutcome]:
        return await self.sync.sync_all()

    async def import_item(self, item: Union[int, CatalogItem]) -> ImportResult:
        if isinstance(item, int):
            found = self.item_store.get(item)
            if found is None:
                raise CatalogError(f"Unknown catalog item: {item}")
            item = found
        return await self.importer.import_item(item)

    async def import_registry_entry(self, entry: RegistryEntry) -> int:
        return await self.importer.import_entry(entry)

    # --- Registry ---

    async def search_registry(self, query: str) -> Optional[List[RegistryEntry]]:
        return await self.registry.search(query)

    async def load_registry(self, load_more: bool = False) -> Optional[List[RegistryEntry]]:
        return await self.registry.list(load_more)

    def clear_registry(self) -> None:
        self.registry.clear()
