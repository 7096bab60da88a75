"""Import reconciler.

Turns a catalog item or a registry entry into a first-class local asset, then
asks exactly one sibling library (connectors, skills or sub-agents) to reload
so its views pick up the new asset.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, Set, Union

from ..logger import get_logger
from .client import CatalogBackend, CatalogError, ImportFailedError
from .items import ItemStore
from .models import AssetType, CatalogItem, ImportResult, RegistryEntry

log = get_logger(__name__)

Reload = Callable[[], Awaitable[None]]


class Refresher(Protocol):
    """Sibling libraries that must reload after an import."""

    async def refresh_connectors(self) -> None: ...

    async def refresh_skills(self) -> None: ...

    async def refresh_sub_agents(self) -> None: ...


@dataclass
class CallbackRefresher:
    """Refresher built from optional reload coroutines. Missing ones are no-ops."""
    connectors: Optional[Reload] = None
    skills: Optional[Reload] = None
    sub_agents: Optional[Reload] = None

    async def refresh_connectors(self) -> None:
        if self.connectors:
            await self.connectors()

    async def refresh_skills(self) -> None:
        if self.skills:
            await self.skills()

    async def refresh_sub_agents(self) -> None:
        if self.sub_agents:
            await self.sub_agents()


class ImportReconciler:
    """Imports catalog items and registry entries."""

    def __init__(self, backend: CatalogBackend, items: ItemStore, refresher: Optional[Refresher] = None):
        self._backend = backend
        self._items = items
        self._refresher: Refresher = refresher or CallbackRefresher()
        self._in_flight: Set[int] = set()

    async def import_asset(self, target: Union[CatalogItem, RegistryEntry]) -> Union[ImportResult, int]:
        """Import either kind of candidate.

        Returns an ImportResult for catalog items and the new asset id for
        registry entries.
        """
        if isinstance(target, CatalogItem):
            return await self.import_item(target)
        if isinstance(target, RegistryEntry):
            return await self.import_entry(target)
        raise TypeError(f"Cannot import {type(target).__name__}")

    async def import_item(self, item: CatalogItem) -> ImportResult:
        """Import a catalog item and mark that item, and only it, as imported.

        An item that is already imported is not sent to the backend again.
        Raises CatalogError (or ImportFailedError) and leaves the item
        untouched on failure.
        """
        current = self._items.get(item.id)
        if current is None:
            raise CatalogError(f"Unknown catalog item: {item.id}")
        if current.is_imported:
            log.debug("import_skipped", item_id=item.id, reason="already imported")
            return ImportResult(
                success=True,
                asset_type=current.asset_type,
                asset_id=current.imported_asset_id,
                message="Already imported",
            )
        if item.id in self._in_flight:
            log.debug("import_skipped", item_id=item.id, reason="in flight")
            return ImportResult(success=False, asset_type=current.asset_type, message="Import in progress")

        self._in_flight.add(item.id)
        try:
            result = await self._backend.import_item(item.id)
        finally:
            self._in_flight.discard(item.id)

        if not result.success or result.asset_id is None:
            log.warning("import_failed", item_id=item.id, message=result.message)
            raise ImportFailedError(result.message or f"Import of item {item.id} failed")

        if not self._items.mark_imported(item.id, result.asset_id):
            # repo was removed while the import ran
            log.warning("import_orphaned", item_id=item.id, asset_id=result.asset_id)
            raise CatalogError(f"Unknown catalog item: {item.id}")
        asset_type = result.asset_type or current.asset_type
        log.info("item_imported", item_id=item.id, asset_type=asset_type.value, asset_id=result.asset_id)
        await self._refresh(asset_type)
        return result

    async def import_entry(self, entry: RegistryEntry) -> int:
        """Import a registry entry and return the new local asset id."""
        asset_id = await self._backend.import_registry_entry(entry)
        log.info("registry_entry_imported", registry_id=entry.registry_id, asset_id=asset_id)
        await self._refresh(entry.asset_type)
        return asset_id

    async def _refresh(self, asset_type: AssetType) -> None:
        """Reload the one sibling library that owns ``asset_type``."""
        reload = {
            AssetType.MCP: self._refresher.refresh_connectors,
            AssetType.SKILL: self._refresher.refresh_skills,
            AssetType.SUBAGENT: self._refresher.refresh_sub_agents,
        }[AssetType(asset_type)]
        try:
            await reload()
        except Exception as e:
            # import already committed; refresh failures are only logged
            log.warning("library_refresh_failed", asset_type=AssetType(asset_type).value, error=str(e))
