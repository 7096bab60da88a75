"""Item store.

Holds the flat set of catalog items discovered across all source repos. The
store is the only writer of its collection; the sync coordinator, repo catalog
and import reconciler go through its methods.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Set

from ..logger import get_logger
from .models import AssetType, CatalogItem

log = get_logger(__name__)


class ItemStore:
    """Catalog items keyed by id, kept in backend order."""

    def __init__(self, on_change: Optional[Callable[[str], None]] = None):
        self._items: Dict[int, CatalogItem] = {}
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    @property
    def items(self) -> List[CatalogItem]:
        return list(self._items.values())

    def get(self, item_id: int) -> Optional[CatalogItem]:
        return self._items.get(item_id)

    def for_repo(self, repo_id: int) -> List[CatalogItem]:
        return [i for i in self._items.values() if i.repo_id == repo_id]

    def of_type(self, asset_type: AssetType) -> List[CatalogItem]:
        return [i for i in self._items.values() if i.asset_type == asset_type]

    def replace_all(self, items: Iterable[CatalogItem], repo_ids: Optional[Set[int]] = None) -> None:
        """Replace the whole collection.

        Args:
            items: Items as returned by the backend
            repo_ids: Known repo ids; items pointing elsewhere are dropped
        """
        self._items = self._accept(items, repo_ids)
        self._notify("items")

    def replace_repo(self, repo_id: int, items: Iterable[CatalogItem]) -> None:
        """Replace the items of one repo, leaving every other repo untouched."""
        incoming = [i for i in items if i.repo_id == repo_id]
        kept = [i for i in self._items.values() if i.repo_id != repo_id]
        self._items = self._accept(kept + incoming, None)
        self._notify("items")

    def purge_repo(self, repo_id: int) -> int:
        """Remove every item of a repo. Returns how many were removed."""
        before = len(self._items)
        self._items = {k: v for k, v in self._items.items() if v.repo_id != repo_id}
        removed = before - len(self._items)
        if removed:
            self._notify("items")
        return removed

    def mark_imported(self, item_id: int, asset_id: int) -> bool:
        """Point one item at its imported local asset.

        Only the item with this id is touched, even if other repos carry an
        item with the same locator or name.
        """
        item = self._items.get(item_id)
        if item is None:
            return False
        item.imported_asset_id = asset_id
        self._notify("items")
        return True

    def _accept(self, items: Iterable[CatalogItem], repo_ids: Optional[Set[int]]) -> Dict[int, CatalogItem]:
        accepted: Dict[int, CatalogItem] = {}
        seen_keys: Set[tuple] = set()
        for item in items:
            if repo_ids is not None and item.repo_id not in repo_ids:
                log.warning("orphan_item_dropped", item_id=item.id, repo_id=item.repo_id)
                continue
            key = item.locator_key
            if key in seen_keys:
                log.warning("duplicate_locator_dropped", item_id=item.id, locator=key[1])
                continue
            seen_keys.add(key)
            accepted[item.id] = item
        return accepted

    def _notify(self, field_name: str) -> None:
        if self._on_change:
            self._on_change(field_name)
