"""Registry pager.

Browses the paginated connector registry. Results are deduplicated by
``registry_id`` and keep insertion order. A "load more" that yields nothing new
clears the cursor, so a registry that keeps re-serving its tail page cannot
drive an endless load-more loop. A page ceiling bounds the chase even when
every page carries a few new entries.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Set

from ..logger import get_logger
from .client import CatalogBackend
from .models import RegistryEntry
from .policy import passive, single_flight

log = get_logger(__name__)

DEFAULT_SEARCH_LIMIT = 20
DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 50


def unique_entries(entries: Iterable[RegistryEntry], seen: Optional[Set[str]] = None) -> List[RegistryEntry]:
    """Drop entries whose registry_id is in ``seen`` or repeated in ``entries``.

    ``seen`` is updated in place with every id that is kept.
    """
    seen = seen if seen is not None else set()
    kept: List[RegistryEntry] = []
    for entry in entries:
        if entry.registry_id in seen:
            continue
        seen.add(entry.registry_id)
        kept.append(entry)
    return kept


class RegistryPager:
    """Search and cursor-driven listing against the registry.

    Registry failures are recorded in ``error`` and logged; they never raise.
    """

    def __init__(
        self,
        backend: CatalogBackend,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        on_change: Optional[Callable[[str], None]] = None,
    ):
        self._backend = backend
        self.search_limit = search_limit
        self.page_size = page_size
        if max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {max_pages}")
        self.max_pages = max_pages
        self._on_change = on_change

        self.results: List[RegistryEntry] = []
        self.cursor: Optional[str] = None
        self.query = ""
        self.error: Optional[str] = None
        self.is_searching = False
        self.pages_loaded = 0

    @property
    def has_more(self) -> bool:
        return self.cursor is not None

    @single_flight("is_searching")
    @passive("error", "registry search")
    async def search(self, query: str) -> List[RegistryEntry]:
        """Replace results with the matches for ``query``.

        Search is a single complete page; no cursor is kept.
        """
        entries = await self._backend.search_registry(query, self.search_limit)
        self.query = query
        self.results = unique_entries(entries)
        self.cursor = None
        self.pages_loaded = 0
        log.info("registry_searched", query=query, results=len(self.results))
        self._notify("registry_results")
        return list(self.results)

    @single_flight("is_searching")
    @passive("error", "registry listing")
    async def list(self, load_more: bool = False) -> List[RegistryEntry]:
        """Load the first page, or append the next one when ``load_more``.

        Returns the entries that were added to ``results``.
        """
        if not load_more:
            page = await self._backend.list_registry(None, self.page_size)
            self.query = ""
            self.results = unique_entries(page.entries)
            self.cursor = page.next_cursor
            self.pages_loaded = 1
            self._apply_ceiling()
            log.info("registry_listed", results=len(self.results), has_more=self.has_more)
            self._notify("registry_results")
            return list(self.results)

        if self.cursor is None:
            log.debug("registry_load_more_skipped", reason="no cursor")
            return []

        page = await self._backend.list_registry(self.cursor, self.page_size)
        seen = {e.registry_id for e in self.results}
        fresh = unique_entries(page.entries, seen)
        self.results.extend(fresh)
        self.pages_loaded += 1

        if not fresh:
            # Only repeats: stop paging even if the registry offered a cursor.
            self.cursor = None
            log.info("registry_exhausted", reason="no new entries", offered_cursor=page.next_cursor)
        else:
            self.cursor = page.next_cursor

        self._apply_ceiling()

        log.info("registry_page_loaded", added=len(fresh), total=len(self.results), has_more=self.has_more)
        self._notify("registry_results")
        return fresh

    def _apply_ceiling(self) -> None:
        if self.cursor is not None and self.pages_loaded >= self.max_pages:
            self.cursor = None
            log.warning("registry_exhausted", reason="page ceiling", pages=self.pages_loaded)

    def clear(self) -> None:
        """Reset query, results, cursor and error."""
        self.query = ""
        self.results = []
        self.cursor = None
        self.error = None
        self.pages_loaded = 0
        self._notify("registry_results")

    def _notify(self, field_name: str) -> None:
        if self._on_change:
            self._on_change(field_name)
