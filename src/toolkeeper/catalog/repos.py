"""Repo catalog.

Owns the tracked source repositories and their enabled state. Removing a repo
purges its items from the item store in the same call.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Set

from ..logger import get_logger
from ..urls import parse_github_url
from .client import CatalogBackend, DescriptorError
from .items import ItemStore
from .models import ContentKind, RepoDescriptor, RepoLayout, SourceRepo, utc_now_iso

log = get_logger(__name__)


def validate_descriptor(descriptor: RepoDescriptor) -> None:
    """Check that a descriptor has every required field with a known value.

    Only the shape is checked here; whether the URL exists is the backend's call.
    """
    if not descriptor.url or not descriptor.url.strip():
        raise DescriptorError("Repository URL is required.")
    if parse_github_url(descriptor.url) is None:
        raise DescriptorError(f"Not a GitHub repository URL: {descriptor.url}")
    try:
        RepoLayout(descriptor.layout)
    except ValueError:
        raise DescriptorError(f"Unknown repo layout: {descriptor.layout!r}") from None
    try:
        ContentKind(descriptor.content_kind)
    except ValueError:
        raise DescriptorError(f"Unknown content kind: {descriptor.content_kind!r}") from None


class RepoCatalog:
    """Tracked source repositories."""

    def __init__(
        self,
        backend: CatalogBackend,
        item_store: ItemStore,
        on_change: Optional[Callable[[str], None]] = None,
    ):
        self._backend = backend
        self._items = item_store
        self._repos: List[SourceRepo] = []
        self._on_change = on_change

    def list(self) -> List[SourceRepo]:
        return list(self._repos)

    def get(self, repo_id: int) -> Optional[SourceRepo]:
        for r in self._repos:
            if r.id == repo_id:
                return r
        return None

    def ids(self) -> Set[int]:
        return {r.id for r in self._repos}

    def enabled(self) -> List[SourceRepo]:
        return [r for r in self._repos if r.enabled]

    def replace(self, repos: List[SourceRepo]) -> None:
        self._repos = list(repos)
        self._notify("repos")

    async def add(self, descriptor: RepoDescriptor) -> SourceRepo:
        """Start tracking a repo. Raises DescriptorError or CatalogError."""
        validate_descriptor(descriptor)
        repo = await self._backend.add_repo(descriptor)
        self._repos.append(repo)
        log.info("repo_added", repo_id=repo.id, name=repo.full_name)
        self._notify("repos")
        return repo

    async def remove(self, repo_id: int) -> None:
        """Stop tracking a repo and drop all of its items."""
        await self._backend.remove_repo(repo_id)
        self._repos = [r for r in self._repos if r.id != repo_id]
        purged = self._items.purge_repo(repo_id)
        log.info("repo_removed", repo_id=repo_id, items_purged=purged)
        self._notify("repos")

    async def toggle(self, repo_id: int, enabled: bool) -> None:
        """Enable or disable a repo. Items are kept and no sync is started."""
        await self._backend.toggle_repo(repo_id, enabled)
        repo = self.get(repo_id)
        if repo is not None:
            repo.enabled = enabled
        log.info("repo_toggled", repo_id=repo_id, enabled=enabled)
        self._notify("repos")

    def mark_synced(self, repo_id: int, when: Optional[str] = None) -> None:
        repo = self.get(repo_id)
        if repo is None:
            return
        repo.last_synced_at = when or utc_now_iso()
        self._notify("repos")

    def _notify(self, field_name: str) -> None:
        if self._on_change:
            self._on_change(field_name)
