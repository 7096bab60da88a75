"""Catalog backend client.

The catalog core never touches storage or remote sources directly. Everything
goes through a ``CatalogBackend``: an async remote-procedure boundary that owns
persistence, repository scanning and the authoritative merge of sync results.

``HttpCatalogBackend`` is the JSON-over-HTTP implementation used by the CLI.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, TypeVar
from urllib.parse import urljoin

import requests

from ..config import Settings
from .models import (
    CatalogItem,
    ImportResult,
    RateLimitStatus,
    RegistryEntry,
    RegistryPage,
    RepoDescriptor,
    SourceRepo,
    SyncOutcome,
)

T = TypeVar("T")


class CatalogError(Exception):
    """Error from catalog operations."""
    pass


class BackendUnavailableError(CatalogError):
    """The backend could not be reached or failed at the transport level."""
    pass


class DescriptorError(CatalogError):
    """A repo descriptor is malformed or was rejected."""
    pass


class ImportFailedError(CatalogError):
    """The backend declined to import an item."""
    pass


class CatalogBackend(ABC):
    """Remote-procedure boundary consumed by the catalog core."""

    @abstractmethod
    async def list_repos(self) -> List[SourceRepo]:
        ...

    @abstractmethod
    async def add_repo(self, descriptor: RepoDescriptor) -> SourceRepo:
        ...

    @abstractmethod
    async def remove_repo(self, repo_id: int) -> None:
        ...

    @abstractmethod
    async def toggle_repo(self, repo_id: int, enabled: bool) -> None:
        ...

    @abstractmethod
    async def list_items(self, repo_id: Optional[int] = None) -> List[CatalogItem]:
        """List items for one repo, or for all repos when repo_id is None."""

    @abstractmethod
    async def sync_repo(self, repo_id: int) -> SyncOutcome:
        ...

    @abstractmethod
    async def sync_all_repos(self) -> SyncOutcome:
        ...

    @abstractmethod
    async def import_item(self, item_id: int) -> ImportResult:
        ...

    @abstractmethod
    async def search_registry(self, query: str, limit: int) -> List[RegistryEntry]:
        ...

    @abstractmethod
    async def list_registry(self, cursor: Optional[str] = None, limit: int = 100) -> RegistryPage:
        ...

    @abstractmethod
    async def import_registry_entry(self, entry: RegistryEntry) -> int:
        """Create a local connector from a registry entry and return its id."""

    @abstractmethod
    async def get_rate_limit(self) -> RateLimitStatus:
        ...

    @abstractmethod
    async def seed_default_repos(self) -> None:
        """Idempotently install the starter repo set."""


class HttpCatalogBackend(CatalogBackend):
    """Catalog backend reached over JSON/HTTP.

    Requests are made with a shared ``requests.Session`` on a worker thread so
    the event loop keeps running while a sync or registry page is in flight.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.load()
        self._session = requests.Session()
        self._update_auth_headers()

    def _update_auth_headers(self) -> None:
        """Update session headers with authentication."""
        self._session.headers.clear()
        self._session.headers["Content-Type"] = "application/json"
        self._session.headers["Accept"] = "application/json"

        if self.settings.token:
            token = self.settings.token
            if not token.startswith("Bearer "):
                token = f"Bearer {token}"
            self._session.headers["Authorization"] = token

    def _url(self, path: str) -> str:
        """Build full URL for API endpoint."""
        return urljoin(self.settings.backend_url.rstrip("/") + "/", path.lstrip("/"))

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Make a blocking API request and return the decoded JSON body."""
        if not self.settings.backend_url:
            raise CatalogError("Backend URL not configured. Set TOOLKEEPER_BACKEND_URL.")

        try:
            response = self._session.request(
                method, self._url(path), timeout=self.settings.timeout_s, **kwargs
            )
            response.raise_for_status()
            if response.content:
                return response.json()
            return {}
        except requests.exceptions.HTTPError as e:
            if e.response is not None:
                try:
                    error_detail = e.response.json().get("detail", str(e))
                except ValueError:
                    error_detail = e.response.text or str(e)
                if e.response.status_code in (400, 422):
                    raise DescriptorError(f"Rejected: {error_detail}") from e
                raise CatalogError(f"API error: {error_detail}") from e
            raise CatalogError(f"HTTP error: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise BackendUnavailableError(
                f"Cannot connect to backend at {self.settings.backend_url}"
            ) from e
        except requests.exceptions.Timeout as e:
            raise BackendUnavailableError(f"Request timed out: {method} {path}") from e
        except requests.exceptions.RequestException as e:
            raise BackendUnavailableError(f"Request failed: {e}") from e

    async def _call(self, method: str, path: str, decode: Optional[Callable[[Any], T]] = None, **kwargs) -> Any:
        """Run a request on a worker thread and decode its body.

        A 2xx body that does not decode into the expected records raises
        CatalogError like any other backend failure.
        """
        data = await asyncio.to_thread(self._request, method, path, **kwargs)
        if decode is None:
            return data
        try:
            return decode(data)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise CatalogError(f"Malformed response from {method} {path}: {e!r}") from e

    # --- Repositories ---

    async def list_repos(self) -> List[SourceRepo]:
        return await self._call(
            "GET", "/repos", decode=lambda data: [SourceRepo.from_dict(r) for r in _records(data, "repos")]
        )

    async def add_repo(self, descriptor: RepoDescriptor) -> SourceRepo:
        return await self._call("POST", "/repos", decode=SourceRepo.from_dict, json=descriptor.to_dict())

    async def remove_repo(self, repo_id: int) -> None:
        await self._call("DELETE", f"/repos/{repo_id}")

    async def toggle_repo(self, repo_id: int, enabled: bool) -> None:
        await self._call("POST", f"/repos/{repo_id}/state", json={"enabled": enabled})

    # --- Items & sync ---

    async def list_items(self, repo_id: Optional[int] = None) -> List[CatalogItem]:
        path = f"/repos/{repo_id}/items" if repo_id is not None else "/items"
        return await self._call(
            "GET", path, decode=lambda data: [CatalogItem.from_dict(i) for i in _records(data, "items")]
        )

    async def sync_repo(self, repo_id: int) -> SyncOutcome:
        return await self._call("POST", f"/repos/{repo_id}/sync", decode=SyncOutcome.from_dict)

    async def sync_all_repos(self) -> SyncOutcome:
        return await self._call("POST", "/repos/sync", decode=SyncOutcome.from_dict)

    async def import_item(self, item_id: int) -> ImportResult:
        return await self._call("POST", f"/items/{item_id}/import", decode=ImportResult.from_dict)

    async def seed_default_repos(self) -> None:
        await self._call("POST", "/repos/seed")

    # --- Registry ---

    async def search_registry(self, query: str, limit: int) -> List[RegistryEntry]:
        return await self._call(
            "GET",
            "/registry/search",
            decode=lambda data: [RegistryEntry.from_dict(e) for e in _records(data, "entries")],
            params={"query": query, "limit": limit},
        )

    async def list_registry(self, cursor: Optional[str] = None, limit: int = 100) -> RegistryPage:
        params: dict = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        return await self._call("GET", "/registry", decode=RegistryPage.from_dict, params=params)

    async def import_registry_entry(self, entry: RegistryEntry) -> int:
        return await self._call("POST", "/registry/import", decode=_asset_id, json=entry.to_dict())

    # --- Rate limit ---

    async def get_rate_limit(self) -> RateLimitStatus:
        return await self._call("GET", "/github/rate-limit", decode=RateLimitStatus.from_dict)


def _records(data: Any, key: str) -> list:
    """Accept either a bare JSON list or an object wrapping it under ``key``."""
    return data if isinstance(data, list) else data.get(key, [])


def _asset_id(data: Any) -> int:
    if isinstance(data, dict):
        return int(data["id"])
    return int(data)
