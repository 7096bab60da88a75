"""Catalog Module for toolkeeper.

Keeps the local catalog of importable assets in line with its remote sources.
This module handles:
- Tracked source repositories and the items discovered in them
- Sync passes against the backend
- Paginated search of the connector registry
- Importing items and registry entries into the sibling libraries
- Rate-limit status for the remote API
"""

from .client import (
    BackendUnavailableError,
    CatalogBackend,
    CatalogError,
    DescriptorError,
    HttpCatalogBackend,
    ImportFailedError,
)
from .filters import filter_records
from .importer import CallbackRefresher, ImportReconciler, Refresher
from .items import ItemStore
from .library import RepoLibrary
from .models import (
    ALL_TYPES,
    AssetType,
    CatalogItem,
    ContentKind,
    ImportResult,
    RateLimitStatus,
    RegistryEntry,
    RegistryPage,
    RepoDescriptor,
    RepoLayout,
    SourceRepo,
    SyncOutcome,
)
from .ratelimit import RateLimitMonitor
from .registry import RegistryPager
from .repos import RepoCatalog
from .sync import SyncCoordinator

__all__ = [
    "ALL_TYPES",
    "AssetType",
    "BackendUnavailableError",
    "CallbackRefresher",
    "CatalogBackend",
    "CatalogError",
    "CatalogItem",
    "ContentKind",
    "DescriptorError",
    "HttpCatalogBackend",
    "ImportFailedError",
    "ImportReconciler",
    "ImportResult",
    "ItemStore",
    "RateLimitMonitor",
    "RateLimitStatus",
    "Refresher",
    "RegistryEntry",
    "RegistryPage",
    "RegistryPager",
    "RepoCatalog",
    "RepoDescriptor",
    "RepoLayout",
    "RepoLibrary",
    "SourceRepo",
    "SyncCoordinator",
    "SyncOutcome",
    "filter_records",
]
