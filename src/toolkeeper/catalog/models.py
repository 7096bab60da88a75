"""Catalog data models.

Defines source repositories, the items discovered in them, sync outcomes,
registry entries and rate-limit status. Every model round-trips through the
backend's camelCase JSON via ``to_dict`` / ``from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..urls import github_raw_url

ALL_TYPES = "all"   # type-filter sentinel meaning "no type filter"


class RepoLayout(str, Enum):
    """How a source repository enumerates its assets."""
    FILE_BASED = "file_based"       # one markdown file per asset
    README_BASED = "readme_based"   # links listed in the README


class ContentKind(str, Enum):
    """What a source repository declares it contains."""
    MCP = "mcp"
    SKILL = "skill"
    SUBAGENT = "subagent"
    MIXED = "mixed"


class AssetType(str, Enum):
    """Type of a single importable asset."""
    MCP = "mcp"             # connector
    SKILL = "skill"
    SUBAGENT = "subagent"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class RepoDescriptor:
    """Request to start tracking a source repository."""
    url: str
    layout: RepoLayout = RepoLayout.FILE_BASED
    content_kind: ContentKind = ContentKind.SKILL

    def to_dict(self) -> dict:
        return {
            "githubUrl": self.url,
            "repoType": RepoLayout(self.layout).value,
            "contentType": ContentKind(self.content_kind).value,
        }


@dataclass
class SourceRepo:
    """A tracked source repository."""
    id: int
    name: str
    owner: str = ""
    repo: str = ""
    layout: RepoLayout = RepoLayout.FILE_BASED
    content_kind: ContentKind = ContentKind.MIXED
    url: str = ""
    description: str = ""
    is_default: bool = False
    enabled: bool = True
    last_synced_at: Optional[str] = None    # set only after a successful sync
    etag: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.layout, str):
            self.layout = RepoLayout(self.layout)
        if isinstance(self.content_kind, str):
            self.content_kind = ContentKind(self.content_kind)

    @property
    def full_name(self) -> str:
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return self.name

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "owner": self.owner,
            "repo": self.repo,
            "repoType": self.layout.value,
            "contentType": self.content_kind.value,
            "githubUrl": self.url,
            "description": self.description,
            "isDefault": self.is_default,
            "isEnabled": self.enabled,
            "lastFetchedAt": self.last_synced_at,
            "etag": self.etag,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SourceRepo":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            owner=data.get("owner", ""),
            repo=data.get("repo", ""),
            layout=RepoLayout(data.get("repoType", "file_based")),
            content_kind=ContentKind(data.get("contentType", "mixed")),
            url=data.get("githubUrl", ""),
            description=data.get("description") or "",
            is_default=data.get("isDefault", False),
            enabled=data.get("isEnabled", True),
            last_synced_at=data.get("lastFetchedAt"),
            etag=data.get("etag"),
        )


@dataclass
class CatalogItem:
    """An asset discovered by scanning a source repository."""
    id: int
    repo_id: int
    asset_type: AssetType
    name: str
    description: str = ""
    remote_locator: str = ""                    # source URL of the asset
    raw_content: Optional[str] = None
    file_path: Optional[str] = None
    metadata: Optional[str] = None
    stars: Optional[int] = None
    imported_asset_id: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.asset_type, str):
            self.asset_type = AssetType(self.asset_type)

    @property
    def is_imported(self) -> bool:
        return self.imported_asset_id is not None

    @property
    def locator_key(self) -> tuple:
        """Uniqueness key within the catalog."""
        return (self.repo_id, self.remote_locator or self.file_path or self.name)

    @property
    def raw_url(self) -> str:
        return github_raw_url(self.remote_locator)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "repoId": self.repo_id,
            "itemType": self.asset_type.value,
            "name": self.name,
            "description": self.description,
            "sourceUrl": self.remote_locator,
            "rawContent": self.raw_content,
            "filePath": self.file_path,
            "metadata": self.metadata,
            "stars": self.stars,
            "isImported": self.is_imported,
            "importedItemId": self.imported_asset_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogItem":
        imported_id = data.get("importedItemId")
        # The flag and the pointer must agree; the pointer wins.
        if not data.get("isImported", imported_id is not None):
            imported_id = None
        return cls(
            id=data["id"],
            repo_id=data["repoId"],
            asset_type=AssetType(data.get("itemType", "skill")),
            name=data.get("name", ""),
            description=data.get("description") or "",
            remote_locator=data.get("sourceUrl") or "",
            raw_content=data.get("rawContent"),
            file_path=data.get("filePath"),
            metadata=data.get("metadata"),
            stars=data.get("stars"),
            imported_asset_id=imported_id,
        )


@dataclass
class SyncOutcome:
    """Counts produced by one sync pass, plus per-item errors in order."""
    added: int = 0
    updated: int = 0
    removed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return self.added + self.updated + self.removed

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "added": self.added,
            "updated": self.updated,
            "removed": self.removed,
            "errors": list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SyncOutcome":
        return cls(
            added=int(data.get("added", 0)),
            updated=int(data.get("updated", 0)),
            removed=int(data.get("removed", 0)),
            errors=list(data.get("errors") or []),
        )


@dataclass
class EnvPlaceholder:
    """An environment variable a registry connector expects the user to fill in."""
    name: str
    description: str = ""
    is_required: bool = False
    default: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "isRequired": self.is_required,
            "default": self.default,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EnvPlaceholder":
        return cls(
            name=data["name"],
            description=data.get("description") or "",
            is_required=data.get("isRequired", False),
            default=data.get("default"),
        )


@dataclass
class RegistryEntry:
    """A connector returned by the search registry. Never persisted locally."""
    registry_id: str                            # dedup key
    name: str
    description: str = ""
    transport: str = "stdio"                    # stdio | sse | http
    command: Optional[str] = None
    args: List[str] = field(default_factory=list)
    url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    env: Dict[str, str] = field(default_factory=dict)
    env_placeholders: List[EnvPlaceholder] = field(default_factory=list)
    source_url: Optional[str] = None
    version: Optional[str] = None
    package_registry: Optional[str] = None      # npm, pypi, oci, ...
    asset_type: AssetType = AssetType.MCP

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {
            "registryId": self.registry_id,
            "name": self.name,
            "description": self.description,
            "mcpType": self.transport,
            "command": self.command,
            "args": self.args or None,
            "url": self.url,
            "headers": self.headers or None,
            "env": self.env or None,
            "envPlaceholders": [p.to_dict() for p in self.env_placeholders] or None,
            "sourceUrl": self.source_url,
            "version": self.version,
            "registryType": self.package_registry,
        }
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RegistryEntry":
        return cls(
            registry_id=data["registryId"],
            name=data.get("name", data["registryId"]),
            description=data.get("description") or "",
            transport=data.get("mcpType", "stdio"),
            command=data.get("command"),
            args=data.get("args") or [],
            url=data.get("url"),
            headers=data.get("headers") or {},
            env=data.get("env") or {},
            env_placeholders=[EnvPlaceholder.from_dict(p) for p in data.get("envPlaceholders") or []],
            source_url=data.get("sourceUrl"),
            version=data.get("version"),
            package_registry=data.get("registryType"),
        )


@dataclass
class RegistryPage:
    """One page of a registry listing."""
    entries: List[RegistryEntry] = field(default_factory=list)
    next_cursor: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RegistryPage":
        return cls(
            entries=[RegistryEntry.from_dict(e) for e in data.get("entries") or []],
            next_cursor=data.get("nextCursor") or None,
        )


@dataclass
class ImportResult:
    """Result of converting a catalog item into a local asset."""
    success: bool
    asset_type: Optional[AssetType] = None
    asset_id: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ImportResult":
        item_type = data.get("itemType")
        return cls(
            success=bool(data.get("success", False)),
            asset_type=AssetType(item_type) if item_type else None,
            asset_id=data.get("itemId"),
            message=data.get("message"),
        )


@dataclass
class RateLimitStatus:
    """Remote API rate-limit status. Advisory only."""
    limit: int
    remaining: int
    reset_at: str       # ISO-8601

    @property
    def is_exhausted(self) -> bool:
        return self.remaining <= 0

    def seconds_until_reset(self, now: Optional[datetime] = None) -> float:
        now = now or datetime.now(timezone.utc)
        try:
            reset = datetime.fromisoformat(self.reset_at.replace("Z", "+00:00"))
        except ValueError:
            return 0.0
        return max(0.0, (reset - now).total_seconds())

    @classmethod
    def from_dict(cls, data: dict) -> "RateLimitStatus":
        reset = data.get("resetAt", "")
        # GitHub reports the reset as epoch seconds
        if isinstance(reset, (int, float)):
            reset = datetime.fromtimestamp(reset, tz=timezone.utc).isoformat()
        return cls(
            limit=int(data.get("limit", 0)),
            remaining=int(data.get("remaining", 0)),
            reset_at=str(reset),
        )
