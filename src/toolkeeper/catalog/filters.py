"""Filtering for catalog items and registry entries.

Pure functions: nothing here holds or mutates state.
"""

from __future__ import annotations

from typing import Iterable, List, TypeVar, Union

from .models import ALL_TYPES, AssetType

T = TypeVar("T")


def matches_text(record: object, query: str) -> bool:
    """Case-insensitive substring match against name and description."""
    if not query:
        return True
    q = query.lower()
    name = (getattr(record, "name", "") or "").lower()
    description = (getattr(record, "description", "") or "").lower()
    return q in name or q in description


def matches_type(record: object, type_filter: Union[str, AssetType]) -> bool:
    """Exact asset-type gate. ``"all"`` lets everything through."""
    if type_filter == ALL_TYPES:
        return True
    asset_type = getattr(record, "asset_type", None)
    if asset_type is None:
        return False
    return AssetType(asset_type) == AssetType(type_filter)


def filter_records(records: Iterable[T], query: str = "", type_filter: Union[str, AssetType] = ALL_TYPES) -> List[T]:
    """Records matching both the text query and the type filter, in order."""
    query = query or ""
    return [r for r in records if matches_type(r, type_filter) and matches_text(r, query)]
