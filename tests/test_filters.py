"""Tests for catalog filtering."""

from toolkeeper.catalog.filters import filter_records, matches_text, matches_type
from toolkeeper.catalog.models import ALL_TYPES, AssetType, CatalogItem, RegistryEntry

ITEMS = [
    CatalogItem(id=1, repo_id=1, asset_type=AssetType.MCP, name="GitHub", description="Issues and PRs"),
    CatalogItem(id=2, repo_id=1, asset_type=AssetType.SKILL, name="pdf", description="Read PDF files"),
    CatalogItem(id=3, repo_id=2, asset_type=AssetType.SUBAGENT, name="reviewer", description="Reviews code"),
    CatalogItem(id=4, repo_id=2, asset_type=AssetType.SKILL, name="xlsx", description=""),
]


def _ids(records):
    return [r.id for r in records]


class TestFilterRecords:
    """Tests for filter_records."""

    def test_no_filter_is_identity(self):
        assert _ids(filter_records(ITEMS, "", ALL_TYPES)) == [1, 2, 3, 4]

    def test_whitespace_is_part_of_the_query(self):
        """Test spaces are matched literally, not trimmed."""
        assert _ids(filter_records(ITEMS, "git ")) == []
        assert _ids(filter_records(ITEMS, "git")) == [1]
        assert _ids(filter_records(ITEMS, "pdf files")) == [2]

    def test_name_match_is_case_insensitive(self):
        assert _ids(filter_records(ITEMS, "GITHUB")) == [1]

    def test_description_match(self):
        assert _ids(filter_records(ITEMS, "pdf files")) == [2]

    def test_type_filter(self):
        assert _ids(filter_records(ITEMS, type_filter=AssetType.SKILL)) == [2, 4]
        assert _ids(filter_records(ITEMS, type_filter="subagent")) == [3]

    def test_text_and_type_combined(self):
        """Test both predicates must hold."""
        assert _ids(filter_records(ITEMS, "re", AssetType.SUBAGENT)) == [3]
        assert _ids(filter_records(ITEMS, "pdf", AssetType.MCP)) == []

    def test_result_is_subset_in_order(self):
        result = filter_records(ITEMS, "s")
        assert all(r in ITEMS for r in result)
        assert _ids(result) == sorted(_ids(result))

    def test_does_not_mutate_input(self):
        items = list(ITEMS)
        filter_records(items, "pdf", AssetType.SKILL)
        assert items == ITEMS

    def test_registry_entries(self):
        entries = [
            RegistryEntry(registry_id="a", name="files", description="Filesystem access"),
            RegistryEntry(registry_id="b", name="slack", description="Chat"),
        ]
        assert [e.registry_id for e in filter_records(entries, "FILE")] == ["a"]
        assert len(filter_records(entries, type_filter=AssetType.MCP)) == 2


class TestPredicates:
    def test_matches_text_empty_query(self):
        assert matches_text(ITEMS[3], "")

    def test_matches_text_missing_description(self):
        assert not matches_text(ITEMS[3], "spreadsheet")

    def test_matches_type_without_asset_type(self):
        assert matches_type(object(), ALL_TYPES)
        assert not matches_type(object(), AssetType.SKILL)
