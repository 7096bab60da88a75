"""Shared fixtures for toolkeeper tests."""

from unittest.mock import MagicMock

import pytest

from toolkeeper.catalog.client import CatalogBackend


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config directory at a temp dir and clear env overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "config"))
    for name in (
        "TOOLKEEPER_BACKEND_URL",
        "TOOLKEEPER_TOKEN",
        "TOOLKEEPER_LOG_LEVEL",
        "TOOLKEEPER_MAX_REGISTRY_PAGES",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "config"


@pytest.fixture
def backend():
    """A CatalogBackend whose async methods are AsyncMocks."""
    return MagicMock(spec=CatalogBackend)
