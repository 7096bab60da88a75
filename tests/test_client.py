"""Tests for the HTTP catalog backend."""

import pytest
import requests
from unittest.mock import MagicMock, Mock, patch

from toolkeeper.catalog.client import (
    BackendUnavailableError,
    CatalogError,
    DescriptorError,
    HttpCatalogBackend,
)
from toolkeeper.catalog.models import RegistryEntry, RepoDescriptor
from toolkeeper.config import Settings


def _settings(**overrides):
    values = {"backend_url": "http://localhost:7420", "token": "test-token", "timeout_s": 5}
    values.update(overrides)
    return Settings(**values)


def _response(payload):
    response = Mock()
    response.status_code = 200
    response.json.return_value = payload
    response.content = b"{}"
    return response


@pytest.fixture
def session():
    with patch("toolkeeper.catalog.client.requests.Session") as mock_session_class:
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session_class.return_value = mock_session
        yield mock_session


class TestHttpCatalogBackend:
    """Tests for HttpCatalogBackend."""

    def test_auth_header(self, session):
        """Test the token is sent as a bearer token."""
        HttpCatalogBackend(_settings())
        assert session.headers["Authorization"] == "Bearer test-token"
        assert session.headers["Accept"] == "application/json"

    def test_no_token_no_auth_header(self, session):
        HttpCatalogBackend(_settings(token=""))
        assert "Authorization" not in session.headers

    @pytest.mark.asyncio
    async def test_list_repos(self, session):
        """Test listing repos decodes each entry."""
        session.request.return_value = _response([
            {"id": 1, "name": "skills", "owner": "acme", "repo": "skills", "contentType": "skill"},
            {"id": 2, "name": "agents", "isEnabled": False},
        ])
        backend = HttpCatalogBackend(_settings())

        repos = await backend.list_repos()

        assert [r.id for r in repos] == [1, 2]
        assert repos[1].enabled is False
        session.request.assert_called_once_with("GET", "http://localhost:7420/repos", timeout=5)

    @pytest.mark.asyncio
    async def test_list_items_for_repo(self, session):
        session.request.return_value = _response({"items": [
            {"id": 10, "repoId": 3, "itemType": "mcp", "name": "fs"},
        ]})
        backend = HttpCatalogBackend(_settings())

        items = await backend.list_items(3)

        assert items[0].repo_id == 3
        assert session.request.call_args[0] == ("GET", "http://localhost:7420/repos/3/items")

    @pytest.mark.asyncio
    async def test_add_repo_posts_descriptor(self, session):
        session.request.return_value = _response({"id": 4, "name": "skills"})
        backend = HttpCatalogBackend(_settings())
        descriptor = RepoDescriptor(url="https://github.com/acme/skills")

        repo = await backend.add_repo(descriptor)

        assert repo.id == 4
        assert session.request.call_args[1]["json"] == descriptor.to_dict()

    @pytest.mark.asyncio
    async def test_toggle_repo(self, session):
        session.request.return_value = _response({})
        backend = HttpCatalogBackend(_settings())

        await backend.toggle_repo(4, False)

        args, kwargs = session.request.call_args
        assert args == ("POST", "http://localhost:7420/repos/4/state")
        assert kwargs["json"] == {"enabled": False}

    @pytest.mark.asyncio
    async def test_list_registry_passes_cursor(self, session):
        """Test the cursor is forwarded and the next cursor decoded."""
        session.request.return_value = _response({
            "entries": [{"registryId": "a", "name": "A"}],
            "nextCursor": "c2",
        })
        backend = HttpCatalogBackend(_settings())

        page = await backend.list_registry("c1", 100)

        assert page.next_cursor == "c2"
        assert session.request.call_args[1]["params"] == {"limit": 100, "cursor": "c1"}

    @pytest.mark.asyncio
    async def test_list_registry_first_page_has_no_cursor_param(self, session):
        session.request.return_value = _response({"entries": []})
        backend = HttpCatalogBackend(_settings())

        page = await backend.list_registry()

        assert page.next_cursor is None
        assert session.request.call_args[1]["params"] == {"limit": 100}

    @pytest.mark.asyncio
    async def test_import_registry_entry_returns_id(self, session):
        session.request.return_value = _response({"id": 77})
        backend = HttpCatalogBackend(_settings())

        asset_id = await backend.import_registry_entry(RegistryEntry(registry_id="a", name="A"))

        assert asset_id == 77

    @pytest.mark.asyncio
    async def test_rejected_descriptor(self, session):
        """Test a 422 maps to DescriptorError with the server's detail."""
        error_response = Mock()
        error_response.status_code = 422
        error_response.json.return_value = {"detail": "Not a repository"}
        response = _response({})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=error_response)
        session.request.return_value = response
        backend = HttpCatalogBackend(_settings())

        with pytest.raises(DescriptorError, match="Not a repository"):
            await backend.add_repo(RepoDescriptor(url="https://github.com/acme/nope"))

    @pytest.mark.asyncio
    async def test_server_error(self, session):
        error_response = Mock()
        error_response.status_code = 500
        error_response.json.side_effect = ValueError("no json")
        error_response.text = "Internal Server Error"
        response = _response({})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=error_response)
        session.request.return_value = response
        backend = HttpCatalogBackend(_settings())

        with pytest.raises(CatalogError, match="Internal Server Error") as exc_info:
            await backend.sync_repo(1)
        assert not isinstance(exc_info.value, DescriptorError)

    @pytest.mark.asyncio
    async def test_connection_error(self, session):
        """Test transport failures map to BackendUnavailableError."""
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        backend = HttpCatalogBackend(_settings())

        with pytest.raises(BackendUnavailableError, match="Cannot connect"):
            await backend.list_repos()

    @pytest.mark.asyncio
    async def test_timeout(self, session):
        session.request.side_effect = requests.exceptions.Timeout()
        backend = HttpCatalogBackend(_settings())

        with pytest.raises(BackendUnavailableError, match="timed out"):
            await backend.get_rate_limit()

    @pytest.mark.asyncio
    async def test_malformed_repo_body(self, session):
        """Test a 2xx body missing required fields raises CatalogError."""
        session.request.return_value = _response({"name": "skills"})
        backend = HttpCatalogBackend(_settings())

        with pytest.raises(CatalogError, match="Malformed response from POST /repos"):
            await backend.add_repo(RepoDescriptor(url="https://github.com/acme/skills"))

    @pytest.mark.asyncio
    async def test_unknown_item_type(self, session):
        session.request.return_value = _response([
            {"id": 10, "repoId": 3, "itemType": "prompt", "name": "x"},
        ])
        backend = HttpCatalogBackend(_settings())

        with pytest.raises(CatalogError, match="Malformed response"):
            await backend.list_items()

    @pytest.mark.asyncio
    async def test_unexpected_body_shape(self, session):
        session.request.return_value = _response("not an object")
        backend = HttpCatalogBackend(_settings())

        with pytest.raises(CatalogError, match="Malformed response"):
            await backend.list_registry()

    @pytest.mark.asyncio
    async def test_missing_backend_url(self, session):
        backend = HttpCatalogBackend(_settings(backend_url=""))

        with pytest.raises(CatalogError, match="not configured"):
            await backend.list_repos()
        session.request.assert_not_called()
