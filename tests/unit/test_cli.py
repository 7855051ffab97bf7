"""Unit tests for the opti-cms command line."""

import json
from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

import opti_cms_client.cli as cli_module
from opti_cms_client.client import CmsClient
from opti_cms_client.config import ClientConfig

runner = CliRunner()

BASE_URL = "https://cms.example.com/preview3"
TOKEN_URL = "https://auth.example.com/oauth/token"


@pytest.fixture(autouse=True)
def cli_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point the CLI at a fake deployment with a pre-issued token."""
    monkeypatch.setattr("opti_cms_client.config.load_dotenv", lambda: False)
    for name in ("OPTI_CMS_CLIENT_ID", "OPTI_CMS_CLIENT_SECRET", "OPTI_CMS_ACT_AS", "OPTI_CMS_API_VERSION"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OPTI_CMS_BASE_URL", BASE_URL)
    monkeypatch.setenv("OPTI_CMS_TOKEN_ENDPOINT", TOKEN_URL)
    monkeypatch.setenv("OPTI_CMS_ACCESS_TOKEN", "tok")
    yield


def _use_handler(monkeypatch: pytest.MonkeyPatch, handler: Callable[[httpx.Request], Any]) -> None:
    def factory(config: ClientConfig) -> CmsClient:
        return CmsClient(config, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    monkeypatch.setattr(cli_module, "CmsClient", factory)


def test_get_prints_item(monkeypatch: pytest.MonkeyPatch) -> None:
    """get prints status, etag and the item."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/preview3/experimental/content/abc"
        return httpx.Response(200, json={"id": "abc", "contentType": "Article", "name": "Hello"}, headers={"ETag": "e1"})

    _use_handler(monkeypatch, handler)

    result = runner.invoke(cli_module.app, ["get", "abc"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {
        "status": 200,
        "etag": "e1",
        "data": {"id": "abc", "contentType": "Article", "name": "Hello"},
    }


def test_list_passes_paging(monkeypatch: pytest.MonkeyPatch) -> None:
    """list forwards paging options as query parameters."""
    seen: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.query)
        return httpx.Response(200, json={"items": [], "pageIndex": 2, "pageSize": 5, "totalItemCount": 0})

    _use_handler(monkeypatch, handler)

    result = runner.invoke(cli_module.app, ["list", "c1", "--page-index", "2", "--page-size", "5"])

    assert result.exit_code == 0, result.output
    assert seen == [b"pageIndex=2&pageSize=5"]
    assert json.loads(result.stdout)["pageIndex"] == 2


def test_delete(monkeypatch: pytest.MonkeyPatch) -> None:
    """delete prints the response status."""
    _use_handler(monkeypatch, lambda request: httpx.Response(204))  # noqa: ARG005

    result = runner.invoke(cli_module.app, ["delete", "abc"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {"status": 204}


def test_api_error_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    """API errors are printed and exit with code 1."""
    _use_handler(monkeypatch, lambda request: httpx.Response(404, json={"title": "Not Found"}))  # noqa: ARG005

    result = runner.invoke(cli_module.app, ["get", "missing"])

    assert result.exit_code == 1
    assert "Not Found" in result.output


def test_token_without_credentials_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    """token needs client credentials."""
    _use_handler(monkeypatch, lambda request: pytest.fail("no request expected"))  # noqa: ARG005

    result = runner.invoke(cli_module.app, ["token"])

    assert result.exit_code == 1
    assert "OAuth credentials are required" in result.output
