from typing import Any

import pytest
from click.testing import CliRunner
from starlette.applications import Starlette

from opengov_mcp import cli
from opengov_mcp.exceptions import SetupError
from opengov_mcp.socrata.portal_info import PortalInfo


@pytest.fixture(autouse=True)
def no_logging_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    for name in ("DATA_PORTAL_URL", "OPENGOV_MCP_DATA_PORTAL_URL", "PORT", "OPENGOV_MCP_PORT", "OPENGOV_MCP_HOST"):
        monkeypatch.delenv(name, raising=False)


def test_missing_portal_url_exits():
    result = CliRunner().invoke(cli.main, [])
    assert result.exit_code == 1


def test_setup_failure_exits(monkeypatch: pytest.MonkeyPatch):
    async def unreachable(*args: Any, **kwargs: Any) -> PortalInfo:
        raise SetupError("Could not reach data portal")

    monkeypatch.setattr(cli, "get_portal_info", unreachable)
    monkeypatch.setattr(cli.uvicorn, "run", lambda *args, **kwargs: pytest.fail("server must not start"))

    result = CliRunner().invoke(cli.main, ["--portal-url", "data.springfield.gov"])
    assert result.exit_code == 1


def test_starts_server_for_portal(monkeypatch: pytest.MonkeyPatch, portal_info: PortalInfo):
    seen: dict[str, Any] = {}

    async def fake_portal_info(portal_url: str, **kwargs: Any) -> PortalInfo:
        seen["portal_url"] = portal_url
        return portal_info

    def fake_run(app: Starlette, **kwargs: Any) -> None:
        seen["app"] = app
        seen.update(kwargs)

    monkeypatch.setattr(cli, "get_portal_info", fake_portal_info)
    monkeypatch.setattr(cli.uvicorn, "run", fake_run)

    result = CliRunner().invoke(cli.main, ["--portal-url", "data.springfield.gov", "--port", "9191"])

    assert result.exit_code == 0, result.output
    assert seen["portal_url"] == "https://data.springfield.gov"
    assert isinstance(seen["app"], Starlette)
    assert seen["port"] == 9191
    assert seen["host"] == "0.0.0.0"
