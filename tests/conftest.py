from collections.abc import Mapping
from typing import Any

import anyio
import pytest
import sse_starlette
from packaging import version

from opengov_mcp.socrata.portal_info import PortalInfo
from opengov_mcp.tools.catalog import ToolCatalog


@pytest.fixture
def anyio_backend():
    return "asyncio"


SSE_STARLETTE_VERSION = version.parse(sse_starlette.__version__)
NEEDS_RESET = SSE_STARLETTE_VERSION < version.parse("3.0.0")


@pytest.fixture(autouse=True)
def reset_sse_app_status():
    """Reset sse-starlette's global AppStatus singleton before each test.

    AppStatus.should_exit_event is a global asyncio.Event that gets bound to
    an event loop. Each test needs a fresh Event, otherwise the second test to
    open a stream fails with RuntimeError("bound to a different event loop").

    Only necessary for sse-starlette < 3.0.0, which moved to context-local events.
    """
    if not NEEDS_RESET:
        yield
        return

    # lazy import to avoid import errors
    from sse_starlette.sse import AppStatus

    AppStatus.should_exit_event = anyio.Event()  # type: ignore[attr-defined]

    yield

    AppStatus.should_exit_event = anyio.Event()  # type: ignore[attr-defined]


class FakeBackend:
    """Backend double that records every argument bag it is invoked with."""

    def __init__(self, result: Any = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[Mapping[str, Any]] = []

    async def invoke(self, arguments: Mapping[str, Any]) -> Any:
        self.calls.append(arguments)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def portal_info() -> PortalInfo:
    return PortalInfo(title="Springfield Open Data", domain="data.springfield.gov", url="https://data.springfield.gov")


@pytest.fixture
def catalog(portal_info: PortalInfo) -> ToolCatalog:
    return ToolCatalog.for_portal(portal_info)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend(result=[{"id": "abcd-1234", "name": "Parks"}])


@pytest.fixture
def make_backend() -> type[FakeBackend]:
    return FakeBackend
