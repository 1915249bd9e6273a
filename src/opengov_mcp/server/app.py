"""Starlette application serving the MCP endpoint."""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from opengov_mcp.server.dispatch import BackendClient, ToolDispatcher
from opengov_mcp.server.handlers import server_factory
from opengov_mcp.server.http import SessionManager, SessionManagerASGIApp
from opengov_mcp.server.registry import SessionRegistry
from opengov_mcp.tools.catalog import ToolCatalog


def create_session_manager(
    catalog: ToolCatalog,
    backend: BackendClient,
    *,
    registry: SessionRegistry | None = None,
    endpoint: str = "/mcp",
    ping_interval: int = 15,
) -> SessionManager:
    dispatcher = ToolDispatcher(catalog.names(), backend)
    return SessionManager(
        server_factory(catalog, dispatcher),
        registry,
        endpoint=endpoint,
        ping_interval=ping_interval,
    )


def create_app(
    session_manager: SessionManager,
    *,
    catalog: ToolCatalog,
    debug: bool = False,
) -> Starlette:
    """Create the ASGI app: the MCP endpoint, a health check and CORS.

    Usage:
        manager = create_session_manager(catalog, SocrataClient(portal_url))
        app = create_app(manager, catalog=catalog)
        uvicorn.run(app, host="0.0.0.0", port=9090)
    """

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with session_manager.run():
            yield

    async def health(request: Request) -> Response:
        portal = catalog.portal_info
        return JSONResponse(
            {
                "status": "ok",
                "portal": portal.title if portal else None,
                "sessions": len(session_manager.registry),
            }
        )

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "mcp-session-id"],
            expose_headers=["Mcp-Session-Id"],
        )
    ]

    return Starlette(
        debug=debug,
        routes=[
            Route(session_manager.endpoint, endpoint=SessionManagerASGIApp(session_manager)),
            Route("/health", endpoint=health, methods=["GET"]),
        ],
        middleware=middleware,
        lifespan=lifespan,
    )
