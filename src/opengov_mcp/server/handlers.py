"""Builds the per-session protocol server for the open data portal."""

from __future__ import annotations

import logging
from collections.abc import Callable

from opengov_mcp import __version__
from opengov_mcp.server.context import RequestContext
from opengov_mcp.server.dispatch import ToolDispatcher, ToolFailure, ToolSuccess
from opengov_mcp.server.lowlevel import Server
from opengov_mcp.tools.catalog import ToolCatalog
from opengov_mcp.types import (
    CallToolRequestParams,
    CallToolResult,
    EmptyResult,
    JSONRPCRequest,
    ListToolsRequestParams,
    ListToolsResult,
    SetLevelRequestParams,
    TextContent,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "opengov-mcp"


def create_server(catalog: ToolCatalog, dispatcher: ToolDispatcher) -> Server:
    """Create a fresh protocol server bound to the shared catalog and dispatcher."""
    instructions = None
    if (portal := catalog.portal_info) is not None:
        instructions = f"Tools for querying the {portal.title} open data portal ({portal.url})."
    server = Server(name=SERVER_NAME, version=__version__, instructions=instructions)

    @server.request_handler("tools/list")
    async def list_tools(ctx: RequestContext, request: JSONRPCRequest) -> ListToolsResult:
        # Single page; a cursor is accepted and ignored
        ListToolsRequestParams.model_validate(request.params or {})
        return ListToolsResult(tools=catalog.list_descriptors())

    @server.request_handler("tools/call")
    async def call_tool(ctx: RequestContext, request: JSONRPCRequest) -> CallToolResult:
        params = CallToolRequestParams.model_validate(request.params or {})
        outcome = await dispatcher.call(params.name, params.arguments, ctx)
        match outcome:
            case ToolSuccess(text=text):
                return CallToolResult(content=[TextContent(text=text)], is_error=False)
            case ToolFailure(message=message):
                return CallToolResult(content=[TextContent(text=f"Error: {message}")], is_error=True)

    @server.request_handler("logging/setLevel")
    async def set_logging_level(ctx: RequestContext, request: JSONRPCRequest) -> EmptyResult:
        params = SetLevelRequestParams.model_validate(request.params or {})
        ctx.session.log_level = params.level
        logger.debug("Session %s log level set to %s", ctx.session.session_id, params.level)
        return EmptyResult()

    return server


def server_factory(catalog: ToolCatalog, dispatcher: ToolDispatcher) -> Callable[[], Server]:
    return lambda: create_server(catalog, dispatcher)
