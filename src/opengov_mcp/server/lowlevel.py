"""
Protocol dispatcher for one MCP session.

A :class:`Server` is a pure handler registry: it knows nothing about HTTP or SSE.
The session feeds it parsed JSON-RPC messages and pushes whatever it returns
back over the channel.

Usage:
    server = Server(name="my-server", version="1.0")

    @server.request_handler("tools/list")
    async def list_tools(ctx: RequestContext, request: JSONRPCRequest):
        return ListToolsResult(tools=[...])

``initialize`` and ``ping`` are handled by the server itself.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from opengov_mcp.server.context import RequestContext
from opengov_mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    SUPPORTED_PROTOCOL_VERSIONS,
    EmptyResult,
    ErrorData,
    Implementation,
    InitializeRequestParams,
    InitializeResult,
    JSONRPCError,
    JSONRPCErrorResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    ServerCapabilities,
)

logger = logging.getLogger(__name__)

RequestHandler = Callable[[RequestContext, JSONRPCRequest], Awaitable[Any]]
NotificationHandler = Callable[[RequestContext, JSONRPCNotification], Awaitable[None]]


class Server:
    def __init__(self, *, name: str, version: str, instructions: str | None = None) -> None:
        self.name = name
        self.version = version
        self.instructions = instructions
        self._request_handlers: dict[str, RequestHandler] = {
            "initialize": self._handle_initialize,
            "ping": _ping_handler,
        }
        self._notification_handlers: dict[str, NotificationHandler] = {}

    def request_handler(self, method: str) -> Callable[[RequestHandler], RequestHandler]:
        """Decorator to register a request handler for a given method."""

        def decorator(fn: RequestHandler) -> RequestHandler:
            logger.debug("Registering handler for %s", method)
            self._request_handlers[method] = fn
            return fn

        return decorator

    def notification_handler(self, method: str) -> Callable[[NotificationHandler], NotificationHandler]:
        """Decorator to register a notification handler for a given method."""

        def decorator(fn: NotificationHandler) -> NotificationHandler:
            self._notification_handlers[method] = fn
            return fn

        return decorator

    async def dispatch_request(self, ctx: RequestContext, request: JSONRPCRequest) -> JSONRPCResponse:
        """Dispatch a request to its handler. Always returns a response, never raises."""
        handler = self._request_handlers.get(request.method)
        if handler is None:
            return JSONRPCErrorResponse(
                id=request.id,
                error=ErrorData(code=METHOD_NOT_FOUND, message=f"Method not found: {request.method}"),
            )

        logger.debug("Dispatching request %s (id=%s)", request.method, request.id)
        try:
            result = await handler(ctx, request)
        except JSONRPCError as e:
            return JSONRPCErrorResponse(id=request.id, error=e.to_error_data())
        except ValidationError as e:
            return JSONRPCErrorResponse(
                id=request.id,
                error=ErrorData(code=INVALID_PARAMS, message=f"Invalid params for {request.method}", data=str(e)),
            )
        except Exception as e:
            logger.exception("Handler error for %s", request.method)
            return JSONRPCErrorResponse(
                id=request.id,
                error=ErrorData(code=INTERNAL_ERROR, message="Internal error", data=str(e)),
            )

        if isinstance(result, BaseModel):
            result_data = result.model_dump(by_alias=True, exclude_none=True)
        elif isinstance(result, dict):
            result_data = result
        else:
            result_data = {}
        return JSONRPCResultResponse(id=request.id, result=result_data)

    async def dispatch_notification(self, ctx: RequestContext, notification: JSONRPCNotification) -> None:
        handler = self._notification_handlers.get(notification.method)
        if handler is None:
            logger.debug("Ignoring notification %s", notification.method)
            return
        try:
            await handler(ctx, notification)
        except Exception:
            logger.exception("Notification handler error for %s", notification.method)

    def get_capabilities(self) -> ServerCapabilities:
        """Derive capabilities from registered handlers."""
        caps = ServerCapabilities()
        if "tools/list" in self._request_handlers or "tools/call" in self._request_handlers:
            caps.tools = {"listChanged": False}
        if "logging/setLevel" in self._request_handlers:
            caps.logging = {}
        return caps

    async def _handle_initialize(self, ctx: RequestContext, request: JSONRPCRequest) -> InitializeResult:
        params = InitializeRequestParams.model_validate(request.params or {})

        if params.protocol_version in SUPPORTED_PROTOCOL_VERSIONS:
            protocol_version = params.protocol_version
        else:
            protocol_version = LATEST_PROTOCOL_VERSION

        ctx.session.mark_initialized(params.client_info, protocol_version)
        return InitializeResult(
            protocol_version=protocol_version,
            capabilities=self.get_capabilities(),
            server_info=Implementation(name=self.name, version=self.version),
            instructions=self.instructions,
        )


async def _ping_handler(ctx: RequestContext, request: JSONRPCRequest) -> EmptyResult:
    return EmptyResult()
