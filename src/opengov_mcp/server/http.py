"""HTTP+SSE session manager for the MCP endpoint."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from http import HTTPStatus
from typing import Final

import anyio
from anyio.abc import TaskGroup
from sse_starlette import EventSourceResponse
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import Message, Receive, Scope, Send

from opengov_mcp.exceptions import SessionNotFoundError
from opengov_mcp.server.lowlevel import Server
from opengov_mcp.server.registry import SessionRegistry
from opengov_mcp.server.session import ServerSession
from opengov_mcp.types import INTERNAL_ERROR, SERVER_ERROR, JSONRPCError, error_envelope, parse_message

logger = logging.getLogger(__name__)

MCP_SESSION_ID_HEADER: Final[str] = "mcp-session-id"

# Maximum size for incoming messages
MAXIMUM_MESSAGE_SIZE: Final[int] = 4 * 1024 * 1024  # 4MB


class SessionManager:
    """
    Manages HTTP+SSE sessions for an MCP endpoint.

    - ``GET`` opens a session: a fresh protocol server is registered under a new
      id, the id is returned in the ``Mcp-Session-Id`` header, and the response
      streams the session's messages as server-sent events until either side
      closes it.
    - ``POST`` delivers one JSON-RPC message to the session named by the
      ``Mcp-Session-Id`` header (or ``sessionId`` query parameter) and answers
      ``202 Accepted``; the JSON-RPC response goes out over the session's stream.
    - ``DELETE`` is refused with ``405``. Sessions only end when their stream closes.

    Session work runs in the manager's task group, so a tool call still in flight
    when its stream closes runs to completion and its result is discarded.

    Important: the instance cannot be reused after its run() context has
    completed. Create a new instance if you need to restart.

    Args:
        server_factory: Builds the protocol server for each new session
        registry: Where live sessions are tracked
        endpoint: The path clients POST to, advertised in the ``endpoint`` event
        ping_interval: Seconds between SSE keep-alive comments
    """

    def __init__(
        self,
        server_factory: Callable[[], Server],
        registry: SessionRegistry | None = None,
        *,
        endpoint: str = "/mcp",
        ping_interval: int = 15,
    ) -> None:
        self.server_factory = server_factory
        self.registry = registry if registry is not None else SessionRegistry()
        self.endpoint = endpoint
        self.ping_interval = ping_interval

        # The task group will be set during lifespan
        self._task_group: TaskGroup | None = None
        self._run_lock = anyio.Lock()
        self._has_started = False

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """
        Run the session manager. Use this in the lifespan of the Starlette app:

        @contextlib.asynccontextmanager
        async def lifespan(app: Starlette) -> AsyncIterator[None]:
            async with session_manager.run():
                yield
        """
        async with self._run_lock:
            if self._has_started:
                raise RuntimeError(
                    "SessionManager .run() can only be called once per instance. "
                    "Create a new instance if you need to run again."
                )
            self._has_started = True

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            logger.info("Session manager started")
            try:
                yield
            finally:
                logger.info("Session manager shutting down (%d active sessions)", len(self.registry))
                self.registry.close_all()
                tg.cancel_scope.cancel()
                self._task_group = None

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Route an ASGI request on the MCP endpoint by HTTP method."""
        if self._task_group is None:
            raise RuntimeError("Task group is not initialized. Make sure to use run().")

        method = scope["method"]
        if method == "GET":
            await self.handle_establish(scope, receive, send)
        elif method == "POST":
            await self.handle_post_message(scope, receive, send)
        elif method == "DELETE":
            await self.handle_delete(scope, receive, send)
        else:
            response = Response(
                "Method Not Allowed",
                status_code=HTTPStatus.METHOD_NOT_ALLOWED,
                headers={"Allow": "GET, POST, DELETE"},
            )
            await response(scope, receive, send)

    async def handle_establish(self, scope: Scope, receive: Receive, send: Send) -> None:
        assert self._task_group is not None
        response_started = False

        async def send_tracking_start(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            session = self.registry.create(self.server_factory, self._task_group, endpoint=self.endpoint)
        except Exception as e:
            logger.exception("Error creating session")
            await _internal_error(e)(scope, receive, send)
            return

        logger.info("New SSE connection (session %s, %d active)", session.session_id, len(self.registry))
        try:
            response = EventSourceResponse(
                session.channel.outgoing,
                headers={MCP_SESSION_ID_HEADER: session.session_id},
                ping=self.ping_interval,
            )
            await response(scope, receive, send_tracking_start)
        except Exception as e:
            logger.exception("Error in SSE stream for session %s", session.session_id)
            if not response_started:
                await _internal_error(e)(scope, receive, send)
        finally:
            self._close_session(session)

    def _close_session(self, session: ServerSession) -> None:
        try:
            removed = self.registry.remove(session.session_id)
            closed = session.close()
        except Exception:
            logger.exception("Error closing session %s", session.session_id)
            return
        if removed is not None or closed:
            logger.info("SSE connection closed (session %s, %d active)", session.session_id, len(self.registry))

    async def handle_post_message(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        session_id = request.headers.get(MCP_SESSION_ID_HEADER) or request.query_params.get("sessionId")
        logger.debug("Received POST message (session %s)", session_id or "unknown")

        try:
            session = self.registry.lookup(session_id)
        except SessionNotFoundError as e:
            logger.warning("No active session found for %r", session_id)
            response = JSONResponse(error_envelope(e.error.code, e.error.message), status_code=HTTPStatus.BAD_REQUEST)
            await response(scope, receive, send)
            return

        try:
            body = await request.body()
            if len(body) > MAXIMUM_MESSAGE_SIZE:
                response = JSONResponse(
                    error_envelope(SERVER_ERROR, "Payload too large"),
                    status_code=HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
                )
                await response(scope, receive, send)
                return

            try:
                message = parse_message(body)
            except JSONRPCError as e:
                logger.warning("Rejecting invalid message for session %s: %s", session.session_id, e.message)
                response = JSONResponse(error_envelope(e.code, e.message), status_code=HTTPStatus.BAD_REQUEST)
                await response(scope, receive, send)
                return

            await session.handle_message(message)
        except Exception as e:
            logger.exception("Error handling POST message for session %s", session.session_id)
            await _internal_error(e)(scope, receive, send)
            return

        response = Response("Accepted", status_code=HTTPStatus.ACCEPTED)
        await response(scope, receive, send)

    async def handle_delete(self, scope: Scope, receive: Receive, send: Send) -> None:
        logger.info("Rejecting DELETE on MCP endpoint")
        response = JSONResponse(
            error_envelope(SERVER_ERROR, "Method not allowed."),
            status_code=HTTPStatus.METHOD_NOT_ALLOWED,
        )
        await response(scope, receive, send)


class SessionManagerASGIApp:
    """
    ASGI application for the HTTP+SSE endpoint.
    """

    def __init__(self, session_manager: SessionManager):
        self.session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.session_manager.handle_request(scope, receive, send)


def _internal_error(error: Exception) -> JSONResponse:
    return JSONResponse(
        error_envelope(INTERNAL_ERROR, "Internal server error", data=str(error)),
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
    )
