"""
SSE push channel for one MCP session.

The channel is the server to client half of the HTTP+SSE transport: every
JSON-RPC message the session produces is queued here and rendered by
sse-starlette's ``EventSourceResponse`` on the long-lived ``GET`` request.
The client to server half is the short-lived ``POST`` handled by
:class:`opengov_mcp.server.http.SessionManager`.

The first event on every channel is ``endpoint``, whose data is the URL the client
should POST to (it carries the session id as the ``sessionId`` query parameter).
All later events are ``message`` events with one JSON-RPC message each.

Closing the channel ends the SSE response. It is idempotent, and messages sent
after closure are discarded rather than written to a dead connection.
"""

from __future__ import annotations

import logging
from typing import Any, Final
from urllib.parse import quote

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Messages buffered before a sender waits on the client to drain the stream
DEFAULT_BUFFER_SIZE: Final[int] = 32


class SseChannel:
    """
    Outbound event queue for one session.

    Producers call :meth:`send`; the HTTP layer iterates :attr:`outgoing`.
    """

    def __init__(self, session_id: str, endpoint: str, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.session_id = session_id
        self.endpoint_url = f"{endpoint}?sessionId={quote(session_id)}"
        self._send_stream: MemoryObjectSendStream[dict[str, Any]]
        self._send_stream, self.outgoing = anyio.create_memory_object_stream[dict[str, Any]](buffer_size)
        self._closed = anyio.Event()
        self._send_stream.send_nowait({"event": "endpoint", "data": self.endpoint_url})

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def send(self, message: BaseModel) -> bool:
        """Queue ``message`` as a ``message`` event.

        Returns:
            False if the channel was already closed and the message was discarded.
        """
        if self.closed:
            logger.debug("Discarding message for closed session %s: %s", self.session_id, message)
            return False
        data = message.model_dump_json(by_alias=True, exclude_none=True)
        try:
            await self._send_stream.send({"event": "message", "data": data})
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            logger.debug("Discarding message for closed session %s: %s", self.session_id, message)
            return False
        return True

    def close(self) -> bool:
        """Close the channel, ending the SSE response.

        Returns:
            True the first time, False on every later call.
        """
        if self.closed:
            return False
        self._closed.set()
        self._send_stream.close()
        return True

    def release(self) -> bool:
        """Close the channel and drop anything still buffered.

        Only call once nothing is reading :attr:`outgoing` any more.
        """
        closed_now = self.close()
        self.outgoing.close()
        return closed_now
