"""
ServerSession binds one protocol :class:`~opengov_mcp.server.lowlevel.Server`
to one :class:`~opengov_mcp.server.sse.SseChannel`.

Inbound messages arrive through :meth:`ServerSession.handle_message` (called by
the POST handler) and are processed as background tasks, so a slow tool call
never blocks the POST that delivered it. Responses and log events go out over the
channel. Once the channel has closed, anything still produced by an in-flight
task is discarded by the channel.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from anyio.abc import TaskGroup

from opengov_mcp.server.context import RequestContext
from opengov_mcp.server.lowlevel import Server
from opengov_mcp.server.sse import SseChannel
from opengov_mcp.types import (
    Implementation,
    JSONRPCMessage,
    JSONRPCNotification,
    JSONRPCRequest,
    LoggingLevel,
    LoggingMessageNotificationParams,
)
from opengov_mcp.types.logging import level_value

logger = logging.getLogger(__name__)


class ServerSession:
    def __init__(
        self,
        session_id: str,
        server: Server,
        channel: SseChannel,
        task_group: TaskGroup,
    ) -> None:
        self.session_id = session_id
        self.server = server
        self.channel = channel
        self.created_at = datetime.now(timezone.utc)
        self.client_info: Implementation | None = None
        self.protocol_version: str | None = None
        self.log_level: LoggingLevel = "debug"
        self._task_group = task_group

    @property
    def closed(self) -> bool:
        return self.channel.closed

    @property
    def initialized(self) -> bool:
        return self.protocol_version is not None

    def mark_initialized(self, client_info: Implementation, protocol_version: str) -> None:
        self.client_info = client_info
        self.protocol_version = protocol_version
        logger.info(
            "Session %s initialized by %s %s (protocol %s)",
            self.session_id,
            client_info.name,
            client_info.version,
            protocol_version,
        )

    async def handle_message(self, message: JSONRPCMessage) -> None:
        """Accept an inbound message for background processing."""
        if self.closed:
            logger.debug("Dropping message for closed session %s", self.session_id)
            return
        self._task_group.start_soon(self._process_message, message)

    async def _process_message(self, message: JSONRPCMessage) -> None:
        # Tasks share the manager's task group; an escaping error would take every session down
        try:
            match message:
                case JSONRPCRequest():
                    ctx = RequestContext(session=self, request_id=message.id)
                    response = await self.server.dispatch_request(ctx, message)
                    await self.channel.send(response)
                case JSONRPCNotification():
                    ctx = RequestContext(session=self, request_id="notification")
                    await self.server.dispatch_notification(ctx, message)
                case _:
                    # We never send server-to-client requests, so nothing awaits a response
                    logger.debug("Ignoring response message on session %s: %s", self.session_id, message)
        except Exception:
            logger.exception("Error processing message on session %s", self.session_id)

    async def send_log_message(self, level: LoggingLevel, data: Any, logger: str | None = None) -> None:
        """Push a log event to the client, honouring the level set with ``logging/setLevel``."""
        if level_value(level) < level_value(self.log_level):
            return
        params = LoggingMessageNotificationParams(level=level, logger=logger, data=data)
        notification = JSONRPCNotification(
            method="notifications/message",
            params=params.model_dump(by_alias=True, exclude_none=True),
        )
        await self.channel.send(notification)

    def close(self) -> bool:
        """Release the channel. Idempotent; returns True only for the call that closed it."""
        return self.channel.release()
