"""Per-request context handed to protocol handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from opengov_mcp.types import LoggingLevel, RequestId

if TYPE_CHECKING:
    from opengov_mcp.server.session import ServerSession


@dataclass
class RequestContext:
    """What handlers receive: the session the request arrived on and its id."""

    session: ServerSession
    request_id: RequestId

    async def send_log_message(self, level: LoggingLevel, data: Any, logger: str | None = None) -> None:
        """Push a ``notifications/message`` log event to the client over the session channel."""
        await self.session.send_log_message(level, data, logger=logger)
