"""In-memory registry of live MCP sessions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import uuid4

from anyio.abc import TaskGroup

from opengov_mcp.exceptions import SessionIdCollisionError, SessionNotFoundError
from opengov_mcp.server.lowlevel import Server
from opengov_mcp.server.session import ServerSession
from opengov_mcp.server.sse import SseChannel

logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return uuid4().hex


class SessionRegistry:
    """
    Maps session ids to their :class:`ServerSession`.

    All methods are synchronous, so each one runs to completion within a single
    turn of the event loop and no lock is needed. Callers that share a registry
    across threads must serialize access themselves.

    Args:
        id_factory: Produces new session ids. A generated id that is already
            registered raises :class:`SessionIdCollisionError` rather than
            replacing the live session.
    """

    def __init__(self, id_factory: Callable[[], str] = _new_session_id) -> None:
        self._id_factory = id_factory
        self._sessions: dict[str, ServerSession] = {}

    def create(
        self,
        server_factory: Callable[[], Server],
        task_group: TaskGroup,
        *,
        endpoint: str = "/mcp",
    ) -> ServerSession:
        """Allocate a session with a fresh id, channel and protocol server."""
        session_id = self._id_factory()
        if session_id in self._sessions:
            raise SessionIdCollisionError(f"Session id {session_id!r} is already registered")

        channel = SseChannel(session_id, endpoint)
        try:
            session = ServerSession(session_id, server_factory(), channel, task_group)
        except BaseException:
            channel.release()
            raise
        self._sessions[session_id] = session
        logger.debug("Registered session %s (%d active)", session_id, len(self._sessions))
        return session

    def lookup(self, session_id: str | None) -> ServerSession:
        """Return the live session for ``session_id``.

        Raises:
            SessionNotFoundError: if the id is missing, unknown or already removed.
        """
        if session_id is None or session_id not in self._sessions:
            raise SessionNotFoundError(session_id)
        return self._sessions[session_id]

    def remove(self, session_id: str) -> ServerSession | None:
        """Remove ``session_id`` if present. Safe to call repeatedly or with unknown ids."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.debug("Removed session %s (%d active)", session_id, len(self._sessions))
        return session

    def close_all(self) -> None:
        """Close every session's channel and empty the registry."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            session.channel.close()

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
