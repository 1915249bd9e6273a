from opengov_mcp.types.json_rpc import SERVER_ERROR, ErrorData


class OpenGovMCPError(Exception):
    """Base class for all errors raised by opengov-mcp."""


class SetupError(OpenGovMCPError):
    """Raised when the server cannot be configured, e.g. the data portal is unreachable at startup."""


class SessionNotFoundError(OpenGovMCPError):
    """Raised when a message addresses a session that is not registered.

    This is an addressing error on the client side, not a server fault. It maps to
    the ``-32000`` JSON-RPC error the HTTP layer returns.

    Attributes:
        session_id: The identifier that failed to resolve, or None if none was sent
    """

    message = "Session not found. Please establish SSE connection first (GET /mcp)"

    def __init__(self, session_id: str | None):
        super().__init__(f"No active session for id {session_id!r}")
        self.session_id = session_id

    @property
    def error(self) -> ErrorData:
        return ErrorData(code=SERVER_ERROR, message=self.message)


class SessionIdCollisionError(OpenGovMCPError):
    """Raised when a freshly generated session id is already registered."""


class BackendError(OpenGovMCPError):
    """Raised by the data portal client when a lookup fails."""
