from opengov_mcp.server.app import create_app, create_session_manager
from opengov_mcp.server.handlers import create_server
from opengov_mcp.server.http import SessionManager
from opengov_mcp.server.lowlevel import Server
from opengov_mcp.server.registry import SessionRegistry
from opengov_mcp.server.session import ServerSession

__all__ = [
    "Server",
    "ServerSession",
    "SessionManager",
    "SessionRegistry",
    "create_app",
    "create_server",
    "create_session_manager",
]
