"""Pydantic models for the JSON-RPC and MCP messages served by opengov-mcp."""

from opengov_mcp.types.base import (
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    EmptyResult,
    MCPModel,
    Result,
)
from opengov_mcp.types.common import ClientCapabilities, Implementation, ServerCapabilities
from opengov_mcp.types.content import ContentBlock, TextContent
from opengov_mcp.types.initialize import InitializeRequestParams, InitializeResult
from opengov_mcp.types.json_rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    ErrorData,
    JSONRPCError,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    RequestId,
    error_envelope,
    parse_message,
)
from opengov_mcp.types.logging import (
    LoggingLevel,
    LoggingMessageNotificationParams,
    SetLevelRequestParams,
)
from opengov_mcp.types.tools import (
    CallToolRequestParams,
    CallToolResult,
    JsonSchema,
    ListToolsRequestParams,
    ListToolsResult,
    Tool,
    ToolAnnotations,
)

__all__ = [
    "CallToolRequestParams",
    "CallToolResult",
    "ClientCapabilities",
    "ContentBlock",
    "EmptyResult",
    "ErrorData",
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "Implementation",
    "InitializeRequestParams",
    "InitializeResult",
    "JSONRPCError",
    "JSONRPCErrorResponse",
    "JSONRPCMessage",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCResultResponse",
    "JsonSchema",
    "LATEST_PROTOCOL_VERSION",
    "ListToolsRequestParams",
    "ListToolsResult",
    "LoggingLevel",
    "LoggingMessageNotificationParams",
    "MCPModel",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "RequestId",
    "Result",
    "SERVER_ERROR",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "ServerCapabilities",
    "SetLevelRequestParams",
    "TextContent",
    "Tool",
    "ToolAnnotations",
    "error_envelope",
    "parse_message",
]
