"""MCP Tools Types - Types for tool listing and invocation."""

from typing import Annotated, Any, Literal

from pydantic import ConfigDict, Field

from opengov_mcp.types.base import MCPModel, Meta, RequestParams, Result
from opengov_mcp.types.content import ContentBlock


class JsonSchema(MCPModel):
    """A JSON Schema object."""

    schema_: Annotated[str | None, Field(alias="$schema")] = None
    type: Literal["object"] = "object"
    properties: dict[str, Any] | None = None
    required: list[str] | None = None


class ToolAnnotations(MCPModel):
    """Additional properties describing a Tool to clients."""

    destructive_hint: Annotated[bool | None, Field(alias="destructiveHint")] = None
    idempotent_hint: Annotated[bool | None, Field(alias="idempotentHint")] = None
    open_world_hint: Annotated[bool | None, Field(alias="openWorldHint")] = None
    read_only_hint: Annotated[bool | None, Field(alias="readOnlyHint")] = None
    title: str | None = None


class Tool(MCPModel):
    """Definition of a tool the server provides.

    Tools are shared read-only across every session once the catalog has been
    enriched, so instances are frozen.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    input_schema: Annotated[JsonSchema, Field(alias="inputSchema")]
    name: str

    annotations: ToolAnnotations | None = None
    description: str | None = None
    title: str | None = None


class ListToolsRequestParams(RequestParams):
    """Parameters for tools/list request."""

    cursor: str | None = None


class ListToolsResult(Result[Meta]):
    """Server's response to a tools/list request."""

    tools: list[Tool]
    next_cursor: Annotated[str | None, Field(alias="nextCursor")] = None


class CallToolRequestParams(RequestParams):
    """Parameters for tools/call request."""

    name: str
    arguments: dict[str, Any] | None = None


class CallToolResult(Result[Meta]):
    """Server's response to a tools/call request."""

    content: list[ContentBlock]
    is_error: Annotated[bool, Field(alias="isError")] = False
