"""MCP Content Types - Content block types used in tool results."""

from typing import Annotated, Literal

from pydantic import Field

from opengov_mcp.types.base import MCPModel, Meta


class TextContent(MCPModel):
    """Text provided to or from an LLM."""

    type: Literal["text"] = "text"
    text: str
    meta: Annotated[Meta | None, Field(alias="_meta")] = None


# Tool results from this server only ever carry text
ContentBlock = TextContent
