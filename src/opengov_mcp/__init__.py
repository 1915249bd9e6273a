"""opengov-mcp: an MCP server exposing open data portals over HTTP+SSE."""

__version__ = "0.1.0"
