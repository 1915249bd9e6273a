from opengov_mcp.tools.catalog import (
    GET_DATA_TOOL,
    SOCRATA_TOOLS,
    ToolCatalog,
    enhance_tools_with_portal_info,
)

__all__ = ["GET_DATA_TOOL", "SOCRATA_TOOLS", "ToolCatalog", "enhance_tools_with_portal_info"]
