"""The fixed catalog of tools exposed to clients."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from opengov_mcp.socrata.client import DATA_TYPES
from opengov_mcp.socrata.portal_info import PortalInfo
from opengov_mcp.types import JsonSchema, Tool, ToolAnnotations

GET_DATA_TOOL = Tool(
    name="get_data",
    description=(
        "Retrieve data from the open data portal. Use type='catalog' to search datasets, "
        "'categories' or 'tags' to browse, 'dataset-metadata' or 'column-info' to describe a "
        "dataset, 'data-access' to query rows with SoQL, and 'site-metrics' for portal statistics."
    ),
    input_schema=JsonSchema(
        properties={
            "type": {
                "type": "string",
                "enum": list(DATA_TYPES),
                "description": "The kind of data to retrieve.",
            },
            "domain": {
                "type": "string",
                "description": "Portal domain to query; defaults to the configured portal.",
            },
            "query": {
                "type": "string",
                "description": "Full-text search terms for 'catalog' or 'data-access'.",
            },
            "datasetId": {
                "type": "string",
                "description": "Dataset identifier (e.g. 'abcd-1234'), required for dataset level types.",
            },
            "soqlQuery": {
                "type": "string",
                "description": "SoQL query for 'data-access', e.g. \"SELECT * WHERE amount > 100 LIMIT 10\".",
            },
            "limit": {"type": "number", "description": "Maximum number of results (default 10)."},
            "offset": {"type": "number", "description": "Number of results to skip (default 0)."},
        },
        required=["type"],
    ),
    annotations=ToolAnnotations(title="Get open data", read_only_hint=True, open_world_hint=True),
)

SOCRATA_TOOLS: tuple[Tool, ...] = (GET_DATA_TOOL,)


def enhance_tools_with_portal_info(tools: Iterable[Tool], portal_info: PortalInfo) -> tuple[Tool, ...]:
    """Return copies of ``tools`` whose descriptions are prefixed with the portal title."""
    return tuple(
        tool.model_copy(update={"description": f"[{portal_info.title}] {tool.description or ''}".rstrip()})
        for tool in tools
    )


class ToolCatalog:
    """The enriched, read-only list of tools shared by every session."""

    def __init__(self, tools: Sequence[Tool], portal_info: PortalInfo | None = None) -> None:
        self.portal_info = portal_info
        self._tools = enhance_tools_with_portal_info(tools, portal_info) if portal_info else tuple(tools)

    @classmethod
    def for_portal(cls, portal_info: PortalInfo) -> ToolCatalog:
        return cls(SOCRATA_TOOLS, portal_info)

    def list_descriptors(self) -> list[Tool]:
        return list(self._tools)

    def names(self) -> frozenset[str]:
        return frozenset(tool.name for tool in self._tools)

    def __len__(self) -> int:
        return len(self._tools)
