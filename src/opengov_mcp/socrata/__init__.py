"""Client for Socrata open data portals."""

from opengov_mcp.socrata.client import DATA_TYPES, SocrataClient, create_http_client
from opengov_mcp.socrata.portal_info import PortalInfo, get_portal_info

__all__ = ["DATA_TYPES", "PortalInfo", "SocrataClient", "create_http_client", "get_portal_info"]
