"""Descriptive metadata about the connected data portal, fetched once at startup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import httpx

from opengov_mcp.exceptions import SetupError
from opengov_mcp.socrata.client import HttpClientFactory, create_http_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortalInfo:
    title: str
    domain: str
    url: str
    dataset_count: int | None = None


async def get_portal_info(
    portal_url: str,
    *,
    title: str | None = None,
    app_token: str | None = None,
    timeout: float = 30.0,
    http_client_factory: HttpClientFactory = create_http_client,
) -> PortalInfo:
    """Fetch the portal's identity.

    The portal must answer a Discovery API query for its own domain. The title
    comes from ``title`` when given, else from the site theme configuration, else
    falls back to the domain name.

    Raises:
        SetupError: if the portal cannot be reached or does not answer as a
            Socrata portal.
    """
    url = portal_url.rstrip("/")
    domain = urlsplit(url).netloc
    if not domain:
        raise SetupError(f"Invalid data portal URL: {portal_url!r}")

    headers = {"Accept": "application/json"}
    if app_token:
        headers["X-App-Token"] = app_token

    async with http_client_factory(base_url=url, headers=headers, timeout=httpx.Timeout(timeout)) as client:
        try:
            response = await client.get(
                "/api/catalog/v1",
                params={"domains": domain, "search_context": domain, "limit": 1},
            )
            response.raise_for_status()
            catalog = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SetupError(f"Could not reach data portal at {url}: {e}") from e

        if title is None:
            title = await _fetch_site_title(client)

    return PortalInfo(
        title=title or domain,
        domain=domain,
        url=url,
        dataset_count=catalog.get("resultSetSize") if isinstance(catalog, dict) else None,
    )


async def _fetch_site_title(client: httpx.AsyncClient) -> str | None:
    # The site theme is optional; portals without one fall back to the domain
    try:
        response = await client.get(
            "/api/configurations.json",
            params={"type": "site_theme", "defaultOnly": "true"},
        )
        response.raise_for_status()
        configurations = response.json()
    except (httpx.HTTPError, ValueError):
        logger.debug("No site theme available for %s", client.base_url, exc_info=True)
        return None
    return _site_title_from_configurations(configurations)


def _site_title_from_configurations(configurations: Any) -> str | None:
    if not isinstance(configurations, list):
        return None
    for configuration in configurations:
        for prop in configuration.get("properties", []) if isinstance(configuration, dict) else []:
            if prop.get("name") != "strings":
                continue
            value = prop.get("value")
            if isinstance(value, dict) and value.get("site_title"):
                return str(value["site_title"])
    return None
