"""Socrata data portal client backing the ``get_data`` tool.

A single entry point, :meth:`SocrataClient.invoke`, accepts the tool's argument
bag and routes on its ``type`` field to the matching Socrata API:

- ``catalog``: Discovery API search over the portal's datasets
- ``categories`` / ``tags``: Discovery API facet listings
- ``dataset-metadata`` / ``column-info``: the views API for one dataset
- ``data-access``: SODA queries against a dataset's resource endpoint
- ``site-metrics``: the portal's public site metrics
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Final, Protocol
from urllib.parse import urlsplit

import httpx

from opengov_mcp.exceptions import BackendError

logger = logging.getLogger(__name__)

DATA_TYPES: Final[tuple[str, ...]] = (
    "catalog",
    "categories",
    "tags",
    "dataset-metadata",
    "column-info",
    "data-access",
    "site-metrics",
)

DEFAULT_LIMIT: Final[int] = 10
MAX_LIMIT: Final[int] = 1000


class HttpClientFactory(Protocol):
    def __call__(self, **kwargs: Any) -> httpx.AsyncClient: ...


def create_http_client(**kwargs: Any) -> httpx.AsyncClient:
    """Create an httpx AsyncClient with the defaults used for portal requests.

    Redirects are followed and the timeout defaults to 30 seconds; any keyword
    argument accepted by httpx.AsyncClient overrides these.

    The returned AsyncClient must be used as a context manager to ensure
    proper cleanup of connections.
    """
    default_kwargs: dict[str, Any] = {
        "follow_redirects": True,
        "timeout": httpx.Timeout(30.0),
    }
    default_kwargs.update(kwargs)
    return httpx.AsyncClient(**default_kwargs)


class SocrataClient:
    """Stateless client for one Socrata portal.

    Each call opens its own short-lived HTTP client, so one instance can be
    shared by every session.
    """

    def __init__(
        self,
        portal_url: str,
        *,
        app_token: str | None = None,
        timeout: float = 30.0,
        http_client_factory: HttpClientFactory = create_http_client,
    ) -> None:
        self.portal_url = portal_url.rstrip("/")
        self.domain = urlsplit(self.portal_url).netloc or self.portal_url
        self._app_token = app_token
        self._timeout = timeout
        self._http_client_factory = http_client_factory
        self._handlers: dict[str, Callable[[httpx.AsyncClient, Mapping[str, Any]], Awaitable[Any]]] = {
            "catalog": self._catalog,
            "categories": self._categories,
            "tags": self._tags,
            "dataset-metadata": self._dataset_metadata,
            "column-info": self._column_info,
            "data-access": self._data_access,
            "site-metrics": self._site_metrics,
        }

    async def invoke(self, arguments: Mapping[str, Any]) -> Any:
        """Run the lookup described by ``arguments`` and return its JSON result.

        Raises:
            BackendError: if the arguments are malformed, the portal cannot be
                reached, or it answers with an error status.
        """
        data_type = arguments.get("type")
        if data_type is None:
            raise BackendError(f"Missing required argument 'type'; expected one of: {', '.join(DATA_TYPES)}")
        handler = self._handlers.get(data_type)
        if handler is None:
            raise BackendError(f"Invalid type: {data_type!r}; expected one of: {', '.join(DATA_TYPES)}")

        headers = {"Accept": "application/json"}
        if self._app_token:
            headers["X-App-Token"] = self._app_token

        async with self._http_client_factory(
            base_url=self._base_url(arguments),
            headers=headers,
            timeout=httpx.Timeout(self._timeout),
        ) as client:
            return await handler(client, arguments)

    def _base_url(self, arguments: Mapping[str, Any]) -> str:
        domain = arguments.get("domain")
        if domain:
            return f"https://{domain}" if "://" not in domain else domain.rstrip("/")
        return self.portal_url

    def _domain(self, arguments: Mapping[str, Any]) -> str:
        domain = arguments.get("domain")
        if domain:
            return urlsplit(domain).netloc if "://" in domain else domain
        return self.domain

    async def _get(self, client: httpx.AsyncClient, path: str, params: Mapping[str, Any] | None = None) -> Any:
        query = {key: value for key, value in (params or {}).items() if value is not None}
        logger.debug("GET %s%s params=%s", client.base_url, path, query)
        try:
            response = await client.get(path, params=query)
        except httpx.HTTPError as e:
            raise BackendError(f"Request to {client.base_url}{path} failed: {e}") from e

        if response.is_error:
            raise BackendError(f"{response.status_code} error from {response.url}: {_error_detail(response)}")
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {response.url}") from e

    async def _catalog(self, client: httpx.AsyncClient, arguments: Mapping[str, Any]) -> Any:
        domain = self._domain(arguments)
        payload = await self._get(
            client,
            "/api/catalog/v1",
            {
                "domains": domain,
                "search_context": domain,
                "q": arguments.get("query"),
                "limit": _limit(arguments),
                "offset": _offset(arguments),
            },
        )
        return [_summarise_catalog_entry(entry) for entry in payload.get("results", [])]

    async def _categories(self, client: httpx.AsyncClient, arguments: Mapping[str, Any]) -> Any:
        domain = self._domain(arguments)
        payload = await self._get(
            client,
            "/api/catalog/v1/domain_categories",
            {"domains": domain, "search_context": domain},
        )
        return payload.get("results", [])

    async def _tags(self, client: httpx.AsyncClient, arguments: Mapping[str, Any]) -> Any:
        domain = self._domain(arguments)
        payload = await self._get(
            client,
            "/api/catalog/v1/domain_tags",
            {"domains": domain, "search_context": domain},
        )
        return payload.get("results", [])

    async def _dataset_metadata(self, client: httpx.AsyncClient, arguments: Mapping[str, Any]) -> Any:
        dataset_id = _require_dataset_id(arguments)
        view = await self._get(client, f"/api/views/{dataset_id}.json")
        return {
            "id": view.get("id"),
            "name": view.get("name"),
            "description": view.get("description"),
            "category": view.get("category"),
            "tags": view.get("tags", []),
            "attribution": view.get("attribution"),
            "createdAt": view.get("createdAt"),
            "rowsUpdatedAt": view.get("rowsUpdatedAt"),
            "license": (view.get("license") or {}).get("name"),
            "columns": [_summarise_column(column) for column in view.get("columns", [])],
        }

    async def _column_info(self, client: httpx.AsyncClient, arguments: Mapping[str, Any]) -> Any:
        dataset_id = _require_dataset_id(arguments)
        view = await self._get(client, f"/api/views/{dataset_id}.json")
        return [_summarise_column(column) for column in view.get("columns", [])]

    async def _data_access(self, client: httpx.AsyncClient, arguments: Mapping[str, Any]) -> Any:
        dataset_id = _require_dataset_id(arguments)
        soql = arguments.get("soqlQuery")
        if soql:
            # $query carries its own LIMIT/OFFSET clauses
            params: dict[str, Any] = {"$query": soql}
        else:
            params = {
                "$q": arguments.get("query"),
                "$limit": _limit(arguments),
                "$offset": _offset(arguments),
            }
        return await self._get(client, f"/resource/{dataset_id}.json", params)

    async def _site_metrics(self, client: httpx.AsyncClient, arguments: Mapping[str, Any]) -> Any:
        return await self._get(client, "/api/site_metrics.json")


def _require_dataset_id(arguments: Mapping[str, Any]) -> str:
    dataset_id = arguments.get("datasetId")
    if not dataset_id or not isinstance(dataset_id, str):
        raise BackendError(f"datasetId is required for type {arguments.get('type')!r}")
    return dataset_id


def _limit(arguments: Mapping[str, Any]) -> int:
    value = _non_negative_int(arguments, "limit", DEFAULT_LIMIT)
    return max(1, min(value, MAX_LIMIT))


def _offset(arguments: Mapping[str, Any]) -> int:
    return _non_negative_int(arguments, "offset", 0)


def _non_negative_int(arguments: Mapping[str, Any], key: str, default: int) -> int:
    value = arguments.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        raise BackendError(f"{key} must be a number")
    try:
        number = int(value)
    except ValueError as e:
        raise BackendError(f"{key} must be a number") from e
    if number < 0:
        raise BackendError(f"{key} must not be negative")
    return number


def _summarise_catalog_entry(entry: Mapping[str, Any]) -> dict[str, Any]:
    resource = entry.get("resource", {})
    classification = entry.get("classification", {})
    return {
        "id": resource.get("id"),
        "name": resource.get("name"),
        "description": resource.get("description"),
        "type": resource.get("type"),
        "updatedAt": resource.get("updatedAt"),
        "categories": classification.get("domain_category") or classification.get("categories", []),
        "tags": classification.get("domain_tags") or classification.get("tags", []),
        "link": entry.get("link") or entry.get("permalink"),
    }


def _summarise_column(column: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "name": column.get("name"),
        "fieldName": column.get("fieldName"),
        "dataType": column.get("dataTypeName"),
        "description": column.get("description"),
    }


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)
