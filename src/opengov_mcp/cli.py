"""Command line entry point: ``opengov-mcp``."""

import logging
import sys

import anyio
import click
import uvicorn

from opengov_mcp.exceptions import SetupError
from opengov_mcp.server import create_app, create_session_manager
from opengov_mcp.settings import Settings
from opengov_mcp.socrata import SocrataClient, get_portal_info
from opengov_mcp.tools import ToolCatalog
from opengov_mcp.utilities.logging import configure_logging

logger = logging.getLogger(__name__)


@click.command()
@click.option("--portal-url", envvar="DATA_PORTAL_URL", help="Base URL of the Socrata data portal")
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", type=int, default=None, help="Port to listen on for HTTP")
@click.option(
    "--log-level",
    default=None,
    help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
def main(portal_url: str | None, host: str | None, port: int | None, log_level: str | None) -> int:
    overrides = {
        key: value
        for key, value in {
            "data_portal_url": portal_url,
            "host": host,
            "port": port,
            "log_level": log_level,
        }.items()
        if value is not None
    }
    settings = Settings(**overrides)
    configure_logging(settings.log_level)

    if not settings.data_portal_url:
        logger.error("No data portal configured; set DATA_PORTAL_URL or pass --portal-url")
        sys.exit(1)

    logger.info("Starting server setup for %s", settings.data_portal_url)
    try:
        portal_info = anyio.run(
            lambda: get_portal_info(
                settings.data_portal_url,
                title=settings.data_portal_title,
                app_token=settings.app_token,
                timeout=settings.request_timeout,
            )
        )
    except SetupError:
        logger.exception("Failed to set up the server")
        sys.exit(1)

    catalog = ToolCatalog.for_portal(portal_info)
    logger.info("Configured %d tool(s) for data portal: %s", len(catalog), portal_info.title)

    backend = SocrataClient(
        portal_info.url,
        app_token=settings.app_token,
        timeout=settings.request_timeout,
    )
    session_manager = create_session_manager(
        catalog,
        backend,
        endpoint=settings.mcp_path,
        ping_interval=settings.sse_ping_interval,
    )
    app = create_app(session_manager, catalog=catalog)

    logger.info("MCP HTTP+SSE server listening on %s:%d%s", settings.host, settings.port, settings.mcp_path)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0
