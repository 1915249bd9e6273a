"""MCP Logging Types - Types for server-to-client log messages."""

from typing import Any, Final, Literal

from opengov_mcp.types.base import NotificationParams, RequestParams

LoggingLevel = Literal["debug", "info", "notice", "warning", "error", "critical", "alert", "emergency"]

# RFC 5424 severities, least to most severe
LOGGING_LEVEL_ORDER: Final[tuple[LoggingLevel, ...]] = (
    "debug",
    "info",
    "notice",
    "warning",
    "error",
    "critical",
    "alert",
    "emergency",
)


def level_value(level: LoggingLevel) -> int:
    return LOGGING_LEVEL_ORDER.index(level)


class SetLevelRequestParams(RequestParams):
    """Parameters for a logging/setLevel request."""

    level: LoggingLevel


class LoggingMessageNotificationParams(NotificationParams):
    """Parameters for a notifications/message notification."""

    level: LoggingLevel
    logger: str | None = None
    data: Any
