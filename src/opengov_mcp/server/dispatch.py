"""
Tool dispatch pipeline.

Every ``tools/call`` request runs through :meth:`ToolDispatcher.call`, which:

1. pushes an ``info`` log event recording the tool, its arguments and a timestamp
2. resolves the tool name against the catalog
3. awaits the backend client with the argument bag
4. on success pushes an ``info`` event with the serialized result size
5. on failure pushes an ``error`` event with the message and traceback

and returns exactly one :class:`ToolSuccess` or :class:`ToolFailure`. Nothing
raised by the backend escapes; the protocol layer turns the outcome into a
``CallToolResult``.
"""

from __future__ import annotations

import json
import logging
import traceback
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol, TypeAlias

from opengov_mcp.types import LoggingLevel

logger = logging.getLogger(__name__)

LOGGER_NAME = "opengov_mcp.tools"


class BackendClient(Protocol):
    async def invoke(self, arguments: Mapping[str, Any]) -> Any: ...


class LogSink(Protocol):
    async def send_log_message(self, level: LoggingLevel, data: Any, logger: str | None = None) -> None: ...


class UnknownToolError(Exception):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


@dataclass(frozen=True)
class ToolSuccess:
    value: Any
    text: str


@dataclass(frozen=True)
class ToolFailure:
    message: str
    stack: str | None = None


ToolOutcome: TypeAlias = ToolSuccess | ToolFailure


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ToolDispatcher:
    """Routes tool calls to the backend client. Stateless, shared by every session."""

    def __init__(self, tool_names: Iterable[str], backend: BackendClient) -> None:
        self._tool_names = frozenset(tool_names)
        self._backend = backend

    async def call(self, name: str, arguments: dict[str, Any] | None, log: LogSink) -> ToolOutcome:
        arguments = arguments or {}

        logger.info("Handling tool call: %s", name)
        await log.send_log_message(
            "info",
            {
                "message": f"Handling tool call: {name}",
                "tool": name,
                "arguments": arguments,
                "timestamp": _timestamp(),
            },
            logger=LOGGER_NAME,
        )

        try:
            if name not in self._tool_names:
                raise UnknownToolError(name)
            result = await self._backend.invoke(arguments)
            text = json.dumps(result, separators=(",", ":"))
        except Exception as e:
            message = str(e) or type(e).__name__
            stack = traceback.format_exc()
            logger.error("Error handling tool %s with arguments %r: %s", name, arguments, message, exc_info=True)
            await log.send_log_message(
                "error",
                {
                    "message": f"Error handling tool {name}: {message}",
                    "tool": name,
                    "arguments": arguments,
                    "timestamp": _timestamp(),
                    "error": message,
                    "stack": stack,
                },
                logger=LOGGER_NAME,
            )
            return ToolFailure(message=message, stack=stack)

        logger.info("Successfully executed tool: %s (%d bytes)", name, len(text))
        await log.send_log_message(
            "info",
            {
                "message": f"Successfully executed tool: {name}",
                "tool": name,
                "resultSize": len(text),
                "timestamp": _timestamp(),
            },
            logger=LOGGER_NAME,
        )
        return ToolSuccess(value=result, text=text)
