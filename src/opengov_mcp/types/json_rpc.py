"""Minimum amount of base models to represent the types from JSON-RPC used by MCP."""

import json
from typing import Annotated, Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

JSONRPC_VERSION: Final[str] = "2.0"

PARSE_ERROR: Final[int] = -32700
INVALID_REQUEST: Final[int] = -32600
METHOD_NOT_FOUND: Final[int] = -32601
INVALID_PARAMS: Final[int] = -32602
INTERNAL_ERROR: Final[int] = -32603

# Implementation-defined server error, used for transport level addressing failures
SERVER_ERROR: Final[int] = -32000

RequestId = Annotated[int, Field(strict=True)] | str


class JSONRPCBase(BaseModel):
    """Base class for all JSON-RPC messages."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION


class JSONRPCRequest(JSONRPCBase):
    """A request that expects a response."""

    id: RequestId
    method: str
    params: dict[str, Any] | None = None


class JSONRPCNotification(JSONRPCBase):
    """A notification which does not expect a response."""

    method: str
    params: dict[str, Any] | None = None


class ErrorData(BaseModel):
    """Error information in a JSON-RPC error response."""

    model_config = ConfigDict(extra="allow")

    code: int
    message: str
    data: Any | None = None


class JSONRPCResultResponse(JSONRPCBase):
    """A successful (non-error) response to a request."""

    id: RequestId
    result: dict[str, Any]


class JSONRPCErrorResponse(JSONRPCBase):
    """A response to a request that indicates an error occurred."""

    id: RequestId | None = None
    error: ErrorData


JSONRPCResponse = JSONRPCResultResponse | JSONRPCErrorResponse
JSONRPCMessage = JSONRPCRequest | JSONRPCNotification | JSONRPCResponse


class JSONRPCError(Exception):
    """A JSON-RPC level failure that maps to an error response with ``code``."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.code, message=self.message, data=self.data)


def error_envelope(code: int, message: str, data: Any | None = None, id: RequestId | None = None) -> dict[str, Any]:
    """Build the plain-dict error body returned on HTTP responses.

    ``id`` is always present (``null`` when unknown) and ``data`` only when set.
    """
    error = ErrorData(code=code, message=message, data=data)
    return {
        "jsonrpc": JSONRPC_VERSION,
        "error": error.model_dump(exclude_none=True),
        "id": id,
    }


def parse_message(raw: str | bytes | dict[str, Any]) -> JSONRPCMessage:
    """Parse a JSON-RPC message.

    Discrimination is based on field presence:
    - Request:        has 'id' AND 'method'
    - Notification:   has 'method' but NO 'id'
    - ResultResponse: has 'id' AND 'result' (no 'method')
    - ErrorResponse:  has 'error' field

    Raises:
        JSONRPCError: PARSE_ERROR for malformed JSON, INVALID_REQUEST for anything
            that is valid JSON but not a JSON-RPC 2.0 message.
    """
    if isinstance(raw, str | bytes):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise JSONRPCError(PARSE_ERROR, f"Parse error: {e}") from e
    else:
        data = raw

    if not isinstance(data, dict):
        raise JSONRPCError(INVALID_REQUEST, "Invalid Request: message must be an object")
    if data.get("jsonrpc") != JSONRPC_VERSION:
        raise JSONRPCError(INVALID_REQUEST, "Invalid Request: jsonrpc must be '2.0'")

    params = data.get("params")
    if params is not None and not isinstance(params, dict):
        raise JSONRPCError(INVALID_REQUEST, "Invalid Request: params must be an object")

    message_type: type[JSONRPCBase]
    if "method" in data:
        if not isinstance(data["method"], str):
            raise JSONRPCError(INVALID_REQUEST, "Invalid Request: method must be a string")
        if "id" in data:
            msg_id = data["id"]
            if isinstance(msg_id, bool) or not isinstance(msg_id, int | str):
                raise JSONRPCError(INVALID_REQUEST, "Invalid Request: id must be integer or string")
            message_type = JSONRPCRequest
        else:
            message_type = JSONRPCNotification
    elif "error" in data:
        message_type = JSONRPCErrorResponse
    elif "result" in data and "id" in data:
        message_type = JSONRPCResultResponse
    else:
        raise JSONRPCError(INVALID_REQUEST, "Invalid Request: not a JSON-RPC message")

    try:
        return message_type.model_validate(data)  # type: ignore[return-value]
    except ValidationError as e:
        raise JSONRPCError(INVALID_REQUEST, f"Invalid Request: {e.error_count()} validation error(s)") from e
