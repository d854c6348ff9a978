"""
JSON-RPC 2.0 Protocol — MCP envelope parsing and response shaping

Handles:
- Request envelope parsing
- Response/error construction
- MCP result builders, including the text-content convention for tool results
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

JSONRPC_VERSION = "2.0"

NOTIFICATION_PREFIX = "notifications/"


class ProtocolError(Exception):
    """JSON-RPC protocol error"""
    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603

ERROR_MESSAGES = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    METHOD_NOT_FOUND: "Method not found",
    INTERNAL_ERROR: "Internal error",
}


@dataclass(frozen=True)
class Envelope:
    """One inbound JSON-RPC message. Built per request, never mutated."""

    protocol_tag: Any
    method: Optional[str]
    call_id: Any = None
    parameters: Any = None

    @classmethod
    def from_message(cls, msg: Any) -> "Envelope":
        """
        Build an envelope from a decoded JSON body.

        `jsonrpc` is passed through unchecked. Raises ProtocolError(INVALID_REQUEST)
        when the body is not an object or `method` is present but not a string.
        """
        if not isinstance(msg, dict):
            raise ProtocolError(INVALID_REQUEST, ERROR_MESSAGES[INVALID_REQUEST],
                                "Message must be a JSON object")

        method = msg.get("method")
        if method is not None and not isinstance(method, str):
            raise ProtocolError(INVALID_REQUEST, ERROR_MESSAGES[INVALID_REQUEST],
                                "Method must be a string")

        return cls(
            protocol_tag=msg.get("jsonrpc"),
            method=method,
            call_id=msg.get("id"),
            parameters=msg.get("params"),
        )

    @property
    def normalized_method(self) -> str:
        return (self.method or "").lower()

    @property
    def is_notification(self) -> bool:
        return self.normalized_method.startswith(NOTIFICATION_PREFIX)


def make_response(request_id: Optional[Union[int, str]], result: Any) -> Dict[str, Any]:
    """Build a JSON-RPC success response."""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "result": result,
    }


def make_error(
    request_id: Optional[Union[int, str]],
    code: int,
    message: str,
    data: Any = None,
) -> Dict[str, Any]:
    """Build a JSON-RPC error response."""
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": error,
    }


# --- MCP-specific message builders ---

def initialize_result(
    server_name: str,
    server_version: str,
    protocol_version: str,
    capabilities: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build the MCP initialize result."""
    return {
        "protocolVersion": protocol_version,
        "capabilities": capabilities or {"tools": {}},
        "serverInfo": {
            "name": server_name,
            "version": server_version,
        },
    }


def tools_list_result(tools: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Build the MCP tools/list result."""
    return {"tools": tools}


def tool_result_content(content: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Build the MCP tools/call result."""
    return {"content": content}


def text_content(text: str) -> Dict[str, Any]:
    """Build a text content block."""
    return {"type": "text", "text": text}


def render_text(value: Any) -> str:
    """
    Render a tool payload for a text content block.

    Clients read `text` as a string, so anything that is not already a str is
    serialized to compact JSON.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), default=str)


def shape_tool_result(value: Any) -> Dict[str, Any]:
    """Wrap a tool payload in a single text content block."""
    return tool_result_content([text_content(render_text(value))])
