"""
Method Router — Dispatch MCP methods to handlers

Routes (matched case-insensitively):
  initialize       -> server capabilities handshake
  tools/list       -> catalog tool definitions
  tools/call       -> argument coercion + backing operation
  notifications/*  -> acknowledged, no response body

Anything else is METHOD_NOT_FOUND. The router keeps no state between calls.
"""

import copy
import inspect
import threading
from typing import Any, Dict, Optional

from docmcp.config import Config
from docmcp.server.coercion import coerce_arguments
from docmcp.server.logger import get_logger
from docmcp.server.protocol import (
    Envelope,
    initialize_result,
    tools_list_result,
    shape_tool_result,
    make_response,
    make_error,
    ProtocolError,
    ERROR_MESSAGES,
    METHOD_NOT_FOUND,
    INTERNAL_ERROR,
)
from docmcp.tools.catalog import TOOLS, get_tool
from docmcp.tools.results import RequestCancelled, SoftError, ToolResult

log = get_logger("router")


def _diagnostic(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


class Router:
    """
    MCP method dispatcher.

    `backend` is the backing operation collaborator: any object with
    `execute(name, arguments, cancelled)` returning (or resolving to) a
    ToolResult, a SoftError, or a plain value.
    """

    def __init__(self, backend):
        self._backend = backend

    @property
    def tool_count(self) -> int:
        return len(TOOLS)

    async def handle(
        self,
        envelope: Envelope,
        cancelled: Optional[threading.Event] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Produce the response envelope for one request, or None for notifications.

        Never raises except RequestCancelled; every other failure becomes an
        error envelope carrying the caller's id.
        """
        if envelope.is_notification:
            log.info(f"Notification received: {envelope.method}")
            return None

        try:
            result = await self.route(envelope, cancelled)
            return make_response(envelope.call_id, result)

        except RequestCancelled:
            raise

        except ProtocolError as exc:
            log.warning(f"Protocol error: {exc.message} (code={exc.code}) data={exc.data!r}")
            return make_error(envelope.call_id, exc.code, exc.message, exc.data)

        except Exception as exc:
            log.error(
                f"Error processing MCP request: {envelope.method} with ID: {envelope.call_id}",
                exc_info=True,
            )
            return make_error(
                envelope.call_id,
                INTERNAL_ERROR,
                ERROR_MESSAGES[INTERNAL_ERROR],
                _diagnostic(exc),
            )

    async def route(
        self,
        envelope: Envelope,
        cancelled: Optional[threading.Event] = None,
    ) -> Any:
        """Return the result payload for a request method, or raise."""
        method = envelope.normalized_method
        params = envelope.parameters

        if method == "initialize":
            return self._handle_initialize(params)

        if method == "tools/list":
            return self._handle_tools_list()

        if method == "tools/call":
            name = params.get("name") if isinstance(params, dict) else None
            if name is not None:
                return await self._handle_tools_call(name, params.get("arguments"), cancelled)
            # No tool name: same outcome as an unrecognised method
            log.warning("tools/call without a tool name")

        raise ProtocolError(METHOD_NOT_FOUND, ERROR_MESSAGES[METHOD_NOT_FOUND], envelope.method)

    def _handle_initialize(self, params: Any) -> Dict[str, Any]:
        params = params if isinstance(params, dict) else {}
        client = params.get("clientInfo")
        client_name = client.get("name", "?") if isinstance(client, dict) else "?"
        log.info(f"Client initialize: {client_name} protocol={params.get('protocolVersion', '?')}")
        return initialize_result(
            server_name=Config.SERVER_NAME,
            server_version=Config.SERVER_VERSION,
            protocol_version=Config.PROTOCOL_VERSION,
        )

    def _handle_tools_list(self) -> Dict[str, Any]:
        log.info(f"Returning tools/list response with {len(TOOLS)} tools")
        return tools_list_result(copy.deepcopy(TOOLS))

    async def _handle_tools_call(
        self,
        name: Any,
        raw_args: Any,
        cancelled: Optional[threading.Event],
    ) -> Dict[str, Any]:
        if not isinstance(name, str):
            raise TypeError("Tool name must be a string")

        tool = get_tool(name)

        args = coerce_arguments(raw_args, tool["inputSchema"])
        log.info(f"Calling tool {tool['name']} with {sorted(args)}")

        outcome = self._backend.execute(tool["name"], args, cancelled)
        if inspect.isawaitable(outcome):
            outcome = await outcome

        if isinstance(outcome, SoftError):
            log.info(f"Tool {tool['name']} returned a soft error: {outcome.payload}")
            payload = outcome.payload
        elif isinstance(outcome, ToolResult):
            payload = outcome.payload
        else:
            payload = outcome

        log.info(f"Returning tools/call response for tool: {tool['name']}")
        return shape_tool_result(payload)
