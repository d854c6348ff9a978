"""
HTTP MCP Server — Main Orchestrator

Ties together:
  HTTP (FastAPI) -> Transport -> Protocol -> Router -> DocumentTools -> DocumentStore

Endpoints:
  POST    /mcp             one JSON-RPC envelope in, one out (empty for notifications)
  OPTIONS /mcp             static permissive CORS headers
  GET     /health/healthy  liveness, plain "ok"
  GET     /health/ready    readiness, plain "ok"

The document store is a single shared handle opened at startup and closed at
shutdown; requests never construct their own.
"""

import threading
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from docmcp import __version__
from docmcp.config import Config
from docmcp.db.sqlite import DocumentStore
from docmcp.server.logger import get_logger
from docmcp.server.protocol import (
    make_error,
    ProtocolError,
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
)
from docmcp.server.router import Router
from docmcp.server.transport import read_envelope, run_while_connected
from docmcp.tools.document_tools import DocumentTools
from docmcp.tools.results import RequestCancelled

log = get_logger("server")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

RESPONSE_HEADERS = {"Cache-Control": "no-cache", **CORS_HEADERS}

# Client went away before a response could be written
CLIENT_CLOSED_REQUEST = 499

_BAD_REQUEST_CODES = frozenset({PARSE_ERROR, INVALID_REQUEST, METHOD_NOT_FOUND})


def http_status_for(response: Dict[str, Any]) -> int:
    """HTTP status for a JSON-RPC response envelope."""
    error = response.get("error")
    if error is None:
        return 200
    if error.get("code") in _BAD_REQUEST_CODES:
        return 400
    return 500


def create_app(
    store: Optional[DocumentStore] = None,
    backend=None,
) -> FastAPI:
    """
    Build the FastAPI application.

    `store` defaults to a DocumentStore at Config.DB_PATH. `backend` replaces
    the DocumentTools collaborator entirely (the store is still managed).
    """
    store = store or DocumentStore()
    backend = backend or DocumentTools(store)
    router = Router(backend)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await store.initialize()
        log.info(
            f"Starting {Config.SERVER_NAME} v{Config.SERVER_VERSION} "
            f"tools={router.tool_count} store={store.path}"
        )
        try:
            yield
        finally:
            await store.close()
            log.info("Server stopped")

    app = FastAPI(
        title="docmcp",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.router = router
    app.state.store = store

    # ── MCP endpoint ──────────────────────────────────────

    @app.options(Config.MCP_PATH)
    async def mcp_options():
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.post(Config.MCP_PATH)
    async def mcp_post(request: Request):
        try:
            envelope = await read_envelope(request)
        except ProtocolError as exc:
            log.warning(f"Rejected request body: {exc.message} ({exc.data})")
            body = make_error(None, exc.code, exc.message, exc.data)
            return JSONResponse(body, status_code=400, headers=RESPONSE_HEADERS)

        cancelled = threading.Event()
        try:
            response = await run_while_connected(
                request, router.handle(envelope, cancelled), cancelled,
            )
        except RequestCancelled:
            log.info(f"Request {envelope.call_id!r} ({envelope.method}) abandoned by client")
            return Response(status_code=CLIENT_CLOSED_REQUEST)

        if response is None:
            return Response(status_code=200, headers=RESPONSE_HEADERS)

        return JSONResponse(
            response,
            status_code=http_status_for(response),
            headers=RESPONSE_HEADERS,
        )

    # ── Health ────────────────────────────────────────────

    @app.get("/health/healthy", response_class=PlainTextResponse)
    async def healthy():
        return "ok"

    @app.get("/health/ready", response_class=PlainTextResponse)
    async def ready():
        return "ok"

    return app
