"""
HTTP Transport — request body decoding and caller-lifetime tracking

One POST body carries one JSON-RPC envelope. While the router works, the
transport polls the connection; if the caller goes away the cancellation
event is set for the backing operation and the dispatch task is cancelled.
"""

import asyncio
import contextlib
import json
import threading
from typing import Any, Awaitable, Optional

from fastapi import Request

from docmcp.config import Config
from docmcp.server.logger import get_logger
from docmcp.server.protocol import Envelope, ProtocolError, ERROR_MESSAGES, PARSE_ERROR
from docmcp.tools.results import RequestCancelled

log = get_logger("transport")


async def read_envelope(request: Request) -> Envelope:
    """Decode one request body into an Envelope, or raise ProtocolError."""
    raw_bytes = await request.body()
    log.info(f"Full request body: {raw_bytes.decode('utf-8', errors='replace')}")

    # ValueError covers bad JSON, bad UTF-8 and over-long integer literals;
    # RecursionError covers pathologically deep nesting
    try:
        parsed = json.loads(raw_bytes)
    except (ValueError, RecursionError) as exc:
        log.error(f"JSON parse error: {exc}")
        raise ProtocolError(PARSE_ERROR, ERROR_MESSAGES[PARSE_ERROR], str(exc)) from exc

    return Envelope.from_message(parsed)


async def run_while_connected(
    request: Request,
    work: Awaitable[Any],
    cancelled: threading.Event,
    poll_s: Optional[float] = None,
) -> Any:
    """
    Await `work`, abandoning it if the client disconnects first.

    Raises RequestCancelled when the caller went away.
    """
    poll_s = Config.DISCONNECT_POLL_S if poll_s is None else poll_s
    task = asyncio.ensure_future(work)

    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_s)
            if done:
                return task.result()
            if await request.is_disconnected():
                log.info("Client disconnected, cancelling request")
                cancelled.set()
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError, RequestCancelled):
                    await task
                raise RequestCancelled("client disconnected")
    finally:
        if not task.done():
            task.cancel()
