"""
HTTP transport — FastAPI app served by uvicorn.

Routes:
    GET  /health    — liveness + queue/connection counters
    GET  /sse       — opens an MCP SSE session (one MCP server per connection)
    POST /messages  — client → server MCP messages, ``?sessionId=`` or ``?session_id=``
    POST /webhook   — Telegram updates (webhook mode)

The SSE session ID is minted by the MCP SDK and announced to the client in
the stream's ``endpoint`` event. A missing, malformed or unknown session ID
on ``/messages`` gets a 4xx.
"""

from __future__ import annotations

import uuid
from typing import Any
from urllib.parse import urlencode

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from loguru import logger
from mcp.server.sse import SseServerTransport
from starlette.types import Receive, Scope, Send

from tgbridge import __version__
from tgbridge.context import BridgeContext
from tgbridge.server import create_mcp_server
from tgbridge.tools import ToolRegistry, default_registry

MESSAGES_PATH = "/messages"


class SessionMessages:
    """ASGI endpoint for ``POST /messages``; hands the body to the SSE transport."""

    def __init__(self, sse: SseServerTransport) -> None:
        self.sse = sse

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        session_id = request.query_params.get("sessionId") or request.query_params.get("session_id")
        if not session_id:
            response = PlainTextResponse("Missing sessionId", status_code=400)
            await response(scope, receive, send)
            return

        # The SDK only reads ``session_id``
        scope = dict(scope, query_string=urlencode({"session_id": session_id}).encode())
        await self.sse.handle_post_message(scope, receive, send)


def create_app(ctx: BridgeContext, registry: ToolRegistry | None = None) -> FastAPI:
    tools = registry or default_registry()
    sse = SseServerTransport(MESSAGES_PATH)
    app = FastAPI(title="tgbridge", version=__version__)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "transport": "http",
            "mode": ctx.config.mode_label.lower(),
            "queue_size": len(ctx.queue),
            "active_connections": len(ctx.connections),
        }

    @app.post("/webhook")
    async def webhook(request: Request) -> Response:
        try:
            await ctx.channel.process_update(await request.json())
        except Exception as exc:
            logger.error(f"[http] Webhook error: {exc}")
            return Response(status_code=500)
        return Response(status_code=200)

    @app.get("/sse")
    async def handle_sse(request: Request) -> Response:
        connection_id = uuid.uuid4().hex
        server = create_mcp_server(ctx, tools)
        ctx.connect(connection_id)
        try:
            async with sse.connect_sse(request.scope, request.receive, request._send) as (read_stream, write_stream):
                await server.run(read_stream, write_stream, server.create_initialization_options())
        finally:
            ctx.disconnect(connection_id)
        # The SSE response is already complete; this only satisfies the router.
        return Response()

    app.add_route(MESSAGES_PATH, SessionMessages(sse), methods=["POST"])
    return app


async def serve_http(ctx: BridgeContext, registry: ToolRegistry | None = None) -> None:
    """Run uvicorn until interrupted."""
    app = create_app(ctx, registry)
    config = uvicorn.Config(
        app,
        host=ctx.config.host,
        port=ctx.config.port,
        log_level=ctx.config.log_level.lower(),
    )
    logger.info(f"[http] Listening on {ctx.config.host}:{ctx.config.port}")
    await uvicorn.Server(config).serve()
