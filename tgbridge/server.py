"""
MCP server wiring.

One ``mcp.server.Server`` per client connection, all bound to the same
BridgeContext. Tool results go back as a single TextContent holding the
JSON payload. UnknownToolError is not caught here: the MCP SDK reports it
to the client as a failed call.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent
from mcp.types import Tool as McpTool

from tgbridge import __version__
from tgbridge.context import BridgeContext
from tgbridge.tools import ToolRegistry, default_registry

SERVER_NAME = "tgbridge"


def to_text_content(result: dict[str, Any]) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(result, ensure_ascii=False))]


def create_mcp_server(ctx: BridgeContext, registry: ToolRegistry | None = None) -> Server:
    """Build an MCP server exposing the registry's tools."""
    tools = registry or default_registry()
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()  # type: ignore[misc]
    async def list_tools() -> list[McpTool]:
        return [McpTool(**schema) for schema in tools.schemas()]

    @server.call_tool()  # type: ignore[misc]
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        result = await tools.execute(ctx, name, arguments)
        return to_text_content(result)

    return server


async def serve_stdio(ctx: BridgeContext, registry: ToolRegistry | None = None) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    server = create_mcp_server(ctx, registry)
    ctx.connect("stdio")
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("[mcp] Connected via stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        ctx.disconnect("stdio")
