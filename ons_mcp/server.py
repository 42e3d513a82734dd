"""MCP stdio server exposing the ONS tools and resources.

The Model Context Protocol framing is handled by the ``mcp`` SDK; this
module only registers the handlers and forwards every request to a
:class:`~ons_mcp.tools.ToolAdapter`.  Adapter calls block on HTTP, so
they run in a worker thread to keep the event loop responsive.

Run with::

    uk-ons-mcp-server
    # or
    python -m ons_mcp
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, List, Optional

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    CallToolRequest,
    CallToolResult,
    ErrorData,
    Resource,
    ServerResult,
    TextContent,
    Tool,
)

from . import __version__
from .config import Settings
from .dataset_service import ONSDatasetService
from .http_client import ONSHttpClient
from .ons_api import ONSApiClient
from .tools import InvalidParamsError, ToolAdapter, UnknownResourceError, UnknownToolError

logger = logging.getLogger(__name__)

SERVER_NAME = "uk_ons_mcp_server"


def build_adapter(settings: Optional[Settings] = None) -> ToolAdapter:
    """Wire settings, HTTP client, API client and service into an adapter."""
    http = ONSHttpClient(settings or Settings())
    return ToolAdapter(ONSDatasetService(ONSApiClient(http)))


def build_server(adapter: ToolAdapter) -> Server:
    """Return an MCP server whose handlers delegate to ``adapter``."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return [
            Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema)
            for spec in adapter.list_tools()
        ]

    async def call_tool(request: CallToolRequest) -> ServerResult:
        name = request.params.name
        try:
            text = await asyncio.to_thread(adapter.call_tool, name, request.params.arguments or {})
        except InvalidParamsError as exc:
            raise McpError(ErrorData(code=INVALID_PARAMS, message=str(exc))) from exc
        except UnknownToolError as exc:
            raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=str(exc))) from exc
        return ServerResult(CallToolResult(content=[TextContent(type="text", text=text)]))

    # Registered without the decorator, which validates against the schema
    # itself and turns every raised error into an isError tool result.
    server.request_handlers[CallToolRequest] = call_tool

    @server.list_resources()
    async def list_resources() -> List[Resource]:
        return [
            Resource(
                uri=spec.uri,
                name=spec.name,
                description=spec.description,
                mimeType=spec.mime_type,
            )
            for spec in adapter.list_resources()
        ]

    @server.read_resource()
    async def read_resource(uri: Any) -> Iterable[ReadResourceContents]:
        # pydantic may append a trailing slash when normalising the URI
        key = str(uri).rstrip("/")
        try:
            text = adapter.read_resource(key)
        except UnknownResourceError as exc:
            raise McpError(ErrorData(code=INVALID_REQUEST, message=str(exc))) from exc
        return [ReadResourceContents(content=text, mime_type="application/json")]

    return server


async def serve_stdio(settings: Optional[Settings] = None) -> None:
    adapter = build_adapter(settings)
    server = build_server(adapter)
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("UK ONS MCP Server running on stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        adapter.service.api_client.http.close()


def run_stdio(settings: Optional[Settings] = None) -> None:
    asyncio.run(serve_stdio(settings))


__all__ = ["build_adapter", "build_server", "serve_stdio", "run_stdio", "SERVER_NAME"]
