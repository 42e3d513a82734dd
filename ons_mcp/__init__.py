"""Top level package for the ons_mcp project.

This package exposes the UK Office for National Statistics (ONS) Beta
API as a Model Context Protocol (MCP) server.  The modules are layered:
``http_client`` talks HTTP, ``ons_api`` maps endpoints to typed
payloads, ``dataset_service`` composes them and ``tools`` turns the
result into the JSON handed to tool callers.  ``server`` (stdio MCP)
and ``main`` (FastAPI) are the two ways to serve the adapter.
"""

__version__ = "1.0.0"

__all__ = [
    "config",
    "errors",
    "http_client",
    "models",
    "ons_api",
    "dataset_service",
    "tools",
]
