"""
main.py
-------

HTTP entry point of the ``ons_mcp`` project.  This module builds a
FastAPI application, sets its documentation metadata and mounts the
routes defined in ``router.py``.

The MCP stdio server is the primary way to use the adapter; this
application offers the same tools and resources over plain HTTP, which
is convenient for debugging and for clients that do not speak MCP.
Start it with ``uvicorn`` or any other ASGI server::

    uvicorn ons_mcp.main:app --reload

or through the console script::

    uk-ons-mcp-server --http

The module contains no business logic: it only declares the
application and wires the components together.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from fastapi import FastAPI

from . import __version__
from .config import Settings
from .router import api_router
from .server import build_adapter


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    app.state.adapter.service.api_client.http.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings : Settings, optional
        Configuration of the upstream client.  Read from the environment
        when omitted.

    Returns
    -------
    FastAPI
        Application with the tool adapter stored on ``app.state.adapter``.
    """
    settings = settings or Settings.from_env()
    app = FastAPI(
        title="UK ONS Statistics Adapter",
        description=(
            "HTTP façade over the UK Office for National Statistics Beta API. "
            "Exposes the same tools and resources as the MCP server, plus "
            "dataset dimensions, time series and regional comparisons."
        ),
        version=__version__,
        lifespan=_lifespan,
    )
    app.state.settings = settings
    app.state.adapter = build_adapter(settings)

    app.include_router(api_router)

    @app.get("/", summary="API root", tags=["root"])
    async def root() -> Dict[str, str]:
        """Welcome message; doubles as a liveness probe."""
        return {
            "message": (
                "UK ONS statistics adapter. Use GET /tools to list the tools "
                "and POST /tools/{name} to call one."
            )
        }

    return app


def run_http(settings: Optional[Settings] = None) -> None:
    """Serve :func:`create_app` with uvicorn on the configured address."""
    import uvicorn

    settings = settings or Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.http_host, port=settings.http_port)


# Global application instance, imported by ASGI servers
app = create_app()


__all__ = ["create_app", "run_http"]
