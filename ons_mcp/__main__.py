"""Command line entry point: ``python -m ons_mcp`` or ``uk-ons-mcp-server``.

Without options the MCP server is served over stdio.  ``--http`` starts
the FastAPI façade instead.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .config import Settings, configure_logging

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="uk-ons-mcp-server",
        description="Serve the UK ONS statistics API as MCP tools.",
    )
    parser.add_argument("--http", action="store_true", help="serve the HTTP façade instead of stdio MCP")
    parser.add_argument("--host", help="bind address of the HTTP façade (ONS_HTTP_HOST)")
    parser.add_argument("--port", type=int, help="port of the HTTP façade (ONS_HTTP_PORT)")
    parser.add_argument("--log-level", help="logging level (ONS_LOG_LEVEL)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    overrides = {}
    if args.host:
        overrides["http_host"] = args.host
    if args.port:
        overrides["http_port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    settings = replace(settings, **overrides)

    configure_logging(settings.log_level)

    if args.http:
        from .main import run_http

        logger.info("Serving HTTP façade on %s:%s", settings.http_host, settings.http_port)
        run_http(settings)
    else:
        from .server import run_stdio

        run_stdio(settings)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
