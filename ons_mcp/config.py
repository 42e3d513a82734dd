"""Runtime configuration for the ONS adapter.

All settings come from environment variables with defaults suitable
for talking to the public Beta API.  ``Settings.from_env()`` is called
once by the entry points and the resulting object is passed down; it
is frozen so nothing can alter it after start-up.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

API_BASE_URL = "https://api.beta.ons.gov.uk/v1"
DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "uk_ons_mcp_server/1.0.0"

LOG_FORMAT = "[%(asctime)s] %(levelname)s in %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Settings:
    """Configuration shared by the HTTP client and the entry points.

    Attributes
    ----------
    base_url : str
        Root of the ONS API, without trailing slash.
    timeout : float
        Per-request timeout in seconds.
    user_agent : str
        Value of the ``User-Agent`` header sent with every request.
    log_level : str
        Name of the logging level used by :func:`configure_logging`.
    http_host, http_port : str, int
        Bind address of the optional FastAPI façade.
    """

    base_url: str = API_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"
    http_host: str = "127.0.0.1"
    http_port: int = 8000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``).

        Raises
        ------
        ValueError
            If ``ONS_API_TIMEOUT`` or ``ONS_HTTP_PORT`` is not a positive number.
        """
        env = os.environ if environ is None else environ

        raw_timeout = env.get("ONS_API_TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ValueError(f"ONS_API_TIMEOUT must be a number, got {raw_timeout!r}") from exc
        if timeout <= 0:
            raise ValueError(f"ONS_API_TIMEOUT must be positive, got {raw_timeout!r}")

        raw_port = env.get("ONS_HTTP_PORT", "8000")
        try:
            port = int(raw_port)
        except ValueError as exc:
            raise ValueError(f"ONS_HTTP_PORT must be an integer, got {raw_port!r}") from exc
        if port <= 0:
            raise ValueError(f"ONS_HTTP_PORT must be positive, got {raw_port!r}")

        return cls(
            base_url=env.get("ONS_API_BASE_URL", API_BASE_URL).rstrip("/"),
            timeout=timeout,
            user_agent=env.get("ONS_USER_AGENT", DEFAULT_USER_AGENT),
            log_level=env.get("ONS_LOG_LEVEL", "INFO").upper(),
            http_host=env.get("ONS_HTTP_HOST", "127.0.0.1"),
            http_port=port,
        )


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr; stdout is reserved for the stdio transport."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
        root.addHandler(handler)
    root.setLevel(level.upper())


__all__ = ["Settings", "configure_logging", "API_BASE_URL"]
