"""Thin wrapper around a single :class:`requests.Session`.

Every request issued by the adapter goes through :class:`ONSHttpClient`.
It fixes the base URL, the timeout and the standard headers, and turns
failed responses into the exceptions defined in :mod:`ons_mcp.errors`.
There is deliberately no retry adapter mounted on the session: a failed
call surfaces immediately to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .config import Settings
from .errors import HTTPStatusError, error_for_status, network_error

logger = logging.getLogger(__name__)


def _create_session(user_agent: str) -> requests.Session:
    """Return a `requests.Session` carrying the ONS request headers."""
    session = requests.Session()
    session.headers.update(
        {
            "Accept": "application/json",
            "User-Agent": user_agent,
        }
    )
    return session


def _decode_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class ONSHttpClient:
    """GET-only HTTP client bound to the ONS API base URL.

    The client is safe to share across calls; its configuration is read
    only after construction.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.base_url = self.settings.base_url.rstrip("/")
        self.timeout = self.settings.timeout
        self.session = session or _create_session(self.settings.user_agent)

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Perform a GET request and return the decoded JSON body.

        Parameters
        ----------
        path : str
            Path relative to the base URL.  It may already carry a query
            string, in which case it is sent verbatim.
        params : dict, optional
            Query parameters encoded by `requests`.

        Raises
        ------
        ONSAPIError
            The subclass matching the HTTP status for non-2xx responses,
            :class:`~ons_mcp.errors.NetworkError` when no response was
            received, :class:`~ons_mcp.errors.HTTPStatusError` when a
            successful response is not JSON.
        """
        url = self.url_for(path)
        logger.debug("Requesting URL %s with params %s", url, params)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Request exception for %s: %s", url, exc)
            raise network_error(str(exc)) from exc

        body = _decode_json(response)
        if not 200 <= response.status_code < 300:
            logger.warning(
                "Received HTTP %s for %s: %s", response.status_code, url, body
            )
            raise error_for_status(
                response.status_code, body, response.reason or f"HTTP {response.status_code}"
            )
        if body is None:
            logger.error("Non-JSON response received from %s", url)
            raise HTTPStatusError(
                f"ONS API: HTTP {response.status_code} - response body is not JSON",
                status_code=response.status_code,
            )
        return body

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ONSHttpClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["ONSHttpClient"]
