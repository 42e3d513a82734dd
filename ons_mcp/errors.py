"""Error taxonomy for calls made against the ONS Beta API.

Upstream failures are classified exactly once, at the HTTP layer, by the
pure function :func:`classify`.  Each category maps onto a subclass of
:class:`ONSAPIError` so that callers can either catch the specific class
or inspect :attr:`ONSAPIError.kind`.

Examples
--------
>>> classify(404, {"message": "dataset not found"})
<ErrorKind.NOT_FOUND: 'not_found'>
>>> err = error_for_status(429, None, "Too Many Requests")
>>> str(err)
'ONS API: Rate limit exceeded - Too Many Requests'
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Type


class ErrorKind(str, Enum):
    """Categories of failure surfaced to tool callers."""

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN_OPERATION = "unknown_operation"


def classify(status_code: int, body: Any = None) -> ErrorKind:
    """Map an HTTP status code onto an :class:`ErrorKind`.

    ``body`` is accepted so that the signature mirrors what the HTTP
    layer has at hand; the ONS API does not encode the error category
    in the body, so only the status code is inspected.
    """
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 400:
        return ErrorKind.BAD_REQUEST
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code == 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.HTTP_ERROR


def upstream_message(body: Any, fallback: str) -> str:
    """Return the ``message`` field of an upstream error body, if any."""
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return fallback


class ONSAPIError(Exception):
    """Base class for every failure raised while talking to the ONS API.

    Attributes
    ----------
    kind : ErrorKind
        Category of the failure.
    message : str
        Human readable message, already prefixed with the category.
    status_code : int, optional
        HTTP status returned by the upstream API, ``None`` for
        transport failures.
    """

    kind: ErrorKind = ErrorKind.HTTP_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def with_context(self, prefix: str) -> "ONSAPIError":
        """Return a copy of this error whose message starts with ``prefix``.

        The class, and therefore the kind, is preserved.
        """
        return type(self)(f"{prefix}: {self.message}", status_code=self.status_code)


class NotFoundError(ONSAPIError):
    kind = ErrorKind.NOT_FOUND


class BadRequestError(ONSAPIError):
    kind = ErrorKind.BAD_REQUEST


class RateLimitError(ONSAPIError):
    kind = ErrorKind.RATE_LIMITED


class UpstreamServerError(ONSAPIError):
    kind = ErrorKind.SERVER_ERROR


class HTTPStatusError(ONSAPIError):
    kind = ErrorKind.HTTP_ERROR


class NetworkError(ONSAPIError):
    kind = ErrorKind.NETWORK_ERROR


_ERROR_CLASSES: Dict[ErrorKind, Type[ONSAPIError]] = {
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.BAD_REQUEST: BadRequestError,
    ErrorKind.RATE_LIMITED: RateLimitError,
    ErrorKind.SERVER_ERROR: UpstreamServerError,
    ErrorKind.HTTP_ERROR: HTTPStatusError,
}

_LABELS: Dict[ErrorKind, str] = {
    ErrorKind.NOT_FOUND: "Resource not found",
    ErrorKind.BAD_REQUEST: "Bad request",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded",
    ErrorKind.SERVER_ERROR: "Server error",
}


def error_for_status(status_code: int, body: Any, fallback: str) -> ONSAPIError:
    """Build the exception matching ``status_code``.

    Parameters
    ----------
    status_code : int
        HTTP status of the failed response.
    body : Any
        Decoded JSON body of the response, or ``None`` if it was not JSON.
    fallback : str
        Message used when the body carries no ``message`` field,
        typically the HTTP reason phrase.
    """
    kind = classify(status_code, body)
    message = upstream_message(body, fallback)
    label = _LABELS.get(kind, f"HTTP {status_code}")
    return _ERROR_CLASSES[kind](f"ONS API: {label} - {message}", status_code=status_code)


def network_error(reason: str) -> NetworkError:
    """Build the exception raised when no HTTP response was received."""
    return NetworkError(f"ONS API: Network error - {reason}")


__all__ = [
    "ErrorKind",
    "classify",
    "upstream_message",
    "error_for_status",
    "network_error",
    "ONSAPIError",
    "NotFoundError",
    "BadRequestError",
    "RateLimitError",
    "UpstreamServerError",
    "HTTPStatusError",
    "NetworkError",
]
