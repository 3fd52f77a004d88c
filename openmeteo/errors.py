"""Exception hierarchy raised by the Open-Meteo client.

Every failure surfaces to the caller as a ``WeatherClientError`` subclass so
callers can decide on their own retry policy. Underlying exceptions from
``requests``, ``json`` or ``pydantic`` are chained via ``__cause__``.
"""

from __future__ import annotations

from typing import Optional

_BODY_EXCERPT_LIMIT = 200


class WeatherClientError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(WeatherClientError, ValueError):
    """Raised when the client is constructed with invalid settings."""


class ValidationError(WeatherClientError, ValueError):
    """Raised when call arguments are rejected before any network I/O."""


class TransportError(WeatherClientError):
    """Raised when the HTTP transport fails (DNS, connection, read timeout)."""


class CancelledError(WeatherClientError):
    """Raised when the caller's cancel token fires before the call completes."""


class APIError(WeatherClientError):
    """Raised when the service answers with an unexpected HTTP status."""

    def __init__(self, reason: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class DecodeError(WeatherClientError):
    """Raised when a response body is not the JSON shape we expect."""

    def __init__(self, message: str, *, body: bytes | str | None = None) -> None:
        super().__init__(message)
        self.body = _excerpt(body)


class ErrorBodyDecodeError(APIError, DecodeError):
    """Non-success status whose body could not be decoded as an error payload."""

    def __init__(self, status_code: int, diagnostic: str, *, body: bytes | str | None = None) -> None:
        APIError.__init__(self, f"unexpected status {status_code}", status_code=status_code)
        self.diagnostic = diagnostic
        self.body = _excerpt(body)


def _excerpt(body: bytes | str | None) -> Optional[str]:
    if body is None:
        return None
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if len(body) > _BODY_EXCERPT_LIMIT:
        return body[:_BODY_EXCERPT_LIMIT] + "..."
    return body


__all__ = [
    "APIError",
    "CancelledError",
    "ConfigError",
    "DecodeError",
    "ErrorBodyDecodeError",
    "TransportError",
    "ValidationError",
    "WeatherClientError",
]
