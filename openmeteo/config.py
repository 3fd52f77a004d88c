"""Centralize client defaults and the optional environment lookups."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from dotenv import load_dotenv

from openmeteo.http import Transport, build_session

# ---------------------------------------------------------------------------
# Default configuration values
# ---------------------------------------------------------------------------
DEFAULT_BASE_URL: str = "https://api.open-meteo.com"
DEFAULT_TIMEOUT: float = 8.0
_DEFAULT_LOG_LEVEL: str = "WARNING"


@dataclass(frozen=True)
class ClientConfig:
    """Settings a ``WeatherClient`` is built from.

    Every field is optional; unset fields fall back to the public service,
    no API key, a fresh ``requests.Session`` and an 8 second timeout.
    Validation happens when the client is constructed, not here.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: str = field(default="", repr=False)
    http_client: Transport = field(default_factory=build_session, repr=False)
    timeout: float = DEFAULT_TIMEOUT


# ---------------------------------------------------------------------------
# Environment-derived settings
# ---------------------------------------------------------------------------
def _source(env: Mapping[str, str] | None) -> Mapping[str, str]:
    if env is not None:
        return env
    load_dotenv()
    return os.environ


def get_base_url(env: Mapping[str, str] | None = None) -> str:
    """Return the service origin, honouring ``OPEN_METEO_BASE_URL``.

    Args:
        env: Optional mapping used instead of ``os.environ`` to simplify testing.
    """

    source = _source(env)
    raw = (source.get("OPEN_METEO_BASE_URL") or "").strip()
    return raw or DEFAULT_BASE_URL


def get_api_key(env: Mapping[str, str] | None = None) -> str:
    """Return the commercial API key, or an empty string when unset."""

    source = _source(env)
    return (source.get("OPEN_METEO_API_KEY") or "").strip()


def get_timeout(env: Mapping[str, str] | None = None) -> float:
    """Return the transport timeout in seconds."""

    source = _source(env)
    raw = source.get("OPEN_METEO_TIMEOUT")
    if raw is None:
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT
    return value if value > 0 else DEFAULT_TIMEOUT


def get_log_level(env: Mapping[str, str] | None = None) -> str:
    source = _source(env)
    raw = (source.get("OPEN_METEO_LOG_LEVEL") or "").strip().upper()
    return raw or _DEFAULT_LOG_LEVEL


def load_config(env: Mapping[str, str] | None = None, **overrides: Any) -> ClientConfig:
    """Build a ``ClientConfig`` from the environment, then apply ``overrides``."""

    source = _source(env)
    values: Dict[str, Any] = {
        "base_url": get_base_url(source),
        "api_key": get_api_key(source),
        "timeout": get_timeout(source),
    }
    values.update(overrides)
    return ClientConfig(**values)


__all__ = [
    "ClientConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "get_api_key",
    "get_base_url",
    "get_log_level",
    "get_timeout",
    "load_config",
]
