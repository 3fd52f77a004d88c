"""Client for the Open-Meteo current-weather endpoint."""

from __future__ import annotations

import logging

from openmeteo._version import __version__
from openmeteo.cancel import CancelToken
from openmeteo.client import WeatherAPI, WeatherClient, build_query
from openmeteo.config import ClientConfig, load_config
from openmeteo.errors import (
    APIError,
    CancelledError,
    ConfigError,
    DecodeError,
    ErrorBodyDecodeError,
    TransportError,
    ValidationError,
    WeatherClientError,
)
from openmeteo.log import configure_logging
from openmeteo.models import MEASUREMENTS, Coordinate, Current, CurrentUnits, CurrentWeather

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "APIError",
    "CancelToken",
    "CancelledError",
    "ClientConfig",
    "ConfigError",
    "Coordinate",
    "Current",
    "CurrentUnits",
    "CurrentWeather",
    "DecodeError",
    "ErrorBodyDecodeError",
    "MEASUREMENTS",
    "TransportError",
    "ValidationError",
    "WeatherAPI",
    "WeatherClient",
    "WeatherClientError",
    "__version__",
    "build_query",
    "configure_logging",
    "load_config",
]
