"""Open-Meteo current-weather client.

``WeatherClient`` validates its configuration once, then serves any number of
``current(latitude, longitude)`` calls. Each call issues exactly one GET to
``<base_url>/v1/forecast`` and either returns a decoded ``CurrentWeather`` or
raises one of the errors in ``openmeteo.errors``. Nothing is retried or cached.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import replace
from decimal import Decimal
from numbers import Real
from typing import Any, Iterable, List, Optional, Protocol, Tuple, Type, TypeVar, runtime_checkable
from urllib.parse import urlsplit, urlunsplit

import pydantic
import requests

from openmeteo.cancel import CancelToken, run_cancellable
from openmeteo.config import ClientConfig
from openmeteo.errors import (
    APIError,
    CancelledError,
    ConfigError,
    DecodeError,
    ErrorBodyDecodeError,
    TransportError,
)
from openmeteo.http import Response
from openmeteo.models import MEASUREMENTS, Coordinate, CurrentWeather, ErrorResponse

logger = logging.getLogger(__name__)

FORECAST_PATH = "/v1/forecast"

_HEADERS = {"Accept": "application/json"}
_FIXED_PARAMS: Tuple[Tuple[str, str], ...] = (
    ("timeformat", "unixtime"),
    ("temperature_unit", "celsius"),
    ("wind_speed_unit", "kmh"),
    ("precipitation_unit", "mm"),
)
_UNSET: Any = object()

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


@runtime_checkable
class WeatherAPI(Protocol):
    def current(
        self,
        latitude: float,
        longitude: float,
        *,
        cancel: Optional[CancelToken] = None,
    ) -> CurrentWeather:
        ...


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------
def format_coordinate(value: float) -> str:
    """Render ``value`` as a plain decimal string (never scientific notation)."""

    return format(Decimal(repr(float(value))), "f")


def build_query(latitude: float, longitude: float, api_key: str = "") -> List[Tuple[str, str]]:
    """Return the ordered query parameters for one current-weather request."""

    params = [
        ("latitude", format_coordinate(latitude)),
        ("longitude", format_coordinate(longitude)),
    ]
    params.extend(("current", name) for name in MEASUREMENTS)
    params.extend(_FIXED_PARAMS)
    if api_key:
        params.append(("apikey", api_key))
    return params


def forecast_url(base_url: str) -> str:
    """Join ``base_url`` with the forecast path, dropping any query or fragment."""

    parts = urlsplit(base_url)
    path = parts.path.rstrip("/") + FORECAST_PATH
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


# ---------------------------------------------------------------------------
# Configuration checks
# ---------------------------------------------------------------------------
def _check_base_url(base_url: object) -> None:
    if not isinstance(base_url, str) or any(ch.isspace() for ch in base_url):
        raise ConfigError("invalid base URL")
    try:
        parts = urlsplit(base_url)
        host = parts.hostname
        parts.port  # raises ValueError for a malformed port
    except ValueError as exc:
        raise ConfigError("invalid base URL") from exc
    if not parts.scheme or not host:
        raise ConfigError("invalid base URL")


def _check_config(config: ClientConfig) -> None:
    _check_base_url(config.base_url)
    if config.http_client is None or not callable(getattr(config.http_client, "get", None)):
        raise ConfigError("missing HTTP client")
    timeout = config.timeout
    if isinstance(timeout, bool) or not isinstance(timeout, Real) or not (math.isfinite(timeout) and timeout > 0):
        raise ConfigError("invalid timeout")
    if not isinstance(config.api_key, str):
        raise ConfigError("invalid API key")


# ---------------------------------------------------------------------------
# Response handling
# ---------------------------------------------------------------------------
def _read_body(response: Response) -> bytes:
    try:
        return response.content or b""
    except requests.RequestException as exc:
        raise TransportError(f"failed to read response body: {exc}") from exc


def _raise_for_error_body(response: Response, body: bytes) -> None:
    status = response.status_code
    if not body.strip():
        raise APIError(f"unexpected status {status}", status_code=status)
    try:
        payload = ErrorResponse.model_validate(json.loads(body))
    except ValueError as exc:
        # pydantic.ValidationError and json.JSONDecodeError are both ValueErrors.
        raise ErrorBodyDecodeError(status, str(exc), body=body) from exc
    if payload.error and payload.reason:
        raise APIError(payload.reason, status_code=status)
    raise APIError(f"unexpected status {status}", status_code=status)


def parse_response(
    response: Response,
    model: Type[ModelT],
    expected_status: Iterable[int] = (200,),
    *,
    body: Optional[bytes] = None,
) -> ModelT:
    """Decode ``response`` into ``model`` or raise the matching client error.

    Pass ``body`` when it has already been read. The caller stays responsible
    for closing ``response``.
    """

    if body is None:
        body = _read_body(response)
    if response.status_code not in tuple(expected_status):
        _raise_for_error_body(response, body)

    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise DecodeError(f"invalid JSON body: {exc}", body=body) from exc
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise DecodeError(f"unexpected response shape: {exc}", body=body) from exc


def _release(fetched: Tuple[Response, bytes]) -> None:
    fetched[0].close()


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class WeatherClient:
    """Synchronous client for the Open-Meteo ``/v1/forecast`` current block.

    Instances hold only immutable configuration and may be shared between
    threads. Keyword overrides are applied on top of ``config`` (or the
    defaults); passing ``http_client=None`` explicitly is a ``ConfigError``.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        base_url: str = _UNSET,
        api_key: str = _UNSET,
        http_client: Any = _UNSET,
        timeout: float = _UNSET,
    ) -> None:
        overrides = {
            name: value
            for name, value in (
                ("base_url", base_url),
                ("api_key", api_key),
                ("http_client", http_client),
                ("timeout", timeout),
            )
            if value is not _UNSET
        }
        config = replace(config, **overrides) if config is not None else ClientConfig(**overrides)
        _check_config(config)
        self._config = config
        self._url = forecast_url(config.base_url)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def url(self) -> str:
        return self._url

    def current(
        self,
        latitude: float,
        longitude: float,
        *,
        cancel: Optional[CancelToken] = None,
    ) -> CurrentWeather:
        """Fetch the current conditions at ``(latitude, longitude)``.

        Raises ``ValidationError`` before any I/O for out-of-range
        coordinates. ``cancel`` aborts the wait with ``CancelledError``.
        """

        coordinate = Coordinate(latitude, longitude)
        params = build_query(coordinate.latitude, coordinate.longitude, self._config.api_key)
        logger.debug(
            "GET %s latitude=%s longitude=%s apikey=%s",
            self._url,
            params[0][1],
            params[1][1],
            "<redacted>" if self._config.api_key else "<none>",
        )

        response, body = self._send(params, cancel)
        try:
            if cancel is not None:
                cancel.raise_if_cancelled()
            weather = parse_response(response, CurrentWeather, body=body)
            if cancel is not None:
                cancel.raise_if_cancelled()
        except CancelledError:
            logger.info("Open-Meteo request cancelled after the response arrived")
            raise
        except APIError as exc:
            logger.warning("Open-Meteo returned status %s: %s", exc.status_code, exc.reason)
            raise
        except DecodeError as exc:
            logger.warning("Open-Meteo response could not be decoded: %s", exc)
            raise
        finally:
            response.close()

        logger.debug("Decoded current weather for %s, %s at %s", weather.latitude, weather.longitude, weather.current.time)
        return weather

    def close(self) -> None:
        """Close the configured transport, including one supplied by the caller."""

        close = getattr(self._config.http_client, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "WeatherClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"WeatherClient(url={self._url!r})"

    # -- internals ---------------------------------------------------------
    def _send(self, params: List[Tuple[str, str]], cancel: Optional[CancelToken]) -> Tuple[Response, bytes]:
        if cancel is None:
            return self._fetch(params, self._config.timeout)

        timeout = self._config.timeout
        remaining = cancel.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)
        try:
            return run_cancellable(lambda: self._fetch(params, timeout), cancel, on_abandon=_release)
        except CancelledError:
            logger.info("Open-Meteo request cancelled by caller")
            raise
        except TransportError as exc:
            if cancel.cancelled:
                logger.info("Open-Meteo request hit the caller's deadline")
                raise CancelledError("request cancelled") from exc
            raise

    def _fetch(self, params: List[Tuple[str, str]], timeout: float) -> Tuple[Response, bytes]:
        response = self._get(params, timeout)
        try:
            return response, _read_body(response)
        except BaseException:
            response.close()
            raise

    def _get(self, params: List[Tuple[str, str]], timeout: float) -> Response:
        try:
            return self._config.http_client.get(
                self._url,
                params=params,
                headers=_HEADERS,
                timeout=timeout,
                stream=True,
            )
        except requests.RequestException as exc:
            message = self._redact(str(exc))
            logger.warning("Open-Meteo request failed: %s", message)
            raise TransportError(message) from exc

    def _redact(self, text: str) -> str:
        api_key = self._config.api_key
        return text.replace(api_key, "<redacted>") if api_key else text


__all__ = [
    "FORECAST_PATH",
    "WeatherAPI",
    "WeatherClient",
    "build_query",
    "forecast_url",
    "format_coordinate",
    "parse_response",
]
