import json
import threading
import time

import pytest
import requests

import openmeteo.cancel as cancel
from openmeteo.client import WeatherClient
from openmeteo.errors import CancelledError, TransportError

_BODY = json.dumps(
    {
        "latitude": 54.62,
        "longitude": 9.92,
        "generationtime_ms": 0.05,
        "utc_offset_seconds": 7200,
        "timezone": "Europe/Berlin",
        "timezone_abbreviation": "CEST",
        "elevation": 12.0,
        "current_units": {name: "unit" for name in (
            "time", "interval", "temperature_2m", "relative_humidity_2m", "apparent_temperature",
            "precipitation", "rain", "showers", "snowfall", "weather_code", "cloud_cover",
            "pressure_msl", "surface_pressure", "wind_speed_10m", "wind_direction_10m", "wind_gusts_10m",
        )},
        "current": {
            "time": 1760700600, "interval": 900, "temperature_2m": 10.0, "relative_humidity_2m": 90,
            "apparent_temperature": 8.5, "precipitation": 0.2, "rain": 0.2, "showers": 0.0,
            "snowfall": 0.0, "weather_code": 61, "cloud_cover": 100, "pressure_msl": 1009.0,
            "surface_pressure": 1007.6, "wind_speed_10m": 18.0, "wind_direction_10m": 270,
            "wind_gusts_10m": 35.3,
        },
    }
).encode("utf-8")


class TrackedResponse:
    def __init__(self) -> None:
        self.status_code = 200
        self.closed = threading.Event()

    @property
    def content(self) -> bytes:
        return _BODY

    def json(self):
        return json.loads(_BODY)

    def close(self) -> None:
        self.closed.set()


class BlockingTransport:
    """Holds every request until ``release`` is set."""

    def __init__(self) -> None:
        self.release = threading.Event()
        self.started = threading.Event()
        self.response = TrackedResponse()
        self.calls = 0
        self.timeouts = []

    def get(self, url, *, params, headers, timeout, stream):
        self.calls += 1
        self.timeouts.append(timeout)
        self.started.set()
        self.release.wait(5)
        return self.response


@pytest.fixture
def transport():
    blocking = BlockingTransport()
    yield blocking
    blocking.release.set()


def test_token_starts_uncancelled_without_deadline():
    token = cancel.CancelToken()

    assert token.cancelled is False
    assert token.remaining() is None
    assert token.wait(0.01) is False


def test_cancel_is_visible_to_waiters():
    token = cancel.CancelToken()
    threading.Timer(0.02, token.cancel).start()

    assert token.wait(2.0) is True
    assert token.cancelled is True
    with pytest.raises(CancelledError):
        token.raise_if_cancelled()


def test_deadline_fires_on_its_own():
    token = cancel.CancelToken(timeout=0.02)

    assert token.remaining() <= 0.02
    time.sleep(0.05)
    assert token.cancelled is True
    assert token.remaining() == 0.0
    assert token.wait(0) is True


def test_run_cancellable_returns_result_and_propagates_errors():
    token = cancel.CancelToken()

    assert cancel.run_cancellable(lambda: 42, token, on_abandon=lambda _: None) == 42

    def boom():
        raise KeyError("boom")

    with pytest.raises(KeyError):
        cancel.run_cancellable(boom, token, on_abandon=lambda _: None)


def test_pre_cancelled_token_issues_no_request(transport):
    token = cancel.CancelToken()
    token.cancel()
    weather = WeatherClient(http_client=transport)

    with pytest.raises(CancelledError):
        weather.current(54.6167, 9.9167, cancel=token)

    assert transport.calls == 0


def test_cancel_in_flight_returns_promptly_and_releases_response(transport):
    token = cancel.CancelToken()
    weather = WeatherClient(http_client=transport)
    threading.Thread(target=lambda: (transport.started.wait(2), token.cancel())).start()

    started = time.monotonic()
    with pytest.raises(CancelledError):
        weather.current(54.6167, 9.9167, cancel=token)
    elapsed = time.monotonic() - started

    assert elapsed < 2.0
    assert not transport.response.closed.is_set()
    transport.release.set()
    assert transport.response.closed.wait(2.0)


def test_deadline_cancels_in_flight_request(transport):
    weather = WeatherClient(http_client=transport)

    with pytest.raises(CancelledError):
        weather.current(54.6167, 9.9167, cancel=cancel.CancelToken(timeout=0.05))

    transport.release.set()
    assert transport.response.closed.wait(2.0)


def test_deadline_shortens_transport_timeout(transport):
    transport.release.set()
    weather = WeatherClient(http_client=transport, timeout=30)

    result = weather.current(54.6167, 9.9167, cancel=cancel.CancelToken(timeout=5))

    assert result.current.weather_code == 61
    assert transport.timeouts[0] <= 5
    assert transport.response.closed.is_set()


def test_transport_timeout_after_deadline_is_reported_as_cancelled():
    token = cancel.CancelToken()

    class TimingOutTransport:
        def get(self, url, **kwargs):
            token.cancel()
            raise requests.ReadTimeout("read timed out")

    weather = WeatherClient(http_client=TimingOutTransport())

    with pytest.raises(CancelledError):
        weather.current(54.6167, 9.9167, cancel=token)


class SlowBodyResponse(TrackedResponse):
    """Headers arrive at once; the body is held until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()
        self.reads = 0

    @property
    def content(self) -> bytes:
        self.reads += 1
        self.release.wait(5)
        return _BODY


class SlowBodyTransport:
    def __init__(self) -> None:
        self.response = SlowBodyResponse()

    def get(self, url, **kwargs):
        return self.response


def test_deadline_during_body_download_cancels_and_releases_response():
    transport = SlowBodyTransport()
    weather = WeatherClient(http_client=transport)

    started = time.monotonic()
    try:
        with pytest.raises(CancelledError):
            weather.current(52.52, 13.41, cancel=cancel.CancelToken(timeout=0.1))
        elapsed = time.monotonic() - started
    finally:
        transport.response.release.set()

    assert elapsed < 1.0
    assert transport.response.closed.wait(2.0)


def test_cancel_during_body_download_returns_no_weather():
    transport = SlowBodyTransport()
    token = cancel.CancelToken()
    weather = WeatherClient(http_client=transport)
    threading.Timer(0.05, token.cancel).start()

    try:
        with pytest.raises(CancelledError):
            weather.current(52.52, 13.41, cancel=token)
    finally:
        transport.response.release.set()

    assert transport.response.closed.wait(2.0)
    assert transport.response.reads == 1


def test_body_read_failure_closes_response():
    class BrokenBodyResponse(TrackedResponse):
        @property
        def content(self) -> bytes:
            raise requests.exceptions.ChunkedEncodingError("connection broken")

    response = BrokenBodyResponse()

    class BrokenBodyTransport:
        def get(self, url, **kwargs):
            return response

    weather = WeatherClient(http_client=BrokenBodyTransport())

    with pytest.raises(TransportError, match="failed to read response body"):
        weather.current(52.52, 13.41, cancel=cancel.CancelToken())

    assert response.closed.is_set()
