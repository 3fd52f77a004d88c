"""Typed request and response shapes for the Open-Meteo current-weather call."""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from openmeteo.errors import ValidationError

# Requested once per call, in this order, as repeated ``current`` parameters.
MEASUREMENTS: Tuple[str, ...] = (
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation",
    "rain",
    "showers",
    "snowfall",
    "weather_code",
    "cloud_cover",
    "pressure_msl",
    "surface_pressure",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
)

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)


def _as_degrees(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError("latitude/longitude out of range")
    return float(value)


@dataclass(frozen=True)
class Coordinate:
    """A (latitude, longitude) pair, range-checked on construction."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        latitude = _as_degrees(self.latitude)
        longitude = _as_degrees(self.longitude)
        # NaN compares false against both bounds, so it is rejected here too.
        if not LATITUDE_RANGE[0] <= latitude <= LATITUDE_RANGE[1]:
            raise ValidationError("latitude/longitude out of range")
        if not LONGITUDE_RANGE[0] <= longitude <= LONGITUDE_RANGE[1]:
            raise ValidationError("latitude/longitude out of range")
        object.__setattr__(self, "latitude", latitude)
        object.__setattr__(self, "longitude", longitude)


# =============================================================================
# API Response Models (Open-Meteo API Mappings)
# =============================================================================


class _ResponseModel(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True)


class CurrentUnits(_ResponseModel):
    """Unit label for every value in ``Current``."""

    time: str
    interval: str
    temperature_2m: str
    relative_humidity_2m: str
    apparent_temperature: str
    precipitation: str
    rain: str
    showers: str
    snowfall: str
    weather_code: str
    cloud_cover: str
    pressure_msl: str
    surface_pressure: str
    wind_speed_10m: str
    wind_direction_10m: str
    wind_gusts_10m: str


class Current(_ResponseModel):
    """Observed values. ``None`` marks a measurement the station did not report."""

    time: int
    interval: int
    temperature_2m: Optional[float]
    relative_humidity_2m: Optional[float]
    apparent_temperature: Optional[float]
    precipitation: Optional[float]
    rain: Optional[float]
    showers: Optional[float]
    snowfall: Optional[float]
    weather_code: Optional[int]
    cloud_cover: Optional[float]
    pressure_msl: Optional[float]
    surface_pressure: Optional[float]
    wind_speed_10m: Optional[float]
    wind_direction_10m: Optional[float]
    wind_gusts_10m: Optional[float]


class CurrentWeather(_ResponseModel):
    """Snapshot decoded from one successful ``/v1/forecast`` response."""

    latitude: float
    longitude: float
    elevation: float
    generation_time_ms: float = Field(alias="generationtime_ms")
    utc_offset_seconds: float
    timezone: str
    timezone_abbreviation: str
    current_units: CurrentUnits
    current: Current


class ErrorResponse(BaseModel):
    """Body the service sends alongside non-success statuses."""

    model_config = ConfigDict(frozen=True, strict=True)

    error: Optional[bool] = False
    reason: Optional[str] = None


__all__ = [
    "Coordinate",
    "Current",
    "CurrentUnits",
    "CurrentWeather",
    "ErrorResponse",
    "LATITUDE_RANGE",
    "LONGITUDE_RANGE",
    "MEASUREMENTS",
]
