"""Typed models for decoded Open-Meteo forecast responses."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator


def _parse_timestamp(value: Any) -> Any:
    """Parse Open-Meteo ISO-8601 strings; offsets are optional."""
    if not isinstance(value, str):
        return value
    candidate = value.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        # Leave it for pydantic to reject with a field-level error.
        return value


def _response_zone(name: str | None, utc_offset_seconds: int) -> tzinfo:
    fixed = timezone(timedelta(seconds=utc_offset_seconds))
    if not name:
        return fixed
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return fixed


def _localize(value: datetime, tz: tzinfo) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=tz)


class CurrentConditions(BaseModel):
    """Instantaneous conditions for the requested location."""

    time: datetime
    temperature_2m: float | None
    relative_humidity_2m: float | None
    apparent_temperature: float | None
    is_day: float | None
    precipitation: float | None
    rain: float | None
    showers: float | None
    snowfall: float | None
    weather_code: float | None
    cloud_cover: float | None
    pressure_msl: float | None
    surface_pressure: float | None
    wind_speed_10m: float | None
    wind_direction_10m: float | None
    wind_gusts_10m: float | None

    @field_validator("time", mode="before")
    @classmethod
    def parse_time(cls, value: Any) -> Any:
        return _parse_timestamp(value)

    def value(self, name: str) -> float | None:
        """Return the scalar value of a current variable by name."""
        return getattr(self, name)


class DailySummary(BaseModel):
    """Per-day aggregates; index i of every list refers to the same day."""

    time: list[datetime]
    sunrise: list[datetime]
    sunset: list[datetime]
    weather_code: list[float | None]
    temperature_2m_max: list[float | None]
    temperature_2m_min: list[float | None]
    apparent_temperature_max: list[float | None]
    apparent_temperature_min: list[float | None]
    daylight_duration: list[float | None]
    sunshine_duration: list[float | None]
    uv_index_max: list[float | None]
    uv_index_clear_sky_max: list[float | None]
    precipitation_sum: list[float | None]
    rain_sum: list[float | None]
    showers_sum: list[float | None]
    snowfall_sum: list[float | None]
    precipitation_hours: list[float | None]
    precipitation_probability_max: list[float | None]
    wind_speed_10m_max: list[float | None]
    wind_gusts_10m_max: list[float | None]
    wind_direction_10m_dominant: list[float | None]
    shortwave_radiation_sum: list[float | None]
    et0_fao_evapotranspiration: list[float | None]

    @field_validator("time", "sunrise", "sunset", mode="before")
    @classmethod
    def parse_times(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_parse_timestamp(item) for item in value]
        return value

    @model_validator(mode="after")
    def validate_alignment(self) -> DailySummary:
        """Require non-empty, equal-length, index-aligned sequences."""
        lengths = {name: len(getattr(self, name)) for name in type(self).model_fields}
        expected = lengths["time"]
        if expected == 0:
            raise ValueError("daily.time is empty; at least one day is required.")
        mismatched = sorted(name for name, length in lengths.items() if length != expected)
        if mismatched:
            raise ValueError(
                f"daily sequences must all have {expected} entries; "
                f"mismatched: {', '.join(mismatched)}"
            )
        return self

    @property
    def days(self) -> int:
        return len(self.time)

    def first(self, name: str) -> float | None:
        """Return today's (index 0) value of a daily variable."""
        return getattr(self, name)[0]


class WeatherSnapshot(BaseModel):
    """Decoded Open-Meteo forecast response."""

    latitude: float | None = None
    longitude: float | None = None
    elevation: float
    timezone: str | None = None
    utc_offset_seconds: int = Field(default=0, gt=-86400, lt=86400)
    generationtime_ms: float | None = None
    current: CurrentConditions
    daily: DailySummary

    @model_validator(mode="after")
    def localize_timestamps(self) -> WeatherSnapshot:
        """Attach the response's zone to naive local timestamps.

        `utc_offset_seconds` is the offset at request time, so on DST transition
        days it is wrong for some of the daily entries. The named zone is used
        when it resolves; the fixed offset otherwise.
        """
        tz = _response_zone(self.timezone, self.utc_offset_seconds)
        self.current.time = _localize(self.current.time, tz)
        self.daily.time = [_localize(item, tz) for item in self.daily.time]
        self.daily.sunrise = [_localize(item, tz) for item in self.daily.sunrise]
        self.daily.sunset = [_localize(item, tz) for item in self.daily.sunset]
        return self
