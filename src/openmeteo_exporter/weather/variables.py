"""Static table of the Open-Meteo variables requested, decoded and published."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class WeatherVariable:
    """One numeric Open-Meteo variable and the unit it is reported in."""

    name: str
    unit: str
    description: str


CURRENT_VARIABLES: tuple[WeatherVariable, ...] = (
    WeatherVariable("temperature_2m", "celsius", "Air temperature at 2 meters"),
    WeatherVariable("relative_humidity_2m", "percent", "Relative humidity at 2 meters"),
    WeatherVariable("apparent_temperature", "celsius", "Perceived feels-like temperature"),
    WeatherVariable("is_day", "flag", "1 if the current time step has daylight, 0 at night"),
    WeatherVariable("precipitation", "mm", "Total precipitation of the preceding interval"),
    WeatherVariable("rain", "mm", "Rain from large scale systems of the preceding interval"),
    WeatherVariable("showers", "mm", "Convective showers of the preceding interval"),
    WeatherVariable("snowfall", "cm", "Snowfall of the preceding interval"),
    WeatherVariable("weather_code", "wmo_code", "WMO weather interpretation code"),
    WeatherVariable("cloud_cover", "percent", "Total cloud cover"),
    WeatherVariable("pressure_msl", "hPa", "Air pressure reduced to mean sea level"),
    WeatherVariable("surface_pressure", "hPa", "Air pressure at the surface"),
    WeatherVariable("wind_speed_10m", "km/h", "Wind speed at 10 meters"),
    WeatherVariable("wind_direction_10m", "degrees", "Wind direction at 10 meters"),
    WeatherVariable("wind_gusts_10m", "km/h", "Wind gusts at 10 meters"),
)

DAILY_VARIABLES: tuple[WeatherVariable, ...] = (
    WeatherVariable("weather_code", "wmo_code", "Most severe WMO weather code of the day"),
    WeatherVariable("temperature_2m_max", "celsius", "Maximum daily air temperature at 2 meters"),
    WeatherVariable("temperature_2m_min", "celsius", "Minimum daily air temperature at 2 meters"),
    WeatherVariable("apparent_temperature_max", "celsius", "Maximum daily apparent temperature"),
    WeatherVariable("apparent_temperature_min", "celsius", "Minimum daily apparent temperature"),
    WeatherVariable("daylight_duration", "seconds", "Number of seconds of daylight"),
    WeatherVariable("sunshine_duration", "seconds", "Number of seconds of sunshine"),
    WeatherVariable("uv_index_max", "index", "Daily maximum UV index"),
    WeatherVariable("uv_index_clear_sky_max", "index", "Daily maximum UV index under clear sky"),
    WeatherVariable("precipitation_sum", "mm", "Sum of daily precipitation"),
    WeatherVariable("rain_sum", "mm", "Sum of daily rain"),
    WeatherVariable("showers_sum", "mm", "Sum of daily showers"),
    WeatherVariable("snowfall_sum", "cm", "Sum of daily snowfall"),
    WeatherVariable("precipitation_hours", "hours", "Number of hours with rain"),
    WeatherVariable(
        "precipitation_probability_max", "percent", "Maximum probability of precipitation"
    ),
    WeatherVariable("wind_speed_10m_max", "km/h", "Maximum wind speed at 10 meters"),
    WeatherVariable("wind_gusts_10m_max", "km/h", "Maximum wind gusts at 10 meters"),
    WeatherVariable("wind_direction_10m_dominant", "degrees", "Dominant wind direction"),
    WeatherVariable("shortwave_radiation_sum", "MJ/m2", "Sum of solar radiation"),
    WeatherVariable(
        "et0_fao_evapotranspiration", "mm", "FAO-56 reference evapotranspiration"
    ),
)

# Requested and decoded, but timestamps have no published gauge.
DAILY_TIMESTAMP_VARIABLES: tuple[str, ...] = ("sunrise", "sunset")


def current_query_value() -> str:
    """Comma-joined `current=` query parameter value."""
    return ",".join(variable.name for variable in CURRENT_VARIABLES)


def daily_query_value() -> str:
    """Comma-joined `daily=` query parameter value."""
    names = [variable.name for variable in DAILY_VARIABLES]
    names.extend(DAILY_TIMESTAMP_VARIABLES)
    return ",".join(names)
