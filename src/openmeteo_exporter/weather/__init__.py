"""Open-Meteo weather source: variable table, response models and HTTP client."""

from .base import WeatherSource
from .models import CurrentConditions, DailySummary, WeatherSnapshot
from .openmeteo import OpenMeteoClient
from .variables import CURRENT_VARIABLES, DAILY_VARIABLES, WeatherVariable

__all__ = [
    "CURRENT_VARIABLES",
    "CurrentConditions",
    "DAILY_VARIABLES",
    "DailySummary",
    "OpenMeteoClient",
    "WeatherSnapshot",
    "WeatherSource",
    "WeatherVariable",
]
