"""Prometheus exporter for Open-Meteo current and daily forecast data."""

__version__ = "0.1.0"
