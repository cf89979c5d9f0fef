"""Prometheus gauges mirroring the decoded Open-Meteo snapshot."""

from __future__ import annotations

import math
from datetime import datetime

from prometheus_client import REGISTRY, CollectorRegistry, Gauge

from .weather.models import WeatherSnapshot
from .weather.variables import CURRENT_VARIABLES, DAILY_VARIABLES, WeatherVariable


def _as_gauge_value(value: float | None) -> float:
    # Explicit NaN instead of keeping the previous cycle's reading.
    return math.nan if value is None else value


class MetricSet:
    """Fixed collection of gauges, registered once and overwritten every cycle."""

    def __init__(
        self,
        namespace: str = "openmeteo",
        registry: CollectorRegistry = REGISTRY,
    ) -> None:
        self.namespace = namespace
        self.registry = registry
        self._gauges: dict[str, Gauge] = {}

        self.elevation = self._gauge("elevation", "Elevation of the forecast grid cell (meters).")
        self.current_freshness = self._gauge(
            "current_time_since_last_update",
            "Seconds between the current observation time and publication.",
        )
        self.daily_freshness = self._gauge(
            "daily_time_since_last_update",
            "Seconds between the start of today's daily summary and publication.",
        )
        self.current: dict[str, Gauge] = {
            variable.name: self._variable_gauge("current", variable)
            for variable in CURRENT_VARIABLES
        }
        self.daily: dict[str, Gauge] = {
            variable.name: self._variable_gauge("daily", variable)
            for variable in DAILY_VARIABLES
        }
        self.up = self._gauge("up", "1 if the last poll cycle succeeded, 0 if it failed.")
        self.last_success = self._gauge(
            "last_success_timestamp_seconds",
            "Unix time of the last successful publish.",
        )

    def _gauge(self, name: str, documentation: str) -> Gauge:
        gauge = Gauge(
            name,
            documentation,
            namespace=self.namespace,
            registry=self.registry,
        )
        self._gauges[f"{self.namespace}_{name}"] = gauge
        return gauge

    def _variable_gauge(self, group: str, variable: WeatherVariable) -> Gauge:
        return self._gauge(
            f"{group}_{variable.name}",
            f"{variable.description} ({variable.unit}).",
        )

    @property
    def names(self) -> list[str]:
        """Full metric names in registration order."""
        return list(self._gauges)

    def publish(self, snapshot: WeatherSnapshot, now: datetime) -> int:
        """Copy every published field of a snapshot into its gauge.

        Daily values come from index 0 only. Returns the number of gauges set.
        """
        written = 0
        self.elevation.set(snapshot.elevation)
        written += 1

        for name, gauge in self.current.items():
            gauge.set(_as_gauge_value(snapshot.current.value(name)))
            written += 1
        self.current_freshness.set((now - snapshot.current.time).total_seconds())
        written += 1

        for name, gauge in self.daily.items():
            gauge.set(_as_gauge_value(snapshot.daily.first(name)))
            written += 1
        self.daily_freshness.set((now - snapshot.daily.time[0]).total_seconds())
        written += 1

        self.up.set(1)
        self.last_success.set(now.timestamp())
        return written

    def mark_failure(self) -> None:
        """Record a failed cycle without touching the weather gauges."""
        self.up.set(0)

    def values(self) -> dict[str, float]:
        """Read the current value of every managed gauge, keyed by full name."""
        result: dict[str, float] = {}
        for name in self._gauges:
            value = self.registry.get_sample_value(name)
            if value is not None:
                result[name] = value
        return result
