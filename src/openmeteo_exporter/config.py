"""Typed settings loader for the Open-Meteo exporter."""

from __future__ import annotations

import math
import re
from typing import Any, Literal

from pydantic import AnyHttpUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

ErrorPolicy = Literal["continue", "exit"]

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def _positive_finite(value: float) -> bool:
    return math.isfinite(value) and value > 0


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openmeteo_base_url: AnyHttpUrl = Field(
        default="https://api.open-meteo.com/v1/forecast",
        alias="OPENMETEO_BASE_URL",
    )
    openmeteo_api_key: str | None = Field(default=None, alias="OPENMETEO_API_KEY", repr=False)
    openmeteo_timezone: str = Field(default="America/Los_Angeles", alias="OPENMETEO_TIMEZONE")
    openmeteo_timeout_seconds: float = Field(default=15.0, alias="OPENMETEO_TIMEOUT_SECONDS")

    latitude: float = Field(default=0.0, alias="LATITUDE")
    longitude: float = Field(default=0.0, alias="LONGITUDE")
    poll_interval_seconds: float = Field(default=60.0, alias="POLL_INTERVAL_SECONDS")

    metrics_addr: str = Field(default="0.0.0.0", alias="METRICS_ADDR")
    metrics_port: int = Field(default=9812, alias="METRICS_PORT")
    metrics_namespace: str = Field(default="openmeteo", alias="METRICS_NAMESPACE")

    cycle_error_policy: ErrorPolicy = Field(default="continue", alias="CYCLE_ERROR_POLICY")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    @field_validator("openmeteo_api_key", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat an empty env-string API key as unset."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def validate_ranges(self) -> Settings:
        """Validate numeric ranges that pydantic types alone cannot express."""
        if not _positive_finite(self.openmeteo_timeout_seconds):
            raise ValueError("OPENMETEO_TIMEOUT_SECONDS must be a finite number > 0.")
        if not self.openmeteo_timezone.strip():
            raise ValueError("OPENMETEO_TIMEZONE must not be empty.")
        if not _positive_finite(self.poll_interval_seconds):
            raise ValueError("POLL_INTERVAL_SECONDS must be a finite number > 0.")
        if not (0 < self.metrics_port < 65536):
            raise ValueError("METRICS_PORT must be between 1 and 65535.")
        if not re.fullmatch(r"[a-zA-Z_][a-zA-Z0-9_]*", self.metrics_namespace):
            raise ValueError("METRICS_NAMESPACE must be a valid Prometheus name prefix.")
        # The (0, 0) check is deferred to require_location() so CLI flags can override.
        if not (-90 <= self.latitude <= 90):
            raise ValueError("LATITUDE must be between -90 and 90.")
        if not (-180 <= self.longitude <= 180):
            raise ValueError("LONGITUDE must be between -180 and 180.")
        return self

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "base_url": str(self.openmeteo_base_url),
            "api_key_configured": self.openmeteo_api_key is not None,
            "timezone": self.openmeteo_timezone,
            "timeout_seconds": self.openmeteo_timeout_seconds,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "poll_interval_seconds": self.poll_interval_seconds,
            "metrics_addr": self.metrics_addr,
            "metrics_port": self.metrics_port,
            "metrics_namespace": self.metrics_namespace,
            "cycle_error_policy": self.cycle_error_policy,
        }


def require_location(latitude: float, longitude: float) -> None:
    """Reject the unset (0, 0) location and out-of-range coordinates."""
    if latitude == 0 and longitude == 0:
        raise ConfigError("Please specify latitude and longitude (both are 0).")
    if not (-90 <= latitude <= 90):
        raise ConfigError(f"Invalid latitude {latitude}; expected between -90 and 90.")
    if not (-180 <= longitude <= 180):
        raise ConfigError(f"Invalid longitude {longitude}; expected between -180 and 180.")


def parse_duration(value: str) -> float:
    """Parse `90`, `30s`, `1m`, `1h30m` or `500ms` into seconds."""
    candidate = value.strip().lower()
    if not candidate:
        raise ConfigError("Duration must not be empty.")
    try:
        seconds = float(candidate)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART_RE.finditer(candidate):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos == 0 or pos != len(candidate):
            raise ConfigError(f"Invalid duration {value!r}; use e.g. 60, 30s, 1m, 1h30m.") from None
    if not _positive_finite(seconds):
        raise ConfigError(f"Duration {value!r} must be a finite number > 0.")
    return seconds


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc
