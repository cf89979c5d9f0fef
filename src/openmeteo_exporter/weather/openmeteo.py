"""Open-Meteo (api.open-meteo.com) forecast client."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..exceptions import WeatherDecodeError, WeatherProviderError
from ..redaction import sanitize_text
from .base import WeatherSource
from .models import WeatherSnapshot
from .variables import current_query_value, daily_query_value

# Exactly one day of daily data is requested; only today is published.
FORECAST_DAYS = 1


class OpenMeteoClient(WeatherSource):
    """Fetches and decodes current and daily forecast data from Open-Meteo."""

    provider_name = "open-meteo"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._client = httpx.AsyncClient(
            timeout=settings.openmeteo_timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> OpenMeteoClient:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_url(self, *, latitude: float, longitude: float) -> str:
        """Return the full forecast URL for one location."""
        params: dict[str, str] = {
            "latitude": f"{latitude:.6f}",
            "longitude": f"{longitude:.6f}",
            "current": current_query_value(),
            "daily": daily_query_value(),
            "timezone": self.settings.openmeteo_timezone,
            "forecast_days": str(FORECAST_DAYS),
        }
        if self.settings.openmeteo_api_key:
            params["apikey"] = self.settings.openmeteo_api_key
        return str(httpx.URL(str(self.settings.openmeteo_base_url), params=params))

    async def fetch_payload(self, *, latitude: float, longitude: float) -> dict[str, Any]:
        """Issue one GET and return the decoded JSON object."""
        url = self.build_url(latitude=latitude, longitude=longitude)
        self.logger.debug("Requesting %s forecast", self.provider_name, extra={"url": url})
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            reason = self._error_reason(exc.response)
            self.logger.warning(
                "%s returned HTTP %d",
                self.provider_name,
                status,
                extra={"url": url, "status": status},
            )
            raise WeatherProviderError(
                f"Open-Meteo request failed with status {status}: {reason}"
            ) from exc
        except httpx.HTTPError as exc:
            self.logger.warning(
                "%s request failed (%s)",
                self.provider_name,
                type(exc).__name__,
                extra={"url": url},
            )
            raise WeatherProviderError(
                f"Open-Meteo request failed ({type(exc).__name__}): {sanitize_text(str(exc))}"
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise WeatherDecodeError("Open-Meteo returned a non-JSON response.") from exc

        if not isinstance(payload, dict):
            raise WeatherDecodeError(
                f"Open-Meteo returned unexpected payload type {type(payload).__name__}."
            )
        return payload

    def decode_snapshot(self, payload: dict[str, Any]) -> WeatherSnapshot:
        """Validate a raw payload into a WeatherSnapshot."""
        try:
            return WeatherSnapshot.model_validate(payload)
        except ValidationError as exc:
            raise WeatherDecodeError(
                f"Open-Meteo payload failed validation ({exc.error_count()} errors): "
                f"{self._summarize_errors(exc)}"
            ) from exc

    @staticmethod
    def _error_reason(response: httpx.Response) -> str:
        # Open-Meteo reports client errors as {"error": true, "reason": "..."}.
        try:
            body = response.json()
        except ValueError:
            return sanitize_text(response.text[:300])
        if isinstance(body, dict) and isinstance(body.get("reason"), str):
            return sanitize_text(body["reason"])
        return sanitize_text(response.text[:300])

    @staticmethod
    def _summarize_errors(exc: ValidationError, limit: int = 5) -> str:
        parts = []
        for error in exc.errors()[:limit]:
            location = ".".join(str(item) for item in error["loc"]) or "<root>"
            parts.append(f"{location}: {error['msg']}")
        return "; ".join(parts)
