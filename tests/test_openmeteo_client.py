"""Tests for the Open-Meteo HTTP client: URL construction and error mapping."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from openmeteo_exporter.exceptions import WeatherDecodeError, WeatherProviderError
from openmeteo_exporter.log_setup import JsonConsoleFormatter
from openmeteo_exporter.weather.openmeteo import OpenMeteoClient
from openmeteo_exporter.weather.variables import current_query_value, daily_query_value


def _load_payload() -> dict[str, Any]:
    source = Path(__file__).parent / "fixtures" / "openmeteo_forecast.json"
    return json.loads(source.read_text(encoding="utf-8"))


def _make_settings(**overrides: Any) -> Any:
    defaults = {
        "openmeteo_base_url": "https://api.open-meteo.com/v1/forecast",
        "openmeteo_api_key": None,
        "openmeteo_timezone": "America/Los_Angeles",
        "openmeteo_timeout_seconds": 5.0,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _make_client(
    handler: Callable[[httpx.Request], httpx.Response] | None = None,
    **settings_overrides: Any,
) -> OpenMeteoClient:
    transport = httpx.MockTransport(handler) if handler is not None else None
    return OpenMeteoClient(
        settings=_make_settings(**settings_overrides),
        logger=logging.getLogger("test_openmeteo_client"),
        transport=transport,
    )


def _fetch(handler: Callable[[httpx.Request], httpx.Response]) -> dict[str, Any]:
    async def scenario() -> dict[str, Any]:
        async with _make_client(handler) as client:
            return await client.fetch_payload(latitude=37.7749, longitude=-122.4194)

    return asyncio.run(scenario())


def _build_url(*, latitude: float, longitude: float, **settings_overrides: Any) -> httpx.URL:
    async def scenario() -> str:
        async with _make_client(**settings_overrides) as client:
            return client.build_url(latitude=latitude, longitude=longitude)

    return httpx.URL(asyncio.run(scenario()))


def test_build_url_requests_all_variables_for_one_day() -> None:
    url = _build_url(latitude=37.7749, longitude=-122.4194)

    assert url.host == "api.open-meteo.com"
    assert url.path == "/v1/forecast"
    assert url.params["latitude"] == "37.774900"
    assert url.params["longitude"] == "-122.419400"
    assert url.params["current"] == current_query_value()
    assert url.params["daily"] == daily_query_value()
    assert url.params["daily"].endswith("sunrise,sunset")
    assert url.params["timezone"] == "America/Los_Angeles"
    assert url.params["forecast_days"] == "1"
    assert "apikey" not in url.params


def test_build_url_includes_api_key_when_configured() -> None:
    url = _build_url(
        latitude=1.5,
        longitude=0.0,
        openmeteo_base_url="https://customer-api.open-meteo.com/v1/forecast",
        openmeteo_api_key="secret-key",
    )
    assert url.host == "customer-api.open-meteo.com"
    assert url.params["apikey"] == "secret-key"


def test_fetch_issues_bodyless_get_and_returns_payload() -> None:
    payload = _load_payload()
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=payload)

    assert _fetch(handler) == payload
    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].content == b""
    assert seen[0].url.params["forecast_days"] == "1"


def test_status_error_reports_open_meteo_reason() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"error": True, "reason": "Latitude must be in range of -90 to 90°."},
        )

    with pytest.raises(WeatherProviderError, match="status 400: Latitude must be in range"):
        _fetch(handler)


def test_server_error_with_plain_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(WeatherProviderError, match="status 502: Bad Gateway") as excinfo:
        _fetch(handler)
    assert not isinstance(excinfo.value, WeatherDecodeError)


def test_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(WeatherProviderError, match="ConnectError"):
        _fetch(handler)


def test_non_json_body_is_decode_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(WeatherDecodeError, match="non-JSON"):
        _fetch(handler)


def test_non_object_body_is_decode_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[1, 2, 3])

    with pytest.raises(WeatherDecodeError, match="list"):
        _fetch(handler)


def test_failed_request_is_logged_without_api_key(caplog: Any) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="Service Unavailable")

    async def scenario() -> None:
        async with _make_client(handler, openmeteo_api_key="secret-key") as client:
            await client.fetch_payload(latitude=1.0, longitude=2.0)

    with caplog.at_level(logging.DEBUG, logger="test_openmeteo_client"):
        with pytest.raises(WeatherProviderError):
            asyncio.run(scenario())

    request_log, failure_log = [
        record for record in caplog.records if record.name == "test_openmeteo_client"
    ]
    assert request_log.levelno == logging.DEBUG
    assert failure_log.levelno == logging.WARNING
    assert failure_log.getMessage() == "open-meteo returned HTTP 503"
    assert failure_log.status == 503

    event = json.loads(JsonConsoleFormatter().format(failure_log))
    assert event["status"] == 503
    assert "secret-key" not in event["url"]
    assert "latitude=1.000000" in event["url"]
