"""Provider-agnostic weather source interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .models import WeatherSnapshot


class WeatherSource(ABC):
    """Base contract for sources polled by the exporter loop."""

    @abstractmethod
    async def fetch_payload(self, *, latitude: float, longitude: float) -> dict[str, Any]:
        """Fetch one raw forecast payload."""

    @abstractmethod
    def decode_snapshot(self, payload: dict[str, Any]) -> WeatherSnapshot:
        """Decode a raw payload into a typed snapshot."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release source resources."""
