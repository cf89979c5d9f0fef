"""Poll-fetch-decode-publish loop."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel

from .config import ErrorPolicy, require_location
from .exceptions import ConfigError, PollerAbortedError, WeatherProviderError
from .metrics import MetricSet
from .weather.base import WeatherSource

PollerState = Literal["idle", "fetching", "decoding", "publishing", "waiting", "cancelled"]


class CycleResult(BaseModel):
    """Outcome of one fetch-decode-publish cycle."""

    ok: bool
    started_at: datetime
    finished_at: datetime
    published: int = 0
    error: str | None = None


class Poller:
    """Drives one cycle per interval until the stop event is set."""

    def __init__(
        self,
        *,
        source: WeatherSource,
        metrics: MetricSet,
        latitude: float,
        longitude: float,
        poll_interval_seconds: float,
        logger: logging.Logger,
        error_policy: ErrorPolicy = "continue",
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        require_location(latitude, longitude)
        if not math.isfinite(poll_interval_seconds) or poll_interval_seconds <= 0:
            raise ConfigError("Poll interval must be a finite number > 0 seconds.")
        if error_policy not in ("continue", "exit"):
            raise ConfigError(f"Unknown cycle error policy {error_policy!r}.")
        self.source = source
        self.metrics = metrics
        self.latitude = latitude
        self.longitude = longitude
        self.poll_interval_seconds = poll_interval_seconds
        self.logger = logger
        self.error_policy = error_policy
        self._now_provider = now_provider or (lambda: datetime.now(UTC))
        self.state: PollerState = "idle"
        self.cycles_completed = 0
        self.cycles_failed = 0

    async def run(self, stop: asyncio.Event) -> None:
        """Run cycles until `stop` is set.

        Raises PollerAbortedError when a cycle fails under the `exit` policy.
        """
        self.logger.info(
            "Polling (%s, %s) every %ss, error policy=%s",
            self.latitude,
            self.longitude,
            self.poll_interval_seconds,
            self.error_policy,
            extra={"latitude": self.latitude, "longitude": self.longitude},
        )
        try:
            while not stop.is_set():
                result = await self._run_until_stopped(stop)
                if result is None:
                    break
                if not result.ok and self.error_policy == "exit":
                    raise PollerAbortedError(f"Poll cycle failed: {result.error}")
                if await self._wait(stop):
                    break
        finally:
            self.state = "cancelled"
        self.logger.info(
            "Poller stopped after %d cycles (%d failed)",
            self.cycles_completed,
            self.cycles_failed,
            extra=self._log_fields(),
        )

    async def run_cycle(self) -> CycleResult:
        """Fetch, decode and publish once; failures are captured in the result."""
        started_at = self._now_provider()
        try:
            self.state = "fetching"
            payload = await self.source.fetch_payload(
                latitude=self.latitude, longitude=self.longitude
            )
            self.state = "decoding"
            snapshot = self.source.decode_snapshot(payload)
        except WeatherProviderError as exc:
            self.cycles_failed += 1
            self.metrics.mark_failure()
            self.logger.warning("Poll cycle failed: %s", exc, extra=self._log_fields())
            return CycleResult(
                ok=False,
                started_at=started_at,
                finished_at=self._now_provider(),
                error=str(exc),
            )

        self.state = "publishing"
        now = self._now_provider()
        published = self.metrics.publish(snapshot, now)
        self.cycles_completed += 1
        self.logger.debug(
            "Published %d gauges (current time %s, %d daily entries)",
            published,
            snapshot.current.time.isoformat(),
            snapshot.daily.days,
            extra={**self._log_fields(), "published": published},
        )
        return CycleResult(ok=True, started_at=started_at, finished_at=now, published=published)

    async def run_once(self, stop: asyncio.Event) -> CycleResult | None:
        """Run a single cycle; None when `stop` fired before it finished."""
        result = await self._run_until_stopped(stop)
        if result is None:
            self.state = "cancelled"
        return result

    async def _run_until_stopped(self, stop: asyncio.Event) -> CycleResult | None:
        """Run one cycle, cancelling it if `stop` fires first."""
        cycle = asyncio.ensure_future(self.run_cycle())
        stopped = asyncio.ensure_future(stop.wait())
        try:
            done, _ = await asyncio.wait({cycle, stopped}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            cycle.cancel()
            raise
        finally:
            stopped.cancel()
        if cycle in done:
            return cycle.result()

        self.logger.info("Stop requested during an in-flight cycle; cancelling it")
        cycle.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await cycle
        return None

    def _log_fields(self) -> dict[str, Any]:
        return {
            "poller_state": self.state,
            "cycles_completed": self.cycles_completed,
            "cycles_failed": self.cycles_failed,
        }

    async def _wait(self, stop: asyncio.Event) -> bool:
        """Sleep for one interval; True when `stop` fired first."""
        self.state = "waiting"
        try:
            await asyncio.wait_for(stop.wait(), timeout=self.poll_interval_seconds)
        except TimeoutError:
            return False
        return True
