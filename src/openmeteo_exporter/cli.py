"""Exporter CLI: validate location, serve /metrics, and poll Open-Meteo."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence

from prometheus_client import REGISTRY, start_http_server
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings, parse_duration, require_location
from .exceptions import ConfigError, PollerAbortedError
from .log_setup import setup_logger
from .metrics import MetricSet
from .poller import Poller
from .redaction import sanitize_text
from .weather.openmeteo import OpenMeteoClient


def _duration_arg(value: str) -> float:
    try:
        return parse_duration(value)
    except ConfigError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse exporter CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Export Open-Meteo current and daily weather as Prometheus gauges."
    )
    parser.add_argument(
        "--poll-interval",
        type=_duration_arg,
        default=None,
        help="Poll frequency, e.g. 60, 30s, 1m, 1h30m (default: POLL_INTERVAL_SECONDS or 1m).",
    )
    parser.add_argument("--latitude", type=float, default=None, help="Latitude.")
    parser.add_argument("--longitude", type=float, default=None, help="Longitude.")
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Port for the Prometheus scrape endpoint.",
    )
    parser.add_argument(
        "--error-policy",
        choices=["continue", "exit"],
        default=None,
        help="What to do when a poll cycle fails.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle without serving metrics, then exit.",
    )
    return parser.parse_args(argv)


def _print_startup_summary(
    console: Console,
    settings: Settings,
    poller: Poller,
    metrics: MetricSet,
    url: str,
) -> None:
    table = Table(title="Open-Meteo Exporter")
    table.add_column("Setting")
    table.add_column("Value", overflow="fold")
    table.add_row("Location", f"{poller.latitude:.4f}, {poller.longitude:.4f}")
    table.add_row("Poll interval", f"{poller.poll_interval_seconds:g}s")
    table.add_row("Error policy", poller.error_policy)
    table.add_row("Timezone", settings.openmeteo_timezone)
    table.add_row("Metrics", f"{settings.metrics_addr}:{settings.metrics_port}")
    table.add_row("Gauges", str(len(metrics.names)))
    table.add_row("Request URL", sanitize_text(url))
    console.print(table)


def _request_stop(stop: asyncio.Event, logger: logging.Logger, signum: int) -> None:
    logger.info("Received %s, shutting down", signal.Signals(signum).name)
    stop.set()


async def _serve(
    args: argparse.Namespace,
    settings: Settings,
    metrics: MetricSet,
    logger: logging.Logger,
    console: Console,
) -> int:
    latitude = args.latitude if args.latitude is not None else settings.latitude
    longitude = args.longitude if args.longitude is not None else settings.longitude
    interval = (
        args.poll_interval if args.poll_interval is not None else settings.poll_interval_seconds
    )
    async with OpenMeteoClient(settings=settings, logger=logger) as client:
        poller = Poller(
            source=client,
            metrics=metrics,
            latitude=latitude,
            longitude=longitude,
            poll_interval_seconds=interval,
            error_policy=args.error_policy or settings.cycle_error_policy,
            logger=logger,
        )
        url = client.build_url(latitude=latitude, longitude=longitude)
        _print_startup_summary(console, settings, poller, metrics, url)

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        signals = (signal.SIGINT, signal.SIGTERM)
        for signum in signals:
            loop.add_signal_handler(signum, _request_stop, stop, logger, signum)
        try:
            if args.once:
                result = await poller.run_once(stop)
                # An interrupted --once run is a clean shutdown.
                return 5 if result is not None and not result.ok else 0
            await poller.run(stop)
        finally:
            for signum in signals:
                loop.remove_signal_handler(signum)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the exporter until SIGINT/SIGTERM."""
    args = parse_args(argv)
    logger = setup_logger()
    console = Console()

    try:
        settings = load_settings()
        logger = setup_logger(settings.log_level)
        require_location(
            args.latitude if args.latitude is not None else settings.latitude,
            args.longitude if args.longitude is not None else settings.longitude,
        )
        if args.metrics_port is not None:
            if not (0 < args.metrics_port < 65536):
                raise ConfigError("--metrics-port must be between 1 and 65535.")
            settings.metrics_port = args.metrics_port
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2

    logger.info("Starting exporter: %s", settings.safe_summary())

    metrics = MetricSet(namespace=settings.metrics_namespace, registry=REGISTRY)
    if not args.once:
        try:
            start_http_server(settings.metrics_port, addr=settings.metrics_addr, registry=REGISTRY)
        except OSError as exc:
            logger.error(
                "Failed to serve metrics on %s:%s: %s",
                settings.metrics_addr,
                settings.metrics_port,
                exc,
            )
            return 3

    try:
        return asyncio.run(_serve(args, settings, metrics, logger, console))
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2
    except PollerAbortedError as exc:
        logger.error("Exporter stopped: %s", exc)
        return 5
    except Exception as exc:  # pragma: no cover - last-resort catch for the CLI
        logger.exception("Unexpected failure: %s", exc)
        return 99


if __name__ == "__main__":
    sys.exit(main())
