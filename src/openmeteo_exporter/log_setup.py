"""JSON console logging for the exporter process."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import IO, Any

from .redaction import sanitize_text

LOGGER_NAME = "openmeteo_exporter"

# Fields the exporter attaches through `extra=`; anything else on the record is ignored.
EVENT_FIELDS = (
    "poller_state",
    "cycles_completed",
    "cycles_failed",
    "published",
    "latitude",
    "longitude",
    "url",
    "status",
)


class JsonConsoleFormatter(logging.Formatter):
    """One JSON object per line, with credentials scrubbed from text fields."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage()),
        }
        for field in EVENT_FIELDS:
            if field not in record.__dict__:
                continue
            value = record.__dict__[field]
            event[field] = sanitize_text(value) if isinstance(value, str) else value
        if record.exc_info:
            event["exception"] = sanitize_text(self.formatException(record.exc_info))
        return json.dumps(event, default=str)


def setup_logger(
    level: str | int = logging.INFO,
    *,
    name: str = LOGGER_NAME,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Configure the exporter logger; repeated calls only update the level.

    `level` is normally `Settings.log_level`.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonConsoleFormatter())
    logger.addHandler(handler)
    return logger
