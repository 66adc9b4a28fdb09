"""Structured JSON logging for the klime loggers.

The SDK logs to three named loggers:

    klime.client     enqueue, eviction, rejection, callbacks, lifecycle
    klime.delivery   attempts, retries, partial and permanent failures
    klime.transport  network-level request failures

Each one gets a JSON handler the first time the SDK asks for it and stops
propagating to the root logger. Levels set by the application are kept.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

CLIENT_LOGGER_NAME = "klime.client"
DELIVERY_LOGGER_NAME = "klime.delivery"
TRANSPORT_LOGGER_NAME = "klime.transport"
LOGGER_NAMES = (CLIENT_LOGGER_NAME, DELIVERY_LOGGER_NAME, TRANSPORT_LOGGER_NAME)

# Emitted first, in this order, when present on a record.
EVENT_FIELDS = ("message_id", "event_type", "batch_size", "attempt", "status_code")

_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, timestamped with the record's creation time."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, UTC)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({f: getattr(record, f) for f in EVENT_FIELDS if hasattr(record, f)})
        entry.update({k: v for k, v in vars(record).items() if k not in _RESERVED and k not in entry})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _has_json_handler(logger: logging.Logger) -> bool:
    return any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers)


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """Return ``name`` with a JSON handler installed.

    Args:
        name: Logger name, normally one of :data:`LOGGER_NAMES`.
        level: Level to apply. When omitted the logger starts at INFO the
            first time it is set up and is left alone afterwards.
    """
    logger = logging.getLogger(name)
    if not _has_json_handler(logger):
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False
        if level is None and logger.level == logging.NOTSET:
            level = logging.INFO
    if level is not None:
        logger.setLevel(level)
    return logger


def configure_logging(level: int = logging.INFO) -> None:
    """Set up every klime logger at ``level``."""
    for name in LOGGER_NAMES:
        get_logger(name, level)
