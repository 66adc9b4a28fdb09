"""Core components of the Klime SDK.

Types:
    Event: Immutable analytics event with generated message id and timestamp.
    EventType: track, identify or group.
    EventContext / LibraryInfo: Metadata attached to events.
    BatchResponse: Decoded collector response for a delivered batch.
    ClientConfig: Validated, immutable client settings.
    Client: Event queue and delivery worker.
    ClientStats: Delivery counters from a Client.

Delivery:
    RetryScheduler: Bounded retry with exponential backoff for one batch.
    SendResult: Terminal result of delivering one batch.
    SendError: Delivery failed (permanent error, retries exhausted, shutdown).
    ConfigurationError: Invalid or missing client options.

Constants:
    MAX_EVENT_SIZE_BYTES, MAX_BATCH_SIZE_BYTES, MAX_BATCH_SIZE: Collector limits.
"""

from klime.core.config import (
    MAX_BATCH_SIZE,
    MAX_BATCH_SIZE_BYTES,
    MAX_EVENT_SIZE_BYTES,
    ClientConfig,
    ConfigurationError,
)
from klime.core.event import Event, EventContext, EventType, LibraryInfo
from klime.core.response import BatchEventError, BatchResponse
from klime.core.retry import RetryScheduler, SendError, SendResult
from klime.core.client import Client, ClientStats

__all__ = [
    "Event",
    "EventType",
    "EventContext",
    "LibraryInfo",
    "BatchResponse",
    "BatchEventError",
    "ClientConfig",
    "Client",
    "ClientStats",
    "RetryScheduler",
    "SendResult",
    "SendError",
    "ConfigurationError",
    "MAX_EVENT_SIZE_BYTES",
    "MAX_BATCH_SIZE_BYTES",
    "MAX_BATCH_SIZE",
]
