"""Klime - Async Python SDK for tracking events, identifying users and grouping them."""

from klime.core import (
    BatchEventError,
    BatchResponse,
    Client,
    ClientConfig,
    ClientStats,
    ConfigurationError,
    Event,
    EventContext,
    EventType,
    LibraryInfo,
    SendError,
    SendResult,
)
from klime.core.config import SDK_VERSION
from klime.core.default import (
    ClientNotConfiguredError,
    configure,
    flush,
    get_client,
    get_stats,
    group,
    group_sync,
    identify,
    identify_sync,
    queue_size,
    shutdown,
    track,
    track_sync,
)
from klime.core.logging import configure_logging
from klime.transports import HttpxTransport, Transport, TransportError, TransportResponse

__version__ = SDK_VERSION

__all__ = [
    # Client
    "Client",
    "ClientConfig",
    "ClientStats",
    # Default client
    "configure",
    "get_client",
    "track",
    "identify",
    "group",
    "track_sync",
    "identify_sync",
    "group_sync",
    "flush",
    "shutdown",
    "queue_size",
    "get_stats",
    "ClientNotConfiguredError",
    # Events
    "Event",
    "EventType",
    "EventContext",
    "LibraryInfo",
    # Results and errors
    "BatchResponse",
    "BatchEventError",
    "SendResult",
    "SendError",
    "ConfigurationError",
    # Transports
    "Transport",
    "TransportError",
    "TransportResponse",
    "HttpxTransport",
    # Logging
    "configure_logging",
    # Meta
    "__version__",
]
