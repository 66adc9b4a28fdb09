"""Transport implementations for batch delivery."""

from klime.transports.base import Transport, TransportError, TransportResponse
from klime.transports.httpx_transport import HttpxTransport

__all__ = ["HttpxTransport", "Transport", "TransportError", "TransportResponse"]
