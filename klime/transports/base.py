"""Transport protocol for delivering encoded batches.

The retry scheduler decides what a response means. Transports only move
bytes to the collector and report what came back.
"""

from dataclasses import dataclass, field
from typing import Protocol


class TransportError(Exception):
    """Raised when a request could not be completed at the network level.

    Connection refused, timeouts and DNS failures all end up here.
    """


@dataclass(frozen=True)
class TransportResponse:
    """Status, body and lower-cased headers of one HTTP response."""

    status_code: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)


class Transport(Protocol):
    """Protocol for delivery transports.

    Transports are responsible for:
    - POSTing a JSON body to the collector with the write key
    - Returning the raw response for any HTTP status
    - Raising TransportError when no response was received
    """

    async def send(self, url: str, body: bytes, write_key: str) -> TransportResponse:
        """POST ``body`` to ``url`` authenticated with ``write_key``.

        Args:
            url: Full batch endpoint URL.
            body: UTF-8 encoded JSON request body.
            write_key: Collector write key, sent as a bearer token.

        Returns:
            The collector's response, whatever its status code.

        Raises:
            TransportError: If the request failed before a response arrived.
        """
        ...

    async def aclose(self) -> None:
        """Release connections held by the transport."""
        ...
