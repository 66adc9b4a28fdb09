"""Retry scheduler: drives one batch to a terminal delivery result.

Each transport attempt is classified into a delivery outcome:

    2xx            -> Accepted (body decoded, full acceptance if unparseable)
    400, 401       -> PermanentFailure (no retry)
    429            -> RateLimited (retry after backoff, or Retry-After capped at
                      MAX_RETRY_AFTER_MS)
    anything else  -> TransientServerError (retry after backoff)
    transport raised -> NetworkError (retry after backoff)

Backoff starts at ``retry_initial_delay_ms`` for every batch, doubles after
each retry and is capped at ``MAX_RETRY_DELAY_MS``.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from klime.core.batch import encode_batch
from klime.core.config import MAX_RETRY_AFTER_MS, MAX_RETRY_DELAY_MS, ClientConfig
from klime.core.event import Event
from klime.core.logging import DELIVERY_LOGGER_NAME, get_logger
from klime.core.response import BatchResponse
from klime.transports.base import Transport, TransportResponse

PERMANENT_FAILURE_STATUSES = frozenset({400, 401})
RATE_LIMITED_STATUS = 429


class SendError(Exception):
    """Delivery of one or more events failed.

    Attributes:
        message: Human-readable description of the failure.
        status_code: HTTP status of the last response, if one was received.
        events: The events that were not delivered.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        events: Sequence[Event] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.events = list(events) if events is not None else None
        super().__init__(message)


@dataclass(frozen=True)
class Accepted:
    response: BatchResponse

    @property
    def accepted_count(self) -> int:
        return self.response.accepted

    @property
    def failed_count(self) -> int:
        return self.response.failed


@dataclass(frozen=True)
class PermanentFailure:
    status_code: int
    body: str

    def __str__(self) -> str:
        return f"Permanent error ({self.status_code}): {self.body}"


@dataclass(frozen=True)
class RateLimited:
    retry_after: float | None = None
    status_code: int = RATE_LIMITED_STATUS

    def __str__(self) -> str:
        return f"Rate limited ({self.status_code})"


@dataclass(frozen=True)
class TransientServerError:
    status_code: int
    body: str = ""

    def __str__(self) -> str:
        return f"Request failed ({self.status_code}): {self.body}"


@dataclass(frozen=True)
class NetworkError:
    cause: Exception

    def __str__(self) -> str:
        return f"Network error: {self.cause}"


DeliveryOutcome = Accepted | PermanentFailure | RateLimited | TransientServerError | NetworkError


@dataclass(frozen=True)
class SendResult:
    """Terminal result of delivering one batch."""

    response: BatchResponse | None = None
    error: SendError | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_retry_after(headers: dict[str, str]) -> float | None:
    """Read a Retry-After header as seconds (delta-seconds or HTTP date)."""
    value = headers.get("retry-after")
    if not value:
        return None
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=UTC)
        seconds = (when - datetime.now(UTC)).total_seconds()
    return max(seconds, 0.0)


def _decode_response(body: str, batch_size: int) -> BatchResponse:
    try:
        data = json.loads(body)
        if isinstance(data, dict):
            return BatchResponse.from_dict(data)
    except ValueError:
        pass
    return BatchResponse(accepted=batch_size, failed=0)


def classify_response(
    response: TransportResponse, batch_size: int, honor_retry_after: bool = False
) -> DeliveryOutcome:
    """Map one collector response to a delivery outcome."""
    status = response.status_code
    if 200 <= status < 300:
        return Accepted(_decode_response(response.body, batch_size))
    if status in PERMANENT_FAILURE_STATUSES:
        return PermanentFailure(status, response.body)
    if status == RATE_LIMITED_STATUS:
        retry_after = parse_retry_after(response.headers) if honor_retry_after else None
        return RateLimited(retry_after)
    return TransientServerError(status, response.body)


class RetryScheduler:
    """Delivers batches with bounded retries and exponential backoff.

    The scheduler runs inside the caller's task; backoff sleeps block only
    that caller.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Transport,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.transport = transport
        self._sleep = sleep
        self._log = get_logger(DELIVERY_LOGGER_NAME)

    async def _attempt(self, body: bytes, batch_size: int) -> DeliveryOutcome:
        try:
            response = await self.transport.send(self.config.batch_url, body, self.config.write_key)
        except Exception as e:
            return NetworkError(e)
        return classify_response(response, batch_size, self.config.honor_retry_after)

    async def deliver(self, events: Sequence[Event]) -> SendResult:
        """Send ``events`` as one batch until success, permanent failure or exhaustion."""
        body = encode_batch(events)
        max_attempts = self.config.retry_max_attempts
        delay_ms = self.config.retry_initial_delay_ms
        last: DeliveryOutcome | None = None

        self._log.debug(
            f"Sending batch (size: {len(events)}, bytes: {len(body)})",
            extra={"batch_size": len(events)},
        )

        for attempt in range(1, max_attempts + 1):
            outcome = await self._attempt(body, len(events))

            if isinstance(outcome, Accepted):
                self._log_accepted(outcome.response, len(events))
                return SendResult(response=outcome.response, attempts=attempt)

            if isinstance(outcome, PermanentFailure):
                error = SendError(str(outcome), status_code=outcome.status_code, events=events)
                self._log.error(
                    error.message,
                    extra={"status_code": outcome.status_code, "batch_size": len(events)},
                )
                return SendResult(error=error, attempts=attempt)

            last = outcome
            if attempt == max_attempts:
                break

            wait_ms = delay_ms
            if isinstance(outcome, RateLimited) and outcome.retry_after:
                wait_ms = min(int(outcome.retry_after * 1000), MAX_RETRY_AFTER_MS)
            self._log.warning(
                f"{outcome}, retrying in {wait_ms}ms (attempt {attempt}/{max_attempts})",
                extra={
                    "attempt": attempt,
                    "status_code": getattr(outcome, "status_code", None),
                    "batch_size": len(events),
                },
            )
            await self._sleep(wait_ms / 1000)
            delay_ms = min(delay_ms * 2, MAX_RETRY_DELAY_MS)

        error = SendError(
            f"Failed to send batch after {max_attempts} attempts: {last}",
            status_code=getattr(last, "status_code", None),
            events=events,
        )
        self._log.error(error.message, extra={"attempt": max_attempts, "batch_size": len(events)})
        return SendResult(error=error, attempts=max_attempts)

    def _log_accepted(self, response: BatchResponse, batch_size: int) -> None:
        if response.is_partial:
            self._log.warning(
                f"Batch partially failed (accepted: {response.accepted}, failed: {response.failed})",
                extra={"batch_size": batch_size},
            )
            for err in response.errors or []:
                self._log.warning(f"  Event {err.index}: {err.message} ({err.code})")
        else:
            self._log.debug(
                f"Batch sent successfully (accepted: {response.accepted})",
                extra={"batch_size": batch_size},
            )
