"""Klime client: event queue and delivery worker.

The client is the only owner of the pending queue. Every command (enqueue,
flush, immediate send, shutdown) runs under one ``asyncio.Lock``, so at most
one command touches the queue at a time and flushes never overlap. A
background task flushes the queue every ``flush_interval_ms``.

Usage:

    async with Client(write_key="your-write-key") as client:
        await client.track("Button Clicked", {"button": "signup"}, user_id="user_123")
        await client.identify("user_123", {"email": "user@example.com"})
        await client.group("org_456", {"name": "Acme Inc"}, user_id="user_123")
"""

import asyncio
import contextlib
import inspect
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace
from typing import Any

from klime.core.config import (
    MAX_EVENT_SIZE_BYTES,
    SDK_NAME,
    SDK_VERSION,
    ClientConfig,
    build_config,
)
from klime.core.event import Event, EventContext, EventType, LibraryInfo
from klime.core.logging import CLIENT_LOGGER_NAME, get_logger
from klime.core.queue import PendingQueue
from klime.core.retry import RetryScheduler, SendError, SendResult
from klime.transports.base import Transport
from klime.transports.httpx_transport import HttpxTransport

CLIENT_SHUTDOWN_MESSAGE = "Client is shutdown"

_LIBRARY = LibraryInfo(name=SDK_NAME, version=SDK_VERSION)


@dataclass
class ClientStats:
    """Delivery counters for one client."""

    events_enqueued: int = 0
    events_rejected: int = 0
    events_evicted: int = 0
    batches_sent: int = 0
    batches_failed: int = 0
    events_sent: int = 0
    events_failed: int = 0


class Client:
    """Queues analytics events and delivers them to the collector in batches.

    Pass either a ready :class:`ClientConfig` or its fields as keyword
    options (``write_key`` is required).

    Args:
        config: Validated configuration. Mutually exclusive with ``options``.
        transport: Delivery transport. Defaults to an :class:`HttpxTransport`
            owned (and closed on shutdown) by this client.
        sleep: Awaitable used for retry backoff waits.
        **options: ClientConfig fields.

    Raises:
        ConfigurationError: If the options are missing or invalid.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: Transport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        **options: Any,
    ) -> None:
        if config is None:
            config = build_config(**options)
        elif options:
            raise TypeError("pass either a ClientConfig or keyword options, not both")

        self.config = config
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._owns_transport = transport is None
        self._scheduler = RetryScheduler(config, self._transport, sleep=sleep)
        self._queue = PendingQueue(config.max_queue_size)
        self._lock = asyncio.Lock()
        self._shutdown = False
        self._flush_task: asyncio.Task[None] | None = None
        self._stats = ClientStats()
        self._log = get_logger(CLIENT_LOGGER_NAME)

    async def __aenter__(self) -> "Client":
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.shutdown()

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def start(self) -> None:
        """Arm the periodic flush timer. Must be called from a running loop."""
        if self._shutdown or self._flush_task is not None:
            return
        self._flush_task = asyncio.create_task(self._flush_loop(), name="klime-flush")
        self._log.debug(
            f"Klime client initialized (endpoint: {self.config.endpoint}, "
            f"flush_interval: {self.config.flush_interval_ms}ms)"
        )

    # -- producer API: fire-and-forget -------------------------------------

    async def track(
        self,
        event_name: str,
        properties: dict[str, Any] | None = None,
        *,
        user_id: str | None = None,
        group_id: str | None = None,
        ip: str | None = None,
    ) -> None:
        """Queue a track event; delivery happens in the background."""
        await self._submit(EventType.TRACK, self._track_event, event_name, properties, user_id, group_id, ip)

    async def identify(
        self, user_id: str, traits: dict[str, Any] | None = None, *, ip: str | None = None
    ) -> None:
        """Queue an identify event; delivery happens in the background."""
        await self._submit(EventType.IDENTIFY, self._identify_event, user_id, traits, ip)

    async def group(
        self,
        group_id: str,
        traits: dict[str, Any] | None = None,
        *,
        user_id: str | None = None,
        ip: str | None = None,
    ) -> None:
        """Queue a group event; delivery happens in the background."""
        await self._submit(EventType.GROUP, self._group_event, group_id, traits, user_id, ip)

    # -- producer API: blocking --------------------------------------------

    async def track_sync(
        self,
        event_name: str,
        properties: dict[str, Any] | None = None,
        *,
        user_id: str | None = None,
        group_id: str | None = None,
        ip: str | None = None,
    ) -> SendResult:
        """Send a track event now, bypassing the queue, and wait for the result."""
        return await self._send_now(
            EventType.TRACK, self._track_event, event_name, properties, user_id, group_id, ip
        )

    async def identify_sync(
        self, user_id: str, traits: dict[str, Any] | None = None, *, ip: str | None = None
    ) -> SendResult:
        """Send an identify event now and wait for the result."""
        return await self._send_now(EventType.IDENTIFY, self._identify_event, user_id, traits, ip)

    async def group_sync(
        self,
        group_id: str,
        traits: dict[str, Any] | None = None,
        *,
        user_id: str | None = None,
        ip: str | None = None,
    ) -> SendResult:
        """Send a group event now and wait for the result."""
        return await self._send_now(EventType.GROUP, self._group_event, group_id, traits, user_id, ip)

    # -- control -----------------------------------------------------------

    async def flush(self) -> None:
        """Deliver every queued event; returns when all batches are terminal."""
        async with self._lock:
            if self._shutdown:
                return
            await self._flush_unlocked()

    async def shutdown(self) -> None:
        """Stop the timer, optionally flush, and reject further commands.

        A flush already in progress finishes first.
        """
        async with self._lock:
            if self._shutdown:
                return
            self._log.info("Klime client shutting down...")
            await self._cancel_flush_timer()
            if self.config.flush_on_shutdown:
                await self._flush_unlocked()
            self._shutdown = True

        if self._owns_transport:
            await self._transport.aclose()
        self._log.info("Klime client shutdown complete")

    def queue_size(self) -> int:
        """Number of events waiting for delivery."""
        return len(self._queue)

    def get_stats(self) -> ClientStats:
        """Return a snapshot copy of the delivery counters."""
        return replace(self._stats)

    # -- internals ---------------------------------------------------------

    def _context(self, ip: str | None) -> EventContext:
        return EventContext(library=_LIBRARY, ip=ip)

    def _track_event(
        self,
        event_name: str,
        properties: dict[str, Any] | None,
        user_id: str | None,
        group_id: str | None,
        ip: str | None,
    ) -> Event:
        return Event(
            type=EventType.TRACK,
            event_name=event_name,
            properties=properties,
            user_id=user_id,
            group_id=group_id,
            context=self._context(ip),
        )

    def _identify_event(
        self, user_id: str, traits: dict[str, Any] | None, ip: str | None
    ) -> Event:
        return Event(
            type=EventType.IDENTIFY,
            user_id=user_id,
            traits=traits,
            context=self._context(ip),
        )

    def _group_event(
        self,
        group_id: str,
        traits: dict[str, Any] | None,
        user_id: str | None,
        ip: str | None,
    ) -> Event:
        return Event(
            type=EventType.GROUP,
            group_id=group_id,
            traits=traits,
            user_id=user_id,
            context=self._context(ip),
        )

    def _prepare(
        self, event_type: EventType, builder: Callable[..., Event], *args: Any
    ) -> tuple[Event, int] | SendError:
        """Build and measure an event. A payload that cannot be encoded is
        counted as rejected and comes back as a SendError."""
        event: Event | None = None
        try:
            event = builder(*args)
            return event, event.estimate_size()
        except (ValueError, TypeError, RecursionError) as e:
            self._stats.events_rejected += 1
            extra = {"event_type": event_type.value}
            if event is not None:
                extra["message_id"] = event.message_id
            self._log.warning(f"Event rejected - payload cannot be encoded: {e}", extra=extra)
            return SendError(
                f"Event payload cannot be encoded: {e}",
                events=[event] if event is not None else [],
            )

    async def _submit(self, event_type: EventType, builder: Callable[..., Event], *args: Any) -> None:
        async with self._lock:
            if self._shutdown:
                return
            prepared = self._prepare(event_type, builder, *args)
            if isinstance(prepared, SendError):
                return
            await self._enqueue_unlocked(*prepared)

    async def _enqueue_unlocked(self, event: Event, size: int) -> None:
        if size > MAX_EVENT_SIZE_BYTES:
            self._stats.events_rejected += 1
            self._log.warning(
                f"Event rejected - size ({size} bytes) exceeds {MAX_EVENT_SIZE_BYTES} bytes limit",
                extra={"message_id": event.message_id, "event_type": event.type.value},
            )
            return

        evicted = self._queue.push(event)
        self._stats.events_enqueued += 1
        if evicted is not None:
            self._stats.events_evicted += 1
            self._log.warning(
                f"Queue full ({self._queue.max_size}), dropped oldest event",
                extra={"message_id": evicted.message_id, "event_type": evicted.type.value},
            )

        self._log.debug(
            f"Event enqueued ({event.type.value}, queue_size: {len(self._queue)})",
            extra={"message_id": event.message_id, "event_type": event.type.value},
        )

        if len(self._queue) >= self.config.max_batch_size:
            self._log.debug(
                f"Batch size reached ({self.config.max_batch_size}), triggering immediate flush"
            )
            await self._flush_unlocked()

    async def _flush_unlocked(self) -> None:
        while self._queue:
            batch = self._queue.take_batch(self.config.max_batch_size)
            result = await self._scheduler.deliver(batch)
            await self._report(result, batch)

    async def _send_now(
        self, event_type: EventType, builder: Callable[..., Event], *args: Any
    ) -> SendResult:
        async with self._lock:
            if self._shutdown:
                return SendResult(error=SendError(CLIENT_SHUTDOWN_MESSAGE))

            prepared = self._prepare(event_type, builder, *args)
            if isinstance(prepared, SendError):
                result = SendResult(error=prepared)
                await self._report(result, prepared.events or [])
                return result

            event, size = prepared
            if size > MAX_EVENT_SIZE_BYTES:
                self._stats.events_rejected += 1
                result = SendResult(
                    error=SendError(
                        f"Event size ({size} bytes) exceeds {MAX_EVENT_SIZE_BYTES} bytes limit",
                        events=[event],
                    )
                )
            else:
                self._log.debug(
                    f"Sending {event.type.value} event immediately",
                    extra={"message_id": event.message_id, "event_type": event.type.value},
                )
                result = await self._scheduler.deliver([event])

            await self._report(result, [event])
            return result

    async def _report(self, result: SendResult, events: Sequence[Event]) -> None:
        if result.ok:
            self._stats.batches_sent += 1
            self._stats.events_sent += len(events)
            await self._invoke_callback("on_success", self.config.on_success, result.response)
        else:
            self._stats.batches_failed += 1
            self._stats.events_failed += len(events)
            await self._invoke_callback("on_error", self.config.on_error, result.error, list(events))

    async def _invoke_callback(self, name: str, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._log.error(f"{name} callback raised: {e!r}", extra={"callback": name})

    async def _flush_loop(self) -> None:
        interval = self.config.flush_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            try:
                async with self._lock:
                    if self._shutdown or not self._queue:
                        continue
                    await self._flush_unlocked()
            except Exception as e:
                self._log.error(f"Flush timer error: {e!r}")

    async def _cancel_flush_timer(self) -> None:
        task, self._flush_task = self._flush_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
