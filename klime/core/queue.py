"""Bounded in-memory FIFO of events awaiting delivery."""

from collections import deque
from collections.abc import Iterator

from klime.core.batch import batch_length
from klime.core.event import Event


class PendingQueue:
    """FIFO event buffer with drop-oldest overflow.

    The queue is not persisted; pending events are lost if the process exits.
    It performs no locking of its own and must only be touched by the client
    that owns it.

    Args:
        max_size: Maximum number of pending events.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self._events: deque[Event] = deque()
        self._max_size = max_size

    @property
    def max_size(self) -> int:
        return self._max_size

    def push(self, event: Event) -> Event | None:
        """Append an event, evicting the oldest one if the queue is full.

        Returns:
            The evicted event, or None if nothing was dropped.
        """
        evicted = None
        if len(self._events) >= self._max_size:
            evicted = self._events.popleft()
        self._events.append(event)
        return evicted

    def take_batch(self, max_batch_size: int) -> list[Event]:
        """Remove and return the next batch from the front of the queue."""
        n = batch_length(self._events, max_batch_size)
        return [self._events.popleft() for _ in range(n)]

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def __bool__(self) -> bool:
        return bool(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)
