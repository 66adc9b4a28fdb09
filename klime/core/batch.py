"""Batch formatting: split pending events into collector-sized batches."""

from collections.abc import Iterable, Iterator, Sequence

from klime.core.config import MAX_BATCH_SIZE, MAX_BATCH_SIZE_BYTES
from klime.core.event import Event, encode_json


def batch_length(events: Iterable[Event], max_batch_size: int) -> int:
    """Return how many leading events fit in the next batch.

    The count is capped at ``min(max_batch_size, MAX_BATCH_SIZE)`` and the
    cumulative estimated size at ``MAX_BATCH_SIZE_BYTES``. The first event is
    always taken, whatever its size, so a non-empty input never yields an
    empty batch.
    """
    limit = min(max_batch_size, MAX_BATCH_SIZE)
    count = 0
    total_bytes = 0
    for event in events:
        if count >= limit:
            break
        total_bytes += event.estimate_size()
        if count > 0 and total_bytes > MAX_BATCH_SIZE_BYTES:
            break
        count += 1
    return count


def extract_batch(
    events: Sequence[Event], max_batch_size: int
) -> tuple[list[Event], list[Event]]:
    """Split ``events`` into the next batch and the remaining tail."""
    n = batch_length(events, max_batch_size)
    items = list(events)
    return items[:n], items[n:]


def iter_batches(events: Sequence[Event], max_batch_size: int) -> Iterator[list[Event]]:
    """Yield consecutive batches until ``events`` is exhausted, in order."""
    start = 0
    while start < len(events):
        n = batch_length(events[start:], max_batch_size)
        yield list(events[start : start + n])
        start += n


def encode_batch(events: Sequence[Event]) -> bytes:
    """Encode events as the ``{"batch": [...]}`` request body."""
    return encode_json({"batch": [event.to_dict() for event in events]}).encode("utf-8")
