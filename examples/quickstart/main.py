"""Quickstart: queue a few events and flush them on shutdown.

Usage:
    python examples/quickstart/main.py --write-key YOUR_KEY
    python examples/quickstart/main.py --write-key YOUR_KEY --endpoint http://localhost:8080 --events 50
"""

import argparse
import asyncio

from klime import BatchResponse, Client, Event, SendError


def on_success(response: BatchResponse) -> None:
    print(f"✅ batch delivered (accepted: {response.accepted}, failed: {response.failed})")


def on_error(error: SendError, events: list[Event]) -> None:
    print(f"❌ {len(events)} events not delivered: {error.message}")


async def run(write_key: str, endpoint: str, count: int) -> None:
    async with Client(
        write_key=write_key,
        endpoint=endpoint,
        on_success=on_success,
        on_error=on_error,
    ) as client:
        await client.identify("user_123", {"email": "user@example.com", "name": "Stefan"})
        await client.group("org_456", {"name": "Acme Inc"}, user_id="user_123")
        for i in range(count):
            await client.track("Button Clicked", {"button": "signup", "n": i}, user_id="user_123")

        print(f"📦 {client.queue_size()} events pending before shutdown")

        result = await client.track_sync("Checkout Completed", {"total": 42}, user_id="user_123")
        if result.ok:
            print(f"⚡ sync event accepted after {result.attempts} attempt(s)")
        else:
            print(f"⚡ sync event failed: {result.error.message}")

    stats = client.get_stats()
    print(f"\nDone: {stats.events_sent} events sent, {stats.events_failed} failed")


def main() -> None:
    parser = argparse.ArgumentParser(description="Klime quickstart")
    parser.add_argument("--write-key", required=True)
    parser.add_argument("--endpoint", default="https://i.klime.com")
    parser.add_argument("--events", type=int, default=5)
    args = parser.parse_args()

    asyncio.run(run(args.write_key, args.endpoint, args.events))


if __name__ == "__main__":
    main()
