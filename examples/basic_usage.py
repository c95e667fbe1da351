"""Basic usage example for exclusivelease."""

import asyncio
import logging

from exclusivelease import ExclusiveLease, InMemoryLeaseStore


async def main() -> None:
    """Acquire a lease, do some work while it renews, then release it."""
    logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(message)s")

    store = InMemoryLeaseStore()
    lease = ExclusiveLease(
        name="nightly report",
        store=store,
        ttl_ms=1500,
        renewal_interval_ms=500,
        contents={"worker": "example-1"},
    )

    print(f"Lease key: {lease.key}")

    if not await lease.acquire():
        print("Someone else holds the lease")
        return

    try:
        print(f"Stored contents: {await lease.inspect()}")
        # Work for longer than the TTL; renewal keeps the key alive
        await asyncio.sleep(3)
        snapshot = await lease.inspect_snapshot()
        print(f"Still held, {snapshot.ttl_ms}ms left before expiry")
    finally:
        await lease.release()

    print(f"Released, state={lease.state.value}")


if __name__ == "__main__":
    asyncio.run(main())
