"""Example demonstrating lease notifications and abdication on renewal failure."""

import asyncio

from exclusivelease import ExclusiveLease, InMemoryLeaseStore


async def main() -> None:
    store = InMemoryLeaseStore()
    lease = ExclusiveLease(name="event demo", store=store, ttl_ms=1000, renewal_interval_ms=200)
    lost = asyncio.Event()

    lease.on("acquired", lambda key: print(f"acquired {key}"))
    lease.on("renewed", lambda info: print(f"renewed {info['key']} for {info['ttl_ms']}ms"))
    lease.on("released", lambda key: print(f"released {key}"))

    async def on_failure(err: Exception) -> None:
        print(f"renewal failed: {err!r}")
        lost.set()

    lease.on("renewal-failed", on_failure)

    await lease.acquire()
    await asyncio.sleep(0.5)

    # Simulate the key vanishing from the store (eviction, flush, failover)
    await store.delete(lease.key)
    await lost.wait()

    print(f"state after failure: {lease.state.value}")


if __name__ == "__main__":
    asyncio.run(main())
