"""Example: several workers competing for one lease.

Only one worker is active at a time. The others poll until the holder
releases, then one of them takes over.
"""

import asyncio

from exclusivelease import ExclusiveLease, InMemoryLeaseStore


async def worker(store: InMemoryLeaseStore, worker_id: str, rounds: int) -> None:
    lease = ExclusiveLease(name="billing-sync", store=store, contents=worker_id)
    done = 0
    while done < rounds:
        if not await lease.acquire():
            # Retry with a pause is the caller's job, not the lease's
            await asyncio.sleep(0.2)
            continue
        try:
            print(f"[{worker_id}] active (holder={await lease.inspect()})")
            await asyncio.sleep(0.5)
            done += 1
        finally:
            await lease.release()
        print(f"[{worker_id}] stepped down")
        await asyncio.sleep(0.1)


async def main() -> None:
    store = InMemoryLeaseStore()
    await asyncio.gather(
        worker(store, "worker-a", 2),
        worker(store, "worker-b", 2),
        worker(store, "worker-c", 2),
    )


if __name__ == "__main__":
    asyncio.run(main())
