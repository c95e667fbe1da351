"""In-memory lease store implementation."""

import asyncio
import time

from exclusivelease.errors import LeaseNotFoundError
from exclusivelease.store import StoreSnapshot


class InMemoryLeaseStore:
    """In-process store with millisecond expiry, for tests and single-process use."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, float]] = {}  # key -> (value, expires_at)
        self._lock = asyncio.Lock()

    @staticmethod
    def _now() -> float:
        return time.monotonic()

    def _live(self, key: str) -> tuple[str, float] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._now() >= entry[1]:
            del self._entries[key]
            return None
        return entry

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        async with self._lock:
            if self._live(key) is not None:
                return False
            self._entries[key] = (value, self._now() + ttl_ms / 1000)
            return True

    async def reset_expiry(self, key: str, ttl_ms: int) -> None:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                raise LeaseNotFoundError(f"Key not found: {key}")
            self._entries[key] = (entry[0], self._now() + ttl_ms / 1000)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def batch_read(self, key: str) -> StoreSnapshot | None:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return StoreSnapshot.empty()
            value, expires_at = entry
            return StoreSnapshot(value=value, ttl_ms=max(0, int((expires_at - self._now()) * 1000)))

    async def get(self, key: str) -> str | None:
        """Return the raw stored value, or None if absent or expired."""
        async with self._lock:
            entry = self._live(key)
            return entry[0] if entry is not None else None

    async def pttl(self, key: str) -> int:
        """Remaining TTL in milliseconds; -2 when the key does not exist."""
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return -2
            return max(0, int((entry[1] - self._now()) * 1000))

    async def set(self, key: str, value: str) -> None:
        """Overwrite the value of a live key, keeping its expiry."""
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                raise LeaseNotFoundError(f"Key not found: {key}")
            self._entries[key] = (value, entry[1])

    def __len__(self) -> int:
        """Number of unexpired keys."""
        now = self._now()
        return sum(1 for _, expires_at in self._entries.values() if now < expires_at)
