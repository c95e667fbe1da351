"""Redis-backed lease store.

Uses plain string keys with a millisecond TTL:
- claim: SET key value NX PX ttl
- renew: PEXPIRE key ttl
- release: DEL key
- inspect: GET + PTTL in one MULTI/EXEC round trip
"""

from typing import Any

import redis.asyncio as redis

from exclusivelease.errors import LeaseNotFoundError
from exclusivelease.store import StoreSnapshot


def _text(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class RedisLeaseStore:
    """LeaseStore over a ``redis.asyncio`` client. The client is borrowed, not owned."""

    def __init__(self, client: "redis.Redis") -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisLeaseStore":
        """Build a store with a new client. ``decode_responses`` defaults to True."""
        kwargs.setdefault("decode_responses", True)
        return cls(redis.from_url(url, **kwargs))

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        result = await self.client.set(key, value, nx=True, px=ttl_ms)
        return bool(result)

    async def reset_expiry(self, key: str, ttl_ms: int) -> None:
        # PEXPIRE replies 0 when the key no longer exists
        if not await self.client.pexpire(key, ttl_ms):
            raise LeaseNotFoundError(f"Key not found: {key}")

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def batch_read(self, key: str) -> StoreSnapshot | None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.get(key)
            pipe.pttl(key)
            results = await pipe.execute(raise_on_error=False)

        if not results or len(results) < 2:
            return StoreSnapshot.empty()

        value, ttl = results[0], results[1]
        if isinstance(value, Exception):
            value = None
        if isinstance(ttl, Exception) or ttl is None or int(ttl) < 0:
            ttl = None
        return StoreSnapshot(value=_text(value), ttl_ms=None if ttl is None else int(ttl))

    async def close(self) -> None:
        """Close the underlying client connection pool."""
        await self.client.aclose()
