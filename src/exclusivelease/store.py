"""Store adapter contract."""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class StoreSnapshot:
    """Value and remaining TTL of a key, read in one round trip. Either may be absent."""

    value: Any = None
    ttl_ms: int | None = None

    @classmethod
    def empty(cls) -> "StoreSnapshot":
        return cls(value=None, ttl_ms=None)

    @property
    def is_empty(self) -> bool:
        return self.value is None and self.ttl_ms is None


@runtime_checkable
class LeaseStore(Protocol):
    """
    Operations a key-value store must provide to back an ExclusiveLease.

    Implementations are shared between leases and must be safe for
    concurrent use from one event loop.
    """

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        """Atomically create ``key`` with an expiry. True iff this call created it."""

    async def reset_expiry(self, key: str, ttl_ms: int) -> None:
        """Push the expiry of ``key`` to ``ttl_ms`` from now. Raises LeaseNotFoundError if absent."""

    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting an absent key is not an error."""

    async def batch_read(self, key: str) -> StoreSnapshot | None:
        """Read value and remaining TTL together. Failed fields come back as None."""
