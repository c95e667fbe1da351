"""exclusivelease - Distributed exclusive leases over a shared key-value store."""

from exclusivelease.config import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_RENEWAL_INTERVAL_MS,
    DEFAULT_TTL_MS,
    MIN_TTL_GAP_MS,
    LeaseOptions,
)
from exclusivelease.errors import (
    ConfigurationError,
    ExclusiveLeaseError,
    FieldError,
    LeaseNotFoundError,
    StoreError,
    TTLSpacingError,
)
from exclusivelease.keys import build_key, normalize
from exclusivelease.lease import ExclusiveLease
from exclusivelease.memory import InMemoryLeaseStore
from exclusivelease.redis_store import RedisLeaseStore
from exclusivelease.store import LeaseStore, StoreSnapshot
from exclusivelease.types import LeaseEvent, LeaseState

__version__ = "0.1.0"

__all__ = [
    "ExclusiveLease",
    "LeaseOptions",
    "LeaseState",
    "LeaseEvent",
    "LeaseStore",
    "StoreSnapshot",
    "InMemoryLeaseStore",
    "RedisLeaseStore",
    "ExclusiveLeaseError",
    "ConfigurationError",
    "TTLSpacingError",
    "FieldError",
    "StoreError",
    "LeaseNotFoundError",
    "build_key",
    "normalize",
    "DEFAULT_TTL_MS",
    "DEFAULT_RENEWAL_INTERVAL_MS",
    "DEFAULT_KEY_PREFIX",
    "MIN_TTL_GAP_MS",
]
