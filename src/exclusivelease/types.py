"""Type definitions for exclusivelease."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, TypeAlias, Union

# Anything that survives a JSON round trip (dates are revived on decode)
Contents: TypeAlias = Union[str, int, float, bool, None, datetime, list[Any], dict[str, Any]]

# Notifications published by a lease
LeaseEvent: TypeAlias = Literal["acquired", "renewed", "renewal-failed", "released"]

LEASE_EVENTS: tuple[LeaseEvent, ...] = ("acquired", "renewed", "renewal-failed", "released")


class LeaseState(Enum):
    """Local view of lease ownership."""

    IDLE = "idle"
    HELD = "held"
