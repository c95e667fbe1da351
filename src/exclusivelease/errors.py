"""Exception classes for exclusivelease."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FieldError:
    """A single validation failure for one option."""

    field: str
    message: str


class ExclusiveLeaseError(Exception):
    """Base exception for all exclusivelease errors."""

    code: str = "ELEASE"


class ConfigurationError(ExclusiveLeaseError, ValueError):
    """Raised when lease options are missing or invalid. Never reaches the store."""

    code = "EINVAL"

    def __init__(
        self,
        message: str,
        *,
        errors: list[FieldError] | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.errors: list[FieldError] = list(errors or [])
        if code is not None:
            self.code = code


class TTLSpacingError(ConfigurationError):
    """Raised when the renewal interval is too close to the TTL."""

    def __init__(self, message: str, *, meta: dict[str, Any]) -> None:
        super().__init__(message)
        self.meta = meta


class StoreError(ExclusiveLeaseError):
    """Base exception for failures reported by a store adapter."""

    code = "ESTORE"


class LeaseNotFoundError(StoreError):
    """Raised when resetting the expiry of a key that no longer exists."""

    code = "ENOTFOUND"
