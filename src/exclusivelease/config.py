"""Lease options, defaults and validation."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from exclusivelease.codec import encode
from exclusivelease.errors import ConfigurationError, FieldError, TTLSpacingError
from exclusivelease.types import Contents

DEFAULT_TTL_MS = 3000
DEFAULT_RENEWAL_INTERVAL_MS = 1000
MIN_TTL_GAP_MS = 500
DEFAULT_KEY_PREFIX = "exclusive-lock"
DEFAULT_CONTENTS: Contents = 1

_REQUIRED_LOG_LEVELS = ("debug", "info", "warning", "error")

# Each timing option requires its partner
_CO_REQUIRED = {
    "ttl_ms": "renewal_interval_ms",
    "renewal_interval_ms": "ttl_ms",
}


def _check_logger(logger: Any) -> None:
    missing = [level for level in _REQUIRED_LOG_LEVELS if not callable(getattr(logger, level, None))]
    if missing:
        raise ConfigurationError(
            "The logger instance is required to implement levels " + ", ".join(_REQUIRED_LOG_LEVELS),
            code="ELOGLEVELS",
        )


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _field_errors(options: Mapping[str, Any]) -> list[FieldError]:
    errors: list[FieldError] = []

    name = options.get("name")
    if name is None:
        errors.append(FieldError("name", "must have required property 'name'"))
    elif not isinstance(name, str) or not name:
        errors.append(FieldError("name", "must be a non-empty string"))

    if options.get("store") is None:
        errors.append(FieldError("store", "must have required property 'store'"))

    for option, partner in _CO_REQUIRED.items():
        if option not in options:
            continue
        if partner not in options:
            errors.append(
                FieldError(option, f"must have property {partner} when property {option} is present")
            )
        if not _is_positive_int(options[option]):
            errors.append(FieldError(option, "must be a positive integer"))

    if "contents" in options:
        try:
            encode(options["contents"])
        except (TypeError, ValueError):
            errors.append(FieldError("contents", "must be JSON serializable"))

    key_prefix = options.get("key_prefix", DEFAULT_KEY_PREFIX)
    if not isinstance(key_prefix, str) or not key_prefix:
        errors.append(FieldError("key_prefix", "must be a non-empty string"))

    if not isinstance(options.get("auto_renew", True), bool):
        errors.append(FieldError("auto_renew", "must be boolean"))

    known = {f.name for f in fields(LeaseOptions)}
    for unknown in sorted(set(options) - known):
        errors.append(FieldError(unknown, "must NOT have additional properties"))

    return errors


def _check_store(store: Any) -> None:
    if not callable(getattr(store, "set_if_absent", None)):
        raise ConfigurationError("A valid store exposing set_if_absent() is required")


def _check_spacing(ttl_ms: int, renewal_interval_ms: int) -> None:
    diff = ttl_ms - renewal_interval_ms
    if diff < MIN_TTL_GAP_MS:
        raise TTLSpacingError(
            f"renewal_interval_ms must be at least {MIN_TTL_GAP_MS}ms less than ttl_ms",
            meta={
                "ttl_ms": ttl_ms,
                "renewal_interval_ms": renewal_interval_ms,
                "diff": diff,
            },
        )


@dataclass
class LeaseOptions:
    """Construction options for an ExclusiveLease."""

    name: str
    store: Any
    ttl_ms: int = DEFAULT_TTL_MS
    renewal_interval_ms: int = DEFAULT_RENEWAL_INTERVAL_MS
    contents: Contents = DEFAULT_CONTENTS
    key_prefix: str = DEFAULT_KEY_PREFIX
    auto_renew: bool = True
    logger: logging.Logger | None = field(default=None, repr=False)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "LeaseOptions":
        """
        Validate a plain mapping of options and build LeaseOptions.

        Checks run in order: logger levels, per-field errors (all collected
        into one ConfigurationError), store capability, then TTL spacing.

        Raises:
            ConfigurationError: If any option is missing or invalid
            TTLSpacingError: If ttl_ms - renewal_interval_ms < MIN_TTL_GAP_MS
        """
        options = dict(options or {})

        logger = options.get("logger")
        if logger is not None:
            _check_logger(logger)

        errors = _field_errors(options)
        if errors:
            err = ConfigurationError("Input validation failed", errors=errors)
            (logger or logging.getLogger(__name__)).error("%s: %s", err, errors)
            raise err

        _check_store(options["store"])
        built = cls(**options)
        _check_spacing(built.ttl_ms, built.renewal_interval_ms)
        return built

    def validate(self) -> "LeaseOptions":
        """Run the same checks as from_mapping() on an existing instance."""
        return type(self).from_mapping({f.name: getattr(self, f.name) for f in fields(self)})
