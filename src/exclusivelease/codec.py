"""JSON serialization of lease contents."""

import json
import re
from datetime import datetime, timezone
from typing import Any

from exclusivelease.types import Contents

# JavaScript-style ISO-8601 timestamps, e.g. 2024-03-01T12:00:00.000Z
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z")


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return _format_datetime(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _revive(value: Any) -> Any:
    if isinstance(value, str):
        if _ISO_DATE_RE.fullmatch(value):
            return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%fZ").replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, list):
        return [_revive(item) for item in value]
    if isinstance(value, dict):
        return {key: _revive(item) for key, item in value.items()}
    return value


def encode(contents: Contents) -> str:
    """Serialize contents for storage. Datetimes are written as UTC ISO-8601 with millis."""
    return json.dumps(contents, default=_default)


def decode(raw: str | bytes) -> Contents:
    """
    Deserialize stored contents.

    Raises:
        ValueError: If ``raw`` is not valid JSON (``json.JSONDecodeError``
            or ``UnicodeDecodeError``).
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return _revive(json.loads(raw))
