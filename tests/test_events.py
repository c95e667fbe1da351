"""Tests for the listener registry."""

import pytest

from exclusivelease.events import EventRegistry


@pytest.mark.asyncio
async def test_sync_and_async_listeners() -> None:
    """Test that plain and coroutine listeners both receive the payload."""
    registry = EventRegistry()
    received: list[tuple[str, object]] = []

    def sync_listener(payload: object) -> None:
        received.append(("sync", payload))

    async def async_listener(payload: object) -> None:
        received.append(("async", payload))

    registry.add("acquired", sync_listener)
    registry.add("acquired", async_listener)
    await registry.emit("acquired", "some-key")

    assert received == [("sync", "some-key"), ("async", "some-key")]


@pytest.mark.asyncio
async def test_remove_listener() -> None:
    """Test removing a listener, including one never added."""
    registry = EventRegistry()
    received: list[object] = []
    registry.add("released", received.append)
    registry.remove("released", received.append)
    registry.remove("released", print)

    await registry.emit("released", "some-key")
    assert received == []
    assert registry.listeners("released") == []


@pytest.mark.asyncio
async def test_failing_listener_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    """Test that a listener error is logged and later listeners still run."""
    registry = EventRegistry()
    received: list[object] = []

    def broken(payload: object) -> None:
        raise RuntimeError("listener blew up")

    registry.add("renewed", broken)
    registry.add("renewed", received.append)

    with caplog.at_level("ERROR", logger="exclusivelease"):
        await registry.emit("renewed", {"key": "k", "ttl_ms": 3000})

    assert received == [{"key": "k", "ttl_ms": 3000}]
    assert "Listener for 'renewed' event failed" in caplog.text


def test_unknown_event_rejected() -> None:
    """Test that registering for an unknown event raises."""
    registry = EventRegistry()
    with pytest.raises(ValueError, match="Unknown lease event"):
        registry.add("refreshed", print)  # type: ignore[arg-type]
