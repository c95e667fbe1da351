"""Listener registry for lease notifications."""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from exclusivelease.types import LEASE_EVENTS, LeaseEvent

Listener = Callable[[Any], Any]


class EventRegistry:
    """
    Maps event names to listeners.

    Listeners are called in registration order with a single payload.
    Coroutine listeners are awaited. A failing listener is logged and
    never interrupts the lease state machine.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._listeners: dict[LeaseEvent, list[Listener]] = {event: [] for event in LEASE_EVENTS}
        self._logger = logger or logging.getLogger(__name__)

    def _checked(self, event: str) -> LeaseEvent:
        if event not in self._listeners:
            raise ValueError(f"Unknown lease event {event!r}, expected one of {LEASE_EVENTS}")
        return event  # type: ignore[return-value]

    def add(self, event: LeaseEvent, listener: Listener) -> None:
        self._listeners[self._checked(event)].append(listener)

    def remove(self, event: LeaseEvent, listener: Listener) -> None:
        """Remove a listener. Removing one that was never added is a no-op."""
        listeners = self._listeners[self._checked(event)]
        if listener in listeners:
            listeners.remove(listener)

    def listeners(self, event: LeaseEvent) -> list[Listener]:
        return list(self._listeners[self._checked(event)])

    async def emit(self, event: LeaseEvent, payload: Any) -> None:
        for listener in self.listeners(event):
            try:
                result = listener(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self._logger.exception("Listener for %r event failed", event)
