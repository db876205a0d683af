"""
Observer interface for progress and benchmark events.

The loader and the harness push named events with JSON-compatible payloads
to a `Notifier` through `safe_emit`. Delivery is fire-and-forget: a notifier
that raises is logged and skipped, never propagated into the producer. With
no notifier attached the events are simply dropped.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Protocol, runtime_checkable

from showdown.utils.logging import get_logger

log = get_logger(__name__)

Payload = Dict[str, Any]
Listener = Callable[[str, Payload], None]

LOADING_PROGRESS = "data:loading:progress"
TEST_STARTED = "test:started"
TEST_PROGRESS = "test:progress"
OPERATION_COMPLETED = "operation:completed"
TEST_COMPLETED = "test:completed"
LEADERBOARD_UPDATED = "leaderboard:updated"


@runtime_checkable
class Notifier(Protocol):
    def emit(self, event: str, payload: Payload) -> None:
        ...


def safe_emit(notifier: Notifier, event: str, payload: Payload) -> None:
    """Deliver one event; a notifier that raises is logged and ignored."""
    try:
        notifier.emit(event, payload)
    except Exception:  # noqa: BLE001 - a broken observer must not stop the producer
        log.warning(f"Notifier failed for event {event}", exc_info=True)


class NullNotifier:
    """Drops every event."""

    def emit(self, event: str, payload: Payload) -> None:
        return None


class LoggingNotifier:
    """Logs every event at DEBUG; handy when running the CLI with LOG_LEVEL=DEBUG."""

    def emit(self, event: str, payload: Payload) -> None:
        log.debug(f"[EVENT] {event}", extra={"event": event, "payload": payload})


class BroadcastNotifier:
    """
    In-process fan-out to subscribed listeners.

    A listener that raises is logged and skipped; the remaining listeners
    still receive the event.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: str, payload: Payload) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:  # noqa: BLE001 - a broken observer must not stop the producer
                log.warning(f"Listener failed for event {event}", exc_info=True)


__all__ = [
    "Notifier",
    "NullNotifier",
    "LoggingNotifier",
    "BroadcastNotifier",
    "safe_emit",
    "LOADING_PROGRESS",
    "TEST_STARTED",
    "TEST_PROGRESS",
    "OPERATION_COMPLETED",
    "TEST_COMPLETED",
    "LEADERBOARD_UPDATED",
]
