"""Event bus — ordered, synchronous fan-out of engine events to listeners.

Architecture
~~~~~~~~~~~~
* **Listener** — any callable taking one :class:`EngineEvent`.
* **EventBus** — keeps listeners in registration order and invokes them
  synchronously for every emitted event, optionally filtered by event type.
* **EventRecorder** — listener that keeps every event it sees (handy for
  tests, replays and presentation layers).

Delivery is fire-and-forget: events are delivered in emission order, a
listener that raises is logged and skipped, and remaining listeners still
receive the event.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, TypeVar

import structlog

from jazz_motion.models import EngineEvent

logger = structlog.get_logger(__name__)

Listener = Callable[[EngineEvent], None]
E = TypeVar("E", bound=EngineEvent)


@dataclass(frozen=True, slots=True)
class _Subscription:
    listener: Listener
    event_type: type[EngineEvent]


class EventBus:
    """Register listeners and deliver events to them in order."""

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []
        self._emitted_total = 0

    # ── Listener management ───────────────────────────────────

    def subscribe(self, listener: Listener, event_type: type[EngineEvent] = EngineEvent) -> None:
        """Register *listener* for *event_type* (and its subclasses)."""
        self._subscriptions.append(_Subscription(listener, event_type))

    def unsubscribe(self, listener: Listener) -> bool:
        """Remove every subscription of *listener*. Return ``True`` if found."""
        before = len(self._subscriptions)
        self._subscriptions = [s for s in self._subscriptions if s.listener != listener]
        return len(self._subscriptions) < before

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    @property
    def emitted_total(self) -> int:
        return self._emitted_total

    # ── Emission ──────────────────────────────────────────────

    def emit(self, event: EngineEvent) -> None:
        """Deliver *event* to every matching listener, in registration order."""
        self._emitted_total += 1
        # Snapshot so listeners may (un)subscribe while being notified.
        for sub in list(self._subscriptions):
            if not isinstance(event, sub.event_type):
                continue
            try:
                sub.listener(event)
            except Exception:
                logger.exception(
                    "event_bus.listener_error",
                    listener=getattr(sub.listener, "__qualname__", repr(sub.listener)),
                    event=type(event).__name__,
                )


class EventRecorder:
    """Listener that records every event it receives."""

    def __init__(self) -> None:
        self.events: list[EngineEvent] = []

    def __call__(self, event: EngineEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[E]) -> list[E]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        self.events.clear()
