"""Clock and timer abstraction used by every delayed action in the engine.

Architecture
~~~~~~~~~~~~
* **Scheduler** — abstract ``now()`` / ``schedule(delay, callback)`` /
  ``cancel(handle)`` contract.  Components never sleep; they schedule a
  callback and return.
* **ManualScheduler** — deterministic fake clock.  Time only moves when
  :meth:`ManualScheduler.advance` is called, which makes stability periods
  and ramp steps reproducible in tests and offline replays.
* **AsyncioScheduler** — live implementation on top of the running event
  loop (``loop.call_later`` / ``loop.time()``).

Integration::

    scheduler = AsyncioScheduler()
    handle = scheduler.schedule(0.05, step)
    ...
    scheduler.cancel(handle)
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)

# Tolerance when comparing accumulated float timestamps.
_EPSILON = 1e-9


class TimerHandle:
    """Reference to a scheduled callback; cancelling it is idempotent."""

    __slots__ = ("due", "callback", "cancelled", "_native")

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self._native: asyncio.TimerHandle | None = None

    def cancel(self) -> None:
        self.cancelled = True
        if self._native is not None:
            self._native.cancel()
            self._native = None

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"<TimerHandle due={self.due:.3f} {state}>"


class Scheduler(ABC):
    """Contract for scheduling delayed callbacks on a single timeline."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds on this scheduler's clock."""

    @abstractmethod
    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run *callback* once after *delay* seconds."""

    def cancel(self, handle: TimerHandle | None) -> None:
        """Cancel *handle*; ``None`` and already-fired handles are ignored."""
        if handle is not None:
            handle.cancel()

    @staticmethod
    def _run(handle: TimerHandle) -> None:
        if handle.cancelled:
            return
        handle.cancelled = True  # one-shot
        try:
            handle.callback()
        except Exception:
            logger.exception("scheduler.callback_error", callback=getattr(handle.callback, "__qualname__", repr(handle.callback)))


# ── Fake clock ────────────────────────────────────────────────


class ManualScheduler(Scheduler):
    """A scheduler whose clock only moves when told to.

    Callbacks fire in order of due time, then insertion order.  Callbacks
    scheduled while advancing fire in the same call if they fall due
    within the advanced window.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    def advance(self, seconds: float) -> int:
        """Move the clock forward by *seconds*, firing due callbacks.

        Returns the number of callbacks that ran.
        """
        if seconds < 0:
            raise ValueError(f"Cannot move the clock backwards ({seconds})")
        return self.advance_to(self._now + seconds)

    def advance_to(self, target: float) -> int:
        """Move the clock to absolute time *target*, firing due callbacks."""
        fired = 0
        while self._queue and self._queue[0][0] <= target + _EPSILON:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, due)
            self._run(handle)
            fired += 1
        self._now = max(self._now, target)
        return fired

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not fired or been cancelled."""
        return sum(1 for _, _, h in self._queue if not h.cancelled)


# ── Live clock ────────────────────────────────────────────────


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an :mod:`asyncio` event loop.

    When no loop is given, the running loop is looked up on first use, so
    the scheduler must be used from inside a coroutine or loop callback.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        delay = max(0.0, delay)
        handle = TimerHandle(self.now() + delay, callback)
        handle._native = self.loop.call_later(delay, self._run, handle)
        return handle
