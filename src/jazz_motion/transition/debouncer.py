"""Stability debouncer — confirm a level change only after it persists.

States
------
* **Idle** — no candidate; the live level equals the last confirmed one.
* **Pending(candidate, start_time)** — a different level was observed and
  its stability timer is running.

A new candidate always *replaces* the pending one and restarts the timer,
so a flapping signal never confirms.  When the timer expires and the live
level still equals the candidate, the change is confirmed.
"""

from __future__ import annotations

from typing import Callable

import structlog

from jazz_motion.errors import InvalidConfiguration
from jazz_motion.models import IntensityLevel, PendingChange
from jazz_motion.scheduler.timers import Scheduler, TimerHandle

logger = structlog.get_logger(__name__)

DEFAULT_STABILITY_PERIOD = 3.0

ConfirmHandler = Callable[[IntensityLevel], None]


class StabilityDebouncer:
    """Hysteresis automaton over classified intensity levels.

    Parameters
    ----------
    scheduler : Scheduler
        Clock and timer source.
    on_confirm : ConfirmHandler
        Called with the candidate once it has been stable long enough.
    stability_period : float
        Seconds a candidate must persist (default 3.0).
    initial_level : IntensityLevel
        Level treated as already confirmed at session start.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_confirm: ConfirmHandler,
        stability_period: float = DEFAULT_STABILITY_PERIOD,
        initial_level: IntensityLevel = IntensityLevel.CALM,
    ) -> None:
        if not stability_period > 0:
            raise InvalidConfiguration(f"Stability period must be > 0, got {stability_period}")
        self._scheduler = scheduler
        self._on_confirm = on_confirm
        self._period = stability_period
        self._initial = initial_level
        self._confirmed = initial_level
        self._live: IntensityLevel | None = None
        self._pending: PendingChange | None = None
        self._timer: TimerHandle | None = None

    # ── State ─────────────────────────────────────────────────

    @property
    def stability_period(self) -> float:
        return self._period

    @property
    def confirmed_level(self) -> IntensityLevel:
        return self._confirmed

    @property
    def live_level(self) -> IntensityLevel | None:
        return self._live

    @property
    def pending(self) -> PendingChange | None:
        return self._pending

    # ── Input ─────────────────────────────────────────────────

    def observe(self, level: IntensityLevel) -> None:
        """Feed the latest classified level (called once per sample)."""
        self._live = level
        if self._pending is not None and self._pending.candidate == level:
            return
        if level == self._confirmed:
            if self._pending is not None:
                logger.debug("debouncer.reverted", candidate=self._pending.candidate.value, level=level.value)
                self.clear()
            return
        self._start_pending(level)

    def reinject(self, level: IntensityLevel) -> None:
        """Treat *level* as newly observed, even if it is already confirmed.

        The full stability period still applies.
        """
        self._live = level
        self._start_pending(level)

    def clear(self) -> None:
        """Drop any pending candidate without confirming it."""
        self._scheduler.cancel(self._timer)
        self._timer = None
        self._pending = None

    def reset(self) -> None:
        """Forget the session: clear pending and restore the initial level."""
        self.clear()
        self._confirmed = self._initial
        self._live = None

    # ── Internals ─────────────────────────────────────────────

    def _start_pending(self, level: IntensityLevel) -> None:
        self.clear()
        self._pending = PendingChange(candidate=level, start_time=self._scheduler.now())
        self._timer = self._scheduler.schedule(self._period, self._expire)
        logger.debug("debouncer.pending", candidate=level.value, confirmed=self._confirmed.value)

    def _expire(self) -> None:
        pending = self._pending
        self._timer = None
        self._pending = None
        if pending is None:
            return
        if self._live != pending.candidate:
            logger.debug(
                "debouncer.expired_unstable",
                candidate=pending.candidate.value,
                live=self._live.value if self._live else None,
            )
            return

        self._confirmed = pending.candidate
        logger.info(
            "debouncer.confirmed",
            level=pending.candidate.value,
            held_seconds=round(self._scheduler.now() - pending.start_time, 3),
        )
        self._on_confirm(pending.candidate)
