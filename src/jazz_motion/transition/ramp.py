"""Volume ramp controller — linear fade-out / fade-in in fixed steps.

Each phase runs ``steps`` scheduled steps, ``step_interval`` seconds apart:

* fade-out from the captured volume ``v0`` down to exactly ``0``;
* fade-in from ``0`` (or a given start volume) up to exactly the target ``vt``.

Only one phase runs at a time.  :meth:`VolumeRamp.cancel` invalidates the
remaining steps of the running phase; its completion callback never runs
and the volume stays wherever the last completed step left it.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable

import structlog

from jazz_motion.collaborators.base import AudioOutput
from jazz_motion.errors import InvalidConfiguration
from jazz_motion.scheduler.timers import Scheduler, TimerHandle

logger = structlog.get_logger(__name__)

DEFAULT_RAMP_STEPS = 10
DEFAULT_STEP_INTERVAL = 0.05


class RampPhase(str, Enum):
    IDLE = "idle"
    FADE_OUT = "fade_out"
    FADE_IN = "fade_in"


def fade_out_level(start: float, step: int, steps: int) -> float:
    """Volume after *step* of *steps* when fading *start* down to 0."""
    if step >= steps:
        return 0.0
    return max(0.0, start - step * (start / steps))


def fade_in_level(target: float, step: int, steps: int, start: float = 0.0) -> float:
    """Volume after *step* of *steps* when fading *start* up to *target*."""
    if step >= steps:
        return target
    return min(target, start + step * ((target - start) / steps))


class VolumeRamp:
    """Drive an :class:`AudioOutput` through scheduled fade steps."""

    def __init__(
        self,
        audio: AudioOutput,
        scheduler: Scheduler,
        *,
        steps: int = DEFAULT_RAMP_STEPS,
        step_interval: float = DEFAULT_STEP_INTERVAL,
    ) -> None:
        if steps < 1:
            raise InvalidConfiguration(f"Ramp needs at least one step, got {steps}")
        if not step_interval > 0:
            raise InvalidConfiguration(f"Ramp step interval must be > 0, got {step_interval}")
        self._audio = audio
        self._scheduler = scheduler
        self._steps = steps
        self._interval = step_interval

        self._phase = RampPhase.IDLE
        self._step = 0
        self._from = 0.0
        self._to = 0.0
        self._timer: TimerHandle | None = None
        self._on_complete: Callable[[], None] | None = None

    # ── State ─────────────────────────────────────────────────

    @property
    def phase(self) -> RampPhase:
        return self._phase

    @property
    def in_progress(self) -> bool:
        return self._phase is not RampPhase.IDLE

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def duration(self) -> float:
        """Seconds one phase takes."""
        return self._steps * self._interval

    # ── Control ───────────────────────────────────────────────

    def fade_out(self, on_complete: Callable[[], None] | None = None) -> None:
        """Fade from the current volume down to 0, then call *on_complete*."""
        self.cancel()
        self._begin(RampPhase.FADE_OUT, self._audio.volume, 0.0, on_complete)

    def fade_in(
        self,
        target: float,
        on_complete: Callable[[], None] | None = None,
        *,
        start: float | None = None,
    ) -> None:
        """Fade up to *target*, then call *on_complete*.

        Starts from silence unless *start* is given, in which case the ramp
        climbs from that volume without resetting it first.
        """
        self.cancel()
        target = max(0.0, min(1.0, target))
        if start is None:
            start = 0.0
            self._audio.set_volume(0.0)
        self._begin(RampPhase.FADE_IN, min(start, target), target, on_complete)

    def cancel(self) -> bool:
        """Abort the running phase.  Return ``True`` if one was running."""
        if self._phase is RampPhase.IDLE:
            return False
        logger.info(
            "ramp.cancelled",
            phase=self._phase.value,
            step=self._step,
            volume=round(self._audio.volume, 4),
        )
        self._scheduler.cancel(self._timer)
        self._timer = None
        self._on_complete = None
        self._phase = RampPhase.IDLE
        return True

    # ── Internals ─────────────────────────────────────────────

    def _begin(
        self,
        phase: RampPhase,
        start: float,
        target: float,
        on_complete: Callable[[], None] | None,
    ) -> None:
        self._phase = phase
        self._step = 0
        self._from = start
        self._to = target
        self._on_complete = on_complete
        logger.debug("ramp.started", phase=phase.value, start=round(start, 4), target=round(target, 4))
        self._timer = self._scheduler.schedule(self._interval, self._advance)

    def _advance(self) -> None:
        self._timer = None
        self._step += 1
        if self._phase is RampPhase.FADE_OUT:
            volume = fade_out_level(self._from, self._step, self._steps)
        else:
            volume = fade_in_level(self._to, self._step, self._steps, self._from)
        self._audio.set_volume(volume)

        if self._step < self._steps:
            self._timer = self._scheduler.schedule(self._interval, self._advance)
            return

        callback = self._on_complete
        self._on_complete = None
        self._phase = RampPhase.IDLE
        if callback is not None:
            callback()
