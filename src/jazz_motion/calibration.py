"""Threshold calibration strategies.

The engine only defines the injection point: a :class:`CalibrationStrategy`
receives the current :class:`Thresholds` and may return replacements.

* :class:`KeepThresholds` — default; leaves thresholds untouched.
* :class:`GuidedCalibration` — records the fused magnitude while the user
  goes through four guided phases (still, slow walk, moderate pace, active
  movement) and puts each threshold halfway between the medians of
  adjacent phases.
"""

from __future__ import annotations

import statistics
from abc import ABC, abstractmethod
from typing import Callable, Sequence

import structlog

from jazz_motion.errors import InvalidConfiguration
from jazz_motion.models import EngineEvent, SmoothedValuesUpdated, Thresholds
from jazz_motion.scheduler.timers import Scheduler, TimerHandle

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────

DEFAULT_PHASE_PROMPTS = (
    "Stand still and do not move",
    "Walk slowly around the room",
    "Move at a moderate pace",
    "Move actively or dance",
)

DEFAULT_PHASE_SECONDS = 10.0


class CalibrationStrategy(ABC):
    """Contract for anything that can recalibrate intensity thresholds."""

    name: str = "base"

    @abstractmethod
    def calibrate(self, current: Thresholds) -> Thresholds | None:
        """Return new thresholds, or ``None`` to keep *current*."""


class KeepThresholds(CalibrationStrategy):
    """No-op strategy: thresholds stay as configured."""

    name = "keep"

    def calibrate(self, current: Thresholds) -> Thresholds | None:
        return None


class GuidedCalibration(CalibrationStrategy):
    """Derive thresholds from magnitudes recorded during guided phases.

    Feed it either through :meth:`record` or by subscribing the instance
    to the event bus, where it picks up :class:`SmoothedValuesUpdated`.

    Parameters
    ----------
    prompts : Sequence[str]
        One instruction per phase; exactly four phases are needed to place
        three thresholds.
    phase_seconds : float
        Duration of each phase when driven by :meth:`run`.
    """

    name = "guided"

    def __init__(
        self,
        prompts: Sequence[str] = DEFAULT_PHASE_PROMPTS,
        phase_seconds: float = DEFAULT_PHASE_SECONDS,
    ) -> None:
        if len(prompts) != 4:
            raise InvalidConfiguration(f"Guided calibration needs 4 phases, got {len(prompts)}")
        if not phase_seconds > 0:
            raise InvalidConfiguration(f"Phase duration must be > 0, got {phase_seconds}")
        self.prompts = tuple(prompts)
        self.phase_seconds = phase_seconds
        self._samples: list[list[float]] = [[] for _ in self.prompts]
        self._phase: int | None = None
        self._timer: TimerHandle | None = None

    # ── Phase control ─────────────────────────────────────────

    @property
    def phase(self) -> int | None:
        """Index of the phase being recorded, ``None`` when not recording."""
        return self._phase

    @property
    def prompt(self) -> str | None:
        return self.prompts[self._phase] if self._phase is not None else None

    def begin_phase(self, index: int) -> None:
        if not 0 <= index < len(self.prompts):
            raise IndexError(f"No calibration phase {index}")
        self._phase = index
        logger.info("calibration.phase", step=index + 1, of=len(self.prompts), prompt=self.prompts[index])

    def end(self) -> None:
        self._phase = None

    def cancel(self, scheduler: Scheduler) -> None:
        scheduler.cancel(self._timer)
        self._timer = None
        self.end()

    def run(self, scheduler: Scheduler, on_complete: Callable[[], None] | None = None) -> None:
        """Step through every phase on *scheduler*, then call *on_complete*."""
        self.reset()

        def advance(index: int) -> None:
            self._timer = None
            if index >= len(self.prompts):
                self.end()
                if on_complete is not None:
                    on_complete()
                return
            self.begin_phase(index)
            self._timer = scheduler.schedule(self.phase_seconds, lambda: advance(index + 1))

        advance(0)

    def reset(self) -> None:
        self._samples = [[] for _ in self.prompts]
        self._phase = None

    # ── Recording ─────────────────────────────────────────────

    def record(self, magnitude: float) -> None:
        if self._phase is not None:
            self._samples[self._phase].append(magnitude)

    def __call__(self, event: EngineEvent) -> None:
        if isinstance(event, SmoothedValuesUpdated):
            self.record(event.combined)

    def sample_counts(self) -> list[int]:
        return [len(s) for s in self._samples]

    # ── CalibrationStrategy ───────────────────────────────────

    def calibrate(self, current: Thresholds) -> Thresholds | None:
        if any(not s for s in self._samples):
            logger.warning("calibration.insufficient_data", counts=self.sample_counts())
            return None

        medians = [statistics.median(s) for s in self._samples]
        bounds = [(a + b) / 2 for a, b in zip(medians, medians[1:])]
        try:
            thresholds = Thresholds(calm=bounds[0], moderate=bounds[1], active=bounds[2])
        except InvalidConfiguration:
            logger.warning(
                "calibration.not_separable",
                medians=[round(m, 4) for m in medians],
                kept=(current.calm, current.moderate, current.active),
            )
            return None

        logger.info(
            "calibration.derived",
            calm=round(thresholds.calm, 4),
            moderate=round(thresholds.moderate, 4),
            active=round(thresholds.active, 4),
        )
        return thresholds
