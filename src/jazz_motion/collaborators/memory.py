"""In-process collaborators: a recording audio output and a replaying sensor feed."""

from __future__ import annotations

from typing import Iterable

import structlog

from jazz_motion.collaborators.base import AudioOutput, SampleHandler, SensorFeed
from jazz_motion.errors import SensorUnavailable
from jazz_motion.models import MotionSample
from jazz_motion.scheduler.timers import Scheduler, TimerHandle

logger = structlog.get_logger(__name__)


class MemoryAudioOutput(AudioOutput):
    """Audio output that only remembers its volume and every change to it."""

    def __init__(self, volume: float = 0.7) -> None:
        self._volume = _clamp(volume)
        self.history: list[float] = []

    @property
    def volume(self) -> float:
        return self._volume

    def set_volume(self, volume: float) -> None:
        self._volume = _clamp(volume)
        self.history.append(self._volume)


def _clamp(volume: float) -> float:
    return max(0.0, min(1.0, volume))


class ReplaySensorFeed(SensorFeed):
    """Push a recorded sequence of samples at a fixed cadence.

    Parameters
    ----------
    samples : Iterable[MotionSample]
        Samples to replay, in order.
    scheduler : Scheduler
        Timeline driving the cadence.
    interval : float
        Seconds between samples (default 0.1).
    available : bool
        ``False`` simulates hardware without motion sensors.

    The feed goes inactive once the last sample has been delivered.
    """

    def __init__(
        self,
        samples: Iterable[MotionSample],
        scheduler: Scheduler,
        *,
        interval: float = 0.1,
        available: bool = True,
    ) -> None:
        self._samples = list(samples)
        self._scheduler = scheduler
        self._interval = interval
        self._available = available
        self._handler: SampleHandler | None = None
        self._timer: TimerHandle | None = None
        self._position = 0

    # ── SensorFeed ────────────────────────────────────────────

    def start(self, handler: SampleHandler) -> None:
        if not self._available:
            raise SensorUnavailable("Device motion is not available")
        if self._handler is not None:
            return
        self._handler = handler
        self._timer = self._scheduler.schedule(self._interval, self._tick)
        logger.info("replay_feed.started", samples=len(self._samples), interval=self._interval)

    def stop(self) -> None:
        self._scheduler.cancel(self._timer)
        self._timer = None
        if self._handler is not None:
            logger.info("replay_feed.stopped", delivered=self._position)
        self._handler = None

    @property
    def is_active(self) -> bool:
        return self._handler is not None

    # ── Replay state ──────────────────────────────────────────

    @property
    def exhausted(self) -> bool:
        return self._position >= len(self._samples)

    @property
    def delivered(self) -> int:
        return self._position

    def _tick(self) -> None:
        self._timer = None
        if self._handler is None:
            return
        if not self.exhausted:
            sample = self._samples[self._position]
            self._position += 1
            if not self.exhausted:
                # Schedule first so a handler that stops the feed cancels the next tick.
                self._timer = self._scheduler.schedule(self._interval, self._tick)
            self._handler(sample)
        if self.exhausted and self._handler is not None:
            self._handler = None
            logger.info("replay_feed.exhausted", delivered=self._position)
