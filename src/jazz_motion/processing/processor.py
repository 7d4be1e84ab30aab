"""Motion processor — owns the sensor session and the per-sample path.

For every sample pushed by the :class:`SensorFeed` the processor:

1. updates the :class:`SignalFilter` and publishes
   :class:`SmoothedValuesUpdated`;
2. classifies the fused magnitude; when the level differs from the
   previous sample it publishes :class:`IntensityChanged` and the
   detected :class:`MovementPatternDetected`;
3. hands the level to ``on_level`` (the engine routes it to the
   transition orchestrator when automatic mode is on).

Stopping the session resets the smoothed signal and the live level.
"""

from __future__ import annotations

from typing import Callable

import structlog

from jazz_motion.collaborators.base import SensorFeed
from jazz_motion.events.bus import EventBus
from jazz_motion.models import (
    IntensityChanged,
    IntensityLevel,
    MotionSample,
    MovementPatternDetected,
    MovementType,
    SmoothedValuesUpdated,
)
from jazz_motion.processing.classifier import IntensityClassifier, classify_movement_type
from jazz_motion.processing.filter import SignalFilter

logger = structlog.get_logger(__name__)

LevelHandler = Callable[[IntensityLevel], None]


class MotionProcessor:
    """Run the filter and classifier over a live sensor feed."""

    def __init__(
        self,
        feed: SensorFeed,
        signal_filter: SignalFilter | None = None,
        classifier: IntensityClassifier | None = None,
        bus: EventBus | None = None,
        on_level: LevelHandler | None = None,
    ) -> None:
        self._feed = feed
        self.filter = signal_filter or SignalFilter()
        self.classifier = classifier or IntensityClassifier()
        self._bus = bus or EventBus()
        self._on_level = on_level
        self._level: IntensityLevel | None = None
        self._movement: MovementType | None = None
        self._processed = 0

    # ── Session ───────────────────────────────────────────────

    def start(self) -> None:
        """Start the sensor session.

        Raises :class:`~jazz_motion.errors.SensorUnavailable` when the feed
        cannot begin; no state is changed in that case.
        """
        if self._feed.is_active:
            return
        self._feed.start(self.process)
        logger.info("motion.started")

    def stop(self) -> None:
        """Stop the sensor session and reset the session-scoped state."""
        was_active = self._feed.is_active
        self._feed.stop()
        self.filter.reset()
        self._level = None
        self._movement = None
        if was_active:
            logger.info("motion.stopped", processed=self._processed)

    @property
    def is_active(self) -> bool:
        return self._feed.is_active

    # ── State ─────────────────────────────────────────────────

    @property
    def level(self) -> IntensityLevel | None:
        """Most recent classified level; ``None`` before the first sample."""
        return self._level

    @property
    def movement(self) -> MovementType | None:
        return self._movement

    @property
    def combined(self) -> float:
        return self.filter.combined

    @property
    def processed(self) -> int:
        return self._processed

    # ── Per-sample path ───────────────────────────────────────

    def process(self, sample: MotionSample) -> IntensityLevel:
        """Fold one sample into the session and return its classified level."""
        combined = self.filter.update(sample)
        signal = self.filter.signal
        self._processed += 1
        self._bus.emit(SmoothedValuesUpdated(accel=signal.accel, gyro=signal.gyro, combined=combined))

        level = self.classifier.classify(combined)
        if level != self._level:
            previous = self._level
            self._level = level
            self._movement = classify_movement_type(signal.accel, signal.gyro)
            logger.debug(
                "motion.intensity_changed",
                previous=previous.value if previous else None,
                level=level.value,
                combined=round(combined, 4),
                movement=self._movement.value,
            )
            self._bus.emit(IntensityChanged(level=level))
            self._bus.emit(MovementPatternDetected(movement=self._movement, level=level))

        if self._on_level is not None:
            self._on_level(level)
        return level
