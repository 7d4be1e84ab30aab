"""Mode controller — automatic vs. manual transition policy."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from jazz_motion.events.bus import EventBus
from jazz_motion.models import IntensityLevel, Mode, ModeChanged

if TYPE_CHECKING:
    from jazz_motion.collaborators.base import TrackRef, TrackSelector
    from jazz_motion.processing.processor import MotionProcessor
    from jazz_motion.transition.orchestrator import TransitionOrchestrator

logger = structlog.get_logger(__name__)


class ModeController:
    """Switch between automatic transitions and manual track selection.

    * ``enable_auto_mode()`` re-injects the live level into the debouncer
      when the sensor session is active (a full stability wait applies).
    * ``disable_auto_mode()`` clears the pending candidate; a ramp that is
      already running still completes its swap.
    * ``manual_select(level)`` switches to manual, abandons the swap of a
      running fade-out and asks the selector directly, bypassing debouncer,
      guards and ramp.
    """

    def __init__(
        self,
        orchestrator: TransitionOrchestrator,
        processor: MotionProcessor,
        selector: TrackSelector,
        bus: EventBus | None = None,
        mode: Mode = Mode.AUTO,
    ) -> None:
        self._orchestrator = orchestrator
        self._processor = processor
        self._selector = selector
        self._bus = bus or EventBus()
        self._mode = mode

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def is_auto(self) -> bool:
        return self._mode is Mode.AUTO

    def enable_auto_mode(self) -> None:
        self._set_mode(Mode.AUTO)
        level = self._processor.level
        if self._processor.is_active and level is not None:
            logger.info("mode.reinject", level=level.value)
            self._orchestrator.debouncer.reinject(level)

    def disable_auto_mode(self) -> None:
        self._set_mode(Mode.MANUAL)
        self._orchestrator.debouncer.clear()

    def manual_select(self, level: IntensityLevel) -> TrackRef | None:
        """Force manual mode and load a track for *level* immediately."""
        self.disable_auto_mode()
        self._orchestrator.abandon_swap()
        try:
            track = self._selector.select_track(level)
        except Exception:
            logger.exception("mode.manual_select_error", level=level.value)
            return None
        if track is None:
            logger.warning("mode.manual_select_no_track", level=level.value)
        return track

    def _set_mode(self, mode: Mode) -> None:
        if mode is self._mode:
            return
        self._mode = mode
        logger.info("mode.changed", mode=mode.value)
        self._bus.emit(ModeChanged(mode=mode))
