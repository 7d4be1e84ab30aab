"""Motion engine — wires processor, orchestrator and mode policy together.

Architecture
~~~~~~~~~~~~
* **MotionProcessor** — sensor session, filter, classifier.
* **TransitionOrchestrator** — debouncer, guards, volume ramp, track swap.
* **ModeController** — automatic vs. manual policy.
* **EventBus** — every component publishes to the same ordered bus.

Data flow::

    sample -> filter -> classifier -> (auto mode) debouncer -> orchestrator
                                                   -> ramp + track selector

Integration::

    engine = create_engine(settings, feed=feed, selector=catalog,
                           audio=player, scheduler=AsyncioScheduler())
    engine.bus.subscribe(render)
    engine.start()
    ...
    engine.shutdown()
"""

from __future__ import annotations

import structlog

from jazz_motion.calibration import CalibrationStrategy, GuidedCalibration, KeepThresholds
from jazz_motion.collaborators.base import AudioOutput, SensorFeed, TrackRef, TrackSelector
from jazz_motion.config import Settings
from jazz_motion.events.bus import EventBus
from jazz_motion.logger import bind_session, clear_session
from jazz_motion.models import IntensityLevel, Mode, MovementType, MusicStyle, Thresholds
from jazz_motion.processing.classifier import IntensityClassifier
from jazz_motion.processing.filter import SignalFilter
from jazz_motion.processing.processor import MotionProcessor
from jazz_motion.scheduler.timers import Scheduler
from jazz_motion.styles import recommendations_for
from jazz_motion.transition.mode import ModeController
from jazz_motion.transition.orchestrator import TransitionOrchestrator

logger = structlog.get_logger(__name__)


class MotionEngine:
    """Facade over the whole motion-to-music pipeline.

    The engine owns its processor, orchestrator and mode controller and
    holds non-owning references to the feed, selector and audio output.
    """

    def __init__(
        self,
        feed: SensorFeed,
        selector: TrackSelector,
        audio: AudioOutput,
        scheduler: Scheduler,
        *,
        signal_filter: SignalFilter | None = None,
        thresholds: Thresholds | None = None,
        stability_period: float = 3.0,
        transition_delay: float = 1.0,
        ramp_steps: int = 10,
        ramp_step_interval: float = 0.05,
        calibration: CalibrationStrategy | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.bus = bus or EventBus()
        self.scheduler = scheduler
        self._selector = selector
        self._calibration = calibration or KeepThresholds()
        self.session_id: str | None = None

        self.orchestrator = TransitionOrchestrator(
            selector,
            audio,
            scheduler,
            self.bus,
            stability_period=stability_period,
            transition_delay=transition_delay,
            ramp_steps=ramp_steps,
            ramp_step_interval=ramp_step_interval,
        )
        self.processor = MotionProcessor(
            feed,
            signal_filter=signal_filter,
            classifier=IntensityClassifier(thresholds),
            bus=self.bus,
            on_level=self._route_level,
        )
        self.mode_controller = ModeController(self.orchestrator, self.processor, selector, self.bus)

    # ── Session lifecycle ─────────────────────────────────────

    def start(self) -> None:
        """Start the sensor session (raises ``SensorUnavailable`` on failure)."""
        if self.processor.is_active:
            return
        self.processor.start()
        self.session_id = bind_session()

    def stop(self) -> None:
        """Stop the sensor session.

        Cancels the stability timer and any running ramp (no swap is
        performed) and resets the smoothed signal.
        """
        self.processor.stop()
        self.orchestrator.cancel()
        self.orchestrator.debouncer.reset()
        self._end_session()

    def shutdown(self) -> None:
        """Stop everything and cancel every outstanding timer."""
        self.processor.stop()
        self.orchestrator.shutdown()
        logger.info("engine.shutdown")
        self._end_session()

    @property
    def is_active(self) -> bool:
        return self.processor.is_active

    # ── Mode ──────────────────────────────────────────────────

    @property
    def mode(self) -> Mode:
        return self.mode_controller.mode

    def enable_auto_mode(self) -> None:
        self.mode_controller.enable_auto_mode()

    def disable_auto_mode(self) -> None:
        self.mode_controller.disable_auto_mode()

    def manual_select(self, level: IntensityLevel) -> TrackRef | None:
        return self.mode_controller.manual_select(level)

    # ── Calibration ───────────────────────────────────────────

    @property
    def thresholds(self) -> Thresholds:
        return self.processor.classifier.thresholds

    def calibrate_thresholds(self, strategy: CalibrationStrategy | None = None) -> Thresholds:
        """Run the calibration hook and return the thresholds now in force."""
        strategy = strategy or self._calibration
        updated = strategy.calibrate(self.thresholds)
        if updated is not None and updated != self.thresholds:
            self.processor.classifier.thresholds = updated
        else:
            logger.info("engine.calibration_unchanged", strategy=strategy.name)
        return self.thresholds

    def run_guided_calibration(self, guided: GuidedCalibration | None = None) -> GuidedCalibration:
        """Record a guided session on the scheduler, then apply its result."""
        guided = guided or GuidedCalibration()
        self.bus.subscribe(guided)

        def finish() -> None:
            self.bus.unsubscribe(guided)
            self.calibrate_thresholds(guided)

        guided.run(self.scheduler, finish)
        return guided

    # ── Read-only views ───────────────────────────────────────

    @property
    def level(self) -> IntensityLevel | None:
        return self.processor.level

    @property
    def confirmed_level(self) -> IntensityLevel:
        return self.orchestrator.debouncer.confirmed_level

    @property
    def movement(self) -> MovementType | None:
        return self.processor.movement

    @property
    def style(self) -> MusicStyle:
        return self.orchestrator.style

    @property
    def transition_in_progress(self) -> bool:
        return self.orchestrator.in_progress

    def recommendations(self) -> list[str]:
        """Listening suggestions for the live level (Calm before any sample)."""
        return recommendations_for(self.level or IntensityLevel.CALM)

    # ── Internals ─────────────────────────────────────────────

    def _end_session(self) -> None:
        if self.session_id is not None:
            clear_session()
            self.session_id = None

    def _route_level(self, level: IntensityLevel) -> None:
        if self.mode_controller.is_auto:
            self.orchestrator.observe(level)


# ── Factory ───────────────────────────────────────────────────


def create_engine(
    settings: Settings,
    *,
    feed: SensorFeed,
    selector: TrackSelector,
    audio: AudioOutput,
    scheduler: Scheduler,
    calibration: CalibrationStrategy | None = None,
    bus: EventBus | None = None,
) -> MotionEngine:
    """Build a :class:`MotionEngine` wired from application settings."""
    return MotionEngine(
        feed,
        selector,
        audio,
        scheduler,
        signal_filter=SignalFilter(
            smoothing_factor=settings.smoothing_factor,
            accel_weight=settings.accel_weight,
            gyro_weight=settings.gyro_weight,
        ),
        thresholds=settings.thresholds(),
        stability_period=settings.stability_period_seconds,
        transition_delay=settings.transition_delay_seconds,
        ramp_steps=settings.ramp_steps,
        ramp_step_interval=settings.ramp_step_interval_seconds,
        calibration=calibration,
        bus=bus,
    )
