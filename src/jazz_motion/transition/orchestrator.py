"""Transition orchestrator — turns confirmed level changes into track swaps.

On every confirmed change the orchestrator:

1. reports :class:`ConfirmedTransition` to observers;
2. suppresses the swap if the level is already what plays after the
   running ramp (the ramp's target while a fade-out is pending, the current
   track otherwise; *redundant match*) or if the previous swap started less
   than ``transition_delay`` seconds ago (*cooldown*);
3. otherwise fades the volume out, asks the track selector for the new
   level, and fades back in to the volume captured before the ramp.

A confirmed change that passes both guards while a ramp is still running
cancels that ramp and restarts the fade-out from the current volume; the
restore target stays the volume captured before the first transition.
A confirmed change back to the level of the track still playing during a
fade-out abandons the pending swap and fades back up to the restore volume.

A ramp that is not cancelled always completes its swap, whatever the mode.

Collaborator failures (no track for a level, selector raising) are logged
and leave the current track playing.
"""

from __future__ import annotations

import structlog

from jazz_motion.collaborators.base import AudioOutput, TrackRef, TrackSelector
from jazz_motion.errors import InvalidConfiguration
from jazz_motion.events.bus import EventBus
from jazz_motion.models import (
    ConfirmedTransition,
    IntensityLevel,
    MusicStyle,
    StyleChanged,
    TransitionProgress,
    TransitionState,
)
from jazz_motion.scheduler.timers import Scheduler
from jazz_motion.styles import style_for
from jazz_motion.transition.debouncer import DEFAULT_STABILITY_PERIOD, StabilityDebouncer
from jazz_motion.transition.ramp import DEFAULT_RAMP_STEPS, DEFAULT_STEP_INTERVAL, VolumeRamp

logger = structlog.get_logger(__name__)

DEFAULT_TRANSITION_DELAY = 1.0


class TransitionOrchestrator:
    """Owns the debouncer and the ramp; holds non-owning collaborator handles.

    Parameters
    ----------
    selector : TrackSelector
        Picks tracks and reports the current one.
    audio : AudioOutput
        Volume control driven by the ramp.
    scheduler : Scheduler
        Shared timeline.
    bus : EventBus | None
        Where transition events are published.
    """

    def __init__(
        self,
        selector: TrackSelector,
        audio: AudioOutput,
        scheduler: Scheduler,
        bus: EventBus | None = None,
        *,
        stability_period: float = DEFAULT_STABILITY_PERIOD,
        transition_delay: float = DEFAULT_TRANSITION_DELAY,
        ramp_steps: int = DEFAULT_RAMP_STEPS,
        ramp_step_interval: float = DEFAULT_STEP_INTERVAL,
    ) -> None:
        if transition_delay < 0:
            raise InvalidConfiguration(f"Transition delay must be >= 0, got {transition_delay}")
        self._selector = selector
        self._audio = audio
        self._scheduler = scheduler
        self._bus = bus or EventBus()
        self._transition_delay = transition_delay

        self.debouncer = StabilityDebouncer(scheduler, self._on_confirmed, stability_period)
        self.ramp = VolumeRamp(audio, scheduler, steps=ramp_steps, step_interval=ramp_step_interval)

        self._state = TransitionState()
        self._style = MusicStyle.SMOOTH
        self._restore_volume: float | None = None
        self._target_level: IntensityLevel | None = None
        self._swaps = 0

    # ── State ─────────────────────────────────────────────────

    @property
    def in_progress(self) -> bool:
        return self._state.in_progress

    @property
    def last_change_time(self) -> float | None:
        return self._state.last_change_time

    @property
    def style(self) -> MusicStyle:
        return self._style

    @property
    def swap_count(self) -> int:
        """Number of track-selection requests issued by automatic transitions."""
        return self._swaps

    @property
    def target_level(self) -> IntensityLevel | None:
        """Level the running fade-out will swap to; ``None`` once swapped."""
        return self._target_level

    # ── Input ─────────────────────────────────────────────────

    def observe(self, level: IntensityLevel) -> None:
        """Feed a classified level into the debouncer."""
        self.debouncer.observe(level)

    def cancel(self) -> None:
        """Drop the pending candidate and abort any running ramp.

        The track swap of an aborted ramp is not performed and the volume
        stays at its last stepped value.
        """
        self.debouncer.clear()
        self._target_level = None
        if self.ramp.cancel():
            self._restore_volume = None
            self._set_in_progress(False)

    def abandon_swap(self) -> bool:
        """Drop the swap of a running fade-out and fade back to the restore volume.

        Returns ``True`` if a swap was pending.  A ramp already fading in is
        left to finish.
        """
        if self._target_level is None:
            return False
        logger.info("orchestrator.swap_abandoned", level=self._target_level.value)
        self._target_level = None
        self.ramp.fade_in(self._restore_target(), self._finish, start=self._audio.volume)
        return True

    def shutdown(self) -> None:
        """Cancel every outstanding timer and forget the session."""
        self.cancel()
        self.debouncer.reset()

    # ── Guards ────────────────────────────────────────────────

    def should_change(self, level: IntensityLevel) -> bool:
        """Apply the redundant-match and cooldown guards for *level*."""
        if self._target_level is not None:
            heading_to = self._target_level
        else:
            current = self._current_track()
            heading_to = current.intensity if current is not None else None
        if heading_to == level:
            logger.info("orchestrator.suppressed", level=level.value, reason="already_playing")
            return False

        last = self._state.last_change_time
        if last is not None:
            elapsed = self._scheduler.now() - last
            if elapsed < self._transition_delay:
                logger.info(
                    "orchestrator.suppressed",
                    level=level.value,
                    reason="cooldown",
                    elapsed=round(elapsed, 3),
                )
                return False
        return True

    # ── Sequencing ────────────────────────────────────────────

    def _on_confirmed(self, level: IntensityLevel) -> None:
        self._bus.emit(ConfirmedTransition(level=level))
        if self._target_level is not None and self._target_level != level:
            current = self._current_track()
            if current is not None and current.intensity == level:
                # Back to what is still playing: no swap needed.
                self._update_style(level)
                self.abandon_swap()
                return
        if self.should_change(level):
            self._begin_transition(level)

    def _begin_transition(self, level: IntensityLevel) -> None:
        if self.ramp.in_progress:
            self.ramp.cancel()
            logger.info("orchestrator.ramp_restarted", level=level.value, volume=round(self._audio.volume, 4))
        if self._restore_volume is None:
            self._restore_volume = self._audio.volume

        self._state.last_change_time = self._scheduler.now()
        self._target_level = level
        self._set_in_progress(True)
        self._update_style(level)
        logger.info("orchestrator.transition_started", level=level.value, restore_volume=self._restore_volume)
        self.ramp.fade_out(lambda: self._swap(level))

    def _swap(self, level: IntensityLevel) -> None:
        self._target_level = None
        self._swaps += 1
        try:
            track = self._selector.select_track(level)
        except Exception:
            logger.exception("orchestrator.selector_error", level=level.value)
            track = None
        if track is None:
            logger.warning("orchestrator.no_track", level=level.value)
        self.ramp.fade_in(self._restore_target(), self._finish)

    def _finish(self) -> None:
        self._restore_volume = None
        self._set_in_progress(False)
        logger.info("orchestrator.transition_finished", volume=round(self._audio.volume, 4))

    # ── Helpers ───────────────────────────────────────────────

    def _restore_target(self) -> float:
        return self._restore_volume if self._restore_volume is not None else self._audio.volume

    def _current_track(self) -> TrackRef | None:
        try:
            return self._selector.current_track()
        except Exception:
            logger.exception("orchestrator.current_track_error")
            return None

    def _set_in_progress(self, value: bool) -> None:
        if self._state.in_progress == value:
            return
        self._state.in_progress = value
        self._bus.emit(TransitionProgress(in_progress=value))

    def _update_style(self, level: IntensityLevel) -> None:
        style = style_for(level)
        if style != self._style:
            self._style = style
            self._bus.emit(StyleChanged(style=style))
