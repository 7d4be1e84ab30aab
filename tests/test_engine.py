"""End-to-end tests for the motion engine and its mode policy."""

from __future__ import annotations

import pytest
import structlog

from conftest import StubFeed, drive, make_sample
from jazz_motion.collaborators.catalog import TrackCatalog
from jazz_motion.collaborators.memory import MemoryAudioOutput, ReplaySensorFeed
from jazz_motion.config import Settings
from jazz_motion.engine import MotionEngine, create_engine
from jazz_motion.errors import SensorUnavailable
from jazz_motion.models import (
    ConfirmedTransition,
    IntensityLevel,
    Mode,
    ModeChanged,
    MusicStyle,
)
from jazz_motion.styles import recommendations_for

E = IntensityLevel.ENERGETIC

# Constant 3.0 g acceleration reaches Energetic on the fourth sample (t=0.3),
# so with a 3 s stability period it is confirmed at t=3.3.
ENERGETIC_ACCEL = 3.0


# ── Session lifecycle ────────────────────────────────────────


class TestLifecycle:
    def test_start_failure_emits_nothing(self, selector, audio, scheduler, bus, recorder):
        engine = MotionEngine(StubFeed(available=False), selector, audio, scheduler, bus=bus)
        with pytest.raises(SensorUnavailable):
            engine.start()
        assert not engine.is_active
        assert recorder.events == []

    def test_auto_transition_end_to_end(self, engine, feed, selector, audio, scheduler, recorder):
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 5.0)

        confirmed = recorder.of_type(ConfirmedTransition)
        assert [c.level for c in confirmed] == [E]
        assert selector.calls == [E]
        assert engine.confirmed_level == E
        assert engine.style == MusicStyle.FUSION
        assert not engine.transition_in_progress
        assert audio.volume == 0.7

    def test_stop_cancels_ramp(self, engine, feed, selector, audio, scheduler):
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 3.5)
        assert engine.transition_in_progress

        engine.stop()
        stepped = audio.volume
        scheduler.advance(2.0)

        assert not engine.is_active
        assert not engine.transition_in_progress
        assert selector.calls == []
        assert 0.0 < stepped < 0.7
        assert audio.volume == stepped
        assert engine.level is None
        assert engine.confirmed_level == IntensityLevel.CALM
        assert engine.processor.combined == 0.0
        assert scheduler.pending == 0

    def test_restart_after_stop(self, engine, feed, selector, scheduler):
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 1.0)
        engine.stop()
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 5.0)
        assert feed.start_calls == 2
        assert selector.calls == [E]

    def test_shutdown_clears_timers(self, engine, feed, scheduler):
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 1.0)
        engine.shutdown()
        assert scheduler.pending == 0
        assert not engine.is_active

    def test_session_is_bound_to_log_context(self, engine):
        engine.start()
        assert structlog.contextvars.get_contextvars()["session"] == engine.session_id
        engine.stop()
        assert engine.session_id is None
        assert "session" not in structlog.contextvars.get_contextvars()

    def test_recommendations_follow_live_level(self, engine, feed, scheduler):
        assert engine.recommendations() == recommendations_for(IntensityLevel.CALM)
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 1.0)
        assert engine.recommendations() == recommendations_for(E)


# ── Mode policy ──────────────────────────────────────────────


class TestModePolicy:
    def test_disable_clears_pending(self, engine, feed, scheduler, recorder):
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 2.0)
        assert engine.orchestrator.debouncer.pending.candidate == E

        engine.disable_auto_mode()
        assert engine.mode == Mode.MANUAL
        assert engine.orchestrator.debouncer.pending is None
        assert recorder.of_type(ModeChanged)[-1].mode == Mode.MANUAL

    def test_manual_mode_ignores_levels(self, engine, feed, selector, scheduler, recorder):
        engine.disable_auto_mode()
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 6.0)
        assert recorder.of_type(ConfirmedTransition) == []
        assert selector.calls == []
        assert engine.level == E

    def test_reenable_needs_full_stability_period(self, engine, feed, selector, scheduler, recorder):
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 2.0)
        engine.disable_auto_mode()
        engine.enable_auto_mode()  # t=2.0, live level re-injected

        drive(feed, scheduler, ENERGETIC_ACCEL, 2.9)
        assert recorder.of_type(ConfirmedTransition) == []

        drive(feed, scheduler, ENERGETIC_ACCEL, 0.2)
        assert [c.level for c in recorder.of_type(ConfirmedTransition)] == [E]

    def test_enable_when_stopped_does_not_reinject(self, engine):
        engine.disable_auto_mode()
        engine.enable_auto_mode()
        assert engine.mode == Mode.AUTO
        assert engine.orchestrator.debouncer.pending is None

    def test_manual_select_bypasses_transition(self, engine, selector, audio, recorder):
        track = engine.manual_select(IntensityLevel.ACTIVE)
        assert track is not None
        assert track.intensity == IntensityLevel.ACTIVE
        assert selector.calls == [IntensityLevel.ACTIVE]
        assert engine.mode == Mode.MANUAL
        assert audio.history == []
        assert recorder.of_type(ConfirmedTransition) == []

    def test_disabling_auto_mode_mid_ramp_still_swaps(self, engine, feed, selector, audio, scheduler):
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 3.5)
        assert engine.transition_in_progress

        engine.disable_auto_mode()
        scheduler.advance(2.0)
        assert selector.calls == [E]
        assert audio.volume == 0.7
        assert not engine.transition_in_progress

    def test_manual_select_during_ramp_abandons_swap(self, engine, feed, selector, audio, scheduler):
        engine.start()
        drive(feed, scheduler, ENERGETIC_ACCEL, 3.5)
        assert engine.orchestrator.target_level == E

        engine.manual_select(IntensityLevel.ACTIVE)
        scheduler.advance(2.0)
        assert selector.calls == [IntensityLevel.ACTIVE]
        assert selector.current.intensity == IntensityLevel.ACTIVE
        assert audio.volume == 0.7
        assert not engine.transition_in_progress

    def test_manual_select_failure_returns_none(self, engine, selector):
        selector.raises = True
        assert engine.manual_select(E) is None
        assert engine.mode == Mode.MANUAL

    def test_mode_event_only_on_change(self, engine, recorder):
        engine.enable_auto_mode()
        assert recorder.of_type(ModeChanged) == []
        engine.disable_auto_mode()
        engine.disable_auto_mode()
        assert len(recorder.of_type(ModeChanged)) == 1


# ── Wiring from settings ─────────────────────────────────────


class TestCreateEngine:
    def test_settings_are_applied(self, scheduler):
        settings = Settings(stability_period_seconds=1.5, transition_delay_seconds=0.0, calm_threshold=0.1)
        engine = create_engine(
            settings,
            feed=StubFeed(),
            selector=TrackCatalog(seed=1),
            audio=MemoryAudioOutput(),
            scheduler=scheduler,
        )
        assert engine.orchestrator.debouncer.stability_period == 1.5
        assert engine.thresholds.calm == 0.1

    def test_replay_feed_drives_engine(self, scheduler):
        catalog = TrackCatalog(seed=3)
        audio = MemoryAudioOutput()
        samples = [make_sample(ENERGETIC_ACCEL) for _ in range(60)]
        feed = ReplaySensorFeed(samples, scheduler)
        engine = create_engine(Settings(), feed=feed, selector=catalog, audio=audio, scheduler=scheduler)
        engine.start()
        scheduler.advance(8.0)

        assert feed.exhausted
        assert not engine.is_active
        assert catalog.current_track().intensity == E
        assert audio.volume == 0.7
