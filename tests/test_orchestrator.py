"""Tests for the transition orchestrator (guards, ramp sequencing, failures)."""

from __future__ import annotations

import pytest

from conftest import SpySelector, make_track
from jazz_motion.errors import InvalidConfiguration
from jazz_motion.models import (
    ConfirmedTransition,
    IntensityLevel,
    MusicStyle,
    StyleChanged,
    TransitionProgress,
)
from jazz_motion.transition.orchestrator import TransitionOrchestrator

C, A, E = IntensityLevel.CALM, IntensityLevel.ACTIVE, IntensityLevel.ENERGETIC


def build(selector, audio, scheduler, bus, **overrides):
    options = {"stability_period": 3.0, "transition_delay": 1.0}
    options.update(overrides)
    return TransitionOrchestrator(selector, audio, scheduler, bus, **options)


def confirm(orchestrator, scheduler, level, period=3.0):
    orchestrator.observe(level)
    scheduler.advance(period)


class TestHappyPath:
    def test_full_transition(self, selector, audio, scheduler, bus, recorder):
        orch = build(selector, audio, scheduler, bus)
        confirm(orch, scheduler, A)

        assert orch.in_progress
        assert orch.style == MusicStyle.BEBOP
        assert selector.calls == []

        scheduler.advance(0.5)  # fade-out complete
        assert selector.calls == [A]
        assert audio.volume < 0.7

        scheduler.advance(0.5)  # fade-in complete
        assert audio.volume == 0.7
        assert not orch.in_progress
        assert orch.swap_count == 1
        assert orch.last_change_time == pytest.approx(3.0)

    def test_event_sequence(self, selector, audio, scheduler, bus, recorder):
        orch = build(selector, audio, scheduler, bus)
        confirm(orch, scheduler, A)
        scheduler.advance(1.0)

        kinds = [type(e) for e in recorder.events]
        assert kinds == [ConfirmedTransition, TransitionProgress, StyleChanged, TransitionProgress]
        assert recorder.of_type(ConfirmedTransition)[0].level == A
        assert [p.in_progress for p in recorder.of_type(TransitionProgress)] == [True, False]
        assert recorder.of_type(StyleChanged)[0].style == MusicStyle.BEBOP

    def test_volume_never_leaves_bounds(self, selector, audio, scheduler, bus):
        orch = build(selector, audio, scheduler, bus)
        confirm(orch, scheduler, E)
        scheduler.advance(1.0)
        assert all(0.0 <= v <= 0.7 for v in audio.history)
        assert 0.0 in audio.history

    def test_rejects_negative_delay(self, selector, audio, scheduler, bus):
        with pytest.raises(InvalidConfiguration):
            build(selector, audio, scheduler, bus, transition_delay=-1.0)


class TestGuards:
    def test_redundant_match_suppresses_swap(self, audio, scheduler, bus, recorder):
        selector = SpySelector(current=make_track(A))
        orch = build(selector, audio, scheduler, bus)
        confirm(orch, scheduler, A)
        scheduler.advance(2.0)

        assert len(recorder.of_type(ConfirmedTransition)) == 1
        assert recorder.of_type(TransitionProgress) == []
        assert selector.calls == []
        assert audio.history == []
        assert not orch.should_change(A)

    def test_cooldown_suppresses_second_swap(self, selector, audio, scheduler, bus, recorder):
        orch = build(selector, audio, scheduler, bus, transition_delay=5.0)
        confirm(orch, scheduler, A)  # swap starts at t=3
        confirm(orch, scheduler, E)  # confirmed at t=6, only 3s later
        scheduler.advance(2.0)

        assert [c.level for c in recorder.of_type(ConfirmedTransition)] == [A, E]
        assert selector.calls == [A]
        assert orch.swap_count == 1

    def test_cooldown_elapsed_allows_swap(self, selector, audio, scheduler, bus):
        orch = build(selector, audio, scheduler, bus, transition_delay=1.0)
        confirm(orch, scheduler, A)
        confirm(orch, scheduler, E)
        scheduler.advance(2.0)
        assert selector.calls == [A, E]

    def test_first_transition_has_no_cooldown(self, selector, audio, scheduler, bus):
        orch = build(selector, audio, scheduler, bus, transition_delay=100.0)
        assert orch.last_change_time is None
        assert orch.should_change(A)

    def test_current_track_error_does_not_block(self, audio, scheduler, bus):
        class Broken(SpySelector):
            def current_track(self):
                raise RuntimeError("no player")

        selector = Broken()
        orch = build(selector, audio, scheduler, bus)
        assert orch.should_change(A)


class TestCollaboratorFailures:
    def test_no_track_restores_volume(self, selector, audio, scheduler, bus):
        selector.available = False
        orch = build(selector, audio, scheduler, bus)
        confirm(orch, scheduler, E)
        scheduler.advance(1.0)

        assert selector.calls == [E]
        assert selector.current is None
        assert audio.volume == 0.7
        assert not orch.in_progress

    def test_selector_exception_is_contained(self, selector, audio, scheduler, bus):
        selector.raises = True
        orch = build(selector, audio, scheduler, bus)
        confirm(orch, scheduler, E)
        scheduler.advance(1.0)

        assert selector.calls == [E]
        assert audio.volume == 0.7
        assert not orch.in_progress


class TestInterruption:
    def test_new_confirmation_restarts_ramp(self, selector, audio, scheduler, bus, recorder):
        orch = build(selector, audio, scheduler, bus, stability_period=0.12, transition_delay=0.0)
        orch.observe(A)
        scheduler.advance(0.12)  # A confirmed, fade-out starts
        assert orch.in_progress

        orch.observe(E)
        scheduler.advance(0.12)  # two fade-out steps done, E confirmed
        assert [c.level for c in recorder.of_type(ConfirmedTransition)] == [A, E]
        assert 0.0 < audio.volume < 0.7

        scheduler.advance(2.0)
        assert selector.calls == [E]
        assert audio.volume == 0.7
        assert not orch.in_progress
        assert [p.in_progress for p in recorder.of_type(TransitionProgress)] == [True, False]
        assert orch.style == MusicStyle.FUSION

    def test_confirmation_back_to_playing_level_abandons_swap(self, audio, scheduler, bus, recorder):
        selector = SpySelector(current=make_track(C))
        orch = build(selector, audio, scheduler, bus, stability_period=0.12, transition_delay=0.0)
        orch.observe(A)
        scheduler.advance(0.12)  # A confirmed, fade-out towards A starts
        assert orch.target_level == A

        orch.observe(C)
        scheduler.advance(0.12)  # two fade-out steps done, Calm confirmed
        assert orch.target_level is None

        scheduler.advance(2.0)
        assert [c.level for c in recorder.of_type(ConfirmedTransition)] == [A, C]
        assert selector.calls == []
        assert selector.current.intensity == C
        assert orch.swap_count == 0
        assert audio.volume == 0.7
        assert 0.0 not in audio.history
        assert not orch.in_progress
        assert [p.in_progress for p in recorder.of_type(TransitionProgress)] == [True, False]
        assert orch.style == MusicStyle.SMOOTH
        assert orch.debouncer.confirmed_level == C

    def test_confirmation_of_ramp_target_keeps_ramp(self, selector, audio, scheduler, bus, recorder):
        orch = build(selector, audio, scheduler, bus, stability_period=0.12, transition_delay=0.0)
        orch.observe(A)
        scheduler.advance(0.12)
        orch.debouncer.reinject(A)
        scheduler.advance(0.12)  # A confirmed again mid fade-out

        assert [c.level for c in recorder.of_type(ConfirmedTransition)] == [A, A]
        assert not orch.should_change(A)
        scheduler.advance(2.0)
        assert selector.calls == [A]
        assert audio.volume == 0.7
        assert 0.0 in audio.history

    def test_clearing_candidate_keeps_running_swap(self, selector, audio, scheduler, bus):
        orch = build(selector, audio, scheduler, bus)
        confirm(orch, scheduler, A)
        orch.debouncer.clear()  # what disabling auto mode does
        scheduler.advance(1.0)

        assert selector.calls == [A]
        assert orch.swap_count == 1
        assert audio.volume == 0.7
        assert not orch.in_progress

    def test_abandon_swap_only_during_fade_out(self, selector, audio, scheduler, bus):
        orch = build(selector, audio, scheduler, bus)
        assert not orch.abandon_swap()

        confirm(orch, scheduler, A)
        scheduler.advance(0.2)
        assert orch.abandon_swap()
        scheduler.advance(1.0)
        assert selector.calls == []
        assert audio.volume == 0.7
        assert not orch.in_progress

        confirm(orch, scheduler, E)
        scheduler.advance(0.5)  # swapped, fading in
        assert not orch.abandon_swap()
        scheduler.advance(0.5)
        assert selector.calls == [E]
        assert audio.volume == 0.7

    def test_cancel_aborts_ramp_without_swap(self, selector, audio, scheduler, bus, recorder):
        orch = build(selector, audio, scheduler, bus)
        confirm(orch, scheduler, A)
        scheduler.advance(0.2)
        stepped = audio.volume

        orch.cancel()
        scheduler.advance(2.0)
        assert selector.calls == []
        assert audio.volume == stepped
        assert not orch.in_progress
        assert recorder.of_type(TransitionProgress)[-1].in_progress is False

    def test_shutdown_resets_confirmed_level(self, selector, audio, scheduler, bus):
        orch = build(selector, audio, scheduler, bus)
        confirm(orch, scheduler, A)
        orch.shutdown()
        assert orch.debouncer.confirmed_level == IntensityLevel.CALM
        assert scheduler.pending == 0
