"""Shared pytest fixtures."""

from __future__ import annotations

import sys

import pytest
import structlog

from jazz_motion.collaborators.base import SampleHandler, SensorFeed, TrackSelector
from jazz_motion.collaborators.catalog import TrackCatalog
from jazz_motion.collaborators.memory import MemoryAudioOutput
from jazz_motion.engine import MotionEngine
from jazz_motion.errors import SensorUnavailable
from jazz_motion.events.bus import EventBus, EventRecorder
from jazz_motion.models import IntensityLevel, JazzTrack, MotionSample, Vector3
from jazz_motion.scheduler.timers import ManualScheduler


def make_sample(accel: float = 0.0, gyro: float = 0.0, timestamp: float = 0.0) -> MotionSample:
    """Sample with *accel* on the x axis and *gyro* around the z axis."""
    return MotionSample(
        acceleration=Vector3(x=accel),
        rotation_rate=Vector3(z=gyro),
        timestamp=timestamp,
    )


def make_track(intensity: IntensityLevel, name: str = "Test Track") -> JazzTrack:
    return JazzTrack(
        name=name,
        artist="Test Artist",
        filename=name.lower().replace(" ", "_"),
        bpm=100,
        intensity=intensity,
    )


class StubFeed(SensorFeed):
    """Sensor feed driven by the test through :meth:`push`."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.handler: SampleHandler | None = None
        self.start_calls = 0

    def start(self, handler: SampleHandler) -> None:
        self.start_calls += 1
        if not self.available:
            raise SensorUnavailable("no motion hardware")
        self.handler = handler

    def stop(self) -> None:
        self.handler = None

    @property
    def is_active(self) -> bool:
        return self.handler is not None

    def push(self, sample: MotionSample) -> None:
        assert self.handler is not None, "feed not started"
        self.handler(sample)


class SpySelector(TrackSelector):
    """Track selector that records every request."""

    def __init__(self, current: JazzTrack | None = None) -> None:
        self.current = current
        self.calls: list[IntensityLevel] = []
        self.available = True
        self.raises = False

    def select_track(self, intensity: IntensityLevel) -> JazzTrack | None:
        self.calls.append(intensity)
        if self.raises:
            raise RuntimeError("player crashed")
        if not self.available:
            return None
        self.current = make_track(intensity, name=f"{intensity.value} Tune")
        return self.current

    def current_track(self) -> JazzTrack | None:
        return self.current


def drive(feed: StubFeed, scheduler: ManualScheduler, accel: float, seconds: float, interval: float = 0.1) -> None:
    """Push a constant-acceleration sample every *interval* for *seconds*."""
    for _ in range(int(round(seconds / interval))):
        feed.push(make_sample(accel, timestamp=scheduler.now()))
        scheduler.advance(interval)


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo CLI logging setup so later tests don't log to a closed capture stream."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    # Module-level proxies cache their bound logger once caching was enabled.
    for name, module in list(sys.modules.items()):
        proxy = getattr(module, "logger", None) if name.startswith("jazz_motion") else None
        if isinstance(proxy, structlog._config.BoundLoggerLazyProxy):
            proxy.__dict__.pop("bind", None)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def audio() -> MemoryAudioOutput:
    return MemoryAudioOutput(volume=0.7)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus: EventBus) -> EventRecorder:
    rec = EventRecorder()
    bus.subscribe(rec)
    return rec


@pytest.fixture
def selector() -> SpySelector:
    return SpySelector()


@pytest.fixture
def catalog() -> TrackCatalog:
    return TrackCatalog(seed=7)


@pytest.fixture
def feed() -> StubFeed:
    return StubFeed()


@pytest.fixture
def engine(
    feed: StubFeed,
    selector: SpySelector,
    audio: MemoryAudioOutput,
    scheduler: ManualScheduler,
    bus: EventBus,
) -> MotionEngine:
    return MotionEngine(feed, selector, audio, scheduler, bus=bus)
