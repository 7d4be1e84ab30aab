"""Shared data models used across the engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from jazz_motion.errors import InvalidConfiguration

# ── Enums ─────────────────────────────────────────────────────


class IntensityLevel(str, Enum):
    """Discrete motion intensity, ordered from calmest to most energetic."""

    CALM = "Calm"
    MODERATE = "Moderate"
    ACTIVE = "Active"
    ENERGETIC = "Energetic"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    # str already defines ordering (alphabetical), so every operator is
    # overridden explicitly.
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, IntensityLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, IntensityLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, IntensityLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, IntensityLevel):
            return NotImplemented
        return self.rank >= other.rank


_LEVEL_ORDER: tuple[IntensityLevel, ...] = (
    IntensityLevel.CALM,
    IntensityLevel.MODERATE,
    IntensityLevel.ACTIVE,
    IntensityLevel.ENERGETIC,
)


class MusicStyle(str, Enum):
    """Jazz style associated with each intensity level."""

    SMOOTH = "Smooth Jazz"
    SWING = "Swing"
    BEBOP = "Bebop"
    FUSION = "Fusion"

    @property
    def description(self) -> str:
        return _STYLE_DESCRIPTIONS[self]


_STYLE_DESCRIPTIONS: dict[MusicStyle, str] = {
    MusicStyle.SMOOTH: "Smooth jazz for calm moments",
    MusicStyle.SWING: "Swing for rhythmic movement",
    MusicStyle.BEBOP: "Fast bebop for active movement",
    MusicStyle.FUSION: "Fusion for energetic activity",
}


class MovementType(str, Enum):
    """Dominant character of the current movement."""

    LINEAR = "linear"  # walking, running
    ROTATION = "rotation"  # turning, spinning
    MIXED = "mixed"


class Mode(str, Enum):
    """Transition policy: automatic track changes or manual selection only."""

    AUTO = "auto"
    MANUAL = "manual"


# ── Sensor samples ────────────────────────────────────────────


class Vector3(BaseModel):
    """A 3-axis reading (g for acceleration, rad/s for rotation rate)."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @property
    def magnitude(self) -> float:
        """Euclidean norm of the vector."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)


class MotionSample(BaseModel):
    """One inertial sample pushed by the sensor feed."""

    model_config = ConfigDict(frozen=True)

    acceleration: Vector3 = Field(default_factory=Vector3)
    rotation_rate: Vector3 = Field(default_factory=Vector3)
    timestamp: float = 0.0


# ── Tracks ────────────────────────────────────────────────────


class JazzTrack(BaseModel):
    """A playable track tagged with the intensity it suits."""

    model_config = ConfigDict(frozen=True)

    name: str
    artist: str
    filename: str
    bpm: int
    intensity: IntensityLevel

    @property
    def base_frequency(self) -> float:
        """Tone frequency (Hz) used by demo synthesis for this track's level."""
        return _BASE_FREQUENCIES[self.intensity]


_BASE_FREQUENCIES: dict[IntensityLevel, float] = {
    IntensityLevel.CALM: 220.0,  # A3
    IntensityLevel.MODERATE: 330.0,  # E4
    IntensityLevel.ACTIVE: 440.0,  # A4
    IntensityLevel.ENERGETIC: 660.0,  # E5
}


# ── Mutable / value state ─────────────────────────────────────


@dataclass(slots=True)
class SmoothedSignal:
    """Exponentially smoothed per-channel magnitudes for the active session."""

    accel: float = 0.0
    gyro: float = 0.0

    def reset(self) -> None:
        self.accel = 0.0
        self.gyro = 0.0


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Lower bounds of the Moderate, Active and Energetic bands.

    Must be non-negative and strictly increasing.
    """

    calm: float = 0.2
    moderate: float = 0.8
    active: float = 1.5

    def __post_init__(self) -> None:
        values = (self.calm, self.moderate, self.active)
        if any(math.isnan(v) for v in values):
            raise InvalidConfiguration(f"Thresholds must be numbers, got {values}")
        if self.calm < 0:
            raise InvalidConfiguration(f"Calm threshold must be >= 0, got {self.calm}")
        if not (self.calm < self.moderate < self.active):
            raise InvalidConfiguration(
                "Thresholds must be strictly increasing: "
                f"calm={self.calm}, moderate={self.moderate}, active={self.active}"
            )


@dataclass(frozen=True, slots=True)
class PendingChange:
    """A candidate level waiting out its stability period."""

    candidate: IntensityLevel
    start_time: float


@dataclass(slots=True)
class TransitionState:
    """Whether a crossfade is running, and when the last one started."""

    in_progress: bool = False
    last_change_time: float | None = None


# ── Events ────────────────────────────────────────────────────


class EngineEvent(BaseModel):
    """Base class for everything published on the event bus."""

    model_config = ConfigDict(frozen=True)

    emitted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class SmoothedValuesUpdated(EngineEvent):
    accel: float
    gyro: float
    combined: float


class IntensityChanged(EngineEvent):
    level: IntensityLevel


class ConfirmedTransition(EngineEvent):
    """A debounced level change; reported even when the swap is suppressed."""

    level: IntensityLevel


class TransitionProgress(EngineEvent):
    in_progress: bool


class StyleChanged(EngineEvent):
    style: MusicStyle


class MovementPatternDetected(EngineEvent):
    movement: MovementType
    level: IntensityLevel


class ModeChanged(EngineEvent):
    mode: Mode
