"""Abstract contracts for the engine's external collaborators.

The engine never talks to the operating system directly.  A host
application provides:

* a :class:`SensorFeed` pushing :class:`MotionSample` objects,
* a :class:`TrackSelector` that picks and reports the playing track,
* an :class:`AudioOutput` whose volume the ramp controller drives.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Protocol, runtime_checkable

from jazz_motion.models import IntensityLevel, MotionSample

SampleHandler = Callable[[MotionSample], None]


@runtime_checkable
class TrackRef(Protocol):
    """Anything that can be played and knows the intensity it suits."""

    @property
    def intensity(self) -> IntensityLevel: ...


class SensorFeed(ABC):
    """Contract for a periodic inertial sample source."""

    @abstractmethod
    def start(self, handler: SampleHandler) -> None:
        """Begin pushing samples to *handler*.

        Raises :class:`~jazz_motion.errors.SensorUnavailable` if the feed
        cannot begin; in that case nothing is left running.
        """

    @abstractmethod
    def stop(self) -> None:
        """Stop pushing samples.  Safe to call when already stopped."""

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """``True`` between a successful :meth:`start` and :meth:`stop`."""


class TrackSelector(ABC):
    """Contract for the track catalog / player front-end."""

    @abstractmethod
    def select_track(self, intensity: IntensityLevel) -> TrackRef | None:
        """Start a track suited to *intensity*; ``None`` if none is available."""

    @abstractmethod
    def current_track(self) -> TrackRef | None:
        """The track currently loaded, if any."""


class AudioOutput(ABC):
    """Contract for the volume control of the audio player."""

    @property
    @abstractmethod
    def volume(self) -> float:
        """Current volume in ``[0, 1]``."""

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Set the volume; values outside ``[0, 1]`` are clamped."""
