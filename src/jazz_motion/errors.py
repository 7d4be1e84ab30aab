"""Exception hierarchy for the motion engine."""

from __future__ import annotations


class JazzMotionError(Exception):
    """Base class for every error raised by this package."""


class SensorUnavailable(JazzMotionError):
    """The motion sensor feed could not be started."""


class InvalidConfiguration(JazzMotionError, ValueError):
    """A component was constructed with parameters outside their valid range.

    Values are never clamped into range; construction fails instead.
    """
