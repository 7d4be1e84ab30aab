"""Transition sub-package — debouncing, crossfades and mode policy."""

from jazz_motion.transition.debouncer import StabilityDebouncer
from jazz_motion.transition.mode import ModeController
from jazz_motion.transition.orchestrator import TransitionOrchestrator
from jazz_motion.transition.ramp import RampPhase, VolumeRamp

__all__ = [
    "ModeController",
    "RampPhase",
    "StabilityDebouncer",
    "TransitionOrchestrator",
    "VolumeRamp",
]
