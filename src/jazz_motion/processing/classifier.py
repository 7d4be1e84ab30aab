"""Intensity classification of the fused motion magnitude.

Bands (defaults in parentheses)::

    [0, calm)          -> Calm        (calm = 0.2)
    [calm, moderate)   -> Moderate    (moderate = 0.8)
    [moderate, active) -> Active      (active = 1.5)
    [active, inf)      -> Energetic

An auxiliary movement-pattern classifier compares the smoothed
acceleration against the smoothed rotation rate to tell linear motion
(walking, running) from rotation (turning, dancing).
"""

from __future__ import annotations

import structlog

from jazz_motion.models import IntensityLevel, MovementType, Thresholds

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────

# Gyro magnitudes below this are treated as this value, so the ratio
# becomes large instead of dividing by zero.
_MIN_GYRO_DIVISOR = 0.001

_ROTATION_RATIO_LIMIT = 0.5  # ratio < 0.5 -> rotation
_MIXED_RATIO_LIMIT = 2.0  # 0.5 <= ratio < 2.0 -> mixed, otherwise linear


# ── Intensity ─────────────────────────────────────────────────


def classify_intensity(magnitude: float, thresholds: Thresholds) -> IntensityLevel:
    """Map a fused magnitude onto an :class:`IntensityLevel`.

    Total over all inputs: negative and NaN magnitudes count as 0.
    """
    if not magnitude > 0:
        magnitude = 0.0
    if magnitude < thresholds.calm:
        return IntensityLevel.CALM
    if magnitude < thresholds.moderate:
        return IntensityLevel.MODERATE
    if magnitude < thresholds.active:
        return IntensityLevel.ACTIVE
    return IntensityLevel.ENERGETIC


class IntensityClassifier:
    """Classifier holding the (recalibratable) thresholds."""

    def __init__(self, thresholds: Thresholds | None = None) -> None:
        self._thresholds = thresholds or Thresholds()

    @property
    def thresholds(self) -> Thresholds:
        return self._thresholds

    @thresholds.setter
    def thresholds(self, value: Thresholds) -> None:
        # Thresholds validate themselves on construction.
        logger.info(
            "classifier.thresholds_updated",
            calm=value.calm,
            moderate=value.moderate,
            active=value.active,
        )
        self._thresholds = value

    def classify(self, magnitude: float) -> IntensityLevel:
        return classify_intensity(magnitude, self._thresholds)


# ── Movement pattern ──────────────────────────────────────────


def accel_to_gyro_ratio(accel: float, gyro: float) -> float:
    """Ratio of acceleration to rotation, guarding a near-zero divisor."""
    return accel / max(gyro, _MIN_GYRO_DIVISOR)


def classify_movement_type(accel: float, gyro: float) -> MovementType:
    """Classify the character of motion from smoothed channel magnitudes."""
    ratio = accel_to_gyro_ratio(accel, gyro)
    if ratio < _ROTATION_RATIO_LIMIT:
        return MovementType.ROTATION
    if ratio < _MIXED_RATIO_LIMIT:
        return MovementType.MIXED
    return MovementType.LINEAR
