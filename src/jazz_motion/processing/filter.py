"""Signal filter — smoothed, fused magnitude from raw inertial samples.

Each sample contributes the Euclidean norm of its acceleration and of its
rotation rate.  Both channels are exponentially smoothed independently::

    smoothed = smoothed * (1 - alpha) + raw * alpha

and fused into one scalar with fixed weights (0.7 acceleration, 0.3 gyro
by default).
"""

from __future__ import annotations

import math

from jazz_motion.errors import InvalidConfiguration
from jazz_motion.models import MotionSample, SmoothedSignal

DEFAULT_SMOOTHING_FACTOR = 0.3
DEFAULT_ACCEL_WEIGHT = 0.7
DEFAULT_GYRO_WEIGHT = 0.3


def exponential_smooth(previous: float, raw: float, alpha: float) -> float:
    """One exponential-smoothing step."""
    return previous * (1 - alpha) + raw * alpha


class SignalFilter:
    """Stateful per-session filter producing the fused motion magnitude.

    Parameters
    ----------
    smoothing_factor : float
        Weight of the newest raw value, strictly between 0 and 1.
    accel_weight, gyro_weight : float
        Non-negative fusion weights; at least one must be positive.
    """

    def __init__(
        self,
        smoothing_factor: float = DEFAULT_SMOOTHING_FACTOR,
        accel_weight: float = DEFAULT_ACCEL_WEIGHT,
        gyro_weight: float = DEFAULT_GYRO_WEIGHT,
    ) -> None:
        if not (0.0 < smoothing_factor < 1.0):
            raise InvalidConfiguration(
                f"Smoothing factor must be in (0, 1), got {smoothing_factor}"
            )
        if accel_weight < 0 or gyro_weight < 0 or accel_weight + gyro_weight <= 0:
            raise InvalidConfiguration(
                f"Fusion weights must be non-negative and not both zero, "
                f"got accel={accel_weight}, gyro={gyro_weight}"
            )
        self._alpha = smoothing_factor
        self._accel_weight = accel_weight
        self._gyro_weight = gyro_weight
        self._signal = SmoothedSignal()

    @property
    def smoothing_factor(self) -> float:
        return self._alpha

    @property
    def signal(self) -> SmoothedSignal:
        return self._signal

    @property
    def combined(self) -> float:
        """Fused magnitude of the current smoothed state."""
        return self.fuse(self._signal.accel, self._signal.gyro)

    def fuse(self, accel: float, gyro: float) -> float:
        return accel * self._accel_weight + gyro * self._gyro_weight

    def update(self, sample: MotionSample) -> float:
        """Fold *sample* into the smoothed state and return the fused magnitude."""
        return self.update_raw(sample.acceleration.magnitude, sample.rotation_rate.magnitude)

    def update_raw(self, accel_raw: float, gyro_raw: float) -> float:
        """Fold precomputed raw magnitudes into the smoothed state."""
        if not (math.isfinite(accel_raw) and math.isfinite(gyro_raw)):
            # Non-finite readings are dropped; state stays finite.
            return self.combined
        self._signal.accel = exponential_smooth(self._signal.accel, accel_raw, self._alpha)
        self._signal.gyro = exponential_smooth(self._signal.gyro, gyro_raw, self._alpha)
        return self.combined

    def reset(self) -> None:
        """Zero both channels (sensor session stopped)."""
        self._signal.reset()
