"""Centralised engine settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from jazz_motion.models import Thresholds

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """All runtime configuration for the motion engine.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Every variable lives in the flat
    ``JAZZ_MOTION_`` namespace (stripped automatically by *pydantic-settings*).

    Range checks are left to the components themselves, which raise
    :class:`~jazz_motion.errors.InvalidConfiguration` on construction.
    """

    model_config = SettingsConfigDict(
        env_prefix="JAZZ_MOTION_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Sensor sampling ───────────────────────────────────────
    sample_interval_seconds: float = 0.1

    # ── Signal filter ─────────────────────────────────────────
    smoothing_factor: float = 0.3
    accel_weight: float = 0.7
    gyro_weight: float = 0.3

    # ── Intensity thresholds ──────────────────────────────────
    calm_threshold: float = 0.2
    moderate_threshold: float = 0.8
    active_threshold: float = 1.5

    # ── Transitions ───────────────────────────────────────────
    stability_period_seconds: float = 3.0  # level must persist this long
    transition_delay_seconds: float = 1.0  # cooldown between swaps
    ramp_steps: int = 10
    ramp_step_interval_seconds: float = 0.05

    # ── Playback ──────────────────────────────────────────────
    initial_volume: float = 0.7
    catalog_seed: int | None = None

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    def thresholds(self) -> Thresholds:
        """Build the validated :class:`Thresholds` value."""
        return Thresholds(
            calm=self.calm_threshold,
            moderate=self.moderate_threshold,
            active=self.active_threshold,
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
