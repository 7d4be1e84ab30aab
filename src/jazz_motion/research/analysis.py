"""Analysis helpers — pandas-based replay and summary of recorded sessions.

Recorded sessions are CSV files with one row per sample::

    timestamp,ax,ay,az,gx,gy,gz

``ax..az`` is user acceleration (g), ``gx..gz`` the rotation rate (rad/s).
A session is replayed through a fully wired engine on a
:class:`ManualScheduler`, so a ten-minute recording replays instantly and
deterministically.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

import pandas as pd
import structlog

from jazz_motion.collaborators.catalog import TrackCatalog
from jazz_motion.collaborators.memory import MemoryAudioOutput, ReplaySensorFeed
from jazz_motion.config import Settings
from jazz_motion.engine import MotionEngine, create_engine
from jazz_motion.models import (
    ConfirmedTransition,
    EngineEvent,
    IntensityChanged,
    IntensityLevel,
    MotionSample,
    SmoothedValuesUpdated,
    Vector3,
)
from jazz_motion.scheduler.timers import ManualScheduler

logger = structlog.get_logger(__name__)

SAMPLE_COLUMNS = ["timestamp", "ax", "ay", "az", "gx", "gy", "gz"]


# ── Loading ───────────────────────────────────────────────────


def load_samples_csv(path: str | Path) -> pd.DataFrame:
    """Load a recorded session into a :class:`pandas.DataFrame`.

    Missing axis columns are filled with ``0.0``, a missing ``timestamp``
    with the row index; rows are sorted by ``timestamp``.
    """
    df = pd.read_csv(path)
    missing = [c for c in SAMPLE_COLUMNS if c not in df.columns]
    for column in missing:
        df[column] = 0.0 if column != "timestamp" else range(len(df))
    df = df[SAMPLE_COLUMNS].astype(float)
    return df.sort_values("timestamp", kind="stable").reset_index(drop=True)


def frame_to_samples(df: pd.DataFrame) -> list[MotionSample]:
    """Convert rows of a session DataFrame into :class:`MotionSample` objects."""
    return [
        MotionSample(
            acceleration=Vector3(x=row.ax, y=row.ay, z=row.az),
            rotation_rate=Vector3(x=row.gx, y=row.gy, z=row.gz),
            timestamp=row.timestamp,
        )
        for row in df.itertuples(index=False)
    ]


def synthetic_session(
    segments: Sequence[tuple[float, float]],
    interval: float = 0.1,
) -> pd.DataFrame:
    """Build a session of constant-magnitude segments.

    Each segment is ``(accel_magnitude, seconds)``; acceleration is put on
    the x axis with no rotation.
    """
    rows: list[dict[str, float]] = []
    t = 0.0
    for magnitude, seconds in segments:
        for _ in range(int(round(seconds / interval))):
            t += interval
            rows.append({"timestamp": round(t, 6), "ax": magnitude, "ay": 0.0, "az": 0.0,
                         "gx": 0.0, "gy": 0.0, "gz": 0.0})
    return pd.DataFrame(rows, columns=SAMPLE_COLUMNS)


# ── Replay ────────────────────────────────────────────────────


@dataclass
class ReplayResult:
    """Outcome of replaying a session through the engine."""

    engine: MotionEngine
    catalog: TrackCatalog
    audio: MemoryAudioOutput
    timeline: pd.DataFrame


class _TimelineRecorder:
    """Bus listener that stamps each event with the scheduler clock."""

    def __init__(self, scheduler: ManualScheduler) -> None:
        self._scheduler = scheduler
        self.rows: list[dict[str, Any]] = []

    def __call__(self, event: EngineEvent) -> None:
        payload = event.model_dump(mode="json", exclude={"emitted_at"})
        self.rows.append({"time": round(self._scheduler.now(), 6), "event": type(event).__name__, **payload})


def replay_session(
    samples: pd.DataFrame | Iterable[MotionSample],
    settings: Settings | None = None,
    *,
    seed: int | None = None,
    tail_seconds: float = 2.0,
) -> ReplayResult:
    """Replay *samples* through a fresh engine and collect its event timeline.

    The clock runs until every sample was delivered plus *tail_seconds*, so
    a ramp started by the last samples can finish.
    """
    settings = settings or Settings()
    if isinstance(samples, pd.DataFrame):
        samples = frame_to_samples(samples)
    samples = list(samples)

    scheduler = ManualScheduler()
    feed = ReplaySensorFeed(samples, scheduler, interval=settings.sample_interval_seconds)
    catalog = TrackCatalog(seed=seed if seed is not None else settings.catalog_seed)
    audio = MemoryAudioOutput(settings.initial_volume)
    engine = create_engine(settings, feed=feed, selector=catalog, audio=audio, scheduler=scheduler)

    recorder = _TimelineRecorder(scheduler)
    engine.bus.subscribe(recorder)

    engine.start()
    scheduler.advance(len(samples) * settings.sample_interval_seconds + tail_seconds)
    engine.stop()

    timeline = pd.DataFrame(recorder.rows)
    logger.info(
        "analysis.replayed",
        samples=len(samples),
        events=len(timeline),
        swaps=engine.orchestrator.swap_count,
    )
    return ReplayResult(engine=engine, catalog=catalog, audio=audio, timeline=timeline)


# ── Summaries ─────────────────────────────────────────────────


def level_dwell(timeline: pd.DataFrame, sample_interval: float = 0.1) -> dict[str, float]:
    """Seconds spent in each classified level, from the event timeline."""
    dwell = {level.value: 0.0 for level in IntensityLevel}
    if timeline.empty:
        return dwell

    smoothed = timeline[timeline["event"] == SmoothedValuesUpdated.__name__]
    changes = timeline[timeline["event"] == IntensityChanged.__name__]
    if smoothed.empty or changes.empty:
        return dwell

    # Each smoothed update is one sample; attribute it to the latest level.
    levels = changes[["time", "level"]].sort_values("time", kind="stable")
    merged = pd.merge_asof(
        smoothed[["time"]].sort_values("time", kind="stable"),
        levels,
        on="time",
        direction="backward",
    ).dropna()
    counts = merged["level"].value_counts()
    for level, count in counts.items():
        dwell[str(level)] = round(float(count) * sample_interval, 6)
    return dwell


def summarize_replay(result: ReplayResult, sample_interval: float = 0.1) -> dict[str, Any]:
    """Return summary statistics for a replayed session."""
    timeline = result.timeline
    if timeline.empty:
        return {"samples": 0, "confirmed": [], "swaps": 0}

    smoothed = timeline[timeline["event"] == SmoothedValuesUpdated.__name__]
    confirmed = timeline[timeline["event"] == ConfirmedTransition.__name__]
    current = result.catalog.current_track()
    return {
        "samples": int(len(smoothed)),
        "combined_mean": round(float(smoothed["combined"].mean()), 4) if not smoothed.empty else 0.0,
        "combined_max": round(float(smoothed["combined"].max()), 4) if not smoothed.empty else 0.0,
        "level_seconds": level_dwell(timeline, sample_interval),
        "confirmed": [
            {"time": float(row.time), "level": str(row.level)} for row in confirmed.itertuples(index=False)
        ],
        "swaps": result.engine.orchestrator.swap_count,
        "final_track": current.name if current is not None else None,
        "final_volume": round(result.audio.volume, 4),
    }
