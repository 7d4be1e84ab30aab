"""Application entrypoint — replay recorded sessions or inspect the level table."""

from __future__ import annotations

import argparse
import json
import sys

from jazz_motion.config import get_settings
from jazz_motion.logger import setup_logging
from jazz_motion.models import IntensityLevel
from jazz_motion.styles import recommendations_for, style_for


def _parse_profile(text: str) -> list[tuple[float, float]]:
    """Parse ``"0.1:5,1.0:10"`` into ``[(0.1, 5.0), (1.0, 10.0)]``."""
    segments: list[tuple[float, float]] = []
    for chunk in text.split(","):
        magnitude, _, seconds = chunk.partition(":")
        if not seconds:
            raise argparse.ArgumentTypeError(f"Segment {chunk!r} must look like MAGNITUDE:SECONDS")
        try:
            segments.append((float(magnitude), float(seconds)))
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"Segment {chunk!r}: {exc}") from exc
    return segments


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="jazz-motion",
        description="Motion-driven jazz selection engine.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── replay ────────────────────────────────────────────────
    replay_parser = sub.add_parser("replay", help="Replay a recorded sample CSV.")
    replay_parser.add_argument("path", help="CSV with timestamp,ax,ay,az,gx,gy,gz columns.")
    replay_parser.add_argument("--seed", type=int, default=None)

    # ── simulate ──────────────────────────────────────────────
    sim_parser = sub.add_parser("simulate", help="Replay a synthetic constant-magnitude profile.")
    sim_parser.add_argument(
        "profile",
        type=_parse_profile,
        help="Comma-separated MAGNITUDE:SECONDS segments, e.g. 0.1:5,1.0:10,2.5:10",
    )
    sim_parser.add_argument("--seed", type=int, default=None)

    # ── levels ────────────────────────────────────────────────
    sub.add_parser("levels", help="Show thresholds, styles and recommendations.")

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    if args.command in ("replay", "simulate"):
        from jazz_motion.research.analysis import (
            load_samples_csv,
            replay_session,
            summarize_replay,
            synthetic_session,
        )

        if args.command == "replay":
            frame = load_samples_csv(args.path)
        else:
            frame = synthetic_session(args.profile, settings.sample_interval_seconds)
        result = replay_session(frame, settings, seed=args.seed)
        print(json.dumps(summarize_replay(result, settings.sample_interval_seconds), indent=2))
    elif args.command == "levels":
        thresholds = settings.thresholds()
        lower_bounds = {
            IntensityLevel.CALM: 0.0,
            IntensityLevel.MODERATE: thresholds.calm,
            IntensityLevel.ACTIVE: thresholds.moderate,
            IntensityLevel.ENERGETIC: thresholds.active,
        }
        for level in IntensityLevel:
            style = style_for(level)
            print(f"{level.value:<10} >= {lower_bounds[level]:<5} {style.value}: {style.description}")
            for line in recommendations_for(level):
                print(f"    - {line}")
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
