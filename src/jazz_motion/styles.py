"""Fixed mapping from intensity level to jazz style and listening suggestions."""

from __future__ import annotations

from jazz_motion.models import IntensityLevel, MusicStyle

STYLE_FOR_LEVEL: dict[IntensityLevel, MusicStyle] = {
    IntensityLevel.CALM: MusicStyle.SMOOTH,
    IntensityLevel.MODERATE: MusicStyle.SWING,
    IntensityLevel.ACTIVE: MusicStyle.BEBOP,
    IntensityLevel.ENERGETIC: MusicStyle.FUSION,
}

RECOMMENDATIONS: dict[IntensityLevel, tuple[str, ...]] = {
    IntensityLevel.CALM: (
        "Slow ballads and blues",
        "Acoustic jazz",
        "Melodic compositions",
    ),
    IntensityLevel.MODERATE: (
        "Classic jazz",
        "Mid-tempo swing",
        "Latin jazz",
    ),
    IntensityLevel.ACTIVE: (
        "Bebop and hard bop",
        "Jazz funk",
        "Energetic improvisation",
    ),
    IntensityLevel.ENERGETIC: (
        "Fusion and jazz rock",
        "Up-tempo bebop",
        "Experimental jazz",
    ),
}


def style_for(level: IntensityLevel) -> MusicStyle:
    return STYLE_FOR_LEVEL[level]


def recommendations_for(level: IntensityLevel) -> list[str]:
    """Listening suggestions for *level*."""
    return list(RECOMMENDATIONS[level])
