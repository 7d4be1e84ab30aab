"""In-memory jazz track catalog used as the reference track selector."""

from __future__ import annotations

import random
from typing import Mapping, Sequence

import structlog

from jazz_motion.collaborators.base import TrackSelector
from jazz_motion.models import IntensityLevel, JazzTrack

logger = structlog.get_logger(__name__)


def _track(name: str, artist: str, filename: str, bpm: int, intensity: IntensityLevel) -> JazzTrack:
    return JazzTrack(name=name, artist=artist, filename=filename, bpm=bpm, intensity=intensity)


_C, _M, _A, _E = (
    IntensityLevel.CALM,
    IntensityLevel.MODERATE,
    IntensityLevel.ACTIVE,
    IntensityLevel.ENERGETIC,
)

DEFAULT_TRACKS: dict[IntensityLevel, list[JazzTrack]] = {
    _C: [
        _track("Blue Moon", "Bill Evans", "blue_moon", 60, _C),
        _track("Autumn Leaves", "Miles Davis", "autumn_leaves", 65, _C),
        _track("Body and Soul", "Coleman Hawkins", "body_and_soul", 58, _C),
        _track("Misty", "Erroll Garner", "misty", 62, _C),
    ],
    _M: [
        _track("All of Me", "Django Reinhardt", "all_of_me", 100, _M),
        _track("Summertime", "Ella Fitzgerald", "summertime", 95, _M),
        _track("Fly Me to the Moon", "Frank Sinatra", "fly_me_to_moon", 105, _M),
        _track("The Way You Look Tonight", "Tony Bennett", "way_you_look", 98, _M),
    ],
    _A: [
        _track("Take Five", "Dave Brubeck", "take_five", 140, _A),
        _track("So What", "Miles Davis", "so_what", 135, _A),
        _track("A Love Supreme", "John Coltrane", "love_supreme", 145, _A),
        _track("Cantaloupe Island", "Herbie Hancock", "cantaloupe_island", 138, _A),
    ],
    _E: [
        _track("Giant Steps", "John Coltrane", "giant_steps", 180, _E),
        _track("Cherokee", "Charlie Parker", "cherokee", 200, _E),
        _track("Donna Lee", "Charlie Parker", "donna_lee", 190, _E),
        _track("Salt Peanuts", "Dizzy Gillespie", "salt_peanuts", 195, _E),
    ],
}


class TrackCatalog(TrackSelector):
    """Pick a random track per intensity from an in-memory catalog.

    Parameters
    ----------
    tracks : Mapping[IntensityLevel, Sequence[JazzTrack]] | None
        Catalog contents; defaults to :data:`DEFAULT_TRACKS`.
    seed : int | None
        Seed for the random pick, for reproducible sessions.
    """

    def __init__(
        self,
        tracks: Mapping[IntensityLevel, Sequence[JazzTrack]] | None = None,
        *,
        seed: int | None = None,
    ) -> None:
        source = DEFAULT_TRACKS if tracks is None else tracks
        self._tracks: dict[IntensityLevel, list[JazzTrack]] = {k: list(v) for k, v in source.items()}
        self._rng = random.Random(seed)
        self._current: JazzTrack | None = None
        self.playing = False
        self.load_count = 0

    # ── TrackSelector ─────────────────────────────────────────

    def select_track(self, intensity: IntensityLevel) -> JazzTrack | None:
        tracks = self._tracks.get(intensity)
        if not tracks:
            logger.warning("catalog.no_tracks", intensity=intensity.value)
            return None

        choice = self._rng.choice(tracks)
        if self._current is not None and self._current.filename == choice.filename and self.playing:
            return self._current
        self._load(choice)
        return choice

    def current_track(self) -> JazzTrack | None:
        return self._current

    # ── Playback helpers ──────────────────────────────────────

    def tracks_for(self, intensity: IntensityLevel) -> list[JazzTrack]:
        return list(self._tracks.get(intensity, []))

    def play(self) -> None:
        if self._current is not None:
            self.playing = True

    def pause(self) -> None:
        self.playing = False

    def next_track(self) -> JazzTrack | None:
        """Advance to the next track of the current track's level (wrapping)."""
        return self._step(+1)

    def previous_track(self) -> JazzTrack | None:
        """Go back to the previous track of the current track's level (wrapping)."""
        return self._step(-1)

    # ── Internals ─────────────────────────────────────────────

    def _step(self, offset: int) -> JazzTrack | None:
        if self._current is None:
            return None
        tracks = self._tracks.get(self._current.intensity, [])
        filenames = [t.filename for t in tracks]
        if self._current.filename not in filenames:
            return None
        index = (filenames.index(self._current.filename) + offset) % len(tracks)
        self._load(tracks[index])
        return self._current

    def _load(self, track: JazzTrack) -> None:
        self._current = track
        self.load_count += 1
        logger.info("catalog.track_loaded", track=track.name, artist=track.artist, intensity=track.intensity.value)
