"""In-memory track catalog.

Populated once at startup and read-only afterwards.  Lookups never raise:
an unknown id returns ``None`` and an unmatched filter returns an empty list.
Genre and artist filters are case-insensitive and preserve load order.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from pydantic import ValidationError
from rapidfuzz import fuzz, process, utils

from tunequeue.models.track import Track
from tunequeue.utils.logging import get_logger

# Minimum rapidfuzz WRatio (0-100) for a fuzzy search hit.
_SEARCH_CUTOFF = 60.0


class TrackCatalog:
    """Read-only store of ``Track`` records indexed by id."""

    def __init__(self, tracks: Iterable[Track] = ()) -> None:
        self._logger = get_logger(__name__)
        self._tracks: list[Track] = []
        self._by_id: dict[str, Track] = {}
        for track in tracks:
            if track.id in self._by_id:
                self._logger.warning("duplicate_track_id_ignored", track_id=track.id)
                continue
            self._tracks.append(track)
            self._by_id[track.id] = track
        self._logger.info("catalog_loaded", tracks=len(self._tracks))

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> TrackCatalog:
        """Validate raw records into tracks, dropping the ones that fail."""
        logger = get_logger(__name__)
        tracks: list[Track] = []
        for record in records:
            try:
                tracks.append(Track.model_validate(record))
            except ValidationError as exc:
                logger.warning(
                    "invalid_track_record_dropped",
                    track_id=record.get("id"),
                    errors=exc.error_count(),
                )
        return cls(tracks)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_track(self, track_id: str) -> Track | None:
        return self._by_id.get(track_id)

    def get_all_tracks(self) -> list[Track]:
        return list(self._tracks)

    def get_tracks_by_genre(self, genre: str, limit: int = 10) -> list[Track]:
        wanted = genre.casefold()
        matches = (t for t in self._tracks if t.genre.casefold() == wanted)
        return _take(matches, limit)

    def get_tracks_by_artist(self, artist: str, limit: int = 10) -> list[Track]:
        """Tracks whose artist name or artist id matches *artist*."""
        wanted = artist.casefold()
        matches = (
            t
            for t in self._tracks
            if t.artist.casefold() == wanted or t.artist_id.casefold() == wanted
        )
        return _take(matches, limit)

    def get_popular_tracks(self, limit: int = 10) -> list[Track]:
        """Most popular first; ties keep load order (``sorted`` is stable)."""
        ranked = sorted(self._tracks, key=lambda t: -t.popularity)
        return ranked[: max(limit, 0)]

    def search(self, query: str, limit: int = 10) -> list[Track]:
        """Fuzzy match *query* against "title artist" strings, case-insensitively."""
        query = query.strip()
        if not query or not self._tracks or limit <= 0:
            return []
        choices = {t.id: f"{t.title} {t.artist}" for t in self._tracks}
        hits = process.extract(
            query,
            choices,
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            limit=limit,
            score_cutoff=_SEARCH_CUTOFF,
        )
        # extract() on a mapping yields (choice, score, key) tuples.
        return [self._by_id[key] for _choice, _score, key in hits]

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._by_id

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)


def _take(tracks: Iterable[Track], limit: int) -> list[Track]:
    result: list[Track] = []
    if limit <= 0:
        return result
    for track in tracks:
        result.append(track)
        if len(result) >= limit:
            break
    return result
