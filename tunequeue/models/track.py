"""Catalog and listening-history models for the tunequeue engine.

Defines Pydantic v2 models for tracks and listening sessions.  Both are
frozen: a Track is immutable once it enters the catalog and a Session is a
read-only training input that may be replayed many times (incremental
training re-reads the same session list).

Field aliases accept the camelCase keys used by the external catalog and
session log JSON (``artistId``, ``userId``, ``sessionId``) while Python code
and API responses use snake_case names.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Audio features are normalised against these ranges before comparison.
# energy and danceability are already 0-1; tempo is BPM with ~200 as a
# practical ceiling.
TEMPO_RANGE = 200.0
MAX_POPULARITY = 100

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def _slugify(value: str) -> str:
    return _SLUG_RE.sub("-", value.strip().lower()).strip("-")


# ---------------------------------------------------------------------------
# Track: a single catalog entry.
# ---------------------------------------------------------------------------
class Track(BaseModel):
    """A catalog track with the metadata the similarity ranker compares.

    Loaded once at startup by the dataset provider and never mutated.  The
    auto-queue stores these same objects as its queue snapshots.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Unique catalog id (e.g. "track_001").
    id: str = Field(min_length=1)
    title: str
    artist: str
    # Stable artist key.  Derived from the artist name when the source
    # record omits it.
    artist_id: str = Field(default="", alias="artistId")
    genre: str
    # Free-form descriptive tags; compared with Jaccard similarity.
    tags: frozenset[str] = Field(default_factory=frozenset)
    # Beats per minute, compared after dividing by TEMPO_RANGE.
    tempo: float = Field(default=120.0, ge=0.0)
    energy: float = Field(default=0.5, ge=0.0, le=1.0)
    danceability: float = Field(default=0.5, ge=0.0, le=1.0)
    # 0-100 popularity, normalised to 0-1 by the ranker.
    popularity: int = Field(default=0, ge=0, le=MAX_POPULARITY)
    # Duration in seconds (used only for display by the playback layer).
    duration: int = Field(default=180, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            return frozenset({value})
        return value

    @model_validator(mode="before")
    @classmethod
    def _default_artist_id(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("artist_id") or data.get("artistId") or not data.get("artist"):
            return data
        return {**data, "artist_id": _slugify(str(data["artist"]))}

    def summary(self) -> TrackSummary:
        """Return the id/title/artist/genre identity used in API payloads."""
        return TrackSummary(id=self.id, title=self.title, artist=self.artist, genre=self.genre)


class TrackSummary(BaseModel):
    """Lightweight identity of a track for recommendation responses."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    artist: str
    genre: str


# ---------------------------------------------------------------------------
# Session: one user's ordered listening sequence (training input).
# ---------------------------------------------------------------------------
class Session(BaseModel):
    """An ordered sequence of track ids from one listening session."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(default="anonymous", alias="userId")
    session_id: str = Field(default="", alias="sessionId")
    # Play order matters: the skip-gram window is positional.
    tracks: tuple[str, ...] = Field(default_factory=tuple)
