"""Unit tests for JSONDatasetProvider."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tunequeue.providers.dataset.json_dataset_provider import JSONDatasetProvider
from tunequeue.services.catalog import TrackCatalog
from tunequeue.utils.errors import ConfigurationError


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestJSONDatasetProvider:
    @pytest.mark.asyncio
    async def test_loads_arrays(self, tmp_path: Path) -> None:
        tracks = _write(tmp_path / "tracks.json", [{"id": "a", "title": "T", "artist": "X", "genre": "g"}, "junk"])
        sessions = _write(tmp_path / "sessions.json", [{"userId": "u", "tracks": ["a"]}])
        provider = JSONDatasetProvider(tracks_path=tracks, sessions_path=sessions)

        assert await provider.load_tracks() == [{"id": "a", "title": "T", "artist": "X", "genre": "g"}]
        assert await provider.load_sessions() == [{"userId": "u", "tracks": ["a"]}]

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        provider = JSONDatasetProvider(tracks_path=tmp_path / "none.json", sessions_path=tmp_path / "none2.json")
        assert await provider.load_tracks() == []
        assert await provider.load_sessions() == []

    @pytest.mark.asyncio
    async def test_invalid_json_is_configuration_error(self, tmp_path: Path) -> None:
        bad = tmp_path / "tracks.json"
        bad.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            await JSONDatasetProvider(tracks_path=bad).load_tracks()

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_configuration_error(self, tmp_path: Path) -> None:
        bad = tmp_path / "tracks.json"
        bad.write_bytes(b'[{"id": "a", "title": "\xff\xfe"}]')
        with pytest.raises(ConfigurationError):
            await JSONDatasetProvider(tracks_path=bad).load_tracks()

    @pytest.mark.asyncio
    async def test_object_instead_of_array(self, tmp_path: Path) -> None:
        bad = _write(tmp_path / "tracks.json", {"id": "a"})
        with pytest.raises(ConfigurationError) as exc_info:
            await JSONDatasetProvider(tracks_path=bad).load_tracks()
        assert exc_info.value.provider_name == "json"

    @pytest.mark.asyncio
    async def test_bundled_sample_data(self, project_root: Path) -> None:
        provider = JSONDatasetProvider(
            tracks_path=project_root / "data" / "tracks.json",
            sessions_path=project_root / "data" / "sessions.json",
        )
        catalog = TrackCatalog.from_records(await provider.load_tracks())
        sessions = await provider.load_sessions()

        assert len(catalog) == 20
        assert all(tid in catalog for s in sessions for tid in s["tracks"])
