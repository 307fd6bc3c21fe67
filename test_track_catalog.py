from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from track_catalog import DEFAULT_DURATION_MS, InvalidTrackError, filter_valid_tracks, load_tracks_json, track_from_dict


def test_track_from_dict_clamps_features() -> None:
    track = track_from_dict(
        {"id": "x", "name": "Song", "artist": "Band", "durationMs": 200000, "energy": 1.7,
         "valence": -0.2, "tempo": 128, "acousticness": "loud", "explicit": True}
    )
    assert track.id == "x"
    assert track.duration_ms == 200000
    assert track.energy == 1.0
    assert track.valence == 0.0
    assert track.tempo == 128.0
    assert track.acousticness == 0.5
    assert track.explicit is True


def test_missing_duration_uses_default() -> None:
    track = track_from_dict({"id": "x", "name": "Song", "artist": "Band", "durationMs": 0})
    assert track.duration_ms == DEFAULT_DURATION_MS


@pytest.mark.parametrize("payload", [{"name": "Song", "artist": "Band"}, {"id": " ", "name": "S", "artist": "B"}, "x"])
def test_track_without_identity_is_rejected(payload) -> None:
    with pytest.raises(InvalidTrackError):
        track_from_dict(payload)


def test_filter_drops_invalid_tracks(caplog: pytest.LogCaptureFixture) -> None:
    payloads = [
        {"id": "a", "name": "A", "artist": "X"},
        {"id": "b", "artist": "X"},
        None,
        {"id": "c", "name": "C", "artist": "Y"},
    ]
    with caplog.at_level(logging.WARNING, logger="track_catalog"):
        tracks = filter_valid_tracks(payloads)
    assert [track.id for track in tracks] == ["a", "c"]
    assert sum("Dropping track" in record.getMessage() for record in caplog.records) == 2


def test_load_tracks_json_accepts_list_and_object(tmp_path: Path) -> None:
    listing = tmp_path / "list.json"
    listing.write_text(json.dumps([{"id": "a", "name": "A", "artist": "X"}]), encoding="utf-8")
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"tracks": [{"id": "b", "name": "B", "artist": "Y"}]}), encoding="utf-8")

    assert [track.id for track in load_tracks_json(listing)] == ["a"]
    assert [track.id for track in load_tracks_json(wrapped)] == ["b"]


def test_load_tracks_json_rejects_bad_files(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    scalar = tmp_path / "scalar.json"
    scalar.write_text("42", encoding="utf-8")

    with pytest.raises(ValueError):
        load_tracks_json(broken)
    with pytest.raises(ValueError):
        load_tracks_json(scalar)
    with pytest.raises(FileNotFoundError):
        load_tracks_json(tmp_path / "missing.json")
