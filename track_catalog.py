# -*- coding: utf-8 -*-
########################
# track_catalog.py
########################
# Purpose:
# - Boundary between the music-metadata collaborator and the map pipeline.
# - Converts raw track payloads into TrackAudioProfile and filters out invalid tracks.
#
# Design notes:
# - Invalid tracks never reach MapGenerator. id, name and artist must be non-empty.
# - Audio features are clamped into their documented ranges here, so downstream code can rely on them.
# - Accepts both the camelCase wire shape ("durationMs") and snake_case keys.
#
########################
# Interfaces:
# Public exceptions:
# - class InvalidTrackError(ValueError)
#
# Public functions:
# - track_from_dict(payload: dict) -> TrackAudioProfile        (raises InvalidTrackError)
# - filter_valid_tracks(payloads: Iterable[Any]) -> list[TrackAudioProfile]
# - load_tracks_json(path: pathlib.Path) -> list[TrackAudioProfile]
#
########################

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from gameplay_models import TrackAudioProfile

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 180000


class InvalidTrackError(ValueError):
    """Raised when a track payload is missing required identity fields."""


def _clamp_unit(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return float(default)
    number = float(value)
    if number != number:
        return float(default)
    return float(max(0.0, min(1.0, number)))


def _non_negative_number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return float(default)
    number = float(value)
    if number != number or number < 0.0:
        return float(default)
    return number


def _required_text(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise InvalidTrackError(f"Track payload is missing required field {key!r}")
    return text


def track_from_dict(payload: Dict[str, Any]) -> TrackAudioProfile:
    if not isinstance(payload, dict):
        raise InvalidTrackError("Track payload must be a JSON object")

    track_id = _required_text(payload, "id")
    name = _required_text(payload, "name")
    artist = _required_text(payload, "artist")

    duration_value = payload.get("durationMs", payload.get("duration_ms"))
    duration_ms = int(_non_negative_number(duration_value, DEFAULT_DURATION_MS))
    if duration_ms <= 0:
        duration_ms = DEFAULT_DURATION_MS

    return TrackAudioProfile(
        id=track_id,
        name=name,
        artist=artist,
        duration_ms=duration_ms,
        energy=_clamp_unit(payload.get("energy"), 0.5),
        tempo=_non_negative_number(payload.get("tempo"), 120.0),
        valence=_clamp_unit(payload.get("valence"), 0.5),
        danceability=_clamp_unit(payload.get("danceability"), 0.5),
        acousticness=_clamp_unit(payload.get("acousticness"), 0.5),
        popularity=int(_non_negative_number(payload.get("popularity"), 0)),
        explicit=bool(payload.get("explicit", False)),
    )


def filter_valid_tracks(payloads: Iterable[Any]) -> List[TrackAudioProfile]:
    tracks: List[TrackAudioProfile] = []
    for index, payload in enumerate(payloads):
        try:
            tracks.append(track_from_dict(payload))
        except InvalidTrackError as exc:
            logger.warning("Dropping track #%d: %s", index, exc)
    return tracks


def load_tracks_json(path: Path) -> List[TrackAudioProfile]:
    """Load a playlist file: either a JSON list of tracks or {"tracks": [...]}."""
    raw_text = Path(path).read_text(encoding="utf-8")
    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Playlist file is not valid JSON: {path}. Error: {exception}") from exception

    if isinstance(parsed, dict):
        parsed = parsed.get("tracks")
    if not isinstance(parsed, list):
        raise ValueError(f"Playlist file must contain a list of tracks: {path}")

    return filter_valid_tracks(parsed)
