# -*- coding: utf-8 -*-
########################
# pattern_library.py
########################
# Purpose:
# - Selection and time scaling over the static tables in map_tables.py.
# - Builds the synchronous fallback map for a track.
# - Picks the closest reference map for generation and renders it as prompt text.
#
# Design notes:
# - Pure functions over immutable data. No Qt usage, no I/O.
# - select_template is deterministic across processes: sha256 of the track id, not hash().
# - scale_to_duration rounds cumulative boundaries, not individual durations, so
#   contiguous patterns stay contiguous and their durations sum exactly to the target.
#
########################
# Interfaces:
# Public dataclasses:
# - ReferenceMap(name, energy, tempo, danceability, map)
#
# Public functions:
# - premade_maps() -> tuple[SongMap, ...]
# - reference_maps() -> tuple[ReferenceMap, ...]
# - select_template(track_id: str) -> SongMap
# - scale_to_duration(song_map: SongMap, target_ms: float, tolerance: float = 0.1) -> SongMap
# - build_visual_theme(track: TrackAudioProfile) -> MapTheme
# - build_fallback_map(track: TrackAudioProfile, now_ms: float = 0.0) -> SongMap
# - sample_difficulty_curve(patterns, total_duration_ms, points=10) -> list[float]
# - select_reference_map(energy, tempo, danceability) -> ReferenceMap
# - serialize_map_for_prompt(reference: ReferenceMap) -> str
#
# Public constants:
# - PLAYABILITY_RULES: str
#
########################

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import List, Sequence, Tuple

from gameplay_models import MapPattern, MapTheme, MapVersion, SongMap, TrackAudioProfile
from map_tables import PREMADE_MAPS, REFERENCE_MAPS

SCALE_TOLERANCE = 0.1

PLAYABILITY_RULES = """\
CRITICAL PLAYABILITY RULES. Every pattern MUST satisfy ALL of these or the level is unbeatable:
1. spacing >= 80: minimum px gap between obstacles so the player can physically jump over them
2. spikeCount <= 5: more consecutive spikes than this cannot be jumped in one leap
3. blockWidth <= 70: blocks wider than 70px are unjumpable
4. gapWidth between 60-120: gaps below 60 feel like nothing, above 120 are impossible to cross
5. density <= 0.7 at absolute maximum; 0.6 is a safe peak
6. Every 3-5 obstacle patterns MUST be followed by a breather pattern (type "gaps" or "collectibles", density <= 0.25, duration >= 4000ms)
7. Difficulty must ramp gradually: never jump more than +2 difficulty between consecutive patterns
8. The FIRST pattern must have difficulty <= 3 (give the player time to react)
9. The LAST pattern must have difficulty <= 3 (cool-down / outro)
10. Total pattern count: 8-12 for a typical song"""


@dataclass(frozen=True)
class ReferenceMap:
    name: str
    energy: float
    tempo: float
    danceability: float
    map: SongMap


@lru_cache(maxsize=1)
def premade_maps() -> Tuple[SongMap, ...]:
    return tuple(SongMap.from_dict(payload, version=MapVersion.TEMPLATE) for payload in PREMADE_MAPS)


@lru_cache(maxsize=1)
def reference_maps() -> Tuple[ReferenceMap, ...]:
    references: List[ReferenceMap] = []
    for entry in REFERENCE_MAPS:
        target = entry["target"]
        references.append(
            ReferenceMap(
                name=str(entry["name"]),
                energy=float(target["energy"]),
                tempo=float(target["tempo"]),
                danceability=float(target["danceability"]),
                map=SongMap.from_dict(entry["map"], version=MapVersion.TEMPLATE),
            )
        )
    return tuple(references)


def _stable_index(key: str, modulo: int) -> int:
    digest = hashlib.sha256(str(key).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False) % max(1, int(modulo))


def select_template(track_id: str) -> SongMap:
    templates = premade_maps()
    return templates[_stable_index(track_id, len(templates))]


def scale_to_duration(song_map: SongMap, target_ms: float, tolerance: float = SCALE_TOLERANCE) -> SongMap:
    native_ms = float(song_map.total_duration_ms)
    target_ms = float(target_ms)
    if native_ms <= 0.0 or target_ms <= 0.0:
        return song_map

    ratio = target_ms / native_ms
    if abs(ratio - 1.0) <= float(tolerance):
        return song_map

    scaled: List[MapPattern] = []
    for pattern in song_map.patterns:
        start = round(float(pattern.start_time_ms) * ratio)
        end = round(pattern.end_time_ms * ratio)
        modifiers = [
            replace(
                modifier,
                start_time_ms=float(round(modifier.start_time_ms * ratio)),
                duration_ms=float(round(modifier.duration_ms * ratio)),
            )
            for modifier in pattern.visual_modifiers
        ]
        scaled.append(
            replace(
                pattern,
                start_time_ms=float(start),
                duration_ms=float(end - start),
                visual_modifiers=modifiers,
            )
        )

    return replace(song_map, patterns=scaled, total_duration_ms=float(round(target_ms)))


# -----------------------------
# Themes and fallback maps
# -----------------------------


def build_visual_theme(track: TrackAudioProfile) -> MapTheme:
    obstacle_color, obstacle_glow = "#ff4444", "#ff6666"
    background_color = "#1a1a2e"
    particle_color = "#ffffff"
    effects: List[str] = []

    if track.valence > 0.7:
        obstacle_color, obstacle_glow = "#44ff44", "#66ff66"
        particle_color = "#ffff44"
        effects.append("sparkles")
    elif track.valence < 0.3:
        obstacle_color, obstacle_glow = "#ff0066", "#ff3388"
        particle_color = "#666699"
        effects.append("mist")

    if track.acousticness > 0.6:
        obstacle_color, obstacle_glow = "#ff8844", "#ffaa66"
        background_color = "#2e1a1a"
        effects.append("warm_glow")
    elif track.acousticness < 0.2:
        obstacle_color, obstacle_glow = "#4444ff", "#6666ff"
        background_color = "#0a0a1e"
        effects.append("digital_trails")

    if track.energy > 0.7:
        effects.append("intense_glow")

    mood = "bright" if track.valence > 0.5 else "dark"
    texture = "_organic" if track.acousticness > 0.5 else "_digital"

    return MapTheme(
        name=mood + texture,
        obstacle_color=obstacle_color,
        obstacle_glow=obstacle_glow,
        background_color=background_color,
        particle_color=particle_color,
        special_effects=effects,
    )


def build_fallback_map(track: TrackAudioProfile, now_ms: float = 0.0) -> SongMap:
    template = scale_to_duration(select_template(track.id), float(track.duration_ms))
    return replace(
        template,
        track_id=track.id,
        visual_theme=build_visual_theme(track),
        version=MapVersion.FALLBACK,
        generated_at_ms=float(now_ms),
    )


def sample_difficulty_curve(patterns: Sequence[MapPattern], total_duration_ms: float, points: int = 10) -> List[float]:
    """Sample pattern difficulty (scaled to 0..1) at evenly spaced song positions."""
    total = float(total_duration_ms)
    points = int(max(1, points))
    if total <= 0.0 or not patterns:
        return []

    curve: List[float] = []
    for index in range(points):
        song_time = (index + 0.5) / points * total
        value = 0.0
        for pattern in patterns:
            if pattern.contains(song_time):
                value = float(pattern.difficulty) / 10.0
                break
        curve.append(round(max(0.0, min(1.0, value)), 3))
    return curve


# -----------------------------
# Reference maps for generation
# -----------------------------


def _reference_distance(reference: ReferenceMap, energy: float, tempo: float, danceability: float) -> float:
    return (
        abs(reference.energy - float(energy)) * 2.0
        + abs((reference.tempo - float(tempo)) / 200.0)
        + abs(reference.danceability - float(danceability))
    )


def select_reference_map(energy: float, tempo: float, danceability: float) -> ReferenceMap:
    # min() keeps the first of equally distant references, so ties resolve in table order.
    return min(reference_maps(), key=lambda reference: _reference_distance(reference, energy, tempo, danceability))


def _format_number(value: float) -> str:
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:g}"


def serialize_map_for_prompt(reference: ReferenceMap) -> str:
    song_map = reference.map
    curve_text = ", ".join(f"{value:.2f}" for value in song_map.difficulty_curve)
    lines = [
        f'Reference: "{reference.name}" | {round(song_map.total_duration_ms / 1000.0)}s'
        f" | energy={_format_number(reference.energy)} tempo={_format_number(reference.tempo)}"
        f" dance={_format_number(reference.danceability)}",
        f"Difficulty curve: [{curve_text}]",
        "Patterns:",
    ]
    for pattern in song_map.patterns:
        window = f"t={_format_number(pattern.start_time_ms)}-{_format_number(pattern.end_time_ms)}ms"
        line = (
            f"  {pattern.type.value:<13} {window:<17} density={pattern.density:.2f}"
            f"  diff={_format_number(pattern.difficulty)}  spacing={_format_number(pattern.spacing)}"
        )
        if pattern.spike_count is not None:
            line += f"  spikes={pattern.spike_count}"
        if pattern.block_width is not None:
            line += f"  blockW={_format_number(pattern.block_width)}"
        if pattern.gap_width is not None:
            line += f"  gapW={_format_number(pattern.gap_width)}"
        if pattern.collectible_count is not None:
            line += f"  coins={pattern.collectible_count}"
        lines.append(line)
    return "\n".join(lines)


def _run_unit_tests() -> None:
    assert select_template("abc") is select_template("abc")
    template = premade_maps()[0]
    scaled = scale_to_duration(template, 72000.0)
    assert sum(pattern.duration_ms for pattern in scaled.patterns) == 72000.0
    assert scale_to_duration(template, 50000.0) is template
    reference = select_reference_map(0.6, 120.0, 0.5)
    assert reference.name == "Stereo Madness"
    assert "Patterns:" in serialize_map_for_prompt(reference)


if __name__ == "__main__":
    _run_unit_tests()
    print("pattern_library.py: ok")
