from __future__ import annotations

from typing import List

import pytest

from gameplay_models import MapPattern, MapVersion, PatternType, SongMap, TrackAudioProfile, default_theme
from pattern_library import (
    build_fallback_map,
    build_visual_theme,
    premade_maps,
    reference_maps,
    sample_difficulty_curve,
    scale_to_duration,
    select_reference_map,
    select_template,
    serialize_map_for_prompt,
)


def _map_with_durations(durations: List[float]) -> SongMap:
    patterns = []
    cursor = 0.0
    for index, duration in enumerate(durations):
        patterns.append(
            MapPattern(
                id=f"p{index}",
                type=PatternType.SPIKES,
                start_time_ms=cursor,
                duration_ms=duration,
                density=0.3,
                difficulty=2,
                spacing=120,
            )
        )
        cursor += duration
    return SongMap(
        track_id="template",
        patterns=patterns,
        difficulty_curve=[],
        visual_theme=default_theme(),
        total_duration_ms=cursor,
        version=MapVersion.TEMPLATE,
    )


def _track(track_id: str = "t", duration_ms: int = 180000, **features: float) -> TrackAudioProfile:
    return TrackAudioProfile(id=track_id, name="Track", artist="Artist", duration_ms=duration_ms, **features)


def test_select_template_is_deterministic() -> None:
    assert select_template("track-42") is select_template("track-42")
    assert select_template("track-42") in premade_maps()


def test_select_template_spreads_over_templates() -> None:
    chosen = {select_template(f"track-{index}").track_id for index in range(60)}
    assert len(chosen) > 1


def test_four_pattern_template_scales_to_sixty_seconds() -> None:
    template = _map_with_durations([10000, 10000, 10000, 10000])
    scaled = scale_to_duration(template, 60000)
    assert [pattern.id for pattern in scaled.patterns] == ["p0", "p1", "p2", "p3"]
    assert sum(pattern.duration_ms for pattern in scaled.patterns) == pytest.approx(60000, abs=4)
    assert scaled.total_duration_ms == 60000


def test_uneven_scaling_has_no_drift_beyond_one_millisecond() -> None:
    durations = [7000, 13000, 9000, 11000]
    template = _map_with_durations(durations)
    target = 50123
    scaled = scale_to_duration(template, target)
    ratio = target / sum(durations)

    assert sum(pattern.duration_ms for pattern in scaled.patterns) == target
    for original, pattern in zip(durations, scaled.patterns):
        assert abs(pattern.duration_ms - original * ratio) <= 1.0
    for previous, current in zip(scaled.patterns, scaled.patterns[1:]):
        assert current.start_time_ms == previous.end_time_ms


def test_small_duration_difference_keeps_template() -> None:
    template = _map_with_durations([10000, 10000, 10000, 10000])
    assert scale_to_duration(template, 43000) is template
    assert scale_to_duration(template, 37000) is template


def test_fallback_map_covers_the_track() -> None:
    track = _track("abc", duration_ms=183000, valence=0.2)
    fallback = build_fallback_map(track, now_ms=1234.0)
    assert fallback.version == MapVersion.FALLBACK
    assert fallback.track_id == "abc"
    assert fallback.generated_at_ms == 1234.0
    assert fallback.total_duration_ms == 183000
    assert sum(pattern.duration_ms for pattern in fallback.patterns) == 183000
    assert fallback.visual_theme == build_visual_theme(track)


def test_visual_theme_follows_audio_features() -> None:
    theme = build_visual_theme(_track(valence=0.8, acousticness=0.1, energy=0.9))
    assert theme.name == "bright_digital"
    assert theme.obstacle_color == "#4444ff"
    assert theme.particle_color == "#ffff44"
    assert theme.special_effects == ["sparkles", "digital_trails", "intense_glow"]

    warm = build_visual_theme(_track(valence=0.2, acousticness=0.9, energy=0.2))
    assert warm.name == "dark_organic"
    assert warm.obstacle_color == "#ff8844"
    assert warm.background_color == "#2e1a1a"
    assert warm.special_effects == ["mist", "warm_glow"]


def test_tables_are_contiguous_from_zero() -> None:
    maps = list(premade_maps()) + [reference.map for reference in reference_maps()]
    for song_map in maps:
        assert song_map.patterns[0].start_time_ms == 0
        for previous, current in zip(song_map.patterns, song_map.patterns[1:]):
            assert current.start_time_ms == previous.end_time_ms
        assert song_map.patterns[-1].end_time_ms == song_map.total_duration_ms


def test_reference_selection_picks_closest_features() -> None:
    assert select_reference_map(0.6, 120, 0.5).name == "Stereo Madness"
    assert select_reference_map(0.85, 160, 0.7).name == "Jumper"
    assert select_reference_map(0.8, 145, 0.85).name == "Cycles"
    assert select_reference_map(0.1, 80, 0.2).name == "Back On Track"


def test_sample_difficulty_curve() -> None:
    patterns = [
        MapPattern(id="a", type=PatternType.SPIKES, start_time_ms=0, duration_ms=5000, density=0.2,
                   difficulty=2, spacing=100),
        MapPattern(id="b", type=PatternType.SPIKES, start_time_ms=5000, duration_ms=5000, density=0.2,
                   difficulty=8, spacing=100),
    ]
    assert sample_difficulty_curve(patterns, 10000, points=4) == [0.2, 0.2, 0.8, 0.8]
    assert sample_difficulty_curve([], 10000) == []


def test_serialized_reference_lists_every_pattern() -> None:
    reference = select_reference_map(0.7, 140, 0.6)
    text = serialize_map_for_prompt(reference)
    assert text.startswith('Reference: "Polargeist"')
    assert text.count("density=") == len(reference.map.patterns)
    assert "spikes=4" in text
    assert "gapW=100" in text
