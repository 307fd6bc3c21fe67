from __future__ import annotations

import math
from typing import List, Optional

import pytest

from gameplay_models import MapPattern, MapVersion, PatternType, SongMap, TrackAudioProfile, default_theme
from pattern_library import build_fallback_map, premade_maps, reference_maps
from playability import (
    GAP_WIDTH_RANGE,
    MAX_BLOCK_WIDTH_PX,
    MAX_DENSITY,
    MAX_EDGE_DIFFICULTY,
    MAX_SPIKE_COUNT,
    MIN_SPACING_PX,
    enforce_difficulty_ramp,
    playability_report,
    validate,
)


def _pattern(pattern_id: str, start: float, duration: float, *, pattern_type: PatternType = PatternType.SPIKES,
             density: float = 0.3, difficulty: float = 3, spacing: float = 120,
             spike_count: Optional[int] = None, block_width: Optional[float] = None,
             gap_width: Optional[float] = None, collectible_count: Optional[int] = None) -> MapPattern:
    return MapPattern(
        id=pattern_id,
        type=pattern_type,
        start_time_ms=start,
        duration_ms=duration,
        density=density,
        difficulty=difficulty,
        spacing=spacing,
        spike_count=spike_count,
        block_width=block_width,
        gap_width=gap_width,
        collectible_count=collectible_count,
    )


def _map(patterns: List[MapPattern], curve: Optional[List[float]] = None) -> SongMap:
    return SongMap(
        track_id="t",
        patterns=patterns,
        difficulty_curve=list(curve or []),
        visual_theme=default_theme(),
        total_duration_ms=sum(pattern.duration_ms for pattern in patterns if math.isfinite(pattern.duration_ms)),
        version=MapVersion.GENERATED,
    )


def _hostile_map() -> SongMap:
    return _map(
        [
            _pattern("late", 9000, 3000, density=2.0, difficulty=40, spacing=10, spike_count=12),
            _pattern("wide", 0, 4000, pattern_type=PatternType.BLOCKS, block_width=200, difficulty=-3),
            _pattern("overlap", 2000, 5000, pattern_type=PatternType.GAPS, gap_width=10, density=float("nan")),
            _pattern("empty", 1000, 0),
            _pattern("negative", 1000, -500),
            _pattern("coins", 4000, 2000, pattern_type=PatternType.COLLECTIBLES, collectible_count=-4,
                     difficulty=9),
        ],
        curve=[-0.5, 0.4, 3.0, float("inf")],
    )


def test_validate_enforces_bounds() -> None:
    result = validate(_hostile_map())
    assert [pattern.id for pattern in result.patterns] == ["wide", "overlap", "coins", "late"]
    for pattern in result.patterns:
        assert pattern.spacing >= MIN_SPACING_PX
        assert 0.0 <= pattern.density <= MAX_DENSITY
        assert 1.0 <= pattern.difficulty <= 10.0
    by_id = {pattern.id: pattern for pattern in result.patterns}
    assert by_id["late"].spike_count == MAX_SPIKE_COUNT
    assert by_id["wide"].block_width == MAX_BLOCK_WIDTH_PX
    assert by_id["overlap"].gap_width == GAP_WIDTH_RANGE[0]
    assert by_id["overlap"].density == 0.0
    assert by_id["coins"].collectible_count == 0
    assert result.difficulty_curve == [0.0, 0.4, 1.0, 0.0]


def test_validate_lays_patterns_out_contiguously() -> None:
    result = validate(_hostile_map())
    assert result.patterns[0].start_time_ms == 0.0
    for previous, current in zip(result.patterns, result.patterns[1:]):
        assert current.start_time_ms == previous.end_time_ms
    assert result.total_duration_ms == result.patterns[-1].end_time_ms == 14000.0


def test_validate_caps_first_and_last_difficulty() -> None:
    result = validate(_map([_pattern("a", 0, 5000, difficulty=8), _pattern("b", 5000, 5000, difficulty=6),
                            _pattern("c", 10000, 5000, difficulty=9)]))
    assert result.patterns[0].difficulty <= MAX_EDGE_DIFFICULTY
    assert result.patterns[1].difficulty == 6
    assert result.patterns[-1].difficulty <= MAX_EDGE_DIFFICULTY


def test_validate_is_idempotent() -> None:
    maps = [_hostile_map()] + list(premade_maps()) + [reference.map for reference in reference_maps()]
    for song_map in maps:
        once = validate(song_map)
        assert validate(once) == once


def test_validate_samples_missing_curve() -> None:
    result = validate(_map([_pattern("a", 0, 5000, difficulty=2), _pattern("b", 5000, 5000, difficulty=3)]))
    assert len(result.difficulty_curve) == 10
    assert all(0.0 <= value <= 1.0 for value in result.difficulty_curve)


def test_validate_handles_empty_map() -> None:
    result = validate(_map([]))
    assert result.patterns == []
    assert result.total_duration_ms == 0.0
    assert result.difficulty_curve == []


def test_ramp_lowers_sudden_spikes() -> None:
    song_map = validate(_map([
        _pattern("a", 0, 5000, difficulty=1),
        _pattern("b", 5000, 5000, difficulty=6),
        _pattern("c", 10000, 5000, difficulty=9),
        _pattern("d", 15000, 5000, difficulty=2),
    ]))
    smoothed = enforce_difficulty_ramp(song_map)
    assert [pattern.difficulty for pattern in smoothed.patterns] == [1, 3, 5, 2]
    assert playability_report(smoothed).ramp_violations == []
    assert enforce_difficulty_ramp(smoothed) is smoothed


def test_report_flags_long_obstacle_runs() -> None:
    patterns = [_pattern(f"p{index}", index * 5000, 5000, difficulty=3) for index in range(6)]
    report = playability_report(_map(patterns))
    assert report.breather_violations == ["p5: 6 patterns since the last breather"]
    assert not report.ok


def test_report_accepts_breather_separated_map() -> None:
    patterns = [
        _pattern("a", 0, 5000, difficulty=2),
        _pattern("b", 5000, 5000, difficulty=3),
        _pattern("rest", 10000, 5000, pattern_type=PatternType.GAPS, density=0.2, gap_width=90, difficulty=2),
        _pattern("c", 15000, 5000, difficulty=3),
    ]
    assert playability_report(_map(patterns)).ok


@pytest.mark.parametrize("track_id", ["alpha", "beta", "gamma", "delta", "epsilon", "zeta"])
def test_installed_fallbacks_respect_bounds_and_ramp(track_id: str) -> None:
    track = TrackAudioProfile(id=track_id, name="N", artist="A", duration_ms=200000)
    installed = enforce_difficulty_ramp(validate(build_fallback_map(track)))
    report = playability_report(installed)
    assert report.ramp_violations == []
    assert report.bound_violations == []
