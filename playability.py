# -*- coding: utf-8 -*-
########################
# playability.py
########################
# Purpose:
# - Repair any pattern sequence (template or generated) so it is physically beatable.
# - Advisory checks for the rules that are not hard-enforced by validate().
#
# Design notes:
# - validate() is total: it never raises for data problems, it clamps and repairs.
# - validate() is idempotent: validate(validate(m)) == validate(m).
# - Patterns are sorted by start time, non-positive durations are dropped, and the survivors are
#   laid out back to back from 0, so every validated map is time-ordered, non-overlapping and
#   spans [0, total_duration_ms).
# - Difficulty ramp smoothing is a separate step (enforce_difficulty_ramp). It only lowers values,
#   so it never breaks any bound validate() established.
#
########################
# Interfaces:
# Public dataclasses:
# - PlayabilityReport(ramp_violations, breather_violations, bound_violations)
#
# Public functions:
# - validate(song_map: SongMap) -> SongMap
# - enforce_difficulty_ramp(song_map: SongMap, max_step: float = 2.0) -> SongMap
# - playability_report(song_map: SongMap) -> PlayabilityReport
#
########################

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import List, Optional

from gameplay_models import MapPattern, SongMap
from pattern_library import sample_difficulty_curve

logger = logging.getLogger(__name__)

MIN_SPACING_PX = 80.0
MAX_DENSITY = 0.7
DIFFICULTY_RANGE = (1.0, 10.0)
MAX_EDGE_DIFFICULTY = 3.0
MAX_SPIKE_COUNT = 5
MIN_BLOCK_WIDTH_PX = 10.0
MAX_BLOCK_WIDTH_PX = 70.0
GAP_WIDTH_RANGE = (60.0, 120.0)
MAX_DIFFICULTY_STEP = 2.0
MAX_OBSTACLE_RUN = 5


def _clamp(value: float, low: float, high: float) -> float:
    return float(max(low, min(high, float(value))))


def _finite(value: float, default: float) -> float:
    number = float(value)
    return number if math.isfinite(number) else float(default)


def _clamp_pattern(pattern: MapPattern, start_time_ms: float) -> MapPattern:
    spike_count: Optional[int] = None
    if pattern.spike_count is not None:
        spike_count = int(_clamp(pattern.spike_count, 1, MAX_SPIKE_COUNT))

    block_width: Optional[float] = None
    if pattern.block_width is not None:
        block_width = _clamp(_finite(pattern.block_width, MAX_BLOCK_WIDTH_PX), MIN_BLOCK_WIDTH_PX, MAX_BLOCK_WIDTH_PX)

    gap_width: Optional[float] = None
    if pattern.gap_width is not None:
        gap_width = _clamp(_finite(pattern.gap_width, GAP_WIDTH_RANGE[0]), *GAP_WIDTH_RANGE)

    collectible_count: Optional[int] = None
    if pattern.collectible_count is not None:
        collectible_count = int(max(0, pattern.collectible_count))

    return replace(
        pattern,
        start_time_ms=float(start_time_ms),
        density=_clamp(_finite(pattern.density, 0.0), 0.0, MAX_DENSITY),
        difficulty=_clamp(_finite(pattern.difficulty, DIFFICULTY_RANGE[0]), *DIFFICULTY_RANGE),
        spacing=max(MIN_SPACING_PX, _finite(pattern.spacing, MIN_SPACING_PX)),
        spike_count=spike_count,
        block_width=block_width,
        gap_width=gap_width,
        collectible_count=collectible_count,
    )


def validate(song_map: SongMap) -> SongMap:
    candidates = [
        (index, pattern)
        for index, pattern in enumerate(song_map.patterns)
        if math.isfinite(float(pattern.duration_ms))
        and math.isfinite(float(pattern.start_time_ms))
        and float(pattern.duration_ms) > 0.0
    ]
    dropped = len(song_map.patterns) - len(candidates)
    candidates.sort(key=lambda item: (float(item[1].start_time_ms), item[0]))

    patterns: List[MapPattern] = []
    cursor_ms = 0.0
    for _index, pattern in candidates:
        patterns.append(_clamp_pattern(pattern, cursor_ms))
        cursor_ms += float(pattern.duration_ms)

    if patterns:
        first = patterns[0]
        patterns[0] = replace(first, difficulty=min(first.difficulty, MAX_EDGE_DIFFICULTY))
        last = patterns[-1]
        patterns[-1] = replace(last, difficulty=min(last.difficulty, MAX_EDGE_DIFFICULTY))

    curve = [_clamp(_finite(value, 0.0), 0.0, 1.0) for value in song_map.difficulty_curve]
    if not curve:
        curve = sample_difficulty_curve(patterns, cursor_ms)

    if dropped:
        logger.debug("validate(%s): dropped %d pattern(s) without a positive duration", song_map.track_id, dropped)

    return replace(
        song_map,
        patterns=patterns,
        difficulty_curve=curve,
        total_duration_ms=float(cursor_ms),
    )


def enforce_difficulty_ramp(song_map: SongMap, max_step: float = MAX_DIFFICULTY_STEP) -> SongMap:
    """Lower difficulties so no pattern is more than max_step above its predecessor."""
    if not song_map.patterns:
        return song_map

    patterns = [song_map.patterns[0]]
    lowered = 0
    for pattern in song_map.patterns[1:]:
        ceiling = float(patterns[-1].difficulty) + float(max_step)
        if float(pattern.difficulty) > ceiling:
            pattern = replace(pattern, difficulty=ceiling)
            lowered += 1
        patterns.append(pattern)

    if lowered == 0:
        return song_map
    logger.debug("enforce_difficulty_ramp(%s): lowered %d pattern(s)", song_map.track_id, lowered)
    return replace(song_map, patterns=patterns)


@dataclass(frozen=True)
class PlayabilityReport:
    ramp_violations: List[str] = field(default_factory=list)
    breather_violations: List[str] = field(default_factory=list)
    bound_violations: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.ramp_violations or self.breather_violations or self.bound_violations)


def _bound_problems(pattern: MapPattern) -> List[str]:
    problems: List[str] = []
    if pattern.spacing < MIN_SPACING_PX:
        problems.append(f"{pattern.id}: spacing {pattern.spacing} < {MIN_SPACING_PX}")
    if not 0.0 <= pattern.density <= MAX_DENSITY:
        problems.append(f"{pattern.id}: density {pattern.density} outside [0, {MAX_DENSITY}]")
    if not DIFFICULTY_RANGE[0] <= pattern.difficulty <= DIFFICULTY_RANGE[1]:
        problems.append(f"{pattern.id}: difficulty {pattern.difficulty} outside {DIFFICULTY_RANGE}")
    if pattern.spike_count is not None and pattern.spike_count > MAX_SPIKE_COUNT:
        problems.append(f"{pattern.id}: spikeCount {pattern.spike_count} > {MAX_SPIKE_COUNT}")
    if pattern.block_width is not None and pattern.block_width > MAX_BLOCK_WIDTH_PX:
        problems.append(f"{pattern.id}: blockWidth {pattern.block_width} > {MAX_BLOCK_WIDTH_PX}")
    if pattern.gap_width is not None and not GAP_WIDTH_RANGE[0] <= pattern.gap_width <= GAP_WIDTH_RANGE[1]:
        problems.append(f"{pattern.id}: gapWidth {pattern.gap_width} outside {GAP_WIDTH_RANGE}")
    return problems


def playability_report(song_map: SongMap) -> PlayabilityReport:
    ramp: List[str] = []
    breather: List[str] = []
    bounds: List[str] = []

    patterns = song_map.patterns
    for pattern in patterns:
        bounds.extend(_bound_problems(pattern))

    if patterns:
        if patterns[0].difficulty > MAX_EDGE_DIFFICULTY:
            bounds.append(f"{patterns[0].id}: first pattern difficulty {patterns[0].difficulty} > {MAX_EDGE_DIFFICULTY}")
        if patterns[-1].difficulty > MAX_EDGE_DIFFICULTY:
            bounds.append(f"{patterns[-1].id}: last pattern difficulty {patterns[-1].difficulty} > {MAX_EDGE_DIFFICULTY}")

    for previous, current in zip(patterns, patterns[1:]):
        if float(current.difficulty) - float(previous.difficulty) > MAX_DIFFICULTY_STEP:
            ramp.append(f"{previous.id} -> {current.id}: {previous.difficulty} -> {current.difficulty}")

    run = 0
    for pattern in patterns:
        if pattern.is_breather():
            run = 0
            continue
        run += 1
        if run > MAX_OBSTACLE_RUN:
            breather.append(f"{pattern.id}: {run} patterns since the last breather")

    return PlayabilityReport(ramp_violations=ramp, breather_violations=breather, bound_violations=bounds)


def _run_unit_tests() -> None:
    from gameplay_models import MapVersion, PatternType, default_theme

    raw = SongMap(
        track_id="t",
        patterns=[
            MapPattern(id="b", type=PatternType.SPIKES, start_time_ms=5000, duration_ms=5000, density=0.95,
                       difficulty=9, spacing=20, spike_count=9),
            MapPattern(id="a", type=PatternType.GAPS, start_time_ms=0, duration_ms=5000, density=0.1,
                       difficulty=7, spacing=120, gap_width=300),
        ],
        difficulty_curve=[],
        visual_theme=default_theme(),
        total_duration_ms=10000,
        version=MapVersion.GENERATED,
    )
    once = validate(raw)
    assert [pattern.id for pattern in once.patterns] == ["a", "b"]
    assert once.patterns[0].difficulty == 3.0 and once.patterns[-1].difficulty == 3.0
    assert once.patterns[1].spike_count == 5 and once.patterns[0].gap_width == 120.0
    assert validate(once) == once


if __name__ == "__main__":
    _run_unit_tests()
    print("playability.py: ok")
