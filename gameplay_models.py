# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core data models for the map pipeline and the runtime spawner.
# - Defines track audio profiles, gameplay parameters, map patterns, song maps, cache entries
#   and runtime obstacles.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses.
# - Times are milliseconds (song relative). Distances are pixels. Speeds are pixels per second.
# - from_dict parsers are tolerant: they coerce what they can and fall back to defaults.
#   Playability bounds are NOT enforced here, playability.validate owns that.
#
########################
# Interfaces:
# Public enums:
# - PatternType: SPIKES | BLOCKS | GAPS | COLLECTIBLES | MIXED
# - MapVersion: TEMPLATE | GENERATED | FALLBACK
# - CacheStatus: PENDING | GENERATING | READY | FAILED
# - ObstacleKind: SPIKE | BLOCK | COLLECTIBLE
#
# Public dataclasses:
# - TrackAudioProfile(id, name, artist, duration_ms, energy, tempo, valence, danceability, acousticness,
#                     popularity, explicit)
# - GameplayParameters(scroll_speed, gravity, jump_force, spike_chance, block_chance, gap_chance,
#                      double_chance, spawn_interval_ms, obstacle_color, obstacle_glow)
# - VisualModifier(type, intensity, start_time_ms, duration_ms)
# - MapPattern(id, type, start_time_ms, duration_ms, density, difficulty, spacing, ...)
# - MapTheme(name, obstacle_color, obstacle_glow, background_color, particle_color, special_effects)
# - SongMap(track_id, patterns, difficulty_curve, visual_theme, total_duration_ms, version, generated_at_ms)
#   - SongMap.from_dict(payload) -> SongMap
#   - SongMap.to_dict() -> dict
# - CacheEntry(map, status, generated_at_ms)
# - Box(x, y, width, height)
# - RuntimeObstacle(obstacle_id, kind, box, lethal, color, cleared)
#
########################

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class PatternType(str, enum.Enum):
    SPIKES = "spikes"
    BLOCKS = "blocks"
    GAPS = "gaps"
    COLLECTIBLES = "collectibles"
    MIXED = "mixed"


class MapVersion(str, enum.Enum):
    TEMPLATE = "template"
    GENERATED = "generated"
    FALLBACK = "fallback"


class CacheStatus(str, enum.Enum):
    PENDING = "pending"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class ObstacleKind(str, enum.Enum):
    SPIKE = "spike"
    BLOCK = "block"
    COLLECTIBLE = "collectible"


BREATHER_TYPES = (PatternType.GAPS, PatternType.COLLECTIBLES)
OBSTACLE_TYPES = (PatternType.SPIKES, PatternType.BLOCKS, PatternType.MIXED)


@dataclass(frozen=True)
class TrackAudioProfile:
    id: str
    name: str
    artist: str
    duration_ms: int
    energy: float = 0.5
    tempo: float = 120.0
    valence: float = 0.5
    danceability: float = 0.5
    acousticness: float = 0.5
    popularity: int = 0
    explicit: bool = False


@dataclass(frozen=True)
class GameplayParameters:
    scroll_speed: float
    gravity: float
    jump_force: float
    spike_chance: float
    block_chance: float
    gap_chance: float
    double_chance: float
    spawn_interval_ms: float
    obstacle_color: str
    obstacle_glow: str

    def air_time_seconds(self) -> float:
        """Duration of one full jump parabola from ground back to ground."""
        gravity = max(1.0, float(self.gravity))
        return 2.0 * abs(float(self.jump_force)) / gravity

    def jump_arc_distance(self) -> float:
        return float(self.scroll_speed) * self.air_time_seconds()


@dataclass(frozen=True)
class VisualModifier:
    type: str
    intensity: float
    start_time_ms: float
    duration_ms: float


@dataclass(frozen=True)
class MapPattern:
    id: str
    type: PatternType
    start_time_ms: float
    duration_ms: float
    density: float
    difficulty: float
    spacing: float
    spike_count: Optional[int] = None
    block_width: Optional[float] = None
    gap_width: Optional[float] = None
    collectible_count: Optional[int] = None
    visual_modifiers: List[VisualModifier] = field(default_factory=list)

    @property
    def end_time_ms(self) -> float:
        return float(self.start_time_ms) + float(self.duration_ms)

    def contains(self, song_time_ms: float) -> bool:
        return float(self.start_time_ms) <= float(song_time_ms) < self.end_time_ms

    def is_breather(self) -> bool:
        return self.type in BREATHER_TYPES and float(self.density) <= 0.25 and float(self.duration_ms) >= 4000.0


@dataclass(frozen=True)
class MapTheme:
    name: str
    obstacle_color: str
    obstacle_glow: str
    background_color: str
    particle_color: str
    special_effects: List[str] = field(default_factory=list)


_DEFAULT_THEME = MapTheme(
    name="default",
    obstacle_color="#ff4444",
    obstacle_glow="#ff6666",
    background_color="#1a1a2e",
    particle_color="#ffffff",
    special_effects=[],
)


@dataclass(frozen=True)
class SongMap:
    track_id: str
    patterns: List[MapPattern]
    difficulty_curve: List[float]
    visual_theme: MapTheme
    total_duration_ms: float
    version: MapVersion
    generated_at_ms: float = 0.0

    def pattern_at(self, elapsed_ms: float) -> Optional[MapPattern]:
        """Pattern covering elapsed_ms, looping once the map is exhausted."""
        if not self.patterns:
            return None
        total = float(self.total_duration_ms)
        if total <= 0.0:
            return None
        song_time = float(elapsed_ms) % total
        for pattern in self.patterns:
            if pattern.contains(song_time):
                return pattern
        return None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any], *, version: MapVersion = MapVersion.GENERATED) -> "SongMap":
        if not isinstance(payload, dict):
            raise ValueError("SongMap payload must be a JSON object")

        patterns_value = payload.get("patterns")
        patterns: List[MapPattern] = []
        if isinstance(patterns_value, list):
            for index, pattern_payload in enumerate(patterns_value):
                pattern = _pattern_from_dict(pattern_payload, index=index)
                if pattern is not None:
                    patterns.append(pattern)

        curve_value = payload.get("difficultyCurve", payload.get("difficulty_curve"))
        difficulty_curve: List[float] = []
        if isinstance(curve_value, list):
            for item in curve_value:
                number = _optional_float(item)
                if number is not None:
                    difficulty_curve.append(number)

        total_duration = _optional_float(payload.get("totalDuration", payload.get("total_duration_ms")))
        if total_duration is None:
            total_duration = max((pattern.end_time_ms for pattern in patterns), default=0.0)

        return cls(
            track_id=str(payload.get("trackId", payload.get("track_id")) or "").strip(),
            patterns=patterns,
            difficulty_curve=difficulty_curve,
            visual_theme=_theme_from_dict(payload.get("visualTheme", payload.get("visual_theme"))),
            total_duration_ms=float(total_duration),
            version=version,
            generated_at_ms=float(_optional_float(payload.get("generatedAt")) or 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trackId": self.track_id,
            "patterns": [_pattern_to_dict(pattern) for pattern in self.patterns],
            "difficultyCurve": list(self.difficulty_curve),
            "visualTheme": {
                "name": self.visual_theme.name,
                "obstacleColor": self.visual_theme.obstacle_color,
                "obstacleGlow": self.visual_theme.obstacle_glow,
                "backgroundColor": self.visual_theme.background_color,
                "particleColor": self.visual_theme.particle_color,
                "specialEffects": list(self.visual_theme.special_effects),
            },
            "totalDuration": self.total_duration_ms,
            "version": self.version.value,
            "generatedAt": self.generated_at_ms,
        }


@dataclass(frozen=True)
class CacheEntry:
    map: SongMap
    status: CacheStatus
    generated_at_ms: float


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return float(self.x) + float(self.width)

    @property
    def bottom(self) -> float:
        return float(self.y) + float(self.height)

    def overlaps(self, other: "Box") -> bool:
        # Touching edges do not count as overlap.
        return (
            float(self.x) < other.right
            and other.x < self.right
            and float(self.y) < other.bottom
            and other.y < self.bottom
        )

    def shifted(self, dx: float) -> "Box":
        return Box(x=float(self.x) + float(dx), y=self.y, width=self.width, height=self.height)


@dataclass
class RuntimeObstacle:
    obstacle_id: int
    kind: ObstacleKind
    box: Box
    lethal: bool
    color: str
    cleared: bool = False


# -----------------------------
# Parsing helpers
# -----------------------------


def _optional_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        if not math.isfinite(number):
            return None
        return number
    if isinstance(value, str):
        try:
            return _optional_float(float(value.strip()))
        except ValueError:
            return None
    return None


def _optional_int(value: Any) -> Optional[int]:
    number = _optional_float(value)
    if number is None:
        return None
    return int(round(number))


def _pattern_type(value: Any) -> PatternType:
    text = str(value or "").strip().lower()
    try:
        return PatternType(text)
    except ValueError:
        return PatternType.MIXED


def _pattern_from_dict(payload: Any, *, index: int) -> Optional[MapPattern]:
    if not isinstance(payload, dict):
        return None

    start_time = _optional_float(payload.get("startTime", payload.get("start_time_ms")))
    duration = _optional_float(payload.get("duration", payload.get("duration_ms")))
    if start_time is None or duration is None:
        return None

    modifiers: List[VisualModifier] = []
    modifiers_value = payload.get("visualModifiers", payload.get("visual_modifiers"))
    if isinstance(modifiers_value, list):
        for modifier_payload in modifiers_value:
            if not isinstance(modifier_payload, dict):
                continue
            modifiers.append(
                VisualModifier(
                    type=str(modifier_payload.get("type") or "glow_pulse"),
                    intensity=float(_optional_float(modifier_payload.get("intensity")) or 0.0),
                    start_time_ms=float(_optional_float(modifier_payload.get("startTime")) or 0.0),
                    duration_ms=float(_optional_float(modifier_payload.get("duration")) or 0.0),
                )
            )

    density = _optional_float(payload.get("density"))
    difficulty = _optional_float(payload.get("difficulty"))
    spacing = _optional_float(payload.get("spacing"))

    return MapPattern(
        id=str(payload.get("id") or f"p{index}"),
        type=_pattern_type(payload.get("type")),
        start_time_ms=float(start_time),
        duration_ms=float(duration),
        density=0.3 if density is None else density,
        difficulty=3.0 if difficulty is None else difficulty,
        spacing=100.0 if spacing is None else spacing,
        spike_count=_optional_int(payload.get("spikeCount", payload.get("spike_count"))),
        block_width=_optional_float(payload.get("blockWidth", payload.get("block_width"))),
        gap_width=_optional_float(payload.get("gapWidth", payload.get("gap_width"))),
        collectible_count=_optional_int(payload.get("collectibleCount", payload.get("collectible_count"))),
        visual_modifiers=modifiers,
    )


def _pattern_to_dict(pattern: MapPattern) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "id": pattern.id,
        "type": pattern.type.value,
        "startTime": pattern.start_time_ms,
        "duration": pattern.duration_ms,
        "density": pattern.density,
        "difficulty": pattern.difficulty,
        "spacing": pattern.spacing,
    }
    if pattern.spike_count is not None:
        result["spikeCount"] = pattern.spike_count
    if pattern.block_width is not None:
        result["blockWidth"] = pattern.block_width
    if pattern.gap_width is not None:
        result["gapWidth"] = pattern.gap_width
    if pattern.collectible_count is not None:
        result["collectibleCount"] = pattern.collectible_count
    if pattern.visual_modifiers:
        result["visualModifiers"] = [
            {
                "type": modifier.type,
                "intensity": modifier.intensity,
                "startTime": modifier.start_time_ms,
                "duration": modifier.duration_ms,
            }
            for modifier in pattern.visual_modifiers
        ]
    return result


def _theme_from_dict(payload: Any) -> MapTheme:
    if not isinstance(payload, dict):
        return _DEFAULT_THEME

    def text(key: str, default: str) -> str:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return default

    effects_value = payload.get("specialEffects")
    effects = [str(item) for item in effects_value if isinstance(item, str)] if isinstance(effects_value, list) else []

    return MapTheme(
        name=text("name", _DEFAULT_THEME.name),
        obstacle_color=text("obstacleColor", _DEFAULT_THEME.obstacle_color),
        obstacle_glow=text("obstacleGlow", _DEFAULT_THEME.obstacle_glow),
        background_color=text("backgroundColor", _DEFAULT_THEME.background_color),
        particle_color=text("particleColor", _DEFAULT_THEME.particle_color),
        special_effects=effects,
    )


def default_theme() -> MapTheme:
    return _DEFAULT_THEME
