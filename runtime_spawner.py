# -*- coding: utf-8 -*-
########################
# runtime_spawner.py
########################
# Purpose:
# - Per-frame gameplay core: track clock, pattern lookup, spawn decision, obstacle placement,
#   player body physics, obstacle lifecycle and scoring.
# - Emits frame events (spawn, removal, score, track change, death, game over) for the host.
#
# Design notes:
# - No Qt usage. Driven entirely by update(dt_ms, frame_input); no wall clock reads.
# - Frame order is fixed:
#   1) install finished generation results (MapGenerator.pump / tick)
#   2) track clock and manual skip, transition blend
#   3) player physics and jump input
#   4) scroll existing obstacles
#   5) cull obstacles past the trailing edge
#   6) spawn attempt
#   7) collision and clear scoring
# - Placement keeps every new obstacle at least max(fixed gap, pattern spacing, jump arc) to the right
#   of the rightmost live obstacle. A candidate that would overlap or fall beyond the lookahead
#   window is skipped and retried next frame; the spawn timer is not reset in that case.
# - States: IDLE -> PLAYING <-> TRANSITIONING -> DEAD. DEAD only leaves through reset().
#
########################
# Interfaces:
# Public enums:
# - SpawnerState: IDLE | PLAYING | TRANSITIONING | DEAD
#
# Public dataclasses:
# - FrameInput(jump_pressed=False, skip_track_pressed=False)
# - ObstacleSpawned, ObstacleRemoved, ScoreChanged, TrackChanged, MapUpgraded, DeathStarted, GameOver
#
# Public classes:
# - class RuntimeSpawner
#   - __init__(tracks, generator, *, spawner_config=None, physics_config=None, preload_next=True, rng=None)
#   - load_playlist(tracks) -> None
#   - start() -> list[event]
#   - update(dt_ms, frame_input=None) -> list[event]
#   - skip_track() -> list[event]
#   - reset() -> None
#   - min_gap_px(pattern=None) -> float
#
# Inputs:
# - Validated TrackAudioProfile list, a MapGenerator, frame dt in milliseconds and input flags.
#
# Outputs:
# - Frame events consumed by game_harness.py and beatdash.py --simulate.
#
########################

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from config import PhysicsConfig, SpawnerConfig
from gameplay_models import (
    Box,
    GameplayParameters,
    MapPattern,
    ObstacleKind,
    PatternType,
    RuntimeObstacle,
    SongMap,
    TrackAudioProfile,
)
from map_generator import MapGenerator
from parameter_mapper import TransitionBlend, to_params

logger = logging.getLogger(__name__)

SPIKE_WIDTH_PX = 20.0
SPIKE_HEIGHT_PX = 30.0
DEFAULT_BLOCK_WIDTH_PX = 40.0
BLOCK_HEIGHT_PX = 40.0
COLLECTIBLE_SIZE_PX = 16.0
COLLECTIBLE_LIFT_PX = 90.0


class SpawnerState(str, enum.Enum):
    IDLE = "idle"
    PLAYING = "playing"
    TRANSITIONING = "transitioning"
    DEAD = "dead"


@dataclass(frozen=True)
class FrameInput:
    jump_pressed: bool = False
    skip_track_pressed: bool = False


# -----------------------------
# Frame events
# -----------------------------


@dataclass(frozen=True)
class ObstacleSpawned:
    obstacle_id: int
    kind: ObstacleKind
    box: Box
    color: str


@dataclass(frozen=True)
class ObstacleRemoved:
    obstacle_id: int
    reason: str  # offscreen | collected | reset


@dataclass(frozen=True)
class ScoreChanged:
    score: int
    delta: int
    reason: str  # collectible | clear


@dataclass(frozen=True)
class TrackChanged:
    track_index: int
    track_id: str
    map_version: str


@dataclass(frozen=True)
class MapUpgraded:
    track_id: str


@dataclass(frozen=True)
class DeathStarted:
    obstacle_id: int


@dataclass(frozen=True)
class GameOver:
    score: int


@dataclass
class _PlayerBody:
    y: float
    velocity_y: float = 0.0
    on_ground: bool = True


class RuntimeSpawner:
    def __init__(
        self,
        tracks: Sequence[TrackAudioProfile],
        generator: MapGenerator,
        *,
        spawner_config: Optional[SpawnerConfig] = None,
        physics_config: Optional[PhysicsConfig] = None,
        preload_next: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._tracks: List[TrackAudioProfile] = list(tracks)
        self._generator = generator
        self._settings = spawner_config if spawner_config is not None else SpawnerConfig()
        self._physics = physics_config if physics_config is not None else PhysicsConfig()
        self._preload_next = bool(preload_next)
        self._rng = rng if rng is not None else random.Random(self._settings.random_seed)
        self.reset()

    # -----------------------------
    # Read-only views for the host
    # -----------------------------

    @property
    def state(self) -> SpawnerState:
        return self._state

    @property
    def score(self) -> int:
        return self._score

    @property
    def track_index(self) -> int:
        return self._track_index

    @property
    def current_track(self) -> Optional[TrackAudioProfile]:
        if not self._tracks:
            return None
        return self._tracks[self._track_index]

    @property
    def current_map(self) -> Optional[SongMap]:
        return self._map

    @property
    def params(self) -> Optional[GameplayParameters]:
        return self._params

    @property
    def track_elapsed_ms(self) -> float:
        return self._track_elapsed_ms

    @property
    def current_pattern(self) -> Optional[MapPattern]:
        return self._pattern

    @property
    def pattern_elapsed_ms(self) -> float:
        return self._pattern_elapsed_ms

    @property
    def obstacles(self) -> Tuple[RuntimeObstacle, ...]:
        return tuple(self._obstacles)

    @property
    def tracks_played(self) -> int:
        return self._tracks_played

    @property
    def ground_y(self) -> float:
        return float(self._settings.ground_y)

    def player_box(self) -> Box:
        size = float(self._settings.player_size)
        return Box(x=float(self._settings.player_x), y=self._player.y, width=size, height=size)

    def player_on_ground(self) -> bool:
        return self._player.on_ground

    # -----------------------------
    # Lifecycle
    # -----------------------------

    def reset(self) -> None:
        """Host restart path: back to IDLE with no obstacles and zero score."""
        self._state = SpawnerState.IDLE
        self._score = 0
        self._track_index = 0
        self._tracks_played = 0
        self._track_elapsed_ms = 0.0
        self._since_spawn_ms = 0.0
        self._pattern: Optional[MapPattern] = None
        self._pattern_key: Optional[Tuple[Any, ...]] = None
        self._pattern_elapsed_ms = 0.0
        self._pattern_spawned = 0
        self._map: Optional[SongMap] = None
        self._params: Optional[GameplayParameters] = None
        self._blend: Optional[TransitionBlend] = None
        self._obstacles: List[RuntimeObstacle] = []
        self._next_obstacle_id = 1
        self._player = _PlayerBody(y=self._ground_top())
        self._death_elapsed_ms = 0.0
        self._game_over_reported = False

    def load_playlist(self, tracks: Sequence[TrackAudioProfile]) -> None:
        """New session: replace the track list and drop every cached map."""
        self._tracks = list(tracks)
        self._generator.clear()
        self.reset()

    def start(self) -> List[Any]:
        if self._state != SpawnerState.IDLE or not self._tracks:
            return []
        self._state = SpawnerState.PLAYING
        self._track_index = 0
        track = self._tracks[0]
        self._load_track(track)
        self._params = self._params_for(track)
        self._tracks_played = 1
        logger.info("Session started on track %s", track.id)
        return [TrackChanged(track_index=0, track_id=track.id, map_version=self._map.version.value)]

    def skip_track(self) -> List[Any]:
        if self._state not in (SpawnerState.PLAYING, SpawnerState.TRANSITIONING):
            return []
        return self._advance_track()

    # -----------------------------
    # Frame update
    # -----------------------------

    def update(self, dt_ms: float, frame_input: Optional[FrameInput] = None) -> List[Any]:
        if self._state == SpawnerState.IDLE:
            return []
        frame_input = frame_input if frame_input is not None else FrameInput()
        dt_ms = float(max(0.0, dt_ms))
        events: List[Any] = []

        for upgrade in self._generator.pump():
            track = self.current_track
            if track is not None and upgrade.track_id == track.id and self._state != SpawnerState.DEAD:
                self._map = upgrade.map
                events.append(MapUpgraded(track_id=upgrade.track_id))
        self._generator.tick()

        if self._state == SpawnerState.DEAD:
            self._death_elapsed_ms += dt_ms
            if not self._game_over_reported and self._death_elapsed_ms >= float(self._settings.death_animation_ms):
                self._game_over_reported = True
                events.append(GameOver(score=self._score))
            return events

        if frame_input.skip_track_pressed:
            events.extend(self._advance_track())
        else:
            self._track_elapsed_ms += dt_ms
            track = self.current_track
            if track is not None and self._track_elapsed_ms >= float(track.duration_ms):
                events.extend(self._advance_track())

        self._advance_transition(dt_ms)
        self._update_pattern(dt_ms)

        self._step_player(dt_ms, frame_input.jump_pressed)
        self._scroll(dt_ms)
        events.extend(self._cull())
        events.extend(self._maybe_spawn(dt_ms))
        events.extend(self._check_collisions())
        return events

    # -----------------------------
    # Track switching
    # -----------------------------

    def _params_for(self, track: TrackAudioProfile) -> GameplayParameters:
        return to_params(
            track,
            base_speed=float(self._physics.base_speed),
            base_gravity_scale=float(self._physics.base_gravity_scale),
        )

    def _load_track(self, track: TrackAudioProfile) -> None:
        self._generator.set_active_track(track.id)
        self._map = self._generator.ensure_map(track)
        self._track_elapsed_ms = 0.0
        self._since_spawn_ms = 0.0
        self._pattern = None
        self._pattern_key = None
        self._pattern_elapsed_ms = 0.0
        self._pattern_spawned = 0
        if self._preload_next and len(self._tracks) > 1:
            self._generator.preload_next(self._track_index, self._tracks)

    def _advance_track(self) -> List[Any]:
        events: List[Any] = [ObstacleRemoved(obstacle_id=item.obstacle_id, reason="reset") for item in self._obstacles]
        self._obstacles = []

        self._track_index = (self._track_index + 1) % len(self._tracks)
        track = self._tracks[self._track_index]
        self._load_track(track)
        self._tracks_played += 1

        source = self._params if self._params is not None else self._params_for(track)
        self._blend = TransitionBlend(source, self._params_for(track), float(self._settings.transition_ms))
        self._params = self._blend.current()
        self._state = SpawnerState.TRANSITIONING

        logger.info("Track changed to %s (%s map)", track.id, self._map.version.value)
        events.append(TrackChanged(track_index=self._track_index, track_id=track.id, map_version=self._map.version.value))
        return events

    def _advance_transition(self, dt_ms: float) -> None:
        if self._blend is None:
            return
        self._params = self._blend.advance(dt_ms)
        if self._blend.is_finished():
            self._params = self._blend.target
            self._blend = None
            self._state = SpawnerState.PLAYING

    def _update_pattern(self, dt_ms: float) -> None:
        song_map = self._map
        pattern = song_map.pattern_at(self._track_elapsed_ms) if song_map is not None else None
        key: Optional[Tuple[Any, ...]] = None
        if pattern is not None and song_map is not None:
            loop_index = int(self._track_elapsed_ms // float(song_map.total_duration_ms))
            key = (pattern.id, pattern.start_time_ms, loop_index)

        if key != self._pattern_key:
            self._pattern_key = key
            self._pattern = pattern
            self._pattern_elapsed_ms = 0.0
            self._pattern_spawned = 0
        else:
            self._pattern_elapsed_ms += dt_ms

    # -----------------------------
    # Physics and lifecycle
    # -----------------------------

    def _ground_top(self) -> float:
        return float(self._settings.ground_y) - float(self._settings.player_size)

    def _step_player(self, dt_ms: float, jump_pressed: bool) -> None:
        params = self._params
        if params is None:
            return
        player = self._player
        if jump_pressed and player.on_ground:
            player.velocity_y = float(params.jump_force)
            player.on_ground = False

        if player.on_ground:
            return

        dt_seconds = dt_ms / 1000.0
        player.velocity_y += float(params.gravity) * dt_seconds
        player.y += player.velocity_y * dt_seconds
        if player.y >= self._ground_top():
            player.y = self._ground_top()
            player.velocity_y = 0.0
            player.on_ground = True

    def _scroll(self, dt_ms: float) -> None:
        if self._params is None:
            return
        dx = -float(self._params.scroll_speed) * dt_ms / 1000.0
        for obstacle in self._obstacles:
            obstacle.box = obstacle.box.shifted(dx)

    def _cull(self) -> List[Any]:
        events: List[Any] = []
        kept: List[RuntimeObstacle] = []
        for obstacle in self._obstacles:
            if obstacle.box.right < 0.0:
                events.append(ObstacleRemoved(obstacle_id=obstacle.obstacle_id, reason="offscreen"))
            else:
                kept.append(obstacle)
        self._obstacles = kept
        return events

    # -----------------------------
    # Spawning
    # -----------------------------

    def spawn_interval_ms(self) -> float:
        if self._params is None:
            return float("inf")
        density = float(self._pattern.density) if self._pattern is not None else 0.0
        return float(self._params.spawn_interval_ms) / (1.0 + density * float(self._settings.density_spawn_factor))

    def min_gap_px(self, pattern: Optional[MapPattern] = None) -> float:
        gap = float(self._settings.fixed_min_gap_px)
        if pattern is not None:
            gap = max(gap, float(pattern.spacing))
        if self._params is not None:
            gap = max(gap, self._params.jump_arc_distance())
        return gap

    def _maybe_spawn(self, dt_ms: float) -> List[Any]:
        self._since_spawn_ms += dt_ms
        if self._since_spawn_ms < self.spawn_interval_ms():
            return []

        shape = self._choose_shape(self._pattern)
        if shape is None:
            # Deliberately empty slot (gaps pattern, gap roll or exhausted collectibles).
            self._since_spawn_ms = 0.0
            return []

        kind, width, height, y, color = shape
        candidate = self._place(width, height, y)
        if candidate is None:
            return []

        obstacle = RuntimeObstacle(
            obstacle_id=self._next_obstacle_id,
            kind=kind,
            box=candidate,
            lethal=kind != ObstacleKind.COLLECTIBLE,
            color=color,
        )
        self._next_obstacle_id += 1
        self._obstacles.append(obstacle)
        self._since_spawn_ms = 0.0
        if kind == ObstacleKind.COLLECTIBLE:
            self._pattern_spawned += 1
        return [ObstacleSpawned(obstacle_id=obstacle.obstacle_id, kind=kind, box=candidate, color=color)]

    def _place(self, width: float, height: float, y: float) -> Optional[Box]:
        spawn_x = float(self._settings.playfield_width)
        x = spawn_x
        if self._obstacles:
            rightmost = max(obstacle.box.right for obstacle in self._obstacles)
            x = max(spawn_x, rightmost + self.min_gap_px(self._pattern))
        if x > spawn_x + float(self._settings.max_spawn_lookahead_px):
            return None

        candidate = Box(x=x, y=y, width=width, height=height)
        if any(candidate.overlaps(obstacle.box) for obstacle in self._obstacles):
            return None
        return candidate

    def _spike_shape(self, count: int) -> Tuple[ObstacleKind, float, float, float, str]:
        count = int(max(1, count))
        ground = float(self._settings.ground_y)
        return (ObstacleKind.SPIKE, SPIKE_WIDTH_PX * count, SPIKE_HEIGHT_PX, ground - SPIKE_HEIGHT_PX, self._obstacle_color())

    def _block_shape(self, width: Optional[float]) -> Tuple[ObstacleKind, float, float, float, str]:
        ground = float(self._settings.ground_y)
        block_width = float(width) if width is not None else DEFAULT_BLOCK_WIDTH_PX
        return (ObstacleKind.BLOCK, block_width, BLOCK_HEIGHT_PX, ground - BLOCK_HEIGHT_PX, self._obstacle_color())

    def _collectible_shape(self) -> Tuple[ObstacleKind, float, float, float, str]:
        y = float(self._settings.ground_y) - COLLECTIBLE_LIFT_PX
        color = self._map.visual_theme.particle_color if self._map is not None else "#ffffff"
        return (ObstacleKind.COLLECTIBLE, COLLECTIBLE_SIZE_PX, COLLECTIBLE_SIZE_PX, y, color)

    def _obstacle_color(self) -> str:
        return self._params.obstacle_color if self._params is not None else "#ff4444"

    def _choose_shape(self, pattern: Optional[MapPattern]) -> Optional[Tuple[ObstacleKind, float, float, float, str]]:
        params = self._params
        if params is None:
            return None

        if pattern is None:
            total = params.spike_chance + params.block_chance + params.gap_chance
            if total <= 0.0:
                return None
            roll = self._rng.random() * total
            if roll < params.spike_chance:
                return self._spike_shape(2 if self._rng.random() < params.double_chance else 1)
            if roll < params.spike_chance + params.block_chance:
                return self._block_shape(None)
            return None

        if pattern.type == PatternType.GAPS:
            return None
        if pattern.type == PatternType.SPIKES:
            return self._spike_shape(self._rng.randint(1, max(1, pattern.spike_count or 1)))
        if pattern.type == PatternType.BLOCKS:
            return self._block_shape(pattern.block_width)
        if pattern.type == PatternType.COLLECTIBLES:
            if pattern.collectible_count is not None and self._pattern_spawned >= pattern.collectible_count:
                return None
            return self._collectible_shape()

        spike_weight = params.spike_chance * (1.0 + float(pattern.density))
        block_weight = params.block_chance
        if spike_weight + block_weight <= 0.0:
            return None
        if self._rng.random() * (spike_weight + block_weight) < spike_weight:
            return self._spike_shape(2 if self._rng.random() < params.double_chance else 1)
        return self._block_shape(pattern.block_width)

    # -----------------------------
    # Scoring
    # -----------------------------

    def _check_collisions(self) -> List[Any]:
        events: List[Any] = []
        player_box = self.player_box()

        for obstacle in list(self._obstacles):
            if obstacle.box.overlaps(player_box):
                if obstacle.lethal:
                    self._state = SpawnerState.DEAD
                    self._death_elapsed_ms = 0.0
                    self._blend = None
                    logger.info("Player died on obstacle %d with score %d", obstacle.obstacle_id, self._score)
                    events.append(DeathStarted(obstacle_id=obstacle.obstacle_id))
                    return events

                self._obstacles.remove(obstacle)
                events.append(ObstacleRemoved(obstacle_id=obstacle.obstacle_id, reason="collected"))
                events.append(self._add_score(int(self._settings.collectible_points), "collectible"))
                continue

            if obstacle.lethal and not obstacle.cleared and obstacle.box.right < player_box.x:
                obstacle.cleared = True
                events.append(self._add_score(int(self._settings.clear_points), "clear"))

        return events

    def _add_score(self, points: int, reason: str) -> ScoreChanged:
        self._score += points
        return ScoreChanged(score=self._score, delta=points, reason=reason)
