from __future__ import annotations

import random
from concurrent.futures import Future
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

import pytest

from config import SpawnerConfig
from gameplay_models import MapPattern, MapVersion, ObstacleKind, PatternType, SongMap, TrackAudioProfile, default_theme
from generation_service import ReferenceVariationService
from map_cache import MapCache
from map_generator import InlineTaskRunner, MapGenerator
from parameter_mapper import to_params
from runtime_spawner import (
    DeathStarted,
    FrameInput,
    GameOver,
    MapUpgraded,
    ObstacleRemoved,
    ObstacleSpawned,
    RuntimeSpawner,
    ScoreChanged,
    SpawnerState,
    TrackChanged,
)

FRAME_MS = 16.0


class ManualTaskRunner:
    def __init__(self) -> None:
        self.tasks: List[Tuple[Callable[[], Any], "Future[Any]"]] = []

    def submit(self, fn: Callable[[], Any]) -> "Future[Any]":
        future: "Future[Any]" = Future()
        self.tasks.append((fn, future))
        return future

    def complete(self, index: int) -> None:
        fn, future = self.tasks[index]
        future.set_result(fn())


def _track(track_id: str, duration_ms: int = 600000, **features: float) -> TrackAudioProfile:
    return TrackAudioProfile(id=track_id, name=track_id, artist="Artist", duration_ms=duration_ms, **features)


def _single_pattern_map(track_id: str, pattern_type: PatternType, *, density: float = 0.3, spacing: float = 100.0,
                        duration_ms: float = 600000.0, **fields: Any) -> SongMap:
    pattern = MapPattern(
        id="only",
        type=pattern_type,
        start_time_ms=0.0,
        duration_ms=duration_ms,
        density=density,
        difficulty=2,
        spacing=spacing,
        **fields,
    )
    return SongMap(
        track_id=track_id,
        patterns=[pattern],
        difficulty_curve=[],
        visual_theme=default_theme(),
        total_duration_ms=duration_ms,
        version=MapVersion.TEMPLATE,
    )


def _spawner(
    tracks: Sequence[TrackAudioProfile],
    *,
    maps: Iterable[SongMap] = (),
    config: Optional[SpawnerConfig] = None,
    service: Any = None,
    runner: Any = None,
    preload_next: bool = False,
) -> RuntimeSpawner:
    generator = MapGenerator(
        service,
        cache=MapCache(clock=lambda: 0.0),
        runner=runner if runner is not None else InlineTaskRunner(),
        clock=lambda: 0.0,
    )
    for song_map in maps:
        generator.cache.install(song_map)
    return RuntimeSpawner(
        tracks,
        generator,
        spawner_config=config,
        preload_next=preload_next,
        rng=random.Random(1),
    )


def _run(spawner: RuntimeSpawner, frames: int, frame_input: Optional[FrameInput] = None) -> List[Any]:
    events: List[Any] = []
    for _ in range(frames):
        events.extend(spawner.update(FRAME_MS, frame_input))
    return events


def _jump_when_close(spawner: RuntimeSpawner) -> bool:
    params = spawner.params
    if params is None or not spawner.player_on_ground():
        return False
    player = spawner.player_box()
    arc = params.jump_arc_distance()
    for obstacle in spawner.obstacles:
        if obstacle.lethal and obstacle.box.right > player.x:
            if obstacle.box.x - player.right <= max(0.0, (arc - obstacle.box.width - player.width) / 2.0):
                return True
    return False


def test_start_loads_first_track() -> None:
    track = _track("a")
    spawner = _spawner([track])

    assert spawner.update(FRAME_MS) == []
    events = spawner.start()

    assert events == [TrackChanged(track_index=0, track_id="a", map_version="fallback")]
    assert spawner.state == SpawnerState.PLAYING
    assert spawner.params == to_params(track)
    assert spawner.current_map.version == MapVersion.FALLBACK
    assert spawner.start() == []


def test_start_without_tracks_stays_idle() -> None:
    spawner = _spawner([])
    assert spawner.start() == []
    assert spawner.state == SpawnerState.IDLE


def test_obstacles_keep_jump_gap_and_never_overlap() -> None:
    config = SpawnerConfig(playfield_width=5000.0, max_spawn_lookahead_px=5000.0)
    spawner = _spawner(
        [_track("a")],
        maps=[_single_pattern_map("a", PatternType.SPIKES, density=0.5, spike_count=3)],
        config=config,
    )
    spawner.start()
    arc = spawner.params.jump_arc_distance()

    spawned = 0
    for _ in range(600):
        events = spawner.update(FRAME_MS)
        spawned += sum(isinstance(event, ObstacleSpawned) for event in events)
        boxes = sorted((obstacle.box for obstacle in spawner.obstacles), key=lambda box: box.x)
        for left, right in zip(boxes, boxes[1:]):
            assert not left.overlaps(right)
            assert right.x - left.right >= arc - 1e-6

    assert spawned >= 5
    assert spawner.state == SpawnerState.PLAYING


def test_new_obstacle_enters_at_right_edge_then_scrolls() -> None:
    spawner = _spawner([_track("a")], maps=[_single_pattern_map("a", PatternType.SPIKES, spike_count=1)])
    spawner.start()

    spawned: Optional[ObstacleSpawned] = None
    for _ in range(200):
        for event in spawner.update(FRAME_MS):
            if isinstance(event, ObstacleSpawned):
                spawned = event
        if spawned is not None:
            break
    assert spawned is not None
    assert spawned.box.x == 800.0
    assert spawned.box.bottom == spawner.ground_y

    spawner.update(FRAME_MS)
    obstacle = next(item for item in spawner.obstacles if item.obstacle_id == spawned.obstacle_id)
    assert obstacle.box.x == pytest.approx(800.0 - spawner.params.scroll_speed * FRAME_MS / 1000.0)


def test_gaps_pattern_spawns_nothing() -> None:
    spawner = _spawner([_track("a")], maps=[_single_pattern_map("a", PatternType.GAPS, density=0.2, gap_width=90.0)])
    spawner.start()
    events = _run(spawner, 400)
    assert not any(isinstance(event, ObstacleSpawned) for event in events)
    assert spawner.obstacles == ()


def test_denser_patterns_spawn_sooner() -> None:
    sparse = _spawner([_track("a")], maps=[_single_pattern_map("a", PatternType.SPIKES, density=0.1)])
    dense = _spawner([_track("a")], maps=[_single_pattern_map("a", PatternType.SPIKES, density=0.6)])
    for spawner in (sparse, dense):
        spawner.start()
        spawner.update(FRAME_MS)
    assert dense.spawn_interval_ms() < sparse.spawn_interval_ms()
    assert sparse.min_gap_px(sparse.current_pattern) >= sparse.params.jump_arc_distance()


def test_collectibles_score_and_respect_count() -> None:
    config = SpawnerConfig(player_size=120.0)
    spawner = _spawner(
        [_track("a")],
        maps=[_single_pattern_map("a", PatternType.COLLECTIBLES, density=0.2, collectible_count=2)],
        config=config,
    )
    spawner.start()
    events = _run(spawner, 375)

    spawns = [event for event in events if isinstance(event, ObstacleSpawned)]
    assert [event.kind for event in spawns] == [ObstacleKind.COLLECTIBLE, ObstacleKind.COLLECTIBLE]
    collected = [event for event in events if isinstance(event, ObstacleRemoved) and event.reason == "collected"]
    assert len(collected) == 2
    scores = [event for event in events if isinstance(event, ScoreChanged)]
    assert [(event.delta, event.reason) for event in scores] == [(10, "collectible"), (10, "collectible")]
    assert spawner.score == 20
    assert spawner.state == SpawnerState.PLAYING


def test_cleared_obstacles_score_once() -> None:
    spawner = _spawner(
        [_track("a")],
        maps=[_single_pattern_map("a", PatternType.BLOCKS, density=0.3, spacing=150.0, block_width=40.0)],
    )
    spawner.start()

    clears = 0
    lethal_spawns = 0
    for _ in range(900):
        events = spawner.update(FRAME_MS, FrameInput(jump_pressed=_jump_when_close(spawner)))
        assert not any(isinstance(event, DeathStarted) for event in events)
        lethal_spawns += sum(isinstance(event, ObstacleSpawned) and event.kind == ObstacleKind.BLOCK for event in events)
        clears += sum(isinstance(event, ScoreChanged) and event.reason == "clear" for event in events)

    assert clears >= 1
    assert clears <= lethal_spawns
    assert spawner.score == 5 * clears


def test_death_reports_game_over_once() -> None:
    spawner = _spawner([_track("a")], maps=[_single_pattern_map("a", PatternType.SPIKES, spike_count=1)])
    spawner.start()

    died = False
    for _ in range(1000):
        if any(isinstance(event, DeathStarted) for event in spawner.update(FRAME_MS)):
            died = True
            break
    assert died
    assert spawner.state == SpawnerState.DEAD
    frozen = [obstacle.box for obstacle in spawner.obstacles]
    score = spawner.score

    assert not any(isinstance(event, GameOver) for event in _run(spawner, 30))
    later = _run(spawner, 10) + _run(spawner, 100)
    assert [event for event in later if isinstance(event, GameOver)] == [GameOver(score=score)]
    assert not any(isinstance(event, ObstacleSpawned) for event in later)
    assert [obstacle.box for obstacle in spawner.obstacles] == frozen
    assert spawner.skip_track() == []

    spawner.reset()
    assert spawner.state == SpawnerState.IDLE
    assert spawner.score == 0
    assert spawner.obstacles == ()


def test_skip_track_clears_field_and_blends_parameters() -> None:
    first = _track("a")
    second = _track("b", energy=0.2, valence=0.2, acousticness=0.9)
    spawner = _spawner([first, second])
    spawner.start()
    _run(spawner, 100)
    on_field = [obstacle.obstacle_id for obstacle in spawner.obstacles]
    assert on_field

    events = spawner.update(FRAME_MS, FrameInput(skip_track_pressed=True))

    removed = [event.obstacle_id for event in events if isinstance(event, ObstacleRemoved)]
    assert removed == on_field
    assert all(event.reason == "reset" for event in events if isinstance(event, ObstacleRemoved))
    assert [event for event in events if isinstance(event, TrackChanged)] == [
        TrackChanged(track_index=1, track_id="b", map_version="fallback")
    ]
    assert spawner.state == SpawnerState.TRANSITIONING
    assert spawner.obstacles == ()
    assert spawner.current_map.track_id == "b"
    assert spawner.params != to_params(second)

    _run(spawner, 130)
    assert spawner.state == SpawnerState.PLAYING
    assert spawner.params == to_params(second)


def test_track_end_advances_and_wraps() -> None:
    spawner = _spawner([_track("a", duration_ms=1000), _track("b", duration_ms=1000)])
    spawner.start()

    events = _run(spawner, 126)

    changes = [event.track_index for event in events if isinstance(event, TrackChanged)]
    assert changes == [1, 0]
    assert spawner.tracks_played == 3
    assert spawner.track_index == 0


def test_generated_map_replaces_fallback_for_current_track() -> None:
    spawner = _spawner([_track("a", duration_ms=90000)], service=ReferenceVariationService())
    spawner.start()
    assert spawner.current_map.version == MapVersion.FALLBACK

    events = spawner.update(FRAME_MS)

    assert MapUpgraded(track_id="a") in events
    assert spawner.current_map.version == MapVersion.GENERATED
    assert spawner.current_map.total_duration_ms == 90000


def test_late_result_for_previous_track_is_not_applied() -> None:
    runner = ManualTaskRunner()
    spawner = _spawner(
        [_track("a", duration_ms=90000), _track("b", duration_ms=90000)],
        service=ReferenceVariationService(),
        runner=runner,
        preload_next=True,
    )
    spawner.start()
    assert len(runner.tasks) == 2

    spawner.skip_track()
    runner.complete(0)
    events = spawner.update(FRAME_MS)

    assert not any(isinstance(event, MapUpgraded) for event in events)
    assert spawner.current_map.track_id == "b"
    assert spawner.current_map.version == MapVersion.FALLBACK

    runner.complete(1)
    events = spawner.update(FRAME_MS)
    assert MapUpgraded(track_id="b") in events
    assert spawner.current_map.version == MapVersion.GENERATED


def test_load_playlist_resets_session() -> None:
    spawner = _spawner([_track("a")])
    spawner.start()
    _run(spawner, 10)

    spawner.load_playlist([_track("c")])

    assert spawner.state == SpawnerState.IDLE
    assert spawner.current_map is None
    assert spawner.start()[0].track_id == "c"
