"""
beatdash.py

Entrypoint. Launches the Qt harness by default; also supports config checks and headless simulation.

Integration
- Loads config (file + env overrides, defaults when no file exists)
- Sets up logging
- Loads a playlist JSON file, or uses the built-in demo playlist
- Wires MapGenerator (cache + background generation) into RuntimeSpawner
- Starts the Qt harness, or drives the spawner headless with --simulate

Standalone usage
python beatdash.py                      play the demo playlist
python beatdash.py --playlist tracks.json
python beatdash.py --check-config
python beatdash.py --simulate 120       headless run with auto-jump, prints a JSON summary
"""

from __future__ import annotations

import argparse
import json
import logging
import random
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from config import AppConfig, load_config, load_config_or_defaults, to_json
from gameplay_models import ObstacleKind, TrackAudioProfile
from generation_service import ReferenceVariationService
from logging_utils import setup_logging
from map_cache import MapCache, monotonic_ms
from map_generator import InlineTaskRunner, MapGenerator, TaskRunner, ThreadedTaskRunner
from runtime_spawner import FrameInput, GameOver, ObstacleSpawned, RuntimeSpawner, TrackChanged
from track_catalog import filter_valid_tracks, load_tracks_json

logger = logging.getLogger(__name__)

DEMO_PLAYLIST: List[Dict[str, Any]] = [
    {"id": "demo-calm", "name": "Slow Tide", "artist": "Demo", "durationMs": 45000,
     "energy": 0.3, "tempo": 92, "valence": 0.6, "danceability": 0.4, "acousticness": 0.7},
    {"id": "demo-drive", "name": "Night Drive", "artist": "Demo", "durationMs": 60000,
     "energy": 0.7, "tempo": 128, "valence": 0.35, "danceability": 0.7, "acousticness": 0.1},
    {"id": "demo-rush", "name": "Overclock", "artist": "Demo", "durationMs": 50000,
     "energy": 0.9, "tempo": 160, "valence": 0.8, "danceability": 0.9, "acousticness": 0.05},
]


def build_generator(
    app_config: AppConfig,
    *,
    clock: Callable[[], float] = monotonic_ms,
    runner: Optional[TaskRunner] = None,
    latency_seconds: Optional[float] = None,
) -> MapGenerator:
    generation = app_config.generation
    cache = MapCache(
        max_entries=app_config.cache.max_entries,
        ttl_ms=app_config.cache.ttl_seconds * 1000.0,
        clock=clock,
    )
    latency = generation.simulated_latency_seconds if latency_seconds is None else latency_seconds
    return MapGenerator(
        ReferenceVariationService(latency_seconds=latency),
        cache=cache,
        runner=runner if runner is not None else ThreadedTaskRunner(max_workers=generation.worker_threads),
        clock=clock,
        timeout_ms=generation.timeout_seconds * 1000.0,
        sweep_interval_ms=app_config.cache.sweep_interval_seconds * 1000.0,
        enabled=generation.enabled,
    )


def load_playlist(path: Optional[Path]) -> List[TrackAudioProfile]:
    if path is None:
        return filter_valid_tracks(DEMO_PLAYLIST)
    return load_tracks_json(path)


# -----------------------------
# Headless simulation
# -----------------------------


def _should_auto_jump(spawner: RuntimeSpawner) -> bool:
    """Jump so the next lethal obstacle sits near the middle of the jump arc."""
    params = spawner.params
    if params is None or not spawner.player_on_ground():
        return False
    player = spawner.player_box()
    arc = params.jump_arc_distance()
    for obstacle in spawner.obstacles:
        if not obstacle.lethal or obstacle.box.right <= player.x:
            continue
        distance = obstacle.box.x - player.right
        trigger = max(0.0, (arc - obstacle.box.width - player.width) / 2.0)
        if distance <= trigger:
            return True
    return False


def run_simulation(app_config: AppConfig, tracks: List[TrackAudioProfile], seconds: float, dt_ms: float) -> Dict[str, Any]:
    simulated_now = [0.0]

    def clock() -> float:
        return simulated_now[0]

    generator = build_generator(app_config, clock=clock, runner=InlineTaskRunner(), latency_seconds=0.0)
    seed = app_config.spawner.random_seed
    spawner = RuntimeSpawner(
        tracks,
        generator,
        spawner_config=app_config.spawner,
        physics_config=app_config.physics,
        preload_next=app_config.generation.preload_next,
        rng=random.Random(0 if seed is None else seed),
    )

    summary: Dict[str, Any] = {
        "ok": True,
        "simulated_seconds": float(seconds),
        "frames": 0,
        "jumps": 0,
        "deaths": 0,
        "best_score": 0,
        "track_changes": 0,
        "obstacles_spawned": 0,
        "collectibles_spawned": 0,
    }
    if not tracks:
        summary["ok"] = False
        summary["error"] = "Playlist has no valid tracks"
        return summary

    spawner.start()
    total_frames = int(float(seconds) * 1000.0 / float(dt_ms))
    for _frame in range(total_frames):
        simulated_now[0] += float(dt_ms)
        jump = _should_auto_jump(spawner)
        if jump:
            summary["jumps"] += 1
        for event in spawner.update(dt_ms, FrameInput(jump_pressed=jump)):
            if isinstance(event, TrackChanged):
                summary["track_changes"] += 1
            elif isinstance(event, GameOver):
                summary["deaths"] += 1
                summary["best_score"] = max(summary["best_score"], event.score)
                spawner.reset()
                spawner.start()
            elif isinstance(event, ObstacleSpawned):
                if event.kind == ObstacleKind.COLLECTIBLE:
                    summary["collectibles_spawned"] += 1
                else:
                    summary["obstacles_spawned"] += 1
        summary["frames"] += 1

    summary["final_score"] = spawner.score
    summary["best_score"] = max(summary["best_score"], spawner.score)
    summary["cache"] = generator.cache_stats()
    generator.shutdown()
    return summary


# -----------------------------
# CLI
# -----------------------------


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="beatdash: audio driven auto-runner")
    parser.add_argument("--config", type=Path, default=None, help="Path to beatdash_config.json.")
    parser.add_argument("--playlist", type=Path, default=None, help="Playlist JSON file (list of tracks).")
    parser.add_argument("--check-config", action="store_true", help="Print the effective config and exit.")
    parser.add_argument("--simulate", type=float, metavar="SECONDS", default=None, help="Run headless for SECONDS.")
    parser.add_argument("--dt-ms", type=float, default=16.0, help="Frame step for --simulate.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_argument_parser().parse_args(argv)

    try:
        if args.config is not None:
            app_config, config_path = load_config(args.config)
        else:
            app_config, config_path = load_config_or_defaults()
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    if args.check_config:
        payload = {
            "ok": True,
            "config_path": str(config_path) if config_path is not None else None,
            "config": json.loads(to_json(app_config)),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    setup_logging(app_config.logging.numeric_level(), log_to_file=app_config.logging.log_to_file)

    try:
        tracks = load_playlist(args.playlist)
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    if args.simulate is not None:
        summary = run_simulation(app_config, tracks, float(args.simulate), max(1.0, float(args.dt_ms)))
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return 0 if summary["ok"] else 1

    if not tracks:
        logger.error("Playlist has no valid tracks")
        return 1

    # Qt is only needed for the interactive harness.
    from game_harness import run_harness

    generator = build_generator(app_config)
    spawner = RuntimeSpawner(
        tracks,
        generator,
        spawner_config=app_config.spawner,
        physics_config=app_config.physics,
        preload_next=app_config.generation.preload_next,
    )
    try:
        return run_harness(
            spawner,
            width=int(app_config.spawner.playfield_width),
            height=int(app_config.spawner.playfield_height),
        )
    finally:
        generator.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
