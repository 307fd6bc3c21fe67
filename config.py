"""
config.py

Typed configuration loading and validation for beatdash.

Design goals
- Load exactly one UTF-8 JSON config file
- Validate with pydantic (defaults included, AppConfig() is fully usable without a file)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If BEATDASH_CONFIG_PATH is set, that file is used.
- Otherwise beatdash searches these paths in order and uses the first one that exists:
  1) ./beatdash_config.json (current working directory)
  2) <user config dir>/beatdash/beatdash_config.json

Example config file (beatdash_config.json)
{
  "physics": {
    "base_speed": 300,
    "base_gravity_scale": 1.0
  },
  "cache": {
    "max_entries": 10,
    "ttl_seconds": 600,
    "sweep_interval_seconds": 60
  },
  "generation": {
    "enabled": true,
    "timeout_seconds": 30,
    "worker_threads": 2,
    "preload_next": true
  },
  "spawner": {
    "transition_ms": 2000,
    "random_seed": 7
  },
  "logging": {
    "level": "INFO",
    "log_to_file": true
  }
}
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from paths import user_config_path


class PhysicsConfig(BaseModel):
    base_speed: float = Field(default=300.0, gt=0, description="Scroll speed baseline in px/s before audio scaling.")
    base_gravity_scale: float = Field(default=1.0, gt=0, description="Multiplier applied to the derived gravity.")


class CacheConfig(BaseModel):
    max_entries: int = Field(default=10, ge=1, description="Maximum number of cached maps.")
    ttl_seconds: float = Field(default=600.0, ge=0, description="Entries older than this are swept.")
    sweep_interval_seconds: float = Field(default=60.0, gt=0, description="How often the TTL sweep runs.")


class GenerationConfig(BaseModel):
    enabled: bool = Field(default=True, description="Request generated maps in the background.")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Budget before a request is abandoned.")
    worker_threads: int = Field(default=2, ge=1, le=16, description="Background generation threads.")
    preload_next: bool = Field(default=True, description="Warm the cache for the next track on every track change.")
    simulated_latency_seconds: float = Field(
        default=1.5, ge=0, description="Artificial delay of the local reference variation service."
    )


class SpawnerConfig(BaseModel):
    playfield_width: float = Field(default=800.0, gt=0)
    playfield_height: float = Field(default=450.0, gt=0)
    ground_y: float = Field(default=400.0, gt=0)
    player_x: float = Field(default=120.0, ge=0)
    player_size: float = Field(default=30.0, gt=0)
    fixed_min_gap_px: float = Field(default=80.0, ge=0, description="Floor for the gap between obstacles.")
    max_spawn_lookahead_px: float = Field(
        default=800.0, ge=0, description="How far beyond the right edge a new obstacle may be placed."
    )
    transition_ms: float = Field(default=2000.0, ge=0, description="Parameter cross fade between tracks.")
    death_animation_ms: float = Field(default=600.0, ge=0, description="Delay between death and game over.")
    collectible_points: int = Field(default=10, ge=0)
    clear_points: int = Field(default=5, ge=0)
    density_spawn_factor: float = Field(
        default=2.0, ge=0, description="interval = spawn_interval / (1 + density * factor)."
    )
    random_seed: Optional[int] = Field(default=None, description="Seed for obstacle choice. Empty means random.")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    log_to_file: bool = Field(default=True, description="Also write beatdash.log in the user log directory.")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        normalized = (value or "").strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError("level must be one of: " + ", ".join(sorted(allowed)))
        return normalized

    def numeric_level(self) -> int:
        return int(logging.getLevelName(self.level))


class AppConfig(BaseModel):
    physics: PhysicsConfig = Field(default_factory=PhysicsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    spawner: SpawnerConfig = Field(default_factory=SpawnerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _default_config_candidates() -> List[Path]:
    return [
        Path.cwd() / "beatdash_config.json",
        user_config_path() / "beatdash_config.json",
    ]


def _resolve_config_path() -> Path:
    explicit_path_text = os.environ.get("BEATDASH_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    candidates_text = "\n".join("  - " + str(path) for path in _default_config_candidates())
    raise FileNotFoundError(
        "No beatdash config file found. Create beatdash_config.json in one of these locations:\n" + candidates_text
    )


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - BEATDASH_BASE_SPEED
    - BEATDASH_GRAVITY_SCALE
    - BEATDASH_CACHE_MAX_ENTRIES
    - BEATDASH_CACHE_TTL_SECONDS
    - BEATDASH_GENERATION_ENABLED
    - BEATDASH_GENERATION_TIMEOUT_SECONDS
    - BEATDASH_GENERATION_WORKERS
    - BEATDASH_PRELOAD_NEXT
    - BEATDASH_RANDOM_SEED
    - BEATDASH_LOG_LEVEL
    - BEATDASH_LOG_TO_FILE
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    physics_section = ensure_nested(updated_config, "physics")
    cache_section = ensure_nested(updated_config, "cache")
    generation_section = ensure_nested(updated_config, "generation")
    spawner_section = ensure_nested(updated_config, "spawner")
    logging_section = ensure_nested(updated_config, "logging")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            return

    def override_bool(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip().lower()
        if not value_text:
            return
        truthy = {"1", "true", "yes", "on"}
        falsy = {"0", "false", "no", "off"}
        if value_text in truthy:
            target_dict[key_name] = True
        elif value_text in falsy:
            target_dict[key_name] = False

    override_float("BEATDASH_BASE_SPEED", physics_section, "base_speed")
    override_float("BEATDASH_GRAVITY_SCALE", physics_section, "base_gravity_scale")

    override_int("BEATDASH_CACHE_MAX_ENTRIES", cache_section, "max_entries")
    override_float("BEATDASH_CACHE_TTL_SECONDS", cache_section, "ttl_seconds")

    override_bool("BEATDASH_GENERATION_ENABLED", generation_section, "enabled")
    override_float("BEATDASH_GENERATION_TIMEOUT_SECONDS", generation_section, "timeout_seconds")
    override_int("BEATDASH_GENERATION_WORKERS", generation_section, "worker_threads")
    override_bool("BEATDASH_PRELOAD_NEXT", generation_section, "preload_next")

    override_int("BEATDASH_RANDOM_SEED", spawner_section, "random_seed")

    override_string("BEATDASH_LOG_LEVEL", logging_section, "level")
    override_bool("BEATDASH_LOG_TO_FILE", logging_section, "log_to_file")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Path]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        raise ValueError(f"Config validation failed for {resolved_path}:\n{exception}") from exception

    return config, resolved_path


def load_config_or_defaults(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    """Like load_config, but a missing file yields defaults (environment overrides still apply)."""
    try:
        return load_config(config_path)
    except FileNotFoundError:
        config = AppConfig.model_validate(_apply_environment_overrides({}))
        return config, None


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)
