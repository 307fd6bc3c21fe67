# -*- coding: utf-8 -*-
########################
# parameter_mapper.py
########################
# Purpose:
# - Convert a track's audio profile into continuous gameplay parameters.
# - Blend two parameter bundles during a track transition.
#
# Design notes:
# - No Qt usage. Pure functions.
# - Every output field is clamped into its documented range, whatever the input.
# - Formulas are monotonic in their driving feature:
#   - energy up -> scroll speed up, spawn interval down
#   - acousticness up -> gravity down
#   - tempo up -> scroll speed up, spawn interval down (tempo is floored, never divides by zero)
# - Colours are blended in linear light, not in gamma encoded sRGB.
#
########################
# Interfaces:
# Public functions:
# - to_params(track, base_speed=300.0, base_gravity_scale=1.0) -> GameplayParameters
# - blend(a, b, t) -> GameplayParameters
# - blend_color(a_hex, b_hex, t) -> str
#
# Public classes:
# - class TransitionBlend
#   - __init__(source, target, duration_ms)
#   - advance(dt_ms) -> GameplayParameters
#   - current() -> GameplayParameters
#   - is_finished() -> bool
#
########################

from __future__ import annotations

from typing import Tuple

from gameplay_models import GameplayParameters, TrackAudioProfile

SCROLL_SPEED_RANGE = (150.0, 500.0)
GRAVITY_RANGE = (800.0, 2800.0)
JUMP_FORCE_RANGE = (-1400.0, -600.0)
SPAWN_INTERVAL_RANGE_MS = (500.0, 2000.0)

BASE_GRAVITY = 1800.0
JUMP_HEIGHT_PX = 160.0
TEMPO_FLOOR_BPM = 60.0
TEMPO_CEILING_BPM = 220.0
REFERENCE_TEMPO_BPM = 120.0


def _clamp(value: float, low: float, high: float) -> float:
    return float(max(low, min(high, float(value))))


def _unit(value: float) -> float:
    return _clamp(value, 0.0, 1.0)


def _tempo_factor(tempo: float) -> float:
    return _clamp(tempo, TEMPO_FLOOR_BPM, TEMPO_CEILING_BPM) / REFERENCE_TEMPO_BPM


def _obstacle_colors(valence: float, acousticness: float) -> Tuple[str, str]:
    color, glow = "#ff4444", "#ff6666"
    if valence > 0.7:
        color, glow = "#44ff44", "#66ff66"
    elif valence < 0.3:
        color, glow = "#ff0066", "#ff3388"

    if acousticness > 0.6:
        color, glow = "#ff8844", "#ffaa66"
    elif acousticness < 0.2:
        color, glow = "#4444ff", "#6666ff"
    return color, glow


def to_params(
    track: TrackAudioProfile,
    base_speed: float = 300.0,
    base_gravity_scale: float = 1.0,
) -> GameplayParameters:
    energy = _unit(track.energy)
    valence = _unit(track.valence)
    danceability = _unit(track.danceability)
    acousticness = _unit(track.acousticness)
    tempo_factor = _tempo_factor(track.tempo)

    scroll_speed = float(base_speed) * (0.6 + 0.9 * energy) * tempo_factor

    gravity = BASE_GRAVITY * float(base_gravity_scale) * (1.25 - 0.5 * acousticness)
    gravity = _clamp(gravity, *GRAVITY_RANGE)

    # Constant jump apex height under the clamped gravity.
    jump_force = -((2.0 * gravity * JUMP_HEIGHT_PX) ** 0.5)

    spawn_interval = (2400.0 - 1600.0 * energy - 500.0 * danceability) / tempo_factor

    obstacle_color, obstacle_glow = _obstacle_colors(valence, acousticness)

    return GameplayParameters(
        scroll_speed=_clamp(scroll_speed, *SCROLL_SPEED_RANGE),
        gravity=gravity,
        jump_force=_clamp(jump_force, *JUMP_FORCE_RANGE),
        spike_chance=_unit(0.3 + 0.4 * energy),
        block_chance=_unit(0.2 + 0.3 * (1.0 - valence)),
        gap_chance=_unit(0.1 + 0.2 * danceability),
        double_chance=_unit(0.05 + 0.35 * energy * min(1.0, tempo_factor)),
        spawn_interval_ms=_clamp(spawn_interval, *SPAWN_INTERVAL_RANGE_MS),
        obstacle_color=obstacle_color,
        obstacle_glow=obstacle_glow,
    )


# -----------------------------
# Colour blending
# -----------------------------


def _parse_hex(color: str) -> Tuple[int, int, int]:
    text = str(color or "").strip().lstrip("#")
    if len(text) == 3:
        text = "".join(character * 2 for character in text)
    if len(text) != 6:
        return (255, 255, 255)
    try:
        return (int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))
    except ValueError:
        return (255, 255, 255)


def _srgb_to_linear(channel: int) -> float:
    value = channel / 255.0
    if value <= 0.04045:
        return value / 12.92
    return ((value + 0.055) / 1.055) ** 2.4


def _linear_to_srgb(value: float) -> int:
    value = _unit(value)
    if value <= 0.0031308:
        encoded = value * 12.92
    else:
        encoded = 1.055 * (value ** (1.0 / 2.4)) - 0.055
    return int(round(_unit(encoded) * 255.0))


def blend_color(a_hex: str, b_hex: str, t: float) -> str:
    if t <= 0.0:
        return a_hex
    if t >= 1.0:
        return b_hex
    a_rgb = _parse_hex(a_hex)
    b_rgb = _parse_hex(b_hex)
    mixed = []
    for a_channel, b_channel in zip(a_rgb, b_rgb):
        a_linear = _srgb_to_linear(a_channel)
        b_linear = _srgb_to_linear(b_channel)
        mixed.append(_linear_to_srgb(a_linear + (b_linear - a_linear) * t))
    return "#{:02x}{:02x}{:02x}".format(*mixed)


def _lerp(a: float, b: float, t: float) -> float:
    return float(a) + (float(b) - float(a)) * t


def blend(a: GameplayParameters, b: GameplayParameters, t: float) -> GameplayParameters:
    t = _unit(t)
    # Endpoints are returned as-is so float rounding can never break blend(a, b, 0) == a.
    if t <= 0.0:
        return a
    if t >= 1.0:
        return b
    return GameplayParameters(
        scroll_speed=_lerp(a.scroll_speed, b.scroll_speed, t),
        gravity=_lerp(a.gravity, b.gravity, t),
        jump_force=_lerp(a.jump_force, b.jump_force, t),
        spike_chance=_lerp(a.spike_chance, b.spike_chance, t),
        block_chance=_lerp(a.block_chance, b.block_chance, t),
        gap_chance=_lerp(a.gap_chance, b.gap_chance, t),
        double_chance=_lerp(a.double_chance, b.double_chance, t),
        spawn_interval_ms=_lerp(a.spawn_interval_ms, b.spawn_interval_ms, t),
        obstacle_color=blend_color(a.obstacle_color, b.obstacle_color, t),
        obstacle_glow=blend_color(a.obstacle_glow, b.obstacle_glow, t),
    )


class TransitionBlend:
    """Time driven cross fade between two parameter bundles."""

    def __init__(self, source: GameplayParameters, target: GameplayParameters, duration_ms: float) -> None:
        self._source = source
        self._target = target
        self._duration_ms = float(max(0.0, duration_ms))
        self._elapsed_ms = 0.0

    @property
    def target(self) -> GameplayParameters:
        return self._target

    def progress(self) -> float:
        if self._duration_ms <= 0.0:
            return 1.0
        return _unit(self._elapsed_ms / self._duration_ms)

    def advance(self, dt_ms: float) -> GameplayParameters:
        self._elapsed_ms += float(max(0.0, dt_ms))
        return self.current()

    def current(self) -> GameplayParameters:
        return blend(self._source, self._target, self.progress())

    def is_finished(self) -> bool:
        return self.progress() >= 1.0


def _run_unit_tests() -> None:
    calm = TrackAudioProfile(id="a", name="A", artist="X", duration_ms=1000, energy=0.1, tempo=0.0)
    loud = TrackAudioProfile(id="b", name="B", artist="X", duration_ms=1000, energy=0.9, tempo=160.0,
                             valence=0.8, danceability=0.9, acousticness=0.1)
    calm_params = to_params(calm)
    loud_params = to_params(loud)
    assert loud_params.scroll_speed == 500.0
    assert loud_params.spawn_interval_ms == 500.0
    assert calm_params.scroll_speed < loud_params.scroll_speed
    assert blend(calm_params, loud_params, 0.0) == calm_params
    assert blend(calm_params, loud_params, 1.0) == loud_params


if __name__ == "__main__":
    _run_unit_tests()
    print("parameter_mapper.py: ok")
