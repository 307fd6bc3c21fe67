from __future__ import annotations

import pytest

from gameplay_models import TrackAudioProfile
from parameter_mapper import (
    GRAVITY_RANGE,
    JUMP_FORCE_RANGE,
    SCROLL_SPEED_RANGE,
    SPAWN_INTERVAL_RANGE_MS,
    TransitionBlend,
    blend,
    blend_color,
    to_params,
)


def _track(**features: float) -> TrackAudioProfile:
    return TrackAudioProfile(id="t", name="Track", artist="Artist", duration_ms=60000, **features)


def _assert_in_bounds(params) -> None:
    assert SCROLL_SPEED_RANGE[0] <= params.scroll_speed <= SCROLL_SPEED_RANGE[1]
    assert GRAVITY_RANGE[0] <= params.gravity <= GRAVITY_RANGE[1]
    assert JUMP_FORCE_RANGE[0] <= params.jump_force <= JUMP_FORCE_RANGE[1]
    assert SPAWN_INTERVAL_RANGE_MS[0] <= params.spawn_interval_ms <= SPAWN_INTERVAL_RANGE_MS[1]
    for chance in (params.spike_chance, params.block_chance, params.gap_chance, params.double_chance):
        assert 0.0 <= chance <= 1.0


def test_higher_energy_scrolls_faster_and_spawns_sooner() -> None:
    energies = [0.0, 0.2, 0.4, 0.6, 0.8, 1.0]
    params = [to_params(_track(energy=energy)) for energy in energies]
    for slower, faster in zip(params, params[1:]):
        assert faster.scroll_speed >= slower.scroll_speed
        assert faster.spawn_interval_ms <= slower.spawn_interval_ms


def test_higher_acousticness_lowers_gravity() -> None:
    electronic = to_params(_track(acousticness=0.0))
    acoustic = to_params(_track(acousticness=1.0))
    assert acoustic.gravity < electronic.gravity


def test_higher_tempo_scrolls_faster() -> None:
    slow = to_params(_track(tempo=80.0))
    fast = to_params(_track(tempo=150.0))
    assert fast.scroll_speed >= slow.scroll_speed
    assert fast.spawn_interval_ms <= slow.spawn_interval_ms


@pytest.mark.parametrize(
    "features",
    [
        {"tempo": 0.0},
        {"tempo": 10000.0, "energy": 1.0, "danceability": 1.0},
        {"energy": 7.0, "valence": -3.0, "acousticness": 9.0},
        {"energy": -1.0, "danceability": -1.0, "tempo": -50.0},
    ],
)
def test_extreme_inputs_are_clamped(features) -> None:
    _assert_in_bounds(to_params(_track(**features)))


def test_energetic_track_hits_speed_and_interval_clamps() -> None:
    params = to_params(_track(energy=0.9, tempo=160.0, valence=0.8, danceability=0.9, acousticness=0.1))
    assert params.scroll_speed == pytest.approx(500.0)
    assert params.spawn_interval_ms == pytest.approx(500.0)


def test_base_speed_scales_scroll_speed() -> None:
    track = _track(energy=0.3)
    assert to_params(track, base_speed=200.0).scroll_speed < to_params(track, base_speed=300.0).scroll_speed


def test_blend_endpoints_are_exact() -> None:
    calm = to_params(_track(energy=0.1, valence=0.1, acousticness=0.9))
    loud = to_params(_track(energy=0.9, valence=0.9, acousticness=0.1))
    assert blend(calm, loud, 0.0) == calm
    assert blend(calm, loud, 1.0) == loud
    assert blend(calm, loud, -2.0) == calm
    assert blend(calm, loud, 3.0) == loud


def test_blend_midpoint_lies_between() -> None:
    calm = to_params(_track(energy=0.1))
    loud = to_params(_track(energy=0.9))
    middle = blend(calm, loud, 0.5)
    assert calm.scroll_speed < middle.scroll_speed < loud.scroll_speed
    assert loud.spawn_interval_ms < middle.spawn_interval_ms < calm.spawn_interval_ms


def test_color_blend_is_perceptual() -> None:
    assert blend_color("#000000", "#ffffff", 0.0) == "#000000"
    assert blend_color("#000000", "#ffffff", 1.0) == "#ffffff"
    middle = blend_color("#000000", "#ffffff", 0.5)
    red, green, blue = (int(middle[index:index + 2], 16) for index in (1, 3, 5))
    assert red == green == blue
    # Linear light mixing is brighter than a naive sRGB average.
    assert red > 128


def test_transition_blend_reaches_target() -> None:
    calm = to_params(_track(energy=0.1))
    loud = to_params(_track(energy=0.9))
    transition = TransitionBlend(calm, loud, 2000.0)
    assert transition.current() == calm
    halfway = transition.advance(1000.0)
    assert transition.progress() == pytest.approx(0.5)
    assert calm.scroll_speed < halfway.scroll_speed < loud.scroll_speed
    assert not transition.is_finished()
    assert transition.advance(1500.0) == loud
    assert transition.is_finished()


def test_zero_length_transition_is_immediately_finished() -> None:
    calm = to_params(_track(energy=0.1))
    loud = to_params(_track(energy=0.9))
    transition = TransitionBlend(calm, loud, 0.0)
    assert transition.is_finished()
    assert transition.current() == loud
