from __future__ import annotations

from gameplay_models import CacheStatus, MapVersion, SongMap, default_theme
from map_cache import MapCache


class FakeClock:
    def __init__(self, now_ms: float = 0.0) -> None:
        self.now_ms = now_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, dt_ms: float) -> None:
        self.now_ms += dt_ms


def _map(track_id: str, version: MapVersion = MapVersion.FALLBACK) -> SongMap:
    return SongMap(
        track_id=track_id,
        patterns=[],
        difficulty_curve=[],
        visual_theme=default_theme(),
        total_duration_ms=0.0,
        version=version,
    )


def test_install_marks_entries_ready_with_clock_time() -> None:
    clock = FakeClock(500.0)
    cache = MapCache(clock=clock)
    entry = cache.install(_map("a"))
    assert entry.status == CacheStatus.READY
    assert entry.generated_at_ms == 500.0
    assert "a" in cache
    assert cache.get("a") is entry
    assert cache.get("b") is None


def test_capacity_evicts_oldest_entry() -> None:
    clock = FakeClock()
    cache = MapCache(max_entries=3, clock=clock)
    for track_id in ("a", "b", "c"):
        cache.install(_map(track_id))
        clock.advance(100.0)

    cache.install(_map("d"))
    assert len(cache) == 3
    assert "a" not in cache
    assert {entry.map.track_id for entry in cache.entries()} == {"b", "c", "d"}


def test_replacing_an_entry_at_capacity_keeps_others() -> None:
    clock = FakeClock()
    cache = MapCache(max_entries=2, clock=clock)
    cache.install(_map("a"))
    clock.advance(10.0)
    cache.install(_map("b"))
    clock.advance(10.0)

    cache.install(_map("a", MapVersion.GENERATED))
    assert len(cache) == 2
    assert cache.get("a").map.version == MapVersion.GENERATED
    assert cache.get("a").generated_at_ms == 20.0
    assert "b" in cache


def test_sweep_drops_entries_older_than_ttl() -> None:
    clock = FakeClock()
    cache = MapCache(ttl_ms=1000.0, clock=clock)
    cache.install(_map("old"))
    clock.advance(600.0)
    cache.install(_map("new"))

    clock.advance(400.0)
    assert cache.sweep() == []

    clock.advance(1.0)
    assert cache.sweep() == ["old"]
    assert "new" in cache
    assert cache.sweep(now_ms=10000.0) == ["new"]
    assert len(cache) == 0


def test_clear_empties_cache() -> None:
    cache = MapCache(clock=FakeClock())
    cache.install(_map("a"))
    cache.clear()
    assert len(cache) == 0
    assert cache.entries() == []
