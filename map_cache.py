# -*- coding: utf-8 -*-
########################
# map_cache.py
########################
# Purpose:
# - Bounded in-memory cache of installed SongMaps keyed by track id.
# - Age based eviction on insert and a TTL sweep.
#
# Design notes:
# - Clock is injected (milliseconds). Tests advance a fake clock, nothing waits on wall time.
# - Every stored entry is READY. Generation progress is tracked by map_generator, not here,
#   so a reader never sees a pending or failed entry.
# - Insert of a new key into a full cache first evicts the entry with the oldest generated_at_ms.
#   Replacing an existing key never evicts.
# - Single writer: only the frame thread mutates the cache (map_generator.pump installs results).
#
########################
# Interfaces:
# Public classes:
# - class MapCache
#   - __init__(max_entries=10, ttl_ms=600000, clock=monotonic_ms)
#   - get(track_id) -> Optional[CacheEntry]
#   - install(song_map) -> CacheEntry
#   - sweep(now_ms=None) -> list[str]
#   - clear() -> None
#   - entries() -> list[CacheEntry]
#
# Public functions:
# - monotonic_ms() -> float
#
########################

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional

from gameplay_models import CacheEntry, CacheStatus, SongMap

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class MapCache:
    def __init__(
        self,
        max_entries: int = 10,
        ttl_ms: float = 600000.0,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._max_entries = int(max(1, max_entries))
        self._ttl_ms = float(max(0.0, ttl_ms))
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def ttl_ms(self) -> float:
        return self._ttl_ms

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._entries

    def get(self, track_id: str) -> Optional[CacheEntry]:
        return self._entries.get(track_id)

    def entries(self) -> List[CacheEntry]:
        return list(self._entries.values())

    def install(self, song_map: SongMap) -> CacheEntry:
        track_id = song_map.track_id
        if track_id not in self._entries and len(self._entries) >= self._max_entries:
            self._evict_oldest()

        entry = CacheEntry(map=song_map, status=CacheStatus.READY, generated_at_ms=float(self._clock()))
        self._entries[track_id] = entry
        return entry

    def _evict_oldest(self) -> None:
        if not self._entries:
            return
        oldest_id = min(self._entries, key=lambda key: self._entries[key].generated_at_ms)
        del self._entries[oldest_id]
        logger.debug("Evicted oldest cache entry %s (capacity %d)", oldest_id, self._max_entries)

    def sweep(self, now_ms: Optional[float] = None) -> List[str]:
        """Evict entries older than the TTL. Returns the evicted track ids."""
        now = float(self._clock()) if now_ms is None else float(now_ms)
        expired = [
            track_id
            for track_id, entry in self._entries.items()
            if now - entry.generated_at_ms > self._ttl_ms
        ]
        for track_id in expired:
            del self._entries[track_id]
        if expired:
            logger.debug("TTL sweep evicted %d entr%s", len(expired), "y" if len(expired) == 1 else "ies")
        return expired

    def clear(self) -> None:
        self._entries.clear()
