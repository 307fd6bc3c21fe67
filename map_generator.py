# -*- coding: utf-8 -*-
########################
# map_generator.py
########################
# Purpose:
# - Hand out a ready SongMap for any track immediately and upgrade it in the background.
# - Owns the MapCache, the per-track in-flight generation records and the completion channel.
#
# Design notes:
# - ensure_map never blocks on generation. A missing entry gets a validated fallback map
#   installed synchronously, then exactly one generation request is submitted for that track.
# - Background work is a supervised Future. Its completion is pushed onto a queue.Queue and only
#   pump(), called by the frame loop, installs results. Worker threads never touch the cache.
# - A result is always written to the cache entry of its own track. A MapUpgrade is returned to the
#   frame loop only when that track is still the active one and the request was not abandoned.
# - Any error from a service (transport, payload, anything else) leaves the fallback in place.
#   It is logged and recorded as a FAILED request, never raised to the caller.
# - tick() runs the TTL sweep on its own interval and abandons requests over the timeout budget.
#   An abandoned request stays in flight so no duplicate is issued for the same track.
# - clear() keeps the worker tasks of the old session as orphans. A track with an orphaned task
#   gets no new request until that task finishes. pump() then issues the deferred request.
# - A request status lives only as long as the track has a cache entry or a pending request.
#
########################
# Interfaces:
# Public protocols:
# - class TaskRunner(Protocol): submit(fn) -> concurrent.futures.Future
#
# Public classes:
# - class ThreadedTaskRunner(max_workers=2)
# - class InlineTaskRunner()
# - class MapUpgrade(track_id, map)
# - class MapGenerator
#   - ensure_map(track) -> SongMap
#   - is_generating(track_id) -> bool
#   - get_cached(track_id) -> Optional[SongMap]
#   - request_status(track_id) -> Optional[CacheStatus]
#   - set_active_track(track_id) -> None
#   - pump() -> list[MapUpgrade]
#   - tick() -> None
#   - preload_next(current_index, tracks) -> Optional[SongMap]
#   - cache_stats() -> dict
#   - clear() -> None
#   - shutdown() -> None
#
########################

from __future__ import annotations

import itertools
import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from gameplay_models import CacheStatus, MapVersion, SongMap, TrackAudioProfile
from generation_service import GenerationPayloadError, MapGenerationError, MapGenerationService
from map_cache import MapCache, monotonic_ms
from pattern_library import build_fallback_map
from playability import enforce_difficulty_ramp, validate

logger = logging.getLogger(__name__)


# -----------------------------
# Task runners
# -----------------------------


class TaskRunner(Protocol):
    def submit(self, fn: Callable[[], Any]) -> "Future[Any]":
        raise NotImplementedError


class ThreadedTaskRunner:
    def __init__(self, max_workers: int = 2) -> None:
        self._executor = ThreadPoolExecutor(max_workers=int(max(1, max_workers)), thread_name_prefix="beatdash-gen")

    def submit(self, fn: Callable[[], Any]) -> "Future[Any]":
        return self._executor.submit(fn)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class InlineTaskRunner:
    """Runs each task on the calling thread. Results still arrive through pump()."""

    def submit(self, fn: Callable[[], Any]) -> "Future[Any]":
        future: "Future[Any]" = Future()
        try:
            future.set_result(fn())
        except Exception as exception:
            future.set_exception(exception)
        return future


# -----------------------------
# Records and events
# -----------------------------


@dataclass
class _GenerationRequest:
    track_id: str
    token: int
    issued_at_ms: float
    abandoned: bool = False


@dataclass(frozen=True)
class MapUpgrade:
    track_id: str
    map: SongMap


class MapGenerator:
    def __init__(
        self,
        service: Optional[MapGenerationService],
        *,
        cache: Optional[MapCache] = None,
        runner: Optional[TaskRunner] = None,
        clock: Callable[[], float] = monotonic_ms,
        timeout_ms: float = 30000.0,
        sweep_interval_ms: float = 60000.0,
        enabled: bool = True,
    ) -> None:
        self._service = service
        self._clock = clock
        self._cache = cache if cache is not None else MapCache(clock=clock)
        self._runner: TaskRunner = runner if runner is not None else ThreadedTaskRunner()
        self._timeout_ms = float(max(0.0, timeout_ms))
        self._sweep_interval_ms = float(max(0.0, sweep_interval_ms))
        self._enabled = bool(enabled) and service is not None

        self._tokens = itertools.count(1)
        self._in_flight: Dict[str, _GenerationRequest] = {}
        self._orphaned: Dict[str, int] = {}
        self._deferred: Dict[str, TrackAudioProfile] = {}
        self._statuses: Dict[str, CacheStatus] = {}
        self._completions: "queue.Queue[Tuple[str, int, Future[Any]]]" = queue.Queue()
        self._active_track_id: Optional[str] = None
        self._last_sweep_ms = float(self._clock())

    # -----------------------------
    # Read queries
    # -----------------------------

    @property
    def cache(self) -> MapCache:
        return self._cache

    @property
    def active_track_id(self) -> Optional[str]:
        return self._active_track_id

    def is_generating(self, track_id: str) -> bool:
        return track_id in self._in_flight

    def get_cached(self, track_id: str) -> Optional[SongMap]:
        entry = self._cache.get(track_id)
        return entry.map if entry is not None else None

    def request_status(self, track_id: str) -> Optional[CacheStatus]:
        return self._statuses.get(track_id)

    def cache_stats(self) -> Dict[str, Any]:
        now = float(self._clock())
        return {
            "size": len(self._cache),
            "max_size": self._cache.max_entries,
            "in_flight": sorted(self._in_flight),
            "entries": [
                {
                    "track_id": entry.map.track_id,
                    "status": entry.status.value,
                    "version": entry.map.version.value,
                    "age_ms": round(now - entry.generated_at_ms, 1),
                }
                for entry in self._cache.entries()
            ],
        }

    # -----------------------------
    # Requests
    # -----------------------------

    def set_active_track(self, track_id: Optional[str]) -> None:
        self._active_track_id = track_id

    def ensure_map(self, track: TrackAudioProfile) -> SongMap:
        entry = self._cache.get(track.id)
        if entry is not None:
            return entry.map

        fallback = enforce_difficulty_ramp(validate(build_fallback_map(track, now_ms=self._clock())))
        installed = self._cache.install(fallback)

        self._prune_statuses()

        if self._enabled and track.id not in self._in_flight:
            if track.id in self._orphaned:
                self._deferred[track.id] = track
                self._statuses[track.id] = CacheStatus.PENDING
                logger.info("Generation for track %s deferred until its previous request finishes", track.id)
            else:
                self._issue_request(track)
        return installed.map

    def preload_next(self, current_index: int, tracks: Sequence[TrackAudioProfile]) -> Optional[SongMap]:
        if not tracks:
            return None
        next_track = tracks[(int(current_index) + 1) % len(tracks)]
        return self.ensure_map(next_track)

    def _issue_request(self, track: TrackAudioProfile) -> None:
        request = _GenerationRequest(track_id=track.id, token=next(self._tokens), issued_at_ms=float(self._clock()))
        self._in_flight[track.id] = request
        self._statuses[track.id] = CacheStatus.GENERATING
        logger.info("Generation requested for track %s", track.id)

        future = self._runner.submit(lambda: self._generate_validated(track))
        future.add_done_callback(
            lambda done, track_id=track.id, token=request.token: self._completions.put((track_id, token, done))
        )

    def _generate_validated(self, track: TrackAudioProfile) -> SongMap:
        # Runs on a worker thread. Pure apart from the service call.
        if self._service is None:
            raise MapGenerationError("Generation is disabled")
        payload = self._service.generate(track)
        if not isinstance(payload, dict):
            raise GenerationPayloadError(f"Expected a JSON object, got {type(payload).__name__}")
        try:
            parsed = SongMap.from_dict(payload, version=MapVersion.GENERATED)
        except (ValueError, OverflowError) as exception:
            raise GenerationPayloadError(str(exception)) from exception

        validated = enforce_difficulty_ramp(validate(replace(parsed, track_id=track.id)))
        if not validated.patterns:
            raise GenerationPayloadError("Generated map has no usable patterns")
        return validated

    # -----------------------------
    # Frame loop hooks
    # -----------------------------

    def pump(self) -> List[MapUpgrade]:
        """Install finished generation results. Call once per frame from the frame loop."""
        upgrades: List[MapUpgrade] = []
        while True:
            try:
                track_id, token, future = self._completions.get_nowait()
            except queue.Empty:
                break

            if self._orphaned.get(track_id) == token:
                del self._orphaned[track_id]
                logger.debug("Discarding result of a cleared request for track %s", track_id)
                self._issue_deferred(track_id)
                continue

            request = self._in_flight.get(track_id)
            if request is None or request.token != token:
                logger.debug("Discarding result of a cleared request for track %s", track_id)
                continue
            del self._in_flight[track_id]

            try:
                song_map = future.result()
            except Exception as exception:
                self._statuses[track_id] = CacheStatus.FAILED
                logger.warning("Generation failed for track %s, keeping fallback: %s", track_id, exception)
                continue

            self._statuses[track_id] = CacheStatus.READY
            installed = self._cache.install(replace(song_map, generated_at_ms=float(self._clock())))
            self._prune_statuses()

            if request.abandoned:
                logger.info("Late generation result for track %s cached after timeout", track_id)
                continue
            if track_id != self._active_track_id:
                logger.info("Generation result for track %s cached, player has moved on", track_id)
                continue

            logger.info("Generated map installed for active track %s", track_id)
            upgrades.append(MapUpgrade(track_id=track_id, map=installed.map))
        return upgrades

    def tick(self) -> None:
        now = float(self._clock())

        for request in self._in_flight.values():
            if not request.abandoned and now - request.issued_at_ms > self._timeout_ms:
                request.abandoned = True
                logger.warning(
                    "Generation for track %s exceeded %.0f ms, keeping fallback", request.track_id, self._timeout_ms
                )

        if now - self._last_sweep_ms >= self._sweep_interval_ms:
            self._last_sweep_ms = now
            self._cache.sweep(now)
            self._prune_statuses()

    def _issue_deferred(self, track_id: str) -> None:
        track = self._deferred.pop(track_id, None)
        if track is None or track_id not in self._cache or track_id in self._in_flight:
            self._prune_statuses()
            return
        self._issue_request(track)

    def _prune_statuses(self) -> None:
        for track_id in list(self._statuses):
            if track_id not in self._cache and track_id not in self._in_flight and track_id not in self._deferred:
                del self._statuses[track_id]

    def clear(self) -> None:
        self._cache.clear()
        self._statuses.clear()
        self._deferred.clear()
        for track_id, request in self._in_flight.items():
            self._orphaned[track_id] = request.token
        self._in_flight.clear()

        # Completions already queued belong to finished tasks.
        while True:
            try:
                track_id, token, _ = self._completions.get_nowait()
            except queue.Empty:
                break
            if self._orphaned.get(track_id) == token:
                del self._orphaned[track_id]

    def shutdown(self) -> None:
        shutdown = getattr(self._runner, "shutdown", None)
        if callable(shutdown):
            shutdown()
