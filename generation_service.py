# -*- coding: utf-8 -*-
########################
# generation_service.py
########################
# Purpose:
# - Contract for the generative content collaborator that produces SongMap-shaped payloads.
# - Error family used by services and caught by the orchestrator.
# - Prompt construction (sentiment summary, playability rules, closest reference map).
# - ReferenceVariationService: a local, deterministic service that adapts the closest reference
#   map to a track, the same way a remote designer is instructed to.
#   It builds the same prompt a remote designer receives and keeps it as last_prompt.
#
# Design notes:
# - Services run on worker threads. They may block and may raise.
# - Payloads are untrusted: the orchestrator parses and validates everything a service returns.
# - No Qt usage.
#
########################
# Interfaces:
# Public exceptions:
# - class MapGenerationError(Exception)
# - class GenerationTransportError(MapGenerationError)
# - class GenerationPayloadError(MapGenerationError)
#
# Public protocols:
# - class MapGenerationService(Protocol)
#   - generate(track: TrackAudioProfile) -> dict
#
# Public classes:
# - class ReferenceVariationService
#   - __init__(latency_seconds=0.0, sleep=time.sleep)
#   - generate(track) -> dict
#   - last_prompt: Optional[str]
#
# Public functions:
# - analyze_sentiment(track) -> Sentiment
# - build_generation_prompt(track) -> str
# - choose_theme_name(track) -> str
#
########################

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Protocol

from gameplay_models import MapPattern, MapTheme, SongMap, TrackAudioProfile
from pattern_library import (
    PLAYABILITY_RULES,
    premade_maps,
    scale_to_duration,
    select_reference_map,
    serialize_map_for_prompt,
)

logger = logging.getLogger(__name__)


# -----------------------------
# Errors
# -----------------------------


class MapGenerationError(Exception):
    pass


class GenerationTransportError(MapGenerationError):
    pass


class GenerationPayloadError(MapGenerationError):
    pass


# -----------------------------
# Service contract
# -----------------------------


class MapGenerationService(Protocol):
    def generate(self, track: TrackAudioProfile) -> Dict[str, Any]:
        raise NotImplementedError


# -----------------------------
# Prompt construction
# -----------------------------


@dataclass(frozen=True)
class Sentiment:
    analysis: str
    theme: str


def analyze_sentiment(track: TrackAudioProfile) -> Sentiment:
    parts: List[str] = []

    if track.energy > 0.7:
        parts.append("High energy track: intense, dense obstacle patterns with rapid transitions.")
        theme = "neon"
    elif track.energy < 0.3:
        parts.append("Low energy track: sparse but deliberate obstacles, focus on precision.")
        theme = "minimal"
    else:
        parts.append("Moderate energy: balanced obstacle density with varied pacing.")
        theme = "balanced"

    if track.valence < 0.3:
        parts.append("Dark/moody atmosphere: darker colors, challenging but fair patterns.")
        theme += "_dark"
    elif track.valence > 0.7:
        parts.append("Bright/happy mood: vibrant colors, flowing patterns, collectible-heavy sections.")
        theme += "_bright"

    if track.danceability > 0.7:
        parts.append("Highly danceable: rhythmic, predictable patterns that match the beat.")
    elif track.danceability < 0.3:
        parts.append("Not danceable: atmospheric, varied obstacle placement.")

    if track.acousticness > 0.6:
        parts.append("Acoustic nature: organic, flowing obstacle movements, natural color palette.")
        theme += "_organic"
    elif track.acousticness < 0.2:
        parts.append("Electronic production: sharp, geometric patterns, digital aesthetics.")
        theme += "_digital"

    if track.tempo > 140:
        parts.append("Fast tempo: quick obstacle succession, minimal spacing.")
    elif track.tempo < 90:
        parts.append("Slow tempo: deliberate obstacle placement, emphasis on timing.")

    return Sentiment(analysis=" ".join(parts), theme=theme)


def choose_theme_name(track: TrackAudioProfile) -> str:
    if track.energy > 0.7 and track.valence > 0.6:
        return "neon_city"
    if track.energy > 0.5 and track.valence < 0.4:
        return "dark_underground"
    if track.acousticness > 0.5 or track.danceability < 0.3:
        return "retro_arcade"
    return "bright_sky"


def build_generation_prompt(track: TrackAudioProfile) -> str:
    sentiment = analyze_sentiment(track)
    reference = select_reference_map(track.energy, track.tempo, track.danceability)
    return "\n".join(
        [
            "You are a level designer for a rhythm auto-runner.",
            "Create a VARIATION of the proven-playable reference level below, adapted to this song.",
            "",
            "SONG DATA:",
            f'- Name: "{track.name}"',
            f'- Artist: "{track.artist}"',
            f"- Duration: {round(track.duration_ms / 1000)}s ({track.duration_ms}ms total)",
            f"- Energy: {track.energy}",
            f"- Valence: {track.valence}",
            f"- Danceability: {track.danceability}",
            f"- Acousticness: {track.acousticness}",
            f"- Tempo: {track.tempo} BPM",
            "",
            "SENTIMENT ANALYSIS:",
            sentiment.analysis,
            "",
            PLAYABILITY_RULES,
            "",
            f"REFERENCE LEVEL ({reference.name}):",
            serialize_map_for_prompt(reference),
            "",
            f"Suggested theme: {choose_theme_name(track)}.",
            f"Scale all startTime and duration values to fit {track.duration_ms}ms. Pattern startTimes must be contiguous.",
            f"Adjust density and difficulty by this song's energy ({track.energy}) vs the reference energy ({reference.energy}).",
        ]
    )


# -----------------------------
# Local service
# -----------------------------


def _theme_named(name: str) -> MapTheme:
    for template in premade_maps():
        if template.visual_theme.name == name:
            return template.visual_theme
    return premade_maps()[0].visual_theme


def _vary_pattern(pattern: MapPattern, energy_delta: float) -> MapPattern:
    # Full adjustment at an energy delta of 0.2 or more.
    weight = min(1.0, abs(energy_delta) / 0.2)
    if energy_delta > 0.0:
        density = pattern.density + 0.1 * weight
        difficulty = pattern.difficulty + round(weight)
        spacing = pattern.spacing - 10.0 * weight
    elif energy_delta < 0.0:
        density = pattern.density - 0.1 * weight
        difficulty = pattern.difficulty - round(weight)
        spacing = pattern.spacing + 20.0 * weight
    else:
        return pattern
    return replace(
        pattern,
        density=round(max(0.05, density), 3),
        difficulty=float(max(1.0, difficulty)),
        spacing=round(spacing, 1),
    )


class ReferenceVariationService:
    """Deterministic local designer: closest reference map, scaled and energy adjusted."""

    def __init__(self, latency_seconds: float = 0.0, sleep: Callable[[float], None] = time.sleep) -> None:
        self._latency_seconds = float(max(0.0, latency_seconds))
        self._sleep = sleep
        self.last_prompt: Optional[str] = None

    def generate(self, track: TrackAudioProfile) -> Dict[str, Any]:
        self.last_prompt = build_generation_prompt(track)
        logger.debug("Designing map for track %s from prompt of %d chars", track.id, len(self.last_prompt))

        if self._latency_seconds > 0.0:
            self._sleep(self._latency_seconds)

        if track.duration_ms <= 0:
            raise GenerationPayloadError(f"Track {track.id!r} has no usable duration")

        reference = select_reference_map(track.energy, track.tempo, track.danceability)
        scaled = scale_to_duration(reference.map, float(track.duration_ms), tolerance=0.0)
        energy_delta = float(track.energy) - reference.energy

        variation: SongMap = replace(
            scaled,
            track_id=track.id,
            patterns=[_vary_pattern(pattern, energy_delta) for pattern in scaled.patterns],
            visual_theme=_theme_named(choose_theme_name(track)),
        )
        return variation.to_dict()
