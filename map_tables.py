# -*- coding: utf-8 -*-
########################
# map_tables.py
########################
# Purpose:
# - Static, hand-authored pattern tables.
#   - PREMADE_MAPS: synchronous fallback templates used at runtime.
#   - REFERENCE_MAPS: playability-proven exemplars for generation, never played directly.
#
# Design notes:
# - Pure data in the generation service wire shape (camelCase keys), parsed by
#   gameplay_models.SongMap.from_dict. No selection or scaling logic here.
# - Every reference entry carries the audio features it was matched against ("target").
#
########################
# Interfaces:
# Public constants:
# - PREMADE_MAPS: list[dict]
# - REFERENCE_MAPS: list[dict]   each {"name", "target": {"energy", "tempo", "danceability"}, "map"}
#
########################

from __future__ import annotations

from typing import Any, Dict, List


def _pattern(pattern_id: str, pattern_type: str, start: int, duration: int, density: float, difficulty: int,
             spacing: int, **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": pattern_id,
        "type": pattern_type,
        "startTime": start,
        "duration": duration,
        "density": density,
        "difficulty": difficulty,
        "spacing": spacing,
    }
    payload.update(extra)
    return payload


def _modifier(modifier_type: str, intensity: float, start: int, duration: int) -> Dict[str, Any]:
    return {"type": modifier_type, "intensity": intensity, "startTime": start, "duration": duration}


def _theme(name: str, color: str, glow: str, background: str, particle: str, effects: List[str]) -> Dict[str, Any]:
    return {
        "name": name,
        "obstacleColor": color,
        "obstacleGlow": glow,
        "backgroundColor": background,
        "particleColor": particle,
        "specialEffects": effects,
    }


PREMADE_MAPS: List[Dict[str, Any]] = [
    {
        "trackId": "premade_1",
        "totalDuration": 48000,
        "difficultyCurve": [0.10, 0.15, 0.20, 0.25, 0.30, 0.25, 0.20],
        "visualTheme": _theme("neon_city", "#ff00ff", "#ff00ff", "#0a0a0a", "#00ffff", ["glow_pulse", "particle_burst"]),
        "patterns": [
            _pattern("intro", "spikes", 0, 8000, 0.15, 1, 200, spikeCount=1),
            _pattern("build", "mixed", 8000, 12000, 0.25, 2, 160),
            _pattern("collect", "collectibles", 20000, 4000, 0.20, 1, 120, collectibleCount=6),
            _pattern("challenge", "spikes", 24000, 12000, 0.35, 3, 120, spikeCount=2),
            _pattern("breather", "gaps", 36000, 4000, 0.20, 2, 160, gapWidth=80),
            _pattern("finale", "mixed", 40000, 8000, 0.30, 2, 140),
        ],
    },
    {
        "trackId": "premade_2",
        "totalDuration": 48000,
        "difficultyCurve": [0.15, 0.20, 0.30, 0.40, 0.45, 0.30, 0.20],
        "visualTheme": _theme("retro_arcade", "#ff6b35", "#ff6b35", "#2d1b69", "#f7931e", ["screen_shake", "glow_pulse"]),
        "patterns": [
            _pattern("intro", "blocks", 0, 6000, 0.20, 1, 180, blockWidth=40),
            _pattern("rhythm", "mixed", 6000, 10000, 0.30, 3, 140),
            _pattern("collect", "collectibles", 16000, 4000, 0.25, 2, 100, collectibleCount=8),
            _pattern("intense", "spikes", 20000, 14000, 0.45, 4, 100, spikeCount=3),
            _pattern("breather", "gaps", 34000, 6000, 0.25, 3, 130, gapWidth=100),
            _pattern("finale", "blocks", 40000, 8000, 0.25, 2, 150, blockWidth=40),
        ],
    },
    {
        "trackId": "premade_3",
        "totalDuration": 48000,
        "difficultyCurve": [0.20, 0.25, 0.35, 0.45, 0.50, 0.35, 0.25],
        "visualTheme": _theme("dark_underground", "#8b0000", "#8b0000", "#000000", "#4b0082", ["screen_shake", "particle_burst"]),
        "patterns": [
            _pattern("intro", "spikes", 0, 8000, 0.25, 2, 140, spikeCount=2),
            _pattern("build", "mixed", 8000, 12000, 0.35, 4, 110),
            _pattern("collect", "collectibles", 20000, 4000, 0.20, 2, 100, collectibleCount=7),
            _pattern("challenge", "spikes", 24000, 12000, 0.50, 5, 85, spikeCount=4),
            _pattern("breather", "gaps", 36000, 4000, 0.20, 3, 120, gapWidth=90),
            _pattern("finale", "mixed", 40000, 8000, 0.30, 3, 130),
        ],
    },
    {
        "trackId": "premade_4",
        "totalDuration": 56000,
        "difficultyCurve": [0.25, 0.30, 0.40, 0.50, 0.55, 0.40, 0.25],
        "visualTheme": _theme("bright_sky", "#00ff00", "#00ff00", "#87ceeb", "#ffff00", ["particle_burst", "color_shift"]),
        "patterns": [
            _pattern("intro", "mixed", 0, 10000, 0.30, 3, 130),
            _pattern("build", "spikes", 10000, 14000, 0.40, 5, 90, spikeCount=4),
            _pattern("collect", "collectibles", 24000, 4000, 0.20, 2, 100, collectibleCount=8),
            _pattern("intense", "mixed", 28000, 14000, 0.55, 6, 85),
            _pattern("breather", "gaps", 42000, 6000, 0.30, 4, 110, gapWidth=100),
            _pattern("finale", "spikes", 48000, 8000, 0.25, 3, 150, spikeCount=1),
        ],
    },
    {
        "trackId": "premade_5",
        "totalDuration": 52000,
        "difficultyCurve": [0.25, 0.35, 0.45, 0.55, 0.65, 0.50, 0.35],
        "visualTheme": _theme("neon_dance", "#ff00ff", "#00ffff", "#0a0a0a", "#ff00ff", ["glow_pulse", "particle_burst", "color_shift"]),
        "patterns": [
            _pattern("intro", "blocks", 0, 8000, 0.25, 3, 120, blockWidth=50),
            _pattern("rhythm", "mixed", 8000, 12000, 0.40, 5, 100),
            _pattern("collect", "collectibles", 20000, 4000, 0.25, 2, 100, collectibleCount=9),
            _pattern("intense", "spikes", 24000, 14000, 0.55, 7, 80, spikeCount=5),
            _pattern("breather", "gaps", 38000, 6000, 0.30, 5, 120, gapWidth=100),
            _pattern("finale", "mixed", 44000, 8000, 0.30, 4, 130),
        ],
    },
]


REFERENCE_MAPS: List[Dict[str, Any]] = [
    {
        "name": "Stereo Madness",
        "target": {"energy": 0.6, "tempo": 120.0, "danceability": 0.5},
        "map": {
            "trackId": "ref_stereo_madness",
            "totalDuration": 92000,
            "difficultyCurve": [0.1, 0.15, 0.2, 0.25, 0.3, 0.35, 0.4, 0.35, 0.3, 0.2],
            "visualTheme": _theme("neon_bright", "#ff4444", "#ff6666", "#0a0a2e", "#44aaff", ["glow_pulse"]),
            "patterns": [
                _pattern("sm_0", "spikes", 0, 8000, 0.15, 1, 200, spikeCount=1),
                _pattern("sm_1", "spikes", 8000, 10000, 0.25, 2, 160, spikeCount=2),
                _pattern("sm_2", "blocks", 18000, 10000, 0.25, 2, 150, blockWidth=40),
                _pattern("sm_3", "mixed", 28000, 12000, 0.3, 3, 140),
                _pattern("sm_4", "collectibles", 40000, 6000, 0.2, 1, 120, collectibleCount=6),
                _pattern("sm_5", "spikes", 46000, 12000, 0.35, 4, 120, spikeCount=3),
                _pattern("sm_6", "gaps", 58000, 8000, 0.2, 3, 160, gapWidth=80),
                _pattern("sm_7", "mixed", 66000, 14000, 0.4, 4, 110,
                         visualModifiers=[_modifier("glow_pulse", 0.4, 0, 14000)]),
                _pattern("sm_8", "spikes", 80000, 8000, 0.15, 2, 200, spikeCount=1),
                _pattern("sm_9", "collectibles", 88000, 4000, 0.15, 1, 140, collectibleCount=4),
            ],
        },
    },
    {
        "name": "Back On Track",
        "target": {"energy": 0.55, "tempo": 130.0, "danceability": 0.5},
        "map": {
            "trackId": "ref_back_on_track",
            "totalDuration": 96000,
            "difficultyCurve": [0.1, 0.2, 0.25, 0.3, 0.35, 0.4, 0.45, 0.4, 0.3, 0.15],
            "visualTheme": _theme("warm_digital", "#ff6622", "#ff8844", "#121228", "#ffaa44", ["warm_glow"]),
            "patterns": [
                _pattern("bot_0", "blocks", 0, 10000, 0.15, 1, 200, blockWidth=35),
                _pattern("bot_1", "spikes", 10000, 10000, 0.2, 2, 180, spikeCount=1),
                _pattern("bot_2", "spikes", 20000, 12000, 0.3, 3, 100, spikeCount=3),
                _pattern("bot_3", "blocks", 32000, 10000, 0.3, 3, 140, blockWidth=45),
                _pattern("bot_4", "mixed", 42000, 14000, 0.35, 4, 120),
                _pattern("bot_5", "collectibles", 56000, 6000, 0.2, 1, 110, collectibleCount=8),
                _pattern("bot_6", "spikes", 62000, 14000, 0.4, 5, 100, spikeCount=4,
                         visualModifiers=[_modifier("glow_pulse", 0.5, 0, 14000)]),
                _pattern("bot_7", "gaps", 76000, 10000, 0.2, 3, 160, gapWidth=90),
                _pattern("bot_8", "spikes", 86000, 10000, 0.15, 2, 200, spikeCount=1),
            ],
        },
    },
    {
        "name": "Polargeist",
        "target": {"energy": 0.7, "tempo": 140.0, "danceability": 0.6},
        "map": {
            "trackId": "ref_polargeist",
            "totalDuration": 108000,
            "difficultyCurve": [0.15, 0.25, 0.35, 0.45, 0.5, 0.55, 0.6, 0.55, 0.4, 0.25],
            "visualTheme": _theme("neon_dark", "#cc22ff", "#dd66ff", "#0d0d1a", "#8844ff", ["digital_trails", "glow_pulse"]),
            "patterns": [
                _pattern("pg_0", "spikes", 0, 8000, 0.2, 2, 180, spikeCount=2),
                _pattern("pg_1", "mixed", 8000, 12000, 0.3, 3, 140),
                _pattern("pg_2", "spikes", 20000, 14000, 0.4, 5, 90, spikeCount=4),
                _pattern("pg_3", "blocks", 34000, 10000, 0.35, 4, 120, blockWidth=50),
                _pattern("pg_4", "collectibles", 44000, 6000, 0.25, 2, 100, collectibleCount=7),
                _pattern("pg_5", "mixed", 50000, 16000, 0.45, 6, 100,
                         visualModifiers=[_modifier("color_shift", 0.5, 0, 16000), _modifier("glow_pulse", 0.6, 0, 16000)]),
                _pattern("pg_6", "gaps", 66000, 10000, 0.3, 5, 130, gapWidth=100),
                _pattern("pg_7", "spikes", 76000, 14000, 0.5, 6, 85, spikeCount=5,
                         visualModifiers=[_modifier("screen_shake", 0.3, 0, 14000)]),
                _pattern("pg_8", "blocks", 90000, 10000, 0.25, 3, 150, blockWidth=40),
                _pattern("pg_9", "collectibles", 100000, 8000, 0.15, 1, 120, collectibleCount=5),
            ],
        },
    },
    {
        "name": "Dry Out",
        "target": {"energy": 0.75, "tempo": 150.0, "danceability": 0.6},
        "map": {
            "trackId": "ref_dry_out",
            "totalDuration": 100000,
            "difficultyCurve": [0.2, 0.3, 0.4, 0.5, 0.55, 0.6, 0.65, 0.6, 0.45, 0.3],
            "visualTheme": _theme("intense_neon", "#ff2244", "#ff4466", "#0a0a18", "#ff6688", ["intense_glow", "digital_trails"]),
            "patterns": [
                _pattern("do_0", "spikes", 0, 8000, 0.25, 3, 150, spikeCount=2),
                _pattern("do_1", "mixed", 8000, 12000, 0.35, 4, 120),
                _pattern("do_2", "spikes", 20000, 14000, 0.45, 5, 95, spikeCount=4,
                         visualModifiers=[_modifier("glow_pulse", 0.5, 0, 14000)]),
                _pattern("do_3", "blocks", 34000, 8000, 0.35, 4, 120, blockWidth=50),
                _pattern("do_4", "gaps", 42000, 8000, 0.3, 5, 130, gapWidth=90),
                _pattern("do_5", "mixed", 50000, 16000, 0.5, 6, 90,
                         visualModifiers=[_modifier("color_shift", 0.6, 0, 16000), _modifier("screen_shake", 0.3, 8000, 8000)]),
                _pattern("do_6", "spikes", 66000, 14000, 0.5, 7, 85, spikeCount=5),
                _pattern("do_7", "collectibles", 80000, 6000, 0.2, 2, 110, collectibleCount=6),
                _pattern("do_8", "mixed", 86000, 14000, 0.3, 4, 130),
            ],
        },
    },
    {
        "name": "Base After Base",
        "target": {"energy": 0.8, "tempo": 145.0, "danceability": 0.65},
        "map": {
            "trackId": "ref_base_after_base",
            "totalDuration": 115000,
            "difficultyCurve": [0.2, 0.35, 0.45, 0.55, 0.65, 0.7, 0.75, 0.7, 0.55, 0.35],
            "visualTheme": _theme("dark_digital", "#22ccff", "#44ddff", "#050515", "#2288ff",
                                  ["intense_glow", "digital_trails", "glow_pulse"]),
            "patterns": [
                _pattern("bab_0", "mixed", 0, 10000, 0.25, 3, 150),
                _pattern("bab_1", "spikes", 10000, 12000, 0.35, 4, 120, spikeCount=3),
                _pattern("bab_2", "spikes", 22000, 14000, 0.5, 6, 85, spikeCount=5,
                         visualModifiers=[_modifier("glow_pulse", 0.6, 0, 14000)]),
                _pattern("bab_3", "blocks", 36000, 12000, 0.45, 6, 100, blockWidth=55),
                _pattern("bab_4", "collectibles", 48000, 6000, 0.25, 2, 100, collectibleCount=8),
                _pattern("bab_5", "mixed", 54000, 18000, 0.55, 7, 85,
                         visualModifiers=[_modifier("screen_shake", 0.4, 0, 18000), _modifier("particle_burst", 0.7, 9000, 9000)]),
                _pattern("bab_6", "spikes", 72000, 16000, 0.55, 8, 80, spikeCount=5,
                         visualModifiers=[_modifier("color_shift", 0.7, 0, 16000)]),
                _pattern("bab_7", "gaps", 88000, 10000, 0.35, 6, 120, gapWidth=100),
                _pattern("bab_8", "mixed", 98000, 10000, 0.3, 4, 130),
                _pattern("bab_9", "collectibles", 108000, 7000, 0.15, 1, 130, collectibleCount=5),
            ],
        },
    },
    {
        "name": "Can't Let Go",
        "target": {"energy": 0.82, "tempo": 155.0, "danceability": 0.7},
        "map": {
            "trackId": "ref_cant_let_go",
            "totalDuration": 105000,
            "difficultyCurve": [0.25, 0.35, 0.5, 0.6, 0.65, 0.7, 0.75, 0.7, 0.5, 0.3],
            "visualTheme": _theme("neon_intense", "#ff0066", "#ff3388", "#0a0518", "#ff44aa", ["intense_glow", "glow_pulse"]),
            "patterns": [
                _pattern("clg_0", "spikes", 0, 8000, 0.3, 3, 140, spikeCount=2),
                _pattern("clg_1", "blocks", 8000, 10000, 0.35, 4, 120, blockWidth=45),
                _pattern("clg_2", "mixed", 18000, 14000, 0.45, 5, 110),
                _pattern("clg_3", "spikes", 32000, 14000, 0.55, 7, 85, spikeCount=5,
                         visualModifiers=[_modifier("glow_pulse", 0.7, 0, 14000)]),
                _pattern("clg_4", "collectibles", 46000, 5000, 0.2, 2, 100, collectibleCount=7),
                _pattern("clg_5", "mixed", 51000, 18000, 0.55, 7, 85,
                         visualModifiers=[_modifier("screen_shake", 0.4, 0, 18000), _modifier("color_shift", 0.6, 0, 18000)]),
                _pattern("clg_6", "gaps", 69000, 10000, 0.4, 6, 110, gapWidth=90),
                _pattern("clg_7", "spikes", 79000, 12000, 0.5, 7, 85, spikeCount=4),
                _pattern("clg_8", "blocks", 91000, 8000, 0.25, 3, 150, blockWidth=40),
                _pattern("clg_9", "collectibles", 99000, 6000, 0.15, 1, 120, collectibleCount=5),
            ],
        },
    },
    {
        "name": "Jumper",
        "target": {"energy": 0.85, "tempo": 160.0, "danceability": 0.7},
        "map": {
            "trackId": "ref_jumper",
            "totalDuration": 118000,
            "difficultyCurve": [0.3, 0.4, 0.5, 0.6, 0.7, 0.75, 0.8, 0.75, 0.6, 0.35],
            "visualTheme": _theme("electric_blue", "#0088ff", "#44aaff", "#030318", "#0066cc",
                                  ["intense_glow", "digital_trails", "glow_pulse"]),
            "patterns": [
                _pattern("jmp_0", "mixed", 0, 10000, 0.3, 4, 130),
                _pattern("jmp_1", "spikes", 10000, 16000, 0.5, 6, 90, spikeCount=5),
                _pattern("jmp_2", "blocks", 26000, 10000, 0.4, 5, 110, blockWidth=50),
                _pattern("jmp_3", "spikes", 36000, 16000, 0.55, 7, 85, spikeCount=5,
                         visualModifiers=[_modifier("glow_pulse", 0.7, 0, 16000)]),
                _pattern("jmp_4", "collectibles", 52000, 6000, 0.2, 2, 100, collectibleCount=8),
                _pattern("jmp_5", "gaps", 58000, 12000, 0.4, 6, 110, gapWidth=100),
                _pattern("jmp_6", "mixed", 70000, 20000, 0.6, 8, 80,
                         visualModifiers=[_modifier("screen_shake", 0.5, 0, 20000), _modifier("particle_burst", 0.8, 10000, 10000)]),
                _pattern("jmp_7", "spikes", 90000, 14000, 0.6, 8, 80, spikeCount=5,
                         visualModifiers=[_modifier("color_shift", 0.8, 0, 14000)]),
                _pattern("jmp_8", "blocks", 104000, 8000, 0.25, 3, 150, blockWidth=40),
                _pattern("jmp_9", "collectibles", 112000, 6000, 0.15, 1, 130, collectibleCount=5),
            ],
        },
    },
    {
        "name": "Cycles",
        "target": {"energy": 0.8, "tempo": 145.0, "danceability": 0.85},
        "map": {
            "trackId": "ref_cycles",
            "totalDuration": 110000,
            "difficultyCurve": [0.25, 0.35, 0.5, 0.6, 0.7, 0.75, 0.8, 0.7, 0.5, 0.3],
            "visualTheme": _theme("rhythmic_pulse", "#44ff44", "#66ff88", "#0a1a0a", "#22cc44", ["glow_pulse", "particle_burst"]),
            "patterns": [
                _pattern("cyc_0", "spikes", 0, 10000, 0.25, 3, 140, spikeCount=2),
                _pattern("cyc_1", "mixed", 10000, 14000, 0.4, 5, 110),
                _pattern("cyc_2", "spikes", 24000, 14000, 0.5, 6, 90, spikeCount=4,
                         visualModifiers=[_modifier("glow_pulse", 0.6, 0, 14000)]),
                _pattern("cyc_3", "blocks", 38000, 10000, 0.4, 5, 110, blockWidth=50),
                _pattern("cyc_4", "collectibles", 48000, 6000, 0.2, 2, 100, collectibleCount=8),
                _pattern("cyc_5", "mixed", 54000, 18000, 0.55, 7, 85,
                         visualModifiers=[_modifier("particle_burst", 0.7, 0, 18000), _modifier("glow_pulse", 0.7, 0, 18000)]),
                _pattern("cyc_6", "spikes", 72000, 14000, 0.55, 8, 80, spikeCount=5,
                         visualModifiers=[_modifier("screen_shake", 0.4, 0, 14000)]),
                _pattern("cyc_7", "gaps", 86000, 8000, 0.3, 5, 120, gapWidth=90),
                _pattern("cyc_8", "mixed", 94000, 10000, 0.3, 4, 130),
                _pattern("cyc_9", "collectibles", 104000, 6000, 0.15, 1, 120, collectibleCount=5),
            ],
        },
    },
]
