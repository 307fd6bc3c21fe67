# -*- coding: utf-8 -*-
########################
# game_harness.py
########################
# Purpose:
# - Minimal Qt host for the runtime spawner: frame timer, keyboard input and box drawing.
#
# Design notes:
# - The only Qt module. All gameplay state lives in RuntimeSpawner; this widget only forwards
#   dt and input flags and paints what the spawner exposes.
# - Input is latched between frames so a short key press is never lost.
# - Frame dt is measured with QElapsedTimer and capped, so a stalled window does not teleport obstacles.
#
########################
# Interfaces:
# Public classes:
# - class GameWidget(PyQt6.QtWidgets.QWidget)
#   - __init__(spawner: RuntimeSpawner, parent=None)
#
# Public functions:
# - run_harness(spawner: RuntimeSpawner) -> int
#
# Inputs:
# - Keyboard: Space/Up/W jump, N skip track, R restart after game over, Esc quit.
#
# Outputs:
# - Painted playfield and HUD.
#
########################

from __future__ import annotations

import logging
import sys
from typing import Any, List, Optional

from PyQt6.QtCore import QElapsedTimer, QPointF, QRectF, Qt, QTimer
from PyQt6.QtGui import QBrush, QColor, QFont, QKeyEvent, QPainter, QPen, QPolygonF
from PyQt6.QtWidgets import QApplication, QWidget

from gameplay_models import ObstacleKind
from runtime_spawner import FrameInput, GameOver, RuntimeSpawner, SpawnerState, TrackChanged

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16
MAX_FRAME_DT_MS = 100.0

_JUMP_KEYS = {Qt.Key.Key_Space, Qt.Key.Key_Up, Qt.Key.Key_W}


class GameWidget(QWidget):
    def __init__(self, spawner: RuntimeSpawner, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._spawner = spawner
        self._jump_latched = False
        self._skip_latched = False
        self._status_text = ""

        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setWindowTitle("beatdash")

        self._elapsed = QElapsedTimer()
        self._elapsed.start()
        self._timer = QTimer(self)
        self._timer.setInterval(FRAME_INTERVAL_MS)
        self._timer.timeout.connect(self._on_frame)
        self._timer.start()

        self._handle_events(self._spawner.start())

    def keyPressEvent(self, event: Optional[QKeyEvent]) -> None:  # type: ignore[override]
        if event is None:
            return
        key = event.key()
        if key in _JUMP_KEYS:
            self._jump_latched = True
        elif key == Qt.Key.Key_N:
            self._skip_latched = True
        elif key == Qt.Key.Key_R and self._spawner.state == SpawnerState.DEAD:
            logger.info("Restarting after game over")
            self._spawner.reset()
            self._handle_events(self._spawner.start())
        elif key == Qt.Key.Key_Escape:
            self.close()
        else:
            super().keyPressEvent(event)

    def _on_frame(self) -> None:
        dt_ms = min(MAX_FRAME_DT_MS, float(self._elapsed.restart()))
        frame_input = FrameInput(jump_pressed=self._jump_latched, skip_track_pressed=self._skip_latched)
        self._jump_latched = False
        self._skip_latched = False
        self._handle_events(self._spawner.update(dt_ms, frame_input))
        self.update()

    def _handle_events(self, events: List[Any]) -> None:
        for event in events:
            if isinstance(event, TrackChanged):
                track = self._spawner.current_track
                name = f"{track.name} - {track.artist}" if track is not None else event.track_id
                self._status_text = name
            elif isinstance(event, GameOver):
                self._status_text = f"Game over. Score {event.score}. Press R to restart."

    # -----------------------------
    # Painting
    # -----------------------------

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)

        song_map = self._spawner.current_map
        background = song_map.visual_theme.background_color if song_map is not None else "#1a1a2e"
        painter.fillRect(self.rect(), QBrush(QColor(background)))

        ground_y = self._spawner.ground_y
        painter.setPen(QPen(QColor(200, 200, 200), 2))
        painter.drawLine(QPointF(0.0, ground_y), QPointF(float(self.width()), ground_y))

        for obstacle in self._spawner.obstacles:
            box = obstacle.box
            rect = QRectF(box.x, box.y, box.width, box.height)
            color = QColor(obstacle.color)
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QBrush(color))
            if obstacle.kind == ObstacleKind.SPIKE:
                self._paint_spikes(painter, rect)
            elif obstacle.kind == ObstacleKind.COLLECTIBLE:
                painter.drawEllipse(rect)
            else:
                painter.drawRect(rect)

        player = self._spawner.player_box()
        player_color = QColor(255, 80, 80) if self._spawner.state == SpawnerState.DEAD else QColor(255, 220, 60)
        painter.setBrush(QBrush(player_color))
        painter.drawRect(QRectF(player.x, player.y, player.width, player.height))

        self._paint_hud(painter)
        painter.end()

    def _paint_spikes(self, painter: QPainter, rect: QRectF) -> None:
        count = max(1, int(round(rect.width() / 20.0)))
        spike_width = rect.width() / count
        for index in range(count):
            left = rect.left() + index * spike_width
            triangle = QPolygonF(
                [
                    QPointF(left, rect.bottom()),
                    QPointF(left + spike_width / 2.0, rect.top()),
                    QPointF(left + spike_width, rect.bottom()),
                ]
            )
            painter.drawPolygon(triangle)

    def _paint_hud(self, painter: QPainter) -> None:
        painter.setPen(QPen(QColor(240, 240, 240)))
        painter.setFont(QFont("Sans", 11))
        song_map = self._spawner.current_map
        version = song_map.version.value if song_map is not None else "-"
        pattern = self._spawner.current_pattern
        pattern_text = f"{pattern.type.value} d={pattern.difficulty:g}" if pattern is not None else "-"
        lines = [
            f"Score {self._spawner.score}",
            f"Map {version}  Pattern {pattern_text}  State {self._spawner.state.value}",
            self._status_text,
        ]
        for index, line in enumerate(lines):
            painter.drawText(QPointF(12.0, 22.0 + 18.0 * index), line)


def run_harness(spawner: RuntimeSpawner, width: int = 800, height: int = 450) -> int:
    app = QApplication.instance() or QApplication(sys.argv)
    widget = GameWidget(spawner)
    widget.resize(int(width), int(height))
    widget.show()
    return int(app.exec())
