# ui/player_bar.py
from __future__ import annotations

from PySide6.QtCore import Qt, QSize, QByteArray, Signal
from PySide6.QtGui import QIcon, QPixmap, QPainter
from PySide6.QtWidgets import QWidget, QHBoxLayout, QLabel, QToolButton, QSlider
from PySide6.QtSvg import QSvgRenderer

from core.models import PlaybackSnapshot, TrackIdentity


def _fmt(ms: int) -> str:
    ms = max(0, int(ms))
    s = ms // 1000
    m = s // 60
    s = s % 60
    return f"{m}:{s:02d}"


def _svg_icon(path_d: str, size: int = 20, color: str = "#e5e7eb") -> QIcon:
    svg = f"""
    <svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" viewBox="0 0 24 24">
      <path d="{path_d}" fill="{color}"/>
    </svg>
    """.strip()

    renderer = QSvgRenderer(QByteArray(svg.encode("utf-8")))
    pm = QPixmap(size, size)
    pm.fill(Qt.transparent)

    p = QPainter(pm)
    renderer.render(p)
    p.end()

    return QIcon(pm)


SVG_PREV = "M6 18V6h2v12H6zm3.5-6L18 6v12l-8.5-6z"
SVG_NEXT = "M16 6v12h2V6h-2zM6 18l8.5-6L6 6v12z"
SVG_PLAY = "M8 5v14l11-7L8 5z"
SVG_PAUSE = "M6 5h4v14H6V5zm8 0h4v14h-4V5z"


class PlayerBar(QWidget):
    """
    Transport bar for the external player. It only renders snapshots and emits requests;
    the window forwards them to Spotify.
    """

    prevRequested = Signal()
    nextRequested = Signal()
    playPauseRequested = Signal(bool)   # True -> play
    seekRequested = Signal(int)         # ms

    def __init__(self, parent=None):
        super().__init__(parent)

        self._dragging = False
        self._is_playing = False

        root = QHBoxLayout(self)
        root.setContentsMargins(8, 6, 8, 6)
        root.setSpacing(10)

        self._icons = {
            "prev": _svg_icon(SVG_PREV, 20),
            "next": _svg_icon(SVG_NEXT, 20),
            "play": _svg_icon(SVG_PLAY, 22),
            "pause": _svg_icon(SVG_PAUSE, 22),
        }

        self.btn_prev = QToolButton()
        self.btn_prev.setIcon(self._icons["prev"])
        self.btn_prev.setIconSize(QSize(20, 20))
        self.btn_prev.setToolTip("Previous")

        self.btn_play = QToolButton()
        self.btn_play.setObjectName("BtnPlay")
        self.btn_play.setIcon(self._icons["play"])
        self.btn_play.setIconSize(QSize(22, 22))
        self.btn_play.setToolTip("Play")

        self.btn_next = QToolButton()
        self.btn_next.setIcon(self._icons["next"])
        self.btn_next.setIconSize(QSize(20, 20))
        self.btn_next.setToolTip("Next")

        self.lbl_title = QLabel("Nothing playing")
        self.lbl_title.setMinimumWidth(220)
        self.lbl_title.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self.lbl_title.setObjectName("NowPlaying")

        self.lbl_time = QLabel("0:00")
        self.lbl_dur = QLabel("0:00")

        self.slider = QSlider(Qt.Orientation.Horizontal)
        self.slider.setRange(0, 0)
        self.slider.setSingleStep(1000)
        self.slider.setPageStep(5000)

        root.addWidget(self.btn_prev)
        root.addWidget(self.btn_play)
        root.addWidget(self.btn_next)
        root.addSpacing(6)
        root.addWidget(self.lbl_title, 1)
        root.addWidget(self.lbl_time)
        root.addWidget(self.slider, 3)
        root.addWidget(self.lbl_dur)

        self.btn_prev.clicked.connect(self.prevRequested.emit)
        self.btn_next.clicked.connect(self.nextRequested.emit)
        self.btn_play.clicked.connect(lambda: self.playPauseRequested.emit(not self._is_playing))

        self.slider.sliderPressed.connect(self._on_slider_pressed)
        self.slider.sliderReleased.connect(self._on_slider_released)
        self.slider.sliderMoved.connect(self._on_slider_moved)

        self.setObjectName("PlayerBar")
        self._apply_styles()

    # --- slider handling ---
    def _on_slider_pressed(self):
        self._dragging = True

    def _on_slider_moved(self, value: int):
        self.lbl_time.setText(_fmt(value))

    def _on_slider_released(self):
        self._dragging = False
        self.seekRequested.emit(int(self.slider.value()))

    # --- session updates ---
    def on_track_changed(self, identity: TrackIdentity, _state=None):
        self.lbl_title.setText(f"{identity.artist} - {identity.title}")

    def on_snapshot(self, snap: PlaybackSnapshot):
        self._set_playing(snap.is_playing)
        self.slider.setRange(0, snap.duration_ms)
        self.lbl_dur.setText(_fmt(snap.duration_ms))
        if self._dragging:
            return
        self.lbl_time.setText(_fmt(snap.position_ms))
        self.slider.setValue(snap.position_ms)

    def reset(self):
        self.lbl_title.setText("Nothing playing")
        self.slider.setRange(0, 0)
        self.lbl_time.setText("0:00")
        self.lbl_dur.setText("0:00")
        self._set_playing(False)

    def _set_playing(self, playing: bool):
        if playing == self._is_playing:
            return
        self._is_playing = bool(playing)
        self.btn_play.setIcon(self._icons["pause" if playing else "play"])
        self.btn_play.setToolTip("Pause" if playing else "Play")

    def _apply_styles(self):
        self.setStyleSheet("""
        QWidget#PlayerBar {
            background-color: #020617;
            border-top: 1px solid #111827;
        }
        QToolButton {
            border: 1px solid transparent;
            background: transparent;
            padding: 6px;
            border-radius: 10px;
        }
        QToolButton:hover {
            background: #0b1222;
            border-color: #1f2937;
        }
        QToolButton#BtnPlay {
            background: #111827;
            border: 1px solid #1f2937;
            border-radius: 999px;
            padding: 8px;
        }
        QToolButton#BtnPlay:hover { border-color: #38bdf8; }
        QSlider::groove:horizontal {
            height: 4px;
            background: #0f172a;
            border-radius: 2px;
        }
        QSlider::handle:horizontal {
            width: 12px;
            height: 12px;
            margin: -4px 0;
            border-radius: 6px;
            background: #38bdf8;
        }
        QSlider::sub-page:horizontal {
            background: #38bdf8;
            border-radius: 2px;
        }
        QLabel { color: #9ca3af; font-size: 11px; }
        QLabel#NowPlaying { color: #e5e7eb; font-size: 12px; }
        """)
