# ui/lyrics_view.py
from __future__ import annotations

from typing import List, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QBrush, QColor, QFont
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QStackedWidget,
    QListWidget, QListWidgetItem, QAbstractItemView,
)

from core.models import (
    FetchError,
    LineState,
    LyricSource,
    LyricsResult,
    NotFound,
    PlainOnly,
    Timestamped,
    TrackIdentity,
)

_STATE_COLORS = {
    LineState.PAST: "#6b7280",
    LineState.ACTIVE: "#f9fafb",
    LineState.FUTURE: "#9ca3af",
}

_SOURCE_LABELS = {
    LyricSource.PRIMARY: "LRCLIB",
    LyricSource.SECONDARY: "Genius",
}


class LyricsView(QWidget):
    """
    Lyrics panel:
      - message page for loading / not found / errors
      - line list with past / active / future styling, active line kept centered

    Line states come from the session; this widget never computes timing itself.
    """

    def __init__(self, parent=None):
        super().__init__(parent)

        self._current_index: int = -1

        root = QVBoxLayout(self)
        root.setContentsMargins(10, 10, 10, 10)
        root.setSpacing(8)

        # --- header ---
        header = QHBoxLayout()
        header.setSpacing(8)

        self.title = QLabel("Lyrics")
        self.title.setAlignment(Qt.AlignLeft | Qt.AlignVCenter)
        self.title.setStyleSheet("font-weight: 650; font-size: 14px;")
        header.addWidget(self.title, 1)

        self.source = QLabel("")
        self.source.setStyleSheet("color: #9ca3af; font-size: 11px;")
        header.addWidget(self.source)

        self.link = QLabel("")
        self.link.setTextFormat(Qt.RichText)
        self.link.setOpenExternalLinks(True)
        self.link.setVisible(False)
        header.addWidget(self.link)

        root.addLayout(header)

        # --- stack: msg / lines ---
        self.stack = QStackedWidget()
        root.addWidget(self.stack, 1)

        self.msg = QLabel("")
        self.msg.setAlignment(Qt.AlignCenter)
        self.msg.setWordWrap(True)
        self.msg.setStyleSheet("color: #9ca3af;")
        self.stack.addWidget(self.msg)

        self.list = QListWidget()
        self.list.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self.list.setFocusPolicy(Qt.NoFocus)
        self.list.setWordWrap(True)
        self.list.setStyleSheet("QListWidget { background: transparent; border: none; font-size: 16px; }")
        self.stack.addWidget(self.list)

        self.show_message("Waiting for Spotify playback...")

    # --- public API (wired to SessionBridge signals) ---

    def show_message(self, message: str):
        self._reset_lines()
        self.msg.setText(message)
        self.stack.setCurrentWidget(self.msg)

    def on_track_changed(self, identity: TrackIdentity, _state=None):
        self.title.setText(f"{identity.artist} - {identity.title}")
        self._set_link(None)
        self.source.setText("")

    def on_lyrics_loading(self, _identity: TrackIdentity):
        self.show_message("Loading lyrics...")

    def on_lyrics(self, _identity: TrackIdentity, result: LyricsResult, lines: List[str]):
        if isinstance(result, NotFound):
            self.show_message("No lyrics found for this track.")
            return
        if isinstance(result, FetchError):
            self.show_message(result.reason)
            return

        if isinstance(result, (Timestamped, PlainOnly)):
            label = _SOURCE_LABELS.get(result.source, "")
            if isinstance(result, PlainOnly):
                label = f"{label} (unsynced)"
            self.source.setText(label)
            self._set_link(result.track.url if result.source == LyricSource.SECONDARY else None)

        if not lines:
            self.show_message("No lyrics found for this track.")
            return
        self._set_lines(lines)

    def on_active_line(self, index: int, states: List[LineState]):
        if self.stack.currentWidget() is not self.list:
            return

        for row, state in enumerate(states):
            item = self.list.item(row)
            if item is not None:
                self._style_item(item, state)

        self._current_index = index
        if 0 <= index < self.list.count():
            self.list.scrollToItem(self.list.item(index), QAbstractItemView.ScrollHint.PositionAtCenter)

    # --- internal helpers ---

    def _reset_lines(self):
        self._current_index = -1
        self.list.clear()

    def _set_lines(self, lines: List[str]):
        self._reset_lines()
        for text in lines:
            item = QListWidgetItem(text)
            item.setTextAlignment(Qt.AlignHCenter | Qt.AlignVCenter)
            self._style_item(item, LineState.FUTURE)
            self.list.addItem(item)
        self.stack.setCurrentWidget(self.list)

    def _style_item(self, item: QListWidgetItem, state: LineState):
        item.setForeground(QBrush(QColor(_STATE_COLORS[state])))
        font = item.font() if item.font() else QFont()
        font.setBold(state == LineState.ACTIVE)
        item.setFont(font)

    def _set_link(self, url: Optional[str]):
        if url:
            self.link.setText(f'<a href="{url}" style="color: #38bdf8;">View on Genius</a>')
            self.link.setVisible(True)
        else:
            self.link.setText("")
            self.link.setVisible(False)
