# ui/qt_runtime.py
from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QObject, Qt, QTimer, Signal, Slot

from core.models import LyricsResult, PlaybackSnapshot, PlaybackState, TrackIdentity, VideoMatch


class QtIntervalScheduler:
    """Scheduler backed by a QTimer living on the GUI thread."""

    def __init__(self, parent: Optional[QObject] = None):
        self._timer = QTimer(parent)
        self._callback: Optional[Callable[[], None]] = None
        self._timer.timeout.connect(self._fire)

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer.start(int(interval_ms))

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    def is_active(self) -> bool:
        return self._timer.isActive()

    def _fire(self) -> None:
        if self._callback:
            self._callback()


class QtDispatcher(QObject):
    """
    Marshals callables from worker threads onto the thread this object lives on.
    The signal/slot pair is a queued connection, so the slot runs in the GUI event loop.
    """

    _call = Signal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._call.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def __call__(self, fn: Callable[[], None]) -> None:
        self._call.emit(fn)

    @Slot(object)
    def _run(self, fn) -> None:
        fn()


class SessionBridge(QObject):
    """SessionListener that re-emits every session event as a Qt signal for the widgets."""

    trackChanged = Signal(object, object)   # TrackIdentity, PlaybackState
    lyricsLoading = Signal(object)          # TrackIdentity
    lyricsReady = Signal(object, object, list)  # TrackIdentity, LyricsResult, lines
    activeLineChanged = Signal(int, list)   # index, [LineState]
    snapshot = Signal(object)               # PlaybackSnapshot
    videoChanged = Signal(str, object)      # track key, VideoMatch | None

    def on_track_changed(self, identity: TrackIdentity, state: PlaybackState) -> None:
        self.trackChanged.emit(identity, state)

    def on_lyrics_loading(self, identity: TrackIdentity) -> None:
        self.lyricsLoading.emit(identity)

    def on_lyrics(self, identity: TrackIdentity, result: LyricsResult, lines: list[str]) -> None:
        self.lyricsReady.emit(identity, result, list(lines))

    def on_active_line(self, index: int, states: list) -> None:
        self.activeLineChanged.emit(index, list(states))

    def on_snapshot(self, snapshot: PlaybackSnapshot) -> None:
        self.snapshot.emit(snapshot)

    def on_video_changed(self, track_key: str, match: Optional[VideoMatch]) -> None:
        self.videoChanged.emit(track_key, match)
