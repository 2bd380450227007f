# src/player/player.py
from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from core.errors import classify_exception, user_message
from core.models import VideoMatch
from player.mpv_ipc import MpvVideoBackend, MpvVideoConfig
from player.video_handle import MpvVideoHandle

logger = logging.getLogger(__name__)


class VideoPlayer(QObject):
    """
    Owns the mpv video window and pumps its IPC messages on a QTimer.

    mpv is started lazily on the first video, so sessions without a video never spawn it.
    """

    handleReady = Signal(object, str)   # MpvVideoHandle, video_id
    cleared = Signal()
    failed = Signal(str)                # user-facing message

    def __init__(self, mpv_path: Optional[str] = None, wid: Optional[int] = None, parent=None):
        super().__init__(parent)
        self._config = MpvVideoConfig(mpv_path=mpv_path, wid=wid)
        self._handle: Optional[MpvVideoHandle] = None
        self._unavailable = False

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(50)
        self._poll_timer.timeout.connect(self._poll)

    @property
    def handle(self) -> Optional[MpvVideoHandle]:
        return self._handle

    def _ensure_handle(self) -> Optional[MpvVideoHandle]:
        if self._handle is not None:
            if self._handle.backend.is_running():
                return self._handle
            # mpv exited or lost its IPC; start a fresh one
            logger.info("mpv is no longer running; restarting")
            self._poll_timer.stop()
            self._handle.close()
            self._handle = None
        if self._unavailable:
            return None
        try:
            backend = MpvVideoBackend(self._config)
            backend.start()
        except (OSError, FileNotFoundError) as e:
            logger.warning("Video player unavailable: %s", e)
            self._unavailable = True
            self.failed.emit(user_message(classify_exception(e), "video"))
            return None

        self._handle = MpvVideoHandle(backend, on_ready=self._on_ready)
        self._poll_timer.start()
        return self._handle

    def show_video(self, match: Optional[VideoMatch]) -> None:
        if match is None:
            self.clear()
            return
        handle = self._ensure_handle()
        if handle is None:
            return
        try:
            handle.load(match.video_id)
        except Exception as e:
            logger.warning("Could not load video %s: %s", match.video_id, e)
            self.failed.emit(user_message(classify_exception(e), "video"))

    def clear(self) -> None:
        if self._handle is not None:
            try:
                self._handle.unload()
            except OSError as e:
                logger.debug("Video unload failed: %s", e)
        self.cleared.emit()

    def shutdown(self) -> None:
        self._poll_timer.stop()
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _on_ready(self, video_id: str) -> None:
        self.handleReady.emit(self._handle, video_id)

    def _poll(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.pump()
        except Exception as e:
            logger.debug("mpv pump failed: %s", e)
