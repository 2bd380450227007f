# player/video_handle.py
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from core.errors import StaleHandleError
from core.models import PlayerState
from core.youtube_client import watch_url
from player.mpv_ipc import MpvVideoBackend

logger = logging.getLogger(__name__)


class MpvVideoHandle:
    """
    Secondary player handle over an mpv backend.

    Becomes ready when mpv reports the loaded file; every control call made before that,
    after a new load, or after close() raises StaleHandleError.
    """

    def __init__(self, backend: MpvVideoBackend, on_ready: Optional[Callable[[str], None]] = None):
        self.backend = backend
        self.on_ready = on_ready
        self._video_id: Optional[str] = None
        self._ready = False
        self._closed = False

        backend.on_event("file-loaded", self._on_file_loaded)
        backend.on_event("end-file", self._on_end_file)

    @property
    def video_id(self) -> Optional[str]:
        return self._video_id

    def load(self, video_id: str) -> None:
        self._check_open()
        self._video_id = video_id
        self._ready = False
        logger.info("Loading video %s", video_id)
        self.backend.load_url(watch_url(video_id))

    def unload(self) -> None:
        self._video_id = None
        self._ready = False
        if not self._closed and self.backend.is_running():
            self.backend.command("stop")

    def pump(self) -> None:
        if not self._closed:
            self.backend.process_messages()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._ready = False
        self.backend.stop()

    # ---- mpv events ----

    def _on_file_loaded(self, _msg: dict[str, Any]) -> None:
        if self._video_id is None:
            return
        self._ready = True
        if self.on_ready:
            self.on_ready(self._video_id)

    def _on_end_file(self, msg: dict[str, Any]) -> None:
        if msg.get("reason") in ("error", "stop"):
            self._ready = False

    # ---- SecondaryPlayerHandle ----

    def _check_open(self) -> None:
        if self._closed or not self.backend.is_running():
            raise StaleHandleError("video player is closed")

    def _check_ready(self) -> None:
        self._check_open()
        if not self._ready:
            raise StaleHandleError("video not loaded yet")

    def is_ready(self) -> bool:
        return not self._closed and self._ready and self.backend.is_running()

    def get_position_seconds(self) -> float:
        self._check_ready()
        return self.backend.position_seconds()

    def get_player_state(self) -> PlayerState:
        self._check_ready()
        if self.backend.is_idle():
            return PlayerState.UNSTARTED
        if self.backend.is_paused():
            return PlayerState.PAUSED
        return PlayerState.PLAYING

    def play(self) -> None:
        self._check_ready()
        self.backend.set_paused(False)

    def pause(self) -> None:
        self._check_ready()
        self.backend.set_paused(True)

    def seek_to(self, seconds: float) -> None:
        self._check_ready()
        self.backend.seek_seconds(seconds)
