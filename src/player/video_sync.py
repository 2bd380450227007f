# player/video_sync.py
from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union

from core.errors import StaleHandleError
from core.guard import RequestGuard, RequestTicket
from core.models import PlaybackSnapshot, PlayerState, TrackIdentity, VideoMatch
from core.runtime import Dispatch, call_now, submit_then

logger = logging.getLogger(__name__)

DEFAULT_DRIFT_TOLERANCE_S = 2.0


class SecondaryPlayerHandle(Protocol):
    def is_ready(self) -> bool: ...

    def get_position_seconds(self) -> float: ...

    def get_player_state(self) -> PlayerState: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek_to(self, seconds: float) -> None: ...


@dataclass(frozen=True)
class NotReady:
    reason: str = ""


@dataclass(frozen=True)
class Ready:
    handle: SecondaryPlayerHandle
    video_id: str
    track_key: str


HandleState = Union[NotReady, Ready]


class VideoListener(Protocol):
    def on_video_changed(self, track_key: str, match: Optional[VideoMatch]) -> None: ...


class VideoSynchronizer:
    """
    Keeps a muted music video aligned with the polled playback position.

    The handle is never owned here: the UI creates it for the announced video and attaches it
    once ready. Track changes invalidate the handle and start a new lookup; lookups for a track
    that is no longer current are dropped.
    """

    def __init__(
        self,
        lookup: Optional[Callable[[str, str], Optional[VideoMatch]]],
        executor: Executor,
        dispatch: Dispatch = call_now,
        drift_tolerance_s: float = DEFAULT_DRIFT_TOLERANCE_S,
    ):
        if drift_tolerance_s <= 0:
            raise ValueError("drift_tolerance_s must be positive")
        self.lookup = lookup
        self.executor = executor
        self.dispatch = dispatch
        self.drift_tolerance_s = float(drift_tolerance_s)

        self._listeners: list[VideoListener] = []
        self._guard = RequestGuard()
        self._state: HandleState = NotReady("no video")
        self._media: Optional[VideoMatch] = None
        self._media_key: Optional[str] = None
        self._active = True

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def current_media(self) -> Optional[VideoMatch]:
        return self._media

    def add_listener(self, listener: VideoListener) -> None:
        self._listeners.append(listener)

    # ---- media lookup ----

    def on_track_changed(self, identity: TrackIdentity) -> None:
        self._state = NotReady("track changed")
        self._media = None
        self._media_key = identity.key

        if self.lookup is None:
            return

        ticket = self._guard.issue(identity.key)
        submit_then(
            self.executor,
            self.dispatch,
            self.lookup,
            lambda f: self._on_lookup_done(ticket, f),
            identity.artist,
            identity.title,
        )

    def _on_lookup_done(self, ticket: RequestTicket, future: Future) -> None:
        if not self._active or not self._guard.is_current(ticket):
            logger.debug("Dropping stale video lookup for %s", ticket.key)
            return

        try:
            match = future.result()
        except Exception as e:
            logger.warning("Video lookup failed for %s: %s", ticket.key, e)
            match = None

        self._media = match
        if match:
            logger.info("Video for %s: %s", ticket.key, match.video_id)
        for listener in list(self._listeners):
            listener.on_video_changed(ticket.key, match)

    # ---- handle ownership ----

    def attach(self, handle: SecondaryPlayerHandle, video_id: str) -> bool:
        """Called by the UI when the handle for `video_id` reports ready."""
        if not self._active or self._media is None or self._media.video_id != video_id:
            logger.debug("Ignoring handle for stale video %s", video_id)
            return False
        self._state = Ready(handle=handle, video_id=video_id, track_key=self._media_key or "")
        return True

    def detach(self, reason: str = "detached") -> None:
        self._state = NotReady(reason)

    def activate(self) -> None:
        self._active = True

    def shutdown(self) -> None:
        self._active = False
        self._guard.clear()
        self._state = NotReady("session ended")
        self._media = None

    # ---- reconciliation ----

    def reconcile(self, snapshot: PlaybackSnapshot) -> bool:
        """
        Align play/pause and correct drift beyond the tolerance.
        Returns False when the step was skipped (no ready handle, or the handle failed).
        """
        state = self._state
        if not isinstance(state, Ready) or state.track_key != snapshot.track_key:
            return False

        handle = state.handle
        try:
            if not handle.is_ready():
                raise StaleHandleError("video frame not attached")

            player_time = handle.get_position_seconds()
            spotify_time = snapshot.position_ms / 1000.0

            player_state = handle.get_player_state()
            if snapshot.is_playing and player_state != PlayerState.PLAYING:
                handle.play()
            elif not snapshot.is_playing and player_state == PlayerState.PLAYING:
                handle.pause()

            if abs(player_time - spotify_time) > self.drift_tolerance_s:
                logger.debug("Video drift %.2fs; seeking to %.2fs", player_time - spotify_time, spotify_time)
                handle.seek_to(spotify_time)
        except StaleHandleError as e:
            logger.debug("Video handle not usable this tick: %s", e)
            return False
        except Exception as e:
            logger.debug("Video sync skipped: %s", e)
            return False
        return True
