# core/session.py
from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from typing import Optional, Protocol

from core.cursor import LyricCursor
from core.errors import classify_exception, user_message
from core.guard import RequestGuard, RequestTicket
from core.models import (
    FetchError,
    LineState,
    LyricsResult,
    PlaybackSnapshot,
    PlaybackState,
    TrackIdentity,
    VideoMatch,
)
from core.resolver import LyricResolver
from core.runtime import Dispatch, call_now, submit_then

logger = logging.getLogger(__name__)


class SessionListener(Protocol):
    """Rendering collaborator. All callbacks arrive on the coordination thread."""

    def on_track_changed(self, identity: TrackIdentity, state: PlaybackState) -> None: ...

    def on_lyrics_loading(self, identity: TrackIdentity) -> None: ...

    def on_lyrics(self, identity: TrackIdentity, result: LyricsResult, lines: list[str]) -> None: ...

    def on_active_line(self, index: int, states: list[LineState]) -> None: ...

    def on_snapshot(self, snapshot: PlaybackSnapshot) -> None: ...

    def on_video_changed(self, track_key: str, match: Optional[VideoMatch]) -> None: ...


class SyncSession:
    """
    One open session: polled position drives the lyric cursor and the video synchronizer,
    track changes trigger lyric resolution.

    Resolution and polling are independent pipelines; a finished resolution replaces the
    current lyrics only if its track is still the most recently requested one and the
    session is still active.
    """

    def __init__(
        self,
        tracker,
        resolver: LyricResolver,
        synchronizer,
        executor: Executor,
        dispatch: Dispatch = call_now,
        cursor: Optional[LyricCursor] = None,
    ):
        self.tracker = tracker
        self.resolver = resolver
        self.synchronizer = synchronizer
        self.executor = executor
        self.dispatch = dispatch
        self.cursor = cursor or LyricCursor()

        self._listeners: list[SessionListener] = []
        self._guard = RequestGuard()
        self._active = False
        self._identity: Optional[TrackIdentity] = None
        self._result: Optional[LyricsResult] = None
        self._last_snapshot: Optional[PlaybackSnapshot] = None

        tracker.add_listener(self)
        if synchronizer is not None:
            synchronizer.add_listener(self)

    # ---- lifecycle ----

    @property
    def active(self) -> bool:
        return self._active

    @property
    def identity(self) -> Optional[TrackIdentity]:
        return self._identity

    @property
    def lyrics(self) -> Optional[LyricsResult]:
        return self._result

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def start(self, credential: str) -> None:
        self._active = True
        if self.synchronizer is not None:
            self.synchronizer.activate()
        self.tracker.start(credential)

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        self.tracker.stop()
        self._guard.clear()
        if self.synchronizer is not None:
            self.synchronizer.shutdown()
        logger.info("Session ended")

    # ---- tracker events ----

    def on_track_changed(self, identity: TrackIdentity, state: PlaybackState) -> None:
        if not self._active:
            return

        self._identity = identity
        self._result = None
        self._last_snapshot = None
        self.cursor.reset()

        for listener in list(self._listeners):
            listener.on_track_changed(identity, state)
            listener.on_lyrics_loading(identity)

        if self.synchronizer is not None:
            self.synchronizer.on_track_changed(identity)

        ticket = self._guard.issue(identity.key)
        submit_then(
            self.executor,
            self.dispatch,
            self.resolver.resolve,
            lambda f: self._on_resolved(ticket, identity, f),
            identity,
        )

    def _on_resolved(self, ticket: RequestTicket, identity: TrackIdentity, future: Future) -> None:
        if not self._active:
            logger.debug("Session ended; dropping lyrics for %s", ticket.key)
            return
        if not self._guard.is_current(ticket):
            logger.debug("Dropping stale lyrics for %s (current: %s)", ticket.key, self._guard.current_key)
            return

        try:
            result = future.result()
        except Exception as e:
            kind = classify_exception(e)
            logger.error("Lyrics resolution crashed for %s: %s", ticket.key, e)
            result = FetchError(reason=user_message(kind, "lyrics"), kind=kind)

        self._result = result
        self.cursor.load_result(result)
        logger.info("Lyrics for %s: %s (%s lines)", ticket.key, type(result).__name__, len(self.cursor.lines))

        for listener in list(self._listeners):
            listener.on_lyrics(identity, result, self.cursor.lines)

        # plain lyrics start on line 0 before any snapshot moves the cursor
        if self.cursor.active_index >= 0:
            self._emit_active(self.cursor.active_index)

        # catch up with the position observed while the fetch was running
        if self._last_snapshot is not None:
            self._apply_cursor(self._last_snapshot)

    def on_snapshot(self, snapshot: PlaybackSnapshot) -> None:
        if not self._active:
            return
        self._last_snapshot = snapshot

        for listener in list(self._listeners):
            listener.on_snapshot(snapshot)

        self._apply_cursor(snapshot)
        if self.synchronizer is not None:
            self.synchronizer.reconcile(snapshot)

    def _apply_cursor(self, snapshot: PlaybackSnapshot) -> None:
        if self._identity is None or snapshot.track_key != self._identity.key:
            return
        idx = self.cursor.update(snapshot)
        if idx is not None:
            self._emit_active(idx)

    def _emit_active(self, idx: int) -> None:
        states = self.cursor.line_states()
        for listener in list(self._listeners):
            listener.on_active_line(idx, states)

    # ---- synchronizer events ----

    def on_video_changed(self, track_key: str, match: Optional[VideoMatch]) -> None:
        if not self._active:
            return
        for listener in list(self._listeners):
            listener.on_video_changed(track_key, match)
