# player/tracker.py
from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from typing import Callable, Optional, Protocol

from core.models import PlaybackSnapshot, PlaybackState, TrackIdentity
from core.runtime import Dispatch, Scheduler, call_now, submit_then

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 1000


class TrackerListener(Protocol):
    def on_track_changed(self, identity: TrackIdentity, state: PlaybackState) -> None: ...

    def on_snapshot(self, snapshot: PlaybackSnapshot) -> None: ...


class PlaybackTracker:
    """
    Polls the external player's playback state on a fixed cadence.

    Each successful, non-empty answer emits one snapshot; a change of track key emits a
    track-change notification first. Failures are logged and skipped; the next tick is the retry.
    A tick is skipped while the previous query is still in flight so snapshots stay in poll order.
    """

    def __init__(
        self,
        query_state: Callable[[str], Optional[PlaybackState]],
        scheduler: Scheduler,
        executor: Executor,
        dispatch: Dispatch = call_now,
        interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.query_state = query_state
        self.scheduler = scheduler
        self.executor = executor
        self.dispatch = dispatch
        self.interval_ms = int(interval_ms)

        self._listeners: list[TrackerListener] = []
        self._credential: Optional[str] = None
        self._running = False
        self._poll_id = 0
        self._in_flight = False
        self._last_key: Optional[str] = None
        self._failures = 0

    # ---- lifecycle ----

    @property
    def running(self) -> bool:
        return self._running

    def add_listener(self, listener: TrackerListener) -> None:
        self._listeners.append(listener)

    def start(self, credential: str) -> None:
        if not credential:
            raise ValueError("A player credential is required to start polling")
        if self._running:
            self.stop()

        self._credential = credential
        self._running = True
        self._last_key = None
        self._failures = 0
        self.scheduler.start(self.interval_ms, self.tick)
        logger.info("Playback tracker started (every %s ms)", self.interval_ms)
        self.tick()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._credential = None
        self.scheduler.stop()
        # in-flight completions become stale
        self._poll_id += 1
        self._in_flight = False
        logger.info("Playback tracker stopped")

    # ---- polling ----

    def tick(self) -> None:
        if not self._running:
            return
        if self._in_flight:
            logger.debug("Previous playback query still in flight; skipping tick")
            return

        self._poll_id += 1
        poll_id = self._poll_id
        self._in_flight = True
        submit_then(
            self.executor,
            self.dispatch,
            self.query_state,
            lambda f: self._on_poll_done(poll_id, f),
            self._credential,
        )

    def _on_poll_done(self, poll_id: int, future: Future) -> None:
        if poll_id != self._poll_id or not self._running:
            return
        self._in_flight = False

        try:
            state = future.result()
        except Exception as e:
            self._failures += 1
            if self._failures == 1:
                logger.warning("Playback state query failed: %s", e)
            else:
                logger.debug("Playback state query failed (%s in a row): %s", self._failures, e)
            return

        if self._failures:
            logger.info("Playback state query recovered after %s failure(s)", self._failures)
            self._failures = 0

        if state is None:
            return

        snapshot = state.snapshot()
        if snapshot.track_key != self._last_key:
            self._last_key = snapshot.track_key
            logger.info("Track changed: %s", snapshot.track_key)
            for listener in list(self._listeners):
                listener.on_track_changed(state.identity, state)

        for listener in list(self._listeners):
            listener.on_snapshot(snapshot)
