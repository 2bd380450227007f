# core/cursor.py
from __future__ import annotations

import logging
from bisect import bisect_right
from typing import Optional, Sequence

from core.lrc import is_monotonic
from core.models import (
    FetchError,
    LineState,
    LyricLine,
    LyricsResult,
    NotFound,
    PlainOnly,
    PlaybackSnapshot,
    Timestamped,
)

logger = logging.getLogger(__name__)

MODE_NONE = "none"
MODE_EXACT = "exact"
MODE_ESTIMATED = "estimated"


def exact_index(timeline: Sequence[LyricLine], position_ms: int) -> int:
    """
    Index i with timeline[i].time_ms <= position and (i is last or timeline[i+1].time_ms > position).
    -1 when the position is before the first line.
    """
    if not timeline:
        return -1
    times = [line.time_ms for line in timeline]
    if is_monotonic(timeline):
        return bisect_right(times, position_ms) - 1

    # unsorted files: first entry satisfying the window condition
    last = len(times) - 1
    for i, t in enumerate(times):
        if t <= position_ms and (i == last or times[i + 1] > position_ms):
            return i
    return -1


def estimated_index(line_count: int, position_ms: int, duration_ms: int) -> int:
    if line_count <= 0:
        return -1
    ratio = position_ms / duration_ms if duration_ms > 0 else 0.0
    idx = int(ratio * line_count)
    return min(max(idx, 0), line_count - 1)


def plain_lines(text: Optional[str]) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


class LyricCursor:
    """
    Tracks the active lyric line for the current track.

    Exact mode uses the timeline; estimated mode spreads plain lines over the track duration.
    """

    def __init__(self):
        self.mode = MODE_NONE
        self.active_index: int = -1
        self._timeline: tuple[LyricLine, ...] = ()
        self._sorted = True
        self._times: list[int] = []
        self._lines: list[str] = []

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def reset(self) -> None:
        self.mode = MODE_NONE
        self.active_index = -1
        self._timeline = ()
        self._times = []
        self._lines = []

    def load_timeline(self, timeline: Sequence[LyricLine]) -> None:
        self.reset()
        if not timeline:
            return
        self.mode = MODE_EXACT
        self._timeline = tuple(timeline)
        self._times = [line.time_ms for line in self._timeline]
        self._sorted = is_monotonic(self._timeline)
        self._lines = [line.text for line in self._timeline]

    def load_plain(self, text: Optional[str]) -> None:
        self.reset()
        lines = plain_lines(text)
        if not lines:
            return
        self.mode = MODE_ESTIMATED
        self._lines = lines
        self.active_index = 0

    def load_result(self, result: LyricsResult) -> None:
        if isinstance(result, Timestamped):
            self.load_timeline(result.timeline)
        elif isinstance(result, PlainOnly):
            self.load_plain(result.plain_text)
        elif isinstance(result, (NotFound, FetchError)):
            self.reset()
        else:
            raise TypeError(f"Unknown lyrics result: {result!r}")

    def compute_index(self, snapshot: PlaybackSnapshot) -> int:
        if self.mode == MODE_EXACT:
            if self._sorted:
                return bisect_right(self._times, snapshot.position_ms) - 1
            return exact_index(self._timeline, snapshot.position_ms)
        if self.mode == MODE_ESTIMATED:
            return estimated_index(len(self._lines), snapshot.position_ms, snapshot.duration_ms)
        return -1

    def update(self, snapshot: PlaybackSnapshot) -> Optional[int]:
        """
        Apply a snapshot. Returns the new active index when it changed, otherwise None.
        Paused snapshots never move the cursor.
        """
        if self.mode == MODE_NONE or not snapshot.is_playing:
            return None

        idx = self.compute_index(snapshot)
        if idx == self.active_index:
            return None

        self.active_index = idx
        return idx

    def line_states(self) -> list[LineState]:
        active = self.active_index
        out: list[LineState] = []
        for i in range(len(self._lines)):
            if i < active:
                out.append(LineState.PAST)
            elif i == active:
                out.append(LineState.ACTIVE)
            else:
                out.append(LineState.FUTURE)
        return out
