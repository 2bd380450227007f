# core/models.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class LyricSource(str, Enum):
    PRIMARY = "primary"      # LRCLIB (timestamp capable)
    SECONDARY = "secondary"  # Genius (plain text only)


class LineState(str, Enum):
    PAST = "past"
    ACTIVE = "active"
    FUTURE = "future"


class PlayerState(Enum):
    """Secondary player states, numbered like the YouTube iframe API."""
    UNSTARTED = -1
    ENDED = 0
    PLAYING = 1
    PAUSED = 2
    BUFFERING = 3


def track_key(artist: str, title: str) -> str:
    return f"{artist}-{title}"


@dataclass(frozen=True)
class TrackIdentity:
    artist: str
    title: str
    album: Optional[str] = None
    duration_ms: Optional[int] = None

    @property
    def key(self) -> str:
        return track_key(self.artist, self.title)

    @property
    def duration_s(self) -> Optional[int]:
        if not self.duration_ms or self.duration_ms <= 0:
            return None
        return int(self.duration_ms // 1000)


@dataclass(frozen=True)
class LyricLine:
    time_ms: int
    text: str


# Ordered by time_ms as produced by the parser; may be empty.
LyricTimeline = Tuple[LyricLine, ...]


@dataclass(frozen=True)
class TrackMeta:
    title: str
    artist: str
    album: Optional[str] = None
    duration_s: Optional[float] = None
    url: Optional[str] = None
    artwork_url: Optional[str] = None


# --- LyricsResult variants ---

@dataclass(frozen=True)
class Timestamped:
    source: LyricSource
    track: TrackMeta
    timeline: LyricTimeline
    raw_plain_text: Optional[str] = None


@dataclass(frozen=True)
class PlainOnly:
    source: LyricSource
    track: TrackMeta
    plain_text: str


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class FetchError:
    reason: str
    kind: str = "unknown"


LyricsResult = Union[Timestamped, PlainOnly, NotFound, FetchError]


@dataclass(frozen=True)
class PlaybackSnapshot:
    position_ms: int
    duration_ms: int
    is_playing: bool
    track_key: str


@dataclass(frozen=True)
class PlaybackState:
    """One successful answer of the external player's "current playback" query."""
    identity: TrackIdentity
    uri: Optional[str]
    position_ms: int
    duration_ms: int
    is_playing: bool
    artwork_url: Optional[str] = None

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            position_ms=max(0, int(self.position_ms)),
            duration_ms=max(1, int(self.duration_ms)),
            is_playing=bool(self.is_playing),
            track_key=self.identity.key,
        )


@dataclass(frozen=True)
class GeniusMatch:
    song_id: Optional[int]
    title: str
    artist: str
    url: str
    artwork_url: Optional[str] = None


@dataclass(frozen=True)
class VideoMatch:
    video_id: str
    title: str = ""
    thumbnail_url: Optional[str] = None

