# core/resolver.py
from __future__ import annotations

import logging
from typing import Optional

from core.errors import LyricSyncError, NotFoundError, classify_exception, user_message
from core.lrc import parse_timeline, strip_timestamps
from core.models import (
    FetchError,
    LyricSource,
    LyricsResult,
    NotFound,
    PlainOnly,
    Timestamped,
    TrackIdentity,
    TrackMeta,
)

logger = logging.getLogger(__name__)


class LyricResolver:
    """
    Resolve a track to lyrics: LRCLIB first (timestamped or plain), Genius as fallback.

    `resolve` never raises; every failure ends up as a FetchError result.
    No caching: each call re-fetches.
    """

    def __init__(self, primary, fallback):
        self.primary = primary
        self.fallback = fallback

    def resolve(self, identity: TrackIdentity) -> LyricsResult:
        try:
            result = self._from_primary(identity)
            if result is not None:
                return result
            return self._from_fallback(identity)
        except NotFoundError:
            return NotFound()
        except Exception as e:
            kind = classify_exception(e)
            logger.warning("Lyrics resolution failed for %s (%s): %s", identity.key, kind, e)
            return FetchError(reason=user_message(kind, "lyrics"), kind=kind)

    def _from_primary(self, identity: TrackIdentity) -> Optional[LyricsResult]:
        """Returns a result, or None when the caller should fall back."""
        try:
            record = self.primary.get_by_metadata(
                title=identity.title,
                artist=identity.artist,
                album=identity.album,
                duration_s=identity.duration_s,
            )
        except LyricSyncError as e:
            logger.info("Primary lyrics source unavailable, falling back: %s", e)
            return None

        if record is None or not record.has_lyrics:
            logger.debug("Primary lyrics source has nothing for %s", identity.key)
            return None

        # source metadata wins over the request's values
        meta = TrackMeta(
            title=record.title or identity.title,
            artist=record.artist or identity.artist,
            album=record.album or identity.album,
            duration_s=record.duration_s if record.duration_s is not None else identity.duration_s,
        )

        if record.synced:
            timeline = parse_timeline(record.synced)
            if timeline:
                return Timestamped(
                    source=LyricSource.PRIMARY,
                    track=meta,
                    timeline=timeline,
                    raw_plain_text=record.plain or strip_timestamps(record.synced),
                )
            logger.debug("Synced lyrics for %s parsed to an empty timeline", identity.key)

        if record.plain:
            return PlainOnly(source=LyricSource.PRIMARY, track=meta, plain_text=record.plain)
        return None

    def _from_fallback(self, identity: TrackIdentity) -> LyricsResult:
        query = f"{identity.artist} {identity.title}"
        matches = self.fallback.search(query)
        if not matches:
            logger.info("No fallback match for %r", query)
            return NotFound()

        match = matches[0]
        text = self.fallback.fetch_plain_lyrics(match)
        if not text:
            logger.info("Fallback match for %r has no lyric text", query)
            return NotFound()

        meta = TrackMeta(
            title=match.title or identity.title,
            artist=match.artist or identity.artist,
            album=identity.album,
            duration_s=identity.duration_s,
            url=match.url,
            artwork_url=match.artwork_url,
        )
        return PlainOnly(source=LyricSource.SECONDARY, track=meta, plain_text=text)
