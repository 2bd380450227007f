# core/errors.py
from __future__ import annotations

from typing import Optional


class LyricSyncError(Exception):
    """Base exception for the lyrics sync engine."""


class NetworkError(LyricSyncError):
    """A fetch failed: transport error, timeout or non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(LyricSyncError):
    """A source has no match for the requested track."""


class MalformedDataError(LyricSyncError):
    """A lyric line carries an unparseable timestamp tag."""


class StaleHandleError(LyricSyncError):
    """The secondary player handle was used before it was ready or after it was closed."""


def classify_exception(exc: Exception) -> str:
    if isinstance(exc, NotFoundError):
        return "not_found"
    if isinstance(exc, NetworkError) and exc.status_code is not None:
        code = exc.status_code
        if code in (401, 403):
            return "auth"
        if code == 404:
            return "not_found"
        if code == 429:
            return "rate_limited"
        if code >= 500:
            return "server"

    text = str(exc).lower()
    if any(k in text for k in ("401", "403", "unauthorized", "forbidden", "token expired")):
        return "auth"
    if any(k in text for k in ("500", "502", "503", "504", "internal server error", "bad gateway", "service unavailable")):
        return "server"
    if isinstance(exc, NetworkError) or any(k in text for k in ("timeout", "timed out", "connection", "network", "dns", "unreachable")):
        return "network"
    if any(k in text for k in ("json", "decode", "parse", "invalid")):
        return "parse"
    return "unknown"


def user_message(kind: str, context: str = "general") -> str:
    if context == "lyrics":
        mapping = {
            "auth": "Lyrics service rejected the request.",
            "server": "Lyrics service is temporarily unavailable.",
            "network": "Lyrics request failed. Check your connection.",
            "rate_limited": "Too many lyrics requests. Please try again later.",
            "not_found": "No lyrics available for this track.",
            "parse": "Lyrics format is not supported.",
            "unknown": "Error loading lyrics.",
        }
        return mapping.get(kind, mapping["unknown"])

    if context == "playback":
        mapping = {
            "auth": "Spotify session expired. Please login again.",
            "server": "Spotify is busy on server side. Please retry shortly.",
            "network": "Cannot reach Spotify.",
            "rate_limited": "Spotify rate limit reached. Slowing down.",
            "unknown": "Playback command failed.",
        }
        return mapping.get(kind, mapping["unknown"])

    if context == "video":
        mapping = {
            "auth": "Video lookup is not authorized. Check the YouTube API key.",
            "network": "Video lookup failed due to network issue.",
            "not_found": "No video available for this track.",
            "unknown": "Video unavailable.",
        }
        return mapping.get(kind, mapping["unknown"])

    return "Operation failed. Please retry."
