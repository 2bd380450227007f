from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from core.utils import http_request, json_or_none, new_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LrcLibRecord:
    synced: Optional[str]
    plain: Optional[str]
    title: Optional[str]
    artist: Optional[str]
    album: Optional[str]
    duration_s: Optional[float]

    @property
    def has_lyrics(self) -> bool:
        return bool(self.synced or self.plain)


def _strip_empty(s) -> Optional[str]:
    if not isinstance(s, str):
        return None
    s = s.strip()
    return s or None


class LrcLibClient:
    def __init__(
        self,
        base_url: str = "https://lrclib.net",
        user_agent: str = "lyricsync/0.1",
        timeout_s: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        if self.base_url.endswith("/api"):
            self.base_url = self.base_url[: -len("/api")]
        self.timeout_s = timeout_s
        self.session = session or new_session(user_agent)

    def get_by_metadata(
        self,
        title: str,
        artist: str,
        album: Optional[str] = None,
        duration_s: Optional[int] = None,
    ) -> Optional[LrcLibRecord]:
        """
        GET /api/get?track_name=&artist_name=&album_name=&duration=

        Returns None when LRCLIB has no record. Raises NetworkError on any other failure.
        """
        params = {
            "track_name": title,
            "artist_name": artist,
        }
        if album:
            params["album_name"] = album
        if duration_s and duration_s > 0:
            params["duration"] = int(duration_s)

        r = http_request(
            self.session, "GET", f"{self.base_url}/api/get",
            params=params, timeout=self.timeout_s, allow_statuses=(404,),
        )
        if r.status_code == 404:
            logger.debug("LRCLIB has no record for %s - %s", artist, title)
            return None

        data = json_or_none(r)
        if not isinstance(data, dict):
            logger.warning("LRCLIB returned a non-object body for %s - %s", artist, title)
            return None

        duration = data.get("duration")
        return LrcLibRecord(
            synced=_strip_empty(data.get("syncedLyrics")),
            plain=_strip_empty(data.get("plainLyrics")),
            title=_strip_empty(data.get("trackName")),
            artist=_strip_empty(data.get("artistName")),
            album=_strip_empty(data.get("albumName")),
            duration_s=float(duration) if isinstance(duration, (int, float)) else None,
        )
