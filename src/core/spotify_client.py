from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from core.models import PlaybackState, TrackIdentity
from core.utils import http_request, json_or_none, new_session

logger = logging.getLogger(__name__)

SPOTIFY_API_BASE = "https://api.spotify.com/v1"


def _parse_playback(data: Any) -> Optional[PlaybackState]:
    if not isinstance(data, dict):
        return None
    item = data.get("item")
    # ads, podcasts between episodes, local-only states
    if not isinstance(item, dict) or not item.get("name"):
        return None

    artists = ", ".join(a.get("name", "") for a in item.get("artists") or [] if a.get("name"))
    album = item.get("album") or {}
    images = album.get("images") or []
    duration_ms = int(item.get("duration_ms") or 0)

    identity = TrackIdentity(
        artist=artists,
        title=item["name"],
        album=album.get("name") or None,
        duration_ms=duration_ms or None,
    )
    return PlaybackState(
        identity=identity,
        uri=item.get("uri"),
        position_ms=int(data.get("progress_ms") or 0),
        duration_ms=duration_ms,
        is_playing=bool(data.get("is_playing")),
        artwork_url=images[0].get("url") if images else None,
    )


class SpotifyClient:
    """Playback-state queries and transport commands for the user's active Spotify device."""

    def __init__(
        self,
        base_url: str = SPOTIFY_API_BASE,
        user_agent: str = "lyricsync/0.1",
        timeout_s: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or new_session(user_agent)

    def _auth(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def get_playback_state(self, token: str) -> Optional[PlaybackState]:
        """
        GET /me/player. Returns None when nothing is playing (204 or no track item).
        Raises NetworkError on failure.
        """
        r = http_request(
            self.session, "GET", f"{self.base_url}/me/player",
            headers=self._auth(token), timeout=self.timeout_s, allow_statuses=(204,),
        )
        if r.status_code == 204:
            return None
        return _parse_playback(json_or_none(r))

    # ---- transport ----

    def _command(self, token: str, method: str, path: str, **kwargs: Any) -> None:
        http_request(
            self.session, method, f"{self.base_url}{path}",
            headers=self._auth(token), timeout=self.timeout_s, **kwargs,
        )
        logger.debug("Spotify %s %s ok", method, path)

    def play(self, token: str, uris: Optional[list[str]] = None) -> None:
        body = {"uris": uris} if uris else None
        self._command(token, "PUT", "/me/player/play", json=body)

    def pause(self, token: str) -> None:
        self._command(token, "PUT", "/me/player/pause")

    def next_track(self, token: str) -> None:
        self._command(token, "POST", "/me/player/next")

    def previous_track(self, token: str) -> None:
        self._command(token, "POST", "/me/player/previous")

    def seek(self, token: str, position_ms: int) -> None:
        self._command(token, "PUT", "/me/player/seek", params={"position_ms": max(0, int(position_ms))})
