from __future__ import annotations

import logging
from typing import Optional

import requests

from core.models import VideoMatch
from core.utils import http_request, json_or_none, new_session

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


class YouTubeClient:
    def __init__(
        self,
        api_key: str,
        user_agent: str = "lyricsync/0.1",
        timeout_s: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.session = session or new_session(user_agent)

    def lookup_video(self, artist: str, title: str) -> Optional[VideoMatch]:
        """Find one embeddable music video for the track; None when there is no hit."""
        params = {
            "part": "snippet",
            "q": f"{artist} {title} music video",
            "type": "video",
            "videoEmbeddable": "true",
            "maxResults": 1,
            "key": self.api_key,
        }
        r = http_request(self.session, "GET", YOUTUBE_SEARCH_URL, params=params, timeout=self.timeout_s)
        data = json_or_none(r) or {}

        for item in data.get("items") or []:
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id:
                continue
            snippet = item.get("snippet") or {}
            thumbs = snippet.get("thumbnails") or {}
            thumb = (thumbs.get("high") or thumbs.get("default") or {}).get("url")
            return VideoMatch(video_id=video_id, title=snippet.get("title", ""), thumbnail_url=thumb)

        logger.debug("No video found for %s - %s", artist, title)
        return None
