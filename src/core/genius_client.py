"""Genius search and lyric page scraping (plain text only)."""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

import requests
from bs4 import BeautifulSoup

from core.models import GeniusMatch
from core.utils import collapse_blank_lines, http_request, json_or_none, new_session

logger = logging.getLogger(__name__)

API_SEARCH_URL = "https://api.genius.com/search"
PUBLIC_SEARCH_URL = "https://genius.com/api/search/song"

# Page chrome that Genius renders inside the lyric containers
_CHROME_CLASS_PATTERNS = ("LyricsHeader", "SongBioPreview", "ContributorsCredit")

# Applied in order; each strips one family of non-lyric boilerplate.
_BOILERPLATE_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\d+\s*Contributors?.*?Lyrics", re.IGNORECASE), ""),
    (re.compile(r"\d+\s*Contributor.*?\n", re.IGNORECASE), ""),
    (re.compile(r"^.*?Lyrics[ \t]*$", re.IGNORECASE | re.MULTILINE), ""),
    (re.compile(r"You might also like", re.IGNORECASE), ""),
    (re.compile(r"See.*?Live", re.IGNORECASE), ""),
    (re.compile(r"Get tickets as low as \$\d+", re.IGNORECASE), ""),
    (re.compile(r"\d*Embed[ \t]*$", re.IGNORECASE | re.MULTILINE), ""),
]


def clean_genius_lyrics(text: str) -> str:
    """Remove Genius boilerplate (contributor headers, promos, Embed marker) and tidy blank lines."""
    if not text:
        return ""
    for pattern, repl in _BOILERPLATE_RULES:
        text = pattern.sub(repl, text)
    return collapse_blank_lines(text)


def _match_from_result(result: dict[str, Any]) -> Optional[GeniusMatch]:
    url = result.get("url")
    title = result.get("title")
    if not url or not title:
        return None
    artist = (result.get("primary_artist") or {}).get("name") or result.get("artist_names") or ""
    return GeniusMatch(
        song_id=result.get("id"),
        title=str(title),
        artist=str(artist),
        url=str(url),
        artwork_url=result.get("song_art_image_url") or result.get("header_image_url"),
    )


def _iter_song_results(data: Any):
    response = (data or {}).get("response") or {}
    # api.genius.com: response.hits[]
    for hit in response.get("hits") or []:
        if hit.get("type", "song") == "song":
            yield hit.get("result") or {}
    # genius.com/api/search/song: response.sections[].hits[]
    for section in response.get("sections") or []:
        if section.get("type") != "song":
            continue
        for hit in section.get("hits") or []:
            yield hit.get("result") or {}


def extract_lyrics_from_html(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    containers = soup.find_all("div", attrs={"data-lyrics-container": "true"})
    blocks: list[str] = []
    for container in containers:
        for elem in container.find_all(
            ["div", "span", "a"],
            class_=lambda c: c and any(p in c for p in _CHROME_CLASS_PATTERNS),
        ):
            elem.decompose()
        for br in container.find_all("br"):
            br.replace_with("\n")
        blocks.append(container.get_text())
    return "\n".join(blocks)


class GeniusClient:
    def __init__(
        self,
        access_token: Optional[str] = None,
        user_agent: str = "lyricsync/0.1",
        timeout_s: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.access_token = access_token
        self.timeout_s = timeout_s
        self.session = session or new_session(user_agent)

    def search(self, query: str) -> list[GeniusMatch]:
        """Search songs for "artist title"; returns matches best first (may be empty)."""
        if self.access_token:
            url = API_SEARCH_URL
            headers = {"Authorization": f"Bearer {self.access_token}"}
            params = {"q": query}
        else:
            url = PUBLIC_SEARCH_URL
            headers = {}
            params = {"q": query, "per_page": 5}

        r = http_request(self.session, "GET", url, params=params, headers=headers, timeout=self.timeout_s)
        data = json_or_none(r)

        matches: list[GeniusMatch] = []
        for result in _iter_song_results(data):
            match = _match_from_result(result)
            if match and "/artists/" not in match.url:
                matches.append(match)
        logger.debug("Genius search %r -> %s match(es)", query, len(matches))
        return matches

    def fetch_plain_lyrics(self, match: GeniusMatch) -> str:
        """Download the song page and return its cleaned lyric text."""
        r = http_request(self.session, "GET", match.url, timeout=self.timeout_s)
        return clean_genius_lyrics(extract_lyrics_from_html(r.text))
