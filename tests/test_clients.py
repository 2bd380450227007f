import pytest
import requests

from core.errors import NetworkError
from core.genius_client import API_SEARCH_URL, PUBLIC_SEARCH_URL, GeniusClient, extract_lyrics_from_html
from core.lrclib_client import LrcLibClient
from core.models import GeniusMatch, VideoMatch
from core.spotify_client import SpotifyClient
from core.youtube_client import YOUTUBE_SEARCH_URL, YouTubeClient, watch_url


# ---- LRCLIB ----

def test_lrclib_request_shape_and_mapping(make_session, make_response):
    body = {
        "trackName": "One More Time",
        "artistName": "Daft Punk",
        "albumName": "Discovery",
        "duration": 320,
        "syncedLyrics": "[00:01.00]One more time",
        "plainLyrics": "One more time",
    }
    session = make_session(lambda method, url, **kw: make_response(200, body))
    client = LrcLibClient("https://lrclib.net/api/", session=session, timeout_s=5)

    rec = client.get_by_metadata("one more time", "daft punk", album="Discovery", duration_s=320)

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "https://lrclib.net/api/get")
    assert kwargs["params"] == {
        "track_name": "one more time",
        "artist_name": "daft punk",
        "album_name": "Discovery",
        "duration": 320,
    }
    assert kwargs["timeout"] == 5
    assert rec.synced == "[00:01.00]One more time"
    assert rec.title == "One More Time"
    assert rec.duration_s == 320.0
    assert rec.has_lyrics


def test_lrclib_omits_missing_hints(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(200, {"plainLyrics": "  "}))
    rec = LrcLibClient(session=session).get_by_metadata("t", "a")
    assert session.calls[0][2]["params"] == {"track_name": "t", "artist_name": "a"}
    assert rec.plain is None
    assert not rec.has_lyrics


def test_lrclib_404_is_no_match(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(404, {"code": 404}))
    assert LrcLibClient(session=session).get_by_metadata("t", "a") is None


def test_lrclib_server_error_raises(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(500))
    with pytest.raises(NetworkError) as exc:
        LrcLibClient(session=session).get_by_metadata("t", "a")
    assert exc.value.status_code == 500


def test_transport_failure_becomes_network_error(make_session):
    session = make_session(lambda method, url, **kw: requests.ConnectionError("refused"))
    with pytest.raises(NetworkError):
        LrcLibClient(session=session).get_by_metadata("t", "a")


# ---- Genius ----

API_HITS = {
    "response": {
        "hits": [
            {"type": "song", "result": {
                "id": 7, "title": "One More Time", "url": "https://genius.com/Daft-punk-one-more-time-lyrics",
                "primary_artist": {"name": "Daft Punk"}, "song_art_image_url": "https://img/x.jpg",
            }},
            {"type": "song", "result": {"id": 8, "title": "Daft Punk", "url": "https://genius.com/artists/Daft-punk"}},
        ]
    }
}

PUBLIC_SECTIONS = {
    "response": {
        "sections": [
            {"type": "song", "hits": [{"result": {
                "id": 9, "title": "Around the World", "url": "https://genius.com/Daft-punk-around-the-world-lyrics",
                "artist_names": "Daft Punk",
            }}]},
        ]
    }
}


def test_genius_search_with_token(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(200, API_HITS))
    matches = GeniusClient("secret", session=session).search("Daft Punk One More Time")

    method, url, kwargs = session.calls[0]
    assert url == API_SEARCH_URL
    assert kwargs["headers"] == {"Authorization": "Bearer secret"}
    assert kwargs["params"] == {"q": "Daft Punk One More Time"}
    assert matches == [GeniusMatch(
        song_id=7, title="One More Time", artist="Daft Punk",
        url="https://genius.com/Daft-punk-one-more-time-lyrics", artwork_url="https://img/x.jpg",
    )]


def test_genius_search_without_token_uses_public_endpoint(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(200, PUBLIC_SECTIONS))
    matches = GeniusClient(session=session).search("Daft Punk Around the World")

    assert session.calls[0][1] == PUBLIC_SEARCH_URL
    assert session.calls[0][2]["params"]["per_page"] == 5
    assert [m.song_id for m in matches] == [9]
    assert matches[0].artist == "Daft Punk"


def test_genius_fetch_plain_lyrics(make_session, make_response):
    html = """
    <html><body>
      <div data-lyrics-container="true">
        <div class="LyricsHeader__Container">12 ContributorsTranslations</div>
        [Chorus]<br/>One more time<br/>We're gonna celebrate
      </div>
      <div data-lyrics-container="true">Oh yeah, all right<br/>Don't stop the dancing</div>
      <div>not lyrics</div>
    </body></html>
    """
    session = make_session(lambda method, url, **kw: make_response(200, text=html))
    match = GeniusMatch(song_id=1, title="t", artist="a", url="https://genius.com/x-lyrics")

    text = GeniusClient(session=session).fetch_plain_lyrics(match)

    assert session.calls[0][1] == "https://genius.com/x-lyrics"
    assert "Contributors" not in text
    assert "not lyrics" not in text
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    assert lines == ["[Chorus]", "One more time", "We're gonna celebrate", "Oh yeah, all right", "Don't stop the dancing"]


def test_extract_lyrics_without_containers_is_empty():
    assert extract_lyrics_from_html("<div>nothing</div>") == ""


# ---- Spotify ----

PLAYER = {
    "is_playing": True,
    "progress_ms": 42_000,
    "item": {
        "name": "Get Lucky",
        "uri": "spotify:track:abc",
        "duration_ms": 369_000,
        "artists": [{"name": "Daft Punk"}, {"name": "Pharrell Williams"}],
        "album": {"name": "Random Access Memories", "images": [{"url": "https://i.scdn.co/a.jpg"}]},
    },
}


def test_spotify_playback_state_mapping(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(200, PLAYER))
    state = SpotifyClient(session=session).get_playback_state("tok")

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "https://api.spotify.com/v1/me/player")
    assert kwargs["headers"] == {"Authorization": "Bearer tok"}
    assert state.identity.artist == "Daft Punk, Pharrell Williams"
    assert state.identity.title == "Get Lucky"
    assert state.identity.key == "Daft Punk, Pharrell Williams-Get Lucky"
    assert state.identity.duration_s == 369
    assert state.position_ms == 42_000
    assert state.is_playing is True
    assert state.artwork_url == "https://i.scdn.co/a.jpg"


def test_spotify_nothing_playing(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(204))
    assert SpotifyClient(session=session).get_playback_state("tok") is None

    session = make_session(lambda method, url, **kw: make_response(200, {"is_playing": False, "item": None}))
    assert SpotifyClient(session=session).get_playback_state("tok") is None


def test_spotify_expired_token_raises(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(401, {"error": {"status": 401}}))
    with pytest.raises(NetworkError) as exc:
        SpotifyClient(session=session).get_playback_state("old")
    assert exc.value.status_code == 401


def test_spotify_transport_commands(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(204))
    client = SpotifyClient(session=session)

    client.pause("tok")
    client.play("tok")
    client.next_track("tok")
    client.previous_track("tok")
    client.seek("tok", -50)

    sent = [(m, u.rsplit("/v1", 1)[1]) for m, u, _ in session.calls]
    assert sent == [
        ("PUT", "/me/player/pause"),
        ("PUT", "/me/player/play"),
        ("POST", "/me/player/next"),
        ("POST", "/me/player/previous"),
        ("PUT", "/me/player/seek"),
    ]
    assert session.calls[-1][2]["params"] == {"position_ms": 0}


# ---- YouTube ----

def test_youtube_lookup(make_session, make_response):
    body = {"items": [{
        "id": {"kind": "youtube#video", "videoId": "FGBhQbmPwH8"},
        "snippet": {"title": "One More Time (Official Video)", "thumbnails": {"high": {"url": "https://i.ytimg.com/h.jpg"}}},
    }]}
    session = make_session(lambda method, url, **kw: make_response(200, body))

    match = YouTubeClient("key", session=session).lookup_video("Daft Punk", "One More Time")

    method, url, kwargs = session.calls[0]
    assert url == YOUTUBE_SEARCH_URL
    assert kwargs["params"]["q"] == "Daft Punk One More Time music video"
    assert kwargs["params"]["videoEmbeddable"] == "true"
    assert kwargs["params"]["maxResults"] == 1
    assert match == VideoMatch(
        video_id="FGBhQbmPwH8", title="One More Time (Official Video)", thumbnail_url="https://i.ytimg.com/h.jpg"
    )
    assert watch_url(match.video_id) == "https://www.youtube.com/watch?v=FGBhQbmPwH8"


def test_youtube_no_results(make_session, make_response):
    session = make_session(lambda method, url, **kw: make_response(200, {"items": []}))
    assert YouTubeClient("key", session=session).lookup_video("a", "t") is None
