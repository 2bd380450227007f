import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from PySide6.QtWidgets import QApplication

ROOT = Path(__file__).resolve().parent
SRC_DIR = ROOT / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from core.app_logging import setup_logging
from core.config import load_settings
from core.genius_client import GeniusClient
from core.lrclib_client import LrcLibClient
from core.resolver import LyricResolver
from core.session import SyncSession
from core.spotify_client import SpotifyClient
from core.state import AppState, Notify
from core.youtube_client import YouTubeClient
from player.tracker import PlaybackTracker
from player.video_sync import VideoSynchronizer
from ui.main_window import MainWindow
from ui.qt_runtime import QtDispatcher, QtIntervalScheduler, SessionBridge

logger = logging.getLogger("lyricsync")


def init_app_state(dispatch) -> AppState:
    settings = load_settings()
    app_state = AppState(settings)
    app_state.executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="lyricsync")

    timeout = settings.http_timeout_s
    ua = settings.user_agent

    resolver = LyricResolver(
        primary=LrcLibClient(settings.lrclib_url, user_agent=ua, timeout_s=timeout),
        fallback=GeniusClient(settings.genius_token, user_agent=ua, timeout_s=timeout),
    )
    app_state.spotify = SpotifyClient(user_agent=ua, timeout_s=timeout)

    tracker = PlaybackTracker(
        app_state.spotify.get_playback_state,
        QtIntervalScheduler(),
        app_state.executor,
        dispatch=dispatch,
        interval_ms=settings.poll_interval_ms,
    )

    lookup = None
    if settings.video_enabled:
        lookup = YouTubeClient(settings.youtube_api_key, user_agent=ua, timeout_s=timeout).lookup_video
    else:
        logger.info("YOUTUBE_API_KEY not set; video sync disabled")

    app_state.synchronizer = VideoSynchronizer(
        lookup,
        app_state.executor,
        dispatch=dispatch,
        drift_tolerance_s=settings.drift_tolerance_s,
    )
    app_state.session = SyncSession(
        tracker,
        resolver,
        app_state.synchronizer,
        app_state.executor,
        dispatch=dispatch,
    )

    if not settings.spotify_token:
        app_state.queued_notifications.append(
            Notify(message="SPOTIFY_ACCESS_TOKEN is not set.", notify_type="warn")
        )
    return app_state


def main() -> int:
    setup_logging()
    qt_app = QApplication(sys.argv)

    dispatch = QtDispatcher()
    app_state = init_app_state(dispatch)

    bridge = SessionBridge()
    app_state.session.add_listener(bridge)

    main_window = MainWindow(app_state, bridge, dispatch)
    main_window.show()
    main_window.show_queued_notifications()

    if app_state.settings.spotify_token:
        app_state.session.start(app_state.settings.spotify_token)

    try:
        return qt_app.exec()
    finally:
        app_state.session.stop()
        app_state.executor.shutdown(wait=False, cancel_futures=True)


if __name__ == "__main__":
    raise SystemExit(main())
