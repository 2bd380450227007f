from PySide6.QtWidgets import QMainWindow, QWidget, QVBoxLayout, QSplitter, QLabel
from PySide6.QtCore import Qt
from PySide6.QtGui import QShortcut, QKeySequence
import logging

from core.errors import classify_exception, user_message
from core.runtime import submit_then
from player.player import VideoPlayer
from ui.lyrics_view import LyricsView
from ui.player_bar import PlayerBar
from ui.toast import show_notify

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, app_state, bridge, dispatch):
        super().__init__()
        self.setWindowTitle("LyricSync")
        self.resize(1000, 640)
        self.app_state = app_state
        self.bridge = bridge
        self.dispatch = dispatch

        settings = app_state.settings
        self._token = settings.spotify_token if settings else None

        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)
        layout = QVBoxLayout(self.central_widget)
        layout.setContentsMargins(0, 0, 0, 0)

        splitter = QSplitter(Qt.Orientation.Horizontal)

        self.lyrics_view = LyricsView()
        splitter.addWidget(self.lyrics_view)

        # mpv renders into this native widget
        self.video_frame = QLabel("No video")
        self.video_frame.setAlignment(Qt.AlignCenter)
        self.video_frame.setAttribute(Qt.WidgetAttribute.WA_NativeWindow, True)
        self.video_frame.setStyleSheet("background: #000; color: #6b7280;")
        self.video_frame.setMinimumWidth(320)
        splitter.addWidget(self.video_frame)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 2)

        layout.addWidget(splitter, 1)

        self.player_bar = PlayerBar()
        layout.addWidget(self.player_bar)

        # --- Shortcuts ---
        QShortcut(QKeySequence("Space"), self, activated=self.player_bar.btn_play.click)
        QShortcut(QKeySequence("Ctrl+Right"), self, activated=self.play_next)
        QShortcut(QKeySequence("Ctrl+Left"), self, activated=self.play_prev)

        self.video_player = None
        if settings and settings.video_enabled:
            self.video_player = VideoPlayer(
                mpv_path=settings.mpv_path,
                wid=int(self.video_frame.winId()),
                parent=self,
            )
            self.video_player.handleReady.connect(self._on_video_handle_ready)
            self.video_player.cleared.connect(self._on_video_cleared)
            self.video_player.failed.connect(lambda msg: self.app_state.notify(msg, "warn"))
        else:
            self.video_frame.setVisible(False)

        # --- Session signals ---
        bridge.trackChanged.connect(self._on_track_changed)
        bridge.lyricsLoading.connect(self.lyrics_view.on_lyrics_loading)
        bridge.lyricsReady.connect(self.lyrics_view.on_lyrics)
        bridge.activeLineChanged.connect(self.lyrics_view.on_active_line)
        bridge.snapshot.connect(self.player_bar.on_snapshot)
        bridge.videoChanged.connect(self._on_video_changed)

        # --- Transport ---
        self.player_bar.prevRequested.connect(self.play_prev)
        self.player_bar.nextRequested.connect(self.play_next)
        self.player_bar.playPauseRequested.connect(self._on_play_pause)
        self.player_bar.seekRequested.connect(self._on_seek)

        self.app_state.notification.connect(self._on_notify)

        if not self._token:
            self.lyrics_view.show_message("Set SPOTIFY_ACCESS_TOKEN to start syncing.")

    # ---- session events ----

    def _on_track_changed(self, identity, state):
        self.lyrics_view.on_track_changed(identity, state)
        self.player_bar.on_track_changed(identity, state)
        if self.video_player:
            self.video_player.clear()

    def _on_video_changed(self, track_key: str, match):
        if not self.video_player:
            return
        session = self.app_state.session
        if session is None or session.identity is None or session.identity.key != track_key:
            return
        if match is None:
            self.video_player.clear()
            return
        self.video_frame.setText("")
        self.video_player.show_video(match)

    def _on_video_cleared(self):
        self.video_frame.setText("No video")
        if self.app_state.synchronizer is not None:
            self.app_state.synchronizer.detach("video cleared")

    def _on_video_handle_ready(self, handle, video_id: str):
        synchronizer = self.app_state.synchronizer
        if synchronizer is not None and synchronizer.attach(handle, video_id):
            logger.info("Video %s attached", video_id)

    # ---- transport commands (Spotify, off the GUI thread) ----

    def _run_command(self, name: str, method: str, *args):
        spotify = self.app_state.spotify
        if not self._token or spotify is None or self.app_state.executor is None:
            return

        def done(future):
            try:
                future.result()
            except Exception as e:
                kind = classify_exception(e)
                logger.warning("Spotify %s failed: %s", name, e)
                self.app_state.notify(user_message(kind, "playback"), "error")
                return
            # refresh right away instead of waiting for the next tick
            session = self.app_state.session
            if session is not None and session.active:
                session.tracker.tick()

        submit_then(self.app_state.executor, self.dispatch, getattr(spotify, method), done, self._token, *args)

    def play_next(self):
        self._run_command("next", "next_track")

    def play_prev(self):
        self._run_command("previous", "previous_track")

    def _on_play_pause(self, play: bool):
        if play:
            self._run_command("play", "play")
        else:
            self._run_command("pause", "pause")

    def _on_seek(self, ms: int):
        self._run_command("seek", "seek", int(ms))

    # ---- notifications ----

    def _on_notify(self, n):
        show_notify(self, n)

    def show_queued_notifications(self):
        for n in self.app_state.queued_notifications:
            self._on_notify(n)
        self.app_state.queued_notifications.clear()

    def closeEvent(self, event):
        if self.app_state.session is not None:
            self.app_state.session.stop()
        if self.video_player:
            self.video_player.shutdown()
        super().closeEvent(event)
