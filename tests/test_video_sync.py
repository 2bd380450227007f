import pytest

from core.errors import StaleHandleError
from core.models import PlaybackSnapshot, PlayerState, TrackIdentity, VideoMatch
from player.video_sync import NotReady, Ready, VideoSynchronizer

SONG = TrackIdentity(artist="Artist", title="Song")
OTHER = TrackIdentity(artist="Artist", title="Other")


class FakeHandle:
    def __init__(self, position_s=0.0, state=PlayerState.PLAYING, ready=True):
        self.position_s = position_s
        self.state = state
        self.ready = ready
        self.calls = []

    def is_ready(self):
        return self.ready

    def get_position_seconds(self):
        return self.position_s

    def get_player_state(self):
        return self.state

    def play(self):
        self.calls.append("play")
        self.state = PlayerState.PLAYING

    def pause(self):
        self.calls.append("pause")
        self.state = PlayerState.PAUSED

    def seek_to(self, seconds):
        self.calls.append(("seek", seconds))


class BrokenHandle(FakeHandle):
    def get_position_seconds(self):
        raise StaleHandleError("frame gone")


class Listener:
    def __init__(self):
        self.videos = []

    def on_video_changed(self, key, match):
        self.videos.append((key, match))


def snap(position_ms, is_playing=True, key=SONG.key):
    return PlaybackSnapshot(position_ms=position_ms, duration_ms=200_000, is_playing=is_playing, track_key=key)


def ready_sync(handle, inline_executor, tolerance=2.0):
    sync = VideoSynchronizer(lambda a, t: VideoMatch(video_id="vid-1"), inline_executor, drift_tolerance_s=tolerance)
    sync.on_track_changed(SONG)
    assert sync.attach(handle, "vid-1")
    return sync


def test_drift_below_threshold_does_not_seek(inline_executor):
    handle = FakeHandle(position_s=10.0)
    sync = ready_sync(handle, inline_executor)
    assert sync.reconcile(snap(11_500))
    assert handle.calls == []


def test_drift_above_threshold_seeks_once_to_spotify_time(inline_executor):
    handle = FakeHandle(position_s=10.0)
    sync = ready_sync(handle, inline_executor)
    assert sync.reconcile(snap(12_500))
    assert handle.calls == [("seek", 12.5)]


def test_play_pause_only_when_they_disagree(inline_executor):
    handle = FakeHandle(position_s=5.0, state=PlayerState.PAUSED)
    sync = ready_sync(handle, inline_executor)

    sync.reconcile(snap(5000, is_playing=True))
    sync.reconcile(snap(5000, is_playing=True))
    assert handle.calls == ["play"]

    sync.reconcile(snap(5000, is_playing=False))
    sync.reconcile(snap(5000, is_playing=False))
    assert handle.calls == ["play", "pause"]


def test_not_ready_handle_skips_the_tick(inline_executor):
    handle = FakeHandle(position_s=0.0, ready=False)
    sync = ready_sync(handle, inline_executor)
    assert sync.reconcile(snap(60_000)) is False
    assert handle.calls == []

    handle.ready = True
    assert sync.reconcile(snap(60_000)) is True
    assert handle.calls == [("seek", 60.0)]


def test_throwing_handle_is_never_fatal(inline_executor):
    sync = ready_sync(BrokenHandle(), inline_executor)
    assert sync.reconcile(snap(1000)) is False


def test_no_handle_means_no_reconcile(inline_executor):
    sync = VideoSynchronizer(None, inline_executor)
    assert isinstance(sync.state, NotReady)
    assert sync.reconcile(snap(1000)) is False


def test_track_change_invalidates_handle(inline_executor):
    handle = FakeHandle()
    sync = ready_sync(handle, inline_executor)
    assert isinstance(sync.state, Ready)

    sync.on_track_changed(OTHER)
    assert isinstance(sync.state, NotReady)
    assert sync.reconcile(snap(90_000, key=OTHER.key)) is False
    assert handle.calls == []


def test_snapshot_for_another_track_is_ignored(inline_executor):
    handle = FakeHandle(position_s=0.0)
    sync = ready_sync(handle, inline_executor)
    assert sync.reconcile(snap(90_000, key=OTHER.key)) is False


def test_stale_lookup_does_not_overwrite_newer_track(deferred_executor):
    lookups = {"Song": VideoMatch(video_id="song-vid"), "Other": VideoMatch(video_id="other-vid")}
    sync = VideoSynchronizer(lambda artist, title: lookups[title], deferred_executor)
    listener = Listener()
    sync.add_listener(listener)

    sync.on_track_changed(SONG)
    sync.on_track_changed(OTHER)
    # the newer lookup finishes first, then the stale one
    deferred_executor.run(1)
    deferred_executor.run(0)

    assert sync.current_media == VideoMatch(video_id="other-vid")
    assert listener.videos == [(OTHER.key, VideoMatch(video_id="other-vid"))]
    assert not sync.attach(FakeHandle(), "song-vid")
    assert sync.attach(FakeHandle(), "other-vid")


def test_lookup_failure_reports_no_video(inline_executor):
    def lookup(artist, title):
        raise RuntimeError("quota exceeded")

    sync = VideoSynchronizer(lookup, inline_executor)
    listener = Listener()
    sync.add_listener(listener)
    sync.on_track_changed(SONG)
    assert listener.videos == [(SONG.key, None)]


def test_shutdown_drops_late_lookup_and_handle(deferred_executor):
    sync = VideoSynchronizer(lambda a, t: VideoMatch(video_id="v"), deferred_executor)
    listener = Listener()
    sync.add_listener(listener)
    sync.on_track_changed(SONG)
    sync.shutdown()
    deferred_executor.run_all()
    assert listener.videos == []
    assert not sync.attach(FakeHandle(), "v")


def test_tolerance_must_be_positive(inline_executor):
    with pytest.raises(ValueError):
        VideoSynchronizer(None, inline_executor, drift_tolerance_s=0)
