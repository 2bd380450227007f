import pytest

from core.cursor import MODE_ESTIMATED, MODE_EXACT, MODE_NONE, LyricCursor, estimated_index, exact_index
from core.models import (
    FetchError,
    LineState,
    LyricLine,
    LyricSource,
    NotFound,
    PlainOnly,
    PlaybackSnapshot,
    Timestamped,
    TrackMeta,
)

TIMELINE = (LyricLine(0, "a"), LyricLine(1000, "b"), LyricLine(3000, "c"))


def snap(position_ms, duration_ms=100_000, is_playing=True, key="A-T"):
    return PlaybackSnapshot(position_ms=position_ms, duration_ms=duration_ms, is_playing=is_playing, track_key=key)


@pytest.mark.parametrize(
    "position, expected",
    [(500, 0), (1500, 1), (2999, 1), (3000, 2), (99_000, 2)],
)
def test_exact_index_window(position, expected):
    assert exact_index(TIMELINE, position) == expected


def test_exact_index_before_first_line():
    timeline = (LyricLine(2000, "late start"),)
    assert exact_index(timeline, 1999) == -1
    assert exact_index((), 5000) == -1


def test_exact_index_unsorted_timeline_uses_first_window_match():
    timeline = (LyricLine(5000, "x"), LyricLine(1000, "y"), LyricLine(2000, "z"))
    # i=1: 1000 <= 1500 and next 2000 > 1500
    assert exact_index(timeline, 1500) == 1
    assert exact_index(timeline, 6000) == 2


def test_estimated_index():
    assert estimated_index(10, 55_000, 100_000) == 5
    assert estimated_index(10, 100_000, 100_000) == 9
    assert estimated_index(10, 5_000, 0) == 0
    assert estimated_index(0, 5_000, 100_000) == -1


def test_timeline_load_resets_to_minus_one():
    cursor = LyricCursor()
    cursor.load_timeline(TIMELINE)
    assert cursor.mode == MODE_EXACT
    assert cursor.active_index == -1
    assert cursor.lines == ["a", "b", "c"]


def test_plain_load_resets_to_zero_and_drops_blank_lines():
    cursor = LyricCursor()
    cursor.load_plain("one\n\n  two  \n\nthree\n")
    assert cursor.mode == MODE_ESTIMATED
    assert cursor.active_index == 0
    assert cursor.lines == ["one", "two", "three"]


def test_update_returns_index_only_on_change():
    cursor = LyricCursor()
    cursor.load_timeline(TIMELINE)
    assert cursor.update(snap(500)) == 0
    assert cursor.update(snap(700)) is None
    assert cursor.update(snap(1200)) == 1
    # seek backwards is recomputed from scratch
    assert cursor.update(snap(100)) == 0


def test_update_frozen_while_paused():
    cursor = LyricCursor()
    cursor.load_timeline(TIMELINE)
    cursor.update(snap(1500))
    assert cursor.update(snap(3500, is_playing=False)) is None
    assert cursor.update(snap(200, is_playing=False)) is None
    assert cursor.active_index == 1


def test_estimated_mode_update():
    cursor = LyricCursor()
    cursor.load_plain("\n".join(str(i) for i in range(10)))
    assert cursor.update(snap(55_000)) == 5
    assert cursor.update(snap(100_000)) == 9


def test_update_is_noop_without_lyrics():
    cursor = LyricCursor()
    assert cursor.mode == MODE_NONE
    assert cursor.update(snap(1000)) is None
    assert cursor.line_states() == []


def test_line_states_are_derived_from_active_index():
    cursor = LyricCursor()
    cursor.load_timeline(TIMELINE)
    assert cursor.line_states() == [LineState.FUTURE] * 3
    cursor.update(snap(1500))
    assert cursor.line_states() == [LineState.PAST, LineState.ACTIVE, LineState.FUTURE]


def test_load_result_variants():
    meta = TrackMeta(title="T", artist="A")
    cursor = LyricCursor()

    cursor.load_result(Timestamped(source=LyricSource.PRIMARY, track=meta, timeline=TIMELINE))
    assert cursor.mode == MODE_EXACT

    cursor.load_result(PlainOnly(source=LyricSource.SECONDARY, track=meta, plain_text="x\ny"))
    assert cursor.mode == MODE_ESTIMATED
    assert cursor.active_index == 0

    cursor.load_result(NotFound())
    assert cursor.mode == MODE_NONE
    assert cursor.lines == []

    cursor.load_result(FetchError(reason="boom"))
    assert cursor.mode == MODE_NONE

    with pytest.raises(TypeError):
        cursor.load_result("not a result")
