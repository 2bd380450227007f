# core/lrc.py
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from core.errors import MalformedDataError
from core.models import LyricLine, LyricTimeline

logger = logging.getLogger(__name__)

# [mm:ss.ff] where ff is 1-3 digits; only the first tag of a line is honored.
_TAG_RE = re.compile(r"\[(\d+):(\d{2})\.(\d{1,3})\](.*)")
# Anything that starts like a time tag ("[12:" ...) but may not be one.
_TAG_PREFIX_RE = re.compile(r"\[\d+:")


def _ts_to_ms(mm: str, ss: str, frac: str) -> int:
    # fraction is right-padded / truncated to centiseconds
    centis = int(frac.ljust(2, "0")[:2])
    return int(mm) * 60_000 + int(ss) * 1000 + centis * 10


def format_timestamp(ms: int) -> str:
    """Format milliseconds as mm:ss.ff (centiseconds)."""
    if ms < 0:
        ms = 0
    total_s = ms // 1000
    m = total_s // 60
    s = total_s % 60
    cs = (ms % 1000) // 10
    return f"{m:02d}:{s:02d}.{cs:02d}"


def _parse_line(line: str) -> Optional[LyricLine]:
    """
    Returns the line's entry, or None when the line carries no tag or only a blank text.
    Raises MalformedDataError for a tag-looking prefix that is not a valid [mm:ss.ff].
    """
    m = _TAG_RE.match(line)
    if not m:
        if _TAG_PREFIX_RE.match(line):
            raise MalformedDataError(f"Unparseable timestamp tag: {line[:24]!r}")
        return None

    mm, ss, frac, rest = m.groups()
    text = rest.strip()
    if not text:
        # instrumental gap markers carry nothing to display
        return None
    return LyricLine(time_ms=_ts_to_ms(mm, ss, frac), text=text)


def parse_timeline(raw_text: Optional[str]) -> LyricTimeline:
    """
    Parse line-timestamped lyrics into a timeline.

    Output keeps input line order; entries are not re-sorted.
    Lines without a recognizable tag, malformed tags and blank texts are skipped.
    """
    out: list[LyricLine] = []
    if not raw_text:
        return tuple(out)

    skipped = 0
    for raw_line in raw_text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        try:
            entry = _parse_line(line)
        except MalformedDataError as e:
            skipped += 1
            logger.debug("Skipping LRC line: %s", e)
            continue
        if entry is not None:
            out.append(entry)

    if skipped:
        logger.debug("LRC parsed with %s malformed line(s) skipped", skipped)
    return tuple(out)


def format_timeline(timeline: Iterable[LyricLine]) -> str:
    return "\n".join(f"[{format_timestamp(line.time_ms)}]{line.text}" for line in timeline)


def is_monotonic(timeline: LyricTimeline) -> bool:
    return all(a.time_ms <= b.time_ms for a, b in zip(timeline, timeline[1:]))


def strip_timestamps(lrc: str) -> str:
    """Remove leading [..] blocks from every line to derive plain lyrics."""
    out_lines: list[str] = []
    for line in lrc.splitlines():
        line = line.strip()
        while line.startswith("[") and "]" in line:
            line = line.split("]", 1)[1].lstrip()
        if line:
            out_lines.append(line)
    return "\n".join(out_lines).strip()
