"""Timeline model: timestamp conversions, ingestion of raw segments, and the subtitle track."""

import logging
import math
import re
from bisect import bisect_left, bisect_right
from typing import Any, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .exceptions import IngestionError, InvalidIntervalError, MalformedTimestampError
from .models import Subtitle

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"[0-9]+")
# Absorbs binary representation error (1.001 * 1000 == 1000.9999999999999)
# without turning truncation into rounding.
_MS_EPSILON = 1e-6

def parse_timestamp(text: str) -> float:
    """
    Parses an SRT style timestamp into seconds.

    Both ``HH:MM:SS,mmm`` and ``HH:MM:SS.mmm`` are accepted; the fractional
    part may also be omitted (``HH:MM:SS``).

    Args:
        text: The timestamp string.

    Returns:
        The instant as floating-point seconds.

    Raises:
        MalformedTimestampError: If the string does not have exactly three
                                 numeric H/M/S components and an optional
                                 numeric fraction.
    """
    if not isinstance(text, str):
        raise MalformedTimestampError(text, "not a string")
    value = text.strip()

    fraction = None
    if "," in value:
        value, _, fraction = value.rpartition(",")
    elif "." in value:
        value, _, fraction = value.rpartition(".")

    parts = value.split(":")
    if len(parts) < 3:
        raise MalformedTimestampError(text, "fewer than 3 components")
    if len(parts) > 3:
        raise MalformedTimestampError(text, "more than 3 components")

    components = parts if fraction is None else parts + [fraction]
    for component in components:
        if not _DIGITS_RE.fullmatch(component):
            raise MalformedTimestampError(text, f"non-numeric component {component!r}")

    hours, minutes, seconds = (int(p) for p in parts)
    total = hours * 3600 + minutes * 60 + seconds
    if fraction is not None:
        total += int(fraction) / (10 ** len(fraction))
    return float(total)

def format_seconds(seconds: float) -> str:
    """
    Formats seconds into SRT time format HH:MM:SS,mmm.

    H/M/S are floored and the sub-second remainder is truncated to whole
    milliseconds. Negative values clamp to zero.

    Args:
        seconds: Time in seconds.

    Returns:
        Formatted time string.

    Raises:
        ValueError: If seconds is NaN or infinite.
    """
    if math.isnan(seconds) or math.isinf(seconds):
        raise ValueError(f"Cannot format non-finite time value: {seconds}")
    if seconds < 0:
        seconds = 0.0
    milliseconds = int(math.floor(seconds * 1000 + _MS_EPSILON))
    hrs = milliseconds // 3600000
    milliseconds %= 3600000
    mins = milliseconds // 60000
    milliseconds %= 60000
    secs = milliseconds // 1000
    milliseconds %= 1000
    return f"{hrs:02d}:{mins:02d}:{secs:02d},{milliseconds:03d}"

def _coerce_index(value: Any, position: int) -> int:
    if isinstance(value, bool):
        return position
    try:
        return int(value)
    except (TypeError, ValueError):
        return position

def _text_field(record: Mapping, key: str) -> str:
    value = record.get(key)
    return "" if value is None else str(value)

def _build_subtitle(record: Any, position: int) -> Subtitle:
    if not isinstance(record, Mapping):
        raise IngestionError(f"Segment {position} is not a mapping: {record!r}")
    for key in ("startTime", "endTime"):
        if record.get(key) is None:
            raise IngestionError(f"Segment {position} is missing '{key}'")

    start_seconds = parse_timestamp(str(record["startTime"]))
    end_seconds = parse_timestamp(str(record["endTime"]))
    # Stored in canonical HH:MM:SS,mmm form whatever separator arrived.
    start_time = format_seconds(start_seconds)
    end_time = format_seconds(end_seconds)
    index = _coerce_index(record.get("index"), position)

    if end_seconds < start_seconds:
        raise InvalidIntervalError(index, start_time, end_time)

    return Subtitle(
        index=index,
        start_time=start_time,
        end_time=end_time,
        original_text=_text_field(record, "originalText"),
        translated_text=_text_field(record, "translatedText"),
        start_seconds=start_seconds,
        end_seconds=end_seconds,
    )

def ingest(raw_segments: Iterable[Mapping], strict: bool = False) -> List[Subtitle]:
    """
    Turns raw time-stamped records from the transcription service into subtitles.

    Args:
        raw_segments: Records with ``index``, ``startTime``, ``endTime``,
                      ``originalText`` and ``translatedText`` keys.
        strict: If True, a segment ending before it starts rejects the whole
                batch instead of being dropped.

    Returns:
        Subtitles sorted by start time. The sort is stable, so segments that
        start together keep their input order.

    Raises:
        MalformedTimestampError: If any timestamp cannot be parsed.
        IngestionError: If a record is not a mapping or lacks a timestamp.
        InvalidIntervalError: Only in strict mode.
    """
    subtitles: List[Subtitle] = []
    dropped = 0
    for position, record in enumerate(raw_segments, start=1):
        try:
            subtitles.append(_build_subtitle(record, position))
        except InvalidIntervalError as e:
            if strict:
                raise
            dropped += 1
            logger.warning(f"Dropping segment: {e}")

    subtitles.sort(key=lambda sub: sub.start_seconds)
    logger.info(f"Ingested {len(subtitles)} subtitles ({dropped} dropped).")
    return subtitles

class _Snapshot(NamedTuple):
    subtitles: Tuple[Subtitle, ...]
    starts: List[float]
    max_ends: List[float]

def _build_snapshot(subtitles: Sequence[Subtitle]) -> _Snapshot:
    items = tuple(subtitles)
    starts = [sub.start_seconds for sub in items]
    if any(later < earlier for earlier, later in zip(starts, starts[1:])):
        raise ValueError("Subtitles must be sorted by start time; pass them through ingest() first.")
    max_ends: List[float] = []
    running = -math.inf
    for sub in items:
        running = max(running, sub.end_seconds)
        max_ends.append(running)
    return _Snapshot(items, starts, max_ends)

class SubtitleTrack:
    """
    The subtitle list of one playback/export session.

    Lookups run in O(log n): a binary search over start times bounds the
    candidates, and a running maximum of end times finds the earliest one
    still showing. ``replace`` swaps in a complete new snapshot, so a lookup
    never observes a half-updated list.
    """

    def __init__(self, subtitles: Optional[Sequence[Subtitle]] = None):
        self._snapshot = _build_snapshot(subtitles or ())

    def replace(self, subtitles: Sequence[Subtitle]) -> None:
        """Replaces the whole list, e.g. after a new video was processed."""
        snapshot = _build_snapshot(subtitles)
        self._snapshot = snapshot
        logger.debug(f"Subtitle track replaced ({len(snapshot.subtitles)} entries).")

    @property
    def subtitles(self) -> Tuple[Subtitle, ...]:
        return self._snapshot.subtitles

    def find_active(self, t: float) -> Optional[Subtitle]:
        """Returns the earliest-starting subtitle whose interval contains t, if any."""
        snapshot = self._snapshot
        if not snapshot.subtitles or math.isnan(t):
            return None
        hi = bisect_right(snapshot.starts, t)
        if hi == 0:
            return None
        i = bisect_left(snapshot.max_ends, t, 0, hi)
        if i < hi:
            return snapshot.subtitles[i]
        return None

    def __len__(self) -> int:
        return len(self._snapshot.subtitles)

    def __iter__(self) -> Iterator[Subtitle]:
        return iter(self._snapshot.subtitles)
