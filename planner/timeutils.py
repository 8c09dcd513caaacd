"""
Time arithmetic helpers for the scheduling engine.

Everything here is a pure function over timezone-aware datetimes. Intervals
are half-open ``[start, end)`` pairs, so touching intervals never overlap.
Weekday indices follow the calendar UI convention of 0=Sunday..6=Saturday.
"""

import logging
import re
import zoneinfo
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import InvalidInterval, UnboundedExpansionWindow

logger = logging.getLogger(__name__)

Interval = Tuple[datetime, datetime]

# Upper bound on the span any single engine call may cover.
DEFAULT_MAX_WINDOW = timedelta(days=5 * 366)

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def overlaps(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """True iff ``[a_start, a_end)`` and ``[b_start, b_end)`` intersect."""
    return a_start < b_end and b_start < a_end


def contains(outer: Interval, inner: Interval) -> bool:
    """True iff ``inner`` lies entirely within ``outer``."""
    return outer[0] <= inner[0] and inner[1] <= outer[1]


def duration_minutes(start: datetime, end: datetime) -> float:
    """Length of ``[start, end)`` in minutes."""
    if end <= start:
        raise InvalidInterval(start, end)
    return (end - start).total_seconds() / 60


def generate_slots(
    window_start: datetime, window_end: datetime, step_minutes: int
) -> Iterator[datetime]:
    """
    Lazily yield candidate slot starts in ``[window_start, window_end)``.

    The window and step are validated when this is called, not on first
    iteration. Calling again with the same arguments yields the same
    sequence.
    """
    if window_end <= window_start:
        raise InvalidInterval(window_start, window_end, "slot window")
    if step_minutes <= 0:
        raise ValueError(f"step_minutes must be positive, got {step_minutes}")

    step = timedelta(minutes=step_minutes)

    def _slots() -> Iterator[datetime]:
        current = window_start
        while current < window_end:
            yield current
            current += step

    return _slots()


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        logger.warning(
            f"Converting naive datetime {value} to UTC",
            extra={"value": value.isoformat()},
        )
        return value.replace(tzinfo=timezone.utc)
    return value


def ensure_window(
    start: datetime,
    end: datetime,
    max_span: timedelta = DEFAULT_MAX_WINDOW,
    what: str = "window",
) -> None:
    """Reject empty windows and windows wider than ``max_span``."""
    if end <= start:
        raise InvalidInterval(start, end, what)
    if end - start > max_span:
        raise UnboundedExpansionWindow(
            f"Requested {what} spans {(end - start).days} days, "
            f"more than the allowed {max_span.days}"
        )


def get_zone(name: str) -> zoneinfo.ZoneInfo:
    """Resolve an IANA zone identifier."""
    try:
        return zoneinfo.ZoneInfo(name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone: {name}") from e


def parse_hhmm(value: str) -> time:
    """Parse a wall-clock ``HH:mm`` string."""
    match = _HHMM.match(value)
    if not match:
        raise ValueError(f"Expected HH:mm time, got {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def weekday_index(day: date) -> int:
    """Weekday with 0=Sunday."""
    return (day.weekday() + 1) % 7


def local_window(
    day: date, start: time, end: time, tz: zoneinfo.ZoneInfo
) -> Interval:
    """Concrete instants for a wall-clock window on a local day."""
    return (
        datetime.combine(day, start, tzinfo=tz),
        datetime.combine(day, end, tzinfo=tz),
    )


def local_days(
    window_start: datetime, window_end: datetime, tz: zoneinfo.ZoneInfo
) -> Iterator[date]:
    """Every local date touched by ``[window_start, window_end)``."""
    day = window_start.astimezone(tz).date()
    last = (window_end - timedelta(microseconds=1)).astimezone(tz).date()
    while day <= last:
        yield day
        day += timedelta(days=1)


def start_of_day(day: date, tz: zoneinfo.ZoneInfo) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=tz)


def clip_interval(interval: Interval, window: Interval) -> Optional[Interval]:
    """The part of ``interval`` inside ``window``, or None."""
    start = max(interval[0], window[0])
    end = min(interval[1], window[1])
    if start >= end:
        return None
    return (start, end)


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Sort and coalesce overlapping or touching intervals."""
    merged: List[Interval] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            if end > merged[-1][1]:
                merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return merged


def subtract_intervals(
    base: Interval, cuts: Sequence[Interval]
) -> List[Interval]:
    """The parts of ``base`` not covered by any of ``cuts``."""
    remaining: List[Interval] = []
    cursor = base[0]
    for start, end in merge_intervals(cuts):
        if end <= cursor:
            continue
        if start >= base[1]:
            break
        if start > cursor:
            remaining.append((cursor, start))
        cursor = max(cursor, end)
    if cursor < base[1]:
        remaining.append((cursor, base[1]))
    return remaining
