"""
Free-time computation against working hours and existing commitments.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from .domain import CalendarEvent, EventStatus, TimeBlock, TimeRange, WorkingHours
from .recurrence import materialize
from .timeutils import (
    DEFAULT_MAX_WINDOW,
    Interval,
    clip_interval,
    ensure_window,
    generate_slots,
    get_zone,
    local_days,
    merge_intervals,
    overlaps,
    subtract_intervals,
    weekday_index,
)

logger = logging.getLogger(__name__)


def busy_intervals(
    events: Iterable[CalendarEvent],
    time_blocks: Iterable[TimeBlock],
    include_flexible: bool = False,
) -> List[Interval]:
    """
    Merged busy time of concrete events and time blocks.

    Cancelled events never count. Time blocks count when they are locked
    or fixed, or when ``include_flexible`` is set.
    """
    intervals = [
        (e.start_time, e.end_time)
        for e in events
        if e.status != EventStatus.CANCELLED
    ]
    intervals.extend(
        (b.start_time, b.end_time)
        for b in time_blocks
        if include_flexible or b.is_fixed
    )
    return merge_intervals(intervals)


def working_windows(
    working_hours: WorkingHours, window_start: datetime, window_end: datetime
) -> List[Interval]:
    """
    The schedulable parts of ``[window_start, window_end)``.

    Each working weekday contributes its working window, clipped to the
    requested window, with that day's breaks cut out. Disabled working
    hours make the whole window schedulable.
    """
    if not working_hours.enabled:
        return [(window_start, window_end)]

    tz = get_zone(working_hours.time_zone)
    windows: List[Interval] = []
    for day in local_days(window_start, window_end, tz):
        weekday = weekday_index(day)
        if weekday not in working_hours.working_days:
            continue
        clipped = clip_interval(
            working_hours.on_day(day, working_hours.time_zone),
            (window_start, window_end),
        )
        if clipped is None:
            continue
        breaks = [
            b.on_day(day, working_hours.time_zone)
            for b in working_hours.break_times
            if b.applies_on(weekday)
        ]
        windows.extend(subtract_intervals(clipped, breaks))
    return windows


def find_free_slots(
    events: Iterable[CalendarEvent],
    time_blocks: Iterable[TimeBlock],
    working_hours: WorkingHours,
    window_start: datetime,
    window_end: datetime,
    min_duration_minutes: int = 0,
    max_span: timedelta = DEFAULT_MAX_WINDOW,
) -> List[TimeRange]:
    """
    Ordered free intervals of at least ``min_duration_minutes``.

    Recurring masters in ``events`` are expanded over the window first.
    """
    ensure_window(window_start, window_end, max_span, "availability window")
    if min_duration_minutes < 0:
        raise ValueError(
            f"min_duration_minutes must not be negative, got "
            f"{min_duration_minutes}"
        )

    concrete = materialize(events, window_start, window_end, max_span)
    busy = busy_intervals(concrete, time_blocks)
    minimum = timedelta(minutes=min_duration_minutes)

    slots: List[TimeRange] = []
    for window in working_windows(working_hours, window_start, window_end):
        for start, end in subtract_intervals(window, busy):
            if end - start >= minimum:
                slots.append(TimeRange(start=start, end=end))

    logger.debug(
        "Computed free slots",
        extra={
            "window_start": window_start.isoformat(),
            "window_end": window_end.isoformat(),
            "busy_count": len(busy),
            "slot_count": len(slots),
            "min_duration_minutes": min_duration_minutes,
        },
    )
    return slots


def is_slot_available(
    start: datetime,
    end: datetime,
    events: Iterable[CalendarEvent],
    time_blocks: Iterable[TimeBlock],
) -> bool:
    """True iff ``[start, end)`` touches no busy interval.

    Recurring masters in ``events`` are expanded over the slot first.
    """
    if end <= start:
        return False
    concrete = materialize(events, start, end)
    return not any(
        overlaps(start, end, busy_start, busy_end)
        for busy_start, busy_end in busy_intervals(concrete, time_blocks)
    )


def find_next_available_slot(
    duration_minutes: int,
    search_from: datetime,
    events: Iterable[CalendarEvent],
    time_blocks: Iterable[TimeBlock],
    working_hours: WorkingHours,
    step_minutes: int = 30,
    horizon_days: int = 7,
) -> Optional[TimeRange]:
    """
    Earliest slot of ``duration_minutes`` on the step grid from
    ``search_from``, or None within the horizon.
    """
    search_end = search_from + timedelta(days=horizon_days)
    length = timedelta(minutes=duration_minutes)
    for free in find_free_slots(
        events, time_blocks, working_hours, search_from, search_end,
        duration_minutes,
    ):
        for start in generate_slots(free.start, free.end, step_minutes):
            if start + length > free.end:
                break
            return TimeRange(start=start, end=start + length)
    return None
