"""
Calendar statistics and the productivity insights derived from them.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from .availability import busy_intervals, working_windows
from .domain import (
    CalendarEvent,
    CalendarStats,
    ConflictInfo,
    EventStatus,
    EventType,
    Insight,
    InsightSeverity,
    TimeBlock,
    TimeBlockType,
    WorkingHours,
)
from .recurrence import materialize
from .timeutils import DEFAULT_MAX_WINDOW, Interval, clip_interval, subtract_intervals

logger = logging.getLogger(__name__)

OVERBOOKED_UTILIZATION = 90.0
FOCUS_TO_MEETING_RATIO = 0.5

_MEETING_TYPES = {EventType.MEETING, EventType.APPOINTMENT}


def _minutes(interval: Optional[Interval]) -> float:
    if interval is None:
        return 0.0
    return (interval[1] - interval[0]).total_seconds() / 60


def compute_stats(
    events: Iterable[CalendarEvent],
    time_blocks: Iterable[TimeBlock],
    working_hours: WorkingHours,
    window_start: datetime,
    window_end: datetime,
    conflicts: Sequence[ConflictInfo] = (),
    max_span: timedelta = DEFAULT_MAX_WINDOW,
) -> CalendarStats:
    """
    Summarize the window.

    Durations are in minutes and clipped to the window. Busy and free time
    are measured inside working hours only, so their sum is the working
    time of the window. Cancelled events are left out entirely.
    """
    window = (window_start, window_end)
    active = [
        e
        for e in materialize(events, window_start, window_end, max_span)
        if e.status != EventStatus.CANCELLED
    ]
    blocks = [
        b
        for b in time_blocks
        if clip_interval((b.start_time, b.end_time), window) is not None
    ]

    durations = [
        _minutes(clip_interval((e.start_time, e.end_time), window))
        for e in active
    ]
    total_duration = sum(durations)
    meeting_time = sum(
        d for e, d in zip(active, durations) if e.type in _MEETING_TYPES
    )
    focus_time = sum(
        d for e, d in zip(active, durations) if e.category == "focus"
    ) + sum(
        _minutes(clip_interval((b.start_time, b.end_time), window))
        for b in blocks
        if b.type == TimeBlockType.FOCUS
    )

    busy = busy_intervals(active, blocks)
    working_time = 0.0
    free_time = 0.0
    for w in working_windows(working_hours, window_start, window_end):
        working_time += _minutes(w)
        free_time += sum(_minutes(gap) for gap in subtract_intervals(w, busy))
    busy_time = working_time - free_time
    utilization = 100 * busy_time / working_time if working_time else 0.0

    completion = (
        sum(1 for e in active if e.status == EventStatus.COMPLETED) / len(active)
        if active
        else 0.0
    )
    focus_share = (
        focus_time / (focus_time + meeting_time)
        if focus_time + meeting_time
        else 0.0
    )
    productivity = 1 + 9 * (0.6 * completion + 0.4 * focus_share)

    stats = CalendarStats(
        total_events=len(active),
        total_duration=round(total_duration, 2),
        busy_time=round(busy_time, 2),
        free_time=round(free_time, 2),
        meeting_time=round(meeting_time, 2),
        focus_time=round(focus_time, 2),
        conflict_count=len(conflicts),
        utilization_rate=round(min(utilization, 100.0), 2),
        productivity_score=max(1, min(10, int(round(productivity)))),
        average_event_duration=(
            round(total_duration / len(active), 2) if active else 0
        ),
        events_by_type=dict(Counter(e.type.value for e in active)),
        events_by_priority=dict(Counter(e.priority.value for e in active)),
    )
    logger.debug(
        "Computed calendar stats",
        extra={
            "window_start": window_start.isoformat(),
            "window_end": window_end.isoformat(),
            "total_events": stats.total_events,
            "utilization_rate": stats.utilization_rate,
        },
    )
    return stats


def productivity_insights(stats: CalendarStats) -> List[Insight]:
    insights: List[Insight] = []
    if stats.utilization_rate > OVERBOOKED_UTILIZATION:
        insights.append(
            Insight(
                type="overbooked",
                message=(
                    f"Working hours are {stats.utilization_rate:.0f}% booked; "
                    f"leave room for unplanned work"
                ),
                severity=InsightSeverity.WARNING,
            )
        )
    if stats.meeting_time and (
        stats.focus_time < FOCUS_TO_MEETING_RATIO * stats.meeting_time
    ):
        insights.append(
            Insight(
                type="focus_deficit",
                message=(
                    f"Only {stats.focus_time:.0f} minutes of focus time "
                    f"against {stats.meeting_time:.0f} minutes of meetings; "
                    f"consider blocking time for deep work"
                ),
                severity=InsightSeverity.INFO,
            )
        )
    if stats.conflict_count:
        insights.append(
            Insight(
                type="conflicts",
                message=f"{stats.conflict_count} scheduling conflict(s) need attention",
                severity=InsightSeverity.WARNING,
            )
        )
    return insights
