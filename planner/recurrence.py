"""
Recurrence expansion.

A rule is anchored at its event's start and end. Periods step forward from
the anchor by ``interval`` units of ``frequency``; inside a period the finer
constraint lists expand into candidate days and every other given
constraint filters them, so each kept occurrence satisfies all of them.

Monthly rules anchored on day 29-31 skip months that lack that day, and
yearly rules anchored on Feb 29 skip non-leap years. Days are never clamped
to the end of the month.
"""

import calendar
import itertools
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Set, Tuple

from .domain import CalendarEvent, RecurrenceFrequency, RecurrenceRule
from .errors import InvalidInterval, MalformedRecurrenceRule
from .timeutils import (
    DEFAULT_MAX_WINDOW,
    Interval,
    ensure_window,
    get_zone,
    overlaps,
    weekday_index,
)

logger = logging.getLogger(__name__)


def _add_months(year: int, month: int, months: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def _month_days(year: int, month: int) -> List[date]:
    last = calendar.monthrange(year, month)[1]
    return [date(year, month, d) for d in range(1, last + 1)]


def _days_in_month(
    rule: RecurrenceRule, year: int, month: int, anchor_day: date
) -> List[date]:
    last = calendar.monthrange(year, month)[1]
    if rule.days_of_month:
        return [
            date(year, month, d) for d in sorted(rule.days_of_month) if d <= last
        ]
    if rule.days_of_week:
        weekdays = set(rule.days_of_week)
        return [d for d in _month_days(year, month) if weekday_index(d) in weekdays]
    if anchor_day.day > last:
        return []
    return [date(year, month, anchor_day.day)]


def _period(
    rule: RecurrenceRule, anchor_day: date, step: int
) -> Tuple[date, List[date]]:
    """First day of the ``step``-th period and its candidate days."""
    frequency = rule.frequency

    if frequency == RecurrenceFrequency.DAILY:
        day = anchor_day + timedelta(days=step)
        return day, [day]

    if frequency == RecurrenceFrequency.WEEKLY:
        week_start = anchor_day - timedelta(days=weekday_index(anchor_day))
        period_start = week_start + timedelta(weeks=step)
        offsets = rule.days_of_week or [weekday_index(anchor_day)]
        return period_start, [
            period_start + timedelta(days=offset) for offset in sorted(offsets)
        ]

    if frequency == RecurrenceFrequency.MONTHLY:
        year, month = _add_months(anchor_day.year, anchor_day.month, step)
        return date(year, month, 1), _days_in_month(rule, year, month, anchor_day)

    year = anchor_day.year + step
    if rule.months_of_year:
        months = sorted(rule.months_of_year)
    elif rule.days_of_month or rule.days_of_week:
        months = list(range(1, 13))
    else:
        months = [anchor_day.month]
    days: List[date] = []
    for month in months:
        days.extend(_days_in_month(rule, year, month, anchor_day))
    return date(year, 1, 1), days


def _matches(rule: RecurrenceRule, day: date) -> bool:
    if rule.days_of_week and weekday_index(day) not in rule.days_of_week:
        return False
    if rule.days_of_month and day.day not in rule.days_of_month:
        return False
    if rule.months_of_year and day.month not in rule.months_of_year:
        return False
    return True


def _first_step(
    rule: RecurrenceRule, anchor_day: date, first_needed: date
) -> int:
    """Index of the first period that can matter for a window."""
    if rule.frequency == RecurrenceFrequency.DAILY:
        base, length = anchor_day, rule.interval
    elif rule.frequency == RecurrenceFrequency.WEEKLY:
        base = anchor_day - timedelta(days=weekday_index(anchor_day))
        length = 7 * rule.interval
    else:
        return 0
    periods = (first_needed - base).days // length - 1
    return max(0, periods)


def expand_rule(
    rule: RecurrenceRule,
    anchor_start: datetime,
    anchor_end: datetime,
    window_start: datetime,
    window_end: Optional[datetime] = None,
    time_zone: str = "UTC",
    max_span: timedelta = DEFAULT_MAX_WINDOW,
) -> List[Interval]:
    """
    Expand ``rule`` into ``(start, end)`` pairs intersecting the window.

    Without ``window_end`` the rule itself must terminate (``count`` or
    ``end_date``). The result is ordered by start and has no duplicates.
    """
    if anchor_end <= anchor_start:
        raise InvalidInterval(anchor_start, anchor_end, "recurrence anchor")
    if window_end is None:
        if not rule.is_self_terminating:
            raise MalformedRecurrenceRule(
                "Rule has neither count nor end_date and no window end was "
                "given; expansion would not terminate"
            )
    else:
        ensure_window(window_start, window_end, max_span, "expansion window")

    count = rule.count
    if rule.end_date is not None and rule.count is not None:
        logger.debug(
            "Both end_date and count given; end_date wins",
            extra={"end_date": rule.end_date.isoformat(), "count": rule.count},
        )
        count = None

    tz = get_zone(time_zone)
    local_anchor = anchor_start.astimezone(tz)
    anchor_day = local_anchor.date()
    clock = local_anchor.time()
    duration = anchor_end - anchor_start

    if window_end is not None:
        limits = [window_end.astimezone(tz).date()]
    else:
        limits = [anchor_day + timedelta(days=max_span.days)]
    if rule.end_date is not None:
        limits.append(rule.end_date)
    stop_day = min(limits)

    first = 0
    if count is None:
        first_needed = (window_start - duration).astimezone(tz).date()
        first = _first_step(rule, anchor_day, first_needed)

    exceptions: Set[date] = set(rule.exceptions)
    starts: Set[datetime] = set()
    emitted = 0
    done = False

    for index in itertools.count(first):
        period_start, days = _period(rule, anchor_day, index * rule.interval)
        if period_start > stop_day:
            break
        for day in days:
            if day < anchor_day or not _matches(rule, day):
                continue
            if day > stop_day:
                break
            emitted += 1
            if day not in exceptions:
                start = datetime.combine(day, clock, tzinfo=tz)
                end = start + duration
                if end > window_start and (
                    window_end is None or start < window_end
                ):
                    starts.add(start)
            if count is not None and emitted >= count:
                done = True
                break
        if done:
            break

    occurrences = [(start, start + duration) for start in sorted(starts)]
    logger.debug(
        "Expanded recurrence rule",
        extra={
            "frequency": rule.frequency.value,
            "interval": rule.interval,
            "occurrence_count": len(occurrences),
            "window_start": window_start.isoformat(),
            "window_end": window_end.isoformat() if window_end else None,
        },
    )
    return occurrences


def occurrence_id(master_id: str, start: datetime) -> str:
    return f"{master_id}@{start.astimezone(timezone.utc):%Y%m%dT%H%M%SZ}"


def expand_event(
    event: CalendarEvent,
    window_start: datetime,
    window_end: datetime,
    max_span: timedelta = DEFAULT_MAX_WINDOW,
) -> List[CalendarEvent]:
    """
    Concrete events of ``event`` intersecting the window.

    Non-recurring events come back as themselves when they intersect the
    window. Occurrences of a recurring event are copies of the master with
    their own id and ``recurrence_id`` pointing back at the master.
    """
    if not event.is_recurring or event.recurrence_rule is None:
        if overlaps(event.start_time, event.end_time, window_start, window_end):
            return [event]
        return []

    pairs = expand_rule(
        event.recurrence_rule,
        event.start_time,
        event.end_time,
        window_start,
        window_end,
        time_zone=event.time_zone,
        max_span=max_span,
    )
    return [
        event.model_copy(
            update={
                "event_id": occurrence_id(event.event_id, start),
                "start_time": start,
                "end_time": end,
                "is_recurring": False,
                "recurrence_rule": None,
                "recurrence_id": event.event_id,
                "conflicts": [],
            }
        )
        for start, end in pairs
    ]


def materialize(
    events: Iterable[CalendarEvent],
    window_start: datetime,
    window_end: datetime,
    max_span: timedelta = DEFAULT_MAX_WINDOW,
) -> List[CalendarEvent]:
    """All concrete events in the window, recurring masters expanded."""
    ensure_window(window_start, window_end, max_span, "materialization window")
    concrete: List[CalendarEvent] = []
    for event in events:
        concrete.extend(expand_event(event, window_start, window_end, max_span))
    concrete.sort(key=lambda e: (e.start_time, e.event_id))
    return concrete
