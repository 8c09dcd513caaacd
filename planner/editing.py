"""
Event creation and partial edits.

Every edit produces a new, revalidated event and reports the conflicts it
would have against the rest of the working set.
"""

import logging
import uuid
from datetime import datetime, time, timedelta
from typing import Any, Iterable, Optional, Sequence

from .conflicts import ConflictDetector, conflicts_for
from .domain import (
    CalendarEvent,
    EditResult,
    EventStatus,
    QuickEventData,
    Reminder,
    TimeBlock,
    TimeSlot,
)
from .timeutils import ensure_aware, get_zone, parse_hhmm

logger = logging.getLogger(__name__)

DEFAULT_START = time(9, 0)


def create_event(
    data: QuickEventData,
    event_id: Optional[str] = None,
    time_zone: str = "UTC",
) -> CalendarEvent:
    """Turn quick-entry data into a tentative event with an assigned id."""
    clock = parse_hhmm(data.start_time) if data.start_time else DEFAULT_START
    start = datetime.combine(data.date, clock, tzinfo=get_zone(time_zone))
    event = CalendarEvent(
        event_id=event_id or str(uuid.uuid4()),
        title=data.title,
        description=data.description,
        time_zone=time_zone,
        start_time=start,
        end_time=start + timedelta(minutes=data.duration),
        type=data.type,
        priority=data.priority,
        status=EventStatus.TENTATIVE,
        category=data.category,
        location=data.location,
        attendees=data.attendees,
        reminders=[Reminder(minutes_before=m) for m in data.reminders],
    )
    logger.info(
        "Created event",
        extra={"event_id": event.event_id, "start": start.isoformat()},
    )
    return event


def _with_conflicts(
    event: CalendarEvent,
    working_set: Iterable[CalendarEvent],
    time_blocks: Iterable[TimeBlock],
    high_energy_windows: Optional[Sequence[TimeSlot]],
) -> EditResult:
    others = [e for e in working_set if e.event_id != event.event_id]
    detector = ConflictDetector(high_energy_windows, event.time_zone)
    found = conflicts_for(
        detector.detect(others + [event], time_blocks), event.event_id
    )
    return EditResult(
        event=event.model_copy(update={"conflicts": found}), conflicts=found
    )


def update_event(
    event: CalendarEvent,
    working_set: Iterable[CalendarEvent] = (),
    time_blocks: Iterable[TimeBlock] = (),
    high_energy_windows: Optional[Sequence[TimeSlot]] = None,
    **changes: Any,
) -> EditResult:
    """
    Apply a partial update and revalidate the whole event.

    Invalid results raise the same errors as constructing the event would.
    The event's previous conflicts are discarded and recomputed.
    """
    if "event_id" in changes and changes["event_id"] != event.event_id:
        raise ValueError("event_id cannot be changed by an update")
    data = event.model_dump()
    data.update(changes)
    data["conflicts"] = []
    updated = CalendarEvent.model_validate(data)
    logger.debug(
        "Updated event",
        extra={"event_id": event.event_id, "fields": sorted(changes)},
    )
    return _with_conflicts(updated, working_set, time_blocks, high_energy_windows)


def move_event(
    event: CalendarEvent,
    new_start: datetime,
    working_set: Iterable[CalendarEvent] = (),
    time_blocks: Iterable[TimeBlock] = (),
    high_energy_windows: Optional[Sequence[TimeSlot]] = None,
) -> EditResult:
    """Move an event to ``new_start``, keeping its duration."""
    new_start = ensure_aware(new_start)
    duration = event.end_time - event.start_time
    return update_event(
        event,
        working_set,
        time_blocks,
        high_energy_windows,
        start_time=new_start,
        end_time=new_start + duration,
    )


def resize_event(
    event: CalendarEvent,
    new_start: datetime,
    new_end: datetime,
    working_set: Iterable[CalendarEvent] = (),
    time_blocks: Iterable[TimeBlock] = (),
    high_energy_windows: Optional[Sequence[TimeSlot]] = None,
) -> EditResult:
    """Give an event new bounds. ``new_end`` must be after ``new_start``."""
    return update_event(
        event,
        working_set,
        time_blocks,
        high_energy_windows,
        start_time=new_start,
        end_time=new_end,
    )
