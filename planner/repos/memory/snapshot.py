"""
In-memory implementation of CalendarSnapshotRepository.
"""

import logging
from datetime import datetime
from typing import Iterable, List

from planner.domain import CalendarEvent, TimeBlock
from planner.repositories import CalendarSnapshotRepository
from planner.timeutils import overlaps

logger = logging.getLogger(__name__)


class InMemorySnapshotRepository(CalendarSnapshotRepository):
    """
    Holds a fixed snapshot handed over by the caller, e.g. a web request
    that already fetched the user's calendar.
    """

    def __init__(
        self,
        events: Iterable[CalendarEvent] = (),
        time_blocks: Iterable[TimeBlock] = (),
    ):
        self._events = list(events)
        self._time_blocks = list(time_blocks)

    def load_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        events = [
            e
            for e in self._events
            if e.is_recurring
            or overlaps(e.start_time, e.end_time, start, end)
        ]
        logger.debug(
            "Loaded events from memory",
            extra={"event_count": len(events), "start": start.isoformat()},
        )
        return events

    def load_time_blocks(
        self, start: datetime, end: datetime
    ) -> List[TimeBlock]:
        return [
            b
            for b in self._time_blocks
            if overlaps(b.start_time, b.end_time, start, end)
        ]
