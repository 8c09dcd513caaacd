"""
Mock snapshot repository with a realistic working day for demonstration.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from planner.domain import (
    CalendarEvent,
    EventPriority,
    EventStatus,
    EventType,
    FlexibilityLevel,
    FocusType,
    RecurrenceFrequency,
    RecurrenceRule,
    Reminder,
    TimeBlock,
    TimeBlockType,
)
from planner.repositories import CalendarSnapshotRepository
from planner.timeutils import overlaps

logger = logging.getLogger(__name__)


class MockSnapshotRepository(CalendarSnapshotRepository):
    """
    Mock snapshot repository that provides a busy sample day, with a few
    deliberate conflicts, for demonstration purposes.
    """

    def __init__(self, day: Optional[date] = None):
        self.day = day or datetime.now(timezone.utc).date()
        self._events = self._create_sample_events()
        self._time_blocks = self._create_sample_time_blocks()

    def _at(self, hour: int, minute: int = 0) -> datetime:
        return datetime.combine(self.day, time(hour, minute), tzinfo=timezone.utc)

    def _create_sample_events(self) -> List[CalendarEvent]:
        """Create a realistic set of sample calendar events."""
        return [
            # Weekday standup, recurring for a month
            CalendarEvent(
                event_id="standup-001",
                title="Daily Standup",
                description="Team coordination meeting",
                start_time=self._at(9),
                end_time=self._at(9, 15),
                attendees=["alice@company.com", "bob@company.com"],
                is_recurring=True,
                recurrence_rule=RecurrenceRule(
                    frequency=RecurrenceFrequency.WEEKLY,
                    days_of_week=[1, 2, 3, 4, 5],
                    end_date=self.day + timedelta(days=30),
                ),
                reminders=[Reminder(minutes_before=5)],
            ),
            # 1:1 and design review share an attendee and overlap
            CalendarEvent(
                event_id="one-on-one-001",
                title="1:1 with Manager",
                description="Weekly check-in",
                start_time=self._at(10),
                end_time=self._at(10, 30),
                priority=EventPriority.HIGH,
                attendees=["manager@company.com", "alice@company.com"],
            ),
            CalendarEvent(
                event_id="design-review-001",
                title="Design Review",
                start_time=self._at(10, 15),
                end_time=self._at(11),
                attendees=["Alice@Company.com", "carol@company.com"],
                location="Room 4",
            ),
            # Low-priority task squeezed into the focus block
            CalendarEvent(
                event_id="inbox-001",
                title="Inbox Zero",
                start_time=self._at(15, 30),
                end_time=self._at(16),
                type=EventType.TASK,
                priority=EventPriority.LOW,
                status=EventStatus.TENTATIVE,
            ),
            CalendarEvent(
                event_id="vendor-call-001",
                title="Vendor Call",
                start_time=self._at(16, 30),
                end_time=self._at(17),
                status=EventStatus.CANCELLED,
            ),
        ]

    def _create_sample_time_blocks(self) -> List[TimeBlock]:
        return [
            TimeBlock(
                time_block_id="lunch-001",
                title="Lunch",
                start_time=self._at(12),
                end_time=self._at(13),
                type=TimeBlockType.MEAL,
                is_locked=True,
            ),
            TimeBlock(
                time_block_id="focus-001",
                title="Deep Work: Quarterly Plan",
                start_time=self._at(14),
                end_time=self._at(16),
                type=TimeBlockType.FOCUS,
                is_locked=True,
                priority=8,
                buffer_time=15,
                focus_type=FocusType.DEEP,
            ),
            TimeBlock(
                time_block_id="admin-001",
                title="Admin",
                start_time=self._at(16, 5),
                end_time=self._at(16, 30),
                type=TimeBlockType.FLEXIBLE,
                flexibility=FlexibilityLevel.VERY_FLEXIBLE,
                priority=2,
            ),
        ]

    def load_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        logger.debug(
            "Returning mock events",
            extra={"day": self.day.isoformat(), "start": start.isoformat()},
        )
        return [
            e
            for e in self._events
            if e.is_recurring or overlaps(e.start_time, e.end_time, start, end)
        ]

    def load_time_blocks(
        self, start: datetime, end: datetime
    ) -> List[TimeBlock]:
        return [
            b
            for b in self._time_blocks
            if overlaps(b.start_time, b.end_time, start, end)
        ]
