"""
Tests for calendar statistics and productivity insights.
"""

from datetime import date, timedelta

import pytest

from planner.domain import (
    CalendarStats,
    ConflictInfo,
    ConflictSeverity,
    ConflictType,
    EventStatus,
    EventType,
    InsightSeverity,
    RecurrenceFrequency,
    RecurrenceRule,
)
from planner.errors import InvalidInterval
from planner.stats import compute_stats, productivity_insights
from planner.tests.factories import at, minimal_event, minimal_time_block, office_hours

DAY_START = at(0)
DAY_END = at(0) + timedelta(days=1)


def a_conflict() -> ConflictInfo:
    return ConflictInfo(
        conflict_id="overlap:a:b",
        type=ConflictType.OVERLAP,
        severity=ConflictSeverity.MEDIUM,
        description="'A' overlaps 'B'",
        event_ids=["a", "b"],
        start_time=at(10),
        end_time=at(11),
    )


class TestComputeStats:
    def test_mixed_day(self) -> None:
        events = [
            minimal_event(event_id="meeting", start_time=at(10), end_time=at(11)),
            minimal_event(
                event_id="writing",
                start_time=at(13),
                end_time=at(14),
                type=EventType.TASK,
                status=EventStatus.COMPLETED,
                category="focus",
            ),
            minimal_event(
                event_id="dropped",
                start_time=at(15),
                end_time=at(16),
                status=EventStatus.CANCELLED,
            ),
        ]
        blocks = [minimal_time_block(start_time=at(14), end_time=at(16))]

        stats = compute_stats(events, blocks, office_hours(), DAY_START, DAY_END)

        assert stats.total_events == 2
        assert stats.total_duration == 120
        assert stats.meeting_time == 60
        assert stats.focus_time == 180
        assert stats.busy_time == 120
        assert stats.free_time == 360
        assert stats.utilization_rate == 25.0
        assert stats.average_event_duration == 60
        assert stats.productivity_score == 6
        assert stats.events_by_type == {"meeting": 1, "task": 1}
        assert stats.events_by_priority == {"medium": 2}

    def test_empty_window(self) -> None:
        saturday = at(0, day=date(2024, 1, 6))

        stats = compute_stats(
            [], [], office_hours(), saturday, saturday + timedelta(days=1)
        )

        assert stats == CalendarStats()

    def test_durations_clipped_to_window(self) -> None:
        late = minimal_event(start_time=at(16), end_time=at(18))

        stats = compute_stats([late], [], office_hours(), DAY_START, at(17))

        assert stats.total_duration == 60
        assert stats.busy_time == 60

    def test_recurring_events_counted_per_occurrence(self) -> None:
        standup = minimal_event(
            event_id="standup",
            start_time=at(9),
            end_time=at(9, 15),
            recurrence_rule=RecurrenceRule(
                frequency=RecurrenceFrequency.DAILY, count=5
            ),
        )

        stats = compute_stats(
            [standup], [], office_hours(), DAY_START, DAY_START + timedelta(days=7)
        )

        assert stats.total_events == 5
        assert stats.total_duration == 75

    def test_locked_blocks_are_busy(self) -> None:
        lunch = minimal_time_block(
            start_time=at(12), end_time=at(13), is_locked=True
        )

        stats = compute_stats([], [lunch], office_hours(), DAY_START, DAY_END)

        assert stats.busy_time == 60
        assert stats.focus_time == 60

    def test_conflicts_counted(self) -> None:
        stats = compute_stats(
            [], [], office_hours(), DAY_START, DAY_END, conflicts=[a_conflict()]
        )

        assert stats.conflict_count == 1

    def test_invalid_window(self) -> None:
        with pytest.raises(InvalidInterval):
            compute_stats([], [], office_hours(), DAY_END, DAY_START)


class TestInsights:
    def test_overbooked_day(self) -> None:
        marathon = minimal_event(start_time=at(9), end_time=at(16, 30))

        stats = compute_stats(
            [marathon], [], office_hours(), DAY_START, DAY_END, [a_conflict()]
        )
        insights = productivity_insights(stats)

        assert [(i.type, i.severity) for i in insights] == [
            ("overbooked", InsightSeverity.WARNING),
            ("focus_deficit", InsightSeverity.INFO),
            ("conflicts", InsightSeverity.WARNING),
        ]

    def test_quiet_day_has_no_insights(self) -> None:
        assert productivity_insights(CalendarStats()) == []

    def test_enough_focus_time(self) -> None:
        stats = CalendarStats(meeting_time=120, focus_time=60)

        assert productivity_insights(stats) == []
