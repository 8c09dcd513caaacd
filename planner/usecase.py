"""
Defines the use cases for planning operations.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from .availability import find_free_slots
from .conflicts import ConflictDetector, annotate_conflicts
from .domain import (
    CalendarEvent,
    CalendarStats,
    ConflictInfo,
    Insight,
    QuickEventData,
    SchedulingSuggestion,
    SmartSchedulingOptions,
    TimeBlock,
    TimeRange,
)
from .recurrence import materialize
from .repositories import (
    CalendarSnapshotRepository,
    PlannerConfigurationRepository,
)
from .scheduler import SmartScheduler
from .stats import compute_stats, productivity_insights
from .timeutils import ensure_aware, ensure_window, get_zone, start_of_day

logger = logging.getLogger(__name__)


class PlanningReport(BaseModel):
    """Everything the engine derives for one window of the calendar."""

    window_start: datetime
    window_end: datetime
    events: List[CalendarEvent] = Field(
        default_factory=list,
        description="Concrete events in the window with conflicts attached",
    )
    time_blocks: List[TimeBlock] = Field(default_factory=list)
    conflicts: List[ConflictInfo] = Field(default_factory=list)
    free_slots: List[TimeRange] = Field(default_factory=list)
    stats: CalendarStats = Field(default_factory=CalendarStats)
    insights: List[Insight] = Field(default_factory=list)


class AnalyzeWindowUseCase:
    """
    Runs the analysis pipeline over a window: expand recurrences, detect
    conflicts, compute free time and summarize.

    Depends only on repository abstractions; the engine stages it calls are
    pure functions of the loaded snapshot.
    """

    def __init__(
        self,
        snapshot_repo: CalendarSnapshotRepository,
        config_repo: PlannerConfigurationRepository,
    ):
        self.snapshot_repo = snapshot_repo
        self.config_repo = config_repo

    def execute(
        self,
        window_start: datetime,
        window_end: datetime,
        min_slot_minutes: int = 0,
    ) -> PlanningReport:
        """
        Build the planning report for ``[window_start, window_end)``.

        Args:
            window_start: Start of the window, inclusive
            window_end: End of the window, exclusive
            min_slot_minutes: Free gaps shorter than this are left out

        Returns:
            The PlanningReport for the window
        """
        window_start = ensure_aware(window_start)
        window_end = ensure_aware(window_end)
        settings = self.config_repo.get_settings()
        ensure_window(window_start, window_end, settings.max_window)

        logger.info(
            "Analyzing planning window",
            extra={
                "window_start": window_start.isoformat(),
                "window_end": window_end.isoformat(),
                "time_zone": settings.working_hours.time_zone,
            },
        )

        # 1. Load the snapshot and expand recurring events
        events = materialize(
            self.snapshot_repo.load_events(window_start, window_end),
            window_start,
            window_end,
            settings.max_window,
        )
        time_blocks = self.snapshot_repo.load_time_blocks(
            window_start, window_end
        )

        # 2. Detect conflicts on the materialized set
        detector = ConflictDetector(
            settings.high_energy_windows, settings.working_hours.time_zone
        )
        conflicts = detector.detect(events, time_blocks)

        # 3. Free time within working hours
        free_slots = find_free_slots(
            events,
            time_blocks,
            settings.working_hours,
            window_start,
            window_end,
            min_slot_minutes,
            settings.max_window,
        )

        # 4. Statistics and insights
        stats = compute_stats(
            events,
            time_blocks,
            settings.working_hours,
            window_start,
            window_end,
            conflicts,
            settings.max_window,
        )
        insights = productivity_insights(stats)

        logger.info(
            "Planning window analyzed",
            extra={
                "event_count": len(events),
                "time_block_count": len(time_blocks),
                "conflict_count": len(conflicts),
                "free_slot_count": len(free_slots),
            },
        )
        return PlanningReport(
            window_start=window_start,
            window_end=window_end,
            events=annotate_conflicts(events, conflicts),
            time_blocks=time_blocks,
            conflicts=conflicts,
            free_slots=free_slots,
            stats=stats,
            insights=insights,
        )


class SuggestScheduleUseCase:
    """
    Suggests slots for a new event against the user's current calendar.
    """

    def __init__(
        self,
        snapshot_repo: CalendarSnapshotRepository,
        config_repo: PlannerConfigurationRepository,
    ):
        self.snapshot_repo = snapshot_repo
        self.config_repo = config_repo

    def execute(
        self,
        event_data: QuickEventData,
        options: Optional[SmartSchedulingOptions] = None,
        now: Optional[datetime] = None,
    ) -> List[SchedulingSuggestion]:
        settings = self.config_repo.get_settings()
        now = ensure_aware(now or datetime.now(timezone.utc))
        day_start = start_of_day(
            event_data.date, get_zone(settings.working_hours.time_zone)
        )
        padding = timedelta(days=1)
        load_start = min(now, day_start) - padding
        load_end = max(now, day_start) + timedelta(
            days=settings.search_horizon_days
        ) + padding

        events = self.snapshot_repo.load_events(load_start, load_end)
        time_blocks = self.snapshot_repo.load_time_blocks(load_start, load_end)
        logger.info(
            "Suggesting schedule",
            extra={
                "title": event_data.title,
                "date": event_data.date.isoformat(),
                "event_count": len(events),
                "time_block_count": len(time_blocks),
            },
        )

        scheduler = SmartScheduler.from_settings(settings)
        return scheduler.suggest(event_data, options, events, time_blocks, now)
