"""
Planner scheduling engine.

This package places calendar events and time blocks on a timeline, detects
conflicts, computes free time and suggests slots for new events. The engine
stages are pure functions over immutable pydantic models; repositories and
use cases connect them to storage and configuration.
"""

from .availability import (
    busy_intervals,
    find_free_slots,
    find_next_available_slot,
    is_slot_available,
)
from .conflicts import ConflictDetector, annotate_conflicts, conflicts_for
from .domain import (
    BreakTime,
    CalendarEvent,
    CalendarStats,
    ConflictInfo,
    ConflictSeverity,
    ConflictType,
    EditResult,
    EventPriority,
    EventStatus,
    EventType,
    FlexibilityLevel,
    FocusType,
    Insight,
    OptimizationGoal,
    PlannerSettings,
    QuickEventData,
    RecurrenceFrequency,
    RecurrenceRule,
    Reminder,
    SchedulingSuggestion,
    SmartSchedulingOptions,
    TimeBlock,
    TimeBlockType,
    TimeRange,
    TimeSlot,
    WorkingHours,
)
from .editing import create_event, move_event, resize_event, update_event
from .errors import (
    InsufficientData,
    InvalidInterval,
    MalformedRecurrenceRule,
    SchedulingError,
    UnboundedExpansionWindow,
)
from .recurrence import expand_event, expand_rule, materialize
from .repositories import (
    CalendarSnapshotRepository,
    PlannerConfigurationRepository,
)
from .scheduler import SmartScheduler
from .stats import compute_stats, productivity_insights
from .usecase import AnalyzeWindowUseCase, PlanningReport, SuggestScheduleUseCase

__all__ = [
    # Core models
    "CalendarEvent",
    "EventType",
    "EventPriority",
    "EventStatus",
    "Reminder",
    "RecurrenceRule",
    "RecurrenceFrequency",
    "TimeBlock",
    "TimeBlockType",
    "FlexibilityLevel",
    "FocusType",
    "TimeRange",
    # Constraints and preferences
    "WorkingHours",
    "BreakTime",
    "TimeSlot",
    "PlannerSettings",
    # Derived results
    "ConflictInfo",
    "ConflictType",
    "ConflictSeverity",
    "SchedulingSuggestion",
    "EditResult",
    "CalendarStats",
    "Insight",
    # Requests
    "QuickEventData",
    "SmartSchedulingOptions",
    "OptimizationGoal",
    # Errors
    "SchedulingError",
    "InvalidInterval",
    "MalformedRecurrenceRule",
    "UnboundedExpansionWindow",
    "InsufficientData",
    # Engine
    "expand_rule",
    "expand_event",
    "materialize",
    "ConflictDetector",
    "annotate_conflicts",
    "conflicts_for",
    "busy_intervals",
    "find_free_slots",
    "is_slot_available",
    "find_next_available_slot",
    "SmartScheduler",
    "create_event",
    "move_event",
    "resize_event",
    "update_event",
    "compute_stats",
    "productivity_insights",
    # Repository protocols
    "CalendarSnapshotRepository",
    "PlannerConfigurationRepository",
    # Use cases
    "AnalyzeWindowUseCase",
    "SuggestScheduleUseCase",
    "PlanningReport",
]
