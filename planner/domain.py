"""
Scheduling domain models for the planner engine.

These models are plain, serializable pydantic v2 structures. They are frozen:
the engine never mutates its inputs, and edits produce new instances.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .errors import InsufficientData, InvalidInterval, MalformedRecurrenceRule
from .timeutils import (
    ensure_aware,
    get_zone,
    local_window,
    parse_hhmm,
)

logger = logging.getLogger(__name__)


class PlannerModel(BaseModel):
    """Base for all engine models: immutable and plain-data."""

    model_config = ConfigDict(frozen=True)


# --- Enums ---


class EventType(str, Enum):
    MEETING = "meeting"
    APPOINTMENT = "appointment"
    DEADLINE = "deadline"
    REMINDER = "reminder"
    TASK = "task"
    BREAK = "break"
    PERSONAL = "personal"
    WORK = "work"
    TRAVEL = "travel"


class EventPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class EventStatus(str, Enum):
    TENTATIVE = "tentative"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class TimeBlockType(str, Enum):
    FOCUS = "focus"
    MEETING = "meeting"
    BREAK = "break"
    ROUTINE = "routine"
    BUFFER = "buffer"
    FLEXIBLE = "flexible"
    COMMUTE = "commute"
    MEAL = "meal"


class FlexibilityLevel(str, Enum):
    """How displaceable a time block is when a slot is needed."""

    FIXED = "fixed"
    PREFERRED = "preferred"
    FLEXIBLE = "flexible"
    VERY_FLEXIBLE = "very_flexible"


class FocusType(str, Enum):
    DEEP = "deep"
    SHALLOW = "shallow"
    CREATIVE = "creative"
    ADMINISTRATIVE = "administrative"


class EnergyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    PEAK = "peak"


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ConflictType(str, Enum):
    OVERLAP = "overlap"
    DOUBLE_BOOKING = "double_booking"
    TRAVEL_TIME = "travel_time"
    BREAK_VIOLATION = "break_violation"
    PRIORITY_CONFLICT = "priority_conflict"
    ENERGY_MISMATCH = "energy_mismatch"


class ConflictSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class OptimizationGoal(str, Enum):
    TIME = "time"
    ENERGY = "energy"
    PRODUCTIVITY = "productivity"
    BALANCE = "balance"


class InsightSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"


# --- Wall-clock windows ---


def _validate_days(v: List[int]) -> List[int]:
    for day in v:
        if not 0 <= day <= 6:
            raise ValueError(f"Weekday index must be 0-6 (0=Sunday), got {day}")
    return sorted(set(v))


class ClockWindow(PlannerModel):
    """A daily wall-clock window given as HH:mm strings."""

    start: str = Field(..., description="Window start, HH:mm")
    end: str = Field(..., description="Window end, HH:mm")

    @field_validator("start", "end")
    @classmethod
    def check_hhmm(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @model_validator(mode="after")
    def start_before_end(self) -> "ClockWindow":
        if parse_hhmm(self.end) <= parse_hhmm(self.start):
            raise InvalidInterval(self.start, self.end, "clock window")
        return self

    @property
    def start_clock(self) -> time:
        return parse_hhmm(self.start)

    @property
    def end_clock(self) -> time:
        return parse_hhmm(self.end)

    def on_day(self, day: date, time_zone: str) -> Tuple[datetime, datetime]:
        """Concrete instants of this window on a local day."""
        return local_window(
            day, self.start_clock, self.end_clock, get_zone(time_zone)
        )


class BreakTime(ClockWindow):
    """A recurring break subtracted from working hours."""

    name: str = "Break"
    days: List[int] = Field(
        default_factory=list,
        description="Weekdays this break applies to; empty means every day",
    )

    @field_validator("days")
    @classmethod
    def check_days(cls, v: List[int]) -> List[int]:
        return _validate_days(v)

    def applies_on(self, weekday: int) -> bool:
        return not self.days or weekday in self.days


class TimeSlot(ClockWindow):
    """A soft scheduling preference; never a hard constraint."""

    days: List[int] = Field(
        default_factory=list,
        description="Weekdays this preference applies to; empty means every day",
    )
    weight: int = Field(5, ge=1, le=10, description="Higher = more preferred")

    @field_validator("days")
    @classmethod
    def check_days(cls, v: List[int]) -> List[int]:
        return _validate_days(v)

    def applies_on(self, weekday: int) -> bool:
        return not self.days or weekday in self.days


class WorkingHours(ClockWindow):
    """The daily window during which scheduling is permitted by default."""

    start: str = "09:00"
    end: str = "17:00"
    enabled: bool = True
    working_days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    break_times: List[BreakTime] = Field(default_factory=list)
    time_zone: str = Field(
        "UTC", description="IANA zone the wall-clock times are read in"
    )

    @field_validator("working_days")
    @classmethod
    def check_days(cls, v: List[int]) -> List[int]:
        return _validate_days(v)

    @field_validator("time_zone")
    @classmethod
    def known_zone(cls, v: str) -> str:
        get_zone(v)
        return v


# --- Core entities ---


class TimeRange(PlannerModel):
    """A concrete half-open interval, e.g. a free slot."""

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode="after")
    def start_before_end(self) -> "TimeRange":
        if self.end <= self.start:
            raise InvalidInterval(self.start, self.end)
        return self

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


class Reminder(PlannerModel):
    minutes_before: int = Field(15, ge=0)
    enabled: bool = True


class RecurrenceRule(PlannerModel):
    """
    Recurrence of an event, anchored at the event's own start and end.

    When both ``end_date`` and ``count`` are given, ``end_date`` wins and
    ``count`` is ignored. ``end_date`` is an inclusive local date.
    """

    frequency: RecurrenceFrequency
    interval: int = 1
    end_date: Optional[date] = None
    count: Optional[int] = None
    days_of_week: List[int] = Field(default_factory=list)
    days_of_month: List[int] = Field(default_factory=list)
    months_of_year: List[int] = Field(default_factory=list)
    exceptions: List[date] = Field(default_factory=list)

    @field_validator("end_date", mode="before")
    @classmethod
    def datetime_to_date(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return v.date()
        return v

    @field_validator("exceptions", mode="before")
    @classmethod
    def exception_datetimes_to_dates(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [d.date() if isinstance(d, datetime) else d for d in v]
        return v

    @model_validator(mode="after")
    def check_rule(self) -> "RecurrenceRule":
        if self.interval < 1:
            raise MalformedRecurrenceRule(
                f"interval must be at least 1, got {self.interval}"
            )
        if self.count is not None and self.count < 1:
            raise MalformedRecurrenceRule(
                f"count must be at least 1, got {self.count}"
            )
        for name, values, low, high in (
            ("days_of_week", self.days_of_week, 0, 6),
            ("days_of_month", self.days_of_month, 1, 31),
            ("months_of_year", self.months_of_year, 1, 12),
        ):
            bad = [v for v in values if not low <= v <= high]
            if bad:
                raise MalformedRecurrenceRule(
                    f"{name} values must be within {low}-{high}, got {bad}"
                )
        return self

    @property
    def is_self_terminating(self) -> bool:
        return self.end_date is not None or self.count is not None


class ConflictInfo(PlannerModel):
    """A detected problem in the working set. Always derived."""

    conflict_id: str
    type: ConflictType
    severity: ConflictSeverity
    description: str
    suggested_resolution: Optional[str] = None
    event_ids: List[str] = Field(default_factory=list)
    time_block_ids: List[str] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime

    @property
    def item_ids(self) -> List[str]:
        return self.event_ids + self.time_block_ids

    def involves(self, item_id: str) -> bool:
        return item_id in self.event_ids or item_id in self.time_block_ids


class CalendarEvent(PlannerModel):
    """
    A calendar event on the timeline.

    All-day events may be given dates instead of datetimes; they then span
    local midnight of the start date to local midnight after the end date.
    """

    event_id: str = Field(
        "", description="Unique identifier; empty until assigned on creation"
    )
    title: str
    description: Optional[str] = None
    is_all_day: bool = False
    time_zone: str = Field("UTC", description="IANA zone of the event")

    start_time: datetime
    end_time: datetime

    type: EventType = EventType.MEETING
    priority: EventPriority = EventPriority.MEDIUM
    status: EventStatus = EventStatus.CONFIRMED
    category: Optional[str] = None
    location: Optional[str] = None
    attendees: List[str] = Field(default_factory=list)

    is_recurring: bool = False
    recurrence_rule: Optional[RecurrenceRule] = None
    recurrence_id: Optional[str] = Field(
        None, description="Master event id for materialized occurrences"
    )

    reminders: List[Reminder] = Field(default_factory=list)
    conflicts: List[ConflictInfo] = Field(
        default_factory=list,
        description="Recomputed by the conflict detector; not source of truth",
    )
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("time_zone")
    @classmethod
    def known_zone(cls, v: str) -> str:
        get_zone(v)
        return v

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def dates_to_midnight(cls, v: Any, info: ValidationInfo) -> Any:
        if isinstance(v, date) and not isinstance(v, datetime):
            tz = get_zone(info.data.get("time_zone", "UTC"))
            if info.field_name == "end_time" and info.data.get("is_all_day"):
                v = v + timedelta(days=1)
            return datetime.combine(v, time(0, 0), tzinfo=tz)
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def aware_and_all_day(cls, v: datetime, info: ValidationInfo) -> datetime:
        v = ensure_aware(v)
        if not info.data.get("is_all_day"):
            return v
        tz = get_zone(info.data.get("time_zone", "UTC"))
        local = v.astimezone(tz)
        day = local.date()
        if info.field_name == "end_time" and local.time() != time(0, 0):
            day += timedelta(days=1)
        return datetime.combine(day, time(0, 0), tzinfo=tz)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode="after")
    def check_event(self) -> "CalendarEvent":
        if self.end_time <= self.start_time:
            raise InvalidInterval(self.start_time, self.end_time, "event")
        if self.is_recurring and self.recurrence_rule is None:
            raise InsufficientData(
                f"Recurring event {self.event_id or self.title!r} "
                f"has no recurrence rule"
            )
        return self

    @property
    def duration_minutes(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 60

    def reminder_times(self) -> List[datetime]:
        """Fire instants of the enabled reminders, in list order."""
        return [
            self.start_time - timedelta(minutes=r.minutes_before)
            for r in self.reminders
            if r.enabled
        ]


class TimeBlock(PlannerModel):
    """Protected or flexible time, distinct from a calendar event."""

    time_block_id: str = ""
    title: str = ""
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    type: TimeBlockType = TimeBlockType.FOCUS
    category: Optional[str] = None

    is_locked: bool = Field(
        False, description="Locked blocks are never rescheduled automatically"
    )
    flexibility: FlexibilityLevel = FlexibilityLevel.FLEXIBLE
    priority: int = Field(5, ge=1, le=10, description="Higher = more important")
    buffer_time: int = Field(
        0, ge=0, description="Minutes to keep free before and after"
    )

    focus_type: Optional[FocusType] = None
    energy_level: Optional[EnergyLevel] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("start_time", "end_time")
    @classmethod
    def aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode="after")
    def start_before_end(self) -> "TimeBlock":
        if self.end_time <= self.start_time:
            raise InvalidInterval(self.start_time, self.end_time, "time block")
        return self

    @property
    def is_fixed(self) -> bool:
        return self.is_locked or self.flexibility == FlexibilityLevel.FIXED

    @property
    def duration_minutes(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 60


# --- Scheduling requests and results ---


class QuickEventData(PlannerModel):
    """Caller-supplied data for a new event, before it has an id."""

    title: str
    description: Optional[str] = None
    date: date
    start_time: Optional[str] = Field(None, description="HH:mm, optional")
    duration: int = Field(60, ge=1, description="Minutes")
    type: EventType = EventType.MEETING
    priority: EventPriority = EventPriority.MEDIUM
    category: Optional[str] = None
    attendees: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    reminders: List[int] = Field(
        default_factory=lambda: [15], description="Minutes before"
    )

    @field_validator("start_time")
    @classmethod
    def check_hhmm(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_hhmm(v)
        return v


class SmartSchedulingOptions(PlannerModel):
    preferred_times: List[TimeSlot] = Field(default_factory=list)
    avoid_times: List[TimeSlot] = Field(default_factory=list)
    buffer_time: int = Field(0, ge=0, description="Minutes of padding")
    max_duration: Optional[int] = Field(None, ge=1, description="Minutes")
    allow_conflicts: bool = False
    consider_energy_levels: bool = True
    working_hours_only: bool = True
    optimize_for: OptimizationGoal = OptimizationGoal.BALANCE


class SchedulingSuggestion(PlannerModel):
    suggestion_id: str
    start_time: datetime
    end_time: datetime
    confidence: int = Field(..., ge=0, le=100)
    reasoning: str
    conflicts: List[ConflictInfo] = Field(default_factory=list)
    productivity_score: int = Field(..., ge=1, le=10)
    energy_match: int = Field(..., ge=1, le=10)

    @model_validator(mode="after")
    def start_before_end(self) -> "SchedulingSuggestion":
        if self.end_time <= self.start_time:
            raise InvalidInterval(self.start_time, self.end_time, "suggestion")
        return self


class EditResult(PlannerModel):
    """An edited event together with the conflicts it has in its working set."""

    event: CalendarEvent
    conflicts: List[ConflictInfo] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class CalendarStats(PlannerModel):
    total_events: int = 0
    total_duration: float = Field(0, description="Minutes")
    busy_time: float = Field(0, description="Minutes inside working hours")
    free_time: float = Field(0, description="Minutes inside working hours")
    meeting_time: float = 0
    focus_time: float = 0
    conflict_count: int = 0
    utilization_rate: float = Field(0, ge=0, le=100)
    productivity_score: int = Field(1, ge=1, le=10)
    average_event_duration: float = 0
    events_by_type: Dict[str, int] = Field(default_factory=dict)
    events_by_priority: Dict[str, int] = Field(default_factory=dict)


class Insight(PlannerModel):
    type: str
    message: str
    severity: InsightSeverity = InsightSeverity.INFO


class PlannerSettings(PlannerModel):
    """User-level scheduling configuration."""

    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    high_energy_windows: List[TimeSlot] = Field(default_factory=list)
    max_suggestions: int = Field(5, ge=1)
    search_horizon_days: int = Field(7, ge=1)
    slot_step_minutes: int = Field(30, ge=1)
    max_window_years: int = Field(5, ge=1)

    @property
    def max_window(self) -> timedelta:
        return timedelta(days=366 * self.max_window_years)
