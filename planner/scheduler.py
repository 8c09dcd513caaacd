"""
Smart scheduling: rank candidate slots for a new event.

Candidates are stepped through the free slots of the search horizon,
filtered by the caller's avoid windows and buffer padding, then scored
according to ``SmartSchedulingOptions.optimize_for``:

- ``time``: earliest first (proximity to the search start), preferences
  as a minor term.
- ``energy``: preferred-time weights and energy alignment, equally.
- ``productivity``: energy alignment first, then preferences and how
  snugly the slot fits against existing commitments.
- ``balance``: an even mix of all of the above.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from .availability import busy_intervals, find_free_slots
from .conflicts import ConflictDetector, conflicts_for
from .domain import (
    CalendarEvent,
    ConflictInfo,
    ConflictType,
    EventStatus,
    OptimizationGoal,
    PlannerSettings,
    QuickEventData,
    SchedulingSuggestion,
    SmartSchedulingOptions,
    TimeBlock,
    TimeRange,
    TimeSlot,
    WorkingHours,
)
from .recurrence import materialize
from .timeutils import (
    DEFAULT_MAX_WINDOW,
    contains,
    ensure_aware,
    generate_slots,
    get_zone,
    local_days,
    overlaps,
    start_of_day,
    weekday_index,
)

logger = logging.getLogger(__name__)

# Typical energy by local hour, 1-10, used when no windows are declared.
DEFAULT_ENERGY_CURVE: Dict[int, int] = {
    6: 4, 7: 5, 8: 7, 9: 9, 10: 10, 11: 9, 12: 6, 13: 5,
    14: 6, 15: 7, 16: 7, 17: 6, 18: 5, 19: 4, 20: 3,
}
_NIGHT_ENERGY = 2

# Conflicts a suggestion may not introduce unless conflicts are allowed.
BLOCKING_CONFLICTS = {
    ConflictType.OVERLAP,
    ConflictType.DOUBLE_BOOKING,
    ConflictType.PRIORITY_CONFLICT,
}

_CONTEXT_PADDING = timedelta(days=1)


def _clamp(value: float, low: int, high: int) -> int:
    return max(low, min(high, int(round(value))))


class SmartScheduler:
    """Suggests ranked slots for a new event in an existing calendar."""

    def __init__(
        self,
        working_hours: Optional[WorkingHours] = None,
        high_energy_windows: Optional[Sequence[TimeSlot]] = None,
        max_suggestions: int = 5,
        horizon_days: int = 7,
        slot_step_minutes: int = 30,
        max_span: timedelta = DEFAULT_MAX_WINDOW,
    ):
        if max_suggestions < 1:
            raise ValueError(
                f"max_suggestions must be at least 1, got {max_suggestions}"
            )
        if slot_step_minutes < 1:
            raise ValueError(
                f"slot_step_minutes must be at least 1, got {slot_step_minutes}"
            )
        self.working_hours = working_hours or WorkingHours()
        self.high_energy_windows = list(high_energy_windows or [])
        self.max_suggestions = max_suggestions
        self.horizon_days = horizon_days
        self.slot_step_minutes = slot_step_minutes
        self.max_span = max_span
        self._tz = get_zone(self.working_hours.time_zone)

    @classmethod
    def from_settings(cls, settings: PlannerSettings) -> "SmartScheduler":
        return cls(
            working_hours=settings.working_hours,
            high_energy_windows=settings.high_energy_windows,
            max_suggestions=settings.max_suggestions,
            horizon_days=settings.search_horizon_days,
            slot_step_minutes=settings.slot_step_minutes,
            max_span=settings.max_window,
        )

    def suggest(
        self,
        event_data: QuickEventData,
        options: Optional[SmartSchedulingOptions] = None,
        events: Iterable[CalendarEvent] = (),
        time_blocks: Iterable[TimeBlock] = (),
        now: Optional[datetime] = None,
    ) -> List[SchedulingSuggestion]:
        """
        Ranked suggestions for ``event_data``, best first.

        Returns an empty list when nothing fits within the horizon.
        """
        options = options or SmartSchedulingOptions()
        now = ensure_aware(now or datetime.now(timezone.utc))

        duration = event_data.duration
        if options.max_duration is not None:
            duration = min(duration, options.max_duration)
        length = timedelta(minutes=duration)
        buffer = timedelta(minutes=options.buffer_time)

        search_start = max(now, start_of_day(event_data.date, self._tz))
        search_end = search_start + timedelta(days=self.horizon_days)
        working_hours = self.working_hours
        if not options.working_hours_only:
            working_hours = working_hours.model_copy(update={"enabled": False})

        blocks = list(time_blocks)
        concrete = materialize(
            events,
            search_start - buffer - _CONTEXT_PADDING,
            search_end + buffer + _CONTEXT_PADDING,
            self.max_span,
        )
        free_slots = find_free_slots(
            concrete,
            blocks,
            working_hours,
            search_start,
            search_end,
            duration,
            self.max_span,
        )
        busy = busy_intervals(concrete, blocks)
        detector = ConflictDetector(
            self.high_energy_windows, self.working_hours.time_zone
        )

        suggestions: List[SchedulingSuggestion] = []
        considered = 0
        for free in free_slots:
            first = self._align(free.start)
            if first >= free.end:
                continue
            for start in generate_slots(first, free.end, self.slot_step_minutes):
                end = start + length
                if end > free.end:
                    break
                considered += 1
                if self._in_avoid_window(start, end, options.avoid_times):
                    continue
                if buffer and any(
                    overlaps(start - buffer, end + buffer, b_start, b_end)
                    for b_start, b_end in busy
                ):
                    continue
                suggestion = self._evaluate(
                    event_data,
                    options,
                    start,
                    end,
                    free,
                    search_start,
                    concrete,
                    blocks,
                    detector,
                )
                if suggestion is not None:
                    suggestions.append(suggestion)

        suggestions.sort(key=lambda s: (-s.confidence, s.start_time))
        result = suggestions[: self.max_suggestions]
        logger.info(
            "Generated scheduling suggestions",
            extra={
                "title": event_data.title,
                "duration_minutes": duration,
                "free_slot_count": len(free_slots),
                "candidates_considered": considered,
                "suggestion_count": len(result),
                "optimize_for": options.optimize_for.value,
            },
        )
        return result

    def _align(self, value: datetime) -> datetime:
        """Round up to the step grid of the local day."""
        local = value.astimezone(self._tz)
        midnight = start_of_day(local.date(), self._tz)
        step = timedelta(minutes=self.slot_step_minutes)
        steps = -(-(local - midnight) // step)
        return max(value, midnight + steps * step)

    def _in_avoid_window(
        self, start: datetime, end: datetime, avoid_times: Sequence[TimeSlot]
    ) -> bool:
        tz_name = self.working_hours.time_zone
        for day in local_days(start, end, self._tz):
            weekday = weekday_index(day)
            for window in avoid_times:
                if not window.applies_on(weekday):
                    continue
                w_start, w_end = window.on_day(day, tz_name)
                if overlaps(start, end, w_start, w_end):
                    return True
        return False

    def _preference(
        self, start: datetime, end: datetime, preferred: Sequence[TimeSlot]
    ) -> int:
        """Summed weight of the preferred windows overlapping the slot."""
        tz_name = self.working_hours.time_zone
        total = 0
        for day in local_days(start, end, self._tz):
            weekday = weekday_index(day)
            for window in preferred:
                if window.applies_on(weekday) and overlaps(
                    start, end, *window.on_day(day, tz_name)
                ):
                    total += window.weight
        return min(total, 10)

    def _energy(self, start: datetime, end: datetime) -> int:
        if self.high_energy_windows:
            day = start.astimezone(self._tz).date()
            weekday = weekday_index(day)
            best = 3
            for window in self.high_energy_windows:
                if not window.applies_on(weekday):
                    continue
                interval = window.on_day(day, self.working_hours.time_zone)
                if contains(interval, (start, end)):
                    return 10
                if overlaps(start, end, *interval):
                    best = 7
            return best
        hour = start.astimezone(self._tz).hour
        return DEFAULT_ENERGY_CURVE.get(hour, _NIGHT_ENERGY)

    def _evaluate(
        self,
        event_data: QuickEventData,
        options: SmartSchedulingOptions,
        start: datetime,
        end: datetime,
        free: TimeRange,
        search_start: datetime,
        events: List[CalendarEvent],
        time_blocks: List[TimeBlock],
        detector: ConflictDetector,
    ) -> Optional[SchedulingSuggestion]:
        suggestion_id = f"suggestion@{start.astimezone(timezone.utc):%Y%m%dT%H%M%SZ}"
        conflicts = self._introduced_conflicts(
            suggestion_id, event_data, start, end, events, time_blocks, detector
        )
        if not options.allow_conflicts and any(
            c.type in BLOCKING_CONFLICTS for c in conflicts
        ):
            logger.debug(
                "Dropping candidate that introduces conflicts",
                extra={"start": start.isoformat(), "conflicts": len(conflicts)},
            )
            return None

        horizon = timedelta(days=self.horizon_days)
        proximity = 1 - (start - search_start) / horizon
        preference = self._preference(start, end, options.preferred_times)
        energy = self._energy(start, end) if options.consider_energy_levels else 5
        snug = start == free.start or end == free.end

        pref_n = preference / 10
        energy_n = energy / 10
        fit_n = 1.0 if snug else 0.5
        goal = options.optimize_for
        if goal == OptimizationGoal.TIME:
            score = 80 * proximity + 20 * pref_n
        elif goal == OptimizationGoal.ENERGY:
            score = 50 * pref_n + 50 * energy_n
        elif goal == OptimizationGoal.PRODUCTIVITY:
            score = 40 * energy_n + 30 * pref_n + 30 * fit_n
        else:
            score = 30 * proximity + 30 * pref_n + 30 * energy_n + 10 * fit_n

        productivity = _clamp(1 + 9 * (0.6 * energy_n + 0.4 * fit_n), 1, 10)
        return SchedulingSuggestion(
            suggestion_id=suggestion_id,
            start_time=start,
            end_time=end,
            confidence=_clamp(score, 0, 100),
            reasoning=self._reasoning(
                start, preference, energy, snug, options, conflicts
            ),
            conflicts=conflicts,
            productivity_score=productivity,
            energy_match=_clamp(energy, 1, 10),
        )

    def _introduced_conflicts(
        self,
        suggestion_id: str,
        event_data: QuickEventData,
        start: datetime,
        end: datetime,
        events: List[CalendarEvent],
        time_blocks: List[TimeBlock],
        detector: ConflictDetector,
    ) -> List[ConflictInfo]:
        candidate = CalendarEvent(
            event_id=suggestion_id,
            title=event_data.title,
            start_time=start,
            end_time=end,
            time_zone=self.working_hours.time_zone,
            type=event_data.type,
            priority=event_data.priority,
            status=EventStatus.TENTATIVE,
            attendees=event_data.attendees,
        )
        low, high = start - _CONTEXT_PADDING, end + _CONTEXT_PADDING
        nearby_events = [
            e for e in events if overlaps(e.start_time, e.end_time, low, high)
        ]
        nearby_blocks = [
            b for b in time_blocks if overlaps(b.start_time, b.end_time, low, high)
        ]
        return conflicts_for(
            detector.detect(nearby_events + [candidate], nearby_blocks),
            suggestion_id,
        )

    def _reasoning(
        self,
        start: datetime,
        preference: int,
        energy: int,
        snug: bool,
        options: SmartSchedulingOptions,
        conflicts: List[ConflictInfo],
    ) -> str:
        local = start.astimezone(self._tz)
        parts = [f"Free on {local:%A %Y-%m-%d} at {local:%H:%M}"]
        if preference:
            parts.append(f"matches your preferred times (weight {preference})")
        if options.consider_energy_levels and energy >= 8:
            parts.append("falls in a high-energy period")
        elif options.consider_energy_levels and energy <= 4:
            parts.append("falls in a low-energy period")
        if snug:
            parts.append("sits next to existing commitments")
        if options.buffer_time:
            parts.append(f"keeps a {options.buffer_time}-minute buffer")
        if conflicts:
            parts.append(f"introduces {len(conflicts)} conflict(s)")
        return "; ".join(parts)
