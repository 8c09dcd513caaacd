"""
Conflict detection over a materialized set of events and time blocks.

Candidate pairs come from an interval sweep: items are sorted by start
(extended by any buffer they carry) and compared only with the items still
active at that point, so disjoint stretches of the calendar are never
compared with each other.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional, Sequence

from .domain import (
    CalendarEvent,
    ConflictInfo,
    ConflictSeverity,
    ConflictType,
    EventPriority,
    EventStatus,
    EventType,
    FlexibilityLevel,
    FocusType,
    TimeBlock,
    TimeBlockType,
    TimeSlot,
)
from .timeutils import contains, get_zone, overlaps, weekday_index

logger = logging.getLogger(__name__)

# Event priorities on the same 1-10 scale as time blocks.
EVENT_PRIORITY_SCORES = {
    EventPriority.LOW: 3,
    EventPriority.MEDIUM: 5,
    EventPriority.HIGH: 7,
    EventPriority.URGENT: 9,
}

FLEXIBILITY_COST = {
    FlexibilityLevel.VERY_FLEXIBLE: 0,
    FlexibilityLevel.FLEXIBLE: 1,
    FlexibilityLevel.PREFERRED: 2,
    FlexibilityLevel.FIXED: 3,
}

_SEVERITY_BY_TIER_SUM = {
    2: ConflictSeverity.LOW,
    3: ConflictSeverity.LOW,
    4: ConflictSeverity.MEDIUM,
    5: ConflictSeverity.MEDIUM,
    6: ConflictSeverity.HIGH,
    7: ConflictSeverity.HIGH,
    8: ConflictSeverity.CRITICAL,
}

_BOOKABLE_EVENT_TYPES = {EventType.MEETING, EventType.APPOINTMENT}
_BREAK_BLOCK_TYPES = {TimeBlockType.BREAK, TimeBlockType.BUFFER}


def priority_tier(score: int) -> int:
    """Map a 1-10 priority onto low(1), medium(2), high(3), urgent(4)."""
    if score <= 3:
        return 1
    if score <= 5:
        return 2
    if score <= 8:
        return 3
    return 4


class _Item(NamedTuple):
    item_id: str
    is_event: bool
    title: str
    start: datetime
    end: datetime
    priority: int
    fixed: bool
    flexibility_cost: int
    is_break: bool
    buffer: timedelta
    attendees: frozenset
    bookable: bool

    @property
    def sweep_start(self) -> datetime:
        return self.start - self.buffer

    @property
    def sweep_end(self) -> datetime:
        return self.end + self.buffer


def _event_item(event: CalendarEvent) -> _Item:
    fixed = event.status in (EventStatus.CONFIRMED, EventStatus.COMPLETED)
    return _Item(
        item_id=event.event_id,
        is_event=True,
        title=event.title,
        start=event.start_time,
        end=event.end_time,
        priority=EVENT_PRIORITY_SCORES[event.priority],
        fixed=fixed,
        flexibility_cost=(
            FLEXIBILITY_COST[FlexibilityLevel.FIXED]
            if fixed
            else FLEXIBILITY_COST[FlexibilityLevel.FLEXIBLE]
        ),
        is_break=event.type == EventType.BREAK,
        buffer=timedelta(0),
        attendees=frozenset(a.strip().lower() for a in event.attendees),
        bookable=event.type in _BOOKABLE_EVENT_TYPES,
    )


def _block_item(block: TimeBlock) -> _Item:
    return _Item(
        item_id=block.time_block_id,
        is_event=False,
        title=block.title,
        start=block.start_time,
        end=block.end_time,
        priority=block.priority,
        fixed=block.is_fixed,
        flexibility_cost=(
            FLEXIBILITY_COST[FlexibilityLevel.FIXED]
            if block.is_locked
            else FLEXIBILITY_COST[block.flexibility]
        ),
        is_break=block.type in _BREAK_BLOCK_TYPES,
        buffer=(
            timedelta(minutes=block.buffer_time)
            if block.is_locked
            else timedelta(0)
        ),
        attendees=frozenset(),
        bookable=False,
    )


def _ids(*items: _Item) -> dict:
    return {
        "event_ids": [i.item_id for i in items if i.is_event],
        "time_block_ids": [i.item_id for i in items if not i.is_event],
    }


def _mover(a: _Item, b: _Item) -> _Item:
    """The lower-priority, cheaper-to-move item of a pair."""
    return min(
        (a, b), key=lambda i: (i.priority, i.flexibility_cost, i.start, i.item_id)
    )


class ConflictDetector:
    """
    Finds overlap, double-booking, buffer, priority and energy conflicts.

    ``high_energy_windows`` are the caller's declared high-energy periods,
    read in ``time_zone``; energy mismatches are only reported when at
    least one window is declared.
    """

    def __init__(
        self,
        high_energy_windows: Optional[Sequence[TimeSlot]] = None,
        time_zone: str = "UTC",
    ):
        self.high_energy_windows = list(high_energy_windows or [])
        self.time_zone = time_zone
        self._tz = get_zone(time_zone)

    def detect(
        self,
        events: Iterable[CalendarEvent] = (),
        time_blocks: Iterable[TimeBlock] = (),
    ) -> List[ConflictInfo]:
        items = [
            _event_item(e)
            for e in events
            if e.status != EventStatus.CANCELLED
        ]
        blocks = list(time_blocks)
        items.extend(_block_item(b) for b in blocks)
        items.sort(
            key=lambda i: (i.sweep_start, i.sweep_end, not i.is_event, i.item_id)
        )

        conflicts: List[ConflictInfo] = []
        active: List[_Item] = []
        pair_count = 0
        for item in items:
            active = [a for a in active if a.sweep_end > item.sweep_start]
            for other in active:
                pair_count += 1
                conflicts.extend(self._pair_conflicts(other, item))
            active.append(item)

        for block in blocks:
            mismatch = self._energy_mismatch(block)
            if mismatch is not None:
                conflicts.append(mismatch)

        conflicts.sort(key=lambda c: (c.start_time, c.type.value, c.conflict_id))
        logger.debug(
            "Detected conflicts",
            extra={
                "item_count": len(items),
                "pairs_compared": pair_count,
                "conflict_count": len(conflicts),
            },
        )
        return conflicts

    def _pair_conflicts(self, a: _Item, b: _Item) -> List[ConflictInfo]:
        found: List[ConflictInfo] = []
        if overlaps(a.start, a.end, b.start, b.end):
            span = (max(a.start, b.start), min(a.end, b.end))
            if not a.is_break and not b.is_break:
                found.append(self._overlap(a, b, span))
            if a.bookable and b.bookable and a.attendees & b.attendees:
                found.append(self._double_booking(a, b, span))
            priority = self._priority_conflict(a, b, span)
            if priority is not None:
                found.append(priority)
        for block, other in ((a, b), (b, a)):
            violation = self._buffer_violation(block, other)
            if violation is not None:
                found.append(violation)
        return found

    def _overlap(self, a: _Item, b: _Item, span: tuple) -> ConflictInfo:
        tier_sum = priority_tier(a.priority) + priority_tier(b.priority)
        mover = _mover(a, b)
        return ConflictInfo(
            conflict_id=f"overlap:{a.item_id}:{b.item_id}",
            type=ConflictType.OVERLAP,
            severity=_SEVERITY_BY_TIER_SUM[tier_sum],
            description=f"'{a.title}' overlaps '{b.title}'",
            suggested_resolution=f"Move '{mover.title}' to a free slot",
            start_time=span[0],
            end_time=span[1],
            **_ids(a, b),
        )

    def _double_booking(self, a: _Item, b: _Item, span: tuple) -> ConflictInfo:
        shared = sorted(a.attendees & b.attendees)
        mover = _mover(a, b)
        return ConflictInfo(
            conflict_id=f"double_booking:{a.item_id}:{b.item_id}",
            type=ConflictType.DOUBLE_BOOKING,
            severity=ConflictSeverity.HIGH,
            description=(
                f"'{a.title}' and '{b.title}' both book "
                f"{', '.join(shared)}"
            ),
            suggested_resolution=(
                f"Reschedule '{mover.title}' or remove the shared attendees"
            ),
            start_time=span[0],
            end_time=span[1],
            **_ids(a, b),
        )

    def _priority_conflict(
        self, a: _Item, b: _Item, span: tuple
    ) -> Optional[ConflictInfo]:
        if a.fixed == b.fixed:
            return None
        fixed, flexible = (a, b) if a.fixed else (b, a)
        if fixed.priority <= flexible.priority:
            return None
        severity = (
            ConflictSeverity.HIGH
            if priority_tier(fixed.priority) >= 3
            else ConflictSeverity.MEDIUM
        )
        return ConflictInfo(
            conflict_id=f"priority_conflict:{a.item_id}:{b.item_id}",
            type=ConflictType.PRIORITY_CONFLICT,
            severity=severity,
            description=(
                f"Lower-priority '{flexible.title}' (priority "
                f"{flexible.priority}) overlaps fixed '{fixed.title}' "
                f"(priority {fixed.priority})"
            ),
            suggested_resolution=(
                f"Move '{flexible.title}', the lower-priority and more "
                f"flexible item"
            ),
            start_time=span[0],
            end_time=span[1],
            **_ids(a, b),
        )

    def _buffer_violation(
        self, block: _Item, other: _Item
    ) -> Optional[ConflictInfo]:
        if block.is_event or not block.buffer or other.is_break:
            return None
        before = block.start - block.buffer
        after = block.end + block.buffer
        if before <= other.start < block.start or before < other.end <= block.start:
            span = (max(other.start, before), min(other.end, block.start))
            where = "before"
        elif block.end <= other.start < after or block.end < other.end <= after:
            span = (max(other.start, block.end), min(other.end, after))
            where = "after"
        else:
            return None
        minutes = int(block.buffer.total_seconds() // 60)
        return ConflictInfo(
            conflict_id=f"break_violation:{block.item_id}:{other.item_id}",
            type=ConflictType.BREAK_VIOLATION,
            severity=ConflictSeverity.MEDIUM,
            description=(
                f"'{other.title}' falls inside the {minutes}-minute buffer "
                f"{where} '{block.title}'"
            ),
            suggested_resolution=(
                f"Keep {minutes} minutes free {where} '{block.title}'"
            ),
            start_time=span[0],
            end_time=span[1],
            **_ids(block, other),
        )

    def _energy_mismatch(self, block: TimeBlock) -> Optional[ConflictInfo]:
        if block.focus_type != FocusType.DEEP or not self.high_energy_windows:
            return None
        day = block.start_time.astimezone(self._tz).date()
        weekday = weekday_index(day)
        for window in self.high_energy_windows:
            if window.applies_on(weekday) and contains(
                window.on_day(day, self.time_zone),
                (block.start_time, block.end_time),
            ):
                return None
        return ConflictInfo(
            conflict_id=f"energy_mismatch:{block.time_block_id}",
            type=ConflictType.ENERGY_MISMATCH,
            severity=ConflictSeverity.LOW,
            description=(
                f"Deep-focus block '{block.title}' is outside your "
                f"high-energy windows"
            ),
            suggested_resolution="Move it into a high-energy window",
            time_block_ids=[block.time_block_id],
            start_time=block.start_time,
            end_time=block.end_time,
        )


def conflicts_for(
    conflicts: Iterable[ConflictInfo], item_id: str
) -> List[ConflictInfo]:
    """The conflicts an event or time block takes part in."""
    return [c for c in conflicts if c.involves(item_id)]


def annotate_conflicts(
    events: Iterable[CalendarEvent], conflicts: Sequence[ConflictInfo]
) -> List[CalendarEvent]:
    """Copies of ``events`` with their recomputed conflicts attached."""
    return [
        e.model_copy(update={"conflicts": conflicts_for(conflicts, e.event_id)})
        for e in events
    ]
