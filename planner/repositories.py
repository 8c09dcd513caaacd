"""
Defines the repository protocols the planning engine reads its inputs from.

The engine itself never touches storage. Repositories hand it an in-memory
snapshot of a window, synchronously, and everything downstream is a pure
function of that snapshot.
"""

from datetime import datetime
from typing import List, Protocol, runtime_checkable

from .domain import CalendarEvent, PlannerSettings, TimeBlock


@runtime_checkable
class CalendarSnapshotRepository(Protocol):
    """
    Protocol for a source of calendar data.

    Implementations return every event and time block that may matter for
    ``[start, end)``. Recurring events are returned as their masters, even
    when the master's own start lies before the window; the engine expands
    them.
    """

    def load_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        """Events intersecting the window, plus recurring masters."""
        ...

    def load_time_blocks(self, start: datetime, end: datetime) -> List[TimeBlock]:
        """Time blocks intersecting the window."""
        ...


@runtime_checkable
class PlannerConfigurationRepository(Protocol):
    """
    Protocol for a repository that provides the user's planner settings.

    This keeps configuration sources (YAML files, fixed demo values) out of
    the use cases.
    """

    def get_settings(self) -> PlannerSettings:
        """Current settings; defaults when nothing is configured."""
        ...
