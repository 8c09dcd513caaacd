"""Mock implementations of planner repositories."""

from .calendar import MockSnapshotRepository
from .config import MockPlannerConfigurationRepository

__all__ = [
    "MockPlannerConfigurationRepository",
    "MockSnapshotRepository",
]
