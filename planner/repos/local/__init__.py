"""Local storage implementations of planner repositories."""

from .config import LocalPlannerConfigurationRepository
from .snapshot import LocalSnapshotRepository

__all__ = [
    "LocalPlannerConfigurationRepository",
    "LocalSnapshotRepository",
]
