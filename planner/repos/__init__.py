"""Repositories for the planner domain."""

from .local import LocalPlannerConfigurationRepository, LocalSnapshotRepository
from .memory import InMemorySnapshotRepository
from .mock import MockPlannerConfigurationRepository, MockSnapshotRepository

__all__ = [
    "InMemorySnapshotRepository",
    "LocalPlannerConfigurationRepository",
    "LocalSnapshotRepository",
    "MockPlannerConfigurationRepository",
    "MockSnapshotRepository",
]
