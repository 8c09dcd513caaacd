"""In-memory implementations of planner repositories."""

from .snapshot import InMemorySnapshotRepository

__all__ = [
    "InMemorySnapshotRepository",
]
